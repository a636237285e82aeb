"""
Async PostgreSQL connection pool module for the sales database.

This module provides an async PostgreSQL connection pool using asyncpg and is
the single point through which the SQL reports reach the database.

Key Components:
- Global connection pool singleton (_pool)
- init_db(): Initialize the connection pool at application startup
- get_db_pool(): Get the pool instance (initializes if needed)
- close_db(): Gracefully close the pool at application shutdown
- fetch_dataframe(): Execute a query and return a pandas DataFrame

Connection Pool Configuration (from Settings):
- db_pool_min_size: minimum idle connections kept in pool
- db_pool_max_size: maximum connections in pool
- db_command_timeout: query timeout in seconds

Usage:
    # At application startup (in FastAPI lifespan)
    await init_db()

    # In services or endpoints
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch("SELECT * FROM employees")

    # At application shutdown
    await close_db()
"""

import logging
from typing import Any, Optional, Sequence

import asyncpg
import pandas as pd
from asyncpg import Pool

from sales_reporting.core.config import get_settings


logger = logging.getLogger(__name__)


# =============================================================================
# Global Pool Singleton
# =============================================================================

# None until init_db() is called
_pool: Optional[Pool] = None


# =============================================================================
# Pool Lifecycle Functions
# =============================================================================

async def init_db() -> Pool:
    """
    Initialize the database connection pool.

    Idempotent: if the pool already exists it is returned unchanged.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        RuntimeError: If DATABASE_URL is not configured.
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    global _pool

    if _pool is None:
        settings = get_settings()

        if not settings.database_url:
            raise RuntimeError(
                "DATABASE_URL is not configured; SQL reports require a database"
            )

        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
        )
        logger.info(
            f"Created database pool (min={settings.db_pool_min_size}, "
            f"max={settings.db_pool_max_size})"
        )

    return _pool


async def get_db_pool() -> Pool:
    """
    Get the database connection pool, initializing if needed.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        RuntimeError: If DATABASE_URL is not configured.
        asyncpg.PostgresError: If connection to the database fails during lazy init.
    """
    if _pool is None:
        await init_db()

    assert _pool is not None, "Pool should be initialized after init_db()"

    return _pool


async def close_db() -> None:
    """
    Close the database connection pool gracefully.

    Safe to call when the pool was never initialized. After closing, the next
    get_db_pool() call creates a fresh pool.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Closed database pool")


# =============================================================================
# Query Execution Helpers
# =============================================================================

def records_to_dataframe(
    records: Sequence[Any],
    columns: Sequence[str]
) -> pd.DataFrame:
    """
    Convert asyncpg records (or any mapping rows) into a DataFrame.

    The column list is applied explicitly so an empty result still produces a
    frame with the expected columns.
    """
    if not records:
        return pd.DataFrame(columns=list(columns))

    return pd.DataFrame(
        [[record[column] for column in columns] for record in records],
        columns=list(columns),
    )


async def fetch_dataframe(
    conn: asyncpg.Connection,
    query: str,
    columns: Sequence[str],
    *args: Any
) -> pd.DataFrame:
    """
    Execute a query on an acquired connection and return a DataFrame.

    Args:
        conn: Connection acquired from the pool.
        query: SQL query string.
        columns: Column names to extract from each record, in order.
        *args: Query parameters.

    Returns:
        pd.DataFrame: Query result with exactly the given columns.
    """
    records = await conn.fetch(query, *args)
    return records_to_dataframe(records, columns)
