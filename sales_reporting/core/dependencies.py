"""
FastAPI dependency injection module for the sales reporting API.

Key Dependencies Provided:
- get_db_session: Async generator yielding database connections from the pool
- get_settings_dependency: Returns the cached Settings singleton
- SettingsDep: Type alias for injecting Settings into endpoints
- DBSessionDep: Type alias for injecting database connections into endpoints

Usage Examples:
    @router.get("/reports/top-sellers")
    async def top_sellers(db: DBSessionDep, settings: SettingsDep):
        rows = await db.fetch(get_top_sellers_query(), settings.top_sellers_limit)
        ...

In tests the dependencies can be replaced:
    app.dependency_overrides[get_db_session] = lambda: fake_connection
"""

from typing import Annotated, AsyncGenerator

from asyncpg import Connection
from fastapi import Depends, HTTPException

from sales_reporting.core.config import Settings, get_settings
from sales_reporting.core.database import get_db_pool


# =============================================================================
# Database Session Dependency
# =============================================================================

async def get_db_session() -> AsyncGenerator[Connection, None]:
    """
    Yield an async database connection from the pool.

    The connection is released back to the pool when the endpoint completes,
    whether it succeeded or raised.

    Yields:
        asyncpg.Connection: An active database connection from the pool.

    Raises:
        HTTPException: 503 when no database is configured.
    """
    try:
        pool = await get_db_pool()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    async with pool.acquire() as connection:
        yield connection


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can use FastAPI's dependency
    override mechanism:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

DBSessionDep = Annotated[Connection, Depends(get_db_session)]
