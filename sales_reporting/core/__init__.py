"""
Core infrastructure package for the sales reporting service.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL database connectivity via asyncpg
- FastAPI dependency injection utilities

This module re-exports key components from submodules so other modules can
use short imports:

    from sales_reporting.core import get_settings, get_db_pool, DBSessionDep

Usage Examples:
    # Pool lifecycle (in FastAPI lifespan)
    from sales_reporting.core import init_db, close_db

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db()
        yield
        await close_db()
"""

# =============================================================================
# Re-exports from sales_reporting.core.config
# =============================================================================
from sales_reporting.core.config import Settings, get_settings

# =============================================================================
# Re-exports from sales_reporting.core.database
# =============================================================================
from sales_reporting.core.database import (
    init_db,
    close_db,
    get_db_pool,
    fetch_dataframe,
    records_to_dataframe,
)

# =============================================================================
# Re-exports from sales_reporting.core.exceptions
# =============================================================================
from sales_reporting.core.exceptions import (
    ReportingError,
    DatasetValidationError,
    DataQualityError,
    UnknownReportError,
)

# =============================================================================
# Re-exports from sales_reporting.core.dependencies
# =============================================================================
from sales_reporting.core.dependencies import (
    get_db_session,
    get_settings_dependency,
    SettingsDep,
    DBSessionDep,
)

# =============================================================================
# Public API Definition
# =============================================================================

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle and helpers (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
    'fetch_dataframe',
    'records_to_dataframe',
    # Exceptions (from exceptions.py)
    'ReportingError',
    'DatasetValidationError',
    'DataQualityError',
    'UnknownReportError',
    # FastAPI dependency injection (from dependencies.py)
    'get_db_session',
    'get_settings_dependency',
    'SettingsDep',
    'DBSessionDep',
]
