"""
FastAPI application entry point for the Sales Reporting API.

Configures logging, manages the database pool lifecycle and registers the
report routers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from sales_reporting import __version__
from sales_reporting.api import api_router
from sales_reporting.core.config import get_settings
from sales_reporting.core.database import close_db, init_db

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for application startup and shutdown.

    On startup the database pool is created when DATABASE_URL is set. The
    /reports/compute endpoint works without a database, so a missing or
    unreachable database is logged rather than fatal.
    """
    logger.info("Sales Reporting API starting")
    if get_settings().database_url:
        try:
            await init_db()
            logger.info("Database connection pool initialized")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
    else:
        logger.info("DATABASE_URL not set; SQL reports are unavailable")

    yield

    logger.info("Sales Reporting API shutting down")
    try:
        await close_db()
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


app = FastAPI(
    title="Sales Reporting API",
    version=__version__,
    description=(
        "Read-only sales reports: top sellers, below-average sellers, revenue "
        "by weekday, customers by age, monthly customers and income, and "
        "promotional first purchases."
    ),
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers and monitoring."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint providing API information."""
    return {
        "name": "Sales Reporting API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sales_reporting.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
