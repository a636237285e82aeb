"""
API package initialization.

This package contains FastAPI router modules for the sales reporting service:
- reports: Report catalogue, SQL reports, inline dataset computation, reconciliation
"""

from fastapi import APIRouter

from sales_reporting.api.reports import router as reports_router

# Create main API router
api_router = APIRouter()

api_router.include_router(reports_router, prefix="/reports", tags=["reports"])

__all__ = [
    "api_router",
    "reports_router",
]
