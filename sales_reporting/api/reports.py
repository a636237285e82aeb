"""
FastAPI router module for the sales reports.

Implements:
- GET /reports: report catalogue
- GET /reports/top-sellers, /below-average-sellers, /revenue-by-weekday,
  /customers-by-age, /monthly-customers-income, /promotional-first-purchases:
  SQL rendition executed against the database
- POST /reports/compute: dataframe rendition over an inline dataset
- GET /reports/reconcile: SQL vs dataframe parity summary for the live database

Response shape for every report: { report, rows, rowCount }

Error mapping:
- DatasetValidationError, DataQualityError -> 422
- Database not configured -> 503 (raised by the session dependency)
- Anything else -> 500
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, HTTPException, Query

from sales_reporting.core.dependencies import DBSessionDep, SettingsDep
from sales_reporting.core.exceptions import DataQualityError, DatasetValidationError
from sales_reporting.models import (
    ComputeRequest,
    ComputeResponse,
    ReportInfo,
    ReportListResponse,
    ReportName,
    ReportResponse,
)
from sales_reporting.services.dataset import dataset_from_payload
from sales_reporting.services.reporting import (
    build_report_response,
    reconcile_reports,
    run_sql_report,
)
from sales_reporting.services.reports import compute_reports


logger = logging.getLogger(__name__)


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter()


# =============================================================================
# Helpers
# =============================================================================


def _data_quality_exception(error: DataQualityError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "message": str(error),
            "report": error.report,
            "salesIds": error.sales_ids,
        },
    )


def _validation_exception(error: DatasetValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "message": "Dataset validation failed",
            "errors": [item.model_dump() for item in error.errors],
        },
    )


async def _sql_report_response(
    db: Any,
    report: ReportName,
    top_sellers_limit: Optional[int] = None
) -> ReportResponse:
    """Run one SQL report and shape the response, mapping domain errors."""
    try:
        kwargs = {} if top_sellers_limit is None else {"top_sellers_limit": top_sellers_limit}
        df = await run_sql_report(db, report, **kwargs)
        return build_report_response(report, df)

    except DataQualityError as e:
        logger.warning(f"Data quality error in {report.value}: {e}")
        raise _data_quality_exception(e)
    except Exception as e:
        logger.exception(f"Error computing {report.value}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to compute {report.value}: {str(e)}"
        )


# =============================================================================
# Endpoint Implementations
# =============================================================================


@router.get("", response_model=ReportListResponse)
async def list_reports() -> ReportListResponse:
    """List the available reports with their descriptions."""
    return ReportListResponse(
        reports=[ReportInfo(name=name, description=name.description) for name in ReportName]
    )


@router.get("/top-sellers", response_model=ReportResponse)
async def get_top_sellers(
    db: DBSessionDep,
    settings: SettingsDep,
    limit: Optional[int] = Query(
        default=None, ge=1, le=1000, description="Number of sellers to return"
    ),
) -> ReportResponse:
    """
    Top sellers by total income.

    Args:
        limit: Row limit; defaults to the configured top_sellers_limit (10).
    """
    return await _sql_report_response(
        db, ReportName.TOP_SELLERS, limit or settings.top_sellers_limit
    )


@router.get("/below-average-sellers", response_model=ReportResponse)
async def get_below_average_sellers(db: DBSessionDep) -> ReportResponse:
    """Sellers whose average deal is below the mean of all sellers' averages."""
    return await _sql_report_response(db, ReportName.BELOW_AVERAGE_SELLERS)


@router.get("/revenue-by-weekday", response_model=ReportResponse)
async def get_revenue_by_weekday(db: DBSessionDep) -> ReportResponse:
    """Income per seller and day of week; 422 when undated sales exist."""
    return await _sql_report_response(db, ReportName.REVENUE_BY_WEEKDAY)


@router.get("/customers-by-age", response_model=ReportResponse)
async def get_customers_by_age(db: DBSessionDep) -> ReportResponse:
    """Customer counts per age bracket."""
    return await _sql_report_response(db, ReportName.CUSTOMERS_BY_AGE)


@router.get("/monthly-customers-income", response_model=ReportResponse)
async def get_monthly_customers_income(db: DBSessionDep) -> ReportResponse:
    """Unique customers and income per calendar month."""
    return await _sql_report_response(db, ReportName.MONTHLY_CUSTOMERS_INCOME)


@router.get("/promotional-first-purchases", response_model=ReportResponse)
async def get_promotional_first_purchases(db: DBSessionDep) -> ReportResponse:
    """Customers whose first purchase had zero revenue."""
    return await _sql_report_response(db, ReportName.PROMOTIONAL_FIRST_PURCHASES)


@router.post("/compute", response_model=ComputeResponse)
def compute(
    settings: SettingsDep,
    request: ComputeRequest = Body(...),
) -> ComputeResponse:
    """
    Compute reports over an inline dataset with the dataframe engine.

    Declared sync so FastAPI runs the pandas work in its threadpool.

    Args:
        request: Entity rows plus optional report selection and top sellers limit.

    Returns:
        ComputeResponse keyed by report name.
    """
    try:
        dataset = dataset_from_payload(request)
        limit = request.top_sellers_limit or settings.top_sellers_limit
        results = compute_reports(dataset, request.reports, top_sellers_limit=limit)

        return ComputeResponse(
            reports={
                name.value: build_report_response(name, df)
                for name, df in results.items()
            }
        )

    except DatasetValidationError as e:
        raise _validation_exception(e)
    except DataQualityError as e:
        logger.warning(f"Data quality error in {e.report}: {e}")
        raise _data_quality_exception(e)
    except Exception as e:
        logger.exception("Error computing reports from payload")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to compute reports: {str(e)}"
        )


@router.get("/reconcile")
async def reconcile(db: DBSessionDep, settings: SettingsDep) -> Dict[str, Any]:
    """
    Compare the SQL and dataframe renditions over the live database.

    Returns:
        { matches, reports: { name: summary } }
    """
    try:
        summary = await reconcile_reports(db, top_sellers_limit=settings.top_sellers_limit)
    except DatasetValidationError as e:
        raise _validation_exception(e)
    except Exception as e:
        logger.exception("Error reconciling reports")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to reconcile reports: {str(e)}"
        )

    return {
        "matches": all(entry["matches"] for entry in summary.values()),
        "reports": summary,
    }
