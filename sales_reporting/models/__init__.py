"""
Package initialization file for sales reporting models.

Re-exports all Pydantic schemas and enumerations so other modules can import
them from sales_reporting.models directly.

Usage:
    from sales_reporting.models import ReportName, TopSellerRow, SaleRow
"""

# =============================================================================
# Enums
# =============================================================================

from sales_reporting.models.enums import (
    ReportName,
    AgeCategory,
    Weekday,
    DataSource,
    REPORT_DESCRIPTIONS,
    AGE_CATEGORY_RANK,
)

# =============================================================================
# Schemas
# =============================================================================

from sales_reporting.models.schemas import (
    # Entity rows
    CustomerRow,
    EmployeeRow,
    ProductRow,
    SaleRow,
    # Report rows
    TopSellerRow,
    BelowAverageSellerRow,
    WeekdayIncomeRow,
    AgeGroupRow,
    MonthlyIncomeRow,
    PromotionalFirstPurchaseRow,
    REPORT_ROW_MODELS,
    # Validation
    ValidationError,
    # API envelopes
    ReportResponse,
    ReportInfo,
    ReportListResponse,
    DatasetPayload,
    ComputeRequest,
    ComputeResponse,
)

__all__ = [
    # Enums
    'ReportName',
    'AgeCategory',
    'Weekday',
    'DataSource',
    'REPORT_DESCRIPTIONS',
    'AGE_CATEGORY_RANK',
    # Entity rows
    'CustomerRow',
    'EmployeeRow',
    'ProductRow',
    'SaleRow',
    # Report rows
    'TopSellerRow',
    'BelowAverageSellerRow',
    'WeekdayIncomeRow',
    'AgeGroupRow',
    'MonthlyIncomeRow',
    'PromotionalFirstPurchaseRow',
    'REPORT_ROW_MODELS',
    # Validation
    'ValidationError',
    # API envelopes
    'ReportResponse',
    'ReportInfo',
    'ReportListResponse',
    'DatasetPayload',
    'ComputeRequest',
    'ComputeResponse',
]
