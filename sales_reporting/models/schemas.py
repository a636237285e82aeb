"""
Pydantic request/response models for the sales reporting API.

Covers three groups of models:
- Entity rows (customers, employees, products, sales) accepted as inline
  dataset payloads
- Report rows, one model per report, mirroring the report's output columns
- API envelopes and validation error details

All models use Pydantic v2 syntax.
"""

from datetime import date as DateType
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from sales_reporting.models.enums import AgeCategory, ReportName, Weekday


# =============================================================================
# Entity Rows (sales schema)
# =============================================================================


class CustomerRow(BaseModel):
    """A row of the customers table."""
    customer_id: int = Field(..., description="Customer identifier")
    first_name: str = Field(..., description="Customer first name")
    last_name: str = Field(..., description="Customer last name")
    age: Optional[int] = Field(default=None, description="Customer age in years")


class EmployeeRow(BaseModel):
    """A row of the employees table. Employees act as sellers."""
    employee_id: int = Field(..., description="Employee identifier")
    first_name: str = Field(..., description="Employee first name")
    last_name: str = Field(..., description="Employee last name")


class ProductRow(BaseModel):
    """A row of the products table."""
    product_id: int = Field(..., description="Product identifier")
    price: Decimal = Field(..., ge=0, description="Unit price")
    name: Optional[str] = Field(default=None, description="Product name (unused by reports)")


class SaleRow(BaseModel):
    """
    A row of the sales table.

    References one customer, one employee (sales_person_id) and one product.
    Revenue of the sale is product price times quantity.
    """
    sales_id: int = Field(..., description="Sale identifier")
    customer_id: int = Field(..., description="Buying customer")
    sales_person_id: int = Field(..., description="Selling employee")
    product_id: int = Field(..., description="Product sold")
    quantity: int = Field(..., ge=0, description="Units sold")
    sale_date: Optional[DateType] = Field(default=None, description="Date of sale")


# =============================================================================
# Report Rows
# =============================================================================


class TopSellerRow(BaseModel):
    """Top sellers report row."""
    seller: str = Field(..., description="Seller first and last name")
    operations: int = Field(..., ge=0, description="Number of sales")
    income: int = Field(..., description="Total revenue, rounded down")


class BelowAverageSellerRow(BaseModel):
    """Below-average sellers report row."""
    seller: str = Field(..., description="Seller first and last name")
    average_income: int = Field(..., description="Average revenue per sale, rounded down")


class WeekdayIncomeRow(BaseModel):
    """Revenue by day of week report row."""
    seller: str = Field(..., description="Seller first and last name")
    day_of_week: Weekday = Field(..., description="Lower-case English weekday name")
    income: int = Field(..., description="Revenue for that weekday, rounded down")


class AgeGroupRow(BaseModel):
    """Customers by age bracket report row."""
    age_category: AgeCategory = Field(..., description="Age bracket")
    age_count: int = Field(..., ge=0, description="Number of customers in the bracket")


class MonthlyIncomeRow(BaseModel):
    """Monthly unique customers and income report row."""
    selling_month: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}$",
        description="Calendar month in YYYY-MM format"
    )
    total_customers: int = Field(..., ge=0, description="Distinct customers that month")
    income: int = Field(..., description="Revenue that month, rounded down")


class PromotionalFirstPurchaseRow(BaseModel):
    """Promotional first purchase report row."""
    customer: str = Field(..., description="Customer first and last name")
    sale_date: DateType = Field(..., description="Date of the first purchase")
    seller: str = Field(..., description="Seller first and last name")


REPORT_ROW_MODELS = {
    ReportName.TOP_SELLERS: TopSellerRow,
    ReportName.BELOW_AVERAGE_SELLERS: BelowAverageSellerRow,
    ReportName.REVENUE_BY_WEEKDAY: WeekdayIncomeRow,
    ReportName.CUSTOMERS_BY_AGE: AgeGroupRow,
    ReportName.MONTHLY_CUSTOMERS_INCOME: MonthlyIncomeRow,
    ReportName.PROMOTIONAL_FIRST_PURCHASES: PromotionalFirstPurchaseRow,
}


# =============================================================================
# Validation
# =============================================================================


class ValidationError(BaseModel):
    """
    Validation error detail.

    Used for reporting dataset validation issues during loading.
    """
    field: str = Field(..., description="Field or table with validation error")
    message: str = Field(..., description="Error message")
    row_number: Optional[int] = Field(
        default=None,
        ge=1,
        description="Row number where error occurred"
    )


# =============================================================================
# API Envelopes
# =============================================================================


class ReportResponse(BaseModel):
    """
    A single computed report.

    Rows are kept as plain dicts so one envelope serves all six reports; each
    row has already been validated against its REPORT_ROW_MODELS entry.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "report": "top_sellers",
                "rows": [{"seller": "Dirk Stringer", "operations": 21, "income": 1003}],
                "rowCount": 1
            }
        }
    )

    report: ReportName = Field(..., description="Report identifier")
    rows: List[Dict] = Field(default_factory=list, description="Report rows")
    row_count: int = Field(..., ge=0, alias="rowCount", description="Number of rows")


class ReportInfo(BaseModel):
    """Report catalogue entry."""
    name: ReportName
    description: str


class ReportListResponse(BaseModel):
    """Response model for the report catalogue endpoint."""
    reports: List[ReportInfo] = Field(default_factory=list)


class DatasetPayload(BaseModel):
    """Inline dataset snapshot posted for dataframe computation."""
    customers: List[CustomerRow] = Field(default_factory=list)
    employees: List[EmployeeRow] = Field(default_factory=list)
    products: List[ProductRow] = Field(default_factory=list)
    sales: List[SaleRow] = Field(default_factory=list)


class ComputeRequest(DatasetPayload):
    """Request model for computing reports over an inline dataset."""
    model_config = ConfigDict(populate_by_name=True)

    reports: Optional[List[ReportName]] = Field(
        default=None,
        description="Reports to compute; all reports when omitted"
    )
    top_sellers_limit: Optional[int] = Field(
        default=None,
        ge=1,
        alias="topSellersLimit",
        description="Row limit for the top sellers report"
    )


class ComputeResponse(BaseModel):
    """Response model for the compute endpoint."""
    reports: Dict[str, ReportResponse] = Field(default_factory=dict)
