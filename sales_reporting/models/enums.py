"""
Enumeration definitions for the sales reporting package.

All enums inherit from both `str` and `Enum` so they serialize cleanly through
Pydantic models and FastAPI responses.
"""

from enum import Enum


class ReportName(str, Enum):
    """
    Identifiers of the six sales reports.

    The value doubles as the export file prefix and the key in the
    /reports/compute response.
    """
    TOP_SELLERS = "top_sellers"
    BELOW_AVERAGE_SELLERS = "below_average_sellers"
    REVENUE_BY_WEEKDAY = "revenue_by_weekday"
    CUSTOMERS_BY_AGE = "customers_by_age"
    MONTHLY_CUSTOMERS_INCOME = "monthly_customers_income"
    PROMOTIONAL_FIRST_PURCHASES = "promotional_first_purchases"

    @property
    def description(self) -> str:
        return REPORT_DESCRIPTIONS[self]


REPORT_DESCRIPTIONS = {
    ReportName.TOP_SELLERS: "Top sellers by total income, rounded down",
    ReportName.BELOW_AVERAGE_SELLERS: (
        "Sellers whose average revenue per sale is below the average of all sellers' averages"
    ),
    ReportName.REVENUE_BY_WEEKDAY: "Income per seller and day of week",
    ReportName.CUSTOMERS_BY_AGE: "Customer counts per age bracket",
    ReportName.MONTHLY_CUSTOMERS_INCOME: "Unique customers and income per calendar month",
    ReportName.PROMOTIONAL_FIRST_PURCHASES: (
        "Customers whose first purchase had zero revenue"
    ),
}


class AgeCategory(str, Enum):
    """
    Customer age brackets.

    Bounds are inclusive: 16-25 and 26-40; 40+ means strictly above 40.
    Customers outside every bracket (under 16, unknown age) are UNCLASSIFIED
    and still counted.
    """
    AGE_16_25 = "16-25"
    AGE_26_40 = "26-40"
    AGE_40_PLUS = "40+"
    UNCLASSIFIED = "unclassified"

    @property
    def rank(self) -> int:
        return AGE_CATEGORY_RANK[self]


# Output ordering; alphabetical order would not match the natural one
AGE_CATEGORY_RANK = {
    AgeCategory.AGE_16_25: 1,
    AgeCategory.AGE_26_40: 2,
    AgeCategory.AGE_40_PLUS: 3,
    AgeCategory.UNCLASSIFIED: 4,
}


class Weekday(str, Enum):
    """
    Lower-case English weekday names, declared in ISO-8601 order.

    `from_isodow` maps an ISO weekday number (Monday=1 ... Sunday=7) to a member.
    """
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_isodow(cls, isodow: int) -> "Weekday":
        return list(cls)[isodow - 1]


class DataSource(str, Enum):
    """Where a dataset snapshot was loaded from."""
    CSV = "csv"
    DATABASE = "database"
    PAYLOAD = "payload"
