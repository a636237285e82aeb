"""
SQL Query Module for the sales reporting package.

Provides parameterized PostgreSQL queries for:
- The six sales reports (report_queries)
- Full-table snapshot extraction (dataset_queries)

Example usage:
    from sales_reporting.sql import get_top_sellers_query, get_report_query

    rows = await conn.fetch(get_top_sellers_query(), 10)
    rows = await conn.fetch(get_report_query(ReportName.CUSTOMERS_BY_AGE))
"""

# =============================================================================
# REPORT QUERIES
# =============================================================================

from sales_reporting.sql.report_queries import (
    get_top_sellers_query,
    get_below_average_sellers_query,
    get_revenue_by_weekday_query,
    get_undated_sales_query,
    get_customers_by_age_query,
    get_monthly_customers_income_query,
    get_promotional_first_purchases_query,
    get_report_query,
    REPORT_QUERY_BUILDERS,
    AGE_BRACKETS,
    AGE_OPEN_BRACKET_FLOOR,
)

# =============================================================================
# DATASET QUERIES
# =============================================================================

from sales_reporting.sql.dataset_queries import (
    get_table_snapshot_query,
    TABLE_COLUMNS,
    TABLE_KEYS,
    CUSTOMERS_TABLE,
    EMPLOYEES_TABLE,
    PRODUCTS_TABLE,
    SALES_TABLE,
)

__all__ = [
    # Report queries
    'get_top_sellers_query',
    'get_below_average_sellers_query',
    'get_revenue_by_weekday_query',
    'get_undated_sales_query',
    'get_customers_by_age_query',
    'get_monthly_customers_income_query',
    'get_promotional_first_purchases_query',
    'get_report_query',
    'REPORT_QUERY_BUILDERS',
    'AGE_BRACKETS',
    'AGE_OPEN_BRACKET_FLOOR',
    # Dataset queries
    'get_table_snapshot_query',
    'TABLE_COLUMNS',
    'TABLE_KEYS',
    'CUSTOMERS_TABLE',
    'EMPLOYEES_TABLE',
    'PRODUCTS_TABLE',
    'SALES_TABLE',
]
