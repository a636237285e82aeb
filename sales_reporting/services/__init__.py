"""
Business logic services for the sales reporting package.

Modules:
    dataset: Load and validate SalesDataset snapshots (CSV, database, payload)
    reports: Dataframe rendition of the six reports
    reporting: SQL rendition execution, response shaping, parity checks

Usage:
    from sales_reporting.services import load_dataset_from_csv, compute_reports

    dataset = load_dataset_from_csv("data/")
    reports = compute_reports(dataset)
"""

# =============================================================================
# Dataset Service
# =============================================================================

from sales_reporting.services.dataset import (
    SalesDataset,
    TABLES,
    build_dataset,
    dataset_from_payload,
    load_dataset_from_csv,
    fetch_dataset_snapshot,
    validate_columns,
    validate_data_types,
    validate_unique_keys,
)

# =============================================================================
# Dataframe Reports
# =============================================================================

from sales_reporting.services.reports import (
    REPORT_COLUMNS,
    REPORT_FUNCTIONS,
    DEFAULT_TOP_SELLERS_LIMIT,
    top_sellers,
    below_average_sellers,
    seller_average_incomes,
    revenue_by_weekday,
    customers_by_age,
    classify_ages,
    monthly_customers_income,
    promotional_first_purchases,
    first_purchase_dates,
    compute_report,
    compute_reports,
    resolve_report,
)

# =============================================================================
# SQL Execution and Reconciliation
# =============================================================================

from sales_reporting.services.reporting import (
    build_report_response,
    check_dated_sales,
    compare_rows,
    reconcile_reports,
    report_rows,
    run_sql_report,
)

__all__ = [
    # Dataset
    'SalesDataset',
    'TABLES',
    'build_dataset',
    'dataset_from_payload',
    'load_dataset_from_csv',
    'fetch_dataset_snapshot',
    'validate_columns',
    'validate_data_types',
    'validate_unique_keys',
    # Dataframe reports
    'REPORT_COLUMNS',
    'REPORT_FUNCTIONS',
    'DEFAULT_TOP_SELLERS_LIMIT',
    'top_sellers',
    'below_average_sellers',
    'seller_average_incomes',
    'revenue_by_weekday',
    'customers_by_age',
    'classify_ages',
    'monthly_customers_income',
    'promotional_first_purchases',
    'first_purchase_dates',
    'compute_report',
    'compute_reports',
    'resolve_report',
    # SQL execution and reconciliation
    'build_report_response',
    'check_dated_sales',
    'compare_rows',
    'reconcile_reports',
    'report_rows',
    'run_sql_report',
]
