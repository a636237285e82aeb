"""
Automation Jobs for the sales reporting package.

- Report export (export_reports.py): writes every report to dated CSV files.

Idempotency Guarantees:
- A report is exported at most once per run date unless force=True
- Partially written files are never left under their final name

Usage:
    from sales_reporting.jobs import export_reports, check_export_exists

    result = export_reports(dataset, output_dir="exports")
    already = check_export_exists("exports", ReportName.TOP_SELLERS, date(2024, 1, 31))
"""

from sales_reporting.jobs.export_reports import (
    ExportState,
    export_file_path,
    check_export_exists,
    get_export_status,
    export_report,
    export_reports,
)

__all__ = [
    'ExportState',
    'export_file_path',
    'check_export_exists',
    'get_export_status',
    'export_report',
    'export_reports',
]
