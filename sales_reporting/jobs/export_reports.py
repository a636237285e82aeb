"""
Report Export Job for the sales reporting package.

Writes every report for a dataset snapshot to CSV files, one file per report
and run date:

    {output_dir}/{report}_{YYYY-MM-DD}.csv

Idempotency:
- A report is never exported twice for the same run date; an existing file
  means the export is skipped
- Files are written to a temporary name and renamed into place, so an
  interrupted export never leaves a file that looks complete
- Force flag (force=True) re-exports and replaces existing files

A failing report (for example a data quality error in the weekday report) is
recorded in the summary and the remaining reports are still exported.

Usage:
    from sales_reporting.jobs.export_reports import export_reports

    dataset = load_dataset_from_csv("data/")
    result = export_reports(dataset, output_dir="exports", run_date=date(2024, 1, 31))
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from sales_reporting.core.config import get_settings
from sales_reporting.core.exceptions import ReportingError
from sales_reporting.models import ReportName
from sales_reporting.services.dataset import SalesDataset
from sales_reporting.services.reports import compute_report, resolve_report


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

EXPORT_FILE_NAME_TEMPLATE = "{report}_{date}.csv"

TEMP_SUFFIX = ".tmp"


# =============================================================================
# Export State
# =============================================================================

@dataclass
class ExportState:
    """
    A completed export of one report.

    Attributes:
        report: Exported report.
        run_date: Date the export belongs to.
        path: Written CSV file.
        exported_at: Modification time of the file.
    """
    report: ReportName
    run_date: date
    path: Path
    exported_at: datetime


def export_file_path(output_dir: Union[str, Path], report: ReportName, run_date: date) -> Path:
    """Return the CSV path for a report and run date."""
    file_name = EXPORT_FILE_NAME_TEMPLATE.format(report=report.value, date=run_date.isoformat())
    return Path(output_dir) / file_name


def check_export_exists(output_dir: Union[str, Path], report: ReportName, run_date: date) -> bool:
    """
    Check whether a report was already exported for a run date.

    Returns:
        bool: True if the CSV file exists.
    """
    return export_file_path(output_dir, report, run_date).is_file()


def get_export_status(output_dir: Union[str, Path], run_date: date) -> Dict[str, Optional[ExportState]]:
    """
    Get the export state of every report for a run date.

    Returns:
        Mapping of report name to ExportState, or None when not exported.
    """
    status: Dict[str, Optional[ExportState]] = {}
    for report in ReportName:
        path = export_file_path(output_dir, report, run_date)
        if path.is_file():
            status[report.value] = ExportState(
                report=report,
                run_date=run_date,
                path=path,
                exported_at=datetime.fromtimestamp(path.stat().st_mtime),
            )
        else:
            status[report.value] = None
    return status


# =============================================================================
# Export Functions
# =============================================================================

def export_report(
    dataset: SalesDataset,
    report: ReportName,
    output_dir: Union[str, Path],
    run_date: date,
    force: bool = False,
    top_sellers_limit: Optional[int] = None
) -> Dict[str, Any]:
    """
    Export a single report to CSV.

    Args:
        dataset: Sales snapshot.
        report: Report to export.
        output_dir: Directory for CSV files (created if missing).
        run_date: Date stamped into the file name.
        force: Replace an existing export for the same date.
        top_sellers_limit: Row limit for the top sellers report.

    Returns:
        Dict with keys report, success, skipped, path, rows, error.
    """
    path = export_file_path(output_dir, report, run_date)
    result: Dict[str, Any] = {
        'report': report.value,
        'success': False,
        'skipped': False,
        'path': str(path),
        'rows': 0,
        'error': None,
    }

    if not force and path.is_file():
        logger.info(f"Export for {report.value} on {run_date} already exists, skipping")
        result['success'] = True
        result['skipped'] = True
        return result

    limit = top_sellers_limit or get_settings().top_sellers_limit

    try:
        df = compute_report(report, dataset, top_sellers_limit=limit)

        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_name(path.name + TEMP_SUFFIX)
        df.to_csv(temp_path, index=False)
        temp_path.replace(path)

    except (ReportingError, OSError) as e:
        logger.error(f"Failed to export {report.value} for {run_date}: {e}")
        result['error'] = str(e)
        return result

    logger.info(f"Exported {report.value} ({len(df)} rows) to {path}")
    result['success'] = True
    result['rows'] = len(df)
    return result


def export_reports(
    dataset: SalesDataset,
    output_dir: Optional[Union[str, Path]] = None,
    run_date: Optional[date] = None,
    force: bool = False,
    reports: Optional[Iterable[str]] = None,
    top_sellers_limit: Optional[int] = None
) -> Dict[str, Any]:
    """
    Export several reports (all by default) for one run date.

    Args:
        dataset: Sales snapshot.
        output_dir: Directory for CSV files; defaults to settings.export_dir.
        run_date: Date stamped into file names; defaults to today.
        force: Replace existing exports.
        reports: Report names to export; every report when None.
        top_sellers_limit: Row limit for the top sellers report.

    Returns:
        Dict with keys success, date, results and summary
        (total, success_count, skipped_count, failed_count).
    """
    target_dir = Path(output_dir or get_settings().export_dir)
    target_date = run_date or date.today()
    names = [resolve_report(report) for report in reports] if reports else list(ReportName)

    results = []
    success_count = 0
    skipped_count = 0
    failed_count = 0

    for name in names:
        result = export_report(
            dataset,
            name,
            target_dir,
            target_date,
            force=force,
            top_sellers_limit=top_sellers_limit,
        )
        results.append(result)

        if result['success']:
            if result['skipped']:
                skipped_count += 1
            else:
                success_count += 1
        else:
            failed_count += 1

    return {
        'success': failed_count == 0,
        'date': str(target_date),
        'results': results,
        'summary': {
            'total': len(names),
            'success_count': success_count,
            'skipped_count': skipped_count,
            'failed_count': failed_count,
        },
    }


__all__ = [
    'ExportState',
    'export_file_path',
    'check_export_exists',
    'get_export_status',
    'export_report',
    'export_reports',
]
