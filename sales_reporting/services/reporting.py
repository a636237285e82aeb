"""
Report execution service: SQL reports, response shaping and parity checks.

This module runs the SQL rendition of each report on an asyncpg connection,
converts report DataFrames (from either rendition) into validated row dicts,
and reconciles the SQL and dataframe renditions over the same snapshot.

Key Functions:
- run_sql_report: Execute one report's SQL and return a DataFrame
- report_rows: Validate a report DataFrame against its row model
- build_report_response: Wrap report rows in a ReportResponse envelope
- reconcile_reports: Compare SQL and dataframe results report by report
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import asyncpg
import pandas as pd

from sales_reporting.core.database import fetch_dataframe
from sales_reporting.core.exceptions import DataQualityError
from sales_reporting.models import REPORT_ROW_MODELS, ReportName, ReportResponse
from sales_reporting.services.dataset import SalesDataset, fetch_dataset_snapshot
from sales_reporting.services.reports import (
    DEFAULT_TOP_SELLERS_LIMIT,
    REPORT_COLUMNS,
    compute_report,
    resolve_report,
)
from sales_reporting.sql.report_queries import get_report_query, get_undated_sales_query


logger = logging.getLogger(__name__)

# Number of differing rows quoted per report in a reconciliation summary
MAX_REPORTED_MISMATCHES = 5


# =============================================================================
# Row Conversion
# =============================================================================


def report_rows(report: ReportName, df: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Validate report rows against the report's Pydantic model.

    Args:
        report: Report the DataFrame belongs to.
        df: Report DataFrame with REPORT_COLUMNS[report] columns.

    Returns:
        JSON-ready row dicts (dates as ISO strings, enums as values).
    """
    row_model = REPORT_ROW_MODELS[report]
    return [
        row_model.model_validate(record).model_dump(mode='json')
        for record in df[REPORT_COLUMNS[report]].to_dict(orient='records')
    ]


def build_report_response(report: ReportName, df: pd.DataFrame) -> ReportResponse:
    """Wrap a report DataFrame in the API response envelope."""
    rows = report_rows(report, df)
    return ReportResponse(report=report, rows=rows, row_count=len(rows))


# =============================================================================
# SQL Execution
# =============================================================================


async def check_dated_sales(conn: asyncpg.Connection) -> None:
    """
    Reject undated sales before the weekday report runs.

    Raises:
        DataQualityError: If any joinable sale has no sale_date.
    """
    records = await conn.fetch(get_undated_sales_query())
    if records:
        sales_ids = [int(record['sales_id']) for record in records]
        raise DataQualityError(
            ReportName.REVENUE_BY_WEEKDAY.value,
            f"{len(sales_ids)} sale(s) have no sale_date and cannot be placed on a weekday: "
            f"{sales_ids[:10]}",
            sales_ids,
        )


async def run_sql_report(
    conn: asyncpg.Connection,
    report: str,
    top_sellers_limit: int = DEFAULT_TOP_SELLERS_LIMIT
) -> pd.DataFrame:
    """
    Execute the SQL rendition of a report.

    Args:
        conn: Connection acquired from the pool.
        report: Report name.
        top_sellers_limit: Row limit for the top sellers report.

    Returns:
        DataFrame with the report's columns in query order.

    Raises:
        UnknownReportError: If the report name is not known.
        DataQualityError: For the weekday report when undated sales exist.
        asyncpg.PostgresError: If the query fails.
    """
    name = resolve_report(report)

    if name == ReportName.REVENUE_BY_WEEKDAY:
        await check_dated_sales(conn)

    args = (top_sellers_limit,) if name == ReportName.TOP_SELLERS else ()
    df = await fetch_dataframe(conn, get_report_query(name), REPORT_COLUMNS[name], *args)

    logger.info(f"SQL report {name.value}: {len(df)} row(s)")
    return df


# =============================================================================
# Parity Reconciliation
# =============================================================================


async def _sql_rows(
    conn: asyncpg.Connection,
    report: ReportName,
    top_sellers_limit: int
) -> List[Dict[str, Any]]:
    return report_rows(report, await run_sql_report(conn, report, top_sellers_limit))


def _dataframe_rows(
    dataset: SalesDataset,
    report: ReportName,
    top_sellers_limit: int
) -> List[Dict[str, Any]]:
    return report_rows(report, compute_report(report, dataset, top_sellers_limit))


def compare_rows(
    sql_rows: List[Dict[str, Any]],
    dataframe_rows: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """
    List positional differences between two row lists.

    Returns:
        One dict per differing position with keys position, sql, dataframe.
        A missing row on either side is reported as None.
    """
    mismatches = []
    for position in range(max(len(sql_rows), len(dataframe_rows))):
        sql_row = sql_rows[position] if position < len(sql_rows) else None
        frame_row = dataframe_rows[position] if position < len(dataframe_rows) else None
        if sql_row != frame_row:
            mismatches.append({'position': position, 'sql': sql_row, 'dataframe': frame_row})
    return mismatches


async def reconcile_reports(
    conn: asyncpg.Connection,
    dataset: Optional[SalesDataset] = None,
    reports: Optional[Iterable[str]] = None,
    top_sellers_limit: int = DEFAULT_TOP_SELLERS_LIMIT
) -> Dict[str, Dict[str, Any]]:
    """
    Run both renditions of each report and compare their rows.

    The SQL reports run inside one read-only repeatable-read transaction.
    When no dataset is given, the snapshot is read inside that same
    transaction, so both renditions see the same data.
    A data quality error counts as a match only when both renditions raise it.

    Args:
        conn: Connection acquired from the pool.
        dataset: Snapshot for the dataframe rendition.
        reports: Report names; every report when None.
        top_sellers_limit: Row limit for the top sellers report.

    Returns:
        Mapping of report name to a summary with keys matches, sql_rows,
        dataframe_rows, mismatches and (when raised) error.
    """
    names = [resolve_report(report) for report in reports] if reports else list(ReportName)

    async with conn.transaction(isolation='repeatable_read', readonly=True):
        if dataset is None:
            dataset = await fetch_dataset_snapshot(conn)
        return await _reconcile_names(conn, dataset, names, top_sellers_limit)


async def _reconcile_names(
    conn: asyncpg.Connection,
    dataset: SalesDataset,
    names: List[ReportName],
    top_sellers_limit: int
) -> Dict[str, Dict[str, Any]]:
    summary: Dict[str, Dict[str, Any]] = {}

    for name in names:
        sql_error: Optional[str] = None
        frame_error: Optional[str] = None
        sql_rows: List[Dict[str, Any]] = []
        frame_rows: List[Dict[str, Any]] = []

        try:
            sql_rows = await _sql_rows(conn, name, top_sellers_limit)
        except DataQualityError as e:
            sql_error = str(e)

        try:
            frame_rows = _dataframe_rows(dataset, name, top_sellers_limit)
        except DataQualityError as e:
            frame_error = str(e)

        mismatches = compare_rows(sql_rows, frame_rows)
        matches = not mismatches and (sql_error is None) == (frame_error is None)

        entry: Dict[str, Any] = {
            'matches': matches,
            'sql_rows': len(sql_rows),
            'dataframe_rows': len(frame_rows),
            'mismatches': mismatches[:MAX_REPORTED_MISMATCHES],
        }
        if sql_error or frame_error:
            entry['error'] = sql_error or frame_error
        summary[name.value] = entry

        if not matches:
            logger.warning(f"Reconciliation mismatch for {name.value}: {len(mismatches)} row(s)")

    return summary
