"""
Test Module for SQL Report Execution and Reconciliation.

Covers:
- run_sql_report: query selection, limit parameter, undated sale preflight
- report_rows / build_report_response: row validation and JSON shaping
- compare_rows: positional differences
- reconcile_reports: SQL vs dataframe parity over mocked connections

The mocked connections answer report queries with rows produced by the
dataframe engine, so parity is exercised end to end without PostgreSQL.
"""

from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

import pandas as pd
import pydantic
import pytest

from sales_reporting.core.exceptions import DataQualityError, UnknownReportError
from sales_reporting.models import ReportName
from sales_reporting.services.dataset import TABLES, SalesDataset
from sales_reporting.services.reporting import (
    MAX_REPORTED_MISMATCHES,
    build_report_response,
    compare_rows,
    reconcile_reports,
    report_rows,
    run_sql_report,
)
from sales_reporting.services.reports import compute_report
from sales_reporting.sql.report_queries import get_report_query, get_undated_sales_query

from sales_reporting.tests.conftest import SALES, make_dataset, make_tables, table_fetcher


def sql_fetcher(
    dataset: SalesDataset,
    undated_sales: Optional[List[int]] = None,
    overrides: Optional[Dict[ReportName, List[Dict[str, Any]]]] = None,
    tables: Optional[Dict[str, pd.DataFrame]] = None,
) -> Callable[..., Any]:
    """
    Build an async fetch side effect that plays the database.

    Report queries return the dataframe rendition's rows (or overrides),
    the undated sales query returns undated_sales and, when tables are
    given, snapshot queries return those tables.
    """
    overrides = overrides or {}
    snapshot = table_fetcher(tables) if tables is not None else None

    async def _fetch(query: str, *args: Any) -> List[Dict[str, Any]]:
        if query == get_undated_sales_query():
            return [{'sales_id': sales_id} for sales_id in (undated_sales or [])]
        for name in ReportName:
            if query == get_report_query(name):
                if name in overrides:
                    return overrides[name]
                limit = args[0] if args else 10
                return compute_report(name, dataset, top_sellers_limit=limit).to_dict(orient='records')
        if snapshot is not None:
            return await snapshot(query, *args)
        return []

    return _fetch


class TrackingTransaction:
    """Async context manager standing in for conn.transaction(); records when it is open."""

    def __init__(self) -> None:
        self.active = False
        self.entered = 0

    async def __aenter__(self) -> 'TrackingTransaction':
        self.active = True
        self.entered += 1
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        self.active = False
        return False


# =============================================================================
# SQL EXECUTION
# =============================================================================


class TestRunSqlReport:
    """Tests for run_sql_report."""

    @pytest.mark.asyncio
    async def test_top_sellers_passes_limit(self, mock_connection) -> None:
        mock_connection.fetch.return_value = [
            {'seller': 'Anna Ivanova', 'operations': 3, 'income': 200},
        ]

        df = await run_sql_report(mock_connection, ReportName.TOP_SELLERS, top_sellers_limit=5)

        mock_connection.fetch.assert_awaited_once_with(get_report_query(ReportName.TOP_SELLERS), 5)
        assert df.to_dict(orient='records') == [
            {'seller': 'Anna Ivanova', 'operations': 3, 'income': 200}
        ]

    @pytest.mark.asyncio
    async def test_default_limit(self, mock_connection) -> None:
        await run_sql_report(mock_connection, 'top_sellers')

        mock_connection.fetch.assert_awaited_once_with(get_report_query(ReportName.TOP_SELLERS), 10)

    @pytest.mark.asyncio
    async def test_other_reports_take_no_parameters(self, mock_connection) -> None:
        df = await run_sql_report(mock_connection, ReportName.CUSTOMERS_BY_AGE)

        mock_connection.fetch.assert_awaited_once_with(get_report_query(ReportName.CUSTOMERS_BY_AGE))
        assert df.empty
        assert list(df.columns) == ['age_category', 'age_count']

    @pytest.mark.asyncio
    async def test_weekday_checks_for_undated_sales_first(self, mock_connection) -> None:
        mock_connection.fetch.side_effect = [
            [],
            [{'seller': 'Anna Ivanova', 'day_of_week': 'monday', 'income': 0}],
        ]

        df = await run_sql_report(mock_connection, ReportName.REVENUE_BY_WEEKDAY)

        queries = [call.args[0] for call in mock_connection.fetch.await_args_list]
        assert queries == [
            get_undated_sales_query(),
            get_report_query(ReportName.REVENUE_BY_WEEKDAY),
        ]
        assert len(df) == 1

    @pytest.mark.asyncio
    async def test_weekday_rejects_undated_sales(self, mock_connection) -> None:
        mock_connection.fetch.return_value = [{'sales_id': 7}, {'sales_id': 12}]

        with pytest.raises(DataQualityError) as exc_info:
            await run_sql_report(mock_connection, ReportName.REVENUE_BY_WEEKDAY)

        assert exc_info.value.report == 'revenue_by_weekday'
        assert exc_info.value.sales_ids == [7, 12]
        assert mock_connection.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_unknown_report(self, mock_connection) -> None:
        with pytest.raises(UnknownReportError):
            await run_sql_report(mock_connection, 'best_sellers')

        mock_connection.fetch.assert_not_awaited()


# =============================================================================
# ROW SHAPING
# =============================================================================


class TestReportRows:
    """Tests for report_rows and build_report_response."""

    def test_dates_become_iso_strings(self, sample_dataset: SalesDataset) -> None:
        df = compute_report(ReportName.PROMOTIONAL_FIRST_PURCHASES, sample_dataset)

        rows = report_rows(ReportName.PROMOTIONAL_FIRST_PURCHASES, df)

        assert rows[0] == {
            'customer': 'Dmitry Orlov',
            'sale_date': '2024-01-01',
            'seller': 'Anna Ivanova',
        }

    def test_enum_columns_become_values(self, sample_dataset: SalesDataset) -> None:
        df = compute_report(ReportName.CUSTOMERS_BY_AGE, sample_dataset)

        rows = report_rows(ReportName.CUSTOMERS_BY_AGE, df)

        assert [row['age_category'] for row in rows] == ['16-25', '26-40', '40+', 'unclassified']

    def test_sql_decimals_are_accepted(self) -> None:
        # Numeric SQL columns arrive as Decimal
        df = pd.DataFrame([{'seller': 'Anna Ivanova', 'average_income': Decimal('66')}])

        rows = report_rows(ReportName.BELOW_AVERAGE_SELLERS, df)

        assert rows == [{'seller': 'Anna Ivanova', 'average_income': 66}]

    def test_invalid_row_is_rejected(self) -> None:
        df = pd.DataFrame([{'seller': 'Anna Ivanova', 'day_of_week': 'funday', 'income': 1}])

        with pytest.raises(pydantic.ValidationError):
            report_rows(ReportName.REVENUE_BY_WEEKDAY, df)

    def test_response_envelope(self, sample_dataset: SalesDataset) -> None:
        df = compute_report(ReportName.MONTHLY_CUSTOMERS_INCOME, sample_dataset)

        response = build_report_response(ReportName.MONTHLY_CUSTOMERS_INCOME, df)
        payload = response.model_dump(by_alias=True, mode='json')

        assert payload['report'] == 'monthly_customers_income'
        assert payload['rowCount'] == 3
        assert payload['rows'][0] == {'selling_month': '2024-01', 'total_customers': 3, 'income': 207}


class TestCompareRows:
    """Tests for positional row comparison."""

    def test_identical_rows(self) -> None:
        rows = [{'a': 1}, {'a': 2}]

        assert compare_rows(rows, list(rows)) == []

    def test_differing_row(self) -> None:
        assert compare_rows([{'a': 1}, {'a': 2}], [{'a': 1}, {'a': 3}]) == [
            {'position': 1, 'sql': {'a': 2}, 'dataframe': {'a': 3}}
        ]

    def test_order_matters(self) -> None:
        assert len(compare_rows([{'a': 1}, {'a': 2}], [{'a': 2}, {'a': 1}])) == 2

    def test_missing_rows(self) -> None:
        assert compare_rows([{'a': 1}], []) == [{'position': 0, 'sql': {'a': 1}, 'dataframe': None}]
        assert compare_rows([], [{'a': 1}]) == [{'position': 0, 'sql': None, 'dataframe': {'a': 1}}]


# =============================================================================
# RECONCILIATION
# =============================================================================


@pytest.mark.parity
class TestReconcileReports:
    """Tests for reconcile_reports."""

    @pytest.mark.asyncio
    async def test_all_reports_match(self, mock_connection, sample_dataset: SalesDataset) -> None:
        mock_connection.fetch.side_effect = sql_fetcher(sample_dataset)

        summary = await reconcile_reports(mock_connection, sample_dataset)

        assert list(summary) == [name.value for name in ReportName]
        for entry in summary.values():
            assert entry['matches'] is True
            assert entry['mismatches'] == []
            assert entry['sql_rows'] == entry['dataframe_rows']
        assert summary['revenue_by_weekday']['sql_rows'] == 10

    @pytest.mark.asyncio
    async def test_mismatch_is_reported(self, mock_connection, sample_dataset: SalesDataset) -> None:
        mock_connection.fetch.side_effect = sql_fetcher(
            sample_dataset,
            overrides={
                ReportName.TOP_SELLERS: [
                    {'seller': 'Anna Ivanova', 'operations': 3, 'income': 201},
                ],
            },
        )

        summary = await reconcile_reports(
            mock_connection, sample_dataset, reports=['top_sellers', 'customers_by_age']
        )

        assert list(summary) == ['top_sellers', 'customers_by_age']
        top = summary['top_sellers']
        assert top['matches'] is False
        assert top['sql_rows'] == 1
        assert top['dataframe_rows'] == 4
        assert top['mismatches'][0]['position'] == 0
        assert top['mismatches'][0]['sql']['income'] == 201
        assert len(top['mismatches']) <= MAX_REPORTED_MISMATCHES
        assert summary['customers_by_age']['matches'] is True

    @pytest.mark.asyncio
    async def test_undated_sales_on_both_sides_match(self, mock_connection) -> None:
        dataset = make_dataset(sales=SALES + [(12, 1, 1, 1, 1, None)])
        mock_connection.fetch.side_effect = sql_fetcher(dataset, undated_sales=[12])

        summary = await reconcile_reports(mock_connection, dataset, reports=['revenue_by_weekday'])

        entry = summary['revenue_by_weekday']
        assert entry['matches'] is True
        assert entry['sql_rows'] == 0
        assert 'no sale_date' in entry['error']

    @pytest.mark.asyncio
    async def test_undated_sales_on_one_side_mismatch(
        self,
        mock_connection,
        sample_dataset: SalesDataset
    ) -> None:
        mock_connection.fetch.side_effect = sql_fetcher(sample_dataset, undated_sales=[12])

        summary = await reconcile_reports(
            mock_connection, sample_dataset, reports=['revenue_by_weekday']
        )

        assert summary['revenue_by_weekday']['matches'] is False

    @pytest.mark.asyncio
    async def test_loads_snapshot_when_no_dataset(
        self,
        mock_connection,
        sample_dataset: SalesDataset
    ) -> None:
        mock_connection.fetch.side_effect = sql_fetcher(sample_dataset, tables=make_tables())

        summary = await reconcile_reports(mock_connection)

        mock_connection.transaction.assert_called_once()
        assert all(entry['matches'] for entry in summary.values())

    @pytest.mark.asyncio
    async def test_snapshot_and_sql_share_one_transaction(
        self,
        mock_connection,
        sample_dataset: SalesDataset
    ) -> None:
        transaction = TrackingTransaction()
        mock_connection.transaction.return_value = transaction
        serve = sql_fetcher(sample_dataset, tables=make_tables())
        queries: List[str] = []

        async def _fetch(query: str, *args: Any) -> List[Dict[str, Any]]:
            assert transaction.active, "query ran outside the reconciliation transaction"
            queries.append(query)
            return await serve(query, *args)

        mock_connection.fetch.side_effect = _fetch

        summary = await reconcile_reports(mock_connection)

        mock_connection.transaction.assert_called_once_with(
            isolation='repeatable_read', readonly=True
        )
        assert transaction.entered == 1
        assert not transaction.active
        # Four snapshot reads, six reports and the undated sales check
        assert len(queries) == len(TABLES) + len(ReportName) + 1
        assert all(entry['matches'] for entry in summary.values())

    @pytest.mark.asyncio
    async def test_given_dataset_still_runs_sql_in_transaction(
        self,
        mock_connection,
        sample_dataset: SalesDataset
    ) -> None:
        transaction = TrackingTransaction()
        mock_connection.transaction.return_value = transaction
        serve = sql_fetcher(sample_dataset)

        async def _fetch(query: str, *args: Any) -> List[Dict[str, Any]]:
            assert transaction.active
            return await serve(query, *args)

        mock_connection.fetch.side_effect = _fetch

        await reconcile_reports(mock_connection, sample_dataset, reports=['top_sellers'])

        assert transaction.entered == 1
        assert mock_connection.fetch.await_count == 1
