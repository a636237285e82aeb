'''
Sales Reporting Test Suite

Test Modules:
-------------
- test_dataset.py: Dataset loading and validation
  - Required columns per table, case-insensitive headers
  - Integer (finite, int64 range), decimal (finite), age and date checks
  - Primary key uniqueness
  - CSV, database snapshot and payload sources

- test_reports.py: Dataframe reports over a hand-checked dataset
  - Flooring of income and averages on exact decimals
  - Mean-of-means threshold for below-average sellers
  - Weekday ordering and undated sale rejection
  - Age brackets including the unclassified bucket
  - First purchase ties and promotional detection

- test_sql_queries.py: SQL text of the six reports and snapshot queries

- test_reporting.py: SQL execution, row validation and SQL/dataframe
  reconciliation against mocked connections

- test_api.py: FastAPI endpoints and error mapping

- test_jobs.py: Report export idempotency

- test_cli.py: Typer commands

- test_integration.py: Live PostgreSQL queries and reconciliation
  (marker: integration; needs TEST_DATABASE_URL)

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v
    TEST_DATABASE_URL=postgresql://localhost/sales pytest -m integration

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

__all__ = []
