"""
Sales Reporting Package.

Read-only reporting layer over the sales/employees/products/customers schema.
Every report is available as a parameterized PostgreSQL query and as a pandas
computation over an in-memory dataset snapshot; both must agree.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, and dependencies
    - models: Pydantic schemas and enums
    - services: Dataset loading, dataframe reports, SQL execution
    - jobs: Report export automation
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
