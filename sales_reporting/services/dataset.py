"""
Dataset loading and validation service for the sales reporting engine.

A SalesDataset is a read-only snapshot of the four source tables held as
pandas DataFrames. Snapshots can be built from:
- a directory of CSV files (customers.csv, employees.csv, products.csv, sales.csv)
- the PostgreSQL database through an asyncpg connection
- an inline API payload (DatasetPayload)

Every source goes through the same steps:
1. Validate required columns per table
2. Validate data types (integer ids and quantities, decimal prices,
   optional ages and sale dates)
3. Validate primary key uniqueness
4. Normalize dtypes

Normalized dtypes:
- identifier and quantity columns: int64
- price: decimal.Decimal objects, so revenue sums are exact
- age: float64 with NaN for unknown ages
- sale_date: datetime64[ns] with NaT for missing dates

Validation problems are collected as ValidationError models and raised
together as a DatasetValidationError.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import asyncpg
import numpy as np
import pandas as pd

from sales_reporting.core.database import fetch_dataframe
from sales_reporting.core.exceptions import DatasetValidationError
from sales_reporting.models import DataSource, DatasetPayload, ValidationError
from sales_reporting.sql.dataset_queries import (
    CUSTOMERS_TABLE,
    EMPLOYEES_TABLE,
    PRODUCTS_TABLE,
    SALES_TABLE,
    TABLE_COLUMNS,
    TABLE_KEYS,
    get_table_snapshot_query,
)


logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

TABLES: List[str] = [CUSTOMERS_TABLE, EMPLOYEES_TABLE, PRODUCTS_TABLE, SALES_TABLE]

# Columns that must hold non-null integers
INTEGER_COLUMNS: Dict[str, List[str]] = {
    CUSTOMERS_TABLE: ['customer_id'],
    EMPLOYEES_TABLE: ['employee_id'],
    PRODUCTS_TABLE: ['product_id'],
    SALES_TABLE: ['sales_id', 'customer_id', 'sales_person_id', 'product_id', 'quantity'],
}

NAME_COLUMNS = ['first_name', 'last_name']

# Integer columns are stored as int64; larger magnitudes do not fit
INT64_BOUND = 2.0 ** 63

# Number of offending row indices quoted in a validation message
MAX_REPORTED_ROWS = 5


# =============================================================================
# DATASET
# =============================================================================


@dataclass(frozen=True, eq=False)
class SalesDataset:
    """
    Immutable snapshot of the sales schema.

    Attributes:
        customers: customer_id, first_name, last_name, age
        employees: employee_id, first_name, last_name
        products: product_id, price
        sales: sales_id, customer_id, sales_person_id, product_id, quantity, sale_date
        source: Where the snapshot was loaded from.
    """
    customers: pd.DataFrame
    employees: pd.DataFrame
    products: pd.DataFrame
    sales: pd.DataFrame
    source: DataSource = DataSource.PAYLOAD

    def table(self, name: str) -> pd.DataFrame:
        """Return a table by its schema name."""
        return getattr(self, name)

    @property
    def row_counts(self) -> Dict[str, int]:
        return {name: len(self.table(name)) for name in TABLES}


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================


def _row_number(indices: List[Any]) -> Optional[int]:
    # Convert 0-based DataFrame position to 1-based row number
    return (int(indices[0]) + 1) if indices else None


def _error_for_mask(
    df: pd.DataFrame,
    mask: pd.Series,
    table: str,
    column: str,
    problem: str
) -> Optional[ValidationError]:
    """Build a ValidationError for the rows flagged by mask, or None."""
    invalid_count = int(mask.sum())
    if invalid_count == 0:
        return None

    positions = np.flatnonzero(mask.to_numpy()).tolist()[:MAX_REPORTED_ROWS]
    return ValidationError(
        field=f"{table}.{column}",
        message=(
            f"Found {invalid_count} {problem} in column '{column}'. "
            f"First invalid rows at positions: {positions}"
        ),
        row_number=_row_number(positions),
    )


def _is_decimal(value: Any) -> bool:
    # Infinity and NaN parse as Decimal but cannot be priced
    try:
        return Decimal(str(value)).is_finite()
    except (InvalidOperation, ValueError):
        return False


def validate_columns(df: pd.DataFrame, table: str) -> List[ValidationError]:
    """
    Validate that a table has all of its required columns.

    Column names are compared case-insensitively after stripping whitespace.

    Args:
        df: Raw table DataFrame.
        table: Schema table name.

    Returns:
        List of ValidationError objects, one per missing column.
    """
    present = {str(column).lower().strip() for column in df.columns}
    return [
        ValidationError(
            field=f"{table}.{column}",
            message=f"Missing required column '{column}' in table '{table}'",
        )
        for column in TABLE_COLUMNS[table]
        if column not in present
    ]


def validate_data_types(df: pd.DataFrame, table: str) -> List[ValidationError]:
    """
    Validate column contents for a table.

    Checks:
    - Identifier and quantity columns hold non-null, finite integers that
      fit in int64
    - Quantities are not negative
    - Prices are non-null, finite decimals and not negative
    - Ages, when present, are numeric
    - Sale dates, when present, parse as dates
    - Names are not null

    Args:
        df: Table DataFrame with normalized (lower-case) column names.
        table: Schema table name.

    Returns:
        List of ValidationError objects for any type issues.
    """
    errors: List[ValidationError] = []
    candidates: List[Optional[ValidationError]] = []

    for column in INTEGER_COLUMNS[table]:
        numeric = pd.to_numeric(df[column], errors='coerce').astype('float64')
        non_integer = (
            ~np.isfinite(numeric)
            | (numeric != np.floor(numeric))
            | (numeric.abs() >= INT64_BOUND)
        )
        candidates.append(_error_for_mask(df, non_integer, table, column, "non-integer values"))
        if column == 'quantity':
            candidates.append(
                _error_for_mask(df, numeric < 0, table, column, "negative quantities")
            )

    if 'first_name' in TABLE_COLUMNS[table]:
        for column in NAME_COLUMNS:
            candidates.append(_error_for_mask(df, df[column].isna(), table, column, "missing names"))

    if table == PRODUCTS_TABLE:
        not_decimal = df['price'].isna() | ~df['price'].map(_is_decimal).astype(bool)
        candidates.append(_error_for_mask(df, not_decimal, table, 'price', "non-decimal prices"))
        numeric_price = pd.to_numeric(df['price'].where(~not_decimal), errors='coerce')
        candidates.append(
            _error_for_mask(df, numeric_price < 0, table, 'price', "negative prices")
        )

    if table == CUSTOMERS_TABLE:
        ages = pd.to_numeric(df['age'], errors='coerce')
        candidates.append(
            _error_for_mask(df, ages.isna() & df['age'].notna(), table, 'age', "non-numeric ages")
        )

    if table == SALES_TABLE:
        dates = pd.to_datetime(df['sale_date'], errors='coerce')
        candidates.append(
            _error_for_mask(
                df, dates.isna() & df['sale_date'].notna(), table, 'sale_date', "invalid dates"
            )
        )

    errors.extend(error for error in candidates if error is not None)
    return errors


def validate_unique_keys(df: pd.DataFrame, table: str) -> List[ValidationError]:
    """
    Validate that the primary key of a table is unique.

    Args:
        df: Table DataFrame with normalized column names.
        table: Schema table name.

    Returns:
        A single-element list when duplicates exist, otherwise empty.
    """
    key = TABLE_KEYS[table]
    duplicated = df[key].duplicated(keep='first')
    error = _error_for_mask(df, duplicated, table, key, "duplicate keys")
    return [error] if error is not None else []


# =============================================================================
# NORMALIZATION
# =============================================================================


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _normalize_column_names(df: pd.DataFrame) -> pd.DataFrame:
    df_normalized = df.copy()
    df_normalized.columns = [str(column).lower().strip() for column in df_normalized.columns]
    return df_normalized


def normalize_table(df: pd.DataFrame, table: str) -> pd.DataFrame:
    """
    Keep the required columns of a validated table and coerce their dtypes.

    Args:
        df: Validated table DataFrame with normalized column names.
        table: Schema table name.

    Returns:
        New DataFrame with a fresh RangeIndex.
    """
    normalized = df[TABLE_COLUMNS[table]].reset_index(drop=True).copy()

    for column in INTEGER_COLUMNS[table]:
        normalized[column] = pd.to_numeric(normalized[column]).astype('int64')

    if 'first_name' in normalized.columns:
        for column in NAME_COLUMNS:
            normalized[column] = normalized[column].astype(str).str.strip(' ')

    if table == PRODUCTS_TABLE:
        normalized['price'] = normalized['price'].map(_to_decimal).astype(object)

    if table == CUSTOMERS_TABLE:
        normalized['age'] = pd.to_numeric(normalized['age'], errors='coerce').astype('float64')

    if table == SALES_TABLE:
        normalized['sale_date'] = pd.to_datetime(normalized['sale_date']).dt.normalize()

    return normalized


# =============================================================================
# DATASET CONSTRUCTION
# =============================================================================


def build_dataset(
    tables: Dict[str, pd.DataFrame],
    source: DataSource = DataSource.PAYLOAD
) -> SalesDataset:
    """
    Validate and normalize raw tables into a SalesDataset.

    Args:
        tables: Mapping of schema table name to raw DataFrame.
        source: Where the tables came from.

    Returns:
        SalesDataset: The normalized snapshot.

    Raises:
        DatasetValidationError: If any table is missing or invalid.
    """
    errors: List[ValidationError] = []
    normalized: Dict[str, pd.DataFrame] = {}

    for table in TABLES:
        if table not in tables:
            errors.append(ValidationError(field=table, message=f"Missing table '{table}'"))
            continue

        df = _normalize_column_names(tables[table])

        column_errors = validate_columns(df, table)
        errors.extend(column_errors)
        # Type checks need every required column
        if column_errors:
            continue

        table_errors = validate_data_types(df, table)
        table_errors.extend(validate_unique_keys(df, table))
        errors.extend(table_errors)

        if not table_errors:
            normalized[table] = normalize_table(df, table)

    if errors:
        logger.warning(f"Dataset from {source.value} failed validation with {len(errors)} error(s)")
        raise DatasetValidationError(errors)

    dataset = SalesDataset(source=source, **normalized)
    logger.info(f"Loaded dataset from {source.value}: {dataset.row_counts}")
    return dataset


def load_dataset_from_csv(directory: Union[str, Path]) -> SalesDataset:
    """
    Load a dataset from a directory of CSV files.

    Expects customers.csv, employees.csv, products.csv and sales.csv. Cells are
    read as strings so prices keep their exact decimal text.

    Args:
        directory: Directory holding the four CSV files.

    Returns:
        SalesDataset: The normalized snapshot.

    Raises:
        DatasetValidationError: If a file is missing, unparsable or invalid.
    """
    base = Path(directory)
    tables: Dict[str, pd.DataFrame] = {}
    errors: List[ValidationError] = []

    for table in TABLES:
        path = base / f"{table}.csv"
        if not path.is_file():
            errors.append(ValidationError(field=table, message=f"CSV file not found: {path}"))
            continue
        try:
            tables[table] = pd.read_csv(path, dtype=str, skipinitialspace=True)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            errors.append(ValidationError(
                field=table,
                message=f"Failed to parse CSV file {path}: {str(e)}",
            ))
            continue
        logger.info(f"Parsed {path} with {len(tables[table])} rows")

    if errors:
        raise DatasetValidationError(errors)

    return build_dataset(tables, source=DataSource.CSV)


async def fetch_dataset_snapshot(conn: asyncpg.Connection) -> SalesDataset:
    """
    Read the four tables on a connection.

    No transaction is opened here. Call it inside a read-only
    repeatable-read transaction so the four tables, and any queries that
    follow in the same transaction, see one consistent snapshot.

    Args:
        conn: Connection acquired from the pool.

    Returns:
        SalesDataset: The normalized snapshot.
    """
    tables: Dict[str, pd.DataFrame] = {}
    for table in TABLES:
        tables[table] = await fetch_dataframe(
            conn, get_table_snapshot_query(table), TABLE_COLUMNS[table]
        )
    return build_dataset(tables, source=DataSource.DATABASE)


def dataset_from_payload(payload: DatasetPayload) -> SalesDataset:
    """
    Build a dataset from an inline API payload.

    Args:
        payload: Pydantic-validated entity rows.

    Returns:
        SalesDataset: The normalized snapshot.
    """
    tables = {
        table: pd.DataFrame(
            [row.model_dump() for row in getattr(payload, table)],
            columns=TABLE_COLUMNS[table],
        )
        for table in TABLES
    }
    return build_dataset(tables, source=DataSource.PAYLOAD)
