"""
Snapshot extraction queries for the sales schema.

These SELECT statements read the four source tables in full so the dataframe
reports can run over the same snapshot the SQL reports see. Column lists are
shared with the CSV loader through TABLE_COLUMNS.
"""

from typing import Dict, List


CUSTOMERS_TABLE = "customers"
EMPLOYEES_TABLE = "employees"
PRODUCTS_TABLE = "products"
SALES_TABLE = "sales"

# Required columns per table, in select order
TABLE_COLUMNS: Dict[str, List[str]] = {
    CUSTOMERS_TABLE: ['customer_id', 'first_name', 'last_name', 'age'],
    EMPLOYEES_TABLE: ['employee_id', 'first_name', 'last_name'],
    PRODUCTS_TABLE: ['product_id', 'price'],
    SALES_TABLE: [
        'sales_id',
        'customer_id',
        'sales_person_id',
        'product_id',
        'quantity',
        'sale_date',
    ],
}

# Primary key per table
TABLE_KEYS: Dict[str, str] = {
    CUSTOMERS_TABLE: 'customer_id',
    EMPLOYEES_TABLE: 'employee_id',
    PRODUCTS_TABLE: 'product_id',
    SALES_TABLE: 'sales_id',
}


def get_table_snapshot_query(table: str) -> str:
    """
    Generate SQL selecting the required columns of a source table.

    Args:
        table: One of customers, employees, products, sales.

    Returns:
        str: Query ordered by the table's primary key.

    Raises:
        KeyError: If the table is not part of the sales schema.
    """
    columns = ', '.join(TABLE_COLUMNS[table])
    return f"SELECT {columns} FROM {table} ORDER BY {TABLE_KEYS[table]}"
