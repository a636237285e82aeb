"""
Parameterized SQL query module for the six sales reports.

Each function returns a PostgreSQL query string for asyncpg ($1-style
placeholders). The queries group sellers and customers by their identifier and
project the "first last" display name afterwards, so two employees sharing a
full name are reported separately.

Monetary columns are computed on the exact `price * quantity` product and
floored before being cast to bigint:
    - income = FLOOR(SUM(price * quantity))
    - average_income = FLOOR(AVG(price * quantity))

Ordering always ends with the underlying identifier so results are
deterministic when incomes or names tie.
"""

from typing import Callable, Dict

from sales_reporting.models.enums import AgeCategory, ReportName


# Age bracket bounds (inclusive) used by the customers-by-age report
AGE_BRACKETS: Dict[AgeCategory, tuple] = {
    AgeCategory.AGE_16_25: (16, 25),
    AgeCategory.AGE_26_40: (26, 40),
}

# Customers strictly older than this fall into the 40+ bracket
AGE_OPEN_BRACKET_FLOOR = 40

# Display names trim surrounding spaces, matching the dataset loader
SELLER_NAME_SQL = "CONCAT(TRIM(e.first_name), ' ', TRIM(e.last_name))"
CUSTOMER_NAME_SQL = "CONCAT(TRIM(c.first_name), ' ', TRIM(c.last_name))"
REVENUE_SQL = "p.price * s.quantity"

SALES_JOINS_SQL = """
    FROM sales s
    JOIN employees e ON s.sales_person_id = e.employee_id
    JOIN products p ON s.product_id = p.product_id"""


def get_top_sellers_query() -> str:
    """
    Generate SQL for the top sellers by income report.

    Parameters:
        $1: Maximum number of sellers to return.

    Returns:
        str: Query producing columns seller, operations, income.

    Example:
        >>> rows = await conn.fetch(get_top_sellers_query(), 10)
    """
    return f"""
    -- Top sellers by total income
    SELECT
        {SELLER_NAME_SQL} AS seller,
        COUNT(s.sales_id) AS operations,
        FLOOR(SUM({REVENUE_SQL}))::bigint AS income
    {SALES_JOINS_SQL}
    GROUP BY e.employee_id, e.first_name, e.last_name
    ORDER BY income DESC, seller ASC, e.employee_id ASC
    LIMIT $1
    """


def get_below_average_sellers_query() -> str:
    """
    Generate SQL for sellers below the average revenue per deal.

    Two-stage aggregation:
    1. seller_avg: per seller FLOOR(AVG(price * quantity))
    2. overall_avg: AVG over the floored per-seller averages (mean of means)

    Sellers with average_income strictly below avg_all are returned, lowest
    first.

    Returns:
        str: Query producing columns seller, average_income.
    """
    return f"""
    -- Sellers whose average deal is below the mean of all sellers' averages
    WITH seller_avg AS (
        SELECT
            e.employee_id,
            {SELLER_NAME_SQL} AS seller,
            FLOOR(AVG({REVENUE_SQL}))::bigint AS average_income
        {SALES_JOINS_SQL}
        GROUP BY e.employee_id, e.first_name, e.last_name
    ),
    overall_avg AS (
        SELECT AVG(average_income) AS avg_all FROM seller_avg
    )
    SELECT
        sa.seller,
        sa.average_income
    FROM seller_avg sa
    CROSS JOIN overall_avg oa
    WHERE sa.average_income < oa.avg_all
    ORDER BY sa.average_income ASC, sa.seller ASC, sa.employee_id ASC
    """


def get_revenue_by_weekday_query() -> str:
    """
    Generate SQL for income per seller and day of week.

    The weekday name comes from TO_CHAR(sale_date, 'day'), which pads names
    to nine characters; TRIM removes the padding. Rows are ordered by ISO
    weekday (Monday=1 ... Sunday=7) and then by seller.

    Sales without a sale_date must be rejected beforehand with
    get_undated_sales_query().

    Returns:
        str: Query producing columns seller, day_of_week, income.
    """
    return f"""
    -- Income per seller and weekday
    SELECT
        {SELLER_NAME_SQL} AS seller,
        TRIM(TO_CHAR(s.sale_date, 'day')) AS day_of_week,
        FLOOR(SUM({REVENUE_SQL}))::bigint AS income
    {SALES_JOINS_SQL}
    GROUP BY
        e.employee_id,
        e.first_name,
        e.last_name,
        TRIM(TO_CHAR(s.sale_date, 'day')),
        EXTRACT(ISODOW FROM s.sale_date)
    ORDER BY EXTRACT(ISODOW FROM s.sale_date), seller, e.employee_id
    """


def get_undated_sales_query() -> str:
    """
    Generate SQL listing joinable sales that have no sale_date.

    The weekday report cannot place these sales on a day, so the service
    raises a data quality error when this query returns any rows.

    Returns:
        str: Query producing column sales_id.
    """
    return f"""
    SELECT s.sales_id
    {SALES_JOINS_SQL}
    WHERE s.sale_date IS NULL
    ORDER BY s.sales_id
    """


def _age_category_case_sql(column: str) -> str:
    """Build the CASE expression mapping an age column to AgeCategory values."""
    branches = [
        f"WHEN {column} BETWEEN {low} AND {high} THEN '{category.value}'"
        for category, (low, high) in AGE_BRACKETS.items()
    ]
    branches.append(
        f"WHEN {column} > {AGE_OPEN_BRACKET_FLOOR} THEN '{AgeCategory.AGE_40_PLUS.value}'"
    )
    branches.append(f"ELSE '{AgeCategory.UNCLASSIFIED.value}'")
    return "CASE\n                " + "\n                ".join(branches) + "\n            END"


def _age_category_rank_sql(column: str) -> str:
    """Build the CASE expression ordering age categories naturally."""
    branches = [
        f"WHEN '{category.value}' THEN {category.rank}"
        for category in AgeCategory
    ]
    return f"CASE {column} " + " ".join(branches) + " END"


def get_customers_by_age_query() -> str:
    """
    Generate SQL counting customers per age bracket.

    Brackets are 16-25 and 26-40 (inclusive) and 40+ (over 40). Customers
    younger than 16 or with unknown age are counted as 'unclassified'
    instead of being dropped. Ordering follows the bracket rank, not the
    alphabet.

    Returns:
        str: Query producing columns age_category, age_count.
    """
    return f"""
    -- Customers per age bracket
    WITH age_groups AS (
        SELECT
            {_age_category_case_sql('c.age')} AS age_category
        FROM customers c
    )
    SELECT
        age_category,
        COUNT(*) AS age_count
    FROM age_groups
    GROUP BY age_category
    ORDER BY {_age_category_rank_sql('age_category')}
    """


def get_monthly_customers_income_query() -> str:
    """
    Generate SQL for unique customers and income per month.

    Only sales and products are joined; undated sales are excluded. The
    YYYY-MM month string sorts chronologically.

    Returns:
        str: Query producing columns selling_month, total_customers, income.
    """
    return f"""
    -- Unique customers and income per calendar month
    SELECT
        TO_CHAR(s.sale_date, 'YYYY-MM') AS selling_month,
        COUNT(DISTINCT s.customer_id) AS total_customers,
        FLOOR(SUM({REVENUE_SQL}))::bigint AS income
    FROM sales s
    JOIN products p ON s.product_id = p.product_id
    WHERE s.sale_date IS NOT NULL
    GROUP BY TO_CHAR(s.sale_date, 'YYYY-MM')
    ORDER BY selling_month
    """


def get_promotional_first_purchases_query() -> str:
    """
    Generate SQL for customers whose first purchase had zero revenue.

    first_purchase finds each customer's earliest sale_date; every sale of
    that customer on that date is joined back, so ties on the first day
    produce one row each.

    Returns:
        str: Query producing columns customer, sale_date, seller.
    """
    return f"""
    -- Customers whose first purchase was promotional
    WITH first_purchase AS (
        SELECT
            customer_id,
            MIN(sale_date) AS first_sale_date
        FROM sales
        GROUP BY customer_id
    )
    SELECT
        {CUSTOMER_NAME_SQL} AS customer,
        s.sale_date,
        {SELLER_NAME_SQL} AS seller
    FROM first_purchase fp
    JOIN sales s
        ON s.customer_id = fp.customer_id
       AND s.sale_date = fp.first_sale_date
    JOIN products p ON s.product_id = p.product_id
    JOIN customers c ON s.customer_id = c.customer_id
    JOIN employees e ON s.sales_person_id = e.employee_id
    WHERE ({REVENUE_SQL}) = 0
    ORDER BY s.customer_id, s.sales_id
    """


REPORT_QUERY_BUILDERS: Dict[ReportName, Callable[[], str]] = {
    ReportName.TOP_SELLERS: get_top_sellers_query,
    ReportName.BELOW_AVERAGE_SELLERS: get_below_average_sellers_query,
    ReportName.REVENUE_BY_WEEKDAY: get_revenue_by_weekday_query,
    ReportName.CUSTOMERS_BY_AGE: get_customers_by_age_query,
    ReportName.MONTHLY_CUSTOMERS_INCOME: get_monthly_customers_income_query,
    ReportName.PROMOTIONAL_FIRST_PURCHASES: get_promotional_first_purchases_query,
}


def get_report_query(report: ReportName) -> str:
    """
    Return the SQL for a report by name.

    Args:
        report: Report identifier.

    Returns:
        str: PostgreSQL query. Only TOP_SELLERS takes a parameter ($1 limit).
    """
    return REPORT_QUERY_BUILDERS[ReportName(report)]()
