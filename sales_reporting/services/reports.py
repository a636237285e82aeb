"""
Dataframe reporting engine for the six sales reports.

Each report function takes a SalesDataset snapshot and returns a DataFrame
with exactly the columns of the matching SQL report (see REPORT_COLUMNS), in
the same row order. The functions are pure: they never mutate the dataset.

Arithmetic rules:
- revenue of a sale = price * quantity, computed with decimal.Decimal
- income = floor of the exact revenue sum
- average_income = floor of the exact revenue sum divided by the sale count
- the below-average threshold is the mean of the floored per-seller averages,
  compared exactly (average * n < sum of averages)

Join rules:
- sales are inner-joined to employees, products and customers as each report
  requires; rows referencing a missing entity are dropped and logged
- sellers and customers are grouped by identifier; the "first last" display
  name is projected afterwards

Key Functions:
- top_sellers: Top sellers by income
- below_average_sellers: Sellers below the mean of per-seller averages
- revenue_by_weekday: Income per seller and weekday
- customers_by_age: Customer counts per age bracket
- monthly_customers_income: Distinct customers and income per month
- promotional_first_purchases: Customers whose first purchase had zero revenue
- compute_report / compute_reports: Dispatch by ReportName
"""

import logging
import math
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from sales_reporting.core.exceptions import DataQualityError, UnknownReportError
from sales_reporting.models.enums import AgeCategory, ReportName, Weekday
from sales_reporting.services.dataset import SalesDataset
from sales_reporting.sql.report_queries import AGE_BRACKETS, AGE_OPEN_BRACKET_FLOOR


logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

REPORT_COLUMNS: Dict[ReportName, List[str]] = {
    ReportName.TOP_SELLERS: ['seller', 'operations', 'income'],
    ReportName.BELOW_AVERAGE_SELLERS: ['seller', 'average_income'],
    ReportName.REVENUE_BY_WEEKDAY: ['seller', 'day_of_week', 'income'],
    ReportName.CUSTOMERS_BY_AGE: ['age_category', 'age_count'],
    ReportName.MONTHLY_CUSTOMERS_INCOME: ['selling_month', 'total_customers', 'income'],
    ReportName.PROMOTIONAL_FIRST_PURCHASES: ['customer', 'sale_date', 'seller'],
}

DEFAULT_TOP_SELLERS_LIMIT = 10

# Stable sort keeps equal keys in their incoming order
SORT_KIND = 'mergesort'


# =============================================================================
# HELPERS
# =============================================================================


def _empty_report(report: ReportName) -> pd.DataFrame:
    return pd.DataFrame(columns=REPORT_COLUMNS[report])


def _full_name(df: pd.DataFrame) -> pd.Series:
    return df['first_name'] + ' ' + df['last_name']


def _decimal_sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, Decimal(0))


def _floor_to_int(value: Decimal) -> int:
    return int(math.floor(value))


def _seller_names(dataset: SalesDataset) -> pd.DataFrame:
    employees = dataset.employees
    return pd.DataFrame({
        'employee_id': employees['employee_id'],
        'seller': _full_name(employees),
    })


def _customer_names(dataset: SalesDataset) -> pd.DataFrame:
    customers = dataset.customers
    return pd.DataFrame({
        'customer_id': customers['customer_id'],
        'customer': _full_name(customers),
    })


def _with_revenue(df: pd.DataFrame) -> pd.DataFrame:
    """Attach the exact price * quantity revenue of each sale row."""
    df = df.copy()
    df['revenue'] = pd.Series(
        [price * int(quantity) for price, quantity in zip(df['price'], df['quantity'])],
        index=df.index,
        dtype=object,
    )
    return df


def _log_dropped(report: ReportName, before: int, after: int, joined_with: str) -> None:
    dropped = before - after
    if dropped > 0:
        logger.warning(
            f"{report.value}: dropped {dropped} sale(s) referencing missing {joined_with}"
        )


def _join_products(
    sales: pd.DataFrame,
    dataset: SalesDataset,
    report: ReportName
) -> pd.DataFrame:
    joined = sales.merge(dataset.products[['product_id', 'price']], on='product_id', how='inner')
    _log_dropped(report, len(sales), len(joined), 'products')
    return joined


def _join_sellers(
    sales: pd.DataFrame,
    dataset: SalesDataset,
    report: ReportName
) -> pd.DataFrame:
    joined = sales.merge(
        _seller_names(dataset),
        left_on='sales_person_id',
        right_on='employee_id',
        how='inner',
    )
    _log_dropped(report, len(sales), len(joined), 'employees')
    return joined


def _seller_sales(dataset: SalesDataset, report: ReportName) -> pd.DataFrame:
    """Sales joined to their seller and product, with revenue attached."""
    joined = _join_sellers(dataset.sales, dataset, report)
    joined = _join_products(joined, dataset, report)
    return _with_revenue(joined)


def _seller_totals(joined: pd.DataFrame) -> pd.DataFrame:
    """Per-seller sale count and exact revenue sum."""
    return (
        joined.groupby(['employee_id', 'seller'], sort=False)
        .agg(operations=('sales_id', 'count'), revenue=('revenue', _decimal_sum))
        .reset_index()
    )


# =============================================================================
# REPORT 1: TOP SELLERS BY INCOME
# =============================================================================


def top_sellers(
    dataset: SalesDataset,
    limit: int = DEFAULT_TOP_SELLERS_LIMIT
) -> pd.DataFrame:
    """
    Top sellers by total income.

    Per seller: operations = number of sales, income = floor(sum(price * quantity)).
    Sorted by income descending; ties by seller name, then employee id.

    Args:
        dataset: Sales snapshot.
        limit: Maximum number of rows returned.

    Returns:
        DataFrame with columns seller, operations, income.
    """
    report = ReportName.TOP_SELLERS
    joined = _seller_sales(dataset, report)
    if joined.empty:
        return _empty_report(report)

    totals = _seller_totals(joined)
    totals['income'] = totals['revenue'].map(_floor_to_int).astype('int64')
    totals['operations'] = totals['operations'].astype('int64')

    ranked = totals.sort_values(
        ['income', 'seller', 'employee_id'],
        ascending=[False, True, True],
        kind=SORT_KIND,
    )
    return ranked.head(limit)[REPORT_COLUMNS[report]].reset_index(drop=True)


# =============================================================================
# REPORT 2: SELLERS BELOW AVERAGE REVENUE PER DEAL
# =============================================================================


def seller_average_incomes(dataset: SalesDataset) -> pd.DataFrame:
    """
    Floored average revenue per sale for every seller with at least one sale.

    Returns:
        DataFrame with columns employee_id, seller, average_income.
    """
    joined = _seller_sales(dataset, ReportName.BELOW_AVERAGE_SELLERS)
    if joined.empty:
        return pd.DataFrame(columns=['employee_id', 'seller', 'average_income'])

    totals = _seller_totals(joined)
    # Revenue is never negative, so integer division equals floor
    totals['average_income'] = [
        int(revenue // int(operations))
        for revenue, operations in zip(totals['revenue'], totals['operations'])
    ]
    totals['average_income'] = totals['average_income'].astype('int64')
    return totals[['employee_id', 'seller', 'average_income']]


def below_average_sellers(dataset: SalesDataset) -> pd.DataFrame:
    """
    Sellers whose floored average deal is below the mean of all sellers' averages.

    The threshold is a mean of means: each seller contributes one floored
    average regardless of how many sales they made.

    Args:
        dataset: Sales snapshot.

    Returns:
        DataFrame with columns seller, average_income, ascending by average_income.
    """
    report = ReportName.BELOW_AVERAGE_SELLERS
    averages = seller_average_incomes(dataset)
    if averages.empty:
        return _empty_report(report)

    seller_count = len(averages)
    averages_total = int(averages['average_income'].sum())
    # average < averages_total / seller_count, compared without division
    below = averages[averages['average_income'] * seller_count < averages_total]

    below = below.sort_values(
        ['average_income', 'seller', 'employee_id'],
        ascending=[True, True, True],
        kind=SORT_KIND,
    )
    return below[REPORT_COLUMNS[report]].reset_index(drop=True)


# =============================================================================
# REPORT 3: REVENUE BY DAY OF WEEK
# =============================================================================


def revenue_by_weekday(dataset: SalesDataset) -> pd.DataFrame:
    """
    Income per seller and day of week.

    day_of_week is the lower-case English weekday name. Rows are ordered by
    ISO weekday (Monday first), then seller name.

    Args:
        dataset: Sales snapshot.

    Returns:
        DataFrame with columns seller, day_of_week, income.

    Raises:
        DataQualityError: If a joinable sale has no sale_date.
    """
    report = ReportName.REVENUE_BY_WEEKDAY
    joined = _seller_sales(dataset, report)

    undated = joined.loc[joined['sale_date'].isna(), 'sales_id']
    if not undated.empty:
        sales_ids = sorted(int(sales_id) for sales_id in undated)
        raise DataQualityError(
            report.value,
            f"{len(sales_ids)} sale(s) have no sale_date and cannot be placed on a weekday: "
            f"{sales_ids[:10]}",
            sales_ids,
        )

    if joined.empty:
        return _empty_report(report)

    joined['isodow'] = joined['sale_date'].dt.dayofweek + 1
    joined['day_of_week'] = joined['isodow'].map(lambda isodow: Weekday.from_isodow(isodow).value)

    grouped = (
        joined.groupby(['employee_id', 'seller', 'isodow', 'day_of_week'], sort=False)
        .agg(revenue=('revenue', _decimal_sum))
        .reset_index()
    )
    grouped['income'] = grouped['revenue'].map(_floor_to_int).astype('int64')

    grouped = grouped.sort_values(
        ['isodow', 'seller', 'employee_id'],
        ascending=[True, True, True],
        kind=SORT_KIND,
    )
    return grouped[REPORT_COLUMNS[report]].reset_index(drop=True)


# =============================================================================
# REPORT 4: CUSTOMERS BY AGE GROUP
# =============================================================================


def classify_ages(ages: pd.Series) -> pd.Series:
    """
    Map ages to AgeCategory values.

    16-25 and 26-40 are inclusive; 40+ is strictly above 40. Anything else,
    including unknown ages, is 'unclassified'.

    Args:
        ages: Numeric ages, NaN for unknown.

    Returns:
        Series of AgeCategory string values aligned with ages.
    """
    conditions = [ages.between(low, high) for low, high in AGE_BRACKETS.values()]
    choices = [category.value for category in AGE_BRACKETS]
    conditions.append(ages > AGE_OPEN_BRACKET_FLOOR)
    choices.append(AgeCategory.AGE_40_PLUS.value)

    return pd.Series(
        np.select(conditions, choices, default=AgeCategory.UNCLASSIFIED.value),
        index=ages.index,
        dtype=object,
    )


def customers_by_age(dataset: SalesDataset) -> pd.DataFrame:
    """
    Number of customers per age bracket.

    Brackets without customers are omitted. Order: 16-25, 26-40, 40+,
    unclassified.

    Args:
        dataset: Sales snapshot.

    Returns:
        DataFrame with columns age_category, age_count.
    """
    report = ReportName.CUSTOMERS_BY_AGE
    if dataset.customers.empty:
        return _empty_report(report)

    categories = classify_ages(dataset.customers['age'])
    counts = categories.value_counts()

    rows = [
        {'age_category': category.value, 'age_count': int(counts[category.value])}
        for category in sorted(AgeCategory, key=lambda category: category.rank)
        if category.value in counts.index
    ]
    result = pd.DataFrame(rows, columns=REPORT_COLUMNS[report])
    result['age_count'] = result['age_count'].astype('int64')
    return result


# =============================================================================
# REPORT 5: UNIQUE CUSTOMERS AND INCOME BY MONTH
# =============================================================================


def monthly_customers_income(dataset: SalesDataset) -> pd.DataFrame:
    """
    Distinct customers and income per calendar month.

    Undated sales are excluded; only the product join is required.

    Args:
        dataset: Sales snapshot.

    Returns:
        DataFrame with columns selling_month (YYYY-MM), total_customers, income.
    """
    report = ReportName.MONTHLY_CUSTOMERS_INCOME
    dated = dataset.sales[dataset.sales['sale_date'].notna()]
    joined = _with_revenue(_join_products(dated, dataset, report))
    if joined.empty:
        return _empty_report(report)

    joined['selling_month'] = joined['sale_date'].dt.strftime('%Y-%m')

    grouped = (
        joined.groupby('selling_month', sort=True)
        .agg(
            total_customers=('customer_id', 'nunique'),
            revenue=('revenue', _decimal_sum),
        )
        .reset_index()
    )
    grouped['total_customers'] = grouped['total_customers'].astype('int64')
    grouped['income'] = grouped['revenue'].map(_floor_to_int).astype('int64')
    return grouped[REPORT_COLUMNS[report]].reset_index(drop=True)


# =============================================================================
# REPORT 6: CUSTOMERS WHOSE FIRST PURCHASE WAS PROMOTIONAL
# =============================================================================


def first_purchase_dates(dataset: SalesDataset) -> pd.DataFrame:
    """
    Earliest sale_date per customer over all of their sales.

    Undated sales are ignored; customers with only undated sales have no
    first purchase.

    Returns:
        DataFrame with columns customer_id, first_sale_date.
    """
    dated = dataset.sales[dataset.sales['sale_date'].notna()]
    return (
        dated.groupby('customer_id', sort=True)['sale_date']
        .min()
        .rename('first_sale_date')
        .reset_index()
    )


def promotional_first_purchases(dataset: SalesDataset) -> pd.DataFrame:
    """
    Customers whose first purchase had zero revenue.

    Every sale on a customer's first purchase date is considered, so a
    customer with several sales that day can appear several times.

    Args:
        dataset: Sales snapshot.

    Returns:
        DataFrame with columns customer, sale_date, seller, ordered by
        customer id.
    """
    report = ReportName.PROMOTIONAL_FIRST_PURCHASES
    first_dates = first_purchase_dates(dataset)

    first_sales = dataset.sales.merge(
        first_dates,
        left_on=['customer_id', 'sale_date'],
        right_on=['customer_id', 'first_sale_date'],
        how='inner',
    )
    joined = _join_products(first_sales, dataset, report)
    before = len(joined)
    joined = joined.merge(_customer_names(dataset), on='customer_id', how='inner')
    _log_dropped(report, before, len(joined), 'customers')
    joined = _with_revenue(_join_sellers(joined, dataset, report))

    promotional = joined[joined['revenue'].map(lambda revenue: revenue == 0).astype(bool)]
    if promotional.empty:
        return _empty_report(report)

    promotional = promotional.sort_values(
        ['customer_id', 'sales_id'],
        ascending=[True, True],
        kind=SORT_KIND,
    ).copy()
    promotional['sale_date'] = promotional['sale_date'].dt.date
    return promotional[REPORT_COLUMNS[report]].reset_index(drop=True)


# =============================================================================
# DISPATCH
# =============================================================================


REPORT_FUNCTIONS: Dict[ReportName, Callable[[SalesDataset], pd.DataFrame]] = {
    ReportName.TOP_SELLERS: top_sellers,
    ReportName.BELOW_AVERAGE_SELLERS: below_average_sellers,
    ReportName.REVENUE_BY_WEEKDAY: revenue_by_weekday,
    ReportName.CUSTOMERS_BY_AGE: customers_by_age,
    ReportName.MONTHLY_CUSTOMERS_INCOME: monthly_customers_income,
    ReportName.PROMOTIONAL_FIRST_PURCHASES: promotional_first_purchases,
}


def resolve_report(report: str) -> ReportName:
    """
    Convert a report name (or ReportName) into a ReportName.

    Raises:
        UnknownReportError: If the name matches no report.
    """
    try:
        return ReportName(report)
    except ValueError:
        raise UnknownReportError(f"Unknown report '{report}'")


def compute_report(
    report: str,
    dataset: SalesDataset,
    top_sellers_limit: int = DEFAULT_TOP_SELLERS_LIMIT
) -> pd.DataFrame:
    """
    Compute one report by name over a dataset.

    Args:
        report: Report name.
        dataset: Sales snapshot.
        top_sellers_limit: Row limit applied to the top sellers report only.

    Returns:
        The report DataFrame.
    """
    name = resolve_report(report)
    if name == ReportName.TOP_SELLERS:
        result = top_sellers(dataset, limit=top_sellers_limit)
    else:
        result = REPORT_FUNCTIONS[name](dataset)

    logger.info(f"Computed {name.value}: {len(result)} row(s)")
    return result


def compute_reports(
    dataset: SalesDataset,
    reports: Optional[Iterable[str]] = None,
    top_sellers_limit: int = DEFAULT_TOP_SELLERS_LIMIT
) -> Dict[ReportName, pd.DataFrame]:
    """
    Compute several reports over the same dataset.

    Args:
        dataset: Sales snapshot.
        reports: Report names; every report when None.
        top_sellers_limit: Row limit for the top sellers report.

    Returns:
        Mapping of ReportName to report DataFrame, in request order.
    """
    names = [resolve_report(report) for report in reports] if reports else list(ReportName)
    return {
        name: compute_report(name, dataset, top_sellers_limit=top_sellers_limit)
        for name in names
    }
