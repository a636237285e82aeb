"""
Exception types raised by the sales reporting services.

The API layer maps these onto HTTP status codes; jobs record them in their
result summaries.
"""

from typing import List, Sequence


class ReportingError(Exception):
    """Base class for all reporting failures."""


class DatasetValidationError(ReportingError):
    """
    A dataset snapshot failed column or type validation.

    Attributes:
        errors: ValidationError models describing each problem.
    """

    def __init__(self, errors: Sequence) -> None:
        self.errors: List = list(errors)
        summary = "; ".join(f"{error.field}: {error.message}" for error in self.errors[:5])
        super().__init__(f"Dataset validation failed with {len(self.errors)} error(s): {summary}")


class DataQualityError(ReportingError):
    """
    The data violates a precondition of a report.

    Attributes:
        report: Name of the report that could not be computed.
        sales_ids: Identifiers of the offending sales.
    """

    def __init__(self, report: str, message: str, sales_ids: Sequence[int] = ()) -> None:
        self.report = report
        self.sales_ids: List[int] = [int(sales_id) for sales_id in sales_ids]
        super().__init__(message)


class UnknownReportError(ReportingError):
    """A report name does not match any known report."""
