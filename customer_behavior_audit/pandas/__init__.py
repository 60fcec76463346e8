"""Pandas DataFrame adapters for customer behavior audit components."""

from .reports import (
    aggregates_to_dataframe,
    audit_report_to_dataframes,
    report_to_dataframe,
)
from .transactions import (
    dataframe_to_transactions,
    transactions_to_dataframe,
)

__all__ = [
    # Transaction adapters
    "dataframe_to_transactions",
    "transactions_to_dataframe",
    # Report adapters
    "aggregates_to_dataframe",
    "audit_report_to_dataframes",
    "report_to_dataframe",
]
