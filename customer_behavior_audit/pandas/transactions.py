"""Pandas DataFrame adapters for transaction records."""

from typing import List, Mapping, Optional

import pandas as pd  # type: ignore

from customer_behavior_audit.foundation.transactions import (
    TRANSACTION_FIELDS,
    Transaction,
    parse_transactions,
)
from ._utils import to_cell

REQUIRED_COLUMNS = ("transaction_id", "customer_id", "date")


def dataframe_to_transactions(
    df: pd.DataFrame,
    column_map: Optional[Mapping[str, str]] = None,
) -> List[Transaction]:
    """Convert a purchases-table DataFrame to Transaction records.

    Args:
        df: DataFrame with one row per transaction
        column_map: Optional mapping of source column name → transaction
            field name, for tables whose columns are named differently

    Returns:
        List of validated Transaction objects, in row order

    Raises:
        ValueError: If the DataFrame is missing required columns
        DataIntegrityError: If a row lacks a customer_id or date, or holds
            an unparseable value

    Example:
        >>> df = pd.read_csv('transactions.csv', dtype=str)
        >>> transactions = dataframe_to_transactions(df)

    Example with custom column names:
        >>> transactions = dataframe_to_transactions(
        ...     df,
        ...     column_map={'client_id': 'customer_id', 'amount': 'total_spent'}
        ... )
    """
    if column_map:
        df = df.rename(columns=dict(column_map))

    missing_cols = set(REQUIRED_COLUMNS) - set(df.columns)
    if missing_cols:
        raise ValueError(f"DataFrame missing required columns: {sorted(missing_cols)}")

    if df.empty:
        return []

    return parse_transactions(df.to_dict("records"))


def transactions_to_dataframe(transactions: List[Transaction]) -> pd.DataFrame:
    """Convert Transaction records to a DataFrame with the table's columns."""
    rows = [
        {column: to_cell(getattr(txn, column)) for column in TRANSACTION_FIELDS}
        for txn in transactions
    ]
    return pd.DataFrame(rows, columns=list(TRANSACTION_FIELDS))
