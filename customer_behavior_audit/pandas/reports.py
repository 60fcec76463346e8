"""Pandas DataFrame adapters for behavior reports."""

from dataclasses import fields, is_dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

import pandas as pd  # type: ignore

from customer_behavior_audit.analyses.audit import REPORT_ROW_TYPES, BehaviorAuditReport
from customer_behavior_audit.foundation.aggregation import CustomerAggregate
from ._utils import to_cell


def report_to_dataframe(rows: Any, row_type: Optional[type] = None) -> pd.DataFrame:
    """Convert report rows (or a single summary record) to a DataFrame.

    Args:
        rows: Sequence of report dataclasses, or one dataclass instance for
            summary reports such as RetentionSummary
        row_type: Dataclass of the rows, used to name the columns when
            ``rows`` is empty

    Returns:
        DataFrame with one column per dataclass field, rows in report order

    Example:
        >>> rows = segment_by_spending(aggregates)
        >>> report_to_dataframe(rows).to_csv('spend_segments.csv', index=False)
    """
    if is_dataclass(rows) and not isinstance(rows, type):
        rows = [rows]

    if not rows:
        columns = [f.name for f in fields(row_type)] if row_type is not None else []
        return pd.DataFrame(columns=columns)

    columns = [f.name for f in fields(rows[0])]
    records = [{column: to_cell(getattr(row, column)) for column in columns} for row in rows]
    return pd.DataFrame(records, columns=columns)


def aggregates_to_dataframe(
    aggregates: Mapping[str, CustomerAggregate],
) -> pd.DataFrame:
    """Convert customer aggregates to a DataFrame sorted by customer_id.

    Unknown spending (a transaction without an amount) becomes NaN.
    """
    ordered: Sequence[CustomerAggregate] = [aggregates[k] for k in sorted(aggregates)]
    df = report_to_dataframe(ordered, CustomerAggregate)
    if not df.empty:
        df["total_spending"] = df["total_spending"].astype(float)
    return df


def audit_report_to_dataframes(report: BehaviorAuditReport) -> Dict[str, pd.DataFrame]:
    """Convert every successful report of an audit run to a DataFrame."""
    return {
        name: report_to_dataframe(result, REPORT_ROW_TYPES.get(name))
        for name, result in report.results.items()
    }
