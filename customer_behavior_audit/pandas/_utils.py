"""Shared utilities for pandas conversion operations."""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any


def decimal_to_float(value: Decimal) -> float:
    """Convert Decimal to float for pandas compatibility."""
    return float(value)


def to_cell(value: Any) -> Any:
    """Convert a report field to a value pandas stores natively.

    Decimals become floats, enum labels their string value, and date
    sequences an ISO-formatted, comma-separated string (for CSV export).
    """
    if isinstance(value, Decimal):
        return decimal_to_float(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return ", ".join(
            item.isoformat() if isinstance(item, date) else str(item) for item in value
        )
    return value
