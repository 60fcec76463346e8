"""Readers that load the purchases table from files."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pandas as pd

from customer_behavior_audit.foundation.transactions import (
    Transaction,
    parse_transactions,
)

logger = logging.getLogger(__name__)


MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM


def _check_size(path: Path) -> Path:
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )
    return resolved


def load_transactions_json(path: str | Path) -> list[Transaction]:
    """Load transactions from a JSON file holding a list of row objects."""
    resolved = _check_size(Path(path))
    with resolved.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError("Expected a list of transactions in the input file")
    transactions = parse_transactions(payload)
    logger.info(f"Loaded {len(transactions)} transactions from {resolved}")
    return transactions


def load_transactions_csv(path: str | Path) -> list[Transaction]:
    """Load transactions from a CSV export of the purchases table.

    Every column is read as text so identifiers keep leading zeros and
    amounts are parsed straight into ``Decimal`` without a float detour.
    """
    resolved = _check_size(Path(path))
    df = pd.read_csv(resolved, dtype=str)
    transactions = parse_transactions(df.to_dict("records"))
    logger.info(f"Loaded {len(transactions)} transactions from {resolved}")
    return transactions


def load_transactions(path: str | Path) -> list[Transaction]:
    """Load transactions, choosing the reader from the file extension."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        return load_transactions_json(path)
    if suffix == ".csv":
        return load_transactions_csv(path)
    raise ValueError(f"Unsupported input format {suffix!r}; expected .csv or .json")
