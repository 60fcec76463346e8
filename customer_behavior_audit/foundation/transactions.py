"""Transaction record definition and parsing utilities.

A transaction is a single row of the purchases table: one customer buying
one item at one location on one day. Everything downstream (customer
aggregates, percentile tiers, temporal comparisons) is derived from these
records, so parsing is where malformed input is rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from customer_behavior_audit.foundation.errors import DataIntegrityError

#: Column names of the purchases table, in source order.
TRANSACTION_FIELDS = (
    "transaction_id",
    "customer_id",
    "category",
    "item",
    "price_per_unit",
    "quantity",
    "total_spent",
    "payment_method",
    "location",
    "date",
    "discount",
)

_TRUE_VALUES = {"true", "t", "yes", "y", "1"}
_FALSE_VALUES = {"false", "f", "no", "n", "0", ""}


@dataclass(frozen=True)
class Transaction:
    """A single purchase record.

    Attributes
    ----------
    transaction_id:
        Unique key of the record.
    customer_id:
        Customer who made the purchase.
    date:
        Calendar day of the purchase.
    total_spent:
        Amount paid for the line. ``None`` when the source row carries no
        amount; spend-based reports reject such records.
    discount:
        Whether the purchase was made under a discount.
    """

    transaction_id: str
    customer_id: str
    date: date
    total_spent: Decimal | None
    discount: bool = False
    category: str | None = None
    item: str | None = None
    price_per_unit: Decimal | None = None
    quantity: Decimal | None = None
    payment_method: str | None = None
    location: str | None = None

    def require_spend(self) -> Decimal:
        """Return ``total_spent`` or raise if the amount is missing."""
        if self.total_spent is None:
            raise DataIntegrityError(
                "Transaction has no total_spent amount", self.transaction_id
            )
        return self.total_spent


def parse_transactions(records: Iterable[Mapping[str, Any]]) -> list[Transaction]:
    """Validate raw records and return immutable transactions.

    Parameters
    ----------
    records:
        Iterable of raw row mappings keyed by the purchases table columns
        (see :data:`TRANSACTION_FIELDS`). Extra keys are ignored.

    Raises
    ------
    DataIntegrityError
        If a record lacks ``transaction_id``, ``customer_id`` or ``date``,
        repeats a ``transaction_id``, or carries an unparseable value.

    Examples
    --------
    >>> txns = parse_transactions([
    ...     {"transaction_id": "T1", "customer_id": "C1", "date": "2024-01-05",
    ...      "total_spent": "19.99", "discount": "true"},
    ... ])
    >>> txns[0].total_spent, txns[0].discount
    (Decimal('19.99'), True)
    """
    transactions: list[Transaction] = []
    seen_ids: set[str] = set()
    for idx, record in enumerate(records):
        transaction_id = _optional_str(record.get("transaction_id"))
        record_id = transaction_id or f"index {idx}"
        if transaction_id is None:
            raise DataIntegrityError("Record missing transaction_id", record_id)
        if transaction_id in seen_ids:
            raise DataIntegrityError("Duplicate transaction_id", record_id)
        seen_ids.add(transaction_id)

        customer_id = _optional_str(record.get("customer_id"))
        if customer_id is None:
            raise DataIntegrityError("Record missing customer_id", record_id)

        purchase_date = _parse_date(record.get("date"), record_id)
        if purchase_date is None:
            raise DataIntegrityError("Record missing date", record_id)

        transactions.append(
            Transaction(
                transaction_id=transaction_id,
                customer_id=customer_id,
                date=purchase_date,
                total_spent=_parse_decimal(
                    record.get("total_spent"), "total_spent", record_id
                ),
                discount=_parse_bool(record.get("discount"), record_id),
                category=_optional_str(record.get("category")),
                item=_optional_str(record.get("item")),
                price_per_unit=_parse_decimal(
                    record.get("price_per_unit"), "price_per_unit", record_id
                ),
                quantity=_parse_decimal(record.get("quantity"), "quantity", record_id),
                payment_method=_optional_str(record.get("payment_method")),
                location=_optional_str(record.get("location")),
            )
        )
    return transactions


def _is_missing(value: Any) -> bool:
    # NaN is the only value not equal to itself; pandas hands us NaN for blanks.
    return value is None or value != value or (isinstance(value, str) and not value.strip())


def _optional_str(value: Any) -> str | None:
    if _is_missing(value):
        return None
    # pandas widens integer id columns with gaps to float: 1001 -> 1001.0
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _parse_date(value: Any, record_id: str) -> date | None:
    if _is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise DataIntegrityError(f"Unparseable date value {value!r}", record_id)


def _parse_decimal(value: Any, field_name: str, record_id: str) -> Decimal | None:
    if _is_missing(value):
        return None
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise DataIntegrityError(
            f"Unparseable {field_name} value {value!r}", record_id
        ) from exc


def _parse_bool(value: Any, record_id: str) -> bool:
    if _is_missing(value):
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    normalised = str(value).strip().lower()
    if normalised in _TRUE_VALUES:
        return True
    if normalised in _FALSE_VALUES:
        return False
    raise DataIntegrityError(f"Unparseable discount value {value!r}", record_id)
