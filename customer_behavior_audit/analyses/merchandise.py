"""Item and calendar revenue reports computed straight from transactions."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from customer_behavior_audit.foundation.errors import DataIntegrityError
from customer_behavior_audit.foundation.transactions import Transaction

PERCENTAGE_PRECISION = Decimal("0.01")

DEFAULT_TOP_ITEMS = 5

# Day numbering follows SQL EXTRACT(DOW ...): 0 = Sunday ... 6 = Saturday
DAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)
WEEKEND_DAYS = frozenset({0, 6})


@dataclass(frozen=True)
class ItemRevenue:
    item: str
    total_revenue: Decimal
    total_quantity_sold: Decimal


def top_items_by_revenue(
    transactions: Iterable[Transaction], limit: int | None = DEFAULT_TOP_ITEMS
) -> list[ItemRevenue]:
    """Rank items by total revenue, highest first.

    Parameters
    ----------
    transactions:
        Purchase records. Records without an item name are skipped.
    limit:
        Number of items to return (``None`` for all).

    Raises
    ------
    DataIntegrityError
        If a transaction with an item has no ``total_spent`` amount.
    """
    if limit is not None and limit < 0:
        raise ValueError(f"limit cannot be negative: {limit}")

    revenue: dict[str, Decimal] = {}
    quantity: dict[str, Decimal] = {}
    for txn in transactions:
        if txn.item is None:
            continue
        revenue[txn.item] = revenue.get(txn.item, Decimal("0")) + txn.require_spend()
        quantity[txn.item] = quantity.get(txn.item, Decimal("0")) + (
            txn.quantity if txn.quantity is not None else Decimal("0")
        )

    rows = [
        ItemRevenue(item=item, total_revenue=revenue[item], total_quantity_sold=quantity[item])
        for item in revenue
    ]
    rows.sort(key=lambda row: (-row.total_revenue, row.item))
    return rows if limit is None else rows[:limit]


@dataclass(frozen=True)
class DayOfWeekRevenue:
    day_of_week: int
    day_name: str
    total_revenue: Decimal


def _day_of_week(txn: Transaction) -> int:
    if txn.date is None:
        raise DataIntegrityError("Transaction missing date", txn.transaction_id)
    # date.weekday() is 0 = Monday; shift to 0 = Sunday
    return (txn.date.weekday() + 1) % 7


def revenue_by_day_of_week(transactions: Iterable[Transaction]) -> list[DayOfWeekRevenue]:
    """Sum revenue per weekday, highest-revenue day first.

    Only days with at least one transaction are reported.
    """
    totals: dict[int, Decimal] = {}
    for txn in transactions:
        dow = _day_of_week(txn)
        totals[dow] = totals.get(dow, Decimal("0")) + txn.require_spend()
    rows = [
        DayOfWeekRevenue(day_of_week=dow, day_name=DAY_NAMES[dow], total_revenue=total)
        for dow, total in totals.items()
    ]
    rows.sort(key=lambda row: (-row.total_revenue, row.day_of_week))
    return rows


@dataclass(frozen=True)
class WeekpartRevenue:
    """Weekend (Saturday, Sunday) versus weekday revenue.

    ``weekend_share_pct`` is the weekend part of net revenue. Refund lines
    can push it below 0 or above 100; it is 0 when net revenue is 0.
    """

    weekend_revenue: Decimal
    weekday_revenue: Decimal
    weekend_share_pct: Decimal


def summarize_weekpart_revenue(transactions: Iterable[Transaction]) -> WeekpartRevenue:
    """Compare weekend and weekday revenue.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> txns = [
    ...     Transaction("T1", "C1", date(2024, 1, 6), Decimal("30")),  # Saturday
    ...     Transaction("T2", "C1", date(2024, 1, 8), Decimal("10")),  # Monday
    ... ]
    >>> summarize_weekpart_revenue(txns).weekend_share_pct
    Decimal('75.00')
    """
    by_day = revenue_by_day_of_week(transactions)
    weekend = sum(
        (row.total_revenue for row in by_day if row.day_of_week in WEEKEND_DAYS),
        Decimal("0"),
    )
    weekday = sum(
        (row.total_revenue for row in by_day if row.day_of_week not in WEEKEND_DAYS),
        Decimal("0"),
    )
    total = weekend + weekday
    if total != 0:
        share = (weekend / total * 100).quantize(
            PERCENTAGE_PRECISION, rounding=ROUND_HALF_UP
        )
    else:
        share = Decimal("0")
    return WeekpartRevenue(
        weekend_revenue=weekend, weekday_revenue=weekday, weekend_share_pct=share
    )
