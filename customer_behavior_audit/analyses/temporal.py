"""Temporal behavior analysis: recency, purchase cadence and activity trends.

Every function takes an explicit ``reference_date`` (or explicit windows)
instead of reading the clock, so the same input always produces the same
output.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping

import pandas as pd

from customer_behavior_audit.foundation.aggregation import CustomerAggregate

# Average gaps are reported in days with 2 decimal places (e.g., 12.33)
DAYS_PRECISION = Decimal("0.01")

DEFAULT_PAST_MONTHS = 12
DEFAULT_RECENT_MONTHS = 6


@dataclass(frozen=True)
class RecencyMetrics:
    """How long ago a customer last purchased.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    last_purchase_date:
        Date of the most recent purchase
    days_since_last_purchase:
        Whole days between the last purchase and the reference date
    total_purchases:
        Number of transactions on record for the customer
    """

    customer_id: str
    last_purchase_date: date
    days_since_last_purchase: int
    total_purchases: int

    def __post_init__(self) -> None:
        if self.days_since_last_purchase < 0:
            raise ValueError(
                f"Recency cannot be negative: {self.days_since_last_purchase} (customer_id={self.customer_id})"
            )
        if self.total_purchases <= 0:
            raise ValueError(
                f"Total purchases must be positive: {self.total_purchases} (customer_id={self.customer_id})"
            )


def purchases_as_of(aggregate: CustomerAggregate, reference_date: date) -> tuple[date, ...]:
    """Return the customer's purchase dates on or before ``reference_date``."""
    cutoff = bisect_right(aggregate.ordered_purchase_dates, reference_date)
    return aggregate.ordered_purchase_dates[:cutoff]


def days_since_last_purchase(
    aggregate: CustomerAggregate, reference_date: date
) -> int | None:
    """Return whole days between the customer's last purchase and ``reference_date``.

    Purchases dated after ``reference_date`` are ignored, so a historical
    reference date can be used on a snapshot that also holds later rows.
    Returns ``None`` when the customer had not purchased by then.
    """
    purchases = purchases_as_of(aggregate, reference_date)
    if not purchases:
        return None
    return (reference_date - purchases[-1]).days


def calculate_recency(
    aggregates: Mapping[str, CustomerAggregate], reference_date: date
) -> list[RecencyMetrics]:
    """Compute recency for every customer, least recently active first.

    Only purchases on or before ``reference_date`` count. Customers whose
    first purchase comes later are left out.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> agg = CustomerAggregate("C1", Decimal("10"), 1, date(2024, 1, 1),
    ...                         date(2024, 1, 1), 0, (date(2024, 1, 1),))
    >>> calculate_recency({"C1": agg}, date(2024, 1, 31))[0].days_since_last_purchase
    30
    """
    metrics: list[RecencyMetrics] = []
    for aggregate in aggregates.values():
        purchases = purchases_as_of(aggregate, reference_date)
        if not purchases:
            continue
        metrics.append(
            RecencyMetrics(
                customer_id=aggregate.customer_id,
                last_purchase_date=purchases[-1],
                days_since_last_purchase=(reference_date - purchases[-1]).days,
                total_purchases=len(purchases),
            )
        )
    metrics.sort(key=lambda m: (-m.days_since_last_purchase, m.customer_id))
    return metrics


@dataclass(frozen=True)
class PurchaseIntervalMetrics:
    """Gaps between a customer's consecutive purchases.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    avg_days_between_purchases:
        Arithmetic mean of the gaps, rounded to 2 decimal places
    interval_count:
        Number of gaps (one fewer than the number of purchases)
    min_gap_days:
        Shortest gap in days
    max_gap_days:
        Longest gap in days
    """

    customer_id: str
    avg_days_between_purchases: Decimal
    interval_count: int
    min_gap_days: int
    max_gap_days: int

    def __post_init__(self) -> None:
        if self.interval_count <= 0:
            raise ValueError(
                f"Interval count must be positive: {self.interval_count} (customer_id={self.customer_id})"
            )
        if not self.min_gap_days <= self.avg_days_between_purchases <= self.max_gap_days:
            raise ValueError(
                f"Average gap {self.avg_days_between_purchases} outside [{self.min_gap_days}, {self.max_gap_days}] (customer_id={self.customer_id})"
            )


def purchase_gaps(ordered_dates: tuple[date, ...]) -> list[int]:
    """Return day gaps between consecutive dates; the first date has no gap."""
    return [
        (current - previous).days
        for previous, current in zip(ordered_dates, ordered_dates[1:])
    ]


def calculate_purchase_intervals(
    aggregates: Mapping[str, CustomerAggregate],
) -> list[PurchaseIntervalMetrics]:
    """Compute the average time between purchases for repeat customers.

    Customers with a single purchase have no gap and are left out rather
    than reported as zero. Results are ordered by average gap ascending, so
    the most frequent purchasers come first.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> dates = (date(2024, 1, 1), date(2024, 1, 11), date(2024, 2, 10))
    >>> agg = CustomerAggregate("C1", Decimal("90"), 3, dates[0], dates[-1], 0, dates)
    >>> calculate_purchase_intervals({"C1": agg})[0].avg_days_between_purchases
    Decimal('20.00')
    """
    metrics: list[PurchaseIntervalMetrics] = []
    for aggregate in aggregates.values():
        # Dates are ascending by construction; sort anyway for hand-built aggregates.
        gaps = purchase_gaps(tuple(sorted(aggregate.ordered_purchase_dates)))
        if not gaps:
            continue
        average = (Decimal(sum(gaps)) / Decimal(len(gaps))).quantize(
            DAYS_PRECISION, rounding=ROUND_HALF_UP
        )
        metrics.append(
            PurchaseIntervalMetrics(
                customer_id=aggregate.customer_id,
                avg_days_between_purchases=average,
                interval_count=len(gaps),
                min_gap_days=min(gaps),
                max_gap_days=max(gaps),
            )
        )
    metrics.sort(key=lambda m: (m.avg_days_between_purchases, m.customer_id))
    return metrics


@dataclass(frozen=True)
class ActivityWindow:
    """Half-open date range ``[start, end)``."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(
                f"Window start ({self.start}) must be before window end ({self.end})"
            )

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    def overlaps(self, other: ActivityWindow) -> bool:
        return self.start < other.end and other.start < self.end


def _months_before(reference_date: date, months: int) -> date:
    return (pd.Timestamp(reference_date) - pd.DateOffset(months=months)).date()


def default_activity_windows(
    reference_date: date,
    past_months: int = DEFAULT_PAST_MONTHS,
    recent_months: int = DEFAULT_RECENT_MONTHS,
) -> tuple[ActivityWindow, ActivityWindow]:
    """Return the (past, recent) windows used for activity-trend comparison.

    past is ``[reference - past_months, reference - recent_months)`` and
    recent is ``[reference - recent_months, reference]``, the reference day
    included.

    Examples
    --------
    >>> from datetime import date
    >>> past, recent = default_activity_windows(date(2024, 12, 31))
    >>> past.start, past.end, recent.end
    (datetime.date(2023, 12, 31), datetime.date(2024, 6, 30), datetime.date(2025, 1, 1))
    """
    if not 0 < recent_months < past_months:
        raise ValueError(
            f"Expected 0 < recent_months < past_months, got recent_months={recent_months}, past_months={past_months}"
        )
    boundary = _months_before(reference_date, recent_months)
    past = ActivityWindow(_months_before(reference_date, past_months), boundary)
    recent = ActivityWindow(boundary, reference_date + timedelta(days=1))
    return past, recent


@dataclass(frozen=True)
class ActivityTrend:
    """A customer's purchase counts in a past window versus a recent one.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    past_count:
        Purchases inside the past window
    recent_count:
        Purchases inside the recent window (0 if none)
    last_active_date:
        Latest purchase inside the past window
    """

    customer_id: str
    past_count: int
    recent_count: int
    last_active_date: date

    def __post_init__(self) -> None:
        if self.past_count <= 0:
            raise ValueError(
                f"Past count must be positive: {self.past_count} (customer_id={self.customer_id})"
            )
        if self.recent_count < 0:
            raise ValueError(
                f"Recent count cannot be negative: {self.recent_count} (customer_id={self.customer_id})"
            )

    @property
    def is_declining(self) -> bool:
        return self.recent_count < self.past_count


def compare_activity(
    aggregates: Mapping[str, CustomerAggregate],
    past_window: ActivityWindow,
    recent_window: ActivityWindow,
) -> list[ActivityTrend]:
    """Count each customer's purchases in two disjoint windows.

    Only customers with at least one purchase in ``past_window`` are
    returned; without a baseline there is nothing to compare against.
    Results are ordered by ``past_count`` descending.

    Raises
    ------
    ValueError
        If the windows overlap.
    """
    if past_window.overlaps(recent_window):
        raise ValueError(
            f"Activity windows must not overlap: past={past_window}, recent={recent_window}"
        )

    trends: list[ActivityTrend] = []
    for aggregate in aggregates.values():
        past_dates = [d for d in aggregate.ordered_purchase_dates if past_window.contains(d)]
        if not past_dates:
            continue
        recent_count = sum(
            1 for d in aggregate.ordered_purchase_dates if recent_window.contains(d)
        )
        trends.append(
            ActivityTrend(
                customer_id=aggregate.customer_id,
                past_count=len(past_dates),
                recent_count=recent_count,
                last_active_date=max(past_dates),
            )
        )
    trends.sort(key=lambda t: (-t.past_count, t.customer_id))
    return trends
