"""Customer segment composition.

Turns customer aggregates, percentile thresholds and temporal metrics into
the labelled views the business acts on:

- Retention split: one-time buyers versus repeat customers
- Spend and lifetime-value tiers at the 50th/75th percentile
- Discount dependency ranking
- High-value customers at risk of churning
- Customers whose activity has declined

Segments are exclusive within a dimension only; a customer can be a
"High Spender" and "At Risk" at the same time. Every function is a pure
projection and leaves the aggregates untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Mapping, Sequence

from customer_behavior_audit.analyses.temporal import (
    ActivityTrend,
    ActivityWindow,
    compare_activity,
    purchases_as_of,
)
from customer_behavior_audit.foundation.aggregation import (
    CustomerAggregate,
    spending_by_customer,
)
from customer_behavior_audit.foundation.percentiles import (
    TierRule,
    assign_tiers,
    percentile_cont,
)

# Standard percentage precision: 2 decimal places (e.g., 45.67%)
PERCENTAGE_PRECISION = Decimal("0.01")

DEFAULT_TIER_PERCENTILES = (0.50, 0.75)
DEFAULT_AT_RISK_PERCENTILE = 0.75
DEFAULT_INACTIVITY_THRESHOLD_DAYS = 30
DEFAULT_TOP_N_DECLINING = 10


class SpendSegment(str, Enum):
    """Spending tiers, highest first."""

    HIGH = "High Spender"
    MEDIUM = "Medium Spender"
    LOW = "Low Spender"


class CLVSegment(str, Enum):
    """Customer lifetime value tiers, highest first."""

    HIGH = "High CLV"
    MEDIUM = "Medium CLV"
    LOW = "Low CLV"


class ChurnRisk(str, Enum):
    """Churn label of a customer relative to the at-risk rule."""

    AT_RISK = "At Risk"
    STABLE = "Stable"


@dataclass(frozen=True)
class RetentionSummary:
    """Split of the customer base into one-time and repeat buyers."""

    total_customers: int
    one_time_buyers: int
    repeat_customers: int
    one_time_buyer_pct: Decimal

    def __post_init__(self) -> None:
        """Validate retention counts."""
        if self.total_customers < 0:
            raise ValueError(
                f"Total customers cannot be negative: {self.total_customers}"
            )
        if self.one_time_buyers < 0 or self.repeat_customers < 0:
            raise ValueError(
                f"Buyer counts cannot be negative: one_time={self.one_time_buyers}, repeat={self.repeat_customers}"
            )
        if self.one_time_buyers + self.repeat_customers != self.total_customers:
            raise ValueError(
                f"One-time buyers ({self.one_time_buyers}) + repeat customers ({self.repeat_customers}) must equal total customers ({self.total_customers})"
            )
        if not 0 <= self.one_time_buyer_pct <= 100:
            raise ValueError(
                f"One-time buyer percentage must be 0-100: {self.one_time_buyer_pct}"
            )


def summarize_retention(aggregates: Mapping[str, CustomerAggregate]) -> RetentionSummary:
    """Count one-time buyers (exactly 1 transaction) and repeat customers.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> d = date(2024, 1, 1)
    >>> aggs = {
    ...     "C1": CustomerAggregate("C1", Decimal("5"), 1, d, d, 0, (d,)),
    ...     "C2": CustomerAggregate("C2", Decimal("9"), 2, d, d, 0, (d, d)),
    ... }
    >>> summary = summarize_retention(aggs)
    >>> summary.one_time_buyers, summary.repeat_customers, summary.one_time_buyer_pct
    (1, 1, Decimal('50.00'))
    """
    total_customers = len(aggregates)
    one_time_buyers = sum(
        1 for aggregate in aggregates.values() if aggregate.transaction_count == 1
    )
    if total_customers:
        one_time_buyer_pct = (
            Decimal(one_time_buyers) / Decimal(total_customers) * 100
        ).quantize(PERCENTAGE_PRECISION, rounding=ROUND_HALF_UP)
    else:
        one_time_buyer_pct = Decimal("0")
    return RetentionSummary(
        total_customers=total_customers,
        one_time_buyers=one_time_buyers,
        repeat_customers=total_customers - one_time_buyers,
        one_time_buyer_pct=one_time_buyer_pct,
    )


@dataclass(frozen=True)
class SpendSegmentAssignment:
    customer_id: str
    total_spending: Decimal
    segment: SpendSegment


@dataclass(frozen=True)
class CLVSegmentAssignment:
    customer_id: str
    lifetime_value: Decimal
    total_transactions: int
    segment: CLVSegment


def _tier_rules(
    percentiles: Sequence[float], medium: Enum, high: Enum
) -> list[TierRule]:
    if len(percentiles) != 2:
        raise ValueError(
            f"Expected 2 tier percentiles (medium, high), got {len(percentiles)}"
        )
    medium_pct, high_pct = percentiles
    if not medium_pct < high_pct:
        raise ValueError(
            f"Tier percentiles must be ascending: medium={medium_pct}, high={high_pct}"
        )
    return [TierRule(medium, medium_pct), TierRule(high, high_pct)]


def segment_by_spending(
    aggregates: Mapping[str, CustomerAggregate],
    percentiles: Sequence[float] = DEFAULT_TIER_PERCENTILES,
) -> list[SpendSegmentAssignment]:
    """Label customers High/Medium/Low Spender by total spending percentiles.

    Customers at or above the upper percentile are High Spenders, those at
    or above the lower one are Medium Spenders, the rest Low Spenders.
    Rows are ordered by total spending descending.

    Raises
    ------
    EmptyPopulationError
        If there are no customers.
    DataIntegrityError
        If a customer has a transaction without an amount.
    """
    spending = spending_by_customer(aggregates)
    labels, _ = assign_tiers(
        spending,
        _tier_rules(percentiles, SpendSegment.MEDIUM, SpendSegment.HIGH),
        SpendSegment.LOW,
        "total_spending",
    )
    rows = [
        SpendSegmentAssignment(
            customer_id=customer_id,
            total_spending=spending[customer_id],
            segment=labels[customer_id],
        )
        for customer_id in spending
    ]
    rows.sort(key=lambda row: (-row.total_spending, row.customer_id))
    return rows


def segment_by_lifetime_value(
    aggregates: Mapping[str, CustomerAggregate],
    percentiles: Sequence[float] = DEFAULT_TIER_PERCENTILES,
) -> list[CLVSegmentAssignment]:
    """Label customers High/Medium/Low CLV by cumulative spend percentiles.

    Same tiering as :func:`segment_by_spending`, reported alongside each
    customer's transaction count. Rows are ordered by lifetime value
    descending.
    """
    spending = spending_by_customer(aggregates)
    labels, _ = assign_tiers(
        spending,
        _tier_rules(percentiles, CLVSegment.MEDIUM, CLVSegment.HIGH),
        CLVSegment.LOW,
        "lifetime_value",
    )
    rows = [
        CLVSegmentAssignment(
            customer_id=customer_id,
            lifetime_value=spending[customer_id],
            total_transactions=aggregates[customer_id].transaction_count,
            segment=labels[customer_id],
        )
        for customer_id in spending
    ]
    rows.sort(key=lambda row: (-row.lifetime_value, row.customer_id))
    return rows


@dataclass(frozen=True)
class DiscountDependency:
    """Share of a customer's purchases made under a discount."""

    customer_id: str
    total_purchases: int
    discounted_purchases: int
    discount_dependency_pct: Decimal

    def __post_init__(self) -> None:
        if not 0 <= self.discount_dependency_pct <= 100:
            raise ValueError(
                f"Discount dependency must be 0-100: {self.discount_dependency_pct} (customer_id={self.customer_id})"
            )


def calculate_discount_dependency(
    aggregates: Mapping[str, CustomerAggregate],
) -> list[DiscountDependency]:
    """Rank customers by the percentage of discounted purchases, highest first.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> d = date(2024, 1, 1)
    >>> agg = CustomerAggregate("C1", Decimal("40"), 4, d, d, 1, (d, d, d, d))
    >>> calculate_discount_dependency({"C1": agg})[0].discount_dependency_pct
    Decimal('25.00')
    """
    rows = [
        DiscountDependency(
            customer_id=aggregate.customer_id,
            total_purchases=aggregate.transaction_count,
            discounted_purchases=aggregate.discounted_count,
            discount_dependency_pct=(
                Decimal(aggregate.discounted_count)
                * 100
                / Decimal(aggregate.transaction_count)
            ).quantize(PERCENTAGE_PRECISION, rounding=ROUND_HALF_UP),
        )
        for aggregate in aggregates.values()
    ]
    rows.sort(key=lambda row: (-row.discount_dependency_pct, row.customer_id))
    return rows


@dataclass(frozen=True)
class AtRiskCustomer:
    """A top-tier spender who has not purchased for a while."""

    customer_id: str
    total_spent: Decimal
    last_purchase_date: date
    days_since_last_purchase: int


def identify_at_risk_customers(
    aggregates: Mapping[str, CustomerAggregate],
    reference_date: date,
    inactivity_threshold_days: int = DEFAULT_INACTIVITY_THRESHOLD_DAYS,
    spend_percentile: float = DEFAULT_AT_RISK_PERCENTILE,
) -> list[AtRiskCustomer]:
    """Find high-value customers who have gone quiet.

    A customer is at risk when their total spending is at or above the
    ``spend_percentile`` threshold of all customers AND more than
    ``inactivity_threshold_days`` days have passed since their last
    purchase. Rows are ordered by inactivity, longest first.

    Customers whose first purchase falls after ``reference_date`` are
    outside the population. Spending is taken from the aggregates as given;
    build them with ``aggregate_customers(..., as_of=reference_date)`` for
    a strict historical snapshot.

    Raises
    ------
    EmptyPopulationError
        If no customer had purchased by ``reference_date``.
    DataIntegrityError
        If a customer has a transaction without an amount.
    """
    if inactivity_threshold_days < 0:
        raise ValueError(
            f"Inactivity threshold cannot be negative: {inactivity_threshold_days}"
        )
    last_seen: dict[str, date] = {}
    for customer_id, aggregate in aggregates.items():
        purchases = purchases_as_of(aggregate, reference_date)
        if purchases:
            last_seen[customer_id] = purchases[-1]
    spending = spending_by_customer(
        {customer_id: aggregates[customer_id] for customer_id in last_seen}
    )
    threshold = percentile_cont(
        list(spending.values()), [spend_percentile], "total_spending"
    )[spend_percentile]

    rows: list[AtRiskCustomer] = []
    for customer_id, total_spent in spending.items():
        inactive_days = (reference_date - last_seen[customer_id]).days
        if total_spent >= threshold and inactive_days > inactivity_threshold_days:
            rows.append(
                AtRiskCustomer(
                    customer_id=customer_id,
                    total_spent=total_spent,
                    last_purchase_date=last_seen[customer_id],
                    days_since_last_purchase=inactive_days,
                )
            )
    rows.sort(key=lambda row: (-row.days_since_last_purchase, row.customer_id))
    return rows


def assign_churn_risk(
    aggregates: Mapping[str, CustomerAggregate],
    reference_date: date,
    inactivity_threshold_days: int = DEFAULT_INACTIVITY_THRESHOLD_DAYS,
    spend_percentile: float = DEFAULT_AT_RISK_PERCENTILE,
) -> dict[str, ChurnRisk]:
    """Label every customer At Risk or Stable."""
    at_risk = {
        row.customer_id
        for row in identify_at_risk_customers(
            aggregates, reference_date, inactivity_threshold_days, spend_percentile
        )
    }
    return {
        customer_id: ChurnRisk.AT_RISK if customer_id in at_risk else ChurnRisk.STABLE
        for customer_id in aggregates
    }


def identify_declining_customers(
    aggregates: Mapping[str, CustomerAggregate],
    past_window: ActivityWindow,
    recent_window: ActivityWindow,
    top_n: int | None = DEFAULT_TOP_N_DECLINING,
) -> list[ActivityTrend]:
    """Return customers who bought less in the recent window than in the past one.

    Customers with no purchases in the past window are excluded. A customer
    missing from the recent window counts as 0 recent purchases. The result
    is ordered by past purchases descending and limited to ``top_n`` rows
    (``None`` for no limit).
    """
    if top_n is not None and top_n < 0:
        raise ValueError(f"top_n cannot be negative: {top_n}")
    declining = [
        trend
        for trend in compare_activity(aggregates, past_window, recent_window)
        if trend.is_declining
    ]
    if top_n is None:
        return declining
    return declining[:top_n]
