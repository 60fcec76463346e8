"""Continuous percentiles and threshold-based tier assignment.

Thresholds follow SQL ``PERCENTILE_CONT`` semantics: for percentile ``p``
over ``n`` ascending values the rank is ``p * (n - 1)``; an integral rank
returns the value at that position, a fractional rank interpolates linearly
between its floor and ceiling neighbours. This is the same definition as
``numpy.percentile(..., method="linear")``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Generic, Mapping, Sequence, TypeVar

from customer_behavior_audit.foundation.errors import EmptyPopulationError

LabelT = TypeVar("LabelT")


def percentile_cont(
    values: Sequence[Decimal | int | float],
    percentiles: Sequence[float],
    metric_name: str = "value",
) -> dict[float, Decimal]:
    """Compute interpolated percentile thresholds.

    Parameters
    ----------
    values:
        Population to rank. Order does not matter.
    percentiles:
        Target percentiles as fractions in [0, 1] (e.g., 0.75).
    metric_name:
        Name of the measured quantity, used in error messages.

    Returns
    -------
    dict[float, Decimal]
        Mapping of each requested percentile to its threshold.

    Raises
    ------
    EmptyPopulationError
        If ``values`` is empty.
    ValueError
        If a percentile lies outside [0, 1].

    Examples
    --------
    >>> thresholds = percentile_cont([10, 20, 30, 40], [0.50, 0.75], "spend")
    >>> thresholds[0.50], thresholds[0.75]
    (Decimal('25.0'), Decimal('32.50'))
    """
    for percentile in percentiles:
        if not 0 <= percentile <= 1:
            raise ValueError(f"Percentile must be between 0 and 1: {percentile}")
    if not values:
        raise EmptyPopulationError(f"percentiles of {metric_name}")

    ordered = sorted(Decimal(str(value)) for value in values)
    last_rank = len(ordered) - 1

    thresholds: dict[float, Decimal] = {}
    for percentile in percentiles:
        rank = Decimal(str(percentile)) * last_rank
        lower = int(rank)
        fraction = rank - lower
        if fraction == 0:
            thresholds[percentile] = ordered[lower]
        else:
            thresholds[percentile] = ordered[lower] + (
                ordered[lower + 1] - ordered[lower]
            ) * fraction
    return thresholds


@dataclass(frozen=True)
class TierRule(Generic[LabelT]):
    """A tier label and the percentile a value must reach to earn it."""

    label: LabelT
    percentile: float

    def __post_init__(self) -> None:
        if not 0 <= self.percentile <= 1:
            raise ValueError(
                f"Tier percentile must be between 0 and 1: {self.percentile} (label={self.label})"
            )


def classify_by_thresholds(
    value: Decimal,
    tiers: Sequence[tuple[LabelT, Decimal]],
    fallback: LabelT,
) -> LabelT:
    """Return the first tier whose threshold ``value`` meets or exceeds.

    ``tiers`` must be ordered from the highest tier to the lowest. A value
    equal to a threshold belongs to that (higher) tier.
    """
    for label, threshold in tiers:
        if value >= threshold:
            return label
    return fallback


def assign_tiers(
    values: Mapping[str, Decimal],
    rules: Sequence[TierRule[LabelT]],
    fallback: LabelT,
    metric_name: str = "value",
) -> tuple[dict[str, LabelT], dict[float, Decimal]]:
    """Label every entity by the percentile tiers of its value.

    Parameters
    ----------
    values:
        Entity id → measured value (e.g., customer_id → total spending).
    rules:
        Tier rules in any order; they are ranked high → low by percentile.
    fallback:
        Label for values below every threshold.
    metric_name:
        Name of the measured quantity, used in error messages.

    Returns
    -------
    tuple[dict[str, LabelT], dict[float, Decimal]]
        Entity labels and the thresholds they were computed from.

    Raises
    ------
    EmptyPopulationError
        If ``values`` is empty.
    """
    ranked_rules = sorted(rules, key=lambda rule: rule.percentile, reverse=True)
    thresholds = percentile_cont(
        list(values.values()),
        [rule.percentile for rule in ranked_rules],
        metric_name,
    )
    ranked_thresholds = [
        (rule.label, thresholds[rule.percentile]) for rule in ranked_rules
    ]
    labels = {
        entity_id: classify_by_thresholds(value, ranked_thresholds, fallback)
        for entity_id, value in values.items()
    }
    return labels, thresholds
