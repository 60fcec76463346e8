"""Tests for recency, purchase intervals and activity trends."""

from datetime import date
from decimal import Decimal

import pytest

from customer_behavior_audit.analyses.temporal import (
    ActivityTrend,
    ActivityWindow,
    PurchaseIntervalMetrics,
    RecencyMetrics,
    calculate_purchase_intervals,
    calculate_recency,
    compare_activity,
    days_since_last_purchase,
    default_activity_windows,
    purchase_gaps,
    purchases_as_of,
)
from customer_behavior_audit.foundation.aggregation import CustomerAggregate


def _aggregate(customer_id, *dates, spend="100.00"):
    ordered = tuple(sorted(dates))
    return CustomerAggregate(
        customer_id=customer_id,
        total_spending=Decimal(spend),
        transaction_count=len(ordered),
        first_purchase_date=ordered[0],
        last_purchase_date=ordered[-1],
        discounted_count=0,
        ordered_purchase_dates=ordered,
    )


def _index(*aggregates):
    return {a.customer_id: a for a in aggregates}


class TestRecency:
    """Test calculate_recency."""

    def test_days_since_last_purchase(self):
        aggs = _index(_aggregate("C1", date(2024, 1, 1), date(2024, 3, 1)))
        result = calculate_recency(aggs, date(2024, 3, 31))
        assert result[0].days_since_last_purchase == 30
        assert result[0].last_purchase_date == date(2024, 3, 1)
        assert result[0].total_purchases == 2

    def test_ordered_by_inactivity_descending(self):
        aggs = _index(
            _aggregate("C1", date(2024, 3, 1)),
            _aggregate("C2", date(2024, 1, 1)),
            _aggregate("C3", date(2024, 2, 1)),
        )
        result = calculate_recency(aggs, date(2024, 4, 1))
        assert [m.customer_id for m in result] == ["C2", "C3", "C1"]

    def test_purchase_on_reference_date_is_zero(self):
        aggs = _index(_aggregate("C1", date(2024, 4, 1)))
        assert calculate_recency(aggs, date(2024, 4, 1))[0].days_since_last_purchase == 0

    def test_later_purchases_are_ignored(self):
        """Recency is measured from the last purchase on or before the reference date."""
        aggs = _index(
            _aggregate("C1", date(2024, 1, 1)),
            _aggregate("C2", date(2024, 6, 1), date(2024, 9, 1)),
        )
        result = calculate_recency(aggs, date(2024, 7, 1))
        by_customer = {m.customer_id: m for m in result}
        assert by_customer["C2"].last_purchase_date == date(2024, 6, 1)
        assert by_customer["C2"].days_since_last_purchase == 30
        assert by_customer["C2"].total_purchases == 1
        assert [m.customer_id for m in result] == ["C1", "C2"]

    def test_customer_without_purchases_by_reference_date_is_excluded(self):
        aggs = _index(
            _aggregate("C1", date(2024, 3, 1)),
            _aggregate("C2", date(2024, 5, 1)),
        )
        assert [m.customer_id for m in calculate_recency(aggs, date(2024, 4, 1))] == ["C1"]

    def test_days_since_last_purchase_helper(self):
        agg = _aggregate("C1", date(2024, 3, 1), date(2024, 5, 1))
        assert days_since_last_purchase(agg, date(2024, 4, 1)) == 31
        assert days_since_last_purchase(agg, date(2024, 2, 1)) is None
        assert purchases_as_of(agg, date(2024, 3, 1)) == (date(2024, 3, 1),)

    def test_negative_recency_rejected(self):
        with pytest.raises(ValueError, match="Recency cannot be negative"):
            RecencyMetrics("C1", date(2024, 1, 1), -1, 1)


class TestPurchaseIntervals:
    """Test purchase gap statistics."""

    def test_average_gap(self):
        """Gaps of 10 and 30 days average to 20.0."""
        aggs = _index(
            _aggregate("C1", date(2024, 1, 1), date(2024, 1, 11), date(2024, 2, 10))
        )
        result = calculate_purchase_intervals(aggs)
        assert len(result) == 1
        assert result[0].avg_days_between_purchases == Decimal("20.00")
        assert result[0].interval_count == 2
        assert result[0].min_gap_days == 10
        assert result[0].max_gap_days == 30

    def test_single_purchase_customer_is_excluded(self):
        """One purchase yields no gap statistic at all (not zero)."""
        aggs = _index(
            _aggregate("C1", date(2024, 1, 1)),
            _aggregate("C2", date(2024, 1, 1), date(2024, 1, 3)),
        )
        result = calculate_purchase_intervals(aggs)
        assert [m.customer_id for m in result] == ["C2"]

    def test_average_is_rounded_half_up(self):
        """Gaps 1, 1, 2 average 1.333... → 1.33; gaps 1, 2 → 1.50."""
        aggs = _index(
            _aggregate("C1", date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 5)),
            _aggregate("C2", date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 4)),
        )
        result = {m.customer_id: m for m in calculate_purchase_intervals(aggs)}
        assert result["C1"].avg_days_between_purchases == Decimal("1.33")
        assert result["C2"].avg_days_between_purchases == Decimal("1.50")

    def test_same_day_purchases_count_as_zero_gap(self):
        aggs = _index(_aggregate("C1", date(2024, 1, 1), date(2024, 1, 1), date(2024, 1, 5)))
        assert calculate_purchase_intervals(aggs)[0].avg_days_between_purchases == Decimal("2.00")

    def test_ordered_by_average_ascending(self):
        aggs = _index(
            _aggregate("C1", date(2024, 1, 1), date(2024, 3, 1)),
            _aggregate("C2", date(2024, 1, 1), date(2024, 1, 8)),
        )
        assert [m.customer_id for m in calculate_purchase_intervals(aggs)] == ["C2", "C1"]

    def test_purchase_gaps_helper(self):
        assert purchase_gaps((date(2024, 1, 1),)) == []
        assert purchase_gaps((date(2024, 1, 1), date(2024, 1, 4))) == [3]

    def test_invalid_interval_metrics_rejected(self):
        with pytest.raises(ValueError, match="Interval count must be positive"):
            PurchaseIntervalMetrics("C1", Decimal("0"), 0, 0, 0)


class TestActivityWindow:
    """Test ActivityWindow bounds."""

    def test_half_open_bounds(self):
        window = ActivityWindow(date(2024, 1, 1), date(2024, 2, 1))
        assert window.contains(date(2024, 1, 1))
        assert window.contains(date(2024, 1, 31))
        assert not window.contains(date(2024, 2, 1))

    def test_empty_window_rejected(self):
        with pytest.raises(ValueError, match="must be before window end"):
            ActivityWindow(date(2024, 2, 1), date(2024, 2, 1))

    def test_adjacent_windows_do_not_overlap(self):
        first = ActivityWindow(date(2024, 1, 1), date(2024, 2, 1))
        second = ActivityWindow(date(2024, 2, 1), date(2024, 3, 1))
        assert not first.overlaps(second)
        assert first.overlaps(ActivityWindow(date(2024, 1, 15), date(2024, 3, 1)))


class TestDefaultActivityWindows:
    def test_default_boundaries(self):
        past, recent = default_activity_windows(date(2024, 7, 15))
        assert past.start == date(2023, 7, 15)
        assert past.end == date(2024, 1, 15)
        assert recent.start == date(2024, 1, 15)
        assert recent.end == date(2024, 7, 16)  # reference day included

    def test_month_end_is_clamped(self):
        past, _ = default_activity_windows(date(2024, 8, 31))
        assert past.end == date(2024, 2, 29)

    def test_invalid_month_spans_rejected(self):
        with pytest.raises(ValueError, match="recent_months < past_months"):
            default_activity_windows(date(2024, 1, 1), past_months=6, recent_months=6)


class TestCompareActivity:
    """Test windowed activity comparison."""

    PAST = ActivityWindow(date(2023, 1, 1), date(2023, 7, 1))
    RECENT = ActivityWindow(date(2023, 7, 1), date(2024, 1, 1))

    def test_absent_from_recent_counts_as_zero(self):
        """past_count=5, recent_count=0 is declining."""
        aggs = _index(
            _aggregate("C1", *[date(2023, m, 10) for m in range(1, 6)]),
        )
        trend = compare_activity(aggs, self.PAST, self.RECENT)[0]
        assert trend.past_count == 5
        assert trend.recent_count == 0
        assert trend.is_declining
        assert trend.last_active_date == date(2023, 5, 10)

    def test_absent_from_past_is_excluded(self):
        """past_count=0, recent_count=3 has no baseline."""
        aggs = _index(_aggregate("C1", *[date(2023, m, 10) for m in (8, 9, 10)]))
        assert compare_activity(aggs, self.PAST, self.RECENT) == []

    def test_steady_customer_not_declining(self):
        aggs = _index(_aggregate("C1", date(2023, 2, 1), date(2023, 8, 1)))
        trend = compare_activity(aggs, self.PAST, self.RECENT)[0]
        assert not trend.is_declining

    def test_purchases_outside_both_windows_ignored(self):
        aggs = _index(_aggregate("C1", date(2022, 6, 1), date(2023, 3, 1), date(2024, 2, 1)))
        trend = compare_activity(aggs, self.PAST, self.RECENT)[0]
        assert (trend.past_count, trend.recent_count) == (1, 0)

    def test_overlapping_windows_rejected(self):
        overlapping = ActivityWindow(date(2023, 6, 1), date(2024, 1, 1))
        with pytest.raises(ValueError, match="must not overlap"):
            compare_activity({}, self.PAST, overlapping)

    def test_invalid_trend_rejected(self):
        with pytest.raises(ValueError, match="Past count must be positive"):
            ActivityTrend("C1", 0, 1, date(2024, 1, 1))
