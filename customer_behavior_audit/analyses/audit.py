"""Run every behavior report over one transaction snapshot.

The runner takes the transactions dated on or before the reference date,
aggregates customers once, then executes each report against the shared
aggregates. Later rows are ignored, so a historical audit can run over a
newer extract. A data problem that breaks one report (a missing spend
amount, an empty population) is recorded against that report and the
remaining reports still run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Sequence

from customer_behavior_audit.analyses.merchandise import (
    DEFAULT_TOP_ITEMS,
    DayOfWeekRevenue,
    ItemRevenue,
    WeekpartRevenue,
    revenue_by_day_of_week,
    summarize_weekpart_revenue,
    top_items_by_revenue,
)
from customer_behavior_audit.analyses.segments import (
    DEFAULT_AT_RISK_PERCENTILE,
    DEFAULT_INACTIVITY_THRESHOLD_DAYS,
    DEFAULT_TIER_PERCENTILES,
    DEFAULT_TOP_N_DECLINING,
    AtRiskCustomer,
    CLVSegmentAssignment,
    DiscountDependency,
    RetentionSummary,
    SpendSegmentAssignment,
    calculate_discount_dependency,
    identify_at_risk_customers,
    identify_declining_customers,
    segment_by_lifetime_value,
    segment_by_spending,
    summarize_retention,
)
from customer_behavior_audit.analyses.temporal import (
    ActivityTrend,
    ActivityWindow,
    PurchaseIntervalMetrics,
    RecencyMetrics,
    calculate_purchase_intervals,
    calculate_recency,
    default_activity_windows,
)
from customer_behavior_audit.foundation.aggregation import aggregate_customers
from customer_behavior_audit.foundation.errors import DataIntegrityError
from customer_behavior_audit.foundation.transactions import Transaction

logger = logging.getLogger(__name__)

# Report names, in execution order
RETENTION = "retention"
SPEND_SEGMENTS = "spend_segments"
TOP_ITEMS = "top_items"
REVENUE_BY_DAY_OF_WEEK = "revenue_by_day_of_week"
WEEKPART_REVENUE = "weekpart_revenue"
RECENCY = "recency"
CLV_SEGMENTS = "clv_segments"
DECLINING_ACTIVITY = "declining_activity"
DISCOUNT_DEPENDENCY = "discount_dependency"
PURCHASE_INTERVALS = "purchase_intervals"
AT_RISK = "at_risk"

CUSTOMER_REPORTS = (
    RETENTION,
    SPEND_SEGMENTS,
    RECENCY,
    CLV_SEGMENTS,
    DECLINING_ACTIVITY,
    DISCOUNT_DEPENDENCY,
    PURCHASE_INTERVALS,
    AT_RISK,
)
REPORT_NAMES = (
    RETENTION,
    SPEND_SEGMENTS,
    TOP_ITEMS,
    REVENUE_BY_DAY_OF_WEEK,
    WEEKPART_REVENUE,
    RECENCY,
    CLV_SEGMENTS,
    DECLINING_ACTIVITY,
    DISCOUNT_DEPENDENCY,
    PURCHASE_INTERVALS,
    AT_RISK,
)

# Row dataclass of each report, used to label columns of empty results
REPORT_ROW_TYPES: dict[str, type] = {
    RETENTION: RetentionSummary,
    SPEND_SEGMENTS: SpendSegmentAssignment,
    TOP_ITEMS: ItemRevenue,
    REVENUE_BY_DAY_OF_WEEK: DayOfWeekRevenue,
    WEEKPART_REVENUE: WeekpartRevenue,
    RECENCY: RecencyMetrics,
    CLV_SEGMENTS: CLVSegmentAssignment,
    DECLINING_ACTIVITY: ActivityTrend,
    DISCOUNT_DEPENDENCY: DiscountDependency,
    PURCHASE_INTERVALS: PurchaseIntervalMetrics,
    AT_RISK: AtRiskCustomer,
}


@dataclass(frozen=True)
class AuditConfig:
    """Options shared by the behavior reports.

    Attributes
    ----------
    reference_date:
        "As of" date for recency and activity windows (default: today)
    inactivity_threshold_days:
        Days without a purchase after which a top spender is at risk
    past_window, recent_window:
        Activity comparison windows. When omitted they default to
        12-6 months before ``reference_date`` and the 6 months up to and
        including it.
    top_n_declining:
        Maximum declining customers to report (``None`` for all)
    tier_percentiles:
        (medium, high) percentile breakpoints for spend and CLV tiers
    at_risk_percentile:
        Spend percentile a customer must reach to count as high value
    top_items_limit:
        Number of items in the top revenue report (``None`` for all)
    """

    reference_date: date = field(default_factory=date.today)
    inactivity_threshold_days: int = DEFAULT_INACTIVITY_THRESHOLD_DAYS
    past_window: ActivityWindow | None = None
    recent_window: ActivityWindow | None = None
    top_n_declining: int | None = DEFAULT_TOP_N_DECLINING
    tier_percentiles: tuple[float, float] = DEFAULT_TIER_PERCENTILES
    at_risk_percentile: float = DEFAULT_AT_RISK_PERCENTILE
    top_items_limit: int | None = DEFAULT_TOP_ITEMS

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.inactivity_threshold_days < 0:
            raise ValueError(
                f"inactivity_threshold_days cannot be negative: {self.inactivity_threshold_days}"
            )
        if self.top_n_declining is not None and self.top_n_declining < 0:
            raise ValueError(
                f"top_n_declining cannot be negative: {self.top_n_declining}"
            )
        if self.top_items_limit is not None and self.top_items_limit < 0:
            raise ValueError(
                f"top_items_limit cannot be negative: {self.top_items_limit}"
            )
        if len(self.tier_percentiles) != 2:
            raise ValueError(
                f"tier_percentiles must hold (medium, high): {self.tier_percentiles}"
            )
        medium, high = self.tier_percentiles
        if not 0 < medium < high <= 1:
            raise ValueError(
                f"tier_percentiles must be ascending within (0, 1]: {self.tier_percentiles}"
            )
        if not 0 < self.at_risk_percentile <= 1:
            raise ValueError(
                f"at_risk_percentile must be within (0, 1]: {self.at_risk_percentile}"
            )
        past, recent = self.activity_windows()
        if past.overlaps(recent):
            raise ValueError(
                f"Activity windows must not overlap: past={past}, recent={recent}"
            )

    def activity_windows(self) -> tuple[ActivityWindow, ActivityWindow]:
        """Return the (past, recent) windows, filling defaults from reference_date."""
        default_past, default_recent = default_activity_windows(self.reference_date)
        return (
            self.past_window or default_past,
            self.recent_window or default_recent,
        )


@dataclass
class BehaviorAuditReport:
    """Results of one audit run.

    Attributes
    ----------
    config:
        Configuration the run used
    results:
        Report name → report output (a row list or a summary record)
    errors:
        Report name → message for reports that could not be computed
    """

    config: AuditConfig
    results: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    def succeeded(self, name: str) -> bool:
        return name in self.results


def run_behavior_audit(
    transactions: Sequence[Transaction], config: AuditConfig | None = None
) -> BehaviorAuditReport:
    """Compute every behavior report for a transaction snapshot.

    Parameters
    ----------
    transactions:
        Full purchase history to analyse. Rows dated after
        ``config.reference_date`` are left out of every report.
    config:
        Report options; defaults to :class:`AuditConfig` with today's date.

    Returns
    -------
    BehaviorAuditReport
        One entry per report name in either ``results`` or ``errors``.
    """
    config = config or AuditConfig()
    report = BehaviorAuditReport(config=config)
    logger.info(
        f"Running behavior audit over {len(transactions)} transactions "
        f"(reference_date={config.reference_date})"
    )

    snapshot = [
        txn
        for txn in transactions
        if txn.date is None or txn.date <= config.reference_date
    ]
    if len(snapshot) < len(transactions):
        logger.info(
            f"Ignoring {len(transactions) - len(snapshot)} transactions dated after {config.reference_date}"
        )

    reports: dict[str, Callable[[], Any]] = {
        TOP_ITEMS: lambda: top_items_by_revenue(snapshot, config.top_items_limit),
        REVENUE_BY_DAY_OF_WEEK: lambda: revenue_by_day_of_week(snapshot),
        WEEKPART_REVENUE: lambda: summarize_weekpart_revenue(snapshot),
    }

    try:
        aggregates = aggregate_customers(transactions, as_of=config.reference_date)
    except DataIntegrityError as exc:
        logger.warning(f"Customer aggregation failed: {exc}")
        for name in CUSTOMER_REPORTS:
            report.errors[name] = str(exc)
    else:
        past_window, recent_window = config.activity_windows()
        reports.update(
            {
                RETENTION: lambda: summarize_retention(aggregates),
                SPEND_SEGMENTS: lambda: segment_by_spending(
                    aggregates, config.tier_percentiles
                ),
                RECENCY: lambda: calculate_recency(aggregates, config.reference_date),
                CLV_SEGMENTS: lambda: segment_by_lifetime_value(
                    aggregates, config.tier_percentiles
                ),
                DECLINING_ACTIVITY: lambda: identify_declining_customers(
                    aggregates, past_window, recent_window, config.top_n_declining
                ),
                DISCOUNT_DEPENDENCY: lambda: calculate_discount_dependency(aggregates),
                PURCHASE_INTERVALS: lambda: calculate_purchase_intervals(aggregates),
                AT_RISK: lambda: identify_at_risk_customers(
                    aggregates,
                    config.reference_date,
                    config.inactivity_threshold_days,
                    config.at_risk_percentile,
                ),
            }
        )

    for name in REPORT_NAMES:
        if name not in reports:
            continue
        try:
            report.results[name] = reports[name]()
        except ValueError as exc:
            # DataIntegrityError and EmptyPopulationError are ValueErrors
            logger.warning(f"Report {name} failed: {exc}")
            report.errors[name] = str(exc)

    logger.info(
        f"Behavior audit finished: {len(report.results)} reports, {len(report.errors)} failed"
    )
    return report
