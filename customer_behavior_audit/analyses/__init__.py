"""Customer behavior analyses.

Reports built on the per-customer aggregates:

1. Retention split (one-time vs. repeat buyers)
2. Spend and lifetime-value tiers
3. Recency and purchase cadence
4. Activity trend (declining customers)
5. Discount dependency
6. High-value customers at churn risk

plus item and weekday revenue reports computed from raw transactions, and
a runner that executes all of them over one snapshot.
"""

from .audit import AuditConfig, BehaviorAuditReport, REPORT_NAMES, run_behavior_audit
from .merchandise import (
    DayOfWeekRevenue,
    ItemRevenue,
    WeekpartRevenue,
    revenue_by_day_of_week,
    summarize_weekpart_revenue,
    top_items_by_revenue,
)
from .segments import (
    AtRiskCustomer,
    ChurnRisk,
    CLVSegment,
    CLVSegmentAssignment,
    DiscountDependency,
    RetentionSummary,
    SpendSegment,
    SpendSegmentAssignment,
    assign_churn_risk,
    calculate_discount_dependency,
    identify_at_risk_customers,
    identify_declining_customers,
    segment_by_lifetime_value,
    segment_by_spending,
    summarize_retention,
)
from .temporal import (
    ActivityTrend,
    ActivityWindow,
    PurchaseIntervalMetrics,
    RecencyMetrics,
    calculate_purchase_intervals,
    calculate_recency,
    compare_activity,
    default_activity_windows,
    purchases_as_of,
)

__all__ = [
    # Runner
    "AuditConfig",
    "BehaviorAuditReport",
    "REPORT_NAMES",
    "run_behavior_audit",
    # Merchandise
    "DayOfWeekRevenue",
    "ItemRevenue",
    "WeekpartRevenue",
    "revenue_by_day_of_week",
    "summarize_weekpart_revenue",
    "top_items_by_revenue",
    # Segments
    "AtRiskCustomer",
    "ChurnRisk",
    "CLVSegment",
    "CLVSegmentAssignment",
    "DiscountDependency",
    "RetentionSummary",
    "SpendSegment",
    "SpendSegmentAssignment",
    "assign_churn_risk",
    "calculate_discount_dependency",
    "identify_at_risk_customers",
    "identify_declining_customers",
    "segment_by_lifetime_value",
    "segment_by_spending",
    "summarize_retention",
    # Temporal
    "ActivityTrend",
    "ActivityWindow",
    "PurchaseIntervalMetrics",
    "RecencyMetrics",
    "calculate_purchase_intervals",
    "calculate_recency",
    "compare_activity",
    "default_activity_windows",
    "purchases_as_of",
]
