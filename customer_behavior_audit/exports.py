"""Export behavior audit results to CSV files and a Markdown summary."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path

from customer_behavior_audit.analyses.audit import (
    AT_RISK,
    CLV_SEGMENTS,
    DECLINING_ACTIVITY,
    PURCHASE_INTERVALS,
    REPORT_NAMES,
    REPORT_ROW_TYPES,
    RETENTION,
    SPEND_SEGMENTS,
    TOP_ITEMS,
    WEEKPART_REVENUE,
    BehaviorAuditReport,
)
from customer_behavior_audit.pandas.reports import report_to_dataframe

logger = logging.getLogger(__name__)


def export_audit_report(report: BehaviorAuditReport, output_dir: str | Path) -> list[Path]:
    """Write one CSV per successful report plus ``summary.md``.

    Parameters
    ----------
    report:
        Result of :func:`run_behavior_audit`
    output_dir:
        Directory to write into; created if missing

    Returns
    -------
    list[Path]
        Paths of every file written, summary last
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for name in REPORT_NAMES:
        if name not in report.results:
            continue
        path = output_dir / f"{name}.csv"
        df = report_to_dataframe(report.results[name], REPORT_ROW_TYPES[name])
        df.to_csv(path, index=False)
        written.append(path)

    summary_path = output_dir / "summary.md"
    with summary_path.open("w", encoding="utf-8") as fh:
        fh.write("\n".join(render_summary(report)))
        fh.write("\n")
    written.append(summary_path)

    logger.info(f"Exported {len(written)} files to {output_dir}")
    return written


def render_summary(report: BehaviorAuditReport) -> list[str]:
    """Render the headline numbers of an audit run as Markdown lines.

    The output depends only on the report, so identical runs render
    identical summaries.
    """
    results = report.results
    lines = ["# Customer Behavior Audit\n"]
    lines.append(f"**Reference Date:** {report.config.reference_date.isoformat()}\n")

    if RETENTION in results:
        retention = results[RETENTION]
        lines.append("## Retention\n")
        lines.append(f"- **Total Customers:** {retention.total_customers}")
        lines.append(f"- **One-Time Buyers:** {retention.one_time_buyers}")
        lines.append(f"- **Repeat Customers:** {retention.repeat_customers}")
        lines.append(f"- **One-Time Buyer %:** {retention.one_time_buyer_pct}%\n")

    for name, title in ((SPEND_SEGMENTS, "Spend Segments"), (CLV_SEGMENTS, "CLV Segments")):
        if name in results:
            counts = Counter(row.segment.value for row in results[name])
            lines.append(f"## {title}\n")
            for label, count in sorted(counts.items()):
                lines.append(f"- **{label}:** {count}")
            lines.append("")

    if AT_RISK in results:
        lines.append("## Churn Risk\n")
        lines.append(
            f"- **High-Value Customers Inactive {report.config.inactivity_threshold_days}+ Days:** {len(results[AT_RISK])}\n"
        )

    if DECLINING_ACTIVITY in results:
        lines.append("## Declining Activity\n")
        for trend in results[DECLINING_ACTIVITY]:
            lines.append(
                f"- {trend.customer_id}: {trend.past_count} → {trend.recent_count} purchases"
            )
        lines.append("")

    if PURCHASE_INTERVALS in results:
        lines.append("## Purchase Cadence\n")
        lines.append(
            f"- **Repeat Customers With Interval Data:** {len(results[PURCHASE_INTERVALS])}\n"
        )

    if TOP_ITEMS in results:
        lines.append("## Top Items by Revenue\n")
        for row in results[TOP_ITEMS]:
            lines.append(f"- {row.item}: ${row.total_revenue}")
        lines.append("")

    if WEEKPART_REVENUE in results:
        weekpart = results[WEEKPART_REVENUE]
        lines.append("## Weekend vs. Weekday\n")
        lines.append(f"- **Weekend Revenue:** ${weekpart.weekend_revenue}")
        lines.append(f"- **Weekday Revenue:** ${weekpart.weekday_revenue}")
        lines.append(f"- **Weekend Share:** {weekpart.weekend_share_pct}%\n")

    if report.errors:
        lines.append("## Failed Reports\n")
        for name, message in report.errors.items():
            lines.append(f"- **{name}:** {message}")

    return lines
