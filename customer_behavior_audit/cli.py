"""Command line entry points for the customer behavior audit."""

from __future__ import annotations

import argparse
import logging
from datetime import date
from pathlib import Path

from customer_behavior_audit.analyses.audit import AuditConfig, run_behavior_audit
from customer_behavior_audit.exports import export_audit_report
from customer_behavior_audit.foundation.sources import load_transactions

logger = logging.getLogger(__name__)


def behavior_audit_cli(argv: list[str] | None = None) -> int:
    """Run every customer behavior report over a transactions file.

    Writes one CSV per report and a Markdown summary into the output
    directory.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Run customer behavior reports over a transactions file"
    )
    parser.add_argument(
        "input", type=Path, help="Path to CSV or JSON file with transactions"
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        required=True,
        help="Directory for report CSV files and summary.md",
    )
    parser.add_argument(
        "--reference-date",
        type=date.fromisoformat,
        help="As-of date (ISO format: YYYY-MM-DD). Defaults to today.",
    )
    parser.add_argument(
        "--inactivity-days",
        type=int,
        default=30,
        help="Days without purchase before a top spender is at risk (default: 30)",
    )
    parser.add_argument(
        "--top-n-declining",
        type=int,
        default=10,
        help="Number of declining customers to report (default: 10)",
    )
    parser.add_argument(
        "--top-items",
        type=int,
        default=5,
        help="Number of items in the top revenue report (default: 5)",
    )
    parser.add_argument(
        "--percentiles",
        type=float,
        nargs=2,
        default=(0.50, 0.75),
        metavar=("MEDIUM", "HIGH"),
        help="Percentile breakpoints for spend/CLV tiers (default: 0.50 0.75)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = AuditConfig(
        reference_date=args.reference_date or date.today(),
        inactivity_threshold_days=args.inactivity_days,
        top_n_declining=args.top_n_declining,
        tier_percentiles=tuple(args.percentiles),
        top_items_limit=args.top_items,
    )

    logger.info(f"Loading transactions from {args.input}")
    transactions = load_transactions(args.input)

    if not transactions:
        logger.error("No transactions found in input file")
        return 1

    report = run_behavior_audit(transactions, config)
    export_audit_report(report, args.output_dir)

    for name, message in report.errors.items():
        logger.warning(f"{name} not generated: {message}")

    return 0


def main() -> None:
    raise SystemExit(behavior_audit_cli())


if __name__ == "__main__":  # pragma: no cover
    main()
