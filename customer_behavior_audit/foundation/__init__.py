"""Foundational building blocks for customer behavior analyses.

This package exposes the transaction record, readers for the purchases
table, the per-customer aggregator and the continuous percentile
classifier every segmentation report builds on.
"""

from .aggregation import CustomerAggregate, aggregate_customers, spending_by_customer
from .errors import DataIntegrityError, EmptyPopulationError
from .percentiles import TierRule, assign_tiers, classify_by_thresholds, percentile_cont
from .sources import load_transactions, load_transactions_csv, load_transactions_json
from .transactions import TRANSACTION_FIELDS, Transaction, parse_transactions

__all__ = [
    "CustomerAggregate",
    "DataIntegrityError",
    "EmptyPopulationError",
    "TRANSACTION_FIELDS",
    "TierRule",
    "Transaction",
    "aggregate_customers",
    "assign_tiers",
    "classify_by_thresholds",
    "load_transactions",
    "load_transactions_csv",
    "load_transactions_json",
    "parse_transactions",
    "percentile_cont",
    "spending_by_customer",
]
