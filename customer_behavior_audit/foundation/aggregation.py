"""Per-customer aggregation of purchase transactions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping

from customer_behavior_audit.foundation.errors import DataIntegrityError
from customer_behavior_audit.foundation.transactions import Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerAggregate:
    """All transactions of one customer reduced to a single record.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    total_spending:
        Sum of ``total_spent`` over the customer's transactions, or ``None``
        when at least one of them has no amount
    transaction_count:
        Number of transactions
    first_purchase_date:
        Earliest purchase date
    last_purchase_date:
        Latest purchase date
    discounted_count:
        Number of transactions made under a discount
    ordered_purchase_dates:
        One date per transaction, ascending. Repeated dates are kept.
    missing_spend_transaction_ids:
        Transactions that contributed no amount to ``total_spending``
    """

    customer_id: str
    total_spending: Decimal | None
    transaction_count: int
    first_purchase_date: date
    last_purchase_date: date
    discounted_count: int
    ordered_purchase_dates: tuple[date, ...]
    missing_spend_transaction_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate aggregate consistency."""
        if self.transaction_count <= 0:
            raise ValueError(
                f"Transaction count must be positive: {self.transaction_count} (customer_id={self.customer_id})"
            )
        if len(self.ordered_purchase_dates) != self.transaction_count:
            raise ValueError(
                f"Expected {self.transaction_count} purchase dates, got {len(self.ordered_purchase_dates)} (customer_id={self.customer_id})"
            )
        if not 0 <= self.discounted_count <= self.transaction_count:
            raise ValueError(
                f"Discounted count must be 0-{self.transaction_count}: {self.discounted_count} (customer_id={self.customer_id})"
            )
        if self.first_purchase_date > self.last_purchase_date:
            raise ValueError(
                f"First purchase ({self.first_purchase_date}) after last purchase ({self.last_purchase_date}) (customer_id={self.customer_id})"
            )

    @property
    def is_repeat_customer(self) -> bool:
        return self.transaction_count > 1

    def require_spending(self) -> Decimal:
        """Return ``total_spending`` or raise naming the record without an amount."""
        if self.total_spending is None:
            raise DataIntegrityError(
                "Transaction has no total_spent amount",
                self.missing_spend_transaction_ids[0],
            )
        return self.total_spending


def aggregate_customers(
    transactions: Iterable[Transaction],
    as_of: date | None = None,
) -> dict[str, CustomerAggregate]:
    """Reduce transactions to one :class:`CustomerAggregate` per customer.

    Parameters
    ----------
    transactions:
        Purchase records. Order does not matter; dates are sorted per
        customer.
    as_of:
        If given, transactions dated after this day are left out, giving
        the customer base as it stood on that date.

    Returns
    -------
    dict[str, CustomerAggregate]
        Mapping of customer_id to aggregate, keyed in customer_id order.

    Raises
    ------
    DataIntegrityError
        If a transaction has no ``customer_id`` or no ``date``.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> txns = [
    ...     Transaction("T1", "C1", date(2024, 2, 10), Decimal("30.00")),
    ...     Transaction("T2", "C1", date(2024, 1, 1), Decimal("20.00"), discount=True),
    ... ]
    >>> agg = aggregate_customers(txns)["C1"]
    >>> agg.total_spending, agg.transaction_count, agg.discounted_count
    (Decimal('50.00'), 2, 1)
    >>> agg.first_purchase_date
    datetime.date(2024, 1, 1)
    """
    grouped: dict[str, dict[str, object]] = {}
    transaction_total = 0
    skipped = 0
    for txn in transactions:
        if not txn.customer_id:
            raise DataIntegrityError(
                "Transaction missing customer_id", txn.transaction_id
            )
        if txn.date is None:
            raise DataIntegrityError("Transaction missing date", txn.transaction_id)
        if as_of is not None and txn.date > as_of:
            skipped += 1
            continue

        bucket = grouped.setdefault(
            txn.customer_id,
            {
                "total_spending": Decimal("0"),
                "dates": [],
                "discounted_count": 0,
                "missing_spend": [],
            },
        )
        bucket["dates"].append(txn.date)
        if txn.discount:
            bucket["discounted_count"] += 1
        if txn.total_spent is None:
            bucket["missing_spend"].append(txn.transaction_id)
        else:
            bucket["total_spending"] += txn.total_spent
        transaction_total += 1

    aggregates: dict[str, CustomerAggregate] = {}
    for customer_id in sorted(grouped):
        payload = grouped[customer_id]
        dates = tuple(sorted(payload["dates"]))
        missing_spend = tuple(payload["missing_spend"])
        aggregates[customer_id] = CustomerAggregate(
            customer_id=customer_id,
            total_spending=None if missing_spend else payload["total_spending"],
            transaction_count=len(dates),
            first_purchase_date=dates[0],
            last_purchase_date=dates[-1],
            discounted_count=payload["discounted_count"],
            ordered_purchase_dates=dates,
            missing_spend_transaction_ids=missing_spend,
        )

    logger.debug(
        f"Aggregated {transaction_total} transactions into {len(aggregates)} customers"
    )
    if skipped:
        logger.debug(f"Skipped {skipped} transactions dated after {as_of}")
    return aggregates


def spending_by_customer(
    aggregates: Mapping[str, CustomerAggregate],
) -> dict[str, Decimal]:
    """Return customer_id → total spending, rejecting customers without amounts."""
    return {
        customer_id: aggregate.require_spending()
        for customer_id, aggregate in aggregates.items()
    }
