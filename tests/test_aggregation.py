"""Tests for per-customer aggregation."""

from datetime import date
from decimal import Decimal

import pytest

from customer_behavior_audit.foundation.aggregation import (
    CustomerAggregate,
    aggregate_customers,
    spending_by_customer,
)
from customer_behavior_audit.foundation.errors import DataIntegrityError
from customer_behavior_audit.foundation.transactions import Transaction


def _txn(txn_id, customer_id, day, spent="10.00", discount=False):
    return Transaction(
        transaction_id=txn_id,
        customer_id=customer_id,
        date=day,
        total_spent=None if spent is None else Decimal(spent),
        discount=discount,
    )


class TestCustomerAggregate:
    """Test CustomerAggregate validation."""

    def test_valid_aggregate(self):
        d = date(2024, 1, 1)
        agg = CustomerAggregate("C1", Decimal("10"), 1, d, d, 0, (d,))
        assert agg.customer_id == "C1"
        assert not agg.is_repeat_customer

    def test_zero_transactions_raises_error(self):
        d = date(2024, 1, 1)
        with pytest.raises(ValueError, match="Transaction count must be positive"):
            CustomerAggregate("C1", Decimal("0"), 0, d, d, 0, ())

    def test_date_count_mismatch_raises_error(self):
        d = date(2024, 1, 1)
        with pytest.raises(ValueError, match="Expected 2 purchase dates"):
            CustomerAggregate("C1", Decimal("10"), 2, d, d, 0, (d,))

    def test_discounted_count_above_total_raises_error(self):
        d = date(2024, 1, 1)
        with pytest.raises(ValueError, match="Discounted count must be 0-1"):
            CustomerAggregate("C1", Decimal("10"), 1, d, d, 2, (d,))

    def test_first_after_last_raises_error(self):
        with pytest.raises(ValueError, match="First purchase"):
            CustomerAggregate(
                "C1",
                Decimal("10"),
                1,
                date(2024, 2, 1),
                date(2024, 1, 1),
                0,
                (date(2024, 1, 1),),
            )


class TestAggregateCustomers:
    """Test aggregate_customers function."""

    def test_empty_input_returns_empty_mapping(self):
        assert aggregate_customers([]) == {}

    def test_groups_by_customer(self):
        """Every transaction contributes to exactly one aggregate."""
        txns = [
            _txn("T1", "C1", date(2024, 1, 1), "10.00"),
            _txn("T2", "C2", date(2024, 1, 2), "5.50"),
            _txn("T3", "C1", date(2024, 1, 3), "2.25", discount=True),
        ]
        aggregates = aggregate_customers(txns)

        assert set(aggregates) == {"C1", "C2"}
        assert sum(a.transaction_count for a in aggregates.values()) == len(txns)
        c1 = aggregates["C1"]
        assert c1.total_spending == Decimal("12.25")
        assert c1.transaction_count == 2
        assert c1.discounted_count == 1
        assert c1.first_purchase_date == date(2024, 1, 1)
        assert c1.last_purchase_date == date(2024, 1, 3)

    def test_purchase_dates_are_sorted_ascending(self):
        """Input order does not matter; dates come out chronological."""
        txns = [
            _txn("T1", "C1", date(2024, 2, 10)),
            _txn("T2", "C1", date(2024, 1, 1)),
            _txn("T3", "C1", date(2024, 1, 11)),
        ]
        agg = aggregate_customers(txns)["C1"]
        assert agg.ordered_purchase_dates == (
            date(2024, 1, 1),
            date(2024, 1, 11),
            date(2024, 2, 10),
        )

    def test_same_day_purchases_are_kept(self):
        d = date(2024, 1, 1)
        agg = aggregate_customers([_txn("T1", "C1", d), _txn("T2", "C1", d)])["C1"]
        assert agg.ordered_purchase_dates == (d, d)
        assert agg.transaction_count == 2

    def test_keys_are_sorted_by_customer_id(self):
        txns = [_txn("T1", "C3", date(2024, 1, 1)), _txn("T2", "C1", date(2024, 1, 1))]
        assert list(aggregate_customers(txns)) == ["C1", "C3"]

    def test_as_of_leaves_out_later_transactions(self):
        """Only purchases on or before the as-of date contribute."""
        txns = [
            _txn("T1", "C1", date(2024, 1, 1), "10.00"),
            _txn("T2", "C2", date(2024, 6, 1), "20.00"),
            _txn("T3", "C2", date(2024, 9, 1), "30.00"),
            _txn("T4", "C3", date(2024, 8, 1), "40.00"),
        ]
        aggregates = aggregate_customers(txns, as_of=date(2024, 7, 1))
        assert list(aggregates) == ["C1", "C2"]
        assert aggregates["C2"].total_spending == Decimal("20.00")
        assert aggregates["C2"].last_purchase_date == date(2024, 6, 1)

    def test_as_of_includes_the_day_itself(self):
        txns = [_txn("T1", "C1", date(2024, 7, 1))]
        assert aggregate_customers(txns, as_of=date(2024, 7, 1))["C1"].transaction_count == 1

    def test_missing_spend_leaves_total_unknown(self):
        """A transaction without an amount makes the customer's total unknown."""
        txns = [
            _txn("T1", "C1", date(2024, 1, 1), "10.00"),
            _txn("T2", "C1", date(2024, 1, 2), None),
        ]
        agg = aggregate_customers(txns)["C1"]
        assert agg.total_spending is None
        assert agg.missing_spend_transaction_ids == ("T2",)
        with pytest.raises(DataIntegrityError) as exc_info:
            agg.require_spending()
        assert exc_info.value.record_id == "T2"

    def test_missing_customer_id_raises_error(self):
        txn = Transaction("T5", "", date(2024, 1, 1), Decimal("1"))
        with pytest.raises(DataIntegrityError, match="missing customer_id") as exc_info:
            aggregate_customers([txn])
        assert exc_info.value.record_id == "T5"

    def test_missing_date_raises_error(self):
        txn = Transaction("T6", "C1", None, Decimal("1"))  # type: ignore[arg-type]
        with pytest.raises(DataIntegrityError, match="missing date"):
            aggregate_customers([txn])

    def test_input_transactions_are_not_mutated(self):
        txns = [_txn("T1", "C1", date(2024, 1, 1))]
        snapshot = list(txns)
        aggregate_customers(txns)
        assert txns == snapshot


class TestSpendingByCustomer:
    def test_returns_totals(self):
        aggregates = aggregate_customers(
            [_txn("T1", "C1", date(2024, 1, 1), "3"), _txn("T2", "C2", date(2024, 1, 1), "4")]
        )
        assert spending_by_customer(aggregates) == {"C1": Decimal("3"), "C2": Decimal("4")}

    def test_unknown_spending_raises_error(self):
        aggregates = aggregate_customers([_txn("T1", "C1", date(2024, 1, 1), None)])
        with pytest.raises(DataIntegrityError):
            spending_by_customer(aggregates)
