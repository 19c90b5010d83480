"""
Tests for folding expenses into pairwise net balances.
"""

import itertools

import pytest

from splitledger.schemas.ledger import PERSONAL_SCOPE, DebtPair
from splitledger.services.balance_engine.aggregator import (
    balance_entries,
    compute_balances,
    summarize_for_user,
    total_spent,
)
from splitledger.services.balance_engine.settlement_recorder import build_settlement_expense

from conftest import make_expense


class TestComputeBalances:
    """Test balance aggregation within one group."""

    def test_single_equal_split(self):
        balances = compute_balances([make_expense(90, "U1", ["U1", "U2", "U3"])], "G")
        assert balances == {DebtPair("U2", "U1"): 30.0, DebtPair("U3", "U1"): 30.0}

    def test_opposite_debts_are_netted(self):
        expenses = [
            make_expense(60, "U1", ["U1", "U2"]),
            make_expense(20, "U2", ["U1", "U2"]),
        ]
        assert compute_balances(expenses, "G") == {DebtPair("U2", "U1"): 20.0}

    def test_direction_flips_when_net_changes_sign(self):
        expenses = [
            make_expense(60, "U1", ["U1", "U2"]),
            make_expense(100, "U2", ["U1", "U2"]),
        ]
        assert compute_balances(expenses, "G") == {DebtPair("U1", "U2"): 20.0}

    def test_exactly_cancelling_debts_are_dropped(self):
        expenses = [
            make_expense(40, "U1", ["U1", "U2"]),
            make_expense(40, "U2", ["U1", "U2"]),
        ]
        assert compute_balances(expenses, "G") == {}

    def test_net_within_tolerance_is_dropped(self):
        expenses = [
            make_expense(60, "U1", ["U1", "U2"]),
            make_expense(60.01, "U2", ["U1", "U2"]),
        ]
        assert compute_balances(expenses, "G") == {}

    def test_payer_outside_participants(self):
        balances = compute_balances([make_expense(60, "U1", ["U2", "U3"])], "G")
        assert balances == {DebtPair("U2", "U1"): 30.0, DebtPair("U3", "U1"): 30.0}

    def test_payer_only_expense_has_no_effect(self):
        assert compute_balances([make_expense(25, "U1", ["U1"])], "G") == {}

    def test_custom_split(self):
        expense = make_expense(100, "U1", ["U1", "U2", "U3"], split_amounts={"U1": 20, "U2": 50, "U3": 30})
        balances = compute_balances([expense], "G")
        assert balances == {DebtPair("U2", "U1"): 50.0, DebtPair("U3", "U1"): 30.0}

    def test_no_pair_reported_in_both_directions(self):
        expenses = [
            make_expense(90, "U1", ["U1", "U2", "U3"]),
            make_expense(45, "U2", ["U1", "U2", "U3"]),
            make_expense(30, "U3", ["U1", "U3"]),
        ]
        balances = compute_balances(expenses, "G")
        for pair in balances:
            assert pair.reversed() not in balances
        assert all(amount > 0.01 for amount in balances.values())

    def test_order_independent(self):
        expenses = [
            make_expense(90, "U1", ["U1", "U2", "U3"]),
            make_expense(45, "U2", ["U1", "U2", "U3"]),
            make_expense(30, "U3", ["U1", "U3"]),
            make_expense(12.5, "U2", ["U1"]),
        ]
        expected = compute_balances(expenses, "G")
        for ordering in itertools.permutations(expenses):
            result = compute_balances(list(ordering), "G")
            assert result.keys() == expected.keys()
            for pair, amount in expected.items():
                assert result[pair] == pytest.approx(amount)

    def test_recompute_is_idempotent(self):
        expenses = [make_expense(90, "U1", ["U1", "U2", "U3"]), make_expense(20, "U2", ["U1", "U2"])]
        assert compute_balances(expenses, "G") == compute_balances(expenses, "G")

    def test_other_groups_are_ignored(self):
        expenses = [
            make_expense(60, "U1", ["U1", "U2"], group_id="G"),
            make_expense(80, "U2", ["U1", "U2"], group_id="H"),
            make_expense(10, "U2", ["U1", "U2"], group_id=None),
        ]
        assert compute_balances(expenses, "G") == {DebtPair("U2", "U1"): 30.0}

    def test_settlement_expense_cancels_debt(self):
        expenses = [
            make_expense(60, "U1", ["U1", "U2"]),
            build_settlement_expense("U2", "U1", 30, group_id="G"),
        ]
        assert compute_balances(expenses, "G") == {}

    def test_partial_settlement_leaves_remainder(self):
        expenses = [
            make_expense(120, "U1", ["U1", "U2"]),
            build_settlement_expense("U2", "U1", 20, group_id="G"),
        ]
        assert compute_balances(expenses, "G") == {DebtPair("U2", "U1"): 40.0}


class TestPersonalScope:
    """Test balances of expenses outside any group."""

    def test_only_viewer_expenses_counted(self):
        expenses = [
            make_expense(60, "U1", ["U1", "U2"], group_id=None),
            make_expense(40, "U3", ["U3", "U4"], group_id=None),
            make_expense(80, "U1", ["U1", "U2"], group_id="G"),
        ]
        assert compute_balances(expenses, PERSONAL_SCOPE, "U2") == {DebtPair("U2", "U1"): 30.0}

    def test_none_scope_is_personal(self):
        expenses = [make_expense(60, "U1", ["U1", "U2"], group_id=None)]
        assert compute_balances(expenses, None, "U1") == {DebtPair("U2", "U1"): 30.0}

    def test_settlement_paid_by_viewer_is_included(self):
        expenses = [
            make_expense(60, "U1", ["U1", "U2"], group_id=None),
            build_settlement_expense("U2", "U1", 30),
        ]
        assert compute_balances(expenses, PERSONAL_SCOPE, "U2") == {}

    def test_personal_scope_without_viewer_is_empty(self):
        expenses = [make_expense(60, "U1", ["U1", "U2"], group_id=None)]
        assert compute_balances(expenses, PERSONAL_SCOPE) == {}


class TestBalanceViews:
    """Test entries, per-user summaries and totals."""

    def test_entries_sorted_largest_first(self):
        balances = {DebtPair("U2", "U1"): 10.0, DebtPair("U3", "U1"): 45.0}
        entries = balance_entries(balances)
        assert [entry.debtor for entry in entries] == ["U3", "U2"]

    def test_summary_for_viewer(self):
        balances = {
            DebtPair("U2", "U1"): 30.0,
            DebtPair("U1", "U3"): 12.5,
            DebtPair("U2", "U3"): 7.0,
        }
        summary = summarize_for_user(balances, "U1")
        assert summary.total_owed_to_viewer == 30.0
        assert summary.total_viewer_owes == 12.5
        assert summary.net_total_balance == 17.5
        assert len(summary.entries) == 2

    def test_total_spent_excludes_settlements(self):
        expenses = [
            make_expense(60, "U1", ["U1", "U2"]),
            build_settlement_expense("U2", "U1", 30, group_id="G"),
            make_expense(15, "U2", ["U1"], description="Settle up: U2 and U1"),
        ]
        assert total_spent(expenses) == 60
