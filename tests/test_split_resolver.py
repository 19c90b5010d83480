"""
Tests for per-expense share resolution and input validation.
"""

import pytest

from splitledger.services.balance_engine.errors import (
    DegenerateExpenseError,
    InvalidSplitAmountError,
    MissingSplitAmountError,
    SplitTotalMismatchError,
    UnknownSplitParticipantError,
)
from splitledger.services.balance_engine.split_resolver import (
    equal_shares,
    resolve_shares,
    validate_expense_input,
    validate_split_amounts,
)

from conftest import make_expense


class TestResolveShares:
    """Test share resolution for stored expenses."""

    def test_equal_split(self):
        shares = resolve_shares(make_expense(90, "U1", ["U1", "U2", "U3"]))
        assert shares == {"U1": 30.0, "U2": 30.0, "U3": 30.0}

    def test_equal_split_does_not_round(self):
        shares = resolve_shares(make_expense(100, "U1", ["U1", "U2", "U3"]))
        assert shares["U2"] == pytest.approx(100 / 3)

    def test_custom_split(self):
        expense = make_expense(100, "U1", ["U1", "U2"], split_amounts={"U1": 70, "U2": 30})
        assert resolve_shares(expense) == {"U1": 70.0, "U2": 30.0}

    def test_partial_custom_split_falls_back_to_equal_share(self):
        # 90 / 3 = 30 for the two participants without an entry
        expense = make_expense(90, "U1", ["U1", "U2", "U3"], split_amounts={"U2": 30})
        assert resolve_shares(expense) == {"U1": 30.0, "U2": 30.0, "U3": 30.0}

    def test_split_entries_for_non_participants_are_ignored(self):
        expense = make_expense(60, "U1", ["U1", "U2"], split_amounts={"U1": 30, "U2": 30, "U9": 5})
        assert "U9" not in resolve_shares(expense)

    def test_duplicate_participants_counted_once(self):
        shares = resolve_shares(make_expense(60, "U1", ["U1", "U2", "U2"]))
        assert shares == {"U1": 30.0, "U2": 30.0}

    def test_empty_participants_rejected(self):
        with pytest.raises(DegenerateExpenseError):
            resolve_shares(make_expense(60, "U1", []))

    def test_negative_amount_rejected(self):
        with pytest.raises(DegenerateExpenseError):
            resolve_shares(make_expense(-5, "U1", ["U1", "U2"]))

    def test_zero_amount_gives_zero_shares(self):
        assert resolve_shares(make_expense(0, "U1", ["U1", "U2"])) == {"U1": 0.0, "U2": 0.0}

    def test_negative_custom_share_rejected(self):
        expense = make_expense(60, "U1", ["U1", "U2"], split_amounts={"U1": 80, "U2": -20})
        with pytest.raises(InvalidSplitAmountError) as exc_info:
            resolve_shares(expense)
        assert exc_info.value.participant == "U2"

    def test_mismatched_total_rejected(self):
        expense = make_expense(100, "U1", ["U1", "U2"], split_amounts={"U1": 50, "U2": 40})
        with pytest.raises(SplitTotalMismatchError):
            resolve_shares(expense)

    def test_total_within_tolerance_accepted(self):
        expense = make_expense(100, "U1", ["U1", "U2"], split_amounts={"U1": 50.004, "U2": 50})
        assert resolve_shares(expense)["U1"] == pytest.approx(50.004)

    def test_equal_shares_requires_participants(self):
        with pytest.raises(DegenerateExpenseError):
            equal_shares(10, [])


class TestValidateExpenseInput:
    """Test the checks run before an expense is written."""

    def test_equal_split_returns_none(self):
        assert validate_expense_input(60, "U1", ["U1", "U2"]) is None

    def test_custom_split_is_normalised(self):
        split = validate_expense_input(60, "U1", ["U1", "U2"], {"U1": 40, "U2": 20})
        assert split == {"U1": 40.0, "U2": 20.0}

    @pytest.mark.parametrize("amount", [0, -10, float("nan"), float("inf"), "12", True])
    def test_invalid_amount(self, amount):
        with pytest.raises(DegenerateExpenseError):
            validate_expense_input(amount, "U1", ["U1", "U2"])

    def test_missing_payer(self):
        with pytest.raises(DegenerateExpenseError):
            validate_expense_input(60, "", ["U1", "U2"])

    def test_no_participants(self):
        with pytest.raises(DegenerateExpenseError):
            validate_expense_input(60, "U1", [])

    def test_missing_split_entry(self):
        with pytest.raises(MissingSplitAmountError) as exc_info:
            validate_split_amounts(60, ["U1", "U2"], {"U1": 60})
        assert exc_info.value.participant == "U2"

    def test_unknown_split_participant(self):
        with pytest.raises(UnknownSplitParticipantError) as exc_info:
            validate_split_amounts(60, ["U1", "U2"], {"U1": 30, "U2": 20, "U3": 10})
        assert exc_info.value.participant == "U3"

    @pytest.mark.parametrize("value", [0, -5, "ten", None])
    def test_non_positive_split_entry(self, value):
        with pytest.raises(InvalidSplitAmountError):
            validate_split_amounts(60, ["U1", "U2"], {"U1": 60, "U2": value})

    def test_split_total_mismatch_message(self):
        with pytest.raises(SplitTotalMismatchError) as exc_info:
            validate_split_amounts(100, ["U1", "U2"], {"U1": 50, "U2": 40})
        assert "90.00" in str(exc_info.value)
        assert "100.00" in str(exc_info.value)
