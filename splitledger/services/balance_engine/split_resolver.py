"""
Per-expense share resolution and the input checks run before an expense is
written.
"""

from __future__ import annotations

import math
from typing import Dict, List, Mapping, Optional, Sequence

from splitledger.schemas.ledger import BALANCE_TOLERANCE, Expense
from splitledger.services.balance_engine.errors import (
    DegenerateExpenseError,
    InvalidSplitAmountError,
    MissingSplitAmountError,
    SplitTotalMismatchError,
    UnknownSplitParticipantError,
)


def _unique(participants: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(participants))


def equal_shares(amount: float, participants: Sequence[str]) -> Dict[str, float]:
    """Divide ``amount`` evenly. No remainder redistribution."""
    unique_participants = _unique(participants)
    if not unique_participants:
        raise DegenerateExpenseError("An expense needs at least one participant")
    per_person = amount / len(unique_participants)
    return {participant: per_person for participant in unique_participants}


def resolve_shares(expense: Expense, tolerance: float = BALANCE_TOLERANCE) -> Dict[str, float]:
    """
    Compute how much each participant owes for one expense.

    Participants with an entry in ``split_amounts`` owe that entry; everyone
    else owes the equal share. Split entries for users who are not
    participants are ignored.

    Raises:
        DegenerateExpenseError: no participants, or a negative amount
        InvalidSplitAmountError: a custom share is negative
        SplitTotalMismatchError: resolved shares do not add up to the amount
    """
    if expense.amount < 0:
        raise DegenerateExpenseError(f"Expense amount must not be negative, got {expense.amount}")

    shares = equal_shares(expense.amount, expense.participants)
    if not expense.split_amounts:
        return shares

    for participant in shares:
        custom = expense.split_amounts.get(participant)
        if custom is None:
            continue
        if custom < 0:
            raise InvalidSplitAmountError(participant, custom)
        shares[participant] = float(custom)

    total = sum(shares.values())
    if abs(total - expense.amount) > tolerance:
        raise SplitTotalMismatchError(total, expense.amount)

    return shares


def _is_positive_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def validate_split_amounts(
    amount: float,
    participants: Sequence[str],
    split_amounts: Mapping[str, object],
    tolerance: float = BALANCE_TOLERANCE,
) -> Dict[str, float]:
    """Check a user supplied custom split and return it as floats."""
    unique_participants = _unique(participants)

    for participant in split_amounts:
        if participant not in unique_participants:
            raise UnknownSplitParticipantError(participant)

    validated: Dict[str, float] = {}
    for participant in unique_participants:
        if participant not in split_amounts:
            raise MissingSplitAmountError(participant)
        value = split_amounts[participant]
        if not _is_positive_number(value):
            raise InvalidSplitAmountError(participant, value)
        validated[participant] = float(value)

    total = sum(validated.values())
    if abs(total - amount) > tolerance:
        raise SplitTotalMismatchError(total, amount)

    return validated


def validate_expense_input(
    amount: float,
    paid_by: Optional[str],
    participants: Sequence[str],
    split_amounts: Optional[Mapping[str, object]] = None,
    tolerance: float = BALANCE_TOLERANCE,
) -> Optional[Dict[str, float]]:
    """
    Validate the fields of a new or edited expense.

    Returns the normalised custom split, or None for an equal split.
    """
    if not _is_positive_number(amount):
        raise DegenerateExpenseError(f"Please enter a valid amount, got {amount!r}")
    if not paid_by:
        raise DegenerateExpenseError("An expense needs a payer")
    if not participants:
        raise DegenerateExpenseError("An expense needs at least one participant")

    if split_amounts:
        return validate_split_amounts(amount, participants, split_amounts, tolerance)
    return None
