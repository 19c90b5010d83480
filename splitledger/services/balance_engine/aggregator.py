"""
Balance aggregation.

Folds a list of expenses into pairwise net debts. Every call starts from an
empty ledger, so the result depends only on the expenses passed in.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from splitledger.schemas.ledger import (
    BALANCE_TOLERANCE,
    BalanceEntry,
    BalanceScope,
    DebtPair,
    Expense,
    UserId,
    is_personal_scope,
)
from splitledger.services.balance_engine.settlement_recorder import is_settlement_expense
from splitledger.services.balance_engine.split_resolver import resolve_shares
from splitledger.utils.logger import get_logger

logger = get_logger(__name__)


class BalanceSummary(BaseModel):
    """A viewer's slice of the balances."""
    viewer_id: str = Field(..., description="User the summary is computed for")
    total_owed_to_viewer: float = Field(..., description="Total others owe the viewer")
    total_viewer_owes: float = Field(..., description="Total the viewer owes others")
    net_total_balance: float = Field(..., description="total_owed_to_viewer - total_viewer_owes")
    entries: List[BalanceEntry] = Field(default_factory=list, description="Entries involving the viewer")


class _PairLedger:
    """Signed net per unordered pair. Positive means key[0] owes key[1]."""

    def __init__(self) -> None:
        self._nets: Dict[Tuple[UserId, UserId], float] = {}

    def add_claim(self, pair: DebtPair, amount: float) -> None:
        key = pair.unordered_key()
        signed = amount if key[0] == pair.debtor else -amount
        self._nets[key] = self._nets.get(key, 0.0) + signed

    def settle(self, tolerance: float) -> Dict[DebtPair, float]:
        balances: Dict[DebtPair, float] = {}
        for (first, second), net in self._nets.items():
            if abs(net) <= tolerance:
                continue
            if net > 0:
                balances[DebtPair(first, second)] = net
            else:
                balances[DebtPair(second, first)] = -net
        return balances


def select_expenses(
    expenses: Iterable[Expense],
    scope: BalanceScope,
    viewer_id: Optional[UserId] = None,
) -> List[Expense]:
    """
    Keep only the expenses that belong to ``scope``.

    A group scope keeps that group's expenses. The personal scope keeps
    expenses outside any group that the viewer paid for or shares in. This
    is wider than filtering on participants alone: a settlement the viewer
    pays as debtor lists only the creditor as participant, and would
    otherwise never clear the viewer's own debt.
    """
    if is_personal_scope(scope):
        return [
            expense for expense in expenses
            if expense.is_personal and viewer_id is not None and expense.involves(viewer_id)
        ]
    return [expense for expense in expenses if expense.group_id == scope]


def compute_balances(
    expenses: Iterable[Expense],
    scope: BalanceScope,
    viewer_id: Optional[UserId] = None,
    tolerance: float = BALANCE_TOLERANCE,
) -> Dict[DebtPair, float]:
    """
    Fold the expenses of one scope into net debts keyed by (debtor, creditor).

    Each participant other than the payer owes the payer their share. Claims
    in opposite directions between the same two users cancel each other, so
    at most one direction is reported per pair, and pairs whose net is
    within ``tolerance`` of zero are left out.
    """
    ledger = _PairLedger()
    relevant = select_expenses(expenses, scope, viewer_id)

    for expense in relevant:
        shares = resolve_shares(expense, tolerance)
        for participant, share in shares.items():
            if participant == expense.paid_by:
                continue
            ledger.add_claim(DebtPair(participant, expense.paid_by), share)

    balances = ledger.settle(tolerance)
    logger.debug(
        f"Computed {len(balances)} balance(s) from {len(relevant)} expense(s) for scope {scope or 'personal'}"
    )
    return balances


def balance_entries(balances: Dict[DebtPair, float]) -> List[BalanceEntry]:
    """Balances as entries, largest first."""
    entries = [
        BalanceEntry(debtor=pair.debtor, creditor=pair.creditor, amount=amount)
        for pair, amount in balances.items()
    ]
    entries.sort(key=lambda entry: (-entry.amount, entry.debtor, entry.creditor))
    return entries


def summarize_for_user(balances: Dict[DebtPair, float], viewer_id: UserId) -> BalanceSummary:
    owed_to_viewer = 0.0
    viewer_owes = 0.0
    entries = []

    for entry in balance_entries(balances):
        if entry.creditor == viewer_id:
            owed_to_viewer += entry.amount
        elif entry.debtor == viewer_id:
            viewer_owes += entry.amount
        else:
            continue
        entries.append(entry)

    return BalanceSummary(
        viewer_id=viewer_id,
        total_owed_to_viewer=owed_to_viewer,
        total_viewer_owes=viewer_owes,
        net_total_balance=owed_to_viewer - viewer_owes,
        entries=entries,
    )


def total_spent(expenses: Iterable[Expense]) -> float:
    """Sum of genuine expenses, settlements excluded."""
    return sum(expense.amount for expense in expenses if not is_settlement_expense(expense))
