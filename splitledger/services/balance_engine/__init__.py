"""Balance engine: split resolution, balance aggregation and settle-up recording"""

from .aggregator import BalanceSummary, balance_entries, compute_balances, select_expenses, summarize_for_user, total_spent
from .errors import (
    DegenerateExpenseError,
    ExpenseNotFoundError,
    InvalidSplitAmountError,
    LedgerError,
    MissingSplitAmountError,
    NotAGroupMemberError,
    PersistenceError,
    SettlementExpenseImmutableError,
    SplitTotalMismatchError,
    UnknownSplitParticipantError,
    ValidationError,
)
from .settlement_recorder import SettlementReceipt, SettlementRecorder, build_settlement_expense, is_settlement_expense
from .split_resolver import equal_shares, resolve_shares, validate_expense_input, validate_split_amounts

__all__ = [
    "BalanceSummary",
    "balance_entries",
    "compute_balances",
    "select_expenses",
    "summarize_for_user",
    "total_spent",
    "DegenerateExpenseError",
    "ExpenseNotFoundError",
    "InvalidSplitAmountError",
    "LedgerError",
    "MissingSplitAmountError",
    "NotAGroupMemberError",
    "PersistenceError",
    "SettlementExpenseImmutableError",
    "SplitTotalMismatchError",
    "UnknownSplitParticipantError",
    "ValidationError",
    "SettlementReceipt",
    "SettlementRecorder",
    "build_settlement_expense",
    "is_settlement_expense",
    "equal_shares",
    "resolve_shares",
    "validate_expense_input",
    "validate_split_amounts",
]
