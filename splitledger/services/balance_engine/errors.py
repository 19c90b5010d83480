"""
Exceptions raised by the balance engine and the storage boundary.
"""

from __future__ import annotations

from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger errors"""
    pass


class ValidationError(LedgerError):
    """User supplied input that cannot be recorded. Raised before any write."""

    def __init__(self, message: str, participant: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.participant = participant


class DegenerateExpenseError(ValidationError):
    """Empty participants, non-positive amount, missing payer and similar."""
    pass


class InvalidSplitAmountError(ValidationError):
    def __init__(self, participant: str, amount: object):
        super().__init__(
            f"Split amount for participant {participant} must be a positive number, got {amount!r}",
            participant=participant,
        )
        self.amount = amount


class MissingSplitAmountError(ValidationError):
    def __init__(self, participant: str):
        super().__init__(f"No split amount given for participant {participant}", participant=participant)


class UnknownSplitParticipantError(ValidationError):
    def __init__(self, participant: str):
        super().__init__(f"Split amount given for {participant}, who is not a participant", participant=participant)


class SplitTotalMismatchError(ValidationError):
    def __init__(self, computed_total: float, expected_total: float):
        super().__init__(
            f"Split amounts ({computed_total:.2f}) must equal the total ({expected_total:.2f})"
        )
        self.computed_total = computed_total
        self.expected_total = expected_total


class NotAGroupMemberError(ValidationError):
    def __init__(self, participant: str, group_id: str):
        super().__init__(f"User {participant} is not a member of group {group_id}", participant=participant)
        self.group_id = group_id


class SettlementExpenseImmutableError(ValidationError):
    def __init__(self, expense_id: str):
        super().__init__(f"Expense {expense_id} is a settlement and cannot be edited")
        self.expense_id = expense_id


class PersistenceError(LedgerError):
    """The store rejected or failed a read or write."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        super().__init__(message or f"Persistence operation '{operation}' failed: {cause}")
        self.operation = operation
        self.cause = cause


class ExpenseNotFoundError(PersistenceError):
    def __init__(self, expense_id: str):
        super().__init__("get_expense", message=f"Expense {expense_id} not found")
        self.expense_id = expense_id
