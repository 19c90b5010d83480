"""
Schemas Package

This package contains the ledger records and the Pydantic models used by the API.
"""

from .ledger import (
    BALANCE_TOLERANCE,
    PERSONAL_SCOPE,
    BalanceEntry,
    DebtPair,
    Expense,
    Group,
    Settlement,
)

__all__ = [
    "BALANCE_TOLERANCE",
    "PERSONAL_SCOPE",
    "BalanceEntry",
    "DebtPair",
    "Expense",
    "Group",
    "Settlement",
]
