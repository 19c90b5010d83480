"""
Database models package for the ledger
"""

from .base import Base
from .expense import Expense, ExpenseSplit
from .group import Group, GroupMember
from .settlement import Settlement

__all__ = [
    "Base",
    "Expense",
    "ExpenseSplit",
    "Group",
    "GroupMember",
    "Settlement"
]
