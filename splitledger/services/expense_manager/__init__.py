"""Expense manager: validated expense writes, balance reads and settle-up"""

from .manager import ExpenseManager

__all__ = ["ExpenseManager"]
