"""Database manager module for the ledger"""

from .connection import Base, close_engine, create_tables, get_engine, get_session_factory
from .operations import ExpenseOperations, GroupOperations, SettlementOperations
from .store import InMemoryLedgerStore, LedgerStore, SqlLedgerStore

__all__ = [
    "Base",
    "get_engine",
    "get_session_factory",
    "create_tables",
    "close_engine",
    "ExpenseOperations",
    "GroupOperations",
    "SettlementOperations",
    "InMemoryLedgerStore",
    "LedgerStore",
    "SqlLedgerStore",
]
