"""
Shared FastAPI dependencies and error translation for the ledger routes.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException

from splitledger.services.balance_engine.errors import (
    ExpenseNotFoundError,
    LedgerError,
    PersistenceError,
    ValidationError,
)
from splitledger.services.database_manager.store import LedgerStore, SqlLedgerStore
from splitledger.services.expense_manager import ExpenseManager


def get_ledger_store() -> LedgerStore:
    """Store used by the routes. Tests override this dependency."""
    return SqlLedgerStore()


def get_expense_manager(store: LedgerStore = Depends(get_ledger_store)) -> ExpenseManager:
    return ExpenseManager(store)


def to_http_exception(error: LedgerError) -> HTTPException:
    if isinstance(error, ValidationError):
        detail = {"error": type(error).__name__, "message": error.message}
        if error.participant is not None:
            detail["participant"] = error.participant
        return HTTPException(status_code=400, detail=detail)
    if isinstance(error, ExpenseNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, PersistenceError):
        return HTTPException(status_code=503, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
