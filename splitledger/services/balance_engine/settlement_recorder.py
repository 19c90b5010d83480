"""
Settle-up recording.

A settlement is written twice: once as an audit record, and once as an
expense paid by the debtor with the creditor as the only participant. The
second record is what cancels the debt when balances are recomputed.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel

from splitledger.schemas.ledger import Expense, GroupId, Settlement, UserId
from splitledger.services.balance_engine.errors import (
    DegenerateExpenseError,
    LedgerError,
    PersistenceError,
)
from splitledger.services.balance_engine.split_resolver import _is_positive_number
from splitledger.utils.logger import get_logger

if TYPE_CHECKING:
    from splitledger.services.database_manager.store import LedgerStore

logger = get_logger(__name__)

T = TypeVar("T")

SETTLEMENT_DESCRIPTION_PREFIXES = ("settlement:", "settle up:")


def is_settlement_expense(expense: Expense) -> bool:
    """True for synthetic settle-up expenses, flagged or recognised by description."""
    if expense.is_settlement:
        return True
    description = (expense.description or "").strip().lower()
    return description.startswith(SETTLEMENT_DESCRIPTION_PREFIXES)


def build_settlement_expense(
    debtor: UserId,
    creditor: UserId,
    amount: float,
    group_id: Optional[GroupId] = None,
    settled_at: Optional[datetime] = None,
    debtor_name: Optional[str] = None,
    creditor_name: Optional[str] = None,
) -> Expense:
    """The offsetting expense: debtor pays, creditor is the sole participant."""
    return Expense(
        description=f"Settlement: {debtor_name or debtor} paid {creditor_name or creditor}",
        amount=amount,
        paid_by=debtor,
        participants=[creditor],
        group_id=group_id,
        is_settlement=True,
        created_at=settled_at,
        created_by=debtor,
    )


class SettlementReceipt(BaseModel):
    settlement: Settlement
    expense: Expense


class SettlementRecorder:
    """Writes settle-up actions through a ledger store."""

    def __init__(self, store: "LedgerStore", clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @staticmethod
    def _validate(debtor: UserId, creditor: UserId, amount: float) -> None:
        if not debtor or not creditor:
            raise DegenerateExpenseError("A settlement needs both a debtor and a creditor")
        if debtor == creditor:
            raise DegenerateExpenseError("A user cannot settle a debt with themselves", participant=debtor)
        if not _is_positive_number(amount):
            raise DegenerateExpenseError(f"Settlement amount must be a positive number, got {amount!r}")

    @staticmethod
    async def _write(operation: str, write: Awaitable[T]) -> T:
        try:
            return await write
        except LedgerError:
            raise
        except Exception as e:
            raise PersistenceError(operation, e) from e

    async def record_settlement(
        self,
        debtor: UserId,
        creditor: UserId,
        amount: float,
        group_id: Optional[GroupId] = None,
        debtor_name: Optional[str] = None,
        creditor_name: Optional[str] = None,
    ) -> SettlementReceipt:
        """
        Record that ``debtor`` paid ``creditor`` ``amount``.

        Any positive amount is accepted; an amount below the outstanding debt
        leaves the remainder in place once balances are recomputed.

        Raises:
            DegenerateExpenseError: missing users, self-settlement, or an amount that is
                not a positive finite number
            PersistenceError: either write failed. Callers should re-fetch
                from the store rather than trust local state.
        """
        self._validate(debtor, creditor, amount)
        settled_at = self._clock()

        settlement = Settlement(
            from_user=debtor,
            to_user=creditor,
            amount=float(amount),
            group_id=group_id,
            settled_at=settled_at,
        )
        try:
            stored_settlement = await self._write("add_settlement", self.store.add_settlement(settlement))
        except PersistenceError as e:
            logger.error(f"Failed to record settlement {debtor} -> {creditor} ({amount}): {e}")
            raise

        expense = build_settlement_expense(
            debtor,
            creditor,
            float(amount),
            group_id=group_id,
            settled_at=settled_at,
            debtor_name=debtor_name,
            creditor_name=creditor_name,
        )
        try:
            stored_expense = await self._write("add_expense", self.store.add_expense(expense))
        except PersistenceError as e:
            logger.error(
                f"Settlement {stored_settlement.id} was recorded but its offsetting expense was not: {e}"
            )
            raise

        logger.info(
            f"Recorded settlement {stored_settlement.id}: {debtor} paid {creditor} {amount:.2f}"
            f" (group {group_id or 'personal'})"
        )
        return SettlementReceipt(settlement=stored_settlement, expense=stored_expense)
