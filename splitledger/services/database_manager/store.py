"""
The storage boundary of the ledger.

The balance engine only needs two things from storage: every expense of a
scope, and a place to append new expenses and settlements. LedgerStore is
that contract. Writes publish a LedgerChange on the optional feed once they
have succeeded.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from splitledger.schemas.ledger import BalanceScope, Expense, Group, Settlement, UserId, is_personal_scope
from splitledger.services.balance_engine.aggregator import select_expenses
from splitledger.services.balance_engine.errors import ExpenseNotFoundError
from splitledger.services.change_feed.feed import LedgerChange, LedgerChangeFeed
from splitledger.utils.logger import get_logger

from .operations import ExpenseOperations, GroupOperations, SettlementOperations

logger = get_logger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive timestamps are taken to be UTC so records stay comparable"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _expense_users(expense: Expense) -> List[UserId]:
    return list(dict.fromkeys([expense.paid_by, *expense.participants]))


class LedgerStore(ABC):
    """Reads and appends ledger records."""

    def __init__(self, feed: Optional[LedgerChangeFeed] = None):
        self.feed = feed

    async def _notify(self, change: LedgerChange) -> None:
        if self.feed is not None:
            await self.feed.publish(change)

    @abstractmethod
    async def list_expenses(self, scope: BalanceScope, viewer_id: Optional[UserId] = None) -> List[Expense]:
        """Every expense of ``scope``, newest first."""

    @abstractmethod
    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        ...

    @abstractmethod
    async def _insert_expense(self, expense: Expense) -> Expense:
        ...

    @abstractmethod
    async def _replace_expense(self, expense_id: str, expense: Expense) -> Expense:
        ...

    @abstractmethod
    async def _remove_expense(self, expense_id: str) -> bool:
        ...

    @abstractmethod
    async def _insert_settlement(self, settlement: Settlement) -> Settlement:
        ...

    @abstractmethod
    async def list_settlements(self, group_id: str) -> List[Settlement]:
        ...

    @abstractmethod
    async def _insert_group(self, group: Group) -> Group:
        ...

    @abstractmethod
    async def get_group(self, group_id: str) -> Optional[Group]:
        ...

    async def add_expense(self, expense: Expense) -> Expense:
        stored = await self._insert_expense(expense)
        await self._notify(LedgerChange(
            kind="expense", action="insert", group_id=stored.group_id, user_ids=_expense_users(stored)
        ))
        return stored

    async def update_expense(self, expense_id: str, expense: Expense) -> Expense:
        previous = await self.get_expense(expense_id)
        if previous is None:
            raise ExpenseNotFoundError(expense_id)

        stored = await self._replace_expense(expense_id, expense)
        await self._notify(LedgerChange(
            kind="expense",
            action="update",
            group_id=stored.group_id,
            user_ids=list(dict.fromkeys(_expense_users(previous) + _expense_users(stored))),
        ))
        # An expense moved between scopes also changes the scope it left
        if previous.group_id != stored.group_id:
            await self._notify(LedgerChange(
                kind="expense", action="update", group_id=previous.group_id, user_ids=_expense_users(previous)
            ))
        return stored

    async def delete_expense(self, expense_id: str) -> bool:
        previous = await self.get_expense(expense_id)
        if previous is None:
            return False

        deleted = await self._remove_expense(expense_id)
        if deleted:
            await self._notify(LedgerChange(
                kind="expense", action="delete", group_id=previous.group_id, user_ids=_expense_users(previous)
            ))
        return deleted

    async def add_settlement(self, settlement: Settlement) -> Settlement:
        stored = await self._insert_settlement(settlement)
        await self._notify(LedgerChange(
            kind="settlement",
            action="insert",
            group_id=stored.group_id,
            user_ids=[stored.from_user, stored.to_user],
        ))
        return stored

    async def add_group(self, group: Group) -> Group:
        stored = await self._insert_group(group)
        await self._notify(LedgerChange(kind="group", action="insert", group_id=stored.id, user_ids=stored.members))
        return stored


class SqlLedgerStore(LedgerStore):
    """LedgerStore backed by the SQL database."""

    async def list_expenses(self, scope: BalanceScope, viewer_id: Optional[UserId] = None) -> List[Expense]:
        if is_personal_scope(scope):
            if viewer_id is None:
                return []
            return await ExpenseOperations.list_personal_expenses(viewer_id)
        return await ExpenseOperations.list_group_expenses(scope)

    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        return await ExpenseOperations.get_expense(expense_id)

    async def _insert_expense(self, expense: Expense) -> Expense:
        return await ExpenseOperations.create_expense(expense)

    async def _replace_expense(self, expense_id: str, expense: Expense) -> Expense:
        return await ExpenseOperations.update_expense(expense_id, expense)

    async def _remove_expense(self, expense_id: str) -> bool:
        return await ExpenseOperations.delete_expense(expense_id)

    async def _insert_settlement(self, settlement: Settlement) -> Settlement:
        return await SettlementOperations.create_settlement(settlement)

    async def list_settlements(self, group_id: str) -> List[Settlement]:
        return await SettlementOperations.list_group_settlements(group_id)

    async def _insert_group(self, group: Group) -> Group:
        return await GroupOperations.create_group(group)

    async def get_group(self, group_id: str) -> Optional[Group]:
        return await GroupOperations.get_group(group_id)


class InMemoryLedgerStore(LedgerStore):
    """Dict-backed LedgerStore for tests and offline use."""

    def __init__(self, feed: Optional[LedgerChangeFeed] = None, expenses: Optional[List[Expense]] = None):
        super().__init__(feed)
        self._expenses: Dict[str, Expense] = {}
        self._settlements: Dict[str, Settlement] = {}
        self._groups: Dict[str, Group] = {}
        for expense in expenses or []:
            self._store_expense(expense)

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def _store_expense(self, expense: Expense) -> Expense:
        stored = expense.model_copy(update={
            "id": expense.id or self._new_id(),
            "created_at": _as_utc(expense.created_at) or self._now(),
        })
        self._expenses[stored.id] = stored
        return stored

    @property
    def expenses(self) -> List[Expense]:
        return list(self._expenses.values())

    async def list_expenses(self, scope: BalanceScope, viewer_id: Optional[UserId] = None) -> List[Expense]:
        selected = select_expenses(self._expenses.values(), scope, viewer_id)
        return sorted(selected, key=lambda expense: expense.created_at, reverse=True)

    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        return self._expenses.get(expense_id)

    async def _insert_expense(self, expense: Expense) -> Expense:
        return self._store_expense(expense.model_copy(update={"id": None}))

    async def _replace_expense(self, expense_id: str, expense: Expense) -> Expense:
        previous = self._expenses.get(expense_id)
        if previous is None:
            raise ExpenseNotFoundError(expense_id)
        stored = expense.model_copy(update={"id": expense_id, "created_at": previous.created_at})
        self._expenses[expense_id] = stored
        return stored

    async def _remove_expense(self, expense_id: str) -> bool:
        return self._expenses.pop(expense_id, None) is not None

    async def _insert_settlement(self, settlement: Settlement) -> Settlement:
        stored = settlement.model_copy(update={
            "id": self._new_id(),
            "settled_at": _as_utc(settlement.settled_at) or self._now(),
        })
        self._settlements[stored.id] = stored
        return stored

    async def list_settlements(self, group_id: str) -> List[Settlement]:
        settlements = [s for s in self._settlements.values() if s.group_id == group_id]
        return sorted(settlements, key=lambda s: s.settled_at, reverse=True)

    async def _insert_group(self, group: Group) -> Group:
        stored = group.model_copy(update={
            "id": self._new_id(),
            "members": list(dict.fromkeys([group.created_by, *group.members])),
            "created_at": _as_utc(group.created_at) or self._now(),
        })
        self._groups[stored.id] = stored
        return stored

    async def get_group(self, group_id: str) -> Optional[Group]:
        return self._groups.get(group_id)
