from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from splitledger.schemas.ledger import BalanceScope, DebtPair, Expense, GroupId, Settlement, UserId
from splitledger.services.balance_engine.aggregator import BalanceSummary, compute_balances, summarize_for_user
from splitledger.services.balance_engine.errors import (
    ExpenseNotFoundError,
    NotAGroupMemberError,
    SettlementExpenseImmutableError,
)
from splitledger.services.balance_engine.settlement_recorder import (
    SettlementReceipt,
    SettlementRecorder,
    is_settlement_expense,
)
from splitledger.services.balance_engine.split_resolver import validate_expense_input
from splitledger.services.database_manager.store import LedgerStore
from splitledger.utils.logger import get_logger
from splitledger.utils.settings import get_settings

logger = get_logger(__name__)

EDITABLE_FIELDS = ("description", "amount", "paid_by", "participants", "split_amounts")


class ExpenseManager:
    """Validated expense writes and balance reads over a ledger store."""

    def __init__(self, store: LedgerStore, tolerance: Optional[float] = None):
        self.store = store
        self.tolerance = tolerance if tolerance is not None else get_settings().BALANCE_TOLERANCE
        self.recorder = SettlementRecorder(store)

    async def _check_group_members(self, group_id: Optional[GroupId], users: Sequence[UserId]) -> None:
        if group_id is None:
            return
        group = await self.store.get_group(group_id)
        # Groups unknown to this store are trusted as given
        if group is None:
            return
        for user_id in users:
            if user_id not in group.members:
                raise NotAGroupMemberError(user_id, group_id)

    async def _prepare(self, **fields: Any) -> Expense:
        """Validate user supplied fields and build the expense to store."""
        split_amounts = validate_expense_input(
            fields["amount"],
            fields["paid_by"],
            fields["participants"],
            fields.get("split_amounts"),
            self.tolerance,
        )
        participants = list(dict.fromkeys(fields["participants"]))
        await self._check_group_members(fields.get("group_id"), [fields["paid_by"], *participants])
        return Expense(**{
            **fields,
            "amount": float(fields["amount"]),
            "participants": participants,
            "split_amounts": split_amounts,
        })

    async def create_expense(
        self,
        description: str,
        amount: float,
        paid_by: UserId,
        participants: Sequence[UserId],
        group_id: Optional[GroupId] = None,
        split_amounts: Optional[Dict[UserId, Any]] = None,
        created_by: Optional[UserId] = None,
    ) -> Expense:
        """
        Validate and record a new expense.

        Raises:
            ValidationError: the input is rejected; nothing has been written
            PersistenceError: the store failed the write
        """
        expense = await self._prepare(
            description=description.strip(),
            amount=amount,
            paid_by=paid_by,
            participants=list(participants),
            group_id=group_id,
            split_amounts=dict(split_amounts) if split_amounts else None,
            created_at=datetime.now(timezone.utc),
            created_by=created_by or paid_by,
        )
        stored = await self.store.add_expense(expense)
        logger.info(f"Expense {stored.id} added: {stored.amount:.2f} paid by {stored.paid_by}")
        return stored

    async def get_expense(self, expense_id: str) -> Expense:
        expense = await self.store.get_expense(expense_id)
        if expense is None:
            raise ExpenseNotFoundError(expense_id)
        return expense

    async def list_expenses(self, scope: BalanceScope, viewer_id: Optional[UserId] = None) -> List[Expense]:
        return await self.store.list_expenses(scope, viewer_id)

    async def update_expense(self, expense_id: str, **changes: Any) -> Expense:
        """
        Edit description, amount, payer, participants or splits.

        Changing the participants or the amount without new split amounts
        falls back to an equal split. Settlement expenses cannot be edited.
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise TypeError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        existing = await self.get_expense(expense_id)
        if is_settlement_expense(existing):
            raise SettlementExpenseImmutableError(expense_id)

        updates = {field: value for field, value in changes.items() if value is not None}
        if ("participants" in updates or "amount" in updates) and "split_amounts" not in updates:
            updates["split_amounts"] = None
        if "description" in updates:
            updates["description"] = updates["description"].strip()

        expense = await self._prepare(**{**existing.model_dump(), **updates})
        stored = await self.store.update_expense(expense_id, expense)
        logger.info(f"Expense {expense_id} updated")
        return stored

    async def delete_expense(self, expense_id: str) -> None:
        deleted = await self.store.delete_expense(expense_id)
        if not deleted:
            raise ExpenseNotFoundError(expense_id)
        logger.info(f"Expense {expense_id} deleted")

    async def get_balances(self, scope: BalanceScope, viewer_id: Optional[UserId] = None) -> Dict[DebtPair, float]:
        expenses = await self.store.list_expenses(scope, viewer_id)
        return compute_balances(expenses, scope, viewer_id, self.tolerance)

    async def get_balance_summary(self, scope: BalanceScope, viewer_id: UserId) -> BalanceSummary:
        balances = await self.get_balances(scope, viewer_id)
        return summarize_for_user(balances, viewer_id)

    async def settle_up(
        self,
        debtor: UserId,
        creditor: UserId,
        amount: float,
        group_id: Optional[GroupId] = None,
        debtor_name: Optional[str] = None,
        creditor_name: Optional[str] = None,
    ) -> SettlementReceipt:
        await self._check_group_members(group_id, [debtor, creditor])
        return await self.recorder.record_settlement(
            debtor, creditor, amount, group_id, debtor_name=debtor_name, creditor_name=creditor_name
        )

    async def list_settlements(self, group_id: GroupId) -> List[Settlement]:
        return await self.store.list_settlements(group_id)
