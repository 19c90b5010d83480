from __future__ import annotations

from decimal import Decimal
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar
from uuid import UUID

from sqlalchemy import delete, exists, or_, select
from sqlalchemy.exc import SQLAlchemyError

from splitledger.models import Expense as ExpenseModel
from splitledger.models import ExpenseSplit
from splitledger.models import Group as GroupModel
from splitledger.models import GroupMember
from splitledger.models import Settlement as SettlementModel
from splitledger.schemas.ledger import Expense, Group, Settlement
from splitledger.services.balance_engine.errors import (
    ExpenseNotFoundError,
    LedgerError,
    PersistenceError,
    ValidationError,
)
from splitledger.services.balance_engine.split_resolver import resolve_shares
from splitledger.utils.logger import get_logger

from .connection import get_session_factory

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def translate_db_errors(operation: str) -> Callable[[F], F]:
    """Re-raise database failures as PersistenceError"""
    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except LedgerError:
                raise
            except (SQLAlchemyError, OSError) as e:
                logger.error(f"Database operation {operation} failed: {e}")
                raise PersistenceError(operation, e) from e
        return wrapper  # type: ignore[return-value]
    return decorator


def _parse_uuid(value: Optional[str]) -> Optional[UUID]:
    if value is None:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _group_uuid(group_id: Optional[str]) -> Optional[UUID]:
    """Group IDs written to the database must be UUIDs; None means personal"""
    if group_id is None:
        return None
    group_uuid = _parse_uuid(group_id)
    if group_uuid is None:
        raise ValidationError(f"Invalid group ID {group_id!r}")
    return group_uuid


def _to_float(value: Optional[Decimal]) -> float:
    return float(value) if value is not None else 0.0


class ExpenseOperations:
    """Operations for expenses and their materialised splits"""

    @staticmethod
    def _to_domain(row: ExpenseModel) -> Expense:
        participants = [split.user_id for split in row.splits]
        split_amounts = None
        if row.has_custom_splits:
            split_amounts = {split.user_id: _to_float(split.amount_owed) for split in row.splits}

        return Expense(
            id=str(row.id),
            description=row.description,
            amount=_to_float(row.amount),
            paid_by=row.paid_by,
            participants=participants,
            group_id=str(row.group_id) if row.group_id else None,
            split_amounts=split_amounts,
            is_settlement=row.is_settlement,
            created_at=row.created_at,
            created_by=row.created_by,
        )

    @staticmethod
    def _build_splits(expense: Expense) -> List[ExpenseSplit]:
        shares = resolve_shares(expense)
        return [
            ExpenseSplit(user_id=user_id, amount_owed=Decimal(str(share)), position=position)
            for position, (user_id, share) in enumerate(shares.items())
        ]

    @staticmethod
    @translate_db_errors("list_group_expenses")
    async def list_group_expenses(group_id: str) -> List[Expense]:
        """Get all expenses of one group, newest first"""
        group_uuid = _parse_uuid(group_id)
        if group_uuid is None:
            return []

        session_factory = get_session_factory()
        session = session_factory()
        try:
            result = await session.execute(
                select(ExpenseModel)
                .where(ExpenseModel.group_id == group_uuid)
                .order_by(ExpenseModel.created_at.desc())
            )
            return [ExpenseOperations._to_domain(row) for row in result.scalars().all()]
        finally:
            await session.close()

    @staticmethod
    @translate_db_errors("list_personal_expenses")
    async def list_personal_expenses(viewer_id: str) -> List[Expense]:
        """Get expenses outside any group that the viewer paid for or shares in"""
        session_factory = get_session_factory()
        session = session_factory()
        try:
            viewer_has_split = exists().where(
                ExpenseSplit.expense_id == ExpenseModel.id,
                ExpenseSplit.user_id == viewer_id,
            )
            result = await session.execute(
                select(ExpenseModel)
                .where(ExpenseModel.group_id.is_(None))
                .where(or_(ExpenseModel.paid_by == viewer_id, viewer_has_split))
                .order_by(ExpenseModel.created_at.desc())
            )
            return [ExpenseOperations._to_domain(row) for row in result.scalars().all()]
        finally:
            await session.close()

    @staticmethod
    @translate_db_errors("get_expense")
    async def get_expense(expense_id: str) -> Optional[Expense]:
        expense_uuid = _parse_uuid(expense_id)
        if expense_uuid is None:
            return None

        session_factory = get_session_factory()
        session = session_factory()
        try:
            row = await session.get(ExpenseModel, expense_uuid)
            return ExpenseOperations._to_domain(row) if row else None
        finally:
            await session.close()

    @staticmethod
    @translate_db_errors("create_expense")
    async def create_expense(expense: Expense) -> Expense:
        """Insert an expense with its splits and return it with its ID"""
        session_factory = get_session_factory()
        session = session_factory()
        try:
            row = ExpenseModel(
                description=expense.description,
                amount=Decimal(str(expense.amount)),
                paid_by=expense.paid_by,
                group_id=_group_uuid(expense.group_id),
                is_settlement=expense.is_settlement,
                has_custom_splits=expense.has_custom_splits,
                created_by=expense.created_by,
                splits=ExpenseOperations._build_splits(expense),
            )
            if expense.created_at is not None:
                row.created_at = expense.created_at
            session.add(row)
            await session.commit()
            await session.refresh(row)
            await session.refresh(row, attribute_names=["splits"])

            logger.info(f"Created expense {row.id} ({expense.amount:.2f} paid by {expense.paid_by})")
            return ExpenseOperations._to_domain(row)
        except SQLAlchemyError:
            await session.rollback()
            raise
        finally:
            await session.close()

    @staticmethod
    @translate_db_errors("update_expense")
    async def update_expense(expense_id: str, expense: Expense) -> Expense:
        """Replace the editable fields and the splits of an expense"""
        expense_uuid = _parse_uuid(expense_id)
        if expense_uuid is None:
            raise ExpenseNotFoundError(expense_id)

        session_factory = get_session_factory()
        session = session_factory()
        try:
            row = await session.get(ExpenseModel, expense_uuid)
            if row is None:
                raise ExpenseNotFoundError(expense_id)

            row.description = expense.description
            row.amount = Decimal(str(expense.amount))
            row.paid_by = expense.paid_by
            row.group_id = _group_uuid(expense.group_id)
            row.has_custom_splits = expense.has_custom_splits

            # Flush the removal first so the (expense_id, user_id) constraint
            # does not see old and new rows together
            row.splits.clear()
            await session.flush()
            row.splits.extend(ExpenseOperations._build_splits(expense))

            await session.commit()
            await session.refresh(row, attribute_names=["splits"])
            return ExpenseOperations._to_domain(row)
        except SQLAlchemyError:
            await session.rollback()
            raise
        finally:
            await session.close()

    @staticmethod
    @translate_db_errors("delete_expense")
    async def delete_expense(expense_id: str) -> bool:
        expense_uuid = _parse_uuid(expense_id)
        if expense_uuid is None:
            return False

        session_factory = get_session_factory()
        session = session_factory()
        try:
            result = await session.execute(delete(ExpenseModel).where(ExpenseModel.id == expense_uuid))
            await session.commit()
            return result.rowcount > 0
        finally:
            await session.close()


class SettlementOperations:
    """Operations for the settlement audit trail"""

    @staticmethod
    def _to_domain(row: SettlementModel) -> Settlement:
        return Settlement(
            id=str(row.id),
            from_user=row.from_user,
            to_user=row.to_user,
            amount=_to_float(row.amount),
            group_id=str(row.group_id) if row.group_id else None,
            settled_at=row.created_at,
        )

    @staticmethod
    @translate_db_errors("create_settlement")
    async def create_settlement(settlement: Settlement) -> Settlement:
        session_factory = get_session_factory()
        session = session_factory()
        try:
            row = SettlementModel(
                from_user=settlement.from_user,
                to_user=settlement.to_user,
                amount=Decimal(str(settlement.amount)),
                group_id=_group_uuid(settlement.group_id),
            )
            if settlement.settled_at is not None:
                row.created_at = settlement.settled_at
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return SettlementOperations._to_domain(row)
        except SQLAlchemyError:
            await session.rollback()
            raise
        finally:
            await session.close()

    @staticmethod
    @translate_db_errors("list_group_settlements")
    async def list_group_settlements(group_id: str) -> List[Settlement]:
        """Get the settlement history of a group, newest first"""
        group_uuid = _parse_uuid(group_id)
        if group_uuid is None:
            return []

        session_factory = get_session_factory()
        session = session_factory()
        try:
            result = await session.execute(
                select(SettlementModel)
                .where(SettlementModel.group_id == group_uuid)
                .order_by(SettlementModel.created_at.desc())
            )
            return [SettlementOperations._to_domain(row) for row in result.scalars().all()]
        finally:
            await session.close()


class GroupOperations:
    """Operations for groups. Groups only scope expenses here."""

    @staticmethod
    def _to_domain(row: GroupModel) -> Group:
        return Group(
            id=str(row.id),
            name=row.name,
            members=[member.user_id for member in row.members],
            created_by=row.created_by,
            created_at=row.created_at,
        )

    @staticmethod
    @translate_db_errors("create_group")
    async def create_group(group: Group) -> Group:
        """Create a group; the creator is always a member"""
        members: Dict[str, None] = dict.fromkeys([group.created_by, *group.members])

        session_factory = get_session_factory()
        session = session_factory()
        try:
            row = GroupModel(
                name=group.name,
                created_by=group.created_by,
                members=[GroupMember(user_id=user_id) for user_id in members],
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            await session.refresh(row, attribute_names=["members"])

            logger.info(f"Created group {row.name} (ID: {row.id}) with {len(members)} member(s)")
            return GroupOperations._to_domain(row)
        except SQLAlchemyError:
            await session.rollback()
            raise
        finally:
            await session.close()

    @staticmethod
    @translate_db_errors("get_group")
    async def get_group(group_id: str) -> Optional[Group]:
        group_uuid = _parse_uuid(group_id)
        if group_uuid is None:
            return None

        session_factory = get_session_factory()
        session = session_factory()
        try:
            row = await session.get(GroupModel, group_uuid)
            return GroupOperations._to_domain(row) if row else None
        finally:
            await session.close()
