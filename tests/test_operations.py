"""
Tests for the database row mapping and error translation, without a database.
"""

from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from splitledger.services.balance_engine.errors import ExpenseNotFoundError, PersistenceError, ValidationError
from splitledger.services.database_manager.operations import ExpenseOperations, _group_uuid, translate_db_errors

from conftest import make_expense


def _row(has_custom_splits, splits, group_id=None):
    return SimpleNamespace(
        id=uuid4(),
        description="Hotel",
        amount=Decimal("100.00"),
        paid_by="U1",
        group_id=group_id,
        is_settlement=False,
        has_custom_splits=has_custom_splits,
        created_at=None,
        created_by="U1",
        splits=[
            SimpleNamespace(user_id=user_id, amount_owed=Decimal(amount))
            for user_id, amount in splits
        ],
    )


class TestExpenseRowMapping:
    """Test conversion between rows and ledger records."""

    def test_equal_split_row(self):
        expense = ExpenseOperations._to_domain(_row(False, [("U1", "50.00"), ("U2", "50.00")]))

        assert expense.participants == ["U1", "U2"]
        assert expense.split_amounts is None
        assert expense.amount == 100.0
        assert expense.group_id is None

    def test_custom_split_row(self):
        group_id = uuid4()
        expense = ExpenseOperations._to_domain(_row(True, [("U1", "70.00"), ("U2", "30.00")], group_id))

        assert expense.split_amounts == {"U1": 70.0, "U2": 30.0}
        assert expense.group_id == str(group_id)

    def test_splits_materialise_resolved_shares(self):
        splits = ExpenseOperations._build_splits(make_expense(90, "U1", ["U1", "U2", "U3"]))

        assert [split.user_id for split in splits] == ["U1", "U2", "U3"]
        assert [split.position for split in splits] == [0, 1, 2]
        assert sum(split.amount_owed for split in splits) == Decimal("90.0")


class TestTranslateDbErrors:
    """Test database error translation."""

    async def test_database_error_becomes_persistence_error(self):
        @translate_db_errors("list_things")
        async def failing():
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        with pytest.raises(PersistenceError) as exc_info:
            await failing()
        assert exc_info.value.operation == "list_things"

    async def test_ledger_errors_pass_through(self):
        @translate_db_errors("get_expense")
        async def missing():
            raise ExpenseNotFoundError("e1")

        with pytest.raises(ExpenseNotFoundError):
            await missing()


class TestGroupIds:
    """Test group ID parsing for database writes."""

    def test_personal_expense_has_no_group(self):
        assert _group_uuid(None) is None

    def test_invalid_group_id_rejected(self):
        with pytest.raises(ValidationError):
            _group_uuid("not-a-uuid")
