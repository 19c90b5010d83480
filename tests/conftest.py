"""
Shared fixtures for the ledger tests.
"""

import os

os.environ.setdefault("LOG_TO_FILE", "false")

import pytest

from splitledger.schemas.ledger import Expense
from splitledger.services.change_feed import LedgerChangeFeed
from splitledger.services.database_manager.store import InMemoryLedgerStore
from splitledger.services.expense_manager import ExpenseManager


def make_expense(amount, paid_by, participants, group_id="G", split_amounts=None, **extra) -> Expense:
    return Expense(
        description=extra.pop("description", "Dinner"),
        amount=amount,
        paid_by=paid_by,
        participants=participants,
        group_id=group_id,
        split_amounts=split_amounts,
        **extra,
    )


@pytest.fixture
def feed():
    return LedgerChangeFeed()


@pytest.fixture
def store(feed):
    return InMemoryLedgerStore(feed=feed)


@pytest.fixture
def manager(store):
    return ExpenseManager(store, tolerance=0.01)
