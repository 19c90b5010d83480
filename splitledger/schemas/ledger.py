"""
Ledger records shared by the balance engine, the storage layer and the API.

Expenses are the only input the balance engine folds. Settlements are kept
for the audit trail; the balance effect of a settlement comes from the
synthetic expense recorded next to it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


UserId = str
GroupId = str

PERSONAL_SCOPE = "personal"
BALANCE_TOLERANCE = 0.01

# A group id, or PERSONAL_SCOPE / None for expenses outside any group
BalanceScope = Optional[Union[GroupId, str]]


def is_personal_scope(scope: BalanceScope) -> bool:
    return scope is None or scope == PERSONAL_SCOPE


class DebtPair(NamedTuple):
    """Directed pair key: ``debtor`` owes ``creditor``."""
    debtor: UserId
    creditor: UserId

    def reversed(self) -> "DebtPair":
        return DebtPair(self.creditor, self.debtor)

    def unordered_key(self) -> Tuple[UserId, UserId]:
        """Canonical key shared by both directions of the same pair."""
        return (self.debtor, self.creditor) if self.debtor <= self.creditor else (self.creditor, self.debtor)


class Expense(BaseModel):
    """A shared cost paid by one user and split between participants."""
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(None, description="Identifier assigned by the store")
    description: str = Field("", description="Free text label")
    amount: float = Field(..., description="Total cost")
    paid_by: UserId = Field(..., description="User who fronted the money")
    participants: List[UserId] = Field(default_factory=list, description="Users sharing the cost")
    group_id: Optional[GroupId] = Field(None, description="Group scope, None for personal expenses")
    split_amounts: Optional[Dict[UserId, float]] = Field(None, description="Explicit owed amount per participant")
    is_settlement: bool = Field(False, description="True for synthetic debt-clearing expenses")
    created_at: Optional[datetime] = None
    created_by: Optional[UserId] = None

    @property
    def is_personal(self) -> bool:
        return self.group_id is None

    @property
    def has_custom_splits(self) -> bool:
        return bool(self.split_amounts)

    def involves(self, user_id: UserId) -> bool:
        return user_id == self.paid_by or user_id in self.participants


class BalanceEntry(BaseModel):
    """Derived net debt: ``debtor`` owes ``creditor`` ``amount``."""
    model_config = ConfigDict(frozen=True)

    debtor: UserId
    creditor: UserId
    amount: float

    @property
    def pair(self) -> DebtPair:
        return DebtPair(self.debtor, self.creditor)


class Settlement(BaseModel):
    """Audit record of a debt payment."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Optional[str] = None
    from_user: UserId = Field(..., alias="from", description="Debtor")
    to_user: UserId = Field(..., alias="to", description="Creditor")
    amount: float
    group_id: Optional[GroupId] = None
    settled_at: Optional[datetime] = None


class Group(BaseModel):
    id: Optional[GroupId] = None
    name: str
    members: List[UserId] = Field(default_factory=list)
    created_by: UserId
    created_at: Optional[datetime] = None
