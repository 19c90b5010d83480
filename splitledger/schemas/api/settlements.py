from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from splitledger.schemas.ledger import Settlement


class SettleUpRequest(BaseModel):
    """Request model for recording a debt payment."""
    model_config = ConfigDict(populate_by_name=True)

    from_user: str = Field(..., alias="from", min_length=1, description="Debtor paying off the debt")
    to_user: str = Field(..., alias="to", min_length=1, description="Creditor receiving the payment")
    amount: float = Field(..., description="Amount paid, usually the full outstanding balance")
    group_id: Optional[str] = Field(None, description="Group scope, omitted for personal balances")
    from_name: Optional[str] = Field(None, description="Display name of the debtor")
    to_name: Optional[str] = Field(None, description="Display name of the creditor")


class SettlementResponse(BaseModel):
    """Settlement audit record."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    from_user: str = Field(..., serialization_alias="from")
    to_user: str = Field(..., serialization_alias="to")
    amount: float
    group_id: Optional[str] = None
    settled_at: Optional[datetime] = None
    expense_id: Optional[str] = Field(None, description="Offsetting expense recorded with the settlement")

    @classmethod
    def from_settlement(cls, settlement: Settlement, expense_id: Optional[str] = None) -> "SettlementResponse":
        return cls(
            id=settlement.id,
            from_user=settlement.from_user,
            to_user=settlement.to_user,
            amount=settlement.amount,
            group_id=settlement.group_id,
            settled_at=settlement.settled_at,
            expense_id=expense_id,
        )
