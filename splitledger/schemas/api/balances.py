"""
API schemas for balance endpoints.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from splitledger.schemas.ledger import BalanceEntry


class BalanceListResponse(BaseModel):
    """All net balances of one scope."""
    scope: str = Field(..., description="Group ID or 'personal'")
    viewer_id: Optional[str] = Field(None, description="User the balances were requested for")
    balances: List[BalanceEntry] = Field(default_factory=list, description="Net debts, largest first")
    total_spent: float = Field(..., description="Sum of the scope's expenses, settlements excluded")
    expense_count: int = Field(..., description="Number of expenses folded into the balances")
