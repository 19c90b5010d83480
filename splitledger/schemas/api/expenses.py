"""
API schemas for expense endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from splitledger.schemas.ledger import Expense


class ExpenseCreate(BaseModel):
    """Request model for creating an expense."""
    description: str = Field(..., min_length=1, description="What the expense was for")
    amount: float = Field(..., description="Total amount")
    paid_by: str = Field(..., min_length=1, description="User who paid")
    participants: List[str] = Field(..., description="Users sharing the cost")
    group_id: Optional[str] = Field(None, description="Group the expense belongs to, omitted for personal expenses")
    split_amounts: Optional[Dict[str, float]] = Field(None, description="Custom amount per participant; equal split when omitted")
    created_by: Optional[str] = Field(None, description="User recording the expense, defaults to the payer")


class ExpenseUpdate(BaseModel):
    """Request model for updating an expense (all fields optional)."""
    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[float] = None
    paid_by: Optional[str] = Field(None, min_length=1)
    participants: Optional[List[str]] = None
    split_amounts: Optional[Dict[str, float]] = None


class ExpenseResponse(BaseModel):
    """Response model for expense data."""
    id: str
    description: str
    amount: float
    paid_by: str
    participants: List[str]
    group_id: Optional[str] = None
    split_amounts: Optional[Dict[str, float]] = None
    shares: Dict[str, float] = Field(default_factory=dict, description="Resolved amount owed by each participant")
    is_settlement: bool = False
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    @classmethod
    def from_expense(cls, expense: Expense, shares: Dict[str, float]) -> "ExpenseResponse":
        return cls(**expense.model_dump(), shares=shares)
