from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class Expense(Base):
    """Expense model"""

    __tablename__ = "expenses"

    id: Mapped[UUID] = mapped_column(primary_key=True, server_default=func.gen_random_uuid())
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    amount: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    paid_by: Mapped[str] = mapped_column(String(255), nullable=False)
    group_id: Mapped[Optional[UUID]] = mapped_column(ForeignKey("groups.id", ondelete="CASCADE"), nullable=True)
    is_settlement: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_custom_splits: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # One row per participant, insertion order preserved for display
    splits: Mapped[List["ExpenseSplit"]] = relationship(
        "ExpenseSplit",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseSplit.position",
        lazy="selectin",
    )

    __table_args__ = (
        Index('idx_expenses_group_id', 'group_id'),
        Index('idx_expenses_paid_by', 'paid_by'),
        Index('idx_expenses_created_at', 'created_at'),
    )


class ExpenseSplit(Base):
    """Materialised share of one participant in one expense"""

    __tablename__ = "expense_splits"

    id: Mapped[UUID] = mapped_column(primary_key=True, server_default=func.gen_random_uuid())
    expense_id: Mapped[UUID] = mapped_column(ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    amount_owed: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    expense: Mapped["Expense"] = relationship("Expense", back_populates="splits")

    __table_args__ = (
        Index('idx_expense_splits_user_id', 'user_id'),
        UniqueConstraint('expense_id', 'user_id', name='uq_expense_splits_expense_user'),
    )
