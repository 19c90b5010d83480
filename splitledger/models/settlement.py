from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Settlement(Base):
    """Audit record of a settle-up. Balances are driven by the matching expense."""

    __tablename__ = "settlements"

    id: Mapped[UUID] = mapped_column(primary_key=True, server_default=func.gen_random_uuid())
    from_user: Mapped[str] = mapped_column(String(255), nullable=False)  # Debtor
    to_user: Mapped[str] = mapped_column(String(255), nullable=False)  # Creditor
    amount: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    group_id: Mapped[Optional[UUID]] = mapped_column(ForeignKey("groups.id", ondelete="CASCADE"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index('idx_settlements_group_id', 'group_id'),
    )
