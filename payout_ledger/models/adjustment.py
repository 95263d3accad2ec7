"""Balance adjustment model — append-only manual credits and debits."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from payout_ledger.core.database import Base
from payout_ledger.models.enums import AdjustmentType, utcnow


class BalanceAdjustment(Base):
    """A manual correction entered by an admin.

    Rows are only ever inserted.  A mistake is undone by appending an
    adjustment of the opposite type, so the history stays complete.
    """

    __tablename__ = "balance_adjustments"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )
    admin_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="add | remove",
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
    )
    reason: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_adj_amount_positive"),
        CheckConstraint("type IN ('add', 'remove')", name="ck_adj_type"),
    )

    @property
    def signed_amount(self) -> Decimal:
        """Contribution to the balance: positive for add, negative for remove."""
        if self.type == AdjustmentType.ADD.value:
            return self.amount
        return -self.amount

    def __repr__(self) -> str:
        return (
            f"<BalanceAdjustment(client_id={self.client_id!r}, "
            f"type={self.type!r}, amount={self.amount})>"
        )
