"""Withdrawal model — a client's payout request."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from payout_ledger.core.database import Base
from payout_ledger.models.enums import WithdrawalStatus, utcnow


class Withdrawal(Base):
    """A request to pay out part of the available balance.

    ``amount`` never changes after insert.  Exactly one method's destination
    columns are filled; the payout columns appear together, and only once
    an admin attaches a proof.
    """

    __tablename__ = "withdrawals"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=WithdrawalStatus.PENDING.value,
        comment="pending | paid | cancelled",
    )
    method: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="pix | bank | boleto",
    )

    # -- PIX destination --
    pix_key: Mapped[Optional[str]] = mapped_column(String(255))
    pix_key_type: Mapped[Optional[str]] = mapped_column(
        String(10),
        comment="cpf | phone | email | random",
    )
    pix_owner_name: Mapped[Optional[str]] = mapped_column(String(255))

    # -- Bank destination --
    bank_name: Mapped[Optional[str]] = mapped_column(String(100))
    bank_agency: Mapped[Optional[str]] = mapped_column(String(20))
    bank_account: Mapped[Optional[str]] = mapped_column(String(30))

    # -- Boleto destination --
    boleto_name: Mapped[Optional[str]] = mapped_column(String(255))
    boleto_beneficiary_name: Mapped[Optional[str]] = mapped_column(String(255))
    boleto_number: Mapped[Optional[str]] = mapped_column(String(100))
    boleto_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2))
    boleto_origin: Mapped[Optional[str]] = mapped_column(String(255))

    # -- Settlement --
    admin_proof_url: Mapped[Optional[str]] = mapped_column(String(1024))
    paid_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("profiles.id"),
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # -- Cancellation --
    cancel_reason: Mapped[Optional[str]] = mapped_column(Text)
    cancelled_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("profiles.id"),
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        onupdate=utcnow,
    )

    __table_args__ = (
        Index("ix_withdrawals_client_status", "client_id", "status"),
        CheckConstraint("amount > 0", name="ck_wd_amount_positive"),
        CheckConstraint(
            "status <> 'paid' OR (admin_proof_url IS NOT NULL "
            "AND paid_by IS NOT NULL AND paid_at IS NOT NULL)",
            name="ck_wd_paid_fields",
        ),
        CheckConstraint(
            "status = 'paid' OR (admin_proof_url IS NULL "
            "AND paid_by IS NULL AND paid_at IS NULL)",
            name="ck_wd_unpaid_fields",
        ),
        CheckConstraint(
            "status = 'cancelled' OR cancelled_at IS NULL",
            name="ck_wd_cancelled_fields",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Withdrawal(id={self.id!r}, amount={self.amount}, "
            f"status={self.status!r})>"
        )
