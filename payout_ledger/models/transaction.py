"""Transaction model — one card or PIX sale submitted by a client."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from payout_ledger.core.database import Base
from payout_ledger.models.enums import TransactionStatus, utcnow


class Transaction(Base):
    """A sale and its progress through receipt verification.

    Money columns are fixed at creation: ``fee_percentage`` is resolved from
    the client's plan once and ``net_value`` is derived from it.  Afterwards
    only ``status`` and the annotation columns change, and the check
    constraints below keep each annotation tied to the status it belongs to.
    """

    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )

    # -- Money --
    gross_value: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
    )
    fee_percentage: Mapped[Decimal] = mapped_column(
        Numeric(6, 2),
        nullable=False,
        comment="Percent, e.g. 4.76 means 4.76%",
    )
    fee_value: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
    )
    net_value: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
    )

    # -- Classification --
    brand: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="visa_master | elo_amex | pix",
    )
    payment_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="debit | credit | pix_conta | pix_qrcode",
    )
    installments: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    # -- Evidence --
    receipt_url: Mapped[Optional[str]] = mapped_column(
        String(1024),
    )
    no_receipt_reason: Mapped[Optional[str]] = mapped_column(
        Text,
    )

    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=TransactionStatus.PENDING_RECEIPT.value,
        comment=(
            "pending_receipt | pending_verification | verified "
            "| rejected | paid | chargeback"
        ),
    )

    # -- Verification --
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    verified_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("profiles.id"),
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    rejected_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("profiles.id"),
    )

    # -- Payout --
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    paid_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("profiles.id"),
    )

    # -- Chargeback --
    is_chargeback: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    chargeback_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        comment="Pending request reason, or the approved reason once is_chargeback",
    )
    chargeback_requested_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    chargeback_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    chargeback_approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("profiles.id"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        onupdate=utcnow,
    )

    __table_args__ = (
        Index("ix_transactions_client_status", "client_id", "status"),
        CheckConstraint("gross_value > 0", name="ck_tx_gross_positive"),
        CheckConstraint("installments >= 1", name="ck_tx_installments"),
        CheckConstraint(
            "installments = 1 OR payment_type = 'credit'",
            name="ck_tx_single_installment",
        ),
        CheckConstraint(
            "status = 'pending_receipt' "
            "OR (receipt_url IS NULL) <> (no_receipt_reason IS NULL)",
            name="ck_tx_evidence",
        ),
        CheckConstraint(
            "status = 'rejected' OR rejection_reason IS NULL",
            name="ck_tx_rejection_reason",
        ),
        CheckConstraint(
            "status IN ('verified', 'paid', 'chargeback') "
            "OR (verified_at IS NULL AND verified_by IS NULL)",
            name="ck_tx_verified_fields",
        ),
        CheckConstraint(
            "(status = 'chargeback') = is_chargeback",
            name="ck_tx_chargeback_flag",
        ),
        CheckConstraint(
            "status = 'chargeback' OR chargeback_at IS NULL",
            name="ck_tx_chargeback_at",
        ),
    )

    @property
    def has_pending_chargeback(self) -> bool:
        """True while a client's chargeback request awaits an admin decision."""
        return (
            not self.is_chargeback
            and self.chargeback_requested_at is not None
        )

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id!r}, status={self.status!r}, "
            f"net_value={self.net_value})>"
        )
