"""Custom plan models — negotiated fee tables for individual clients."""

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
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payout_ledger.core.database import Base
from payout_ledger.models.enums import utcnow


class CustomPlan(Base):
    """A named fee table assigned to clients through ``Profile.plan``."""

    __tablename__ = "custom_plans"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
    )

    # -- Relationships --
    rates: Mapped[list[CustomPlanRate]] = relationship(
        "CustomPlanRate",
        back_populates="plan",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<CustomPlan(id={self.id!r}, name={self.name!r})>"


class CustomPlanRate(Base):
    """One row of a custom fee table.

    Credit rows carry the installment count they price; every other
    payment type stores ``installments = NULL``.
    """

    __tablename__ = "custom_plan_rates"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    plan_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("custom_plans.id"),
        nullable=False,
        index=True,
    )
    brand_group: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="VISA_MASTER | ELO_AMEX | PIX",
    )
    payment_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    installments: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    rate: Mapped[Decimal] = mapped_column(
        Numeric(6, 2),
        nullable=False,
    )

    # -- Relationships --
    plan: Mapped[CustomPlan] = relationship(
        "CustomPlan",
        back_populates="rates",
    )

    __table_args__ = (
        UniqueConstraint(
            "plan_id",
            "brand_group",
            "payment_type",
            "installments",
            name="uq_custom_plan_rate_key",
        ),
        CheckConstraint("rate >= 0 AND rate < 100", name="ck_custom_rate_range"),
        CheckConstraint(
            "(payment_type = 'credit') = (installments IS NOT NULL)",
            name="ck_custom_rate_installments",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<CustomPlanRate(brand_group={self.brand_group!r}, "
            f"payment_type={self.payment_type!r}, installments={self.installments}, "
            f"rate={self.rate})>"
        )
