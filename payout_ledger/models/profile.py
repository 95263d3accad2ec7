"""Profile model — client or admin account metadata read by the ledger."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from payout_ledger.core.database import Base
from payout_ledger.models.enums import Role, utcnow


class Profile(Base):
    """An account on the platform.

    The ledger only reads ``role`` (to authorize commands) and ``plan``
    (to pick the fee table).  Withdrawal requests lock this row so that
    balance checks for the same client run one at a time.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    full_name: Mapped[Optional[str]] = mapped_column(
        String(255),
    )
    role: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=Role.CLIENT.value,
        comment="client | admin",
    )
    plan: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        comment="basic | intermediario | top | <custom plan id>",
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
        CheckConstraint("role IN ('client', 'admin')", name="ck_profile_role"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def __repr__(self) -> str:
        return f"<Profile(id={self.id!r}, role={self.role!r}, plan={self.plan!r})>"
