"""Adjustment ledger — append-only manual credits and debits.

Rows are never updated or deleted.  To correct an adjustment,
append one of the opposite type; the audit trail keeps both.
"""

from __future__ import annotations

import uuid
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from payout_ledger.core.database import unit_of_work
from payout_ledger.core.exceptions import ValidationError
from payout_ledger.core.logging import get_logger
from payout_ledger.models.adjustment import BalanceAdjustment
from payout_ledger.models.enums import AdjustmentType
from payout_ledger.services.actors import lock_client, require_admin
from payout_ledger.services.ledger.cache import BalanceCache, balance_cache
from payout_ledger.services.notifications.emitter import (
    EventType,
    LedgerEvent,
    NotificationEmitter,
    get_emitter,
    safe_emit,
)

logger = get_logger(__name__)


class AdjustmentLedger:
    """Records admin balance corrections for clients."""

    def __init__(
        self,
        db: Session,
        emitter: Optional[NotificationEmitter] = None,
        cache: BalanceCache = balance_cache,
    ) -> None:
        self.db = db
        self.emitter = emitter or get_emitter()
        self.cache = cache

    def append(
        self,
        client_id: uuid.UUID,
        admin_id: uuid.UUID,
        type: AdjustmentType,
        amount: Decimal,
        reason: str,
    ) -> BalanceAdjustment:
        """Insert one adjustment and return it.

        A removal may push ``available`` below zero; admins are allowed to
        put a client in debt and the balance will show it.

        Raises:
            ValidationError: Unknown type, non-positive amount, more than
                two decimals, or an empty reason.
            NotFound / PermissionDenied: Unknown profiles, the actor is not
                an admin, or the target is not a client.
        """
        try:
            adj_type = AdjustmentType(type)
        except ValueError:
            raise ValidationError(f"Unknown adjustment type {type!r}")
        try:
            value = Decimal(amount)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(f"Invalid amount {amount!r}")
        if not value.is_finite() or value <= 0:
            raise ValidationError("Adjustment amount must be greater than zero")
        if value != value.quantize(Decimal("0.01")):
            raise ValidationError("Adjustment amount cannot have more than two decimals")
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("An adjustment reason is required")

        with unit_of_work(self.db):
            require_admin(self.db, admin_id)
            lock_client(self.db, client_id)
            adjustment = BalanceAdjustment(
                id=uuid.uuid4(),
                client_id=client_id,
                admin_id=admin_id,
                type=adj_type.value,
                amount=value,
                reason=reason,
            )
            self.db.add(adjustment)
            self.db.flush()

        logger.info(
            "Adjustment appended: id=%s client=%s %s %s by admin=%s",
            adjustment.id,
            client_id,
            adj_type.value,
            value,
            admin_id,
        )
        self.cache.invalidate(client_id)
        sign = "+" if adj_type == AdjustmentType.ADD else "-"
        safe_emit(
            self.emitter,
            LedgerEvent(
                type=EventType.BALANCE_ADJUSTED,
                client_id=client_id,
                related_id=adjustment.id,
                message=f"Balance adjusted {sign}R$ {value:.2f}: {reason}",
            ),
        )
        return adjustment

    def list_adjustments(self, client_id: uuid.UUID) -> list[BalanceAdjustment]:
        """All adjustments of a client, newest first."""
        query = (
            select(BalanceAdjustment)
            .where(BalanceAdjustment.client_id == client_id)
            .order_by(BalanceAdjustment.created_at.desc())
        )
        return list(self.db.execute(query).scalars())
