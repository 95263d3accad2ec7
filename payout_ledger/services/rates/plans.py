"""Custom plan management and plan assignment."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from payout_ledger.core.config import settings
from payout_ledger.core.database import unit_of_work
from payout_ledger.core.exceptions import NotFound, ValidationError
from payout_ledger.core.logging import get_logger
from payout_ledger.models.custom_plan import CustomPlan, CustomPlanRate
from payout_ledger.models.enums import BrandGroup, PaymentType
from payout_ledger.models.profile import Profile
from payout_ledger.services.actors import require_admin, require_client
from payout_ledger.services.rates.engine import RateTable, load_rate_table, parse_cents

logger = get_logger(__name__)

_PIX_TYPES = {PaymentType.PIX_CONTA, PaymentType.PIX_QRCODE}


@dataclass(frozen=True)
class RateRow:
    brand_group: BrandGroup
    payment_type: PaymentType
    installments: Optional[int]
    rate: Decimal


def _validate_rows(rows: list[RateRow], max_installments: int) -> None:
    seen: set[tuple] = set()
    for row in rows:
        group = BrandGroup(row.brand_group)
        ptype = PaymentType(row.payment_type)
        if (group == BrandGroup.PIX) != (ptype in _PIX_TYPES):
            raise ValidationError(
                f"Payment type '{ptype.value}' does not belong to '{group.value}'"
            )
        if ptype == PaymentType.CREDIT:
            if row.installments is None or not 1 <= row.installments <= max_installments:
                raise ValidationError(
                    f"Credit rates need installments between 1 and {max_installments}"
                )
        elif row.installments is not None:
            raise ValidationError(f"'{ptype.value}' rates cannot carry installments")
        rate = parse_cents(row.rate, "rate")
        if not Decimal(0) <= rate < Decimal(100):
            raise ValidationError(f"Rate {rate} must be between 0 and 100")

        key = (group.value, ptype.value, row.installments)
        if key in seen:
            raise ValidationError(f"Duplicate rate row for {key}")
        seen.add(key)


class PlanService:
    """Admin operations on fee plans."""

    def __init__(self, db: Session, max_installments: Optional[int] = None) -> None:
        self.db = db
        self.max_installments = max_installments or settings.max_installments

    def create_custom_plan(
        self,
        admin_id: uuid.UUID,
        name: str,
        rates: Iterable[RateRow],
    ) -> CustomPlan:
        """Store a new custom plan together with its full rate table."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("A plan name is required")
        rows = list(rates)
        if not rows:
            raise ValidationError("A custom plan needs at least one rate")
        try:
            _validate_rows(rows, self.max_installments)
        except ValueError as exc:
            raise ValidationError(str(exc))

        with unit_of_work(self.db):
            require_admin(self.db, admin_id)
            plan = CustomPlan(id=uuid.uuid4(), name=name, is_active=True)
            plan.rates = [
                CustomPlanRate(
                    brand_group=BrandGroup(row.brand_group).value,
                    payment_type=PaymentType(row.payment_type).value,
                    installments=row.installments,
                    rate=Decimal(row.rate),
                )
                for row in rows
            ]
            self.db.add(plan)
            self.db.flush()

        logger.info("Custom plan created: id=%s name=%r rates=%d", plan.id, name, len(rows))
        return plan

    def list_custom_plans(self) -> list[CustomPlan]:
        query = (
            select(CustomPlan)
            .where(CustomPlan.is_active.is_(True))
            .order_by(CustomPlan.created_at.desc())
        )
        return list(self.db.execute(query).scalars())

    def get_custom_plan(self, plan_id: uuid.UUID) -> CustomPlan:
        plan = self.db.get(CustomPlan, plan_id)
        if plan is None:
            raise NotFound(f"Custom plan {plan_id} not found")
        return plan

    def rate_table(self, plan: str) -> RateTable:
        """Resolved table for a standard tier name or a custom plan id."""
        return load_rate_table(self.db, plan)

    def assign_plan(self, admin_id: uuid.UUID, client_id: uuid.UUID, plan: str) -> Profile:
        """Point a client at a plan; future sales are priced with it.

        Existing transactions keep the percentage they were created with.
        """
        with unit_of_work(self.db):
            require_admin(self.db, admin_id)
            client = require_client(self.db, client_id)
            load_rate_table(self.db, plan)
            client.plan = plan
            self.db.flush()

        logger.info("Plan %s assigned to client=%s by admin=%s", plan, client_id, admin_id)
        return client
