"""Per-client ledger endpoints: balances, statement, adjustments and plan."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from payout_ledger.core.database import get_db
from payout_ledger.core.logging import get_logger
from payout_ledger.models.adjustment import BalanceAdjustment
from payout_ledger.schemas.adjustment import AdjustmentCreate, AdjustmentResponse
from payout_ledger.schemas.balance import (
    BalanceResponse,
    StatementEntryResponse,
    StatementResponse,
)
from payout_ledger.schemas.plan import PlanAssign
from payout_ledger.services.ledger.adjustments import AdjustmentLedger
from payout_ledger.services.ledger.service import BalanceService
from payout_ledger.services.notifications.emitter import NotificationEmitter, get_emitter
from payout_ledger.services.rates.plans import PlanService

logger = get_logger(__name__)

router = APIRouter()


@router.get("/{client_id}/balances", response_model=BalanceResponse)
def get_balances(client_id: UUID, db: Session = Depends(get_db)) -> BalanceResponse:
    """Current balances, recomputed from the client's ledger.

    ``available`` is signed: a negative figure means the client owes money
    after a chargeback or an admin debit.
    """
    balances = BalanceService(db).get_balances(client_id)
    return BalanceResponse.model_validate(balances)


@router.get("/{client_id}/statement", response_model=StatementResponse)
def get_statement(client_id: UUID, db: Session = Depends(get_db)) -> StatementResponse:
    """Chronological balance movements with a running available balance."""
    entries = BalanceService(db).get_statement(client_id)
    available = entries[-1].running_balance if entries else Decimal("0.00")
    logger.info("Statement built: client=%s entries=%d", client_id, len(entries))
    return StatementResponse(
        client_id=client_id,
        available=available,
        entries=[StatementEntryResponse.model_validate(e) for e in entries],
    )


@router.post(
    "/{client_id}/adjustments", response_model=AdjustmentResponse, status_code=201
)
def create_adjustment(
    client_id: UUID,
    body: AdjustmentCreate,
    db: Session = Depends(get_db),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> BalanceAdjustment:
    """Admin credit or debit on a client's balance."""
    ledger = AdjustmentLedger(db, emitter=emitter)
    return ledger.append(client_id, body.admin_id, body.type, body.amount, body.reason)


@router.get("/{client_id}/adjustments", response_model=list[AdjustmentResponse])
def list_adjustments(client_id: UUID, db: Session = Depends(get_db)) -> list[BalanceAdjustment]:
    return AdjustmentLedger(db).list_adjustments(client_id)


@router.put("/{client_id}/plan")
def assign_plan(client_id: UUID, body: PlanAssign, db: Session = Depends(get_db)) -> dict:
    """Move a client to a standard tier or a custom plan."""
    service = PlanService(db)
    profile = service.assign_plan(body.admin_id, client_id, body.plan)
    return {"client_id": str(profile.id), "plan": profile.plan}
