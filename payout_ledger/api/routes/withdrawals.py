"""Withdrawal endpoints: client requests, the admin payout queue, pay and cancel."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from payout_ledger.core.database import get_db
from payout_ledger.core.logging import get_logger
from payout_ledger.models.withdrawal import Withdrawal
from payout_ledger.schemas.withdrawal import (
    WithdrawalCancelRequest,
    WithdrawalPayRequest,
    WithdrawalRequest,
    WithdrawalResponse,
)
from payout_ledger.services.lifecycle.withdrawals import WithdrawalLifecycle
from payout_ledger.services.notifications.emitter import NotificationEmitter, get_emitter

logger = get_logger(__name__)

router = APIRouter()


def _lifecycle(
    db: Session = Depends(get_db),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> WithdrawalLifecycle:
    return WithdrawalLifecycle(db, emitter=emitter)


@router.post("", response_model=WithdrawalResponse, status_code=201)
def request_withdrawal(
    body: WithdrawalRequest,
    lifecycle: WithdrawalLifecycle = Depends(_lifecycle),
) -> Withdrawal:
    """Request a payout; the amount is blocked immediately.

    Refused with 409 ``insufficient_balance`` when the amount exceeds what
    the client can withdraw right now.
    """
    return lifecycle.request_withdrawal(body.client_id, body.amount, body.destination)


@router.get("", response_model=list[WithdrawalResponse])
def list_withdrawals(
    client_id: UUID = Query(..., description="Owner of the withdrawals"),
    lifecycle: WithdrawalLifecycle = Depends(_lifecycle),
) -> list[Withdrawal]:
    return lifecycle.list_withdrawals(client_id)


@router.get("/pending", response_model=list[WithdrawalResponse])
def list_pending_withdrawals(
    lifecycle: WithdrawalLifecycle = Depends(_lifecycle),
) -> list[Withdrawal]:
    """Admin payout queue, oldest request first."""
    items = lifecycle.list_pending()
    logger.info("Pending withdrawals: %d", len(items))
    return items


@router.get("/{withdrawal_id}", response_model=WithdrawalResponse)
def get_withdrawal(
    withdrawal_id: UUID,
    lifecycle: WithdrawalLifecycle = Depends(_lifecycle),
) -> Withdrawal:
    return lifecycle.get_withdrawal(withdrawal_id)


@router.post("/{withdrawal_id}/pay", response_model=WithdrawalResponse)
def pay_withdrawal(
    withdrawal_id: UUID,
    body: WithdrawalPayRequest,
    lifecycle: WithdrawalLifecycle = Depends(_lifecycle),
) -> Withdrawal:
    return lifecycle.pay_withdrawal(withdrawal_id, body.admin_id, body.proof_url)


@router.post("/{withdrawal_id}/cancel", response_model=WithdrawalResponse)
def cancel_withdrawal(
    withdrawal_id: UUID,
    body: WithdrawalCancelRequest,
    lifecycle: WithdrawalLifecycle = Depends(_lifecycle),
) -> Withdrawal:
    """Cancel a pending withdrawal; its amount becomes available again."""
    return lifecycle.cancel_withdrawal(withdrawal_id, body.actor_id, body.reason)
