"""Transaction endpoints.

Clients register sales and attach receipts; admins verify, reject, mark
paid and decide chargebacks.  Every route is a thin wrapper around
``TransactionLifecycle``; domain errors are mapped to HTTP responses by
the handlers in ``api/errors.py``.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from payout_ledger.core.database import get_db
from payout_ledger.core.logging import get_logger
from payout_ledger.models.enums import TransactionStatus
from payout_ledger.schemas.transaction import (
    AdminAction,
    ChargebackApprove,
    ChargebackRequest,
    ReceiptSubmit,
    TransactionCreate,
    TransactionReject,
    TransactionResponse,
    to_response,
)
from payout_ledger.services.lifecycle.transactions import TransactionLifecycle
from payout_ledger.services.notifications.emitter import NotificationEmitter, get_emitter

logger = get_logger(__name__)

router = APIRouter()


def _lifecycle(
    db: Session = Depends(get_db),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> TransactionLifecycle:
    return TransactionLifecycle(db, emitter=emitter)


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    body: TransactionCreate,
    lifecycle: TransactionLifecycle = Depends(_lifecycle),
):
    """Register a sale; fee and net value come from the client's plan."""
    txn = lifecycle.create_transaction(
        client_id=body.client_id,
        gross_value=body.gross_value,
        brand=body.brand,
        payment_type=body.payment_type,
        installments=body.installments,
        receipt_url=body.receipt_url,
        no_receipt_reason=body.no_receipt_reason,
    )
    return to_response(txn)


@router.get("", response_model=list[TransactionResponse])
def list_transactions(
    client_id: UUID = Query(..., description="Owner of the transactions"),
    status: Optional[TransactionStatus] = Query(None, description="Filter by status"),
    lifecycle: TransactionLifecycle = Depends(_lifecycle),
):
    """List a client's transactions, newest first."""
    items = lifecycle.list_transactions(client_id, status=status)
    logger.info("Transactions query: client=%s status=%s returned=%d", client_id, status, len(items))
    return [to_response(txn) for txn in items]


@router.get("/chargebacks/pending", response_model=list[TransactionResponse])
def list_pending_chargebacks(lifecycle: TransactionLifecycle = Depends(_lifecycle)):
    """Admin queue of chargeback requests awaiting a decision."""
    return [to_response(txn) for txn in lifecycle.list_pending_chargebacks()]


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: UUID,
    lifecycle: TransactionLifecycle = Depends(_lifecycle),
):
    return to_response(lifecycle.get_transaction(transaction_id))


# ── Commands ────────────────────────────────────────────────────────


@router.post("/{transaction_id}/receipt", response_model=TransactionResponse)
def submit_receipt(
    transaction_id: UUID,
    body: ReceiptSubmit,
    lifecycle: TransactionLifecycle = Depends(_lifecycle),
):
    """Attach a receipt (or the reason there is none) to a sale."""
    txn = lifecycle.submit_receipt(
        transaction_id, body.client_id, body.receipt_url, body.no_receipt_reason
    )
    return to_response(txn)


@router.post("/{transaction_id}/verify", response_model=TransactionResponse)
def verify_transaction(
    transaction_id: UUID,
    body: AdminAction,
    lifecycle: TransactionLifecycle = Depends(_lifecycle),
):
    return to_response(lifecycle.verify_transaction(transaction_id, body.admin_id))


@router.post("/{transaction_id}/reject", response_model=TransactionResponse)
def reject_transaction(
    transaction_id: UUID,
    body: TransactionReject,
    lifecycle: TransactionLifecycle = Depends(_lifecycle),
):
    return to_response(
        lifecycle.reject_transaction(transaction_id, body.admin_id, body.reason)
    )


@router.post("/{transaction_id}/pay", response_model=TransactionResponse)
def mark_transaction_paid(
    transaction_id: UUID,
    body: AdminAction,
    lifecycle: TransactionLifecycle = Depends(_lifecycle),
):
    return to_response(lifecycle.mark_paid(transaction_id, body.admin_id))


@router.post("/{transaction_id}/chargeback", response_model=TransactionResponse)
def request_chargeback(
    transaction_id: UUID,
    body: ChargebackRequest,
    lifecycle: TransactionLifecycle = Depends(_lifecycle),
):
    """Client asks for a verified or paid sale to be reversed."""
    return to_response(
        lifecycle.request_chargeback(transaction_id, body.client_id, body.reason)
    )


@router.post("/{transaction_id}/chargeback/approve", response_model=TransactionResponse)
def approve_chargeback(
    transaction_id: UUID,
    body: ChargebackApprove,
    lifecycle: TransactionLifecycle = Depends(_lifecycle),
):
    return to_response(
        lifecycle.approve_chargeback(transaction_id, body.admin_id, body.reason)
    )


@router.post("/{transaction_id}/chargeback/reject", response_model=TransactionResponse)
def reject_chargeback(
    transaction_id: UUID,
    body: AdminAction,
    lifecycle: TransactionLifecycle = Depends(_lifecycle),
):
    return to_response(lifecycle.reject_chargeback(transaction_id, body.admin_id))
