"""Transaction lifecycle manager.

Creates sales and applies every status change to them.  Each command runs
as one store transaction: lock the row, check the transition table in
``commands.py``, write, commit.  Only after the commit does the manager
drop the client's cached balances and emit the notification event, so a
failed command leaves neither state nor events behind.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from payout_ledger.core.config import settings
from payout_ledger.core.database import unit_of_work
from payout_ledger.core.exceptions import (
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from payout_ledger.core.logging import get_logger
from payout_ledger.models.enums import Brand, PaymentType, TransactionStatus, utcnow
from payout_ledger.models.transaction import Transaction
from payout_ledger.services.actors import require_admin, require_client
from payout_ledger.services.ledger.cache import BalanceCache, balance_cache
from payout_ledger.services.lifecycle.commands import (
    TRANSACTION_TRANSITIONS,
    ApproveChargeback,
    MarkTransactionPaid,
    RejectChargeback,
    RejectTransaction,
    RequestChargeback,
    SubmitReceipt,
    TransactionCommand,
    VerifyTransaction,
    check_transition,
)
from payout_ledger.services.notifications.emitter import (
    EventType,
    LedgerEvent,
    NotificationEmitter,
    get_emitter,
    safe_emit,
)
from payout_ledger.services.rates.engine import compute_fee, load_rate_table, resolve_fee

logger = get_logger(__name__)


def _clean(text: Optional[str]) -> Optional[str]:
    """Strip a free-text field; blank becomes ``None``."""
    if text is None:
        return None
    text = text.strip()
    return text or None


def _evidence(receipt_url: Optional[str], no_receipt_reason: Optional[str]) -> tuple:
    """Validate that at most one kind of evidence was supplied."""
    receipt_url = _clean(receipt_url)
    no_receipt_reason = _clean(no_receipt_reason)
    if receipt_url and no_receipt_reason:
        raise ValidationError("Provide either a receipt or a no-receipt reason, not both")
    return receipt_url, no_receipt_reason


class TransactionLifecycle:
    """Owns the transaction state machine."""

    def __init__(
        self,
        db: Session,
        emitter: Optional[NotificationEmitter] = None,
        cache: BalanceCache = balance_cache,
        max_installments: Optional[int] = None,
    ) -> None:
        self.db = db
        self.emitter = emitter or get_emitter()
        self.cache = cache
        self.max_installments = max_installments or settings.max_installments
        self._handlers: dict[type, Callable] = {
            SubmitReceipt: self._submit_receipt,
            VerifyTransaction: self._verify,
            RejectTransaction: self._reject,
            MarkTransactionPaid: self._mark_paid,
            RequestChargeback: self._request_chargeback,
            ApproveChargeback: self._approve_chargeback,
            RejectChargeback: self._reject_chargeback,
        }

    # ── Public API ───────────────────────────────────────────────────

    def create_transaction(
        self,
        client_id: uuid.UUID,
        gross_value: Decimal,
        brand: Brand,
        payment_type: PaymentType,
        installments: int = 1,
        receipt_url: Optional[str] = None,
        no_receipt_reason: Optional[str] = None,
    ) -> Transaction:
        """Register a sale; the fee comes from the client's plan.

        With evidence attached the sale goes straight to
        ``pending_verification``; otherwise it waits in ``pending_receipt``.

        Raises:
            NotFound / PermissionDenied: Unknown client or not a client.
            ValidationError: Bad amount, classification or evidence.
            RateNotFound: The plan has no rate for the classification.
        """
        receipt_url, no_receipt_reason = _evidence(receipt_url, no_receipt_reason)
        has_evidence = bool(receipt_url or no_receipt_reason)

        with unit_of_work(self.db):
            client = require_client(self.db, client_id)
            table = load_rate_table(self.db, client.plan)
            pct = resolve_fee(
                table, brand, payment_type, installments, self.max_installments
            )
            fee = compute_fee(gross_value, pct)

            txn = Transaction(
                id=uuid.uuid4(),
                client_id=client_id,
                gross_value=fee.gross_value,
                fee_percentage=fee.fee_percentage,
                fee_value=fee.fee_value,
                net_value=fee.net_value,
                brand=Brand(brand).value,
                payment_type=PaymentType(payment_type).value,
                installments=installments,
                receipt_url=receipt_url,
                no_receipt_reason=no_receipt_reason,
                status=(
                    TransactionStatus.PENDING_VERIFICATION.value
                    if has_evidence
                    else TransactionStatus.PENDING_RECEIPT.value
                ),
                is_chargeback=False,
            )
            self.db.add(txn)
            self.db.flush()

        logger.info(
            "Transaction created: id=%s client=%s gross=%s fee=%s%% net=%s status=%s",
            txn.id,
            client_id,
            txn.gross_value,
            txn.fee_percentage,
            txn.net_value,
            txn.status,
        )
        self._after_commit(
            txn,
            EventType.TRANSACTION_CREATED,
            f"New sale of R$ {txn.gross_value:.2f}"
            + (" with evidence" if has_evidence else " awaiting receipt"),
        )
        return txn

    def handle(self, command: TransactionCommand) -> Transaction:
        """Apply one command atomically and emit its event on success."""
        handler = self._handlers.get(type(command))
        if handler is None:
            raise ValidationError(f"Unsupported command {type(command).__name__}")

        try:
            with unit_of_work(self.db):
                txn = self._lock(command.transaction_id)
                previous = txn.status
                event_type, message = handler(command, txn)
                self.db.flush()
        except Exception as exc:
            logger.warning(
                "Transaction command %s rejected for %s: %s",
                command.name,
                command.transaction_id,
                exc,
            )
            raise

        logger.info(
            "Transaction %s: %s -> %s (%s)",
            txn.id,
            previous,
            txn.status,
            command.name,
        )
        self._after_commit(txn, event_type, message)
        return txn

    def submit_receipt(
        self,
        transaction_id: uuid.UUID,
        client_id: uuid.UUID,
        receipt_url: Optional[str] = None,
        no_receipt_reason: Optional[str] = None,
    ) -> Transaction:
        return self.handle(
            SubmitReceipt(transaction_id, client_id, receipt_url, no_receipt_reason)
        )

    def verify_transaction(self, transaction_id: uuid.UUID, admin_id: uuid.UUID) -> Transaction:
        return self.handle(VerifyTransaction(transaction_id, admin_id))

    def reject_transaction(
        self, transaction_id: uuid.UUID, admin_id: uuid.UUID, reason: Optional[str]
    ) -> Transaction:
        return self.handle(RejectTransaction(transaction_id, admin_id, reason))

    def mark_paid(self, transaction_id: uuid.UUID, admin_id: uuid.UUID) -> Transaction:
        return self.handle(MarkTransactionPaid(transaction_id, admin_id))

    def request_chargeback(
        self, transaction_id: uuid.UUID, client_id: uuid.UUID, reason: Optional[str]
    ) -> Transaction:
        return self.handle(RequestChargeback(transaction_id, client_id, reason))

    def approve_chargeback(
        self,
        transaction_id: uuid.UUID,
        admin_id: uuid.UUID,
        reason: Optional[str] = None,
    ) -> Transaction:
        return self.handle(ApproveChargeback(transaction_id, admin_id, reason))

    def reject_chargeback(self, transaction_id: uuid.UUID, admin_id: uuid.UUID) -> Transaction:
        return self.handle(RejectChargeback(transaction_id, admin_id))

    # ── Queries ──────────────────────────────────────────────────────

    def get_transaction(self, transaction_id: uuid.UUID) -> Transaction:
        txn = self.db.get(Transaction, transaction_id)
        if txn is None:
            raise NotFound(f"Transaction {transaction_id} not found")
        return txn

    def list_transactions(
        self,
        client_id: uuid.UUID,
        status: Optional[TransactionStatus] = None,
    ) -> list[Transaction]:
        query = select(Transaction).where(Transaction.client_id == client_id)
        if status is not None:
            query = query.where(Transaction.status == TransactionStatus(status).value)
        return list(
            self.db.execute(query.order_by(Transaction.created_at.desc())).scalars()
        )

    def list_pending_chargebacks(self) -> list[Transaction]:
        """Transactions whose chargeback request awaits an admin."""
        query = (
            select(Transaction)
            .where(Transaction.is_chargeback.is_(False))
            .where(Transaction.chargeback_requested_at.is_not(None))
            .order_by(Transaction.chargeback_requested_at)
        )
        return list(self.db.execute(query).scalars())

    # ── Command handlers (run inside the unit of work) ───────────────

    def _submit_receipt(self, cmd: SubmitReceipt, txn: Transaction):
        receipt_url, no_receipt_reason = _evidence(cmd.receipt_url, cmd.no_receipt_reason)
        if not (receipt_url or no_receipt_reason):
            raise ValidationError("A receipt or a no-receipt reason is required")
        self._require_owner(cmd.client_id, txn)
        transition = self._check(txn, cmd.name)

        txn.receipt_url = receipt_url
        txn.no_receipt_reason = no_receipt_reason
        txn.status = transition.target
        return EventType.RECEIPT_UPLOADED, "Receipt submitted for verification"

    def _verify(self, cmd: VerifyTransaction, txn: Transaction):
        require_admin(self.db, cmd.admin_id)
        transition = self._check(txn, cmd.name)

        txn.status = transition.target
        txn.verified_at = utcnow()
        txn.verified_by = cmd.admin_id
        return (
            EventType.TRANSACTION_VERIFIED,
            f"Your sale of R$ {txn.gross_value:.2f} was approved. "
            f"Net value: R$ {txn.net_value:.2f}",
        )

    def _reject(self, cmd: RejectTransaction, txn: Transaction):
        reason = _clean(cmd.reason)
        if reason is None:
            raise ValidationError("A rejection reason is required")
        require_admin(self.db, cmd.admin_id)
        transition = self._check(txn, cmd.name)

        txn.status = transition.target
        txn.rejection_reason = reason
        txn.rejected_at = utcnow()
        txn.rejected_by = cmd.admin_id
        return (
            EventType.TRANSACTION_REJECTED,
            f"Your sale of R$ {txn.gross_value:.2f} was rejected. Reason: {reason}",
        )

    def _mark_paid(self, cmd: MarkTransactionPaid, txn: Transaction):
        require_admin(self.db, cmd.admin_id)
        transition = self._check(txn, cmd.name)

        txn.status = transition.target
        txn.paid_at = utcnow()
        txn.paid_by = cmd.admin_id
        return EventType.TRANSACTION_PAID, f"Sale of R$ {txn.gross_value:.2f} paid out"

    def _request_chargeback(self, cmd: RequestChargeback, txn: Transaction):
        reason = _clean(cmd.reason)
        if reason is None:
            raise ValidationError("A chargeback reason is required")
        self._require_owner(cmd.client_id, txn)
        self._check(txn, cmd.name)
        if txn.has_pending_chargeback:
            raise InvalidTransition(
                "transaction", txn.id, f"{txn.status}, chargeback pending", cmd.name
            )

        txn.chargeback_reason = reason
        txn.chargeback_requested_at = utcnow()
        return (
            EventType.CHARGEBACK_REQUESTED,
            f"Chargeback requested for R$ {txn.net_value:.2f}: {reason}",
        )

    def _approve_chargeback(self, cmd: ApproveChargeback, txn: Transaction):
        require_admin(self.db, cmd.admin_id)
        transition = self._check(txn, cmd.name)
        reason = _clean(cmd.reason) or _clean(txn.chargeback_reason)
        if reason is None:
            raise ValidationError("A chargeback reason is required")

        txn.status = transition.target
        txn.is_chargeback = True
        txn.chargeback_reason = reason
        txn.chargeback_at = utcnow()
        txn.chargeback_approved_by = cmd.admin_id
        return (
            EventType.CHARGEBACK_APPROVED,
            f"Chargeback of R$ {txn.net_value:.2f} approved: {reason}",
        )

    def _reject_chargeback(self, cmd: RejectChargeback, txn: Transaction):
        require_admin(self.db, cmd.admin_id)
        self._check(txn, cmd.name)
        if not txn.has_pending_chargeback:
            raise InvalidTransition(
                "transaction", txn.id, f"{txn.status}, no chargeback pending", cmd.name
            )

        txn.chargeback_reason = None
        txn.chargeback_requested_at = None
        return EventType.CHARGEBACK_REJECTED, "Chargeback request was declined"

    # ── Private helpers ──────────────────────────────────────────────

    def _lock(self, transaction_id: uuid.UUID) -> Transaction:
        txn = self.db.execute(
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if txn is None:
            raise NotFound(f"Transaction {transaction_id} not found")
        return txn

    @staticmethod
    def _check(txn: Transaction, command: str):
        return check_transition(
            TRANSACTION_TRANSITIONS, "transaction", txn.id, txn.status, command
        )

    def _require_owner(self, client_id: uuid.UUID, txn: Transaction) -> None:
        require_client(self.db, client_id)
        if txn.client_id != client_id:
            raise PermissionDenied(
                f"Transaction {txn.id} does not belong to client {client_id}"
            )

    def _after_commit(self, txn: Transaction, event_type: EventType, message: str) -> None:
        self.cache.invalidate(txn.client_id)
        safe_emit(
            self.emitter,
            LedgerEvent(
                type=event_type,
                client_id=txn.client_id,
                related_id=txn.id,
                message=message,
            ),
        )
