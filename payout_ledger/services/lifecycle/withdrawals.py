"""Withdrawal lifecycle manager.

A withdrawal blocks its amount from the moment it is requested.  The
request re-checks the available balance inside the same store transaction
that inserts the row, holding the client's profile lock, so two concurrent
requests can never both pass a stale check.
"""

from __future__ import annotations

import uuid
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from payout_ledger.core.database import unit_of_work
from payout_ledger.core.exceptions import (
    InsufficientBalance,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from payout_ledger.core.logging import get_logger
from payout_ledger.models.enums import TransactionStatus, WithdrawalStatus, utcnow
from payout_ledger.models.transaction import Transaction
from payout_ledger.models.withdrawal import Withdrawal
from payout_ledger.schemas.withdrawal import (
    BankDestination,
    BoletoDestination,
    PixDestination,
)
from payout_ledger.services.actors import get_profile, lock_client, require_admin
from payout_ledger.services.ledger.balance import compute_balances
from payout_ledger.services.ledger.cache import BalanceCache, balance_cache
from payout_ledger.services.ledger.service import load_snapshot
from payout_ledger.services.lifecycle.commands import (
    TRANSACTION_TRANSITIONS,
    WITHDRAWAL_TRANSITIONS,
    CancelWithdrawal,
    MarkTransactionPaid,
    PayWithdrawal,
    WithdrawalCommand,
    check_transition,
)
from payout_ledger.services.notifications.emitter import (
    EventType,
    LedgerEvent,
    NotificationEmitter,
    get_emitter,
    safe_emit,
)

logger = get_logger(__name__)

Destination = Union[PixDestination, BankDestination, BoletoDestination]


def _money(amount: Decimal) -> Decimal:
    """Validate a withdrawal amount: positive, at most two decimals."""
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid amount {amount!r}")
    if not value.is_finite() or value <= 0:
        raise ValidationError("Withdrawal amount must be greater than zero")
    if value != value.quantize(Decimal("0.01")):
        raise ValidationError("Withdrawal amount cannot have more than two decimals")
    return value.quantize(Decimal("0.01"))


class WithdrawalLifecycle:
    """Owns the withdrawal state machine."""

    def __init__(
        self,
        db: Session,
        emitter: Optional[NotificationEmitter] = None,
        cache: BalanceCache = balance_cache,
    ) -> None:
        self.db = db
        self.emitter = emitter or get_emitter()
        self.cache = cache
        self._handlers: dict[type, Callable] = {
            PayWithdrawal: self._pay,
            CancelWithdrawal: self._cancel,
        }

    # ── Public API ───────────────────────────────────────────────────

    def request_withdrawal(
        self,
        client_id: uuid.UUID,
        amount: Decimal,
        destination: Destination,
    ) -> Withdrawal:
        """Create a pending withdrawal if the client can afford it.

        Raises:
            ValidationError: Bad amount or destination.
            NotFound / PermissionDenied: Unknown client or not a client.
            InsufficientBalance: ``amount`` exceeds the available balance
                computed under the client lock.
            ReconciliationError: The client's ledger is inconsistent.
        """
        value = _money(amount)
        if not isinstance(destination, (PixDestination, BankDestination, BoletoDestination)):
            raise ValidationError("A pix, bank or boleto destination is required")

        try:
            with unit_of_work(self.db):
                lock_client(self.db, client_id)
                balances = compute_balances(load_snapshot(self.db, client_id))
                if value > balances.available:
                    raise InsufficientBalance(
                        f"Requested R$ {value:.2f} but only "
                        f"R$ {balances.available:.2f} is available"
                    )

                withdrawal = Withdrawal(
                    id=uuid.uuid4(),
                    client_id=client_id,
                    amount=value,
                    status=WithdrawalStatus.PENDING.value,
                    method=destination.method,
                    **destination.to_columns(),
                )
                self.db.add(withdrawal)
                self.db.flush()
        except InsufficientBalance as exc:
            logger.warning("Withdrawal refused for client=%s: %s", client_id, exc)
            raise

        logger.info(
            "Withdrawal requested: id=%s client=%s amount=%s method=%s",
            withdrawal.id,
            client_id,
            value,
            destination.method,
        )
        self._after_commit(
            withdrawal,
            EventType.WITHDRAWAL_REQUESTED,
            f"Withdrawal of R$ {value:.2f} requested via {destination.method}",
        )
        return withdrawal

    def handle(self, command: WithdrawalCommand) -> Withdrawal:
        """Apply one command atomically and emit its event on success."""
        handler = self._handlers.get(type(command))
        if handler is None:
            raise ValidationError(f"Unsupported command {type(command).__name__}")

        try:
            with unit_of_work(self.db):
                withdrawal = self._lock(command.withdrawal_id)
                previous = withdrawal.status
                event_type, message = handler(command, withdrawal)
                self.db.flush()
        except Exception as exc:
            logger.warning(
                "Withdrawal command %s rejected for %s: %s",
                command.name,
                command.withdrawal_id,
                exc,
            )
            raise

        logger.info(
            "Withdrawal %s: %s -> %s (%s)",
            withdrawal.id,
            previous,
            withdrawal.status,
            command.name,
        )
        self._after_commit(withdrawal, event_type, message)
        return withdrawal

    def pay_withdrawal(
        self, withdrawal_id: uuid.UUID, admin_id: uuid.UUID, proof_url: Optional[str]
    ) -> Withdrawal:
        return self.handle(PayWithdrawal(withdrawal_id, admin_id, proof_url))

    def cancel_withdrawal(
        self,
        withdrawal_id: uuid.UUID,
        actor_id: uuid.UUID,
        reason: Optional[str] = None,
    ) -> Withdrawal:
        return self.handle(CancelWithdrawal(withdrawal_id, actor_id, reason))

    # ── Queries ──────────────────────────────────────────────────────

    def get_withdrawal(self, withdrawal_id: uuid.UUID) -> Withdrawal:
        withdrawal = self.db.get(Withdrawal, withdrawal_id)
        if withdrawal is None:
            raise NotFound(f"Withdrawal {withdrawal_id} not found")
        return withdrawal

    def list_withdrawals(self, client_id: uuid.UUID) -> list[Withdrawal]:
        query = (
            select(Withdrawal)
            .where(Withdrawal.client_id == client_id)
            .order_by(Withdrawal.created_at.desc())
        )
        return list(self.db.execute(query).scalars())

    def list_pending(self) -> list[Withdrawal]:
        """Admin payout queue, oldest first."""
        query = (
            select(Withdrawal)
            .where(Withdrawal.status == WithdrawalStatus.PENDING.value)
            .order_by(Withdrawal.created_at)
        )
        return list(self.db.execute(query).scalars())

    # ── Command handlers (run inside the unit of work) ───────────────

    def _pay(self, cmd: PayWithdrawal, withdrawal: Withdrawal):
        proof_url = (cmd.proof_url or "").strip()
        if not proof_url:
            raise ValidationError("A payment proof is required to pay a withdrawal")
        require_admin(self.db, cmd.admin_id)
        transition = check_transition(
            WITHDRAWAL_TRANSITIONS, "withdrawal", withdrawal.id, withdrawal.status, cmd.name
        )

        withdrawal.status = transition.target
        withdrawal.admin_proof_url = proof_url
        withdrawal.paid_by = cmd.admin_id
        withdrawal.paid_at = utcnow()
        settled = self._settle_transactions(withdrawal, cmd.admin_id)
        logger.info(
            "Withdrawal %s settled %d verified transaction(s) as paid",
            withdrawal.id,
            settled,
        )
        return (
            EventType.WITHDRAWAL_PAID,
            f"Your withdrawal of R$ {withdrawal.amount:.2f} was paid",
        )

    def _cancel(self, cmd: CancelWithdrawal, withdrawal: Withdrawal):
        actor = get_profile(self.db, cmd.actor_id)
        if not actor.is_admin and actor.id != withdrawal.client_id:
            raise PermissionDenied(
                f"Profile {cmd.actor_id} cannot cancel withdrawal {withdrawal.id}"
            )
        transition = check_transition(
            WITHDRAWAL_TRANSITIONS, "withdrawal", withdrawal.id, withdrawal.status, cmd.name
        )

        reason = (cmd.reason or "").strip() or None
        withdrawal.status = transition.target
        withdrawal.cancel_reason = reason
        withdrawal.cancelled_by = cmd.actor_id
        withdrawal.cancelled_at = utcnow()
        return (
            EventType.WITHDRAWAL_CANCELLED,
            f"Your withdrawal of R$ {withdrawal.amount:.2f} was cancelled"
            + (f". Reason: {reason}" if reason else ""),
        )

    # ── Private helpers ──────────────────────────────────────────────

    def _settle_transactions(self, withdrawal: Withdrawal, admin_id: uuid.UUID) -> int:
        """Mark the oldest verified sales as paid, up to the paid amount.

        Verified and paid sales count the same towards the balance, so
        this only records which sales the payout covered.  Sales with a
        pending chargeback request stay verified.
        """
        candidates = self.db.execute(
            select(Transaction)
            .where(Transaction.client_id == withdrawal.client_id)
            .where(Transaction.status == TransactionStatus.VERIFIED.value)
            .where(Transaction.chargeback_requested_at.is_(None))
            .order_by(Transaction.created_at)
            .with_for_update()
        ).scalars()

        remaining = Decimal(withdrawal.amount)
        settled = 0
        now = utcnow()
        for txn in candidates:
            if remaining <= 0:
                break
            transition = check_transition(
                TRANSACTION_TRANSITIONS,
                "transaction",
                txn.id,
                txn.status,
                MarkTransactionPaid.name,
            )
            txn.status = transition.target
            txn.paid_at = now
            txn.paid_by = admin_id
            remaining -= Decimal(txn.net_value)
            settled += 1
        return settled

    def _lock(self, withdrawal_id: uuid.UUID) -> Withdrawal:
        withdrawal = self.db.execute(
            select(Withdrawal)
            .where(Withdrawal.id == withdrawal_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if withdrawal is None:
            raise NotFound(f"Withdrawal {withdrawal_id} not found")
        return withdrawal

    def _after_commit(self, withdrawal: Withdrawal, event_type: EventType, message: str) -> None:
        self.cache.invalidate(withdrawal.client_id)
        safe_emit(
            self.emitter,
            LedgerEvent(
                type=event_type,
                client_id=withdrawal.client_id,
                related_id=withdrawal.id,
                message=message,
            ),
        )
