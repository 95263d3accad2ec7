"""Balance reconciliation — the single place balances are derived.

Balances are never stored.  They are recomputed from a consistent
snapshot of one client's transactions, withdrawals and adjustments:

    pending             = Σ net_value   of pending_receipt / pending_verification
    verified_total      = Σ net_value   of verified / paid
    adjustments_net     = Σ ±amount     of all adjustments
    withdrawn_committed = Σ amount      of pending / paid withdrawals
    withdrawn           = Σ amount      of paid withdrawals

    available = verified_total + adjustments_net - withdrawn_committed
    total     = pending + available + withdrawn

A pending withdrawal already blocks its amount so two requests cannot
spend the same money.  ``available`` is reported signed: an admin debit
or a chargeback can put a client in debt and that debt must stay visible.

The engine is pure: it takes plain objects and needs no session, so
every figure can be unit-tested in isolation.
Inconsistent input raises ``ReconciliationError``; a partial figure is
never returned.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Sequence

from payout_ledger.core.exceptions import ReconciliationError
from payout_ledger.core.logging import get_logger
from payout_ledger.models.enums import (
    AdjustmentType,
    TransactionStatus,
    WithdrawalStatus,
)

logger = get_logger(__name__)

ZERO = Decimal("0.00")

PENDING_STATUSES = frozenset(
    {TransactionStatus.PENDING_RECEIPT.value, TransactionStatus.PENDING_VERIFICATION.value}
)
CREDITED_STATUSES = frozenset(
    {TransactionStatus.VERIFIED.value, TransactionStatus.PAID.value}
)
EXCLUDED_STATUSES = frozenset(
    {TransactionStatus.REJECTED.value, TransactionStatus.CHARGEBACK.value}
)
COMMITTED_WITHDRAWAL_STATUSES = frozenset(
    {WithdrawalStatus.PENDING.value, WithdrawalStatus.PAID.value}
)
_WITHDRAWAL_STATUSES = frozenset(s.value for s in WithdrawalStatus)
_ADJUSTMENT_TYPES = frozenset(t.value for t in AdjustmentType)


@dataclass(frozen=True)
class LedgerSnapshot:
    """Everything that moves one client's money, read in one transaction.

    Attributes:
        client_id: The client whose balances are derived.
        client_exists: Whether the client's profile row was found.
        transactions: Objects exposing ``id``, ``client_id``, ``status``,
            ``gross_value``, ``fee_value``, ``net_value``, ``is_chargeback``.
        withdrawals: Objects exposing ``id``, ``client_id``, ``status``,
            ``amount``.
        adjustments: Objects exposing ``id``, ``client_id``, ``type``,
            ``amount``.
    """

    client_id: uuid.UUID
    client_exists: bool = True
    transactions: Sequence[Any] = field(default_factory=tuple)
    withdrawals: Sequence[Any] = field(default_factory=tuple)
    adjustments: Sequence[Any] = field(default_factory=tuple)


@dataclass(frozen=True)
class ClientBalances:
    """Derived balances plus the partial sums they were built from."""

    client_id: uuid.UUID
    available: Decimal
    pending: Decimal
    withdrawn: Decimal
    total: Decimal
    verified_total: Decimal = ZERO
    adjustments_net: Decimal = ZERO
    withdrawn_committed: Decimal = ZERO

    @property
    def in_debt(self) -> bool:
        return self.available < 0


def _fail(client_id: uuid.UUID, message: str) -> ReconciliationError:
    logger.error("Reconciliation failed for client=%s: %s", client_id, message)
    return ReconciliationError(f"Inconsistent ledger for client {client_id}: {message}")


def _check_owner(snapshot: LedgerSnapshot, record: Any, kind: str) -> None:
    if record.client_id != snapshot.client_id:
        raise _fail(
            snapshot.client_id,
            f"{kind} {record.id} belongs to client {record.client_id}",
        )


def _transaction_net(snapshot: LedgerSnapshot, txn: Any) -> Decimal:
    """Validate one transaction and return its net value."""
    _check_owner(snapshot, txn, "transaction")
    status = txn.status
    if status not in PENDING_STATUSES | CREDITED_STATUSES | EXCLUDED_STATUSES:
        raise _fail(snapshot.client_id, f"transaction {txn.id} has unknown status '{status}'")

    gross = Decimal(txn.gross_value)
    fee = Decimal(txn.fee_value)
    net = Decimal(txn.net_value)
    if gross <= 0 or fee < 0 or net != gross - fee:
        raise _fail(
            snapshot.client_id,
            f"transaction {txn.id} money columns disagree "
            f"(gross={gross} fee={fee} net={net})",
        )
    if bool(txn.is_chargeback) != (status == TransactionStatus.CHARGEBACK.value):
        raise _fail(
            snapshot.client_id,
            f"transaction {txn.id} chargeback flag contradicts status '{status}'",
        )
    return net


def compute_balances(snapshot: LedgerSnapshot) -> ClientBalances:
    """Derive a client's balances from a snapshot.

    Args:
        snapshot: A consistent read of the client's ledger records.

    Returns:
        ``ClientBalances`` with ``available``, ``pending``, ``withdrawn``
        and ``total`` plus the intermediate sums.

    Raises:
        ReconciliationError: The client is missing, a record belongs to a
            different client, or a record carries an unknown status,
            a non-positive amount or self-contradicting money columns.
    """
    if not snapshot.client_exists:
        raise _fail(snapshot.client_id, "client profile does not exist")

    pending = ZERO
    verified_total = ZERO
    for txn in snapshot.transactions:
        net = _transaction_net(snapshot, txn)
        if txn.status in PENDING_STATUSES:
            pending += net
        elif txn.status in CREDITED_STATUSES:
            verified_total += net

    adjustments_net = ZERO
    for adj in snapshot.adjustments:
        _check_owner(snapshot, adj, "adjustment")
        amount = Decimal(adj.amount)
        if adj.type not in _ADJUSTMENT_TYPES or amount <= 0:
            raise _fail(snapshot.client_id, f"adjustment {adj.id} is malformed")
        adjustments_net += amount if adj.type == AdjustmentType.ADD.value else -amount

    withdrawn_committed = ZERO
    withdrawn_paid = ZERO
    for wd in snapshot.withdrawals:
        _check_owner(snapshot, wd, "withdrawal")
        amount = Decimal(wd.amount)
        if wd.status not in _WITHDRAWAL_STATUSES or amount <= 0:
            raise _fail(snapshot.client_id, f"withdrawal {wd.id} is malformed")
        if wd.status in COMMITTED_WITHDRAWAL_STATUSES:
            withdrawn_committed += amount
        if wd.status == WithdrawalStatus.PAID.value:
            withdrawn_paid += amount

    available = verified_total + adjustments_net - withdrawn_committed
    total = pending + available + withdrawn_paid

    return ClientBalances(
        client_id=snapshot.client_id,
        available=available,
        pending=pending,
        withdrawn=withdrawn_paid,
        total=total,
        verified_total=verified_total,
        adjustments_net=adjustments_net,
        withdrawn_committed=withdrawn_committed,
    )
