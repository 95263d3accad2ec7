"""Client statement — the movements behind the available balance.

Each entry is one event that changed ``available``, in chronological order,
with the running balance after it.  Pending sales are not listed: they
only reach the statement once verified.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from payout_ledger.core.exceptions import ReconciliationError
from payout_ledger.models.enums import AdjustmentType, TransactionStatus, WithdrawalStatus
from payout_ledger.services.ledger.balance import (
    CREDITED_STATUSES,
    ZERO,
    LedgerSnapshot,
    compute_balances,
)


class EntryKind(str, Enum):
    SALE_CREDIT = "sale_credit"
    CHARGEBACK = "chargeback"
    ADJUSTMENT_ADD = "adjustment_add"
    ADJUSTMENT_REMOVE = "adjustment_remove"
    WITHDRAWAL = "withdrawal"
    WITHDRAWAL_RELEASE = "withdrawal_release"


@dataclass(frozen=True)
class StatementEntry:
    occurred_at: datetime
    kind: EntryKind
    amount: Decimal
    description: str
    reference_id: Optional[uuid.UUID]
    running_balance: Decimal = ZERO


def _require_timestamp(client_id: uuid.UUID, value: Optional[datetime], what: str) -> datetime:
    if value is None:
        raise ReconciliationError(
            f"Inconsistent ledger for client {client_id}: {what} has no timestamp"
        )
    return value


def _movements(snapshot: LedgerSnapshot) -> list[StatementEntry]:
    client_id = snapshot.client_id
    out: list[StatementEntry] = []

    for txn in snapshot.transactions:
        credited = txn.status in CREDITED_STATUSES
        charged_back = txn.status == TransactionStatus.CHARGEBACK.value
        if not (credited or charged_back):
            continue
        verified_at = _require_timestamp(client_id, txn.verified_at, f"transaction {txn.id}")
        out.append(
            StatementEntry(
                occurred_at=verified_at,
                kind=EntryKind.SALE_CREDIT,
                amount=Decimal(txn.net_value),
                description=f"Sale {txn.brand} {txn.payment_type} {txn.installments}x",
                reference_id=txn.id,
            )
        )
        if charged_back:
            out.append(
                StatementEntry(
                    occurred_at=_require_timestamp(
                        client_id, txn.chargeback_at, f"chargeback {txn.id}"
                    ),
                    kind=EntryKind.CHARGEBACK,
                    amount=-Decimal(txn.net_value),
                    description=f"Chargeback: {txn.chargeback_reason}",
                    reference_id=txn.id,
                )
            )

    for adj in snapshot.adjustments:
        is_add = adj.type == AdjustmentType.ADD.value
        out.append(
            StatementEntry(
                occurred_at=adj.created_at,
                kind=EntryKind.ADJUSTMENT_ADD if is_add else EntryKind.ADJUSTMENT_REMOVE,
                amount=Decimal(adj.amount) if is_add else -Decimal(adj.amount),
                description=adj.reason,
                reference_id=adj.id,
            )
        )

    for wd in snapshot.withdrawals:
        out.append(
            StatementEntry(
                occurred_at=wd.created_at,
                kind=EntryKind.WITHDRAWAL,
                amount=-Decimal(wd.amount),
                description=f"Withdrawal via {wd.method} ({wd.status})",
                reference_id=wd.id,
            )
        )
        if wd.status == WithdrawalStatus.CANCELLED.value:
            out.append(
                StatementEntry(
                    occurred_at=_require_timestamp(
                        client_id, wd.cancelled_at, f"withdrawal {wd.id}"
                    ),
                    kind=EntryKind.WITHDRAWAL_RELEASE,
                    amount=Decimal(wd.amount),
                    description=f"Withdrawal cancelled: {wd.cancel_reason or '-'}",
                    reference_id=wd.id,
                )
            )

    return out


def build_statement(snapshot: LedgerSnapshot) -> list[StatementEntry]:
    """Chronological movements with running available balance.

    The last running balance always equals ``compute_balances(snapshot)
    .available``; a mismatch means the snapshot is inconsistent and raises
    ``ReconciliationError``.
    """
    balances = compute_balances(snapshot)
    movements = sorted(_movements(snapshot), key=lambda e: e.occurred_at)

    running = ZERO
    entries: list[StatementEntry] = []
    for entry in movements:
        running += entry.amount
        entries.append(
            StatementEntry(
                occurred_at=entry.occurred_at,
                kind=entry.kind,
                amount=entry.amount,
                description=entry.description,
                reference_id=entry.reference_id,
                running_balance=running,
            )
        )

    if running != balances.available:
        raise ReconciliationError(
            f"Statement for client {snapshot.client_id} ends at {running} "
            f"but available balance is {balances.available}"
        )
    return entries
