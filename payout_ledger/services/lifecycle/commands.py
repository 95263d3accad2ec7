"""Operator commands and the state machines that admit them.

Every status change enters the ledger as one of the command objects below.
The transition tables are the only place that says which command may run
from which status; the lifecycle managers look commands up here and never
hard-code status checks of their own.

Transaction:
    pending_receipt      --submit_receipt-->     pending_verification
    pending_verification --verify-->             verified
    pending_verification --reject-->             rejected     (terminal)
    verified             --mark_paid-->          paid
    verified | paid      --approve_chargeback--> chargeback   (terminal)

Withdrawal:
    pending --pay-->    paid       (terminal)
    pending --cancel--> cancelled  (terminal)

Chargeback requests and their rejection only annotate a verified or paid
transaction; they never change its status.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import ClassVar, Optional

from payout_ledger.core.exceptions import InvalidTransition
from payout_ledger.models.enums import TransactionStatus as TS
from payout_ledger.models.enums import WithdrawalStatus as WS


@dataclass(frozen=True)
class Transition:
    sources: frozenset[str]
    target: Optional[str]  # None: annotation only, status unchanged


# ── Transaction commands ─────────────────────────────────────────────


@dataclass(frozen=True)
class SubmitReceipt:
    name: ClassVar[str] = "submit_receipt"

    transaction_id: uuid.UUID
    client_id: uuid.UUID
    receipt_url: Optional[str] = None
    no_receipt_reason: Optional[str] = None


@dataclass(frozen=True)
class VerifyTransaction:
    name: ClassVar[str] = "verify"

    transaction_id: uuid.UUID
    admin_id: uuid.UUID


@dataclass(frozen=True)
class RejectTransaction:
    name: ClassVar[str] = "reject"

    transaction_id: uuid.UUID
    admin_id: uuid.UUID
    reason: Optional[str] = None


@dataclass(frozen=True)
class MarkTransactionPaid:
    name: ClassVar[str] = "mark_paid"

    transaction_id: uuid.UUID
    admin_id: uuid.UUID


@dataclass(frozen=True)
class RequestChargeback:
    name: ClassVar[str] = "request_chargeback"

    transaction_id: uuid.UUID
    client_id: uuid.UUID
    reason: Optional[str] = None


@dataclass(frozen=True)
class ApproveChargeback:
    name: ClassVar[str] = "approve_chargeback"

    transaction_id: uuid.UUID
    admin_id: uuid.UUID
    reason: Optional[str] = None


@dataclass(frozen=True)
class RejectChargeback:
    name: ClassVar[str] = "reject_chargeback"

    transaction_id: uuid.UUID
    admin_id: uuid.UUID


TransactionCommand = (
    SubmitReceipt
    | VerifyTransaction
    | RejectTransaction
    | MarkTransactionPaid
    | RequestChargeback
    | ApproveChargeback
    | RejectChargeback
)

_SETTLED = frozenset({TS.VERIFIED.value, TS.PAID.value})

TRANSACTION_TRANSITIONS: dict[str, Transition] = {
    SubmitReceipt.name: Transition(
        frozenset({TS.PENDING_RECEIPT.value}), TS.PENDING_VERIFICATION.value
    ),
    VerifyTransaction.name: Transition(
        frozenset({TS.PENDING_VERIFICATION.value}), TS.VERIFIED.value
    ),
    RejectTransaction.name: Transition(
        frozenset({TS.PENDING_VERIFICATION.value}), TS.REJECTED.value
    ),
    MarkTransactionPaid.name: Transition(frozenset({TS.VERIFIED.value}), TS.PAID.value),
    RequestChargeback.name: Transition(_SETTLED, None),
    ApproveChargeback.name: Transition(_SETTLED, TS.CHARGEBACK.value),
    RejectChargeback.name: Transition(_SETTLED, None),
}

TERMINAL_TRANSACTION_STATUSES = frozenset({TS.REJECTED.value, TS.CHARGEBACK.value})


# ── Withdrawal commands ──────────────────────────────────────────────


@dataclass(frozen=True)
class PayWithdrawal:
    name: ClassVar[str] = "pay"

    withdrawal_id: uuid.UUID
    admin_id: uuid.UUID
    proof_url: Optional[str] = None


@dataclass(frozen=True)
class CancelWithdrawal:
    name: ClassVar[str] = "cancel"

    withdrawal_id: uuid.UUID
    actor_id: uuid.UUID
    reason: Optional[str] = None


WithdrawalCommand = PayWithdrawal | CancelWithdrawal

WITHDRAWAL_TRANSITIONS: dict[str, Transition] = {
    PayWithdrawal.name: Transition(frozenset({WS.PENDING.value}), WS.PAID.value),
    CancelWithdrawal.name: Transition(frozenset({WS.PENDING.value}), WS.CANCELLED.value),
}

TERMINAL_WITHDRAWAL_STATUSES = frozenset({WS.PAID.value, WS.CANCELLED.value})


def check_transition(
    table: dict[str, Transition],
    entity: str,
    entity_id: uuid.UUID,
    current: str,
    command: str,
) -> Transition:
    """Return the transition for ``command`` or raise ``InvalidTransition``."""
    transition = table[command]
    if current not in transition.sources:
        raise InvalidTransition(entity, entity_id, current, command)
    return transition
