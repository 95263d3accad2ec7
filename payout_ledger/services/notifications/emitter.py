"""Lifecycle event emission.

The ledger only needs a fire-and-forget ``emit(event)``: delivery (push,
e-mail, in-app feed) belongs to whatever emitter the host wires in.
Events are emitted after the store transaction commits, and a failing
emitter never undoes or fails the command that produced the event.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol

from payout_ledger.core.logging import get_logger
from payout_ledger.models.enums import utcnow

logger = get_logger(__name__)


class EventType(str, Enum):
    TRANSACTION_CREATED = "transaction_created"
    RECEIPT_UPLOADED = "receipt_uploaded"
    TRANSACTION_VERIFIED = "transaction_verified"
    TRANSACTION_REJECTED = "transaction_rejected"
    TRANSACTION_PAID = "transaction_paid"
    CHARGEBACK_REQUESTED = "chargeback_requested"
    CHARGEBACK_APPROVED = "chargeback_approved"
    CHARGEBACK_REJECTED = "chargeback_rejected"
    WITHDRAWAL_REQUESTED = "withdrawal_requested"
    WITHDRAWAL_PAID = "withdrawal_paid"
    WITHDRAWAL_CANCELLED = "withdrawal_cancelled"
    BALANCE_ADJUSTED = "balance_adjusted"


@dataclass(frozen=True)
class LedgerEvent:
    """Something a client or the admins should hear about."""

    type: EventType
    client_id: uuid.UUID
    related_id: Optional[uuid.UUID]
    message: str
    occurred_at: datetime = field(default_factory=utcnow)


class NotificationEmitter(Protocol):
    def emit(self, event: LedgerEvent) -> None: ...


class LoggingEmitter:
    """Writes every event to the application log."""

    def emit(self, event: LedgerEvent) -> None:
        logger.info(
            "Event %s client=%s related=%s: %s",
            event.type.value,
            event.client_id,
            event.related_id,
            event.message,
        )


class RecordingEmitter:
    """Keeps events in memory; handy for tests and admin dashboards."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: list[LedgerEvent] = []

    def emit(self, event: LedgerEvent) -> None:
        with self._lock:
            self.events.append(event)

    def of_type(self, event_type: EventType) -> list[LedgerEvent]:
        with self._lock:
            return [e for e in self.events if e.type == event_type]

    def clear(self) -> None:
        with self._lock:
            self.events.clear()


def safe_emit(emitter: NotificationEmitter, event: LedgerEvent) -> None:
    """Deliver an event without letting emitter failures reach the caller."""
    try:
        emitter.emit(event)
    except Exception:
        logger.exception("Failed to emit %s for client=%s", event.type.value, event.client_id)


_default_emitter: NotificationEmitter = LoggingEmitter()


def get_emitter() -> NotificationEmitter:
    """FastAPI dependency returning the process-wide emitter."""
    return _default_emitter
