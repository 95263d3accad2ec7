"""Ledger error taxonomy.

Every failure a caller can observe is one of these kinds, so the transport
layer can tell wrong state, insufficient funds, and bad input apart.  The
``kind`` string travels in API responses; ``status_code`` is the HTTP status
the API maps it to.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger domain errors."""

    kind: str = "ledger_error"
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Malformed input, rejected before anything is persisted."""

    kind = "validation_error"
    status_code = 422


class InvalidTransition(LedgerError):
    """The entity's current status does not allow the requested command."""

    kind = "invalid_transition"
    status_code = 409

    def __init__(self, entity: str, entity_id: object, current: str, command: str) -> None:
        super().__init__(
            f"Cannot {command} {entity} {entity_id}: current status is '{current}'"
        )
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.command = command


class RateNotFound(LedgerError):
    """The plan has no fee for the requested brand/payment type/installments."""

    kind = "rate_not_found"
    status_code = 422


class InsufficientBalance(LedgerError):
    """A withdrawal would overdraw the client's available balance."""

    kind = "insufficient_balance"
    status_code = 409


class ReconciliationError(LedgerError):
    """Balance inputs are inconsistent; no figure is produced."""

    kind = "reconciliation_error"
    status_code = 500


class NotFound(LedgerError):
    """A referenced entity does not exist."""

    kind = "not_found"
    status_code = 404


class PermissionDenied(LedgerError):
    """The acting profile's role does not allow the command."""

    kind = "permission_denied"
    status_code = 403
