"""Translate ledger domain errors into JSON responses.

Every ``LedgerError`` becomes ``{"detail": message, "kind": kind}`` with the
status code the error class declares.  Request-body validation stays with
FastAPI's own 422 handler.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from payout_ledger.core.exceptions import LedgerError
from payout_ledger.core.logging import get_logger

logger = get_logger(__name__)


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed with %s: %s",
            request.method,
            request.url.path,
            exc.kind,
            exc.message,
        )
    else:
        logger.warning(
            "%s %s refused with %s: %s",
            request.method,
            request.url.path,
            exc.kind,
            exc.message,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
