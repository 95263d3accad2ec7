"""Payout Ledger - Main Application."""

from fastapi import FastAPI

from payout_ledger.api.errors import register_exception_handlers
from payout_ledger.api.routes import clients, plans, transactions, withdrawals
from payout_ledger.core.config import settings
from payout_ledger.core.database import Base, engine
from payout_ledger.core.logging import setup_logging

# Configure logging before anything else
logger = setup_logging(settings.log_level)

# Create all tables on startup
logger.info("Creating database tables...")
Base.metadata.create_all(bind=engine)
logger.info("Database tables ready")

# -- OpenAPI tag metadata for Swagger grouping --
tags_metadata = [
    {
        "name": "Health",
        "description": "Service health and readiness checks.",
    },
    {
        "name": "Transactions",
        "description": (
            "Register card and PIX sales, attach receipts, and move sales "
            "through verification, payment and chargeback."
        ),
    },
    {
        "name": "Withdrawals",
        "description": (
            "Request payouts to a PIX key, bank account or boleto; admins pay "
            "or cancel them from the pending queue."
        ),
    },
    {
        "name": "Clients",
        "description": (
            "Derived balances, the running-balance statement, admin balance "
            "adjustments and plan assignment for one client."
        ),
    },
    {
        "name": "Plans",
        "description": (
            "Standard and custom fee plans, their rate tables, and the "
            "charge/sale simulator."
        ),
    },
]


app = FastAPI(
    title="Payout Ledger",
    description=(
        "## Client Payout Ledger API\n\n"
        "Tracks each client's card and PIX sales, the fees withheld on them, "
        "and the withdrawals paid out, and derives balances from those records "
        "on every read.\n\n"
        "### Balances\n"
        "| Figure | Meaning |\n"
        "|--------|---------|\n"
        "| **pending** | Net value of sales still awaiting verification |\n"
        "| **available** | Verified sales + adjustments - pending/paid withdrawals |\n"
        "| **withdrawn** | Withdrawals already paid out |\n"
        "| **total** | pending + available + withdrawn |\n\n"
        "### Error kinds\n"
        "- `validation_error` (422) - malformed input\n"
        "- `invalid_transition` (409) - status does not allow the command\n"
        "- `rate_not_found` (422) - plan has no rate for the sale\n"
        "- `insufficient_balance` (409) - withdrawal exceeds available balance\n"
        "- `reconciliation_error` (500) - inconsistent ledger records\n"
        "- `not_found` (404), `permission_denied` (403)\n"
    ),
    version="1.0.0",
    openapi_tags=tags_metadata,
    license_info={
        "name": "MIT",
    },
    docs_url="/docs",
    redoc_url="/redoc",
)

register_exception_handlers(app)

app.include_router(
    transactions.router, prefix="/api/v1/transactions", tags=["Transactions"]
)
app.include_router(withdrawals.router, prefix="/api/v1/withdrawals", tags=["Withdrawals"])
app.include_router(clients.router, prefix="/api/v1/clients", tags=["Clients"])
app.include_router(plans.router, prefix="/api/v1/plans", tags=["Plans"])

logger.info("Payout Ledger API ready - routes registered")


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint.

    Returns a simple JSON object confirming the service is running.
    Useful for load balancers and monitoring systems.
    """
    return {"status": "healthy", "service": "payout-ledger"}
