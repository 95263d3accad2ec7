"""Store-backed balance queries.

Loads a consistent snapshot of one client's ledger and hands it to the
pure engine in ``balance.py``.  This is the only module that turns rows
into balances; routes and lifecycle managers all call through here.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from payout_ledger.core.database import unit_of_work
from payout_ledger.core.exceptions import NotFound
from payout_ledger.core.logging import get_logger
from payout_ledger.models.adjustment import BalanceAdjustment
from payout_ledger.models.profile import Profile
from payout_ledger.models.transaction import Transaction
from payout_ledger.models.withdrawal import Withdrawal
from payout_ledger.services.ledger.balance import (
    ClientBalances,
    LedgerSnapshot,
    compute_balances,
)
from payout_ledger.services.ledger.cache import BalanceCache, balance_cache
from payout_ledger.services.ledger.statement import StatementEntry, build_statement

logger = get_logger(__name__)


def load_snapshot(db: Session, client_id: uuid.UUID) -> LedgerSnapshot:
    """Read every balance-affecting record of a client.

    Must be called inside the caller's store transaction so the three
    reads see the same state.  A client with no profile and no records is
    simply unknown (``NotFound``); records without a profile are handed to
    the engine, which refuses them.
    """
    exists = db.get(Profile, client_id) is not None

    # populate_existing: rows already in the identity map are re-read too
    fresh = {"populate_existing": True}
    transactions = db.execute(
        select(Transaction)
        .where(Transaction.client_id == client_id)
        .order_by(Transaction.created_at)
        .execution_options(**fresh)
    ).scalars().all()
    withdrawals = db.execute(
        select(Withdrawal)
        .where(Withdrawal.client_id == client_id)
        .order_by(Withdrawal.created_at)
        .execution_options(**fresh)
    ).scalars().all()
    adjustments = db.execute(
        select(BalanceAdjustment)
        .where(BalanceAdjustment.client_id == client_id)
        .order_by(BalanceAdjustment.created_at)
        .execution_options(**fresh)
    ).scalars().all()

    if not exists and not (transactions or withdrawals or adjustments):
        raise NotFound(f"Client {client_id} not found")

    return LedgerSnapshot(
        client_id=client_id,
        client_exists=exists,
        transactions=tuple(transactions),
        withdrawals=tuple(withdrawals),
        adjustments=tuple(adjustments),
    )


class BalanceService:
    """Answers "how much can this client withdraw right now"."""

    def __init__(self, db: Session, cache: BalanceCache = balance_cache) -> None:
        self.db = db
        self.cache = cache

    def get_balances(self, client_id: uuid.UUID) -> ClientBalances:
        """Balances for a client, served from cache when still valid."""
        cached = self.cache.get(client_id)
        if cached is not None:
            return cached

        generation = self.cache.generation(client_id)
        with unit_of_work(self.db):
            balances = compute_balances(load_snapshot(self.db, client_id))

        self.cache.put(client_id, balances, generation)
        logger.debug(
            "Balances computed: client=%s available=%s pending=%s withdrawn=%s",
            client_id,
            balances.available,
            balances.pending,
            balances.withdrawn,
        )
        return balances

    def get_statement(self, client_id: uuid.UUID) -> list[StatementEntry]:
        """Chronological available-balance movements for a client."""
        with unit_of_work(self.db):
            return build_statement(load_snapshot(self.db, client_id))
