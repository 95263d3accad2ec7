"""Concurrent withdrawal requests must never jointly overdraw a client.

Each thread uses its own session, as separate API requests would.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

from payout_ledger.core.exceptions import InsufficientBalance
from payout_ledger.schemas.withdrawal import PixDestination
from payout_ledger.services.ledger.balance import compute_balances
from payout_ledger.services.ledger.cache import BalanceCache
from payout_ledger.services.ledger.service import BalanceService, load_snapshot
from payout_ledger.services.lifecycle.withdrawals import WithdrawalLifecycle
from payout_ledger.services.notifications.emitter import RecordingEmitter

PIX = PixDestination(pix_key="ana@example.com", pix_key_type="email", pix_owner_name="Ana")


def test_two_requests_exceeding_available_jointly(
    db_session, session_factory, client_profile, fund
) -> None:
    """100 available, two requests of 80: exactly one succeeds."""
    client_id = client_profile.id
    fund(client_profile, "100.00")
    db_session.commit()

    barrier = threading.Barrier(2)
    emitter = RecordingEmitter()

    def request() -> str:
        session = session_factory()
        try:
            lifecycle = WithdrawalLifecycle(session, emitter=emitter, cache=BalanceCache(False))
            barrier.wait()
            try:
                lifecycle.request_withdrawal(client_id, Decimal("80.00"), PIX)
                return "ok"
            except InsufficientBalance:
                return "refused"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = sorted(pool.map(lambda _: request(), range(2)))

    assert outcomes == ["ok", "refused"]
    assert len(emitter.events) == 1

    check = session_factory()
    try:
        balances = BalanceService(check, cache=BalanceCache(False)).get_balances(client_id)
        assert balances.available == Decimal("20.00")
        assert balances.withdrawn_committed == Decimal("80.00")
    finally:
        check.close()


def test_many_small_requests_stop_at_zero(
    db_session, session_factory, client_profile, fund
) -> None:
    """Ten concurrent requests of 15 against 100 leave no negative balance."""
    client_id = client_profile.id
    fund(client_profile, "100.00")
    db_session.commit()

    def request() -> bool:
        session = session_factory()
        try:
            lifecycle = WithdrawalLifecycle(
                session, emitter=RecordingEmitter(), cache=BalanceCache(False)
            )
            try:
                lifecycle.request_withdrawal(client_id, Decimal("15.00"), PIX)
                return True
            except InsufficientBalance:
                return False
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: request(), range(10)))

    assert results.count(True) == 6

    check = session_factory()
    try:
        balances = compute_balances(load_snapshot(check, client_id))
        assert balances.available == Decimal("10.00")
    finally:
        check.close()
