"""Shared test fixtures for the payout ledger tests.

Uses a file-backed SQLite database so tests run without PostgreSQL and
so several sessions (one per thread) can share it.
"""

from __future__ import annotations

import os
import uuid
from decimal import Decimal

# Must be set before payout_ledger is imported: Settings reads the
# environment at import time and core.database builds its engine from it.
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from payout_ledger.core.database import Base, build_engine, get_db
from payout_ledger.main import app
from payout_ledger.models.enums import AdjustmentType, Brand, BrandGroup, PaymentType, Role
from payout_ledger.models.profile import Profile
from payout_ledger.services.ledger.adjustments import AdjustmentLedger
from payout_ledger.services.ledger.cache import balance_cache
from payout_ledger.services.lifecycle.transactions import TransactionLifecycle
from payout_ledger.services.lifecycle.withdrawals import WithdrawalLifecycle
from payout_ledger.services.notifications.emitter import RecordingEmitter, get_emitter
from payout_ledger.services.rates.plans import PlanService, RateRow

# Use SQLite file-based database for tests (no PostgreSQL needed)
TEST_DATABASE_URL = "sqlite:///./test.db"

# BEGIN IMMEDIATE + foreign keys, same as the application engine
engine = build_engine(TEST_DATABASE_URL, timeout_seconds=5.0)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_session):
    """Factory for extra sessions on the test database (e.g. one per thread)."""
    return TestingSessionLocal


@pytest.fixture(autouse=True)
def _clear_balance_cache():
    """Cached balances must not leak between tests that reuse client ids."""
    balance_cache.clear()
    yield
    balance_cache.clear()


@pytest.fixture
def emitter():
    """In-memory emitter that records every lifecycle event."""
    return RecordingEmitter()


@pytest.fixture(scope="function")
def client(db_session, emitter):
    """FastAPI test client with overridden DB and emitter dependencies."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_emitter] = lambda: emitter
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ── Profiles ────────────────────────────────────────────────────────


@pytest.fixture
def make_profile(db_session):
    """Insert a profile and return it."""

    def _make(role: Role = Role.CLIENT, plan: str | None = "basic") -> Profile:
        profile_id = uuid.uuid4()
        profile = Profile(
            id=profile_id,
            email=f"{role.value}-{profile_id.hex[:8]}@example.com",
            full_name=f"Test {role.value}",
            role=role.value,
            plan=plan if role == Role.CLIENT else None,
        )
        db_session.add(profile)
        db_session.commit()
        return profile

    return _make


@pytest.fixture
def admin_profile(make_profile) -> Profile:
    return make_profile(Role.ADMIN)


@pytest.fixture
def client_profile(make_profile) -> Profile:
    """A client on the ``basic`` plan."""
    return make_profile(Role.CLIENT, plan="basic")


# ── Services ────────────────────────────────────────────────────────


@pytest.fixture
def transactions(db_session, emitter) -> TransactionLifecycle:
    return TransactionLifecycle(db_session, emitter=emitter)


@pytest.fixture
def withdrawals(db_session, emitter) -> WithdrawalLifecycle:
    return WithdrawalLifecycle(db_session, emitter=emitter)


@pytest.fixture
def adjustments(db_session, emitter) -> AdjustmentLedger:
    return AdjustmentLedger(db_session, emitter=emitter)


@pytest.fixture
def fund(adjustments, admin_profile):
    """Credit a client's balance through an admin adjustment."""

    def _fund(client: Profile, amount: str) -> None:
        adjustments.append(
            client.id, admin_profile.id, AdjustmentType.ADD, Decimal(amount), "Opening balance"
        )

    return _fund


@pytest.fixture
def five_percent_client(db_session, make_profile, admin_profile) -> Profile:
    """A client on a custom plan charging a flat 5% on Visa/Master debit."""
    plan = PlanService(db_session).create_custom_plan(
        admin_profile.id,
        "Flat 5%",
        [RateRow(BrandGroup.VISA_MASTER, PaymentType.DEBIT, None, Decimal("5.00"))],
    )
    return make_profile(Role.CLIENT, plan=str(plan.id))


@pytest.fixture
def verified_sale(transactions, admin_profile):
    """Create a sale with a receipt and verify it; returns the transaction."""

    def _sale(
        client: Profile,
        gross: str,
        brand: Brand = Brand.VISA_MASTER,
        payment_type: PaymentType = PaymentType.DEBIT,
        installments: int = 1,
    ):
        txn = transactions.create_transaction(
            client.id,
            Decimal(gross),
            brand,
            payment_type,
            installments,
            receipt_url="receipts/sale.jpg",
        )
        return transactions.verify_transaction(txn.id, admin_profile.id)

    return _sale
