#!/usr/bin/env python3
"""
Seed a demo ledger for the payout ledger API.

Creates (in the database named by DATABASE_URL):
  - one admin and two clients on the basic and top plans
  - a custom "Parceiro" plan assigned to a third client
  - sales in every transaction status, including a pending chargeback
  - paid, pending and cancelled withdrawals (pix, bank and boleto)
  - add/remove balance adjustments

Then prints every client's balances.  Reproducible: uses random.seed(42).
Run against an empty database; profile e-mails are unique.
"""

from __future__ import annotations

import random
import uuid
from decimal import Decimal

from payout_ledger.core.database import Base, SessionLocal, engine
from payout_ledger.core.logging import setup_logging
from payout_ledger.models.enums import (
    AdjustmentType,
    Brand,
    BrandGroup,
    PaymentType,
    Role,
)
from payout_ledger.models.profile import Profile
from payout_ledger.schemas.withdrawal import (
    BankDestination,
    BoletoDestination,
    PixDestination,
)
from payout_ledger.services.ledger.adjustments import AdjustmentLedger
from payout_ledger.services.ledger.service import BalanceService
from payout_ledger.services.lifecycle.transactions import TransactionLifecycle
from payout_ledger.services.lifecycle.withdrawals import WithdrawalLifecycle
from payout_ledger.services.rates.plans import PlanService, RateRow

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
SEED = 42
random.seed(SEED)

SALE_KINDS: list[tuple[Brand, PaymentType, int]] = [
    (Brand.VISA_MASTER, PaymentType.DEBIT, 1),
    (Brand.VISA_MASTER, PaymentType.CREDIT, 1),
    (Brand.VISA_MASTER, PaymentType.CREDIT, 6),
    (Brand.ELO_AMEX, PaymentType.CREDIT, 3),
    (Brand.ELO_AMEX, PaymentType.DEBIT, 1),
    (Brand.PIX, PaymentType.PIX_QRCODE, 1),
    (Brand.PIX, PaymentType.PIX_CONTA, 1),
]

PARTNER_RATES: list[RateRow] = [
    RateRow(BrandGroup.VISA_MASTER, PaymentType.DEBIT, None, Decimal("1.49")),
    RateRow(BrandGroup.ELO_AMEX, PaymentType.DEBIT, None, Decimal("1.99")),
    RateRow(BrandGroup.PIX, PaymentType.PIX_CONTA, None, Decimal("0.39")),
    RateRow(BrandGroup.PIX, PaymentType.PIX_QRCODE, None, Decimal("0.79")),
] + [
    RateRow(group, PaymentType.CREDIT, n, Decimal("2.99") + Decimal("0.85") * (n - 1))
    for group in (BrandGroup.VISA_MASTER, BrandGroup.ELO_AMEX)
    for n in range(1, 13)
]


def _amount(low: float, high: float) -> Decimal:
    return Decimal(str(round(random.uniform(low, high), 2)))


def _share(available: Decimal, fraction: str) -> Decimal:
    """Round share of an available balance, never negative."""
    return max(Decimal("0.00"), (available * Decimal(fraction)).quantize(Decimal("1.00")))


def _profile(db, role: Role, name: str, plan: str | None = None) -> Profile:
    profile = Profile(
        id=uuid.uuid4(),
        email=f"{name.lower().replace(' ', '.')}@demo.local",
        full_name=name,
        role=role.value,
        plan=plan,
    )
    db.add(profile)
    db.commit()
    return profile


def _sales(txns: TransactionLifecycle, client: Profile, admin: Profile, count: int) -> None:
    """Create ``count`` sales and walk them through every lifecycle outcome."""
    for i in range(count):
        brand, payment_type, installments = random.choice(SALE_KINDS)
        txn = txns.create_transaction(
            client.id, _amount(50, 2500), brand, payment_type, installments
        )
        outcome = i % 6
        if outcome == 0:
            continue  # stays pending_receipt
        txns.submit_receipt(txn.id, client.id, f"receipts/{txn.id}.jpg")
        if outcome == 1:
            continue  # stays pending_verification
        if outcome == 2:
            txns.reject_transaction(txn.id, admin.id, "Receipt does not match the sale")
            continue
        txns.verify_transaction(txn.id, admin.id)
        if outcome == 4:
            txns.request_chargeback(txn.id, client.id, "Customer says the sale was duplicated")
        elif outcome == 5:
            txns.approve_chargeback(txn.id, admin.id, "Issuer dispute lost")


def main() -> None:
    logger = setup_logging("INFO")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        admin = _profile(db, Role.ADMIN, "Admin Demo")
        maria = _profile(db, Role.CLIENT, "Maria Basic", "basic")
        joao = _profile(db, Role.CLIENT, "Joao Top", "top")
        bia = _profile(db, Role.CLIENT, "Bia Parceira")

        plans = PlanService(db)
        partner = plans.create_custom_plan(admin.id, "Parceiro", PARTNER_RATES)
        plans.assign_plan(admin.id, bia.id, str(partner.id))

        txns = TransactionLifecycle(db)
        withdrawals = WithdrawalLifecycle(db)
        adjustments = AdjustmentLedger(db)

        for client in (maria, joao, bia):
            _sales(txns, client, admin, count=18)

        adjustments.append(maria.id, admin.id, AdjustmentType.ADD, Decimal("150.00"), "Welcome bonus")
        adjustments.append(joao.id, admin.id, AdjustmentType.REMOVE, Decimal("35.90"), "POS rental")

        balances = BalanceService(db)

        pix = PixDestination(pix_key="maria@demo.local", pix_key_type="email", pix_owner_name="Maria")
        amount = _share(balances.get_balances(maria.id).available, "0.40")
        if amount > 0:
            paid = withdrawals.request_withdrawal(maria.id, amount, pix)
            withdrawals.pay_withdrawal(paid.id, admin.id, "proofs/demo-pix.pdf")
        amount = _share(balances.get_balances(maria.id).available, "0.25")
        if amount > 0:
            withdrawals.request_withdrawal(maria.id, amount, pix)

        bank = BankDestination(bank_name="Banco Demo", bank_agency="0001", bank_account="4242-1")
        amount = _share(balances.get_balances(joao.id).available, "0.50")
        if amount > 0:
            cancelled = withdrawals.request_withdrawal(joao.id, amount, bank)
            withdrawals.cancel_withdrawal(cancelled.id, joao.id, "Wrong account")

        boleto = BoletoDestination(
            boleto_name="Aluguel",
            boleto_beneficiary_name="Imobiliaria Demo",
            boleto_number="34191.79001 01043.510047 91020.150008 5 96610000012345",
        )
        amount = _share(balances.get_balances(bia.id).available, "0.30")
        if amount > 0:
            withdrawals.request_withdrawal(bia.id, amount, boleto)

        for client in (maria, joao, bia):
            b = balances.get_balances(client.id)
            logger.info(
                "%-14s available=%10s pending=%10s withdrawn=%10s total=%10s",
                client.full_name,
                b.available,
                b.pending,
                b.withdrawn,
                b.total,
            )
    finally:
        db.close()


if __name__ == "__main__":
    main()
