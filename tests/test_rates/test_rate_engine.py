"""Unit tests for fee resolution and fee arithmetic.

Standard-table tests are pure; custom-plan loading uses the database.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from payout_ledger.core.exceptions import RateNotFound, ValidationError
from payout_ledger.models.enums import Brand, BrandGroup, PaymentType
from payout_ledger.services.rates.engine import (
    compute_fee,
    load_rate_table,
    rate_key,
    resolve_fee,
    standard_table,
    validate_classification,
)
from payout_ledger.services.rates.plans import PlanService, RateRow
from payout_ledger.services.rates.tables import STANDARD_RATES


# ── Standard tables ──────────────────────────────────────────────────


class TestStandardTables:
    def test_every_standard_plan_is_complete(self) -> None:
        """Each tier prices debit, 18 credit installments per card group, and PIX."""
        for plan, rates in STANDARD_RATES.items():
            for group in ("VISA_MASTER", "ELO_AMEX"):
                assert (group, "debit", None) in rates, plan
                for n in range(1, 19):
                    assert (group, "credit", n) in rates, (plan, n)
            assert ("PIX", "pix_conta", None) in rates
            assert ("PIX", "pix_qrcode", None) in rates

    def test_basic_visa_rates(self) -> None:
        table = standard_table("basic")

        assert resolve_fee(table, Brand.VISA_MASTER, PaymentType.DEBIT) == Decimal("3.30")
        assert resolve_fee(table, Brand.VISA_MASTER, PaymentType.CREDIT, 1) == Decimal("4.76")
        assert resolve_fee(table, Brand.VISA_MASTER, PaymentType.CREDIT, 18) == Decimal("16.83")

    def test_pix_rates(self) -> None:
        table = standard_table("basic")

        assert resolve_fee(table, Brand.PIX, PaymentType.PIX_CONTA) == Decimal("1.00")
        assert resolve_fee(table, Brand.PIX, PaymentType.PIX_QRCODE) == Decimal("1.50")

    def test_higher_tiers_are_cheaper_on_debit(self) -> None:
        basic = resolve_fee(standard_table("basic"), Brand.VISA_MASTER, PaymentType.DEBIT)
        intermediario = resolve_fee(
            standard_table("intermediario"), Brand.VISA_MASTER, PaymentType.DEBIT
        )

        assert intermediario < basic

    def test_unknown_standard_plan(self) -> None:
        with pytest.raises(RateNotFound):
            standard_table("platinum")


# ── Classification ───────────────────────────────────────────────────


class TestClassification:
    def test_rate_key_ignores_installments_outside_credit(self) -> None:
        assert rate_key(Brand.ELO_AMEX, PaymentType.DEBIT, 1) == ("ELO_AMEX", "debit", None)
        assert rate_key(Brand.ELO_AMEX, PaymentType.CREDIT, 3) == ("ELO_AMEX", "credit", 3)

    @pytest.mark.parametrize(
        "brand, payment_type, installments",
        [
            (Brand.PIX, PaymentType.CREDIT, 1),
            (Brand.VISA_MASTER, PaymentType.PIX_CONTA, 1),
            (Brand.VISA_MASTER, PaymentType.DEBIT, 2),
            (Brand.VISA_MASTER, PaymentType.CREDIT, 0),
            (Brand.VISA_MASTER, PaymentType.CREDIT, 19),
        ],
    )
    def test_impossible_combinations(self, brand, payment_type, installments) -> None:
        with pytest.raises(ValidationError):
            validate_classification(brand, payment_type, installments)

    def test_unknown_brand_string(self) -> None:
        with pytest.raises(ValidationError):
            validate_classification("diners", "credit", 1)


# ── Fee arithmetic ───────────────────────────────────────────────────


class TestComputeFee:
    def test_five_percent_of_one_thousand(self) -> None:
        fee = compute_fee(Decimal("1000"), Decimal("5.00"))

        assert fee.fee_value == Decimal("50.00")
        assert fee.net_value == Decimal("950.00")

    def test_rounds_half_up_to_the_cent(self) -> None:
        """0.50 at 1% is half a cent, which rounds up."""
        fee = compute_fee(Decimal("0.50"), Decimal("1.00"))

        assert fee.fee_value == Decimal("0.01")
        assert fee.net_value == Decimal("0.49")

    def test_net_is_gross_minus_fee(self) -> None:
        fee = compute_fee(Decimal("1234.56"), Decimal("4.76"))

        assert fee.fee_value == Decimal("58.77")
        assert fee.net_value == fee.gross_value - fee.fee_value

    def test_non_positive_gross_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            compute_fee(Decimal("0"), Decimal("3.30"))

    @pytest.mark.parametrize("gross", [Decimal("10.005"), "ten", Decimal("NaN")])
    def test_gross_must_be_exact_to_the_cent(self, gross) -> None:
        with pytest.raises(ValidationError):
            compute_fee(gross, Decimal("3.30"))


# ── Plan loading ─────────────────────────────────────────────────────


class TestLoadRateTable:
    def test_standard_key(self, db_session) -> None:
        assert load_rate_table(db_session, "top").plan == "top"

    def test_missing_plan_without_default(self, db_session) -> None:
        with pytest.raises(ValidationError, match="no plan"):
            load_rate_table(db_session, None)

    def test_garbage_plan(self, db_session) -> None:
        with pytest.raises(RateNotFound):
            load_rate_table(db_session, "not-a-plan")

    def test_unknown_custom_plan(self, db_session) -> None:
        with pytest.raises(RateNotFound):
            load_rate_table(db_session, str(uuid.uuid4()))

    def test_custom_plan_missing_row_fails(self, db_session, admin_profile) -> None:
        """A custom plan without a 12x row never falls back to another rate."""
        plan = PlanService(db_session).create_custom_plan(
            admin_profile.id,
            "Short credit",
            [
                RateRow(BrandGroup.VISA_MASTER, PaymentType.CREDIT, 1, Decimal("3.99")),
                RateRow(BrandGroup.VISA_MASTER, PaymentType.CREDIT, 2, Decimal("5.49")),
            ],
        )
        table = load_rate_table(db_session, str(plan.id))

        assert resolve_fee(table, Brand.VISA_MASTER, PaymentType.CREDIT, 2) == Decimal("5.49")
        with pytest.raises(RateNotFound):
            resolve_fee(table, Brand.VISA_MASTER, PaymentType.CREDIT, 12)
        with pytest.raises(RateNotFound):
            resolve_fee(table, Brand.ELO_AMEX, PaymentType.DEBIT)
