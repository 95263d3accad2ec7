"""Unit tests for the charge and sale simulators (pure, standard tables)."""

from __future__ import annotations

from decimal import Decimal

import pytest

from payout_ledger.core.exceptions import RateNotFound, ValidationError
from payout_ledger.models.enums import Brand, PaymentType
from payout_ledger.services.rates.engine import RateTable, compute_fee, standard_table
from payout_ledger.services.rates.simulator import simulate_charge, simulate_sale


class TestSimulateCharge:
    def test_charge_rounds_up_so_net_is_covered(self) -> None:
        """Netting 100.00 on basic debit (3.30%) needs a charge of 103.42."""
        result = simulate_charge(
            standard_table("basic"), Decimal("100.00"), Brand.VISA_MASTER, PaymentType.DEBIT
        )

        assert result.fee_percentage == Decimal("3.30")
        assert result.charge_amount == Decimal("103.42")
        assert result.fee_value == Decimal("3.42")
        # Charging the suggested amount really nets at least the target
        assert compute_fee(result.charge_amount, result.fee_percentage).net_value >= Decimal("100.00")

    def test_credit_installments_use_their_own_rate(self) -> None:
        one = simulate_charge(
            standard_table("top"), Decimal("500"), Brand.VISA_MASTER, PaymentType.CREDIT, 1
        )
        twelve = simulate_charge(
            standard_table("top"), Decimal("500"), Brand.VISA_MASTER, PaymentType.CREDIT, 12
        )

        assert twelve.charge_amount > one.charge_amount
        assert twelve.fee_percentage == Decimal("11.25")

    def test_non_positive_target_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            simulate_charge(
                standard_table("basic"), Decimal("0"), Brand.PIX, PaymentType.PIX_CONTA
            )

    def test_missing_rate(self) -> None:
        with pytest.raises(RateNotFound):
            simulate_charge(
                RateTable(plan="empty", name="Empty"),
                Decimal("10"),
                Brand.PIX,
                PaymentType.PIX_QRCODE,
            )


class TestSimulateSale:
    def test_installment_value(self) -> None:
        """1000.00 on basic Visa credit 3x (6.90%) nets 931.00, 310.33 each."""
        result = simulate_sale(
            standard_table("basic"), Decimal("1000.00"), Brand.VISA_MASTER, PaymentType.CREDIT, 3
        )

        assert result.net_value == Decimal("931.00")
        assert result.installments == 3
        assert result.installment_value == Decimal("310.33")

    def test_matches_transaction_fee_arithmetic(self) -> None:
        table = standard_table("intermediario")
        result = simulate_sale(table, Decimal("87.45"), Brand.ELO_AMEX, PaymentType.DEBIT)

        assert result.net_value == compute_fee(Decimal("87.45"), Decimal("3.00")).net_value
