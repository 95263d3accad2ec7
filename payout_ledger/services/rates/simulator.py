"""Fee simulator — what to charge and what the client receives.

Used by the pricing screens: given a plan and a sale classification,
answer "how much must I charge to net X?" and "how much do I net on a
sale of Y, per installment?".
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal

from payout_ledger.core.exceptions import ValidationError
from payout_ledger.models.enums import Brand, PaymentType
from payout_ledger.services.rates.engine import (
    CENT,
    HUNDRED,
    RateTable,
    resolve_fee,
    to_money,
)


@dataclass(frozen=True)
class ChargeSimulation:
    desired_net: Decimal
    fee_percentage: Decimal
    charge_amount: Decimal
    fee_value: Decimal


@dataclass(frozen=True)
class SaleSimulation:
    gross_value: Decimal
    fee_percentage: Decimal
    net_value: Decimal
    installments: int
    installment_value: Decimal


def simulate_charge(
    table: RateTable,
    desired_net: Decimal,
    brand: Brand,
    payment_type: PaymentType,
    installments: int = 1,
) -> ChargeSimulation:
    """Gross amount to charge so the client keeps ``desired_net``.

    The charge is rounded *up* to the cent so the net never falls short.
    """
    desired = to_money(desired_net)
    if desired <= 0:
        raise ValidationError("desired_net must be greater than zero")

    pct = resolve_fee(table, brand, payment_type, installments)
    raw = desired / (1 - pct / HUNDRED)
    charge = raw.quantize(CENT, rounding=ROUND_CEILING)
    return ChargeSimulation(
        desired_net=desired,
        fee_percentage=pct,
        charge_amount=charge,
        fee_value=charge - desired,
    )


def simulate_sale(
    table: RateTable,
    gross_value: Decimal,
    brand: Brand,
    payment_type: PaymentType,
    installments: int = 1,
) -> SaleSimulation:
    """Net value of a sale and the value of each installment."""
    gross = to_money(gross_value)
    if gross <= 0:
        raise ValidationError("gross_value must be greater than zero")

    pct = resolve_fee(table, brand, payment_type, installments)
    net = gross - to_money(gross * pct / HUNDRED)
    return SaleSimulation(
        gross_value=gross,
        fee_percentage=pct,
        net_value=net,
        installments=installments,
        installment_value=to_money(net / installments),
    )
