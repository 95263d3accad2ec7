"""Rate engine — resolves the fee percentage of a sale.

A plan is either one of the standard tiers (fixed tables in
``tables.py``) or a custom plan stored in the database.  Both are
normalised into a ``RateTable`` keyed by ``(brand_group, payment_type,
installments)``; credit keys carry the installment count and every other
payment type uses ``None``.

Resolution never falls back to a default: a missing row raises
``RateNotFound``, because a wrong percentage would be frozen into the
transaction's net value forever.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from sqlalchemy.orm import Session

from payout_ledger.core.config import settings
from payout_ledger.core.exceptions import RateNotFound, ValidationError
from payout_ledger.core.logging import get_logger
from payout_ledger.models.custom_plan import CustomPlan
from payout_ledger.models.enums import (
    BRAND_GROUPS,
    CARD_PAYMENT_TYPES,
    PIX_PAYMENT_TYPES,
    Brand,
    PaymentType,
    STANDARD_PLANS,
)
from payout_ledger.services.rates.tables import PLAN_NAMES, STANDARD_RATES, RateKey

logger = get_logger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class RateTable:
    """A plan's fee percentages, ready for lookup."""

    plan: str
    name: str
    rates: dict[RateKey, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class FeeBreakdown:
    """Money columns of a transaction derived from its gross value."""

    gross_value: Decimal
    fee_percentage: Decimal
    fee_value: Decimal
    net_value: Decimal


def to_money(value: Decimal) -> Decimal:
    """Quantize to cents, rounding half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_cents(value: Decimal, field: str) -> Decimal:
    """Read an amount or percentage that must already be exact to the cent.

    Raises:
        ValidationError: Not a finite number, or more than two decimals.
    """
    try:
        number = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid {field} {value!r}")
    if not number.is_finite():
        raise ValidationError(f"Invalid {field} {value!r}")
    if number != number.quantize(CENT):
        raise ValidationError(f"{field} cannot have more than two decimals")
    return number.quantize(CENT)


# ── Domain checks ───────────────────────────────────────────────────


def validate_classification(
    brand: Brand,
    payment_type: PaymentType,
    installments: int,
    max_installments: Optional[int] = None,
) -> None:
    """Reject brand/payment-type/installment combinations that cannot exist.

    Raises:
        ValidationError: PIX paired with a card payment type (or the other
            way round), installments below 1, above the maximum, or more
            than one installment for anything but credit.
    """
    try:
        brand = Brand(brand)
        payment_type = PaymentType(payment_type)
    except ValueError as exc:
        raise ValidationError(str(exc))
    limit = max_installments or settings.max_installments

    if brand == Brand.PIX and payment_type not in PIX_PAYMENT_TYPES:
        raise ValidationError(
            f"Payment type '{payment_type.value}' is not valid for PIX"
        )
    if brand != Brand.PIX and payment_type not in CARD_PAYMENT_TYPES:
        raise ValidationError(
            f"Payment type '{payment_type.value}' is not valid for brand '{brand.value}'"
        )
    if installments < 1:
        raise ValidationError("installments must be at least 1")
    if payment_type != PaymentType.CREDIT and installments != 1:
        raise ValidationError(
            f"'{payment_type.value}' payments are always a single installment"
        )
    if installments > limit:
        raise ValidationError(f"installments cannot exceed {limit}")


def rate_key(brand: Brand, payment_type: PaymentType, installments: int) -> RateKey:
    """Normalised lookup key for a sale classification."""
    group = BRAND_GROUPS[Brand(brand)].value
    payment_type = PaymentType(payment_type)
    if payment_type == PaymentType.CREDIT:
        return (group, payment_type.value, installments)
    return (group, payment_type.value, None)


# ── Resolution ──────────────────────────────────────────────────────


def resolve_fee(
    table: RateTable,
    brand: Brand,
    payment_type: PaymentType,
    installments: int = 1,
    max_installments: Optional[int] = None,
) -> Decimal:
    """Return the fee percentage the plan charges for this sale.

    Args:
        table: The client's plan, already loaded.
        brand: Card brand or PIX.
        payment_type: debit, credit, pix_conta or pix_qrcode.
        installments: Number of installments (1 unless credit).
        max_installments: Installment ceiling; defaults to
            ``settings.max_installments``.

    Returns:
        Percentage as a Decimal (``Decimal("4.76")`` means 4.76%).

    Raises:
        ValidationError: The classification itself is impossible.
        RateNotFound: The plan has no row for this classification.
    """
    validate_classification(brand, payment_type, installments, max_installments)
    key = rate_key(brand, payment_type, installments)
    pct = table.rates.get(key)
    if pct is None:
        logger.warning("No rate in plan %s for %s", table.plan, key)
        raise RateNotFound(
            f"Plan '{table.name}' has no rate for {key[0]} {key[1]}"
            + (f" {key[2]}x" if key[2] is not None else "")
        )
    return pct


def compute_fee(gross_value: Decimal, fee_percentage: Decimal) -> FeeBreakdown:
    """Derive fee and net value from the gross value and a percentage."""
    gross = parse_cents(gross_value, "gross_value")
    if gross <= 0:
        raise ValidationError("gross_value must be greater than zero")
    fee_value = to_money(gross * Decimal(fee_percentage) / HUNDRED)
    return FeeBreakdown(
        gross_value=gross,
        fee_percentage=Decimal(fee_percentage),
        fee_value=fee_value,
        net_value=gross - fee_value,
    )


# ── Plan loading ────────────────────────────────────────────────────


def standard_table(plan: str) -> RateTable:
    """Rate table of a standard tier (basic, intermediario or top)."""
    if plan not in STANDARD_RATES:
        raise RateNotFound(f"Unknown standard plan '{plan}'")
    return RateTable(plan=plan, name=PLAN_NAMES[plan], rates=STANDARD_RATES[plan])


def custom_table(plan: CustomPlan) -> RateTable:
    """Normalise a stored custom plan into a lookup table."""
    rates: dict[RateKey, Decimal] = {}
    for row in plan.rates:
        key = (row.brand_group, row.payment_type, row.installments)
        rates[key] = Decimal(row.rate)
    return RateTable(plan=str(plan.id), name=plan.name, rates=rates)


def load_rate_table(db: Session, plan: Optional[str]) -> RateTable:
    """Resolve a profile's ``plan`` value into its rate table.

    ``None`` falls back to ``settings.default_plan``; when that is unset too
    the client cannot register sales yet.

    Raises:
        ValidationError: No plan is assigned and there is no default.
        RateNotFound: The plan names neither a standard tier nor an active
            custom plan.
    """
    plan = plan or settings.default_plan
    if not plan:
        raise ValidationError("Client has no plan assigned yet")

    if plan in STANDARD_PLANS:
        return standard_table(plan)

    try:
        plan_id = uuid.UUID(plan)
    except ValueError:
        raise RateNotFound(f"Unknown plan '{plan}'")

    custom = db.get(CustomPlan, plan_id)
    if custom is None or not custom.is_active:
        raise RateNotFound(f"Custom plan '{plan}' not found or inactive")
    return custom_table(custom)
