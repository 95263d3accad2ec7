"""Enumerated domains shared by models, schemas and services."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    """Naive UTC timestamp with microseconds, used for every ledger column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Role(str, Enum):
    CLIENT = "client"
    ADMIN = "admin"


class Brand(str, Enum):
    VISA_MASTER = "visa_master"
    ELO_AMEX = "elo_amex"
    PIX = "pix"


class BrandGroup(str, Enum):
    """Rate-table grouping of brands."""

    VISA_MASTER = "VISA_MASTER"
    ELO_AMEX = "ELO_AMEX"
    PIX = "PIX"


BRAND_GROUPS: dict[Brand, BrandGroup] = {
    Brand.VISA_MASTER: BrandGroup.VISA_MASTER,
    Brand.ELO_AMEX: BrandGroup.ELO_AMEX,
    Brand.PIX: BrandGroup.PIX,
}


class PaymentType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"
    PIX_CONTA = "pix_conta"
    PIX_QRCODE = "pix_qrcode"


CARD_PAYMENT_TYPES = frozenset({PaymentType.DEBIT, PaymentType.CREDIT})
PIX_PAYMENT_TYPES = frozenset({PaymentType.PIX_CONTA, PaymentType.PIX_QRCODE})


class TransactionStatus(str, Enum):
    PENDING_RECEIPT = "pending_receipt"
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"
    REJECTED = "rejected"
    PAID = "paid"
    CHARGEBACK = "chargeback"


class WithdrawalStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class WithdrawalMethod(str, Enum):
    PIX = "pix"
    BANK = "bank"
    BOLETO = "boleto"


class PixKeyType(str, Enum):
    CPF = "cpf"
    PHONE = "phone"
    EMAIL = "email"
    RANDOM = "random"


class AdjustmentType(str, Enum):
    ADD = "add"
    REMOVE = "remove"


STANDARD_PLANS = ("basic", "intermediario", "top")
