"""Published fee tables for the standard plans.

Percentages exactly as published for each plan tier.  Card brands have a
debit rate and one credit rate per installment count (1x to 18x); PIX has
separate rates for account transfers and QR code payments.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

# plan -> brand group -> rates
_RAW_TABLES: dict[str, dict[str, dict[str, Any]]] = {
    "basic": {
        "VISA_MASTER": {
            "debit": "3.30",
            "credit": [
                "4.76", "6.43", "6.90", "7.28", "7.75", "8.32",
                "8.88", "9.45", "10.00", "10.58", "11.13", "12.10",
                "13.48", "13.92", "14.57", "15.22", "15.87", "16.83",
            ],
        },
        "ELO_AMEX": {
            "debit": "2.90",
            "credit": [
                "5.16", "7.03", "7.76", "8.49", "9.20", "9.91",
                "12.11", "12.81", "13.50", "14.18", "14.85", "15.52",
                "16.18", "16.83", "17.48", "18.12", "18.76", "19.39",
            ],
        },
        "PIX": {"pix_conta": "1.00", "pix_qrcode": "1.50"},
    },
    "intermediario": {
        "VISA_MASTER": {
            "debit": "2.29",
            "credit": [
                "4.29", "5.13", "5.78", "6.42", "7.06", "7.69",
                "8.51", "9.13", "9.74", "10.20", "10.95", "11.55",
                "12.94", "13.53", "14.11", "14.69", "15.26", "15.83",
            ],
        },
        "ELO_AMEX": {
            "debit": "3.00",
            "credit": [
                "4.99", "6.30", "6.99", "7.68", "8.35", "9.02",
                "10.47", "11.13", "11.78", "12.43", "13.06", "13.70",
                "14.32", "14.94", "15.56", "16.17", "16.77", "17.37",
            ],
        },
        "PIX": {"pix_conta": "0.75", "pix_qrcode": "1.30"},
    },
    "top": {
        "VISA_MASTER": {
            "debit": "1.99",
            "credit": [
                "3.99", "4.83", "5.48", "6.12", "6.76", "7.39",
                "8.21", "8.83", "9.44", "10.05", "10.65", "11.25",
                "12.64", "13.23", "13.81", "14.39", "14.96", "15.53",
            ],
        },
        "ELO_AMEX": {
            "debit": "3.10",
            "credit": [
                "5.19", "6.37", "7.02", "7.66", "8.30", "8.93",
                "10.34", "10.96", "11.57", "12.18", "12.78", "13.38",
                "13.97", "14.56", "15.14", "15.72", "16.29", "16.86",
            ],
        },
        "PIX": {"pix_conta": "0.50", "pix_qrcode": "1.00"},
    },
}

PLAN_NAMES: dict[str, str] = {
    "basic": "Básico",
    "intermediario": "Intermediário",
    "top": "Master",
}

RateKey = tuple[str, str, Optional[int]]


def _flatten(raw: dict[str, dict[str, Any]]) -> dict[RateKey, Decimal]:
    """Turn a nested published table into ``(group, type, installments) -> pct``."""
    flat: dict[RateKey, Decimal] = {}
    for brand_group, rates in raw.items():
        for payment_type, value in rates.items():
            if payment_type == "credit":
                for index, pct in enumerate(value, start=1):
                    flat[(brand_group, "credit", index)] = Decimal(pct)
            else:
                flat[(brand_group, payment_type, None)] = Decimal(value)
    return flat


STANDARD_RATES: dict[str, dict[RateKey, Decimal]] = {
    plan: _flatten(raw) for plan, raw in _RAW_TABLES.items()
}
