"""Pydantic schemas for transactions.

Responses are a tagged variant: one model per status, discriminated by the
``status`` field, so a client can rely on e.g. ``rejection_reason`` being
present on every rejected sale and absent everywhere else.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from payout_ledger.models.enums import Brand, PaymentType


# ── Request bodies ──────────────────────────────────────────────────


class TransactionCreate(BaseModel):
    """Request body for registering a sale."""

    client_id: UUID
    gross_value: Decimal = Field(
        ...,
        gt=0,
        max_digits=15,
        decimal_places=2,
        description="Sale amount charged to the customer",
    )
    brand: Brand
    payment_type: PaymentType
    installments: int = Field(1, ge=1)
    receipt_url: Optional[str] = Field(None, max_length=1024)
    no_receipt_reason: Optional[str] = None


class ReceiptSubmit(BaseModel):
    client_id: UUID
    receipt_url: Optional[str] = Field(None, max_length=1024)
    no_receipt_reason: Optional[str] = None


class AdminAction(BaseModel):
    admin_id: UUID


class TransactionReject(BaseModel):
    admin_id: UUID
    reason: str = Field(..., description="Shown to the client")


class ChargebackRequest(BaseModel):
    client_id: UUID
    reason: str


class ChargebackApprove(BaseModel):
    admin_id: UUID
    reason: Optional[str] = Field(
        None, description="Defaults to the reason given by the client"
    )


# ── Responses ───────────────────────────────────────────────────────


class _TransactionBase(BaseModel):
    """Fields every transaction carries regardless of status."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    client_id: UUID
    gross_value: Decimal
    fee_percentage: Decimal
    fee_value: Decimal
    net_value: Decimal
    brand: str
    payment_type: str
    installments: int
    receipt_url: Optional[str] = None
    no_receipt_reason: Optional[str] = None
    chargeback_reason: Optional[str] = None
    chargeback_requested_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class PendingReceiptTransaction(_TransactionBase):
    status: Literal["pending_receipt"]


class PendingVerificationTransaction(_TransactionBase):
    status: Literal["pending_verification"]


class RejectedTransaction(_TransactionBase):
    status: Literal["rejected"]
    rejection_reason: str
    rejected_at: datetime
    rejected_by: UUID


class VerifiedTransaction(_TransactionBase):
    status: Literal["verified"]
    verified_at: datetime
    verified_by: UUID


class PaidTransaction(VerifiedTransaction):
    status: Literal["paid"]
    paid_at: Optional[datetime] = None
    paid_by: Optional[UUID] = None


class ChargebackTransaction(VerifiedTransaction):
    status: Literal["chargeback"]
    is_chargeback: Literal[True] = True
    chargeback_at: datetime
    chargeback_approved_by: Optional[UUID] = None
    paid_at: Optional[datetime] = None
    paid_by: Optional[UUID] = None


TransactionResponse = Annotated[
    Union[
        PendingReceiptTransaction,
        PendingVerificationTransaction,
        RejectedTransaction,
        VerifiedTransaction,
        PaidTransaction,
        ChargebackTransaction,
    ],
    Field(discriminator="status"),
]

_adapter: TypeAdapter = TypeAdapter(TransactionResponse)


def to_response(txn) -> BaseModel:
    """Build the status-specific response model for an ORM transaction."""
    return _adapter.validate_python(txn, from_attributes=True)
