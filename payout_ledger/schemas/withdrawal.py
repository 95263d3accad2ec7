"""Pydantic schemas for withdrawals and their payout destinations."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from payout_ledger.models.enums import PixKeyType


class PixDestination(BaseModel):
    """Payout to a PIX key."""

    model_config = ConfigDict(extra="forbid")

    method: Literal["pix"] = "pix"
    pix_key: str = Field(..., min_length=1, max_length=255)
    pix_key_type: PixKeyType
    pix_owner_name: str = Field(..., min_length=1, max_length=255)

    def to_columns(self) -> dict[str, Any]:
        return {
            "pix_key": self.pix_key.strip(),
            "pix_key_type": self.pix_key_type.value,
            "pix_owner_name": self.pix_owner_name.strip(),
        }


class BankDestination(BaseModel):
    """Payout by bank transfer."""

    model_config = ConfigDict(extra="forbid")

    method: Literal["bank"] = "bank"
    bank_name: str = Field(..., min_length=1, max_length=100)
    bank_agency: str = Field(..., min_length=1, max_length=20)
    bank_account: str = Field(..., min_length=1, max_length=30)

    def to_columns(self) -> dict[str, Any]:
        return {
            "bank_name": self.bank_name.strip(),
            "bank_agency": self.bank_agency.strip(),
            "bank_account": self.bank_account.strip(),
        }


class BoletoDestination(BaseModel):
    """Payout by settling a boleto on the client's behalf."""

    model_config = ConfigDict(extra="forbid")

    method: Literal["boleto"] = "boleto"
    boleto_name: str = Field(..., min_length=1, max_length=255)
    boleto_beneficiary_name: str = Field(..., min_length=1, max_length=255)
    boleto_number: str = Field(..., min_length=1, max_length=100)
    boleto_value: Optional[Decimal] = Field(None, max_digits=15, decimal_places=2)
    boleto_origin: Optional[str] = Field(None, max_length=255)

    def to_columns(self) -> dict[str, Any]:
        return {
            "boleto_name": self.boleto_name.strip(),
            "boleto_beneficiary_name": self.boleto_beneficiary_name.strip(),
            "boleto_number": self.boleto_number.strip(),
            "boleto_value": self.boleto_value,
            "boleto_origin": self.boleto_origin,
        }


WithdrawalDestination = Annotated[
    Union[PixDestination, BankDestination, BoletoDestination],
    Field(discriminator="method"),
]


class WithdrawalRequest(BaseModel):
    """Request body for a new withdrawal."""

    client_id: UUID
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    destination: WithdrawalDestination


class WithdrawalPayRequest(BaseModel):
    admin_id: UUID
    proof_url: str = Field(..., description="Reference to the payment proof")


class WithdrawalCancelRequest(BaseModel):
    actor_id: UUID = Field(..., description="Owning client or an admin")
    reason: Optional[str] = None


class WithdrawalResponse(BaseModel):
    """Withdrawal record returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    client_id: UUID
    amount: Decimal
    status: str = Field(..., description="pending | paid | cancelled")
    method: str = Field(..., description="pix | bank | boleto")
    pix_key: Optional[str] = None
    pix_key_type: Optional[str] = None
    pix_owner_name: Optional[str] = None
    bank_name: Optional[str] = None
    bank_agency: Optional[str] = None
    bank_account: Optional[str] = None
    boleto_name: Optional[str] = None
    boleto_beneficiary_name: Optional[str] = None
    boleto_number: Optional[str] = None
    boleto_value: Optional[Decimal] = None
    boleto_origin: Optional[str] = None
    admin_proof_url: Optional[str] = None
    paid_by: Optional[UUID] = None
    paid_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    cancelled_by: Optional[UUID] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
