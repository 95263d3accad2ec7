"""Pydantic schemas for fee plans and the fee simulator."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from payout_ledger.models.enums import Brand, BrandGroup, PaymentType


class PlanRateRow(BaseModel):
    """One fee percentage of a plan."""

    model_config = ConfigDict(from_attributes=True)

    brand_group: BrandGroup
    payment_type: PaymentType
    installments: Optional[int] = Field(
        None, ge=1, description="Required for credit, empty otherwise"
    )
    rate: Decimal = Field(..., ge=0, lt=100, max_digits=6, decimal_places=2)


class CustomPlanCreate(BaseModel):
    admin_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    rates: list[PlanRateRow] = Field(..., min_length=1)


class CustomPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    is_active: bool
    created_at: datetime
    rates: list[PlanRateRow]


class PlanRatesResponse(BaseModel):
    """A standard tier or custom plan, flattened for display."""

    plan: str
    name: str
    rates: list[PlanRateRow]


class PlanAssign(BaseModel):
    admin_id: UUID
    plan: str = Field(
        ..., min_length=1, description="basic | intermediario | top | <custom plan id>"
    )


class ChargeSimulationRequest(BaseModel):
    desired_net: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    brand: Brand
    payment_type: PaymentType
    installments: int = Field(1, ge=1)


class ChargeSimulationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    desired_net: Decimal
    fee_percentage: Decimal
    charge_amount: Decimal
    fee_value: Decimal


class SaleSimulationRequest(BaseModel):
    gross_value: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    brand: Brand
    payment_type: PaymentType
    installments: int = Field(1, ge=1)


class SaleSimulationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    gross_value: Decimal
    fee_percentage: Decimal
    net_value: Decimal
    installments: int
    installment_value: Decimal
