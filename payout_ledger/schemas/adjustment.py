"""Pydantic schemas for balance adjustments."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from payout_ledger.models.enums import AdjustmentType


class AdjustmentCreate(BaseModel):
    """Request body for an admin balance correction."""

    admin_id: UUID
    type: AdjustmentType = Field(..., description="add | remove")
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    reason: str = Field(..., min_length=1)


class AdjustmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    client_id: UUID
    admin_id: UUID
    type: str
    amount: Decimal
    reason: str
    created_at: datetime
