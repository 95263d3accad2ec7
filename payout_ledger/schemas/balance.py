"""Pydantic schemas for derived balances and the client statement."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BalanceResponse(BaseModel):
    """Balances of one client, recomputed from its ledger."""

    model_config = ConfigDict(from_attributes=True)

    client_id: UUID
    available: Decimal = Field(
        ..., description="Withdrawable now; negative when the client is in debt"
    )
    pending: Decimal = Field(..., description="Net value of sales awaiting verification")
    withdrawn: Decimal = Field(..., description="Sum of paid withdrawals")
    total: Decimal = Field(..., description="pending + available + withdrawn")
    verified_total: Decimal
    adjustments_net: Decimal
    withdrawn_committed: Decimal = Field(
        ..., description="Pending and paid withdrawals, both blocking balance"
    )
    in_debt: bool


class StatementEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    occurred_at: datetime
    kind: str
    amount: Decimal
    description: str
    reference_id: Optional[UUID] = None
    running_balance: Decimal


class StatementResponse(BaseModel):
    client_id: UUID
    available: Decimal
    entries: list[StatementEntryResponse]
