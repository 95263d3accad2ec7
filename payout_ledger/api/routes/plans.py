"""Fee plan endpoints: custom plans, rate listings and the fee simulator."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from payout_ledger.core.database import get_db
from payout_ledger.core.logging import get_logger
from payout_ledger.models.custom_plan import CustomPlan
from payout_ledger.models.enums import STANDARD_PLANS
from payout_ledger.schemas.plan import (
    ChargeSimulationRequest,
    ChargeSimulationResponse,
    CustomPlanCreate,
    CustomPlanResponse,
    PlanRateRow,
    PlanRatesResponse,
    SaleSimulationRequest,
    SaleSimulationResponse,
)
from payout_ledger.services.rates.engine import RateTable
from payout_ledger.services.rates.plans import PlanService, RateRow
from payout_ledger.services.rates.simulator import simulate_charge, simulate_sale

logger = get_logger(__name__)

router = APIRouter()


def _service(db: Session = Depends(get_db)) -> PlanService:
    return PlanService(db)


def _rows(table: RateTable) -> list[PlanRateRow]:
    """Flatten a rate table, credit rows ordered by installment count."""
    ordered = sorted(
        table.rates.items(),
        key=lambda item: (item[0][0], item[0][1], item[0][2] or 0),
    )
    return [
        PlanRateRow(
            brand_group=group,
            payment_type=payment_type,
            installments=installments,
            rate=rate,
        )
        for (group, payment_type, installments), rate in ordered
    ]


@router.get("", response_model=list[PlanRatesResponse])
def list_plans(service: PlanService = Depends(_service)) -> list[PlanRatesResponse]:
    """Standard tiers followed by every active custom plan."""
    tables = [service.rate_table(plan) for plan in STANDARD_PLANS]
    tables += [service.rate_table(str(p.id)) for p in service.list_custom_plans()]
    return [
        PlanRatesResponse(plan=t.plan, name=t.name, rates=_rows(t)) for t in tables
    ]


@router.post("", response_model=CustomPlanResponse, status_code=201)
def create_custom_plan(
    body: CustomPlanCreate,
    service: PlanService = Depends(_service),
) -> CustomPlan:
    rows = [
        RateRow(
            brand_group=r.brand_group,
            payment_type=r.payment_type,
            installments=r.installments,
            rate=r.rate,
        )
        for r in body.rates
    ]
    return service.create_custom_plan(body.admin_id, body.name, rows)


@router.get("/{plan}/rates", response_model=PlanRatesResponse)
def get_plan_rates(plan: str, service: PlanService = Depends(_service)) -> PlanRatesResponse:
    """Rates of a standard tier (``basic``) or a custom plan (its id)."""
    table = service.rate_table(plan)
    return PlanRatesResponse(plan=table.plan, name=table.name, rates=_rows(table))


@router.post("/{plan}/simulate/charge", response_model=ChargeSimulationResponse)
def simulate_charge_amount(
    plan: str,
    body: ChargeSimulationRequest,
    service: PlanService = Depends(_service),
):
    """How much to charge so the client nets ``desired_net``."""
    result = simulate_charge(
        service.rate_table(plan),
        body.desired_net,
        body.brand,
        body.payment_type,
        body.installments,
    )
    return ChargeSimulationResponse.model_validate(result)


@router.post("/{plan}/simulate/sale", response_model=SaleSimulationResponse)
def simulate_sale_net(
    plan: str,
    body: SaleSimulationRequest,
    service: PlanService = Depends(_service),
):
    """Net value of a sale and the value of each installment."""
    result = simulate_sale(
        service.rate_table(plan),
        body.gross_value,
        body.brand,
        body.payment_type,
        body.installments,
    )
    return SaleSimulationResponse.model_validate(result)
