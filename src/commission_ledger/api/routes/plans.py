"""Individual plan endpoints."""

from fastapi import APIRouter

from commission_ledger.api.dependencies import CurrentActor, Ledger, PeriodParam
from commission_ledger.api.schemas import (
    ErrorResponse,
    IndividualPlanRequest,
    IndividualPlanResponse,
    LineItemSchema,
    PlanListResponse,
)
from commission_ledger.calculators.types import LineItem

router = APIRouter(prefix="/periods/{year}/{month}/plans", tags=["plans"])


@router.get("", response_model=PlanListResponse)
async def get_plans_for_period(ledger: Ledger, period: PeriodParam) -> PlanListResponse:
    """Plans and order statistics for every active representative."""
    summaries = await ledger.get_plans_for_period(period)
    return PlanListResponse(
        month=period.month,
        year=period.year,
        items=[
            IndividualPlanResponse(
                representative_id=s.representative.representative_id,
                display_name=s.representative.display_name,
                office=s.representative.office,
                month=period.month,
                year=period.year,
                salary=s.salary,
                cancellation_deduction=s.cancellation_deduction,
                line_items=[LineItemSchema.model_validate(i) for i in s.line_items],
                units_sold=s.order_stats.units_sold,
                order_total=s.order_stats.order_total,
                has_plan=s.has_plan,
            )
            for s in summaries
        ],
    )


@router.put(
    "/{representative_id}",
    response_model=IndividualPlanResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def set_individual_plan(
    ledger: Ledger,
    period: PeriodParam,
    actor: CurrentActor,
    representative_id: str,
    payload: IndividualPlanRequest,
) -> IndividualPlanResponse:
    """Replace a representative's plan for the period."""
    plan = await ledger.set_individual_plan(
        representative_id,
        period,
        salary=payload.salary,
        cancellation_deduction=payload.cancellation_deduction,
        line_items=[LineItem(name=i.name, amount=i.amount) for i in payload.line_items],
        actor=actor,
    )
    rep = await ledger.directory.get_representative(representative_id)
    return IndividualPlanResponse(
        representative_id=representative_id,
        display_name=rep.display_name if rep else representative_id,
        office=rep.office if rep else None,
        month=period.month,
        year=period.year,
        salary=plan.salary,
        cancellation_deduction=plan.cancellation_deduction,
        line_items=[LineItemSchema.model_validate(i) for i in plan.line_items],
    )
