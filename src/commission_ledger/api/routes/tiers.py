"""Office tier schedule endpoints."""

from fastapi import APIRouter

from commission_ledger.api.dependencies import CurrentActor, Ledger, PeriodParam
from commission_ledger.api.schemas import (
    ErrorResponse,
    OfficeTiersRequest,
    OfficeTiersResponse,
    TierResponse,
)
from commission_ledger.calculators.types import TierBracket

router = APIRouter(prefix="/periods/{year}/{month}/offices", tags=["tiers"])


@router.get("/{office}/tiers", response_model=OfficeTiersResponse)
async def get_office_tiers(
    ledger: Ledger,
    period: PeriodParam,
    office: str,
) -> OfficeTiersResponse:
    """Tier schedule for an office, in evaluation order."""
    tiers = await ledger.get_office_tiers(office, period)
    return OfficeTiersResponse(
        office=office,
        month=period.month,
        year=period.year,
        tiers=[TierResponse.model_validate(t) for t in tiers],
    )


@router.put(
    "/{office}/tiers",
    response_model=OfficeTiersResponse,
    responses={422: {"model": ErrorResponse}},
)
async def set_office_tiers(
    ledger: Ledger,
    period: PeriodParam,
    actor: CurrentActor,
    office: str,
    payload: OfficeTiersRequest,
) -> OfficeTiersResponse:
    """Replace an office's whole tier schedule for the period."""
    brackets = [
        TierBracket(
            metric=tier.metric,
            min_value=tier.min_value,
            max_value=tier.max_value,
            bonus_amount=tier.bonus_amount,
            bonus_form=tier.bonus_form,
        )
        for tier in payload.tiers
    ]
    tiers = await ledger.set_office_tiers(office, period, brackets, actor)
    return OfficeTiersResponse(
        office=office,
        month=period.month,
        year=period.year,
        tiers=[TierResponse.model_validate(t) for t in tiers],
    )
