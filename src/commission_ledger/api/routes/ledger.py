"""Ledger generation, listing and reviewer edit endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from commission_ledger.api.dependencies import CurrentActor, Ledger, PeriodParam
from commission_ledger.api.schemas import (
    ErrorResponse,
    GenerationFailureResponse,
    GenerationResponse,
    LedgerEntryResponse,
    LedgerEntryUpdateRequest,
    LedgerListResponse,
    LedgerRowResponse,
    LineItemSchema,
)
from commission_ledger.services import LedgerEntryUpdate

router = APIRouter(tags=["ledger"])


@router.post("/periods/{year}/{month}/ledger/generate", response_model=GenerationResponse)
async def generate_ledger(
    ledger: Ledger,
    period: PeriodParam,
    actor: CurrentActor,
) -> GenerationResponse:
    """Generate or refresh every ledger entry for the period.

    Per-representative failures are reported in ``failed``; the request
    itself succeeds.
    """
    result = await ledger.generate_ledger(period, actor)
    return GenerationResponse(
        month=period.month,
        year=period.year,
        created=result.created,
        updated=result.updated,
        entry_count=result.entry_count,
        failed=[
            GenerationFailureResponse(representative_id=f.representative_id, error=f.error)
            for f in result.failed
        ],
    )


@router.get("/periods/{year}/{month}/ledger", response_model=LedgerListResponse)
async def get_ledger_for_period(ledger: Ledger, period: PeriodParam) -> LedgerListResponse:
    """Ledger entries for the period with plan line items."""
    rows = await ledger.get_ledger_for_period(period)
    return LedgerListResponse(
        month=period.month,
        year=period.year,
        items=[
            LedgerRowResponse(
                **LedgerEntryResponse.model_validate(row.entry).model_dump(),
                representative_name=row.representative_name,
                line_items=[LineItemSchema.model_validate(i) for i in row.line_items],
            )
            for row in rows
        ],
    )


@router.get(
    "/ledger-entries/{entry_id}",
    response_model=LedgerEntryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_ledger_entry(
    ledger: Ledger,
    entry_id: Annotated[UUID, Path()],
) -> LedgerEntryResponse:
    """Get a ledger entry by ID."""
    entry = await ledger.get_ledger_entry(entry_id)
    return LedgerEntryResponse.model_validate(entry)


@router.patch(
    "/ledger-entries/{entry_id}",
    response_model=LedgerEntryResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def update_ledger_entry(
    ledger: Ledger,
    actor: CurrentActor,
    entry_id: Annotated[UUID, Path()],
    payload: LedgerEntryUpdateRequest,
) -> LedgerEntryResponse:
    """Apply a reviewer edit; final_amount is recomputed."""
    entry = await ledger.update_ledger_entry(
        entry_id,
        LedgerEntryUpdate(**payload.model_dump()),
        actor,
    )
    return LedgerEntryResponse.model_validate(entry)
