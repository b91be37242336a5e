"""Audit log endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from commission_ledger.api.dependencies import Ledger
from commission_ledger.api.schemas import AuditLogResponse, AuditRecordResponse, ErrorResponse

router = APIRouter(prefix="/audit-log", tags=["audit"])


@router.get("", response_model=AuditLogResponse, responses={422: {"model": ErrorResponse}})
async def get_recent_audit_log(
    ledger: Ledger,
    limit: Annotated[int | None, Query()] = None,
) -> AuditLogResponse:
    """Most recent audit records, newest first."""
    records = await ledger.get_recent_audit_log(limit)
    return AuditLogResponse(
        items=[
            AuditRecordResponse(
                audit_log_entry_id=r.audit_log_entry_id,
                action=r.action.value,
                description=r.description,
                metadata=r.metadata,
                actor_id=r.actor_id,
                actor_name=r.actor_name,
                created_at=r.created_at,
            )
            for r in records
        ]
    )
