"""Append-only audit log store.

The store provides:
- One insert per mutating operation (``record``)
- "Most recent N" reads ordered newest first (``recent``)

No update or delete method is exposed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_ledger.audit.types import Actor, AuditAction, AuditPayload, parse_payload
from commission_ledger.config import get_settings
from commission_ledger.errors import InputValidationError
from commission_ledger.models import AuditLogEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditRecord:
    """A persisted audit record."""

    audit_log_entry_id: int
    action: AuditAction
    description: str
    metadata: dict[str, Any]
    actor_id: str
    actor_name: str | None
    created_at: datetime

    @classmethod
    def from_model(cls, row: AuditLogEntry) -> AuditRecord:
        return cls(
            audit_log_entry_id=row.audit_log_entry_id,
            action=AuditAction(row.action),
            description=row.description,
            metadata=dict(row.metadata_json or {}),
            actor_id=row.actor_id,
            actor_name=row.actor_name,
            created_at=row.created_at,
        )

    @property
    def payload(self) -> AuditPayload:
        """The typed payload for this record's action."""
        return parse_payload(self.action, self.metadata)


class AuditLog:
    """Audit log bound to a session.

    Records join the caller's transaction, so an audit entry is committed
    if and only if the mutation it describes is committed.

    Usage:
        audit = AuditLog(session)
        await audit.record(actor, LedgerGenerated(...))
        records = await audit.recent(limit=20)
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(
        self,
        actor: Actor,
        payload: AuditPayload,
        description: str | None = None,
    ) -> AuditLogEntry:
        """Append one audit record for a mutation."""
        entry = AuditLogEntry(
            action=payload.action.value,
            description=description or payload.describe(),
            metadata_json=payload.to_dict(),
            actor_id=actor.actor_id,
            actor_name=actor.display_name,
        )
        self._session.add(entry)
        await self._session.flush()
        logger.debug("Audit %s by %s: %s", entry.action, actor.actor_id, entry.description)
        return entry

    async def recent(self, limit: int | None = None) -> list[AuditRecord]:
        """Most recent records first."""
        settings = get_settings()
        if limit is None:
            limit = settings.audit_log_default_limit
        if limit < 1 or limit > settings.audit_log_max_limit:
            raise InputValidationError(
                f"limit must be between 1 and {settings.audit_log_max_limit}, got {limit}"
            )

        result = await self._session.execute(
            select(AuditLogEntry)
            .order_by(
                AuditLogEntry.created_at.desc(),
                AuditLogEntry.audit_log_entry_id.desc(),
            )
            .limit(limit)
        )
        return [AuditRecord.from_model(row) for row in result.scalars().all()]
