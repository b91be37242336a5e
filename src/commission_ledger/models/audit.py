"""Append-only audit log model."""

from __future__ import annotations

from typing import Any

from sqlalchemy import BigInteger, CheckConstraint, Index, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from commission_ledger.models.base import Base, JSONType, TimestampMixin


class AuditLogImmutableError(Exception):
    """Raised when an audit log row is updated or deleted through the ORM."""


class AuditLogEntry(Base, TimestampMixin):
    """One audit record per mutating operation.

    Rows are insert-only; flush hooks below reject UPDATE and DELETE.
    """

    __tablename__ = "audit_log_entry"

    audit_log_entry_id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    action: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_json: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONType, nullable=False, default=dict
    )
    actor_id: Mapped[str] = mapped_column(String, nullable=False)
    actor_name: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "action IN ('OFFICE_TIERS_UPDATED', 'INDIVIDUAL_PLAN_UPDATED', "
            "'LEDGER_GENERATED', 'LEDGER_ADJUSTED')",
            name="audit_log_entry_action_check",
        ),
        Index("ix_audit_log_entry_created_at", "created_at"),
    )


@event.listens_for(AuditLogEntry, "before_update")
def _reject_update(mapper: Any, connection: Any, target: AuditLogEntry) -> None:
    raise AuditLogImmutableError(
        f"Audit log entry {target.audit_log_entry_id} is append-only and cannot be updated"
    )


@event.listens_for(AuditLogEntry, "before_delete")
def _reject_delete(mapper: Any, connection: Any, target: AuditLogEntry) -> None:
    raise AuditLogImmutableError(
        f"Audit log entry {target.audit_log_entry_id} is append-only and cannot be deleted"
    )
