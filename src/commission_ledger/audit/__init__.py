"""Audit trail for commission ledger mutations."""

from commission_ledger.audit.store import AuditLog, AuditRecord
from commission_ledger.audit.types import (
    Actor,
    AuditAction,
    AuditPayload,
    FieldChange,
    IndividualPlanUpdated,
    LedgerAdjusted,
    LedgerGenerated,
    OfficeTiersUpdated,
    parse_payload,
)

__all__ = [
    "Actor",
    "AuditAction",
    "AuditLog",
    "AuditPayload",
    "AuditRecord",
    "FieldChange",
    "IndividualPlanUpdated",
    "LedgerAdjusted",
    "LedgerGenerated",
    "OfficeTiersUpdated",
    "parse_payload",
]
