"""SQLAlchemy models for the commission ledger."""

from commission_ledger.models.audit import AuditLogEntry, AuditLogImmutableError
from commission_ledger.models.base import Base, TimestampMixin, utcnow
from commission_ledger.models.ledger import LedgerEntry
from commission_ledger.models.plans import IndividualPlan, PlanLineItem
from commission_ledger.models.tiers import CommissionTier

__all__ = [
    "AuditLogEntry",
    "AuditLogImmutableError",
    "Base",
    "CommissionTier",
    "IndividualPlan",
    "LedgerEntry",
    "PlanLineItem",
    "TimestampMixin",
    "utcnow",
]
