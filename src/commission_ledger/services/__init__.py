"""Commission ledger services."""

from commission_ledger.services.ledger_generator import (
    GenerationFailure,
    GenerationResult,
    LedgerGenerator,
)
from commission_ledger.services.ledger_service import LedgerEntryUpdate, LedgerRow, LedgerService
from commission_ledger.services.plan_service import IndividualPlanService, PlanSummary
from commission_ledger.services.state_machine import LedgerEntryStateMachine, LedgerStatus
from commission_ledger.services.tier_service import TierScheduleService

__all__ = [
    "GenerationFailure",
    "GenerationResult",
    "IndividualPlanService",
    "LedgerEntryStateMachine",
    "LedgerEntryUpdate",
    "LedgerGenerator",
    "LedgerRow",
    "LedgerService",
    "LedgerStatus",
    "PlanSummary",
    "TierScheduleService",
]
