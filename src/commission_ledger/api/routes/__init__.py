"""API routes."""

from commission_ledger.api.routes.audit import router as audit_router
from commission_ledger.api.routes.health import router as health_router
from commission_ledger.api.routes.ledger import router as ledger_router
from commission_ledger.api.routes.plans import router as plans_router
from commission_ledger.api.routes.tiers import router as tiers_router

__all__ = ["audit_router", "health_router", "ledger_router", "plans_router", "tiers_router"]
