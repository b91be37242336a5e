"""Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from commission_ledger.calculators.types import BonusForm, TierMetric


# ============================================================================
# Errors
# ============================================================================


class ErrorResponse(BaseModel):
    """Error response schema."""

    detail: str
    code: str
    errors: list[str] | None = None


# ============================================================================
# Tier schemas
# ============================================================================


class TierInput(BaseModel):
    """One bracket of an office tier schedule."""

    metric: TierMetric
    min_value: Decimal
    max_value: Decimal | None = None
    bonus_amount: Decimal
    bonus_form: BonusForm = BonusForm.FLAT


class OfficeTiersRequest(BaseModel):
    """Replacement tier set for an office and period."""

    tiers: list[TierInput] = Field(default_factory=list)


class TierResponse(BaseModel):
    """Schema for a stored tier."""

    model_config = ConfigDict(from_attributes=True)

    commission_tier_id: UUID
    office: str
    month: int
    year: int
    metric: str
    min_value: Decimal
    max_value: Decimal | None = None
    bonus_amount: Decimal
    bonus_form: str
    sort_order: int


class OfficeTiersResponse(BaseModel):
    """Tier schedule for an office and period."""

    office: str
    month: int
    year: int
    tiers: list[TierResponse]


# ============================================================================
# Plan schemas
# ============================================================================


class LineItemSchema(BaseModel):
    """A named flat amount on a plan."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    amount: Decimal


class IndividualPlanRequest(BaseModel):
    """Replacement plan for a representative and period.

    Omitted salary or deduction keeps the stored value.
    """

    salary: Decimal | None = None
    cancellation_deduction: Decimal | None = None
    line_items: list[LineItemSchema] = Field(default_factory=list)


class IndividualPlanResponse(BaseModel):
    """A representative's plan and order statistics for a period."""

    representative_id: str
    display_name: str
    office: str | None = None
    month: int
    year: int
    salary: Decimal
    cancellation_deduction: Decimal
    line_items: list[LineItemSchema]
    units_sold: int = 0
    order_total: Decimal = Decimal("0")
    has_plan: bool = True


class PlanListResponse(BaseModel):
    """Plans for every active representative in a period."""

    month: int
    year: int
    items: list[IndividualPlanResponse]


# ============================================================================
# Ledger schemas
# ============================================================================


class LedgerEntryResponse(BaseModel):
    """Schema for a ledger entry."""

    model_config = ConfigDict(from_attributes=True)

    ledger_entry_id: UUID
    representative_id: str
    month: int
    year: int
    office: str | None = None
    plan_total: Decimal
    cancellation_deduction: Decimal
    cancellation_deduction_edited: bool
    cancellation_note: str | None = None
    adjustment: Decimal
    adjustment_note: str | None = None
    notes: str | None = None
    final_amount: Decimal
    status: str
    reviewed_by_actor_id: str | None = None
    reviewed_by_name: str | None = None
    reviewed_at: datetime | None = None
    units_sold: int
    order_total: Decimal
    salary: Decimal
    line_items_total: Decimal
    units_bonus: Decimal
    order_total_bonus: Decimal
    explanation: list[str] = Field(default_factory=list)
    generated_at: datetime | None = None
    updated_at: datetime
    version: int


class LedgerRowResponse(LedgerEntryResponse):
    """Ledger entry with representative name and plan line items."""

    representative_name: str
    line_items: list[LineItemSchema] = Field(default_factory=list)


class LedgerListResponse(BaseModel):
    """Ledger entries for a period."""

    month: int
    year: int
    items: list[LedgerRowResponse]


class LedgerEntryUpdateRequest(BaseModel):
    """Reviewer edit. Omitted fields are left unchanged; "" clears a note."""

    adjustment: Decimal | None = None
    adjustment_note: str | None = None
    cancellation_deduction: Decimal | None = None
    cancellation_note: str | None = None
    notes: str | None = None
    status: str | None = None


class GenerationFailureResponse(BaseModel):
    """A representative that failed generation."""

    representative_id: str
    error: str


class GenerationResponse(BaseModel):
    """Result of a generation run."""

    month: int
    year: int
    created: int
    updated: int
    entry_count: int
    failed: list[GenerationFailureResponse]


# ============================================================================
# Audit schemas
# ============================================================================


class AuditRecordResponse(BaseModel):
    """Schema for an audit log record."""

    model_config = ConfigDict(from_attributes=True)

    audit_log_entry_id: int
    action: str
    description: str
    metadata: dict[str, Any]
    actor_id: str
    actor_name: str | None = None
    created_at: datetime


class AuditLogResponse(BaseModel):
    """Most recent audit records, newest first."""

    items: list[AuditRecordResponse]
