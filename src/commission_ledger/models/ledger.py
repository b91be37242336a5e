"""Ledger entry model: one row of pay history per representative and period."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column

from commission_ledger.calculators.types import (
    CENT,
    CommissionBreakdown,
    Period,
    PeriodStatistics,
    round_money,
)
from commission_ledger.errors import InvariantViolationError
from commission_ledger.models.base import Base, JSONType, TimestampMixin, utcnow


class LedgerEntry(Base, TimestampMixin):
    """Computed and manually adjusted pay for one representative in one period.

    final_amount = plan_total - cancellation_deduction + adjustment

    The identity is re-derived by every mutation and re-checked on every
    flush. ``version`` is the optimistic concurrency counter; SQLAlchemy
    bumps it on each UPDATE and raises StaleDataError when the row moved.
    Entries are never deleted.
    """

    __tablename__ = "ledger_entry"

    ledger_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    representative_id: Mapped[str] = mapped_column(String, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    office: Mapped[str | None] = mapped_column(String, nullable=True)

    # Amounts
    plan_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    cancellation_deduction: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    cancellation_deduction_edited: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    cancellation_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    adjustment: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    adjustment_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    final_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Review
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    reviewed_by_actor_id: Mapped[str | None] = mapped_column(String, nullable=True)
    reviewed_by_name: Mapped[str | None] = mapped_column(String, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Snapshot of the last generation run
    units_sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    order_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    line_items_total: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    units_bonus: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    order_total_bonus: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    explanation: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "representative_id", "year", "month", name="ledger_entry_rep_period_unique"
        ),
        CheckConstraint(
            "status IN ('pending', 'reviewed', 'approved')",
            name="ledger_entry_status_check",
        ),
        CheckConstraint("month BETWEEN 1 AND 12", name="ledger_entry_month_check"),
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def period(self) -> Period:
        return Period(year=self.year, month=self.month)

    def expected_final_amount(self) -> Decimal:
        return self.plan_total - self.cancellation_deduction + (self.adjustment or Decimal("0"))

    def derive_final_amount(self) -> Decimal:
        """Recompute final_amount from its inputs and return it."""
        self.final_amount = round_money(self.expected_final_amount())
        return self.final_amount

    def check_invariant(self) -> None:
        """Raise InvariantViolationError if final_amount drifted from its inputs."""
        expected = self.expected_final_amount()
        if self.final_amount is None or abs(self.final_amount - expected) >= CENT:
            raise InvariantViolationError(self.ledger_entry_id, expected, self.final_amount)

    def apply_generation(
        self,
        breakdown: CommissionBreakdown,
        stats: PeriodStatistics,
        generated_at: datetime,
        office: str | None = None,
    ) -> None:
        """Record a calculator run: plan_total, its snapshot and explanation, nothing else."""
        self.plan_total = breakdown.plan_total
        self.salary = round_money(breakdown.salary)
        self.line_items_total = round_money(breakdown.line_items_total)
        self.units_bonus = round_money(breakdown.units_bonus)
        self.order_total_bonus = round_money(breakdown.order_total_bonus)
        self.units_sold = stats.units_sold
        self.order_total = round_money(stats.order_total)
        self.explanation = list(breakdown.explanation)
        self.office = office
        self.generated_at = generated_at
        self.derive_final_amount()

    def snapshot(self) -> dict[str, Any]:
        """Amount fields for audit payloads and API responses."""
        return {
            "plan_total": self.plan_total,
            "cancellation_deduction": self.cancellation_deduction,
            "adjustment": self.adjustment,
            "final_amount": self.final_amount,
            "status": self.status,
        }


@event.listens_for(LedgerEntry, "before_insert")
@event.listens_for(LedgerEntry, "before_update")
def _verify_final_amount(mapper: Any, connection: Any, target: LedgerEntry) -> None:
    target.check_invariant()
