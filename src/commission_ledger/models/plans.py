"""Individual representative plan models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_ledger.calculators.types import LineItem, Period, PlanInputs
from commission_ledger.models.base import Base, TimestampMixin, utcnow


class IndividualPlan(Base, TimestampMixin):
    """A representative's salary, cancellation deduction and line items for a period.

    Amounts are not checked at the database level: rows imported from older
    systems may be malformed, and the ledger generator reports those per
    representative instead of failing the whole run.
    """

    __tablename__ = "individual_plan"

    individual_plan_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    representative_id: Mapped[str] = mapped_column(String, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    cancellation_deduction: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    updated_by_actor_id: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "representative_id", "year", "month", name="individual_plan_rep_period_unique"
        ),
        CheckConstraint("month BETWEEN 1 AND 12", name="individual_plan_month_check"),
    )

    # Relationships
    line_items: Mapped[list[PlanLineItem]] = relationship(
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="PlanLineItem.sort_order",
    )

    @property
    def period(self) -> Period:
        return Period(year=self.year, month=self.month)

    def to_inputs(self) -> PlanInputs:
        """Convert to calculator inputs (requires line_items to be loaded)."""
        return PlanInputs(
            salary=self.salary,
            cancellation_deduction=self.cancellation_deduction,
            line_items=tuple(item.to_line_item() for item in self.line_items),
        )


class PlanLineItem(Base):
    """A named flat amount on an individual plan."""

    __tablename__ = "plan_line_item"

    plan_line_item_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    individual_plan_id: Mapped[UUID] = mapped_column(
        ForeignKey("individual_plan.individual_plan_id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    plan: Mapped[IndividualPlan] = relationship(back_populates="line_items")

    def to_line_item(self) -> LineItem:
        return LineItem(name=self.name, amount=self.amount)
