"""Office commission tier schedule model."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from commission_ledger.calculators.types import BonusForm, Period, TierBracket, TierMetric
from commission_ledger.models.base import Base, TimestampMixin


class CommissionTier(Base, TimestampMixin):
    """One bonus bracket of an office's tier schedule for a period.

    A schedule is always replaced as a whole; rows are never edited in place.
    """

    __tablename__ = "commission_tier"

    commission_tier_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    office: Mapped[str] = mapped_column(String, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    metric: Mapped[str] = mapped_column(String, nullable=False)
    min_value: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    max_value: Mapped[Decimal | None] = mapped_column(Numeric(14, 4), nullable=True)
    bonus_amount: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    bonus_form: Mapped[str] = mapped_column(String, nullable=False, default=BonusForm.FLAT.value)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(
            "metric IN ('units_sold', 'order_total')",
            name="commission_tier_metric_check",
        ),
        CheckConstraint(
            "bonus_form IN ('flat', 'percentage')",
            name="commission_tier_bonus_form_check",
        ),
        CheckConstraint("month BETWEEN 1 AND 12", name="commission_tier_month_check"),
        Index("ix_commission_tier_office_period", "office", "year", "month"),
    )

    @property
    def period(self) -> Period:
        return Period(year=self.year, month=self.month)

    def to_bracket(self) -> TierBracket:
        """Convert to the calculator's bracket type."""
        return TierBracket(
            metric=TierMetric(self.metric),
            min_value=self.min_value,
            max_value=self.max_value,
            bonus_amount=self.bonus_amount,
            bonus_form=BonusForm(self.bonus_form),
            sort_order=self.sort_order,
        )
