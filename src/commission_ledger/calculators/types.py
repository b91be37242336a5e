"""Type definitions for the commission calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

from commission_ledger.errors import InputValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """Coerce a number or numeric string to a finite Decimal."""
    if isinstance(value, bool):
        raise InputValidationError(f"{field_name} must be a number, got {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InputValidationError(f"{field_name} must be a number, got {value!r}") from None
    if not amount.is_finite():
        raise InputValidationError(f"{field_name} must be finite, got {value!r}")
    return amount


def round_money(amount: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: Any, field_name: str = "amount") -> Decimal:
    """Coerce to a Decimal rounded to cents."""
    return round_money(to_decimal(value, field_name))


@dataclass(frozen=True, order=True)
class Period:
    """A (month, year) payroll period."""

    year: int
    month: int

    def __post_init__(self) -> None:
        errors: list[str] = []
        if isinstance(self.month, bool) or not isinstance(self.month, int) or not 1 <= self.month <= 12:
            errors.append(f"month must be between 1 and 12, got {self.month!r}")
        if isinstance(self.year, bool) or not isinstance(self.year, int) or self.year < 2000:
            errors.append(f"year must be 2000 or later, got {self.year!r}")
        if errors:
            raise InputValidationError(errors, subject="period")

    @classmethod
    def of(cls, month: int, year: int) -> Period:
        """Build a period from month-first arguments."""
        return cls(year=year, month=month)

    def __str__(self) -> str:
        return f"{self.month}/{self.year}"


class TierMetric(str, Enum):
    """Metric a commission tier is keyed on."""

    UNITS_SOLD = "units_sold"
    ORDER_TOTAL = "order_total"


class BonusForm(str, Enum):
    """How a tier's bonus amount is applied."""

    FLAT = "flat"
    PERCENTAGE = "percentage"


@dataclass(frozen=True)
class TierBracket:
    """A bonus bracket over one metric.

    ``min_value`` is inclusive, ``max_value`` exclusive; ``None`` means
    unbounded.
    """

    metric: TierMetric
    min_value: Decimal
    max_value: Decimal | None
    bonus_amount: Decimal
    bonus_form: BonusForm = BonusForm.FLAT
    sort_order: int = 0

    def contains(self, value: Decimal) -> bool:
        if value < self.min_value:
            return False
        return self.max_value is None or value < self.max_value

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric": self.metric.value,
            "min_value": str(self.min_value),
            "max_value": str(self.max_value) if self.max_value is not None else None,
            "bonus_amount": str(self.bonus_amount),
            "bonus_form": self.bonus_form.value,
            "sort_order": self.sort_order,
        }


@dataclass(frozen=True)
class LineItem:
    """A named flat amount added to a representative's plan."""

    name: str
    amount: Decimal


@dataclass(frozen=True)
class PlanInputs:
    """Per-representative plan values fed to the calculator."""

    salary: Decimal = ZERO
    cancellation_deduction: Decimal = ZERO
    line_items: tuple[LineItem, ...] = ()

    @property
    def line_items_total(self) -> Decimal:
        return sum((item.amount for item in self.line_items), ZERO)

    def validate(self) -> list[str]:
        """Return constraint violations (empty if the plan is well formed)."""
        errors: list[str] = []
        if self.salary < 0:
            errors.append(f"salary must be >= 0, got {self.salary}")
        if self.cancellation_deduction < 0:
            errors.append(
                f"cancellation_deduction must be >= 0, got {self.cancellation_deduction}"
            )
        for index, item in enumerate(self.line_items):
            if not item.name or not item.name.strip():
                errors.append(f"line_items[{index}].name is required")
        return errors


@dataclass(frozen=True)
class PeriodStatistics:
    """Order statistics for one representative in one period.

    Both values already exclude cancelled orders.
    """

    units_sold: int = 0
    order_total: Decimal = ZERO

    @property
    def is_zero(self) -> bool:
        return self.units_sold == 0 and self.order_total == 0

    def value_for(self, metric: TierMetric) -> Decimal:
        if metric == TierMetric.UNITS_SOLD:
            return Decimal(self.units_sold)
        return self.order_total


@dataclass
class CommissionBreakdown:
    """Calculator output: the plan total and the terms that produced it.

    Only ``plan_total`` is rounded; the bonus terms keep full precision.
    """

    salary: Decimal
    line_items_total: Decimal
    units_bonus: Decimal
    order_total_bonus: Decimal
    plan_total: Decimal
    units_tier: TierBracket | None = None
    order_total_tier: TierBracket | None = None
    explanation: list[str] = field(default_factory=list)

    @property
    def bonus_total(self) -> Decimal:
        return self.units_bonus + self.order_total_bonus
