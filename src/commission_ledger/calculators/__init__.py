"""Commission calculation."""

from commission_ledger.calculators.commission import CommissionCalculator
from commission_ledger.calculators.tier_resolver import TierResolver
from commission_ledger.calculators.types import (
    BonusForm,
    CommissionBreakdown,
    LineItem,
    Period,
    PeriodStatistics,
    PlanInputs,
    TierBracket,
    TierMetric,
)

__all__ = [
    "BonusForm",
    "CommissionBreakdown",
    "CommissionCalculator",
    "LineItem",
    "Period",
    "PeriodStatistics",
    "PlanInputs",
    "TierBracket",
    "TierMetric",
    "TierResolver",
]
