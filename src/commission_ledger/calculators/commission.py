"""Commission calculator - pure plan total computation."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from commission_ledger.calculators.tier_resolver import TierResolver
from commission_ledger.calculators.types import (
    ZERO,
    BonusForm,
    CommissionBreakdown,
    PeriodStatistics,
    PlanInputs,
    TierBracket,
    TierMetric,
    round_money,
)

HUNDRED = Decimal("100")


class CommissionCalculator:
    """Computes a representative's gross plan total.

    plan_total = salary
               + sum(line items)
               + bonus(matching units-sold tier)
               + bonus(matching order-total tier)

    Both metric bonuses are additive. A flat tier contributes its amount
    once; a percentage tier contributes bonus_amount% of the order total,
    whichever metric it matched on. Only the final sum is rounded.

    The calculator has no side effects and trusts its inputs; validation
    happens in the tier and plan services.
    """

    def calculate(
        self,
        tiers: Iterable[TierBracket],
        plan: PlanInputs,
        stats: PeriodStatistics,
    ) -> CommissionBreakdown:
        resolver = TierResolver(tiers)
        explanation: list[str] = []

        units_tier = resolver.resolve(TierMetric.UNITS_SOLD, Decimal(stats.units_sold))
        units_bonus = self.bonus_for(units_tier, stats)
        if units_tier is not None:
            explanation.append(
                f"units sold {stats.units_sold} matched tier >= {units_tier.min_value}: +{units_bonus}"
            )

        order_tier = resolver.resolve(TierMetric.ORDER_TOTAL, stats.order_total)
        order_bonus = self.bonus_for(order_tier, stats)
        if order_tier is not None:
            explanation.append(
                f"order total {stats.order_total} matched tier >= {order_tier.min_value}: +{order_bonus}"
            )

        line_items_total = plan.line_items_total
        gross = plan.salary + line_items_total + units_bonus + order_bonus

        return CommissionBreakdown(
            salary=plan.salary,
            line_items_total=line_items_total,
            units_bonus=units_bonus,
            order_total_bonus=order_bonus,
            plan_total=round_money(gross),
            units_tier=units_tier,
            order_total_tier=order_tier,
            explanation=explanation,
        )

    @staticmethod
    def bonus_for(tier: TierBracket | None, stats: PeriodStatistics) -> Decimal:
        """Bonus contributed by a matched tier (zero when nothing matched)."""
        if tier is None:
            return ZERO
        if tier.bonus_form == BonusForm.PERCENTAGE:
            return stats.order_total * tier.bonus_amount / HUNDRED
        return tier.bonus_amount
