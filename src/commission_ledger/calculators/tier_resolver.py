"""Commission tier resolution over ordered numeric brackets."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from commission_ledger.calculators.types import TierBracket, TierMetric


class TierResolver:
    """Resolves the matching tier for each metric.

    Tier selection:
    1. Only tiers of the requested metric are considered
    2. The value must fall in [min_value, max_value); a null max is unbounded
    3. Among matches the greatest min_value wins (highest qualifying bracket)
    4. Lower sort_order breaks ties between identical min_values

    Overlapping tiers are a data-quality problem, not an error; rules 3 and 4
    keep the outcome deterministic.
    """

    def __init__(self, tiers: Iterable[TierBracket]):
        self._by_metric: dict[TierMetric, list[TierBracket]] = {metric: [] for metric in TierMetric}
        for tier in tiers:
            self._by_metric[TierMetric(tier.metric)].append(tier)

    def resolve(self, metric: TierMetric, value: Decimal) -> TierBracket | None:
        """Return the matching tier for a metric value, or None."""
        best: TierBracket | None = None

        for tier in self._by_metric[metric]:
            if not tier.contains(value):
                continue

            if best is None:
                best = tier
            elif tier.min_value > best.min_value or (
                tier.min_value == best.min_value and tier.sort_order < best.sort_order
            ):
                best = tier

        return best
