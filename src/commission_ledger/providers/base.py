"""Protocols for the external order/user subsystem.

The ledger only reads from these collaborators. Representatives and their
office assignment, and the order statistics per period, are owned elsewhere
and referenced by stable identifier.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from commission_ledger.calculators.types import Period, PeriodStatistics


@dataclass(frozen=True)
class Representative:
    """A sales representative as known to the user subsystem."""

    representative_id: str
    display_name: str
    office: str | None = None
    is_active: bool = True


class RepresentativeDirectory(Protocol):
    """Lookup of representatives and their current office."""

    async def get_representative(self, representative_id: str) -> Representative | None:
        """Return the representative, or None if unknown."""
        ...

    async def list_representatives(self, *, active_only: bool = True) -> list[Representative]:
        """Return representatives ordered by display name."""
        ...


class PeriodStatisticsProvider(Protocol):
    """Per-representative order statistics, cancelled orders excluded."""

    async def get_period_statistics(self, period: Period) -> Mapping[str, PeriodStatistics]:
        """Return statistics keyed by representative id.

        Representatives without orders in the period may be absent.
        """
        ...
