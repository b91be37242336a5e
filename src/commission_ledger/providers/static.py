"""In-memory directory and statistics providers.

Used by tests and by the HTTP app when it is started with a reference data
file instead of a live order subsystem.

Reference data file format::

    {
      "representatives": [
        {"id": "rep-1", "name": "Ada Lovelace", "office": "Marion Office"}
      ],
      "statistics": [
        {"representative_id": "rep-1", "month": 3, "year": 2026,
         "units_sold": 4, "order_total": "18250.00"}
      ]
    }
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from commission_ledger.calculators.types import Period, PeriodStatistics, to_decimal
from commission_ledger.errors import InputValidationError
from commission_ledger.providers.base import Representative


class InMemoryRepresentativeDirectory:
    """Representative directory backed by a dict."""

    def __init__(self, representatives: Iterable[Representative] = ()) -> None:
        self._representatives: dict[str, Representative] = {}
        for rep in representatives:
            self.add(rep)

    def add(self, representative: Representative) -> None:
        self._representatives[representative.representative_id] = representative

    def reassign_office(self, representative_id: str, office: str | None) -> None:
        rep = self._representatives[representative_id]
        self._representatives[representative_id] = Representative(
            representative_id=rep.representative_id,
            display_name=rep.display_name,
            office=office,
            is_active=rep.is_active,
        )

    async def get_representative(self, representative_id: str) -> Representative | None:
        return self._representatives.get(representative_id)

    async def list_representatives(self, *, active_only: bool = True) -> list[Representative]:
        reps = [r for r in self._representatives.values() if r.is_active or not active_only]
        return sorted(reps, key=lambda r: (r.display_name, r.representative_id))


class InMemoryStatisticsProvider:
    """Period statistics backed by a dict."""

    def __init__(self) -> None:
        self._stats: dict[Period, dict[str, PeriodStatistics]] = {}

    def set_statistics(
        self,
        representative_id: str,
        period: Period,
        stats: PeriodStatistics,
    ) -> None:
        if stats.units_sold < 0 or stats.order_total < 0:
            raise InputValidationError(
                f"statistics must be non-negative, got {stats}", subject="period statistics"
            )
        self._stats.setdefault(period, {})[representative_id] = stats

    async def get_period_statistics(self, period: Period) -> Mapping[str, PeriodStatistics]:
        return dict(self._stats.get(period, {}))


def load_reference_data(
    path: str | Path,
) -> tuple[InMemoryRepresentativeDirectory, InMemoryStatisticsProvider]:
    """Build in-memory providers from a JSON reference data file."""
    data: dict[str, Any] = json.loads(Path(path).read_text(encoding="utf-8"))

    directory = InMemoryRepresentativeDirectory(
        Representative(
            representative_id=str(item["id"]),
            display_name=item.get("name") or str(item["id"]),
            office=item.get("office"),
            is_active=bool(item.get("active", True)),
        )
        for item in data.get("representatives", [])
    )

    statistics = InMemoryStatisticsProvider()
    for item in data.get("statistics", []):
        statistics.set_statistics(
            str(item["representative_id"]),
            Period.of(int(item["month"]), int(item["year"])),
            PeriodStatistics(
                units_sold=int(item.get("units_sold", 0)),
                order_total=to_decimal(item.get("order_total", "0"), "order_total"),
            ),
        )

    return directory, statistics
