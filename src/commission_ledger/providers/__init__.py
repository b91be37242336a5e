"""External collaborator interfaces and in-memory implementations."""

from commission_ledger.providers.base import (
    PeriodStatisticsProvider,
    Representative,
    RepresentativeDirectory,
)
from commission_ledger.providers.static import (
    InMemoryRepresentativeDirectory,
    InMemoryStatisticsProvider,
    load_reference_data,
)

__all__ = [
    "InMemoryRepresentativeDirectory",
    "InMemoryStatisticsProvider",
    "PeriodStatisticsProvider",
    "Representative",
    "RepresentativeDirectory",
    "load_reference_data",
]
