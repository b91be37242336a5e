"""Pytest fixtures for commission ledger tests."""

from __future__ import annotations

from decimal import Decimal

import pytest

from commission_ledger.audit import Actor
from commission_ledger.calculators.types import (
    BonusForm,
    Period,
    TierBracket,
    TierMetric,
)
from commission_ledger.providers import (
    InMemoryRepresentativeDirectory,
    InMemoryStatisticsProvider,
    Representative,
)

MARION = "Marion Office"
SALEM = "Salem Office"


@pytest.fixture
def period() -> Period:
    """March 2026."""
    return Period.of(3, 2026)


@pytest.fixture
def actor() -> Actor:
    return Actor(actor_id="admin-1", display_name="Avery Admin")


@pytest.fixture
def reviewer() -> Actor:
    return Actor(actor_id="reviewer-1", display_name="Riley Reviewer")


@pytest.fixture
def directory() -> InMemoryRepresentativeDirectory:
    """Three active representatives in two offices plus one inactive."""
    return InMemoryRepresentativeDirectory(
        [
            Representative("rep-ada", "Ada Lovelace", MARION),
            Representative("rep-ben", "Ben Franklin", MARION),
            Representative("rep-cy", "Cy Young", SALEM),
            Representative("rep-old", "Olive Oldham", MARION, is_active=False),
        ]
    )


@pytest.fixture
def statistics() -> InMemoryStatisticsProvider:
    return InMemoryStatisticsProvider()


@pytest.fixture
def marion_tiers() -> list[TierBracket]:
    """Units-sold and order-total ladders."""
    return [
        TierBracket(TierMetric.UNITS_SOLD, Decimal("0"), Decimal("5"), Decimal("0")),
        TierBracket(TierMetric.UNITS_SOLD, Decimal("5"), Decimal("10"), Decimal("500")),
        TierBracket(TierMetric.UNITS_SOLD, Decimal("10"), None, Decimal("1200")),
        TierBracket(
            TierMetric.ORDER_TOTAL,
            Decimal("50000"),
            None,
            Decimal("2"),
            BonusForm.PERCENTAGE,
        ),
    ]
