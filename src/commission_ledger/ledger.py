"""CommissionLedger facade - the single integration path.

Usage:
    ledger = CommissionLedger(session_factory, directory, statistics)

    await ledger.set_office_tiers("Marion Office", period, tiers, actor)
    await ledger.set_individual_plan("rep-1", period, salary="2500", actor=actor)
    result = await ledger.generate_ledger(period, actor)
    rows = await ledger.get_ledger_for_period(period)
    await ledger.update_ledger_entry(entry_id, LedgerEntryUpdate(status="approved"), actor)
    records = await ledger.get_recent_audit_log(20)

The facade:
- Opens one transaction per operation (per representative for generation)
- Writes exactly one audit record per committed mutation
- Rolls back everything when an operation raises
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commission_ledger.audit import Actor, AuditLog, AuditRecord
from commission_ledger.calculators.types import LineItem, Period, TierBracket
from commission_ledger.models import CommissionTier, IndividualPlan, LedgerEntry
from commission_ledger.providers.base import PeriodStatisticsProvider, RepresentativeDirectory
from commission_ledger.services import (
    GenerationResult,
    IndividualPlanService,
    LedgerEntryUpdate,
    LedgerGenerator,
    LedgerRow,
    LedgerService,
    PlanSummary,
    TierScheduleService,
)


class CommissionLedger:
    """Wires the stores, generator and audit log behind one interface."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        directory: RepresentativeDirectory,
        statistics: PeriodStatisticsProvider,
        *,
        max_retries: int | None = None,
    ):
        self.session_factory = session_factory
        self.directory = directory
        self.statistics = statistics
        self.generator = LedgerGenerator(
            session_factory, directory, statistics, max_retries=max_retries
        )

    # Plans

    async def get_plans_for_period(self, period: Period) -> list[PlanSummary]:
        async with self.session_factory() as session:
            return await IndividualPlanService(
                session, self.directory, self.statistics
            ).get_plans_for_period(period)

    async def set_individual_plan(
        self,
        representative_id: str,
        period: Period,
        *,
        salary: Any = None,
        cancellation_deduction: Any = None,
        line_items: Sequence[LineItem] = (),
        actor: Actor,
    ) -> IndividualPlan:
        async with self.session_factory() as session, session.begin():
            return await IndividualPlanService(session, self.directory).set_individual_plan(
                representative_id,
                period,
                salary=salary,
                cancellation_deduction=cancellation_deduction,
                line_items=line_items,
                actor=actor,
            )

    # Tiers

    async def get_office_tiers(self, office: str, period: Period) -> list[CommissionTier]:
        async with self.session_factory() as session:
            return await TierScheduleService(session).get_office_tiers(office, period)

    async def set_office_tiers(
        self,
        office: str,
        period: Period,
        tiers: Sequence[TierBracket],
        actor: Actor,
    ) -> list[CommissionTier]:
        async with self.session_factory() as session, session.begin():
            return await TierScheduleService(session).set_office_tiers(
                office, period, tiers, actor
            )

    # Ledger

    async def generate_ledger(self, period: Period, actor: Actor) -> GenerationResult:
        return await self.generator.generate(period, actor)

    async def get_ledger_for_period(self, period: Period) -> list[LedgerRow]:
        async with self.session_factory() as session:
            return await LedgerService(session, self.directory).get_ledger_for_period(period)

    async def get_ledger_entry(self, entry_id: UUID) -> LedgerEntry:
        async with self.session_factory() as session:
            return await LedgerService(session, self.directory).get_entry(entry_id)

    async def update_ledger_entry(
        self,
        entry_id: UUID,
        update: LedgerEntryUpdate,
        actor: Actor,
    ) -> LedgerEntry:
        async with self.session_factory() as session, session.begin():
            return await LedgerService(session, self.directory).update_ledger_entry(
                entry_id, update, actor
            )

    # Audit

    async def get_recent_audit_log(self, limit: int | None = None) -> list[AuditRecord]:
        async with self.session_factory() as session:
            return await AuditLog(session).recent(limit)
