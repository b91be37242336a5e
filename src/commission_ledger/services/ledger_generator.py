"""Ledger generation: recompute plan totals for every representative in a period."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from commission_ledger.audit import Actor, AuditLog, LedgerGenerated
from commission_ledger.calculators import CommissionCalculator
from commission_ledger.calculators.types import (
    ZERO,
    CommissionBreakdown,
    Period,
    PeriodStatistics,
    PlanInputs,
    TierBracket,
)
from commission_ledger.config import get_settings
from commission_ledger.errors import (
    CommissionLedgerError,
    ConflictError,
    InputValidationError,
    InvariantViolationError,
    NotFoundError,
)
from commission_ledger.models import LedgerEntry, utcnow
from commission_ledger.providers.base import PeriodStatisticsProvider, RepresentativeDirectory
from commission_ledger.services.plan_service import IndividualPlanService
from commission_ledger.services.state_machine import LedgerStatus
from commission_ledger.services.tier_service import TierScheduleService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationFailure:
    """A representative whose entry could not be generated."""

    representative_id: str
    error: str


@dataclass
class GenerationResult:
    """Outcome of one generation run."""

    period: Period
    created: int = 0
    updated: int = 0
    failed: list[GenerationFailure] = field(default_factory=list)
    entries: list[LedgerEntry] = field(default_factory=list)

    @property
    def entry_count(self) -> int:
        return self.created + self.updated


class LedgerGenerator:
    """Upserts one ledger entry per representative for a period.

    Each representative is handled in its own transaction: read the
    existing entry, compute, write. A concurrent edit to the same entry
    surfaces as StaleDataError (version mismatch) or IntegrityError (both
    sides inserted) and the representative is retried on a fresh session.
    Failures are collected on the result; entries already written for
    other representatives stay committed.

    Regeneration is a recompute, not a reset: only plan_total, the
    generation snapshot and final_amount move. Adjustment, notes, status
    and reviewer fields are left alone. The cancellation deduction is
    refreshed from the plan until a reviewer edits it.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        directory: RepresentativeDirectory,
        statistics: PeriodStatisticsProvider,
        *,
        max_retries: int | None = None,
        calculator: CommissionCalculator | None = None,
    ):
        self.session_factory = session_factory
        self.directory = directory
        self.statistics = statistics
        self.max_retries = (
            get_settings().generation_max_retries if max_retries is None else max_retries
        )
        self.calculator = calculator or CommissionCalculator()
        self.engine_version = get_settings().engine_version

    async def generate(self, period: Period, actor: Actor) -> GenerationResult:
        """Generate or refresh every ledger entry for ``period``."""
        result = GenerationResult(period=period)

        async with self.session_factory() as session:
            plans = {
                rep_id: plan.to_inputs()
                for rep_id, plan in (
                    await IndividualPlanService(session, self.directory).get_plans_by_representative(
                        period
                    )
                ).items()
            }
            tiers_by_office = await TierScheduleService(session).get_tiers_by_office(period)
            existing_ids = set(
                await session.scalars(
                    select(LedgerEntry.representative_id).where(
                        LedgerEntry.year == period.year,
                        LedgerEntry.month == period.month,
                    )
                )
            )

        stats = await self.statistics.get_period_statistics(period)
        representative_ids = sorted(
            set(plans)
            | existing_ids
            | {rep_id for rep_id, s in stats.items() if not s.is_zero}
        )
        logger.info(
            "Generating ledger for %s: %d representative(s)", period, len(representative_ids)
        )

        generated_at = utcnow()
        for rep_id in representative_ids:
            try:
                entry, created = await self._generate_one(
                    rep_id,
                    period,
                    plans.get(rep_id, PlanInputs()),
                    stats.get(rep_id, PeriodStatistics()),
                    tiers_by_office,
                    generated_at,
                )
            except InvariantViolationError:
                raise
            except CommissionLedgerError as exc:
                logger.warning("Ledger generation failed for %s %s: %s", rep_id, period, exc)
                result.failed.append(GenerationFailure(rep_id, str(exc)))
                continue
            except SQLAlchemyError as exc:
                logger.exception("Database error generating ledger for %s %s", rep_id, period)
                result.failed.append(GenerationFailure(rep_id, f"database error: {exc}"))
                continue

            result.entries.append(entry)
            if created:
                result.created += 1
            else:
                result.updated += 1

        async with self.session_factory() as session, session.begin():
            await AuditLog(session).record(
                actor,
                LedgerGenerated(
                    month=period.month,
                    year=period.year,
                    entry_count=result.entry_count,
                    created=result.created,
                    updated=result.updated,
                    failed=len(result.failed),
                    failed_representatives=tuple(f.representative_id for f in result.failed),
                    engine_version=self.engine_version,
                ),
            )

        logger.info(
            "Generated ledger for %s: created=%d updated=%d failed=%d",
            period,
            result.created,
            result.updated,
            len(result.failed),
        )
        return result

    async def _generate_one(
        self,
        representative_id: str,
        period: Period,
        plan: PlanInputs,
        stats: PeriodStatistics,
        tiers_by_office: dict[str, list[TierBracket]],
        generated_at: datetime,
    ) -> tuple[LedgerEntry, bool]:
        representative = await self.directory.get_representative(representative_id)
        if representative is None:
            raise NotFoundError("representative", representative_id)

        errors = plan.validate()
        if errors:
            raise InputValidationError(errors, subject=f"plan for {representative_id}")

        tiers = tiers_by_office.get(representative.office, []) if representative.office else []
        breakdown = self.calculator.calculate(tiers, plan, stats)

        attempt = 0
        while True:
            try:
                return await self._upsert(
                    representative_id,
                    period,
                    plan,
                    stats,
                    breakdown,
                    representative.office,
                    generated_at,
                )
            except (StaleDataError, IntegrityError) as exc:
                if attempt >= self.max_retries:
                    raise ConflictError(
                        "ledger_entry",
                        f"{representative_id} {period}",
                        "entry changed during generation",
                    ) from exc
                attempt += 1
                logger.info(
                    "Conflict upserting ledger entry for %s %s, retry %d",
                    representative_id,
                    period,
                    attempt,
                )

    async def _upsert(
        self,
        representative_id: str,
        period: Period,
        plan: PlanInputs,
        stats: PeriodStatistics,
        breakdown: CommissionBreakdown,
        office: str | None,
        generated_at: datetime,
    ) -> tuple[LedgerEntry, bool]:
        async with self.session_factory() as session, session.begin():
            entry = await session.scalar(
                select(LedgerEntry).where(
                    LedgerEntry.representative_id == representative_id,
                    LedgerEntry.year == period.year,
                    LedgerEntry.month == period.month,
                )
            )

            created = entry is None
            if entry is None:
                entry = LedgerEntry(
                    representative_id=representative_id,
                    month=period.month,
                    year=period.year,
                    cancellation_deduction=plan.cancellation_deduction,
                    cancellation_deduction_edited=False,
                    adjustment=ZERO,
                    status=LedgerStatus.PENDING.value,
                )
                session.add(entry)
            elif not entry.cancellation_deduction_edited:
                entry.cancellation_deduction = plan.cancellation_deduction

            entry.apply_generation(breakdown, stats, generated_at, office)
            entry.updated_at = generated_at
            await session.flush()

        return entry, created
