"""Ledger entry reads and reviewer edits."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from commission_ledger.audit import Actor, AuditLog, FieldChange, LedgerAdjusted
from commission_ledger.calculators.types import LineItem, Period, to_money
from commission_ledger.errors import ConflictError, InputValidationError, NotFoundError
from commission_ledger.models import IndividualPlan, LedgerEntry, utcnow
from commission_ledger.providers.base import Representative, RepresentativeDirectory
from commission_ledger.services.state_machine import LedgerEntryStateMachine, LedgerStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerEntryUpdate:
    """Reviewer edit to a ledger entry. None means "leave unchanged".

    Notes are cleared by passing an empty string.
    """

    adjustment: Any = None
    adjustment_note: str | None = None
    cancellation_deduction: Any = None
    cancellation_note: str | None = None
    notes: str | None = None
    status: LedgerStatus | str | None = None


@dataclass
class LedgerRow:
    """A ledger entry with its representative and plan line items."""

    entry: LedgerEntry
    representative: Representative | None
    line_items: list[LineItem] = field(default_factory=list)

    @property
    def representative_name(self) -> str:
        if self.representative is not None:
            return self.representative.display_name
        return self.entry.representative_id


_NOTE_FIELDS = ("adjustment_note", "cancellation_note", "notes")


class LedgerService:
    """Reads ledger entries and applies reviewer edits.

    Every edit recomputes final_amount before the flush, so the stored row
    always satisfies final_amount = plan_total - cancellation_deduction +
    adjustment. Validation runs before anything is assigned; a rejected
    edit leaves the entry untouched.
    """

    def __init__(self, session: AsyncSession, directory: RepresentativeDirectory | None = None):
        self.session = session
        self.directory = directory
        self.audit = AuditLog(session)

    async def get_entry(self, entry_id: UUID) -> LedgerEntry:
        entry = await self.session.get(LedgerEntry, entry_id)
        if entry is None:
            raise NotFoundError("ledger_entry", entry_id)
        return entry

    async def get_ledger_for_period(self, period: Period) -> list[LedgerRow]:
        """Entries for a period, ordered by representative name.

        Entries for representatives the directory marks inactive are left
        out; entries for representatives it does not know are kept.
        """
        result = await self.session.execute(
            select(LedgerEntry).where(
                LedgerEntry.year == period.year, LedgerEntry.month == period.month
            )
        )
        entries = list(result.scalars().all())

        plans = await self.session.execute(
            select(IndividualPlan)
            .where(IndividualPlan.year == period.year, IndividualPlan.month == period.month)
            .options(selectinload(IndividualPlan.line_items))
        )
        line_items: dict[str, list[LineItem]] = {
            plan.representative_id: [item.to_line_item() for item in plan.line_items]
            for plan in plans.scalars().all()
        }

        rows: list[LedgerRow] = []
        for entry in entries:
            rep = (
                await self.directory.get_representative(entry.representative_id)
                if self.directory
                else None
            )
            if rep is not None and not rep.is_active:
                continue
            rows.append(
                LedgerRow(
                    entry=entry,
                    representative=rep,
                    line_items=line_items.get(entry.representative_id, []),
                )
            )
        rows.sort(key=lambda row: (row.representative_name.lower(), row.entry.representative_id))
        return rows

    async def update_ledger_entry(
        self,
        entry_id: UUID,
        update: LedgerEntryUpdate,
        actor: Actor,
    ) -> LedgerEntry:
        """Apply a reviewer edit and record it.

        Raises:
            NotFoundError: If the entry does not exist.
            InputValidationError: If an amount or status is invalid.
            ConflictError: If the entry changed since it was read.
        """
        entry = await self.get_entry(entry_id)

        errors: list[str] = []
        adjustment = deduction = status = None
        if update.adjustment is not None:
            try:
                adjustment = to_money(update.adjustment, "adjustment")
            except InputValidationError as exc:
                errors.extend(exc.errors)
        if update.cancellation_deduction is not None:
            try:
                deduction = to_money(update.cancellation_deduction, "cancellation_deduction")
            except InputValidationError as exc:
                errors.extend(exc.errors)
            else:
                if deduction < 0:
                    errors.append(f"cancellation_deduction must be >= 0, got {deduction}")
        if update.status is not None:
            try:
                status = LedgerEntryStateMachine.parse_status(update.status)
            except InputValidationError as exc:
                errors.extend(exc.errors)
        if errors:
            raise InputValidationError(errors, subject="ledger entry update")

        before = entry.snapshot()
        changes: list[FieldChange] = []

        if adjustment is not None and adjustment != entry.adjustment:
            entry.adjustment = adjustment
        if deduction is not None and deduction != entry.cancellation_deduction:
            entry.cancellation_deduction = deduction
            entry.cancellation_deduction_edited = True

        for name in _NOTE_FIELDS:
            value = getattr(update, name)
            if value is None:
                continue
            new_value = value.strip() or None
            if new_value != getattr(entry, name):
                changes.append(FieldChange.of(name, getattr(entry, name), new_value))
                setattr(entry, name, new_value)

        now = utcnow()
        status_changes = (
            LedgerEntryStateMachine.apply(entry, status, actor, now) if status is not None else []
        )

        entry.derive_final_amount()
        after = entry.snapshot()
        amount_changes = [
            FieldChange.of(name, before[name], after[name])
            for name in ("adjustment", "cancellation_deduction", "final_amount")
            if before[name] != after[name]
        ]
        changes = amount_changes + changes + status_changes
        if not changes:
            return entry

        entry.updated_at = now
        try:
            await self.session.flush()
        except StaleDataError as exc:
            raise ConflictError("ledger_entry", entry_id, "entry was modified concurrently") from exc

        rep = (
            await self.directory.get_representative(entry.representative_id)
            if self.directory
            else None
        )
        await self.audit.record(
            actor,
            LedgerAdjusted(
                ledger_entry_id=str(entry.ledger_entry_id),
                representative_id=entry.representative_id,
                representative_name=rep.display_name if rep else None,
                month=entry.month,
                year=entry.year,
                changes=tuple(changes),
            ),
        )
        logger.info(
            "Ledger entry %s updated by %s: %s",
            entry.ledger_entry_id,
            actor.actor_id,
            ", ".join(change.field for change in changes),
        )
        return entry
