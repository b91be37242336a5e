"""Reviewer edit tests: derived amount, approval side effects, conflicts."""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from commission_ledger.audit import AuditAction
from commission_ledger.calculators.types import LineItem, Period, PeriodStatistics
from commission_ledger.errors import (
    ConflictError,
    InputValidationError,
    InvariantViolationError,
    NotFoundError,
)
from commission_ledger.ledger import CommissionLedger
from commission_ledger.models import LedgerEntry
from commission_ledger.services import LedgerEntryUpdate, LedgerService


@pytest.fixture
async def entry(ledger: CommissionLedger, period: Period, actor) -> LedgerEntry:
    """Generated entry: plan_total 3000, deduction 200, final 2800."""
    await ledger.set_individual_plan(
        "rep-ada",
        period,
        salary=2700,
        cancellation_deduction=200,
        line_items=[LineItem("Car allowance", Decimal("300"))],
        actor=actor,
    )
    result = await ledger.generate_ledger(period, actor)
    return result.entries[0]


class TestUpdateLedgerEntry:
    """Test reviewer edits."""

    async def test_adjustment_recomputes_final_amount(
        self, ledger: CommissionLedger, entry: LedgerEntry, reviewer
    ):
        updated = await ledger.update_ledger_entry(
            entry.ledger_entry_id,
            LedgerEntryUpdate(adjustment="-50.25", adjustment_note="Chargeback"),
            reviewer,
        )

        assert updated.adjustment == Decimal("-50.25")
        assert updated.adjustment_note == "Chargeback"
        assert updated.final_amount == Decimal("2749.75")
        assert updated.status == "pending"

    async def test_deduction_edit_marks_entry(
        self, ledger: CommissionLedger, entry: LedgerEntry, reviewer
    ):
        updated = await ledger.update_ledger_entry(
            entry.ledger_entry_id,
            LedgerEntryUpdate(cancellation_deduction=0, cancellation_note="Waived"),
            reviewer,
        )

        assert updated.cancellation_deduction == Decimal("0.00")
        assert updated.cancellation_deduction_edited is True
        assert updated.final_amount == Decimal("3000.00")

    async def test_approve_then_unapprove(
        self, ledger: CommissionLedger, entry: LedgerEntry, reviewer
    ):
        approved = await ledger.update_ledger_entry(
            entry.ledger_entry_id, LedgerEntryUpdate(status="approved"), reviewer
        )
        assert approved.status == "approved"
        assert approved.reviewed_by_actor_id == "reviewer-1"
        assert approved.reviewed_by_name == "Riley Reviewer"
        assert approved.reviewed_at is not None
        assert approved.final_amount == Decimal("2800.00")

        pending = await ledger.update_ledger_entry(
            entry.ledger_entry_id, LedgerEntryUpdate(status="pending"), reviewer
        )
        assert pending.status == "pending"
        assert pending.reviewed_by_actor_id is None
        assert pending.reviewed_at is None

    async def test_notes_cleared_with_empty_string(
        self, ledger: CommissionLedger, entry: LedgerEntry, reviewer
    ):
        await ledger.update_ledger_entry(
            entry.ledger_entry_id, LedgerEntryUpdate(notes="Check March orders"), reviewer
        )
        updated = await ledger.update_ledger_entry(
            entry.ledger_entry_id, LedgerEntryUpdate(notes=""), reviewer
        )

        assert updated.notes is None

    async def test_invalid_update_changes_nothing(
        self, ledger: CommissionLedger, entry: LedgerEntry, reviewer
    ):
        with pytest.raises(InputValidationError) as exc_info:
            await ledger.update_ledger_entry(
                entry.ledger_entry_id,
                LedgerEntryUpdate(adjustment="100", cancellation_deduction="-1", status="paid"),
                reviewer,
            )

        assert len(exc_info.value.errors) == 2
        stored = await ledger.get_ledger_entry(entry.ledger_entry_id)
        assert stored.adjustment == Decimal("0.00")
        assert stored.status == "pending"
        assert stored.version == entry.version

    async def test_unknown_entry(self, ledger: CommissionLedger, reviewer):
        with pytest.raises(NotFoundError):
            await ledger.update_ledger_entry(uuid4(), LedgerEntryUpdate(adjustment=1), reviewer)

    async def test_audit_records_before_and_after(
        self, ledger: CommissionLedger, entry: LedgerEntry, reviewer
    ):
        await ledger.update_ledger_entry(
            entry.ledger_entry_id,
            LedgerEntryUpdate(adjustment="100", status="approved"),
            reviewer,
        )

        record = (await ledger.get_recent_audit_log(1))[0]
        assert record.action is AuditAction.LEDGER_ADJUSTED
        assert record.actor_id == "reviewer-1"
        payload = record.payload
        assert payload.ledger_entry_id == str(entry.ledger_entry_id)
        assert payload.representative_name == "Ada Lovelace"
        assert payload.change_for("adjustment").before == "0.00"
        assert payload.change_for("adjustment").after == "100.00"
        assert payload.change_for("final_amount").after == "2900.00"
        assert payload.change_for("status").after == "approved"

    async def test_noop_update_not_audited(
        self, ledger: CommissionLedger, entry: LedgerEntry, reviewer
    ):
        before = await ledger.get_recent_audit_log(50)

        await ledger.update_ledger_entry(
            entry.ledger_entry_id, LedgerEntryUpdate(adjustment="0", status="pending"), reviewer
        )

        assert len(await ledger.get_recent_audit_log(50)) == len(before)

    async def test_concurrent_edit_conflicts(
        self, session_factory, directory, entry: LedgerEntry, reviewer
    ):
        async with session_factory() as first, session_factory() as second:
            first_service = LedgerService(first, directory)
            second_service = LedgerService(second, directory)
            first_copy = await first_service.get_entry(entry.ledger_entry_id)
            second_copy = await second_service.get_entry(entry.ledger_entry_id)
            assert first_copy.version == second_copy.version

            await first_service.update_ledger_entry(
                entry.ledger_entry_id, LedgerEntryUpdate(adjustment=10), reviewer
            )
            await first.commit()

            with pytest.raises(ConflictError):
                await second_service.update_ledger_entry(
                    entry.ledger_entry_id, LedgerEntryUpdate(adjustment=20), reviewer
                )
            await second.rollback()

        async with session_factory() as check:
            stored = await check.get(LedgerEntry, entry.ledger_entry_id)
            assert stored.adjustment == Decimal("10.00")


class TestFinalAmountInvariant:
    """Test that the stored identity cannot be broken through the ORM."""

    async def test_direct_tamper_rejected_on_flush(self, session, entry: LedgerEntry):
        stored = await session.get(LedgerEntry, entry.ledger_entry_id)
        stored.final_amount = stored.final_amount + Decimal("5")

        with pytest.raises(InvariantViolationError):
            await session.flush()

    async def test_every_stored_entry_satisfies_identity(
        self, ledger: CommissionLedger, period: Period, actor, reviewer, statistics, session
    ):
        statistics.set_statistics("rep-ben", period, PeriodStatistics(3, Decimal("7000")))
        result = await ledger.generate_ledger(period, actor)
        for index, generated in enumerate(result.entries):
            await ledger.update_ledger_entry(
                generated.ledger_entry_id,
                LedgerEntryUpdate(adjustment=Decimal(index * 7) + Decimal("0.33")),
                reviewer,
            )

        for row in (await session.execute(select(LedgerEntry))).scalars():
            assert row.final_amount == row.plan_total - row.cancellation_deduction + row.adjustment


class TestGetLedgerForPeriod:
    """Test the ledger listing."""

    async def test_listing_includes_names_and_line_items(
        self, ledger: CommissionLedger, period: Period, actor, statistics, entry: LedgerEntry
    ):
        statistics.set_statistics("rep-cy", period, PeriodStatistics(2, Decimal("100")))
        await ledger.generate_ledger(period, actor)

        rows = await ledger.get_ledger_for_period(period)

        assert [row.representative_name for row in rows] == ["Ada Lovelace", "Cy Young"]
        assert [i.name for i in rows[0].line_items] == ["Car allowance"]
        assert rows[1].line_items == []

    async def test_inactive_representatives_hidden(
        self, ledger: CommissionLedger, period: Period, actor, directory, statistics
    ):
        statistics.set_statistics("rep-old", period, PeriodStatistics(2, Decimal("100")))
        result = await ledger.generate_ledger(period, actor)
        assert result.created == 1

        assert await ledger.get_ledger_for_period(period) == []
