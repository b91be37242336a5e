"""Tier schedule store tests: whole-schedule replace and validation."""

from decimal import Decimal

import pytest

from commission_ledger.audit import AuditAction
from commission_ledger.calculators.types import BonusForm, Period, TierBracket, TierMetric
from commission_ledger.errors import InputValidationError
from commission_ledger.ledger import CommissionLedger


class TestSetOfficeTiers:
    """Test replacing an office's tier schedule."""

    async def test_set_and_get(self, ledger: CommissionLedger, period: Period, actor, marion_tiers):
        await ledger.set_office_tiers("Marion Office", period, marion_tiers, actor)

        tiers = await ledger.get_office_tiers("Marion Office", period)

        assert len(tiers) == 4
        assert [t.sort_order for t in tiers] == [0, 1, 2, 3]
        assert tiers[1].metric == "units_sold"
        assert tiers[1].min_value == Decimal("5")
        assert tiers[2].max_value is None
        assert tiers[3].bonus_form == "percentage"

    async def test_replace_drops_previous_rows(
        self, ledger: CommissionLedger, period: Period, actor, marion_tiers
    ):
        await ledger.set_office_tiers("Marion Office", period, marion_tiers, actor)
        replacement = [TierBracket(TierMetric.ORDER_TOTAL, Decimal("0"), None, Decimal("250"))]

        await ledger.set_office_tiers("Marion Office", period, replacement, actor)

        tiers = await ledger.get_office_tiers("Marion Office", period)
        assert len(tiers) == 1
        assert tiers[0].bonus_amount == Decimal("250")

    async def test_empty_set_clears_schedule(
        self, ledger: CommissionLedger, period: Period, actor, marion_tiers
    ):
        await ledger.set_office_tiers("Marion Office", period, marion_tiers, actor)
        await ledger.set_office_tiers("Marion Office", period, [], actor)

        assert await ledger.get_office_tiers("Marion Office", period) == []

    async def test_scoped_to_office_and_period(
        self, ledger: CommissionLedger, period: Period, actor, marion_tiers
    ):
        await ledger.set_office_tiers("Marion Office", period, marion_tiers, actor)

        assert await ledger.get_office_tiers("Salem Office", period) == []
        assert await ledger.get_office_tiers("Marion Office", Period.of(4, 2026)) == []

    async def test_invalid_set_rejected_and_existing_kept(
        self, ledger: CommissionLedger, period: Period, actor, marion_tiers
    ):
        await ledger.set_office_tiers("Marion Office", period, marion_tiers, actor)
        bad = [
            TierBracket(TierMetric.UNITS_SOLD, Decimal("-1"), None, Decimal("10")),
            TierBracket(TierMetric.UNITS_SOLD, Decimal("10"), Decimal("10"), Decimal("-5")),
        ]

        with pytest.raises(InputValidationError) as exc_info:
            await ledger.set_office_tiers("Marion Office", period, bad, actor)

        errors = exc_info.value.errors
        assert "tiers[0].min_value must be >= 0" in errors
        assert "tiers[1].max_value must be greater than min_value" in errors
        assert "tiers[1].bonus_amount must be >= 0" in errors
        assert len(await ledger.get_office_tiers("Marion Office", period)) == 4

    async def test_values_beyond_stored_scale_rejected(
        self, ledger: CommissionLedger, period: Period, actor
    ):
        """A bracket that would collapse once stored is rejected, not truncated."""
        bad = [
            TierBracket(
                TierMetric.ORDER_TOTAL,
                Decimal("100.00001"),
                Decimal("100.00004"),
                Decimal("2.123456"),
                BonusForm.PERCENTAGE,
            ),
            TierBracket(TierMetric.ORDER_TOTAL, Decimal("1e12"), None, Decimal("1")),
        ]

        with pytest.raises(InputValidationError) as exc_info:
            await ledger.set_office_tiers("Marion Office", period, bad, actor)

        errors = exc_info.value.errors
        assert "tiers[0].min_value must have at most 4 decimal places" in errors
        assert "tiers[0].max_value must have at most 4 decimal places" in errors
        assert "tiers[0].bonus_amount must have at most 4 decimal places" in errors
        assert "tiers[1].min_value must be less than 10,000,000,000" in errors
        assert await ledger.get_office_tiers("Marion Office", period) == []

    async def test_four_decimal_places_stored_exactly(
        self, ledger: CommissionLedger, period: Period, actor
    ):
        tiers = [
            TierBracket(
                TierMetric.ORDER_TOTAL,
                Decimal("100.0001"),
                Decimal("100.0004"),
                Decimal("2.12340"),
                BonusForm.PERCENTAGE,
            )
        ]

        await ledger.set_office_tiers("Marion Office", period, tiers, actor)

        (stored,) = await ledger.get_office_tiers("Marion Office", period)
        assert stored.min_value == Decimal("100.0001")
        assert stored.max_value == Decimal("100.0004")
        assert stored.max_value > stored.min_value
        assert stored.bonus_amount == Decimal("2.1234")

    async def test_invalid_enum_values_rejected(self, ledger: CommissionLedger, period: Period, actor):
        bad = [TierBracket("revenue", Decimal("0"), None, Decimal("1"), bonus_form="double")]

        with pytest.raises(InputValidationError) as exc_info:
            await ledger.set_office_tiers("Marion Office", period, bad, actor)

        assert len(exc_info.value.errors) == 2

    async def test_blank_office_rejected(self, ledger: CommissionLedger, period: Period, actor):
        with pytest.raises(InputValidationError):
            await ledger.set_office_tiers("  ", period, [], actor)

    async def test_one_audit_record_per_save(
        self, ledger: CommissionLedger, period: Period, actor, marion_tiers
    ):
        await ledger.set_office_tiers("Marion Office", period, marion_tiers, actor)

        records = await ledger.get_recent_audit_log(10)

        assert len(records) == 1
        record = records[0]
        assert record.action is AuditAction.OFFICE_TIERS_UPDATED
        assert record.actor_id == "admin-1"
        assert record.actor_name == "Avery Admin"
        assert record.payload.tier_count == 4
        assert record.payload.previous_tier_count == 0
        assert record.payload.tiers[3]["bonus_form"] == BonusForm.PERCENTAGE.value

    async def test_rejected_save_writes_no_audit(
        self, ledger: CommissionLedger, period: Period, actor
    ):
        bad = [TierBracket(TierMetric.UNITS_SOLD, Decimal("-1"), None, Decimal("10"))]
        with pytest.raises(InputValidationError):
            await ledger.set_office_tiers("Marion Office", period, bad, actor)

        assert await ledger.get_recent_audit_log(10) == []
