"""Tests for typed audit payloads."""

from decimal import Decimal

import pytest

from commission_ledger.audit import (
    Actor,
    AuditAction,
    FieldChange,
    IndividualPlanUpdated,
    LedgerAdjusted,
    LedgerGenerated,
    OfficeTiersUpdated,
    parse_payload,
)


class TestActor:
    def test_label_prefers_display_name(self):
        assert Actor("u-1", "Avery Admin").label == "Avery Admin"
        assert Actor("u-1").label == "u-1"


class TestFieldChange:
    def test_values_stored_as_text(self):
        change = FieldChange.of("adjustment", Decimal("0.00"), Decimal("100.00"))
        assert change == FieldChange("adjustment", "0.00", "100.00")

    def test_none_kept(self):
        assert FieldChange.of("notes", None, "hi").before is None


class TestPayloads:
    """Test payload descriptions and metadata parsing."""

    def test_each_payload_tagged_with_action(self):
        assert OfficeTiersUpdated.action is AuditAction.OFFICE_TIERS_UPDATED
        assert IndividualPlanUpdated.action is AuditAction.INDIVIDUAL_PLAN_UPDATED
        assert LedgerGenerated.action is AuditAction.LEDGER_GENERATED
        assert LedgerAdjusted.action is AuditAction.LEDGER_ADJUSTED

    def test_action_not_in_metadata(self):
        payload = LedgerGenerated(month=3, year=2026, entry_count=2, created=2, updated=0, failed=0)
        assert "action" not in payload.to_dict()

    def test_ledger_adjusted_parsed_from_metadata(self):
        payload = LedgerAdjusted(
            ledger_entry_id="5b0c",
            representative_id="rep-ada",
            representative_name="Ada Lovelace",
            month=3,
            year=2026,
            changes=(
                FieldChange.of("adjustment", Decimal("0.00"), Decimal("100.00")),
                FieldChange.of("adjustment_note", None, "Late order"),
            ),
        )

        parsed = parse_payload("LEDGER_ADJUSTED", payload.to_dict())

        assert parsed == payload
        assert parsed.changed_fields == ["adjustment", "adjustment_note"]
        assert parsed.change_for("adjustment").after == "100.00"
        assert parsed.change_for("status") is None

    def test_ledger_adjusted_description_hides_note_text(self):
        payload = LedgerAdjusted(
            ledger_entry_id="5b0c",
            representative_id="rep-ada",
            representative_name=None,
            month=3,
            year=2026,
            changes=(
                FieldChange.of("adjustment", "0.00", "100.00"),
                FieldChange.of("notes", None, "private"),
            ),
        )
        description = payload.describe()

        assert description.startswith("Updated ledger for rep-ada (3/2026)")
        assert "adjustment=100.00" in description
        assert "notes updated" in description
        assert "private" not in description

    def test_generation_description_mentions_failures(self):
        payload = LedgerGenerated(
            month=3,
            year=2026,
            entry_count=9,
            created=9,
            updated=0,
            failed=1,
            failed_representatives=("rep-bad",),
        )
        assert payload.describe() == "Generated 9 ledger entries for 3/2026 (1 failed)"
        assert parse_payload(AuditAction.LEDGER_GENERATED, payload.to_dict()) == payload

    def test_tier_payload_keeps_tier_dicts(self):
        tiers = ({"metric": "units_sold", "min_value": "5", "max_value": None},)
        payload = OfficeTiersUpdated(
            office="Marion Office",
            month=3,
            year=2026,
            tier_count=1,
            previous_tier_count=0,
            tiers=tiers,
        )
        assert "Marion Office" in payload.describe()
        assert parse_payload("OFFICE_TIERS_UPDATED", payload.to_dict()).tiers == tiers

    def test_unknown_action_rejected(self):
        with pytest.raises(ValueError):
            parse_payload("LEDGER_DELETED", {})
