"""Typed audit payloads.

Every mutating operation records exactly one payload. Payloads are:
- Immutable (frozen dataclasses)
- Tagged by their AuditAction
- Serializable to the JSON metadata column and parseable back

Each action has its own schema, so a stored record can be read and tested
without knowing which code path wrote it.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar
from uuid import UUID


class AuditAction(str, Enum):
    """Mutated aspect recorded by an audit entry."""

    OFFICE_TIERS_UPDATED = "OFFICE_TIERS_UPDATED"
    INDIVIDUAL_PLAN_UPDATED = "INDIVIDUAL_PLAN_UPDATED"
    LEDGER_GENERATED = "LEDGER_GENERATED"
    LEDGER_ADJUSTED = "LEDGER_ADJUSTED"


@dataclass(frozen=True)
class Actor:
    """Who performed an action. Used for attribution only, never authorization."""

    actor_id: str
    display_name: str | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.actor_id


@dataclass(frozen=True)
class FieldChange:
    """Before/after values of one changed field, as strings."""

    field: str
    before: str | None
    after: str | None

    @classmethod
    def of(cls, field_name: str, before: Any, after: Any) -> FieldChange:
        return cls(field=field_name, before=_as_text(before), after=_as_text(after))


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _serialize(obj: Any) -> Any:
    """Recursively serialize objects for JSON compatibility."""
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_serialize(v) for v in obj]
    elif isinstance(obj, UUID):
        return str(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, Decimal):
        return str(obj)
    elif isinstance(obj, Enum):
        return obj.value
    return obj


@dataclass(frozen=True)
class AuditPayload:
    """Base class for audit payloads."""

    action: ClassVar[AuditAction]

    def describe(self) -> str:
        """Human-readable description stored alongside the payload."""
        raise NotImplementedError("Subclasses must describe themselves")

    def to_dict(self) -> dict[str, Any]:
        return _serialize(asdict(self))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditPayload:
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name == "changes":
                value = tuple(FieldChange(**change) for change in value)
            elif isinstance(value, list):
                value = tuple(value)
            values[f.name] = value
        return cls(**values)


@dataclass(frozen=True)
class OfficeTiersUpdated(AuditPayload):
    """An office's tier schedule for a period was replaced."""

    action: ClassVar[AuditAction] = AuditAction.OFFICE_TIERS_UPDATED

    office: str
    month: int
    year: int
    tier_count: int
    previous_tier_count: int
    tiers: tuple[dict[str, Any], ...] = ()

    def describe(self) -> str:
        return (
            f"Updated {self.office} pay plan tiers ({self.tier_count} tier(s)) "
            f"for {self.month}/{self.year}"
        )


@dataclass(frozen=True)
class IndividualPlanUpdated(AuditPayload):
    """A representative's individual plan for a period was replaced."""

    action: ClassVar[AuditAction] = AuditAction.INDIVIDUAL_PLAN_UPDATED

    representative_id: str
    representative_name: str | None
    month: int
    year: int
    line_item_count: int
    previous_line_item_count: int
    changes: tuple[FieldChange, ...] = ()

    def describe(self) -> str:
        who = self.representative_name or self.representative_id
        parts = [f"{c.field} {c.before or '0'} -> {c.after}" for c in self.changes]
        parts.append(f"{self.line_item_count} line item(s)")
        return f"Updated pay plan for {who} ({self.month}/{self.year}): {', '.join(parts)}"


@dataclass(frozen=True)
class LedgerGenerated(AuditPayload):
    """A generation run finished for a period."""

    action: ClassVar[AuditAction] = AuditAction.LEDGER_GENERATED

    month: int
    year: int
    entry_count: int
    created: int
    updated: int
    failed: int
    failed_representatives: tuple[str, ...] = ()
    engine_version: str | None = None

    def describe(self) -> str:
        msg = f"Generated {self.entry_count} ledger entries for {self.month}/{self.year}"
        if self.failed:
            msg += f" ({self.failed} failed)"
        return msg


@dataclass(frozen=True)
class LedgerAdjusted(AuditPayload):
    """A reviewer changed a ledger entry."""

    action: ClassVar[AuditAction] = AuditAction.LEDGER_ADJUSTED

    ledger_entry_id: str
    representative_id: str
    representative_name: str | None
    month: int
    year: int
    changes: tuple[FieldChange, ...] = ()

    @property
    def changed_fields(self) -> list[str]:
        return [c.field for c in self.changes]

    def change_for(self, field_name: str) -> FieldChange | None:
        for change in self.changes:
            if change.field == field_name:
                return change
        return None

    def describe(self) -> str:
        who = self.representative_name or self.representative_id
        parts = []
        for change in self.changes:
            if change.field.endswith("note") or change.field == "notes":
                parts.append(f"{change.field} updated")
            else:
                parts.append(f"{change.field}={change.after}")
        return f"Updated ledger for {who} ({self.month}/{self.year}): {', '.join(parts)}"


PAYLOAD_TYPES: dict[AuditAction, type[AuditPayload]] = {
    AuditAction.OFFICE_TIERS_UPDATED: OfficeTiersUpdated,
    AuditAction.INDIVIDUAL_PLAN_UPDATED: IndividualPlanUpdated,
    AuditAction.LEDGER_GENERATED: LedgerGenerated,
    AuditAction.LEDGER_ADJUSTED: LedgerAdjusted,
}


def parse_payload(action: AuditAction | str, metadata: dict[str, Any]) -> AuditPayload:
    """Rebuild the typed payload stored for an action."""
    payload_type = PAYLOAD_TYPES[AuditAction(action)]
    return payload_type.from_dict(metadata)
