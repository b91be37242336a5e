"""Ledger entry approval state machine."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from commission_ledger.audit.types import Actor, FieldChange
from commission_ledger.errors import InputValidationError

if TYPE_CHECKING:
    from commission_ledger.models import LedgerEntry


class LedgerStatus(str, Enum):
    """Ledger entry status values."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    APPROVED = "approved"


class LedgerEntryStateMachine:
    """State machine for ledger entry review status.

    Nominal flow:
    - pending → reviewed → approved
    - any status → pending (unapprove)

    The order is not enforced: any requested target is accepted and only
    the side effects depend on it.
    - into reviewed/approved: reviewer and review time are stamped
    - into pending: reviewer and review time are cleared
    - same status: no side effects
    """

    # Statuses that carry reviewer attribution
    REVIEWED_STATUSES = {
        LedgerStatus.REVIEWED,
        LedgerStatus.APPROVED,
    }

    @classmethod
    def parse_status(cls, value: LedgerStatus | str) -> LedgerStatus:
        """Validate a requested status at the boundary."""
        try:
            return LedgerStatus(value.lower() if isinstance(value, str) else value)
        except ValueError:
            allowed = ", ".join(s.value for s in LedgerStatus)
            raise InputValidationError(
                f"status must be one of {allowed}, got {value!r}"
            ) from None

    @classmethod
    def requires_reviewer(cls, status: str) -> bool:
        """Check if entries in this status carry reviewer attribution."""
        return status in cls.REVIEWED_STATUSES

    @classmethod
    def apply(
        cls,
        entry: LedgerEntry,
        to_status: LedgerStatus | str,
        actor: Actor,
        now: datetime,
    ) -> list[FieldChange]:
        """Move an entry to ``to_status`` and apply reviewer side effects.

        Returns the resulting field changes (empty for a same-status request).
        """
        target = cls.parse_status(to_status)
        from_status = entry.status
        if from_status == target.value:
            return []

        changes = [FieldChange.of("status", from_status, target.value)]

        if cls.requires_reviewer(target):
            if entry.reviewed_by_actor_id != actor.actor_id:
                changes.append(
                    FieldChange.of("reviewed_by", entry.reviewed_by_actor_id, actor.actor_id)
                )
            entry.reviewed_by_actor_id = actor.actor_id
            entry.reviewed_by_name = actor.display_name
            entry.reviewed_at = now
        else:
            if entry.reviewed_by_actor_id is not None:
                changes.append(FieldChange.of("reviewed_by", entry.reviewed_by_actor_id, None))
            entry.reviewed_by_actor_id = None
            entry.reviewed_by_name = None
            entry.reviewed_at = None

        entry.status = target.value
        return changes
