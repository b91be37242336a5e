"""Error taxonomy for commission ledger operations."""

from __future__ import annotations

from typing import Any


class CommissionLedgerError(Exception):
    """Base class for errors raised by the commission ledger."""


class InputValidationError(CommissionLedgerError):
    """Raised when tier, plan or ledger input violates a constraint.

    Raised before anything is written; ``errors`` lists every violated
    constraint so callers can show all of them at once.
    """

    def __init__(self, errors: list[str] | str, subject: str | None = None):
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        self.subject = subject
        msg = "; ".join(self.errors)
        if subject:
            msg = f"Invalid {subject}: {msg}"
        super().__init__(msg)


class NotFoundError(CommissionLedgerError):
    """Raised when a representative or ledger entry does not exist."""

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.replace('_', ' ').capitalize()} {entity_id} not found")


class ConflictError(CommissionLedgerError):
    """Raised when a row changed underneath a read-modify-write."""

    def __init__(self, entity_type: str, entity_id: Any, reason: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        msg = f"Concurrent modification of {entity_type} {entity_id}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class InvariantViolationError(CommissionLedgerError):
    """Raised when a ledger entry's final amount disagrees with its inputs.

    This signals a programming error. Nothing in the engine catches it.
    """

    def __init__(self, entity_id: Any, expected: Any, actual: Any):
        self.entity_id = entity_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Ledger entry {entity_id} has final_amount {actual}, expected {expected}"
        )
