"""Error types raised by the fuzzer.

Every error carries a stable code so the outer fuzzing driver can tell a
harness bug (``SELECTION_INVARIANT``) apart from a genuine finding in the
protocol under test (``OUTCOME_MISMATCH``)::

    {
        "code": "OUTCOME_MISMATCH",
        "message": "Human-readable description",
        "details": {...}
    }
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel


# ── Error Codes ──────────────────────────────────────────────────────────────


class ErrorCode(str, Enum):
    """Standard error codes carried by ``OrderFuzzError``."""

    # Harness invariants (fatal)
    SELECTION_INVARIANT = "SELECTION_INVARIANT"
    REGISTRY_INCOMPLETE = "REGISTRY_INCOMPLETE"
    UNKNOWN_MUTATION = "UNKNOWN_MUTATION"

    # Test-suite failures
    OUTCOME_MISMATCH = "OUTCOME_MISMATCH"

    # Input errors
    INVALID_FIXTURE = "INVALID_FIXTURE"


# ── Error Schema ─────────────────────────────────────────────────────────────


class ErrorEnvelope(BaseModel):
    """Serializable form of an ``OrderFuzzError``."""

    code: str
    message: str
    details: dict[str, Any] | None = None


# ── Exceptions ───────────────────────────────────────────────────────────────


class OrderFuzzError(Exception):
    """Base class for all fuzzer errors."""

    code: ErrorCode = ErrorCode.SELECTION_INVARIANT

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_envelope(self) -> ErrorEnvelope:
        return ErrorEnvelope(
            code=self.code.value,
            message=self.message,
            details=self.details or None,
        )


class SelectionError(OrderFuzzError):
    """The selection driver broke a trial invariant.

    Raised for an out-of-range order index, a mutation state selected
    twice, or a context handed to an applier more than once. Indicates a
    bug in the driver and is never recovered.
    """

    code = ErrorCode.SELECTION_INVARIANT


class RegistryError(OrderFuzzError):
    """A mutation kind has no registered filter/applier pair."""

    code = ErrorCode.REGISTRY_INCOMPLETE


class UnknownMutationError(RegistryError):
    code = ErrorCode.UNKNOWN_MUTATION


class OutcomeMismatchError(OrderFuzzError):
    """The protocol under test did not fail the way the mutation predicts."""

    code = ErrorCode.OUTCOME_MISMATCH


class FixtureError(OrderFuzzError):
    """A trial fixture could not be loaded."""

    code = ErrorCode.INVALID_FIXTURE
