"""Expected and observed trial outcomes.

After an applier runs, the registry derives the exact revert the protocol
must produce. The executor reports what it observed, and
``verify_outcome`` raises on any difference.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from orderfuzz.core.errors import OutcomeMismatchError
from orderfuzz.fuzzer.context import ExecutionContext, MutationState
from orderfuzz.fuzzer.mutations import INVALID_SIGNATURE_V

logger = logging.getLogger(__name__)


class FailureReason(str, Enum):
    """Custom errors the protocol reverts with."""

    INVALID_SIGNATURE = "InvalidSignature"
    INVALID_SIGNER = "InvalidSigner"
    BAD_SIGNATURE_V = "BadSignatureV"
    INVALID_TIME = "InvalidTime"
    BAD_FRACTION = "BadFraction"
    ORDER_IS_CANCELLED = "OrderIsCancelled"


@dataclass(frozen=True)
class ExpectedFailure:
    """A revert identified by error name and its arguments."""

    reason: FailureReason
    args: tuple[Any, ...] = ()

    def __str__(self) -> str:
        arg_str = ", ".join(str(a) for a in self.args)
        return f"{self.reason.value}({arg_str})"


@dataclass(frozen=True)
class ObservedOutcome:
    """What the executor saw: success, or a revert with decoded error."""

    success: bool
    error: str = ""
    args: tuple[Any, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def ok(cls) -> ObservedOutcome:
        return cls(success=True)

    @classmethod
    def reverted(cls, error: str, *args: Any) -> ObservedOutcome:
        return cls(success=False, error=error, args=tuple(args))

    def __str__(self) -> str:
        if self.success:
            return "success"
        return f"{self.error}({', '.join(str(a) for a in self.args)})"


# ── Derivers ─────────────────────────────────────────────────────────────────


def expect_invalid_signature(context: ExecutionContext, state: MutationState) -> ExpectedFailure:
    return ExpectedFailure(FailureReason.INVALID_SIGNATURE)


def expect_invalid_signer(context: ExecutionContext, state: MutationState) -> ExpectedFailure:
    return ExpectedFailure(FailureReason.INVALID_SIGNER)


def expect_bad_signature_v(context: ExecutionContext, state: MutationState) -> ExpectedFailure:
    return ExpectedFailure(FailureReason.BAD_SIGNATURE_V, (INVALID_SIGNATURE_V,))


def expect_invalid_time(context: ExecutionContext, state: MutationState) -> ExpectedFailure:
    order = context.selected_order(state)
    return ExpectedFailure(FailureReason.INVALID_TIME, (order.start_time, order.end_time))


def expect_bad_fraction(context: ExecutionContext, state: MutationState) -> ExpectedFailure:
    return ExpectedFailure(FailureReason.BAD_FRACTION)


def expect_order_is_cancelled(context: ExecutionContext, state: MutationState) -> ExpectedFailure:
    return ExpectedFailure(
        FailureReason.ORDER_IS_CANCELLED, (context.order_hashes[state.order_index],)
    )


# ── Verification ─────────────────────────────────────────────────────────────


def verify_outcome(expected: ExpectedFailure | None, observed: ObservedOutcome) -> None:
    """Raise ``OutcomeMismatchError`` unless ``observed`` matches ``expected``.

    ``expected=None`` denotes an un-mutated baseline run, which must succeed.
    """
    if expected is None:
        matched = observed.success
    else:
        matched = (
            not observed.success
            and observed.error == expected.reason.value
            and tuple(observed.args) == expected.args
        )

    if matched:
        return

    expected_str = "success" if expected is None else str(expected)
    logger.error(
        "Outcome mismatch: expected %s, observed %s",
        expected_str,
        observed,
        extra={"expected": expected_str, "observed": str(observed)},
    )
    raise OutcomeMismatchError(
        f"Expected {expected_str} but observed {observed}",
        {"expected": expected_str, "observed": str(observed)},
    )
