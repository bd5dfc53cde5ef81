"""Mutation appliers: one per mutation kind.

Each applier corrupts exactly one field of the selected order (or, for
cancellation, the persisted status of its hash) so that the protocol under
test reverts on one specific validation step. Appliers trust their paired
filter and do not re-check eligibility; they only guard the trial
invariants (index in range, applied once).
"""

from __future__ import annotations

from orderfuzz.core.errors import SelectionError
from orderfuzz.core.types import Order
from orderfuzz.fuzzer.context import ExecutionContext, MutationState
from orderfuzz.fuzzer.signatures import SIGNATURE_V_OFFSET

INVALID_SIGNATURE_V = 0xFF


def _take_order(context: ExecutionContext, state: MutationState) -> Order:
    # Both guards run before either side is marked, so a refused apply
    # leaves the state and the context as they were.
    order = context.selected_order(state)
    if state.applied:
        raise SelectionError(
            "Mutation already applied in this trial",
            {"trial_id": context.trial_id, "order_index": state.order_index},
        )
    context.lend_for_mutation()
    state.mark_applied()
    return order


# ── Signature ────────────────────────────────────────────────────────────────


def mutate_invalid_signature(context: ExecutionContext, state: MutationState) -> None:
    """Drop the signature entirely."""
    order = _take_order(context, state)
    order.signature = b""


def mutate_invalid_signer_bad_signature(context: ExecutionContext, state: MutationState) -> None:
    """Flip bit 0 of the first signature byte so it recovers another signer."""
    order = _take_order(context, state)
    data = bytearray(order.signature)
    data[0] ^= 0x01
    order.signature = bytes(data)


def mutate_invalid_signer_modified_order(context: ExecutionContext, state: MutationState) -> None:
    """Flip bit 0 of the salt so the signed digest no longer matches."""
    order = _take_order(context, state)
    order.salt ^= 0x01


def mutate_bad_signature_v(context: ExecutionContext, state: MutationState) -> None:
    order = _take_order(context, state)
    data = bytearray(order.signature)
    data[SIGNATURE_V_OFFSET] = INVALID_SIGNATURE_V
    order.signature = bytes(data)


# ── Time ─────────────────────────────────────────────────────────────────────


def mutate_invalid_time_not_started(context: ExecutionContext, state: MutationState) -> None:
    order = _take_order(context, state)
    order.start_time = context.timestamp + 1
    order.end_time = context.timestamp + 2


def mutate_invalid_time_expired(context: ExecutionContext, state: MutationState) -> None:
    # The window is [start, end), so end == now is already elapsed.
    order = _take_order(context, state)
    order.start_time = context.timestamp - 1
    order.end_time = context.timestamp


# ── Fraction ─────────────────────────────────────────────────────────────────


def mutate_bad_fraction_no_fill(context: ExecutionContext, state: MutationState) -> None:
    order = _take_order(context, state)
    order.numerator = 0


def mutate_bad_fraction_overfill(context: ExecutionContext, state: MutationState) -> None:
    order = _take_order(context, state)
    order.numerator = 2
    order.denominator = 1


# ── Status ───────────────────────────────────────────────────────────────────


def mutate_order_is_cancelled(context: ExecutionContext, state: MutationState) -> None:
    """Force the cancelled flag in the status store, skipping ``cancel()``."""
    _take_order(context, state)
    order_hash = context.order_hashes[state.order_index]
    context.protocol.inscribe_cancelled(order_hash, True, context.target)
