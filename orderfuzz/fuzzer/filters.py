"""Eligibility filters: one per mutation kind.

Each filter answers whether corrupting ``order`` at ``order_index`` would
be *ineligible*: returning ``True`` means the mutation must not be applied
because the resulting revert could come from a different validation step
than the one the mutation targets.

Filters are pure. They read the context view and the protocol state but
never write, log, or raise. A situation they do not model is ineligible.
"""

from __future__ import annotations

from orderfuzz.core.types import (
    FULFILL_AVAILABLE_ACTIONS,
    NO_FRACTION_ACTIONS,
    FulfillmentAction,
    Order,
    normalize_address,
)
from orderfuzz.fuzzer.context import ContextView
from orderfuzz.fuzzer.signatures import SignatureKind, signature_kind

# Encodings the protocol can decode into a signer.
DECODABLE_SIGNATURES = frozenset({SignatureKind.COMPACT, SignatureKind.EXTENDED, SignatureKind.BULK})


# ── Signature class ──────────────────────────────────────────────────────────


def ineligible_for_eoa_signature(order: Order, order_index: int, context: ContextView) -> bool:
    """Base filter for every signature-class mutation.

    The protocol only runs EOA signature recovery for an available,
    non-contract order whose offerer is not the caller, has no code, and
    has not been validated on chain.
    """
    if not context.is_expected_available(order_index):
        return True

    if order.is_contract_order:
        return True

    if normalize_address(order.offerer) == normalize_address(context.caller):
        return True

    # Contract offerers go through ERC-1271 instead of ecrecover.
    if context.offerer_has_code(order_index):
        return True

    if context.order_status(order_index).is_validated:
        return True

    return False


def ineligible_for_invalid_signature(order: Order, order_index: int, context: ContextView) -> bool:
    if ineligible_for_eoa_signature(order, order_index, context):
        return True

    # Already broken; emptying it would not change the failure.
    return signature_kind(order.signature) not in (SignatureKind.COMPACT, SignatureKind.EXTENDED)


def ineligible_for_invalid_signer(order: Order, order_index: int, context: ContextView) -> bool:
    if ineligible_for_eoa_signature(order, order_index, context):
        return True

    return signature_kind(order.signature) != SignatureKind.BULK


def ineligible_for_invalid_signer_modified_order(
    order: Order, order_index: int, context: ContextView
) -> bool:
    """A salt flip only surfaces as a wrong signer if the signature decodes."""
    if ineligible_for_eoa_signature(order, order_index, context):
        return True

    return signature_kind(order.signature) not in DECODABLE_SIGNATURES


def ineligible_for_bad_signature_v(order: Order, order_index: int, context: ContextView) -> bool:
    if ineligible_for_eoa_signature(order, order_index, context):
        return True

    return signature_kind(order.signature) != SignatureKind.EXTENDED


# ── Time ─────────────────────────────────────────────────────────────────────


def ineligible_for_invalid_time(order: Order, order_index: int, context: ContextView) -> bool:
    # fulfillAvailable treats an out-of-window order as unavailable, no revert.
    if context.action in FULFILL_AVAILABLE_ACTIONS:
        return True

    return order.is_contract_order


# ── Fraction ─────────────────────────────────────────────────────────────────


def ineligible_for_bad_fraction(order: Order, order_index: int, context: ContextView) -> bool:
    """Only advanced fulfillment paths validate a caller-supplied fraction.

    Over-excludes: an order skipped for an unrelated reason (fully filled,
    cancelled, failed generation) may still revert with a bad fraction, but
    without reachability analysis those cannot be told apart from orders
    whose skip swallows the error.
    """
    if context.action in NO_FRACTION_ACTIONS:
        return True

    if not context.is_expected_available(order_index):
        return True

    return order.is_contract_order


def ineligible_for_bad_fraction_no_fill(order: Order, order_index: int, context: ContextView) -> bool:
    # fulfillAvailableAdvanced skips a zero-numerator order instead of reverting.
    if context.action == FulfillmentAction.FULFILL_AVAILABLE_ADVANCED_ORDERS:
        return True

    return ineligible_for_bad_fraction(order, order_index, context)


# ── Status ───────────────────────────────────────────────────────────────────


def ineligible_for_order_is_cancelled(order: Order, order_index: int, context: ContextView) -> bool:
    if context.action in FULFILL_AVAILABLE_ACTIONS:
        return True

    return order.is_contract_order
