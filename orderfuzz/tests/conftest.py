"""Shared fixtures for the orderfuzz test suite."""

from __future__ import annotations

from typing import Callable

import pytest

from orderfuzz.core.types import FulfillmentAction, Order, OrderStatus, OrderType
from orderfuzz.fuzzer.context import ExecutionContext, InMemoryProtocolState
from orderfuzz.tests._helpers import (
    CALLER,
    CONTRACT_OFFERER,
    EXTENDED_SIG,
    NOW,
    OFFERER,
    order_hash_for,
)


# ── Orders ───────────────────────────────────────────────────────────────────


@pytest.fixture
def make_order() -> Callable[..., Order]:
    """Factory for a currently-valid, EOA-signed, partially fillable order."""

    def _make(**overrides) -> Order:
        params = dict(
            offerer=OFFERER,
            order_type=OrderType.PARTIAL_OPEN,
            signature=EXTENDED_SIG,
            numerator=1,
            denominator=2,
            start_time=1000,
            end_time=2000,
            salt=0x1234,
        )
        params.update(overrides)
        return Order(**params)

    return _make


# ── Protocol State ───────────────────────────────────────────────────────────


@pytest.fixture
def protocol_state() -> InMemoryProtocolState:
    return InMemoryProtocolState(contract_accounts={CONTRACT_OFFERER})


# ── Contexts ─────────────────────────────────────────────────────────────────


@pytest.fixture
def make_context(protocol_state: InMemoryProtocolState) -> Callable[..., ExecutionContext]:
    """Factory for an ``ExecutionContext`` over the given orders."""

    def _make(
        orders: list[Order],
        action: FulfillmentAction = FulfillmentAction.FULFILL_ADVANCED_ORDER,
        expected_available: list[bool] | None = None,
        caller: str = CALLER,
        timestamp: int = NOW,
    ) -> ExecutionContext:
        hashes = [o.order_hash or order_hash_for(i) for i, o in enumerate(orders)]
        return ExecutionContext(
            orders=orders,
            order_hashes=hashes,
            expected_available_orders=(
                expected_available if expected_available is not None else [True] * len(orders)
            ),
            caller=caller,
            action=action,
            protocol=protocol_state,
            timestamp=timestamp,
        )

    return _make


@pytest.fixture
def validated_status() -> OrderStatus:
    return OrderStatus(is_validated=True)
