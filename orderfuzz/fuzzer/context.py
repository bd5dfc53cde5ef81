"""Per-trial execution state and the collaborator boundaries it reads.

A trial's ``ExecutionContext`` is owned by the selection driver. Filters
only ever see a ``ContextView``; exactly one applier is handed the mutable
context through ``lend_for_mutation()``, after which the context is
consumed and goes to the executor.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, Sequence, runtime_checkable

from orderfuzz.core.errors import SelectionError
from orderfuzz.core.types import (
    FulfillmentAction,
    Order,
    OrderStatus,
    TrialFixture,
    normalize_address,
)

if TYPE_CHECKING:
    from orderfuzz.fuzzer.registry import MutationKind


# ── Collaborator Protocols ───────────────────────────────────────────────────


@runtime_checkable
class ProtocolState(Protocol):
    """Read/write surface of the protocol under test used by the core."""

    def get_order_status(self, order_hash: str) -> OrderStatus: ...

    def has_code(self, account: str) -> bool: ...

    def inscribe_cancelled(self, order_hash: str, value: bool, target: str) -> None: ...


@dataclass
class InMemoryProtocolState:
    """Dictionary-backed ``ProtocolState`` for fixtures and tests."""

    statuses: dict[str, OrderStatus] = field(default_factory=dict)
    contract_accounts: set[str] = field(default_factory=set)
    inscriptions: list[tuple[str, bool, str]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.contract_accounts = {normalize_address(a) for a in self.contract_accounts}

    def get_order_status(self, order_hash: str) -> OrderStatus:
        return self.statuses.get(order_hash, OrderStatus())

    def has_code(self, account: str) -> bool:
        return normalize_address(account) in self.contract_accounts

    def inscribe_cancelled(self, order_hash: str, value: bool, target: str) -> None:
        status = self.statuses.get(order_hash, OrderStatus())
        self.statuses[order_hash] = status.model_copy(update={"is_cancelled": value})
        self.inscriptions.append((order_hash, value, target))


# ── Execution Context ────────────────────────────────────────────────────────


@dataclass
class ExecutionContext:
    """Mutable state of one trial: the order batch and what surrounds it."""

    orders: list[Order]
    order_hashes: list[str]
    expected_available_orders: list[bool]
    caller: str
    action: FulfillmentAction
    protocol: ProtocolState
    timestamp: int = 0
    target: str = "seaport"
    trial_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    _consumed: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self.caller = normalize_address(self.caller)
        if len(self.order_hashes) != len(self.orders):
            raise ValueError("order_hashes must align 1:1 with orders")
        if len(self.expected_available_orders) != len(self.orders):
            raise ValueError("expected_available_orders must align 1:1 with orders")

    @classmethod
    def from_fixture(
        cls, fixture: TrialFixture, protocol: ProtocolState | None = None
    ) -> ExecutionContext:
        if protocol is None:
            protocol = InMemoryProtocolState(
                statuses=dict(fixture.statuses),
                contract_accounts=set(fixture.contract_accounts),
            )
        return cls(
            orders=[o.model_copy() for o in fixture.orders],
            order_hashes=list(fixture.order_hashes),
            expected_available_orders=list(fixture.expected_available_orders),
            caller=fixture.caller,
            action=fixture.action,
            protocol=protocol,
            timestamp=fixture.timestamp,
        )

    # ── Read helpers (shared with ContextView) ───────────────────────

    def is_expected_available(self, order_index: int) -> bool:
        if not 0 <= order_index < len(self.expected_available_orders):
            return False
        return self.expected_available_orders[order_index]

    def order_status(self, order_index: int) -> OrderStatus:
        return self.protocol.get_order_status(self.order_hashes[order_index])

    def offerer_has_code(self, order_index: int) -> bool:
        return self.protocol.has_code(self.orders[order_index].offerer)

    # ── Ownership handoff ────────────────────────────────────────────

    @property
    def consumed(self) -> bool:
        return self._consumed

    def view(self) -> ContextView:
        return ContextView(self)

    def lend_for_mutation(self) -> ExecutionContext:
        """Hand the context to an applier. Allowed once per trial."""
        if self._consumed:
            raise SelectionError(
                "Context already lent to an applier in this trial",
                {"trial_id": self.trial_id},
            )
        self._consumed = True
        return self

    def hand_off(self) -> None:
        """Mark the context as owned by the executor."""
        self._consumed = True

    def selected_order(self, state: MutationState) -> Order:
        index = state.order_index
        if not 0 <= index < len(self.orders):
            raise SelectionError(
                f"Selected order index {index} out of range for batch of {len(self.orders)}",
                {"trial_id": self.trial_id, "order_index": index},
            )
        return self.orders[index]


class ContextView:
    """Read-only lens over an ``ExecutionContext`` handed to filters."""

    __slots__ = ("_ctx",)

    def __init__(self, ctx: ExecutionContext) -> None:
        self._ctx = ctx

    @property
    def orders(self) -> Sequence[Order]:
        return tuple(self._ctx.orders)

    @property
    def order_hashes(self) -> Sequence[str]:
        return tuple(self._ctx.order_hashes)

    @property
    def expected_available_orders(self) -> Sequence[bool]:
        return tuple(self._ctx.expected_available_orders)

    @property
    def caller(self) -> str:
        return self._ctx.caller

    @property
    def action(self) -> FulfillmentAction:
        return self._ctx.action

    @property
    def timestamp(self) -> int:
        return self._ctx.timestamp

    def is_expected_available(self, order_index: int) -> bool:
        return self._ctx.is_expected_available(order_index)

    def order_status(self, order_index: int) -> OrderStatus:
        return self._ctx.order_status(order_index)

    def offerer_has_code(self, order_index: int) -> bool:
        return self._ctx.offerer_has_code(order_index)


# ── Mutation State ───────────────────────────────────────────────────────────


@dataclass
class MutationState:
    """Order index (and mutation kind) chosen for this trial. Written once."""

    selected_order_index: int | None = None
    mutation: MutationKind | None = None
    applied: bool = False

    def select(self, order_index: int, mutation: MutationKind | None = None) -> None:
        if self.selected_order_index is not None:
            raise SelectionError(
                "Mutation state already has a selected order",
                {"selected": self.selected_order_index, "requested": order_index},
            )
        self.selected_order_index = order_index
        self.mutation = mutation

    @property
    def order_index(self) -> int:
        if self.selected_order_index is None:
            raise SelectionError("No order selected for mutation")
        return self.selected_order_index

    def mark_applied(self) -> None:
        if self.applied:
            raise SelectionError(
                "Mutation already applied in this trial",
                {"order_index": self.selected_order_index},
            )
        self.applied = True
