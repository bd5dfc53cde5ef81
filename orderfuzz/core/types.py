"""Shared enums and types used across the fuzzer."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator


# ── Enums ────────────────────────────────────────────────────────────────────


class OrderType(str, enum.Enum):
    """Order type as understood by the fulfillment protocol."""

    FULL_OPEN = "full_open"
    PARTIAL_OPEN = "partial_open"
    FULL_RESTRICTED = "full_restricted"
    PARTIAL_RESTRICTED = "partial_restricted"
    CONTRACT = "contract"


class FulfillmentAction(str, enum.Enum):
    """High-level protocol operation selected for a trial."""

    FULFILL_BASIC_ORDER = "fulfillBasicOrder"
    FULFILL_BASIC_ORDER_EFFICIENT = "fulfillBasicOrder_efficient_6GL6yc"
    FULFILL_ORDER = "fulfillOrder"
    FULFILL_ADVANCED_ORDER = "fulfillAdvancedOrder"
    FULFILL_AVAILABLE_ORDERS = "fulfillAvailableOrders"
    FULFILL_AVAILABLE_ADVANCED_ORDERS = "fulfillAvailableAdvancedOrders"
    MATCH_ORDERS = "matchOrders"
    MATCH_ADVANCED_ORDERS = "matchAdvancedOrders"
    CANCEL = "cancel"
    VALIDATE = "validate"
    INCREMENT_COUNTER = "incrementCounter"


BASIC_ACTIONS = frozenset({
    FulfillmentAction.FULFILL_BASIC_ORDER,
    FulfillmentAction.FULFILL_BASIC_ORDER_EFFICIENT,
})

# A time-invalid or cancelled order is skipped here rather than reverting.
FULFILL_AVAILABLE_ACTIONS = frozenset({
    FulfillmentAction.FULFILL_AVAILABLE_ORDERS,
    FulfillmentAction.FULFILL_AVAILABLE_ADVANCED_ORDERS,
})

# Operations taking plain orders: the fill fraction is fixed at 1/1.
NO_FRACTION_ACTIONS = BASIC_ACTIONS | frozenset({
    FulfillmentAction.FULFILL_ORDER,
    FulfillmentAction.FULFILL_AVAILABLE_ORDERS,
    FulfillmentAction.MATCH_ORDERS,
})


# ── Helpers ──────────────────────────────────────────────────────────────────


def normalize_address(value: str) -> str:
    """Lower-case a hex address so identity comparison ignores checksum casing."""
    return value.lower()


def _coerce_bytes(value: Any) -> Any:
    if isinstance(value, str):
        text = value[2:] if value.startswith(("0x", "0X")) else value
        return bytes.fromhex(text)
    if isinstance(value, (bytearray, list)):
        return bytes(value)
    return value


# ── Schemas ──────────────────────────────────────────────────────────────────


class Order(BaseModel):
    """One leg of a fulfillment request.

    Values are validated on construction only. Mutation appliers assign
    fields directly, so an applied order may hold values that construction
    would have rejected (e.g. an empty signature).
    """

    offerer: str
    order_type: OrderType = OrderType.FULL_OPEN
    signature: bytes = b""
    numerator: int = Field(default=1, ge=0)
    denominator: int = Field(default=1, ge=0)
    start_time: int = Field(default=0, ge=0)
    end_time: int = Field(default=2**256 - 1, ge=0)
    salt: int = Field(default=0, ge=0)
    order_hash: str = ""

    @field_validator("offerer")
    @classmethod
    def _lower_address(cls, v: str) -> str:
        return normalize_address(v)

    @field_validator("signature", mode="before")
    @classmethod
    def _signature_bytes(cls, v: Any) -> Any:
        return _coerce_bytes(v)

    @field_serializer("signature", when_used="json")
    def _signature_hex(self, v: bytes) -> str:
        return "0x" + v.hex()

    @property
    def is_contract_order(self) -> bool:
        return self.order_type == OrderType.CONTRACT


class OrderStatus(BaseModel):
    """Persisted on-chain status of an order hash."""

    is_validated: bool = False
    is_cancelled: bool = False


class TrialFixture(BaseModel):
    """JSON-loadable description of a single trial's inputs.

    Used by the command line to evaluate eligibility against a batch
    produced by an external generator.
    """

    orders: list[Order]
    order_hashes: list[str] = Field(default_factory=list)
    expected_available_orders: list[bool] = Field(default_factory=list)
    caller: str
    action: FulfillmentAction
    # Block timestamp of the trial. The expired-time mutation writes
    # ``timestamp - 1``, so it must be positive.
    timestamp: int = Field(ge=1)
    contract_accounts: list[str] = Field(default_factory=list)
    statuses: dict[str, OrderStatus] = Field(default_factory=dict)

    @field_validator("caller")
    @classmethod
    def _lower_caller(cls, v: str) -> str:
        return normalize_address(v)

    @model_validator(mode="after")
    def _align_parallel_sequences(self) -> TrialFixture:
        if not self.order_hashes:
            self.order_hashes = [o.order_hash for o in self.orders]
        if not self.expected_available_orders:
            self.expected_available_orders = [True] * len(self.orders)
        if len(self.order_hashes) != len(self.orders):
            raise ValueError("order_hashes must align 1:1 with orders")
        if len(self.expected_available_orders) != len(self.orders):
            raise ValueError("expected_available_orders must align 1:1 with orders")
        return self
