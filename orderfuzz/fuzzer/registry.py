"""Mutation kinds and their (filter, applier, expectation) triples."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator

from orderfuzz.core.errors import RegistryError, UnknownMutationError
from orderfuzz.core.types import Order
from orderfuzz.fuzzer import expectations as ex
from orderfuzz.fuzzer import filters as fl
from orderfuzz.fuzzer import mutations as mu
from orderfuzz.fuzzer.context import ContextView, ExecutionContext, MutationState
from orderfuzz.fuzzer.expectations import ExpectedFailure

EligibilityFilter = Callable[[Order, int, ContextView], bool]
Applier = Callable[[ExecutionContext, MutationState], None]
ExpectationDeriver = Callable[[ExecutionContext, MutationState], ExpectedFailure]


class MutationKind(str, Enum):
    """Named classes of adversarial corruption."""

    INVALID_SIGNATURE = "invalid_signature"
    INVALID_SIGNER_BAD_SIGNATURE = "invalid_signer_bad_signature"
    INVALID_SIGNER_MODIFIED_ORDER = "invalid_signer_modified_order"
    BAD_SIGNATURE_V = "bad_signature_v"
    INVALID_TIME_NOT_STARTED = "invalid_time_not_started"
    INVALID_TIME_EXPIRED = "invalid_time_expired"
    BAD_FRACTION_NO_FILL = "bad_fraction_no_fill"
    BAD_FRACTION_OVERFILL = "bad_fraction_overfill"
    ORDER_IS_CANCELLED = "order_is_cancelled"


@dataclass(frozen=True)
class MutationSpec:
    kind: MutationKind
    ineligible: EligibilityFilter
    apply: Applier
    expect: ExpectationDeriver


class MutationRegistry:
    """Maps every ``MutationKind`` to its spec.

    ``validate()`` fails when a kind has no entry, so adding an enum member
    without wiring it up is caught at construction of the default registry.
    """

    def __init__(self, specs: Iterable[MutationSpec] = ()) -> None:
        self._specs: dict[MutationKind, MutationSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: MutationSpec) -> None:
        if spec.kind in self._specs:
            raise RegistryError(f"Mutation {spec.kind.value} registered twice")
        self._specs[spec.kind] = spec

    def get(self, kind: MutationKind) -> MutationSpec:
        try:
            return self._specs[kind]
        except KeyError:
            raise UnknownMutationError(
                f"No spec registered for mutation {kind.value}", {"mutation": kind.value}
            ) from None

    def validate(self) -> None:
        missing = [k.value for k in MutationKind if k not in self._specs]
        if missing:
            raise RegistryError(
                f"Mutation kinds without filter/applier: {', '.join(missing)}",
                {"missing": missing},
            )

    def without(self, kinds: Iterable[MutationKind]) -> list[MutationSpec]:
        excluded = set(kinds)
        return [s for s in self if s.kind not in excluded]

    def __iter__(self) -> Iterator[MutationSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, kind: object) -> bool:
        return kind in self._specs


def parse_kind(name: str) -> MutationKind:
    try:
        return MutationKind(name)
    except ValueError:
        raise UnknownMutationError(f"Unknown mutation kind: {name}", {"mutation": name}) from None


def parse_kinds(names: Iterable[str]) -> set[MutationKind]:
    return {parse_kind(name) for name in names}


def default_registry() -> MutationRegistry:
    registry = MutationRegistry([
        MutationSpec(
            MutationKind.INVALID_SIGNATURE,
            fl.ineligible_for_invalid_signature,
            mu.mutate_invalid_signature,
            ex.expect_invalid_signature,
        ),
        MutationSpec(
            MutationKind.INVALID_SIGNER_BAD_SIGNATURE,
            fl.ineligible_for_invalid_signer,
            mu.mutate_invalid_signer_bad_signature,
            ex.expect_invalid_signer,
        ),
        MutationSpec(
            MutationKind.INVALID_SIGNER_MODIFIED_ORDER,
            fl.ineligible_for_invalid_signer_modified_order,
            mu.mutate_invalid_signer_modified_order,
            ex.expect_invalid_signer,
        ),
        MutationSpec(
            MutationKind.BAD_SIGNATURE_V,
            fl.ineligible_for_bad_signature_v,
            mu.mutate_bad_signature_v,
            ex.expect_bad_signature_v,
        ),
        MutationSpec(
            MutationKind.INVALID_TIME_NOT_STARTED,
            fl.ineligible_for_invalid_time,
            mu.mutate_invalid_time_not_started,
            ex.expect_invalid_time,
        ),
        MutationSpec(
            MutationKind.INVALID_TIME_EXPIRED,
            fl.ineligible_for_invalid_time,
            mu.mutate_invalid_time_expired,
            ex.expect_invalid_time,
        ),
        MutationSpec(
            MutationKind.BAD_FRACTION_NO_FILL,
            fl.ineligible_for_bad_fraction_no_fill,
            mu.mutate_bad_fraction_no_fill,
            ex.expect_bad_fraction,
        ),
        MutationSpec(
            MutationKind.BAD_FRACTION_OVERFILL,
            fl.ineligible_for_bad_fraction,
            mu.mutate_bad_fraction_overfill,
            ex.expect_bad_fraction,
        ),
        MutationSpec(
            MutationKind.ORDER_IS_CANCELLED,
            fl.ineligible_for_order_is_cancelled,
            mu.mutate_order_is_cancelled,
            ex.expect_order_is_cancelled,
        ),
    ])
    registry.validate()
    return registry
