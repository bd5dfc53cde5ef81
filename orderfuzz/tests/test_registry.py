"""Tests for the mutation registry: exhaustiveness and lookups."""

from __future__ import annotations

import pytest

from orderfuzz.core.errors import RegistryError, UnknownMutationError
from orderfuzz.fuzzer import filters as fl
from orderfuzz.fuzzer.registry import (
    MutationKind,
    MutationRegistry,
    default_registry,
    parse_kinds,
)


class TestDefaultRegistry:
    def test_covers_every_kind(self):
        registry = default_registry()
        assert len(registry) == len(MutationKind)
        for kind in MutationKind:
            assert kind in registry

    def test_pairs_stricter_no_fill_filter(self):
        registry = default_registry()
        assert registry.get(MutationKind.BAD_FRACTION_NO_FILL).ineligible is fl.ineligible_for_bad_fraction_no_fill
        assert registry.get(MutationKind.BAD_FRACTION_OVERFILL).ineligible is fl.ineligible_for_bad_fraction

    def test_time_kinds_share_filter(self):
        registry = default_registry()
        assert (
            registry.get(MutationKind.INVALID_TIME_EXPIRED).ineligible
            is registry.get(MutationKind.INVALID_TIME_NOT_STARTED).ineligible
        )

    def test_without(self):
        specs = default_registry().without([MutationKind.ORDER_IS_CANCELLED])
        assert MutationKind.ORDER_IS_CANCELLED not in {s.kind for s in specs}
        assert len(specs) == len(MutationKind) - 1


class TestRegistryValidation:
    def test_incomplete_registry_fails(self):
        partial = MutationRegistry(default_registry().without([MutationKind.BAD_SIGNATURE_V]))
        with pytest.raises(RegistryError) as exc_info:
            partial.validate()
        assert "bad_signature_v" in exc_info.value.details["missing"]

    def test_duplicate_registration(self):
        registry = default_registry()
        with pytest.raises(RegistryError):
            registry.register(registry.get(MutationKind.INVALID_SIGNATURE))

    def test_unknown_kind_lookup(self):
        registry = MutationRegistry()
        with pytest.raises(UnknownMutationError):
            registry.get(MutationKind.INVALID_SIGNATURE)


class TestParseKinds:
    def test_parse(self):
        assert parse_kinds(["order_is_cancelled", "bad_signature_v"]) == {
            MutationKind.ORDER_IS_CANCELLED,
            MutationKind.BAD_SIGNATURE_V,
        }

    def test_unknown(self):
        with pytest.raises(UnknownMutationError):
            parse_kinds(["strip_everything"])
