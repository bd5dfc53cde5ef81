"""Tests for signature length classification."""

from __future__ import annotations

import pytest

from orderfuzz.fuzzer.signatures import SignatureKind, is_bulk_signature_length, signature_kind


class TestBulkLength:
    @pytest.mark.parametrize("length", [67, 68, 99, 100, 131, 132, 835, 836])
    def test_valid(self, length):
        assert is_bulk_signature_length(length)

    @pytest.mark.parametrize("length", [0, 64, 65, 66, 98, 101, 837, 868, 869])
    def test_invalid(self, length):
        assert not is_bulk_signature_length(length)


class TestSignatureKind:
    @pytest.mark.parametrize(
        "length, kind",
        [
            (0, SignatureKind.EMPTY),
            (64, SignatureKind.COMPACT),
            (65, SignatureKind.EXTENDED),
            (131, SignatureKind.BULK),
            (836, SignatureKind.BULK),
            (66, SignatureKind.MALFORMED),
            (837, SignatureKind.MALFORMED),
        ],
    )
    def test_kind(self, length, kind):
        assert signature_kind(b"\x01" * length) == kind
