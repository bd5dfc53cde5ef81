"""Signature length classification.

The protocol accepts three encodings:

  - compact (EIP-2098): 64 bytes, recovery bit packed into ``s``
  - extended: 65 bytes, explicit ``v`` byte at offset 64
  - bulk: a compact or extended signature, a 3-byte leaf key, and a
    Merkle proof of 32-byte nodes (tree height up to 24)
"""

from __future__ import annotations

from enum import Enum

COMPACT_SIGNATURE_LENGTH = 64
EXTENDED_SIGNATURE_LENGTH = 65
SIGNATURE_V_OFFSET = 64

# Exclusive upper bound: 65 + 3 + 32 * 24 = 836 is the longest valid encoding.
BULK_SIGNATURE_LENGTH_LIMIT = 837


class SignatureKind(str, Enum):
    EMPTY = "empty"
    COMPACT = "compact"
    EXTENDED = "extended"
    BULK = "bulk"
    MALFORMED = "malformed"


def is_bulk_signature_length(length: int) -> bool:
    """Return True when ``length`` matches the bulk signature encoding.

    ``(length - 35) % 32`` is 0 for a compact base signature and 1 for an
    extended one (64 + 3 = 67 = 2 * 32 + 3, 65 + 3 = 68).
    """
    return (
        COMPACT_SIGNATURE_LENGTH < length < BULK_SIGNATURE_LENGTH_LIMIT
        and (length - 35) % 32 < 2
    )


def signature_kind(signature: bytes) -> SignatureKind:
    length = len(signature)
    if length == 0:
        return SignatureKind.EMPTY
    if length == COMPACT_SIGNATURE_LENGTH:
        return SignatureKind.COMPACT
    if length == EXTENDED_SIGNATURE_LENGTH:
        return SignatureKind.EXTENDED
    if is_bulk_signature_length(length):
        return SignatureKind.BULK
    return SignatureKind.MALFORMED
