# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
price_avs.utils.hash
====================

Keccak-256, the EVM's native hash, via pycryptodome. Used for commitments,
ABI function selectors and stored-record checksums.
"""

from __future__ import annotations

from Crypto.Hash import keccak as _keccak

from .bytes import BytesLike, as_bytes


def keccak256(*parts: BytesLike) -> bytes:
    """Keccak-256 over the concatenation of `parts`."""
    h = _keccak.new(digest_bits=256)
    for p in parts:
        h.update(as_bytes(p))
    return h.digest()


def selector(signature: str) -> bytes:
    """4-byte ABI function selector, e.g. ``selector("slot0()")``."""
    return keccak256(signature.encode("ascii"))[:4]


__all__ = ["keccak256", "selector"]
