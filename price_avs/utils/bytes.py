# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
price_avs.utils.bytes
=====================

Hex/bytes helpers plus strict length guards and the 256-bit integer packing
used by commitments and stored round records.
"""

from __future__ import annotations

import hmac
import re
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

INT256_MIN = -(1 << 255)
INT256_MAX = (1 << 255) - 1

__all__ = [
    "BytesLike",
    "INT256_MIN",
    "INT256_MAX",
    "to_hex",
    "from_hex",
    "is_hex",
    "as_bytes",
    "ensure_len",
    "int256_to_bytes",
    "int256_from_bytes",
    "consteq",
]

_HEX_RE = re.compile(r"^(?:0[xX])?[0-9a-fA-F]*$")


def is_hex(s: str) -> bool:
    """True if *s* is even-length hex with an optional ``0x`` prefix."""
    if not isinstance(s, str) or not _HEX_RE.match(s):
        return False
    body = s[2:] if s.startswith(("0x", "0X")) else s
    return len(body) % 2 == 0


def from_hex(s: str) -> bytes:
    """
    Convert a hex string (with optional ``0x``) to bytes.

    No whitespace, only hex digits, even nibble count.
    """
    if not isinstance(s, str):
        raise TypeError("from_hex expects a str")
    if not _HEX_RE.match(s):
        raise ValueError("invalid hex string (characters or whitespace)")
    body = s[2:] if s.startswith(("0x", "0X")) else s
    if len(body) % 2 != 0:
        raise ValueError("hex string must have an even number of nibbles")
    return bytes.fromhex(body)


def to_hex(b: BytesLike, *, prefix: str = "0x") -> str:
    return (prefix or "") + as_bytes(b).hex()


def as_bytes(x: BytesLike) -> bytes:
    """Normalize bytes-like to immutable :class:`bytes`."""
    if isinstance(x, bytes):
        return x
    if isinstance(x, (bytearray, memoryview)):
        return bytes(x)
    raise TypeError(f"expected bytes-like, got {type(x)!r}")


def ensure_len(b: BytesLike, expected: int, *, name: str = "value") -> bytes:
    """Ensure ``len(b) == expected``; returns bytes or raises ValueError."""
    bb = as_bytes(b)
    if len(bb) != expected:
        raise ValueError(f"{name} must be {expected} bytes, got {len(bb)}")
    return bb


def int256_to_bytes(x: int) -> bytes:
    """32-byte big-endian two's complement, as Solidity packs an int256."""
    if not INT256_MIN <= x <= INT256_MAX:
        raise ValueError(f"value does not fit in int256: {x}")
    return x.to_bytes(32, "big", signed=True)


def int256_from_bytes(b: BytesLike) -> int:
    return int.from_bytes(ensure_len(b, 32, name="int256"), "big", signed=True)


def consteq(a: BytesLike, b: BytesLike) -> bool:
    """Timing-safe equality for two bytes-like values."""
    return hmac.compare_digest(as_bytes(a), as_bytes(b))
