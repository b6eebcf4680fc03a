"""
Small byte/hash helpers shared across the operator (hex I/O, int256
packing, Keccak-256).
"""

from .bytes import from_hex, int256_from_bytes, int256_to_bytes, to_hex  # noqa: F401
from .hash import keccak256, selector  # noqa: F401

__all__ = [
    "from_hex",
    "to_hex",
    "int256_to_bytes",
    "int256_from_bytes",
    "keccak256",
    "selector",
]
