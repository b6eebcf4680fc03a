"""
Shared plumbing for contract price readers: one read-only call, with every
transport or decoding failure surfaced as `ReadFailure`. No retries here;
that belongs to the chain client.
"""

from __future__ import annotations

from typing import Any, Tuple

from price_avs.chain import ChainReader
from price_avs.chain.abi import Method
from price_avs.errors import InvalidParameter, ReadFailure

_UINT32_MAX = 0xFFFFFFFF


def read(reader: ChainReader, address: str, method: Method, *args: Any) -> Tuple[Any, ...]:
    try:
        raw = reader.call(address, method.encode(*args))
    except Exception as e:
        raise ReadFailure(address, method.name, f"call failed: {e}") from e
    try:
        return method.decode(raw)
    except Exception as e:
        raise ReadFailure(address, method.name, f"undecodable response ({len(raw)} bytes): {e}") from e


def check_window(window_s: int) -> int:
    if not isinstance(window_s, int) or not 0 < window_s <= _UINT32_MAX:
        raise InvalidParameter("window_s", window_s, "must be a positive uint32 number of seconds")
    return window_s


__all__ = ["read", "check_window"]
