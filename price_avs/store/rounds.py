"""
Typed round-state API over a raw byte-oriented KeyValue backend.

Buckets
-------
- ROUNDS:  per-round opening (prediction, salt, commit tx)
- REVEALS: per-round reveal marker, written once the reveal transaction landed

Keys are:
    PREFIX || u64_be(round_id)

so prefix iteration yields rounds in ascending order on ordered backends.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional

from price_avs.errors import StateCorrupt, StateNotFound
from price_avs.types.core import RevealMarker, RoundRecord

from . import KeyValue
from .codec import decode_marker, decode_record, encode_marker, encode_record

ROUNDS_PREFIX = b"\x01"
REVEALS_PREFIX = b"\x02"


def _be_u64(n: int) -> bytes:
    if n < 0 or n > 0xFFFFFFFFFFFFFFFF:
        raise ValueError("round_id out of range for u64")
    return n.to_bytes(8, "big")


def round_key(round_id: int) -> bytes:
    return ROUNDS_PREFIX + _be_u64(round_id)


def reveal_key(round_id: int) -> bytes:
    return REVEALS_PREFIX + _be_u64(round_id)


def _round_of(key: bytes) -> int:
    if len(key) != 9:
        raise StateCorrupt(None, f"malformed round key {key.hex()}")
    return int.from_bytes(key[1:], "big")


@dataclass(frozen=True)
class RoundStore:
    """
    Durable `{round_id -> (prediction, salt)}` map plus reveal markers.

    `get` returns exactly what `put` stored or raises; it never hands back
    zero-valued defaults for an unknown round.
    """

    kv: KeyValue

    # --- Openings ------------------------------------------------------------

    def put(self, record: RoundRecord) -> None:
        self.kv.put(round_key(record.round_id), encode_record(record))

    def get(self, round_id: int) -> RoundRecord:
        """
        Raises:
            StateNotFound: nothing stored for round_id.
            StateCorrupt: stored bytes fail to decode or verify.
        """
        raw = self.kv.get(round_key(round_id))
        if raw is None:
            raise StateNotFound(round_id)
        return decode_record(raw, round_hint=round_id)

    def has(self, round_id: int) -> bool:
        return self.kv.has(round_key(round_id))

    def delete(self, round_id: int) -> None:
        self.kv.delete(round_key(round_id))
        self.kv.delete(reveal_key(round_id))

    def iter_records(self) -> Iterator[RoundRecord]:
        for key, raw in self.kv.iter_prefix(ROUNDS_PREFIX):
            yield decode_record(raw, round_hint=_round_of(key))

    def list_rounds(self) -> List[int]:
        return [_round_of(key) for key, _ in self.kv.iter_prefix(ROUNDS_PREFIX)]

    # --- Reveal markers --------------------------------------------------------

    def mark_revealed(self, marker: RevealMarker) -> None:
        self.kv.put(reveal_key(marker.round_id), encode_marker(marker))

    def reveal_marker(self, round_id: int) -> Optional[RevealMarker]:
        raw = self.kv.get(reveal_key(round_id))
        if raw is None:
            return None
        return decode_marker(raw, round_hint=round_id)

    def close(self) -> None:
        self.kv.close()

    def __enter__(self) -> "RoundStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["RoundStore", "ROUNDS_PREFIX", "REVEALS_PREFIX", "round_key", "reveal_key"]
