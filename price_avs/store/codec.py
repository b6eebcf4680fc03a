# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Strict binary encoding for persisted round state.

Round record (version 1)
------------------------
    offset  size  field
    0       4     magic        b"PAVS"
    4       1     version      0x01
    5       8     round_id     u64 big-endian
    13      32    prediction   int256 big-endian two's complement
    45      32    salt         raw bytes
    77      8     created_at   u64 big-endian (unix seconds)
    85      2     tx_len       u16 big-endian
    87      n     commit_tx    utf-8
    87+n    4     checksum     keccak256(bytes[0:87+n])[:4]

Reveal marker (version 1)
-------------------------
    magic b"PAVR" | version | round_id u64 | revealed_at u64 |
    tx_len u16 | reveal_tx | checksum(4)

Every field is fixed width or length-prefixed, so decoding never depends on
the textual shape of a previous serialization. Any mismatch (length, magic,
version, checksum, trailing bytes) raises `StateCorrupt`.
"""

from __future__ import annotations

import struct
from typing import Optional

from price_avs.errors import StateCorrupt
from price_avs.types.core import RevealMarker, RoundRecord
from price_avs.utils.bytes import int256_from_bytes, int256_to_bytes
from price_avs.utils.hash import keccak256

RECORD_MAGIC = b"PAVS"
MARKER_MAGIC = b"PAVR"
VERSION = 1

_CHECKSUM_LEN = 4
_RECORD_HEAD = struct.Struct(">4sBQ32s32sQH")  # magic, ver, round, pred, salt, created, tx_len
_MARKER_HEAD = struct.Struct(">4sBQQH")        # magic, ver, round, revealed_at, tx_len
_MAX_TX_LEN = 0xFFFF


def _checksum(body: bytes) -> bytes:
    return keccak256(body)[:_CHECKSUM_LEN]


def _encode_tx(tx: str) -> bytes:
    raw = tx.encode("utf-8")
    if len(raw) > _MAX_TX_LEN:
        raise ValueError("transaction id too long")
    return raw


def _split_checked(data: bytes, head: struct.Struct, magic: bytes, round_hint: Optional[int]) -> tuple:
    if len(data) < head.size + _CHECKSUM_LEN:
        raise StateCorrupt(round_hint, f"record too short ({len(data)} bytes)")
    fields = head.unpack_from(data, 0)
    if fields[0] != magic:
        raise StateCorrupt(round_hint, f"bad magic {fields[0]!r}")
    if fields[1] != VERSION:
        raise StateCorrupt(round_hint, f"unsupported record version {fields[1]}")
    tx_len = fields[-1]
    end = head.size + tx_len
    if len(data) != end + _CHECKSUM_LEN:
        raise StateCorrupt(round_hint, f"length mismatch: expected {end + _CHECKSUM_LEN}, got {len(data)}")
    if _checksum(data[:end]) != data[end:]:
        raise StateCorrupt(round_hint, "checksum mismatch")
    try:
        tx = data[head.size:end].decode("utf-8")
    except UnicodeDecodeError as e:
        raise StateCorrupt(round_hint, "transaction id is not utf-8") from e
    return fields, tx


def encode_record(rec: RoundRecord) -> bytes:
    tx = _encode_tx(rec.commit_tx)
    body = _RECORD_HEAD.pack(
        RECORD_MAGIC,
        VERSION,
        rec.round_id,
        int256_to_bytes(rec.prediction),
        bytes(rec.salt),
        rec.created_at,
        len(tx),
    ) + tx
    return body + _checksum(body)


def decode_record(data: bytes, *, round_hint: Optional[int] = None) -> RoundRecord:
    fields, tx = _split_checked(bytes(data), _RECORD_HEAD, RECORD_MAGIC, round_hint)
    _, _, round_id, pred_b, salt, created_at, _ = fields
    if round_hint is not None and round_id != round_hint:
        raise StateCorrupt(round_hint, f"record belongs to round {round_id}")
    return RoundRecord(
        round_id=round_id,
        prediction=int256_from_bytes(pred_b),
        salt=salt,
        commit_tx=tx,
        created_at=created_at,
    )


def encode_marker(marker: RevealMarker) -> bytes:
    tx = _encode_tx(marker.reveal_tx)
    body = _MARKER_HEAD.pack(MARKER_MAGIC, VERSION, marker.round_id, marker.revealed_at, len(tx)) + tx
    return body + _checksum(body)


def decode_marker(data: bytes, *, round_hint: Optional[int] = None) -> RevealMarker:
    fields, tx = _split_checked(bytes(data), _MARKER_HEAD, MARKER_MAGIC, round_hint)
    _, _, round_id, revealed_at, _ = fields
    if round_hint is not None and round_id != round_hint:
        raise StateCorrupt(round_hint, f"marker belongs to round {round_id}")
    return RevealMarker(round_id=round_id, reveal_tx=tx, revealed_at=revealed_at)


__all__ = [
    "RECORD_MAGIC",
    "MARKER_MAGIC",
    "VERSION",
    "encode_record",
    "decode_record",
    "encode_marker",
    "decode_marker",
]
