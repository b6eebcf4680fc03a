from __future__ import annotations

from dataclasses import dataclass

from price_avs.utils.bytes import INT256_MAX, INT256_MIN

"""
Core typed primitives for the operator pipeline.

Types provided:
  • PriceObservation — base price plus short/long TWAP ticks (ephemeral)
  • RoundRecord      — the opening persisted between commit and reveal
  • RevealMarker     — proof that a round was revealed (closes the round)
"""

_SALT_LEN = 32
_U64_MAX = (1 << 64) - 1


def _require_round(v: int) -> None:
    if not isinstance(v, int):
        raise TypeError("round_id must be an int")
    if not 0 <= v <= _U64_MAX:
        raise ValueError(f"round_id must fit in u64 (got {v})")


@dataclass(frozen=True, slots=True)
class PriceObservation:
    """
    One price sample used to build a prediction. Never persisted.

    Fields:
      base_price_x96 — Q64.96 base price (aggregator TWAP or pool spot)
      short_tick     — average tick over the short window
      long_tick      — average tick over the long window
      source         — name of the price source that produced it
    """

    base_price_x96: int
    short_tick: int
    long_tick: int
    source: str = ""


@dataclass(frozen=True, slots=True)
class RoundRecord:
    """
    Opening of a committed round.

    Fields:
      round_id   — protocol round
      prediction — signed Q64.96 prediction (int256 range)
      salt       — 32 random bytes used in the commitment
      commit_tx  — hash of the commit transaction ("" if unknown)
      created_at — unix seconds when the record was written
    """

    round_id: int
    prediction: int
    salt: bytes
    commit_tx: str = ""
    created_at: int = 0

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_round(self.round_id)
        if not isinstance(self.prediction, int):
            raise TypeError("prediction must be an int")
        if not INT256_MIN <= self.prediction <= INT256_MAX:
            raise ValueError("prediction must fit in int256")
        if not isinstance(self.salt, (bytes, bytearray)):
            raise TypeError("salt must be bytes")
        if len(self.salt) != _SALT_LEN:
            raise ValueError(f"salt must be exactly {_SALT_LEN} bytes (got {len(self.salt)})")
        if self.created_at < 0:
            raise ValueError("created_at must be non-negative")


@dataclass(frozen=True, slots=True)
class RevealMarker:
    round_id: int
    reveal_tx: str
    revealed_at: int

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_round(self.round_id)


__all__ = ["PriceObservation", "RoundRecord", "RevealMarker"]
