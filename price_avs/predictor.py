# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Drift-adjusted next-period price predictor.

Definition
----------
    drift_bps = short_tick - long_tick
    adj       = 1e8 + alpha_bps * drift_bps
    next_x96  = trunc(base_x96 * adj / 1e8)

- One tick is ~1 basis point of price change, so the tick difference between
  a short and a long TWAP window is used directly as a drift in bps.
- `alpha_bps` (0..10000) scales how strongly the drift is followed. Both
  factors are bps-scaled, hence the 1e4 * 1e4 denominator.
- All arithmetic is on Python ints. Division truncates toward zero, which is
  identical to floor for non-negative operands.

`base_x96` that is absent or not strictly positive raises `InvalidBase`; zero
is never returned as a "no data" prediction. `alpha_bps` outside [0, 10000]
raises `InvalidParameter`. `drift_bps` is not range checked.
"""

from __future__ import annotations

from typing import Optional

from price_avs.errors import InvalidBase, InvalidParameter
from price_avs.types import PriceObservation

BPS = 10_000
SCALE = BPS * BPS  # 1e8
MAX_ALPHA_BPS = BPS


def drift_bps(short_tick: int, long_tick: int) -> int:
    """Drift in basis points: positive when the short window trades above the long one."""
    return int(short_tick) - int(long_tick)


def _quo(num: int, den: int) -> int:
    q = abs(num) // abs(den)
    return q if (num >= 0) == (den > 0) else -q


def predict_next(base_x96: Optional[int], drift: int, alpha_bps: int) -> int:
    """
    Return the predicted next-period price in Q64.96.

    Raises:
        InvalidBase: base_x96 is None or <= 0.
        InvalidParameter: alpha_bps outside [0, 10000].
    """
    if base_x96 is None or base_x96 <= 0:
        raise InvalidBase(base_x96)
    if not 0 <= alpha_bps <= MAX_ALPHA_BPS:
        raise InvalidParameter("alpha_bps", alpha_bps, f"must be in [0, {MAX_ALPHA_BPS}]")

    adj = SCALE + alpha_bps * drift
    return _quo(base_x96 * adj, SCALE)


def predict(obs: PriceObservation, alpha_bps: int) -> int:
    """Prediction for a full observation (base price plus short/long ticks)."""
    return predict_next(obs.base_price_x96, drift_bps(obs.short_tick, obs.long_tick), alpha_bps)


__all__ = ["BPS", "SCALE", "MAX_ALPHA_BPS", "drift_bps", "predict_next", "predict"]
