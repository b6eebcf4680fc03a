# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Reader for a concentrated-liquidity pool with a built-in tick oracle
(Uniswap v3 `slot0` / `observe`).

Spot price
----------
    priceX96 = sqrtPriceX96**2 >> 96

TWAP tick
---------
`observe([window, 0])` returns cumulative ticks at `window` seconds ago and
now; the average tick over the window is

    (cum_now - cum_then) / window

with division truncating toward zero.
"""

from __future__ import annotations

from price_avs.chain import ChainReader
from price_avs.chain.abi import POOL_OBSERVE, POOL_SLOT0
from price_avs.errors import ReadFailure

from .base import check_window, read


def _quo(num: int, den: int) -> int:
    q = abs(num) // den
    return q if num >= 0 else -q


class PoolReader:
    def __init__(self, reader: ChainReader, address: str) -> None:
        self.reader = reader
        self.address = address

    def sqrt_price_x96(self) -> int:
        return int(read(self.reader, self.address, POOL_SLOT0)[0])

    def spot_price_x96(self) -> int:
        sqrt = self.sqrt_price_x96()
        return (sqrt * sqrt) >> 96

    def twap_tick(self, window_s: int) -> int:
        window_s = check_window(window_s)
        tick_cumulatives, _ = read(self.reader, self.address, POOL_OBSERVE, [window_s, 0])
        if len(tick_cumulatives) != 2:
            raise ReadFailure(
                self.address, POOL_OBSERVE.name, f"expected 2 observations, got {len(tick_cumulatives)}"
            )
        then, now = tick_cumulatives
        return _quo(int(now) - int(then), window_s)

    def __repr__(self) -> str:
        return f"PoolReader({self.address})"


__all__ = ["PoolReader"]
