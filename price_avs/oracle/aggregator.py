"""
Reader for an on-chain price aggregator exposing a precomputed TWAP:

    twapPriceX96(uint32 windowSeconds) -> uint256 priceX96
"""

from __future__ import annotations

from price_avs.chain import ChainReader
from price_avs.chain.abi import AGG_TWAP_PRICE_X96

from .base import check_window, read


class AggregatorReader:
    def __init__(self, reader: ChainReader, address: str) -> None:
        self.reader = reader
        self.address = address

    def twap_price_x96(self, window_s: int) -> int:
        return int(read(self.reader, self.address, AGG_TWAP_PRICE_X96, check_window(window_s))[0])

    def __repr__(self) -> str:
        return f"AggregatorReader({self.address})"


__all__ = ["AggregatorReader"]
