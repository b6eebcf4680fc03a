# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
ABI surface of the contracts the operator talks to.

Only the handful of functions actually called are described; each `Method`
knows its selector and how to encode arguments / decode results with eth-abi.

Pool (Uniswap v3 style):
    slot0() -> (uint160 sqrtPriceX96, int24 tick, uint16, uint16, uint16, uint8, bool)
    observe(uint32[] secondsAgos) -> (int56[] tickCumulatives, uint160[] secondsPerLiquidityCumulativeX128)

Aggregator:
    twapPriceX96(uint32 windowSeconds) -> uint256

AVS manager:
    commit(uint256 roundId, bytes32 commitHash)
    reveal(uint256 roundId, int256 predictionX96, bytes32 salt)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple

from eth_abi import decode as abi_decode, encode as abi_encode

from price_avs.utils.hash import selector as _selector


@dataclass(frozen=True)
class Method:
    name: str
    inputs: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return _selector(self.signature)

    def encode(self, *args: Any) -> bytes:
        if len(args) != len(self.inputs):
            raise TypeError(f"{self.signature} takes {len(self.inputs)} arguments, got {len(args)}")
        return self.selector + (abi_encode(list(self.inputs), list(args)) if self.inputs else b"")

    def decode(self, data: bytes) -> Tuple[Any, ...]:
        return tuple(abi_decode(list(self.outputs), bytes(data)))


POOL_SLOT0 = Method(
    "slot0",
    outputs=("uint160", "int24", "uint16", "uint16", "uint16", "uint8", "bool"),
)
POOL_OBSERVE = Method("observe", inputs=("uint32[]",), outputs=("int56[]", "uint160[]"))

AGG_TWAP_PRICE_X96 = Method("twapPriceX96", inputs=("uint32",), outputs=("uint256",))

AVS_COMMIT = Method("commit", inputs=("uint256", "bytes32"))
AVS_REVEAL = Method("reveal", inputs=("uint256", "int256", "bytes32"))


__all__ = [
    "Method",
    "POOL_SLOT0",
    "POOL_OBSERVE",
    "AGG_TWAP_PRICE_X96",
    "AVS_COMMIT",
    "AVS_REVEAL",
]
