from __future__ import annotations

from types import SimpleNamespace
from typing import Dict, List, Optional, Tuple

import pytest
from eth_abi import decode as abi_decode, encode as abi_encode
from prometheus_client import CollectorRegistry

from price_avs.chain import SigningAuthority, TransactionUnconfirmed
from price_avs.chain.abi import AGG_TWAP_PRICE_X96, POOL_OBSERVE, POOL_SLOT0
from price_avs.metrics import Metrics
from price_avs.store import RoundStore
from price_avs.store.memory import MemoryKeyValue

Q96 = 1 << 96

POOL = "0x" + "11" * 20
AGG = "0x" + "22" * 20
AVS = "0x" + "33" * 20
OPERATOR = "0x" + "44" * 20
PRIVKEY = "0x" + "4c" * 32


class FakeChain:
    """
    In-process pool, aggregator and AVS manager.

    ticks: window seconds -> average tick the pool reports for that window.
    Submissions are recorded as (address, calldata) and get sequential hashes.
    With `confirm` off a submission is recorded but its receipt never arrives.
    """

    def __init__(
        self,
        *,
        sqrt_price_x96: int = Q96,
        ticks: Optional[Dict[int, int]] = None,
        agg_price_x96: Optional[int] = None,
        block: int = 100,
        chain_id: int = 1,
    ) -> None:
        self.sqrt_price_x96 = sqrt_price_x96
        self.ticks = dict(ticks or {30: 50, 300: 40})
        self.agg_price_x96 = agg_price_x96
        self.block = block
        self.node_chain_id = chain_id
        self.confirm = True
        self.calls: List[Tuple[str, bytes]] = []
        self.submissions: List[Tuple[str, bytes]] = []
        self.submit_error: Optional[Exception] = None
        self.read_error: Optional[Exception] = None
        self.block_error: Optional[Exception] = None

    # ChainReader

    def call(self, address: str, data: bytes) -> bytes:
        self.calls.append((address, data))
        if self.read_error is not None:
            raise self.read_error
        sel, body = data[:4], data[4:]
        if address == POOL and sel == POOL_SLOT0.selector:
            return abi_encode(list(POOL_SLOT0.outputs), [self.sqrt_price_x96, 0, 0, 0, 0, 0, True])
        if address == POOL and sel == POOL_OBSERVE.selector:
            (seconds_agos,) = abi_decode(["uint32[]"], body)
            window = seconds_agos[0]
            tick = self.ticks[window]
            # cumulative tick grows by `tick` per second; arbitrary non-zero origin
            then = 1_000_000
            return abi_encode(list(POOL_OBSERVE.outputs), [[then, then + tick * window], [0, 0]])
        if address == AGG and sel == AGG_TWAP_PRICE_X96.selector and self.agg_price_x96 is not None:
            return abi_encode(list(AGG_TWAP_PRICE_X96.outputs), [self.agg_price_x96])
        raise ConnectionError(f"execution reverted: {address} {sel.hex()}")

    # ChainWriter

    def signing_authority(self) -> SigningAuthority:
        return SigningAuthority(account=SimpleNamespace(address=OPERATOR), chain_id=1)

    def submit(self, address: str, data: bytes, auth: SigningAuthority) -> str:
        if self.submit_error is not None:
            raise self.submit_error
        self.submissions.append((address, data))
        tx_id = "0x" + f"{len(self.submissions):064x}"
        if not self.confirm:
            raise TransactionUnconfirmed(tx_id, "receipt wait timed out")
        return tx_id

    def block_number(self) -> int:
        if self.block_error is not None:
            raise self.block_error
        self.block += 1
        return self.block

    def chain_id(self) -> int:
        return self.node_chain_id


class FlakyKeyValue(MemoryKeyValue):
    """Memory KV whose writes can be switched off."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_puts = False

    def put(self, key: bytes, value: bytes) -> None:
        if self.fail_puts:
            raise OSError("disk full")
        super().put(key, value)


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def store() -> RoundStore:
    return RoundStore(MemoryKeyValue())


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> Metrics:
    return Metrics(registry=registry)
