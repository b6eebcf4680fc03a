# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Price sources: where a round's base price and drift ticks come from.

Two variants share one capability, `observe() -> PriceObservation`:

- `AggregatorSource`: base price is the aggregator's long-window TWAP; drift
  ticks are read from the pool over the short and long windows.
- `DirectPoolSource`: base price is the pool's instantaneous price
  (sqrtPrice² >> 96); drift ticks as above.

The variant is chosen once at startup by `select_source` from whether an
aggregator address is configured; there is no runtime autodetection.
"""

from __future__ import annotations

from typing import Protocol, Tuple

from price_avs import logging as plog
from price_avs.chain import ChainReader
from price_avs.errors import ReadFailure
from price_avs.metrics import METRICS, Metrics
from price_avs.types.core import PriceObservation

from .aggregator import AggregatorReader
from .pool import PoolReader

log = plog.get_logger(__name__)


class PriceSource(Protocol):
    name: str

    def observe(self) -> PriceObservation:
        ...


def _ticks(pool: PoolReader, short_s: int, long_s: int) -> Tuple[int, int]:
    return pool.twap_tick(short_s), pool.twap_tick(long_s)


class _Base:
    name = "base"

    def observe(self) -> PriceObservation:
        try:
            obs = self._observe()
        except ReadFailure as e:
            self.metrics.record_read(self.name, ok=False)
            log.warning("price read failed", extra={"source": self.name, "error": str(e)})
            raise
        self.metrics.record_read(self.name, ok=True)
        log.info(
            "price observed",
            extra={
                "source": self.name,
                "base_x96": obs.base_price_x96,
                "short_tick": obs.short_tick,
                "long_tick": obs.long_tick,
            },
        )
        return obs

    def _observe(self) -> PriceObservation:  # pragma: no cover - abstract
        raise NotImplementedError

    # Tuple form used by callers that only need the predictor inputs.
    def base_price_and_drift(self) -> Tuple[int, int]:
        obs = self.observe()
        return obs.base_price_x96, obs.short_tick - obs.long_tick


class AggregatorSource(_Base):
    name = "aggregator"

    def __init__(
        self,
        aggregator: AggregatorReader,
        pool: PoolReader,
        *,
        short_s: int,
        long_s: int,
        metrics: Metrics = METRICS,
    ) -> None:
        self.aggregator = aggregator
        self.pool = pool
        self.short_s = short_s
        self.long_s = long_s
        self.metrics = metrics

    def _observe(self) -> PriceObservation:
        base = self.aggregator.twap_price_x96(self.long_s)
        short_tick, long_tick = _ticks(self.pool, self.short_s, self.long_s)
        return PriceObservation(base, short_tick, long_tick, self.name)


class DirectPoolSource(_Base):
    name = "pool"

    def __init__(self, pool: PoolReader, *, short_s: int, long_s: int, metrics: Metrics = METRICS) -> None:
        self.pool = pool
        self.short_s = short_s
        self.long_s = long_s
        self.metrics = metrics

    def _observe(self) -> PriceObservation:
        base = self.pool.spot_price_x96()
        short_tick, long_tick = _ticks(self.pool, self.short_s, self.long_s)
        return PriceObservation(base, short_tick, long_tick, self.name)


def select_source(cfg, reader: ChainReader, *, metrics: Metrics = METRICS) -> PriceSource:
    """
    Build the configured price source.

    `cfg` is an `OperatorConfig` (or anything with `pool_addr`,
    `aggregator_addr` and `windows.short_s` / `windows.long_s`).
    """
    pool = PoolReader(reader, cfg.pool_addr)
    short_s, long_s = cfg.windows.short_s, cfg.windows.long_s
    if cfg.aggregator_addr:
        return AggregatorSource(
            AggregatorReader(reader, cfg.aggregator_addr), pool, short_s=short_s, long_s=long_s, metrics=metrics
        )
    return DirectPoolSource(pool, short_s=short_s, long_s=long_s, metrics=metrics)


__all__ = ["PriceSource", "AggregatorSource", "DirectPoolSource", "select_source"]
