"""
price_avs.oracle
================

Read-only price access: pool and aggregator contract readers and the two
price-source strategies built on them.
"""

from __future__ import annotations

from .aggregator import AggregatorReader
from .pool import PoolReader
from .sources import AggregatorSource, DirectPoolSource, PriceSource, select_source

__all__ = [
    "AggregatorReader",
    "PoolReader",
    "PriceSource",
    "AggregatorSource",
    "DirectPoolSource",
    "select_source",
]
