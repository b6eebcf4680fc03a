# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Price-prediction AVS operator package.

This package provides the read → predict → commit → reveal pipeline run by an
operator of the price-prediction AVS:
- pool / aggregator TWAP readers,
- the drift-adjusted predictor,
- the commit–reveal round coordinator,
- a durable round state store shared by commit and reveal invocations.

Only light, stable exports are surfaced here to avoid import cycles.
"""

from __future__ import annotations

from .version import __version__

__all__ = ["__version__"]
