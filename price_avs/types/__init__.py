"""
Operator types package.

Re-exports the commonly used symbols:
    from price_avs.types import PriceObservation, RoundRecord, Phase
"""

from __future__ import annotations

from .core import PriceObservation, RevealMarker, RoundRecord
from .state import Phase, RoundStatus

__all__ = [
    "PriceObservation",
    "RoundRecord",
    "RevealMarker",
    "Phase",
    "RoundStatus",
]
