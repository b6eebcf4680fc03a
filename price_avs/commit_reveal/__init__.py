"""
price_avs.commit_reveal
=======================

Commitment construction, the commit→reveal waiting policy, and the round
coordinator that sequences them against the chain and the round store.
"""

from __future__ import annotations

from .commit import SALT_LEN, build_commitment, commitment_preimage, generate_salt, verify_commitment
from .coordinator import CommitResult, Coordinator, PendingRound, RevealResult, RoundOutcome
from .schedule import CancelToken, RevealSchedule

__all__ = [
    "SALT_LEN",
    "generate_salt",
    "commitment_preimage",
    "build_commitment",
    "verify_commitment",
    "CancelToken",
    "RevealSchedule",
    "PendingRound",
    "CommitResult",
    "RevealResult",
    "RoundOutcome",
    "Coordinator",
]
