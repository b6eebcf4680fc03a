from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Phase(str, Enum):
    """Lifecycle phases of a prediction round as seen by one operator."""

    IDLE = "idle"
    COMMITTING = "committing"
    COMMITTED = "committed"
    REVEALING = "revealing"
    REVEALED = "revealed"
    FAILED = "failed"


# Allowed transitions; anything else is a programming error.
TRANSITIONS = {
    Phase.IDLE: frozenset({Phase.COMMITTING, Phase.REVEALING}),
    Phase.COMMITTING: frozenset({Phase.COMMITTED, Phase.FAILED}),
    Phase.COMMITTED: frozenset({Phase.REVEALING}),
    Phase.REVEALING: frozenset({Phase.REVEALED, Phase.FAILED}),
    Phase.REVEALED: frozenset(),
    Phase.FAILED: frozenset(),
}


@dataclass(slots=True)
class RoundStatus:
    """
    Mutable per-round progress tracked by the coordinator.

    `IDLE → REVEALING` is allowed because a reveal may run in a separate
    invocation that never saw the commit; the store is then the only link.
    """

    round_id: int
    phase: Phase = Phase.IDLE
    commit_tx: Optional[str] = None
    reveal_tx: Optional[str] = None
    error: Optional[str] = None

    def advance(self, to: Phase) -> None:
        if to not in TRANSITIONS[self.phase]:
            raise RuntimeError(f"illegal transition {self.phase.value} -> {to.value}")
        self.phase = to


__all__ = ["Phase", "TRANSITIONS", "RoundStatus"]
