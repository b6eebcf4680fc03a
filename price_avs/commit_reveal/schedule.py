# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Waiting policy between commit and reveal, plus cooperative cancellation.

The manager contract enforces a minimum gap between a round's commit and its
reveal. `RevealSchedule` models that gap as a wall-clock delay, a minimum
number of blocks, or both. All waiting goes through `CancelToken.sleep`,
an `Event.wait`, so the thread is suspended rather than spinning and a
cancel wakes it immediately.

For long or chain-enforced gaps, running `commit` and `reveal` as separate
invocations linked only by the round store is the more robust option.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Optional


class CancelToken:
    """Thread-safe, one-shot cancellation flag."""

    def __init__(self) -> None:
        self._ev = threading.Event()

    def cancel(self) -> None:
        self._ev.set()

    @property
    def cancelled(self) -> bool:
        return self._ev.is_set()

    def sleep(self, seconds: float) -> bool:
        """Sleep up to `seconds`; return True if cancelled meanwhile."""
        return self._ev.wait(max(0.0, seconds))


@dataclass(frozen=True)
class RevealSchedule:
    """
    delay_s    : wall-clock seconds to wait after the commit is mined
    min_blocks : blocks that must be mined on top of the commit block (0 = off)
    poll_s     : block-number polling interval when min_blocks > 0
    """

    delay_s: float = 15.0
    min_blocks: int = 0
    poll_s: float = 2.0

    def __post_init__(self) -> None:
        if self.delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        if self.min_blocks < 0:
            raise ValueError("min_blocks must be >= 0")
        if self.poll_s <= 0:
            raise ValueError("poll_s must be > 0")

    def wait(
        self,
        token: CancelToken,
        *,
        block_number: Optional[Callable[[], int]] = None,
        commit_block: Optional[int] = None,
    ) -> bool:
        """
        Block until the reveal may be sent. Returns False if cancelled.

        The block condition is only checked when `min_blocks > 0` and both
        `block_number` and `commit_block` are provided.
        """
        if self.delay_s > 0 and token.sleep(self.delay_s):
            return False

        if self.min_blocks and block_number is not None and commit_block is not None:
            target = commit_block + self.min_blocks
            while block_number() < target:
                if token.sleep(self.poll_s):
                    return False
        return not token.cancelled


__all__ = ["CancelToken", "RevealSchedule"]
