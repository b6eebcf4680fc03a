import threading
import time

import pytest

from price_avs.commit_reveal import CancelToken, RevealSchedule


def test_zero_delay_returns_immediately():
    assert RevealSchedule(delay_s=0).wait(CancelToken()) is True


def test_cancel_wakes_a_sleeping_wait():
    token = CancelToken()
    threading.Timer(0.02, token.cancel).start()
    t0 = time.monotonic()
    assert RevealSchedule(delay_s=10).wait(token) is False
    assert time.monotonic() - t0 < 5


def test_already_cancelled_token_never_waits():
    token = CancelToken()
    token.cancel()
    assert token.cancelled
    assert RevealSchedule(delay_s=0).wait(token) is False


def test_min_blocks_polls_until_target():
    heights = iter([10, 11, 12, 15])
    seen = []

    def block_number() -> int:
        h = next(heights)
        seen.append(h)
        return h

    ok = RevealSchedule(delay_s=0, min_blocks=5, poll_s=0.001).wait(
        CancelToken(), block_number=block_number, commit_block=10
    )
    assert ok is True
    assert seen == [10, 11, 12, 15]


def test_block_condition_skipped_without_commit_block():
    def boom() -> int:
        raise AssertionError("should not poll")

    assert RevealSchedule(delay_s=0, min_blocks=3).wait(CancelToken(), block_number=boom) is True


@pytest.mark.parametrize(
    "kwargs",
    [{"delay_s": -1}, {"min_blocks": -1}, {"poll_s": 0}],
)
def test_invalid_schedule(kwargs):
    with pytest.raises(ValueError):
        RevealSchedule(**kwargs)
