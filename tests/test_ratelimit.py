"""Tests for rate limiters and windowed batching."""

import asyncio

import anthropic
import httpx
import pytest

from ojas_pulse.pipeline import run_windowed
from ojas_pulse.ratelimit import (
    AdaptiveBackoffLimiter,
    FixedDelayLimiter,
    is_throttle_error,
)


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _status_error(status: int) -> anthropic.APIStatusError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    return anthropic.APIStatusError(
        "error", response=httpx.Response(status, request=request), body=None
    )


# -- is_throttle_error --


def test_throttle_error_detection() -> None:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    rate_limited = anthropic.RateLimitError(
        "slow down", response=httpx.Response(429, request=request), body=None
    )
    assert is_throttle_error(rate_limited)
    assert is_throttle_error(_status_error(529))
    assert is_throttle_error(_status_error(503))
    assert not is_throttle_error(_status_error(400))
    assert not is_throttle_error(RuntimeError("boom"))


def test_httpx_throttle_detection() -> None:
    request = httpx.Request("GET", "https://www.googleapis.com/customsearch/v1")
    throttled = httpx.HTTPStatusError(
        "quota", request=request, response=httpx.Response(429, request=request)
    )
    forbidden = httpx.HTTPStatusError(
        "forbidden", request=request, response=httpx.Response(403, request=request)
    )
    assert is_throttle_error(throttled)
    assert not is_throttle_error(forbidden)


# -- FixedDelayLimiter --


async def test_fixed_delay_waits() -> None:
    sleep = SleepRecorder()
    limiter = FixedDelayLimiter(2.0, sleep=sleep)

    await limiter.wait()
    limiter.record_throttle()
    await limiter.wait()

    assert sleep.delays == [2.0, 2.0]
    assert limiter.delay == 2.0


async def test_fixed_zero_delay_does_not_sleep() -> None:
    sleep = SleepRecorder()
    await FixedDelayLimiter(0, sleep=sleep).wait()
    assert sleep.delays == []


# -- AdaptiveBackoffLimiter --


def test_adaptive_grows_and_caps() -> None:
    limiter = AdaptiveBackoffLimiter(base=2.0, max_delay=10.0, factor=2.0)

    limiter.record_throttle()
    assert limiter.delay == 4.0
    limiter.record_throttle()
    assert limiter.delay == 8.0
    limiter.record_throttle()
    assert limiter.delay == 10.0
    limiter.record_throttle()
    assert limiter.delay == 10.0


def test_adaptive_shrinks_to_base() -> None:
    limiter = AdaptiveBackoffLimiter(base=2.0, max_delay=60.0, factor=2.0)
    for _ in range(3):
        limiter.record_throttle()
    assert limiter.delay == 16.0

    limiter.record_success()
    assert limiter.delay == 8.0
    for _ in range(5):
        limiter.record_success()
    assert limiter.delay == 2.0


async def test_adaptive_waits_current_delay() -> None:
    sleep = SleepRecorder()
    limiter = AdaptiveBackoffLimiter(base=1.0, max_delay=8.0, factor=3.0, sleep=sleep)

    await limiter.wait()
    limiter.record_throttle()
    await limiter.wait()

    assert sleep.delays == [1.0, 3.0]


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"base": 0}, "base"),
        ({"factor": 1.0}, "factor"),
        ({"base": 5.0, "max_delay": 1.0}, "max_delay"),
    ],
)
def test_adaptive_rejects_bad_settings(kwargs: dict, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        AdaptiveBackoffLimiter(**kwargs)


# -- run_windowed --


async def test_run_windowed_preserves_order_and_failures() -> None:
    async def worker(n: int) -> int:
        await asyncio.sleep(0.001 * (5 - n))
        if n == 2:
            raise RuntimeError("two")
        return n * 10

    results = await run_windowed([0, 1, 2, 3, 4], worker, window_size=2)

    assert results[0] == 0
    assert results[1] == 10
    assert isinstance(results[2], RuntimeError)
    assert results[3:] == [30, 40]


async def test_run_windowed_bounds_concurrency() -> None:
    running = 0
    peak = 0

    async def worker(n: int) -> int:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.001)
        running -= 1
        return n

    await run_windowed(list(range(10)), worker, window_size=3)
    assert peak == 3


async def test_run_windowed_waits_between_windows_only() -> None:
    sleep = SleepRecorder()
    limiter = FixedDelayLimiter(0.5, sleep=sleep)

    async def worker(n: int) -> int:
        return n

    await run_windowed(list(range(7)), worker, window_size=3, limiter=limiter)
    assert sleep.delays == [0.5, 0.5]


async def test_run_windowed_feeds_adaptive_limiter() -> None:
    sleep = SleepRecorder()
    limiter = AdaptiveBackoffLimiter(base=1.0, max_delay=30.0, factor=2.0, sleep=sleep)

    async def worker(n: int) -> int:
        if n == 0:
            raise _status_error(429)
        if n == 1:
            raise RuntimeError("not a throttle")
        return n

    await run_windowed([0, 1, 2], worker, window_size=1, limiter=limiter)

    # throttle doubles to 2.0, the plain error leaves it, the success halves it back
    assert sleep.delays == [2.0, 2.0]
    assert limiter.delay == 1.0


async def test_run_windowed_rejects_zero_window() -> None:
    async def worker(n: int) -> int:
        return n

    with pytest.raises(ValueError, match="window_size"):
        await run_windowed([1], worker, window_size=0)


async def test_run_windowed_empty() -> None:
    async def worker(n: int) -> int:
        return n

    assert await run_windowed([], worker, window_size=4) == []
