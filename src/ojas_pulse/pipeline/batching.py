"""Fixed-size windows with an all-settled join per window."""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from ojas_pulse.ratelimit import RateLimiter, is_throttle_error

T = TypeVar("T")
R = TypeVar("R")


async def run_windowed(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    window_size: int,
    limiter: RateLimiter | None = None,
) -> list[R | BaseException]:
    """Run ``worker`` over ``items`` in windows of ``window_size``.

    Each window runs concurrently and is joined with
    ``asyncio.gather(return_exceptions=True)``, so one failure never cancels
    its siblings. The limiter pauses between windows (not after the last) and
    is told about every outcome.

    Returns:
        One entry per item, in input order: the worker's result or the
        exception it raised.
    """
    if window_size < 1:
        raise ValueError("window_size must be at least 1")

    results: list[R | BaseException] = []
    for start in range(0, len(items), window_size):
        if start and limiter is not None:
            await limiter.wait()
        window = items[start : start + window_size]
        settled = await asyncio.gather(*(worker(item) for item in window), return_exceptions=True)
        for outcome in settled:
            if limiter is not None:
                if isinstance(outcome, BaseException) and is_throttle_error(outcome):
                    limiter.record_throttle()
                elif not isinstance(outcome, BaseException):
                    limiter.record_success()
        results.extend(settled)
    return results
