"""Pauses between batch windows.

Batch stages call ``wait()`` between windows and report each call's outcome
so an adaptive limiter can stretch the pause when providers push back.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

import anthropic
import httpx

logger = logging.getLogger(__name__)

THROTTLE_STATUS_CODES = frozenset({429, 503, 529})

Sleep = Callable[[float], Awaitable[None]]


class RateLimiter(Protocol):
    """Interface for pacing batch windows."""

    async def wait(self) -> None: ...

    def record_success(self) -> None: ...

    def record_throttle(self) -> None: ...


def is_throttle_error(exc: BaseException) -> bool:
    """Whether ``exc`` means the provider asked us to slow down."""
    if isinstance(exc, anthropic.RateLimitError):
        return True
    if isinstance(exc, anthropic.APIStatusError):
        return exc.status_code in THROTTLE_STATUS_CODES
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in THROTTLE_STATUS_CODES
    return False


class FixedDelayLimiter:
    """Always pause for the same amount of time.

    Args:
        delay: Seconds to pause in ``wait()``.
        sleep: Sleep coroutine (injectable for tests).
    """

    def __init__(self, delay: float = 2.0, *, sleep: Sleep = asyncio.sleep) -> None:
        self._delay = delay
        self._sleep = sleep

    @property
    def delay(self) -> float:
        return self._delay

    async def wait(self) -> None:
        if self._delay > 0:
            await self._sleep(self._delay)

    def record_success(self) -> None:
        pass

    def record_throttle(self) -> None:
        pass


class AdaptiveBackoffLimiter:
    """Pause that grows on throttling and shrinks back on success.

    Each throttle multiplies the delay by ``factor`` (capped at
    ``max_delay``); each success divides it by ``factor`` down to ``base``.

    Args:
        base: Minimum (and initial) delay in seconds.
        max_delay: Upper bound on the delay.
        factor: Growth and decay multiplier, must be > 1.
        sleep: Sleep coroutine (injectable for tests).
    """

    def __init__(
        self,
        base: float = 2.0,
        max_delay: float = 60.0,
        factor: float = 2.0,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if base <= 0:
            raise ValueError("base must be positive")
        if factor <= 1:
            raise ValueError("factor must be greater than 1")
        if max_delay < base:
            raise ValueError("max_delay must be at least base")
        self._base = base
        self._max = max_delay
        self._factor = factor
        self._delay = base
        self._sleep = sleep

    @property
    def delay(self) -> float:
        return self._delay

    async def wait(self) -> None:
        if self._delay > 0:
            await self._sleep(self._delay)

    def record_success(self) -> None:
        self._delay = max(self._base, self._delay / self._factor)

    def record_throttle(self) -> None:
        previous = self._delay
        self._delay = min(self._max, self._delay * self._factor)
        if self._delay != previous:
            logger.info("Throttled; backing off to %.1fs between windows", self._delay)
