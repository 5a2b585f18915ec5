"""Resilience patterns for the VeSync API (request pacing and 429 backoff)."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from vesyncair.const import (
    BACKOFF_BASE_DELAY,
    BACKOFF_MAX_DELAY,
    BACKOFF_MAX_JITTER,
    MAX_ATTEMPTS,
    MAX_REQUESTS_PER_MINUTE,
    MIN_REQUEST_INTERVAL,
    RATE_WINDOW_SECONDS,
)
from vesyncair.exceptions import MaxRetriesError, RateLimitError
from vesyncair.models import RateWindow


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_LOGGER = logging.getLogger(__name__)


@dataclass
class RateLimitConfig:
    """Configuration for request pacing.

    Attributes:
        min_interval: Minimum seconds between two requests (default 1.0).
        max_per_window: Maximum requests per window (default 60).
        window: Window length in seconds (default 60.0).
    """

    min_interval: float = MIN_REQUEST_INTERVAL
    max_per_window: int = MAX_REQUESTS_PER_MINUTE
    window: float = RATE_WINDOW_SECONDS


@dataclass
class ExponentialBackoffConfig:
    """Configuration for exponential backoff pattern.

    Attributes:
        base_delay: Initial delay in seconds (default 1.0).
        max_delay: Maximum delay before jitter in seconds (default 60.0).
        max_attempts: Total attempts including the first one (default 5).
        exponential_base: Multiplier for exponential growth (default 2.0).
        max_jitter: Upper bound of the random delay added to each wait (default 1.0).
    """

    base_delay: float = BACKOFF_BASE_DELAY
    max_delay: float = BACKOFF_MAX_DELAY
    max_attempts: int = MAX_ATTEMPTS
    exponential_base: float = 2.0
    max_jitter: float = BACKOFF_MAX_JITTER


class RateLimiter:
    """Client-side pacing of outbound requests.

    Enforces a minimum spacing between requests and a cap on requests per
    rolling minute. Every attempt is counted, including retries.

    Example:
        limiter = RateLimiter()

        await limiter.throttle()
        response = await session.post(url, json=body)
    """

    def __init__(
        self,
        min_interval: float = MIN_REQUEST_INTERVAL,
        max_per_window: int = MAX_REQUESTS_PER_MINUTE,
        window: float = RATE_WINDOW_SECONDS,
        *,
        time_fn: Callable[[], float] = time.monotonic,
        sleep_fn: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize rate limiter.

        Args:
            min_interval: Minimum seconds between requests.
            max_per_window: Maximum requests per window.
            window: Window length in seconds.
            time_fn: Monotonic clock, injectable for tests.
            sleep_fn: Async sleep, injectable for tests.
        """
        self.config = RateLimitConfig(
            min_interval=min_interval,
            max_per_window=max_per_window,
            window=window,
        )
        self._time_fn = time_fn
        self._sleep_fn = sleep_fn
        self.window = RateWindow(last_request=None, minute_start=time_fn())

    async def throttle(self) -> None:
        """Wait until the next request may be issued, then record it."""
        now = self._time_fn()

        if self.window.last_request is not None:
            elapsed = now - self.window.last_request
            if elapsed < self.config.min_interval:
                wait = self.config.min_interval - elapsed
                _LOGGER.debug("Pacing request: waiting %.3fs", wait)
                await self._sleep_fn(wait)
                now = self._time_fn()

        if now - self.window.minute_start >= self.config.window:
            self.window.requests_in_minute = 0
            self.window.minute_start = now

        if self.window.requests_in_minute >= self.config.max_per_window:
            wait = self.config.window - (now - self.window.minute_start)
            _LOGGER.warning("Request budget of %d/min reached, waiting %.1fs", self.config.max_per_window, wait)
            await self._sleep_fn(wait)
            self.window.requests_in_minute = 0
            self.window.minute_start = self._time_fn()

        self.window.last_request = self._time_fn()
        self.window.requests_in_minute += 1


class ExponentialBackoff:
    """Exponential backoff calculator for 429 retry delays.

    The delay grows as ``base_delay * exponential_base ** attempt``, is capped
    at ``max_delay`` and then gets a random jitter in ``[0, max_jitter)`` added.

    Example:
        backoff = ExponentialBackoff()
        backoff.calculate_delay(0)  # ~1.0-2.0 seconds
        backoff.calculate_delay(10)  # ~60.0-61.0 seconds
    """

    def __init__(
        self,
        base_delay: float = BACKOFF_BASE_DELAY,
        max_delay: float = BACKOFF_MAX_DELAY,
        max_attempts: int = MAX_ATTEMPTS,
        exponential_base: float = 2.0,
        *,
        max_jitter: float = BACKOFF_MAX_JITTER,
    ) -> None:
        """Initialize exponential backoff calculator.

        Args:
            base_delay: Initial delay in seconds.
            max_delay: Maximum delay in seconds before jitter.
            max_attempts: Total number of attempts.
            exponential_base: Multiplier for exponential growth.
            max_jitter: Upper bound of the added random delay.
        """
        self.config = ExponentialBackoffConfig(
            base_delay=base_delay,
            max_delay=max_delay,
            max_attempts=max_attempts,
            exponential_base=exponential_base,
            max_jitter=max_jitter,
        )

    @property
    def max_attempts(self) -> int:
        """Get maximum number of attempts."""
        return self.config.max_attempts

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay after a failed attempt.

        Args:
            attempt: Attempt number that just failed (0-indexed).

        Returns:
            Delay in seconds.
        """
        delay = min(self.config.base_delay * (self.config.exponential_base**attempt), self.config.max_delay)
        return delay + random.random() * self.config.max_jitter  # noqa: S311


async def retry_with_backoff(
    func: Callable[[], Awaitable[Any]],
    *,
    rate_limiter: RateLimiter | None = None,
    backoff: ExponentialBackoff | None = None,
    sleep_fn: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Any:
    """Execute func with pacing and bounded retry on 429 responses.

    The rate limiter runs before every attempt. Only RateLimitError is
    retried; every other exception propagates immediately.

    Args:
        func: Async function performing one request attempt.
        rate_limiter: Optional rate limiter applied before each attempt.
        backoff: Optional backoff calculator (defaults to ExponentialBackoff()).
        sleep_fn: Async sleep, injectable for tests.

    Returns:
        Result from func() if successful.

    Raises:
        RateLimitError: If the last permitted attempt is still throttled.
        MaxRetriesError: If the loop ends without a result.

    Example:
        result = await retry_with_backoff(
            lambda: api.post("/cloud/v1/user/login", body),
            rate_limiter=RateLimiter(),
            backoff=ExponentialBackoff(),
        )
    """
    if backoff is None:
        backoff = ExponentialBackoff()

    for attempt in range(backoff.max_attempts):
        if rate_limiter is not None:
            await rate_limiter.throttle()

        try:
            return await func()
        except RateLimitError:
            if attempt >= backoff.max_attempts - 1:
                _LOGGER.error("Still rate limited after %d attempts", backoff.max_attempts)
                raise

            delay = backoff.calculate_delay(attempt)
            _LOGGER.warning(
                "Rate limited (429) on attempt %d/%d, retrying in %.1f seconds",
                attempt + 1,
                backoff.max_attempts,
                delay,
            )
            await sleep_fn(delay)

    msg = "Max retries reached"
    raise MaxRetriesError(msg)
