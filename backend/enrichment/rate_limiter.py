"""
Per-service sliding-window rate limiting with retry/backoff.

Each RateLimiter keeps a log of booked start times for up to three windows
(second, minute, day). throttle() books the earliest start that keeps every
window under its limit, sleeping until then. with_retry() adds exponential
backoff for HTTP 429 responses only; with_exponential_backoff() retries any
exception.

Limiters are built per invocation via build_rate_limiters() and handed to
the code that calls each external service.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

SECOND = 1.0
MINUTE = 60.0
DAY = 86400.0


@dataclass(frozen=True)
class RateLimitConfig:
    """Limits for one external service. None = window not enforced."""
    requests_per_second: Optional[int] = None
    requests_per_minute: Optional[int] = None
    requests_per_day: Optional[int] = None
    retry_after_seconds: float = 1.0  # base delay for 429 backoff


class RateLimitError(Exception):
    """Raised when a service keeps answering 429 after all retries."""

    def __init__(self, service: str, attempts: int):
        super().__init__(f"{service}: rate limited after {attempts} attempts")
        self.service = service
        self.attempts = attempts


def is_rate_limit_error(error: BaseException) -> bool:
    """
    Check whether an exception represents an HTTP 429 response.

    Recognizes httpx.HTTPStatusError plus any exception exposing
    status / status_code / response.status_code.
    """
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code == 429

    for attr in ("status", "status_code"):
        if getattr(error, attr, None) == 429:
            return True

    response = getattr(error, "response", None)
    return getattr(response, "status_code", None) == 429


class RateLimiter:
    """
    Sliding-window throttle for a single external service.

    Example:
        limiter = RateLimiter("jsearch", RateLimitConfig(requests_per_second=1))
        data = await limiter.with_retry(lambda: fetch_page(1))
    """

    def __init__(
        self,
        name: str,
        config: RateLimitConfig,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.name = name
        self.config = config
        self._clock = clock
        self._sleep = sleep
        # window key -> the last `limit` booked start times, oldest first
        self._bookings: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()

    def _windows(self) -> list[tuple[str, int, float]]:
        windows = []
        if self.config.requests_per_second:
            windows.append(("second", self.config.requests_per_second, SECOND))
        if self.config.requests_per_minute:
            windows.append(("minute", self.config.requests_per_minute, MINUTE))
        if self.config.requests_per_day:
            windows.append(("day", self.config.requests_per_day, DAY))
        return windows

    def _earliest_start(self, now: float) -> float:
        """
        Earliest start time >= now that keeps every window under its limit.

        Bookings are made in non-decreasing order, so a window has room at t
        once its limit-th most recent booking is at least `window` old.
        """
        start = now
        for key, limit, window in self._windows():
            booked = self._bookings.get(key)
            if not booked:
                continue
            start = max(start, booked[-1])
            if len(booked) >= limit:
                start = max(start, booked[0] + window)
        return start

    def compute_wait(self, now: Optional[float] = None) -> float:
        """Seconds until the next request may start (0 = free now)."""
        now = self._clock() if now is None else now
        return self._earliest_start(now) - now

    def consume(self, start: Optional[float] = None) -> None:
        """Book one request starting at `start` in every configured window."""
        start = self._clock() if start is None else start
        for key, limit, _ in self._windows():
            booked = self._bookings.setdefault(key, deque(maxlen=limit))
            booked.append(start)

    async def throttle(self) -> float:
        """
        Wait until a request is allowed, then record it.

        The start time is booked under the lock so concurrent callers queue
        behind each other's reservations instead of all seeing the same free
        window. Sleeping happens outside the lock.

        Returns:
            Seconds waited
        """
        async with self._lock:
            now = self._clock()
            start = self._earliest_start(now)
            self.consume(start)
            wait = start - now

        if wait > 0:
            logger.debug(f"[RateLimiter:{self.name}] throttling for {wait:.2f}s")
            await self._sleep(wait)
        return wait

    async def with_retry(
        self,
        fn: Callable[[], Awaitable[T]],
        max_retries: int = 3,
    ) -> T:
        """
        Throttle, call fn, and retry with exponential backoff on 429.

        Non rate-limit errors propagate immediately.

        Raises:
            RateLimitError: If every attempt was rate limited
        """
        for attempt in range(max_retries + 1):
            await self.throttle()
            try:
                return await fn()
            except Exception as e:
                if not is_rate_limit_error(e):
                    raise
                if attempt == max_retries:
                    raise RateLimitError(self.name, attempt + 1) from e
                delay = self.config.retry_after_seconds * (2 ** attempt)
                logger.warning(
                    f"[RateLimiter:{self.name}] 429 received, retry {attempt + 1}/{max_retries} in {delay:.1f}s"
                )
                await self._sleep(delay)

        # Unreachable: the loop either returns or raises
        raise RateLimitError(self.name, max_retries + 1)

    async def with_exponential_backoff(
        self,
        fn: Callable[[], Awaitable[T]],
        max_retries: int = 3,
        base_delay: float = 1.0,
    ) -> T:
        """Call fn, retrying any exception with base_delay * 2**attempt backoff."""
        for attempt in range(max_retries + 1):
            try:
                return await fn()
            except Exception as e:
                if attempt == max_retries:
                    raise
                delay = base_delay * (2 ** attempt)
                logger.warning(
                    f"[RateLimiter:{self.name}] attempt {attempt + 1} failed ({type(e).__name__}), retrying in {delay:.1f}s"
                )
                await self._sleep(delay)

        raise RuntimeError("unreachable")


# Known service quotas
RATE_LIMITS: dict[str, RateLimitConfig] = {
    "proxycurl": RateLimitConfig(requests_per_minute=10),
    "hunter": RateLimitConfig(requests_per_day=25),
    "jsearch": RateLimitConfig(requests_per_second=1),
    "adzuna": RateLimitConfig(requests_per_minute=10, requests_per_day=250),
    "generated_photos": RateLimitConfig(requests_per_day=100),
}


def build_rate_limiters(
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> dict[str, RateLimiter]:
    """Create a fresh limiter per known service for one invocation."""
    return {
        name: RateLimiter(name, config, clock=clock, sleep=sleep)
        for name, config in RATE_LIMITS.items()
    }
