"""Retry/backoff policy for page fetches.

:meth:`RetryPolicy.decide` is a pure function of the failed attempt: it looks
at the :class:`~feedwalker.core.exceptions.WalkError`, the 1-based attempt
number and the current time, and returns a :class:`RetryDecision`.

- ``TerminalError`` is never retried.
- ``RateLimitedError`` is retried no earlier than its ``reset_at`` instant
  (the wait is rounded up to whole seconds), unless that instant is further
  away than ``rate_limit_max_wait``.
- ``TransientError`` is retried after ``base_delay * 2 ** (attempt - 1)``
  seconds, capped at ``max_delay``.
- Nothing is retried once ``max_attempts`` attempts have failed.

:func:`fetch_with_retry` drives a :class:`~feedwalker.paging.base.PageFetcher`
with a policy.  It raises the final error unchanged, so the caller always
sees why a fetch gave up.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, TypeVar

from feedwalker.core.exceptions import RateLimitedError, WalkError

if TYPE_CHECKING:
    from feedwalker.config.settings import Settings
    from feedwalker.paging.base import FetchRequest, Page, PageFetcher

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of :meth:`RetryPolicy.decide`.

    Attributes:
        retry: Whether the fetch should be attempted again.
        delay: Seconds to wait before the next attempt (``0.0`` when not
            retrying).
    """

    retry: bool
    delay: float = 0.0


SURFACE = RetryDecision(retry=False)
"""Decision to stop retrying and raise the error to the caller."""


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry policy shared by cursor walkers and ID timelines.

    Attributes:
        max_attempts: Total attempts per fetch, the first one included.
        base_delay: Backoff before the first transient retry (seconds).
        max_delay: Cap on a single transient backoff (seconds).
        rate_limit_max_wait: Longest rate-limit wait absorbed internally.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    rate_limit_max_wait: float = 900.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.base_delay < 0 or self.max_delay < 0 or self.rate_limit_max_wait < 0:
            raise ValueError("retry delays must not be negative")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RetryPolicy:
        """Build a policy from :class:`~feedwalker.config.settings.Settings`.

        Args:
            settings: Settings to read.  ``None`` uses :func:`get_settings`.
        """
        if settings is None:
            from feedwalker.config.settings import get_settings  # noqa: PLC0415

            settings = get_settings()
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
            rate_limit_max_wait=settings.rate_limit_max_wait,
        )

    def decide(self, error: WalkError, attempt: int, now: datetime) -> RetryDecision:
        """Decide whether the attempt that just failed should be retried.

        Args:
            error: The error raised by the fetcher.
            attempt: 1-based number of the attempt that failed.
            now: Current UTC time, used to compute rate-limit waits.

        Returns:
            :data:`SURFACE` or a :class:`RetryDecision` with the delay to
            observe before the next attempt.
        """
        if not error.retryable or attempt >= self.max_attempts:
            return SURFACE
        if isinstance(error, RateLimitedError):
            # Rounded up so the retry never lands before reset_at.
            wait = float(math.ceil(error.retry_after(now)))
            if wait > self.rate_limit_max_wait:
                return SURFACE
            return RetryDecision(retry=True, delay=wait)
        delay = min(self.max_delay, self.base_delay * 2 ** (attempt - 1))
        return RetryDecision(retry=True, delay=delay)


NO_RETRY = RetryPolicy(max_attempts=1)
"""Policy that surfaces every error on the first failure."""


async def fetch_with_retry(
    fetcher: PageFetcher[T],
    request: FetchRequest,
    policy: RetryPolicy,
    *,
    sleep: SleepFn = asyncio.sleep,
    clock: ClockFn = utcnow,
) -> Page[T]:
    """Fetch one page, retrying according to *policy*.

    Args:
        fetcher: The page fetcher to call.
        request: The request to send on every attempt (never modified).
        policy: Decides whether and when to retry.
        sleep: Coroutine function used to wait between attempts.
        clock: Returns the current UTC time.

    Returns:
        The page returned by the first successful attempt.

    Raises:
        WalkError: The last error, once the policy stops retrying.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await fetcher.fetch_page(request)
        except WalkError as exc:
            decision = policy.decide(exc, attempt, clock())
            if not decision.retry:
                if attempt > 1:
                    logger.warning(
                        "paging: giving up on %s after %d attempts (%s)",
                        request.collection,
                        attempt,
                        exc.kind.value,
                    )
                raise
            logger.warning(
                "paging: %s fetch for %s failed on attempt %d, retrying in %.1f s",
                exc.kind.value,
                request.collection,
                attempt,
                decision.delay,
            )
            await sleep(decision.delay)
