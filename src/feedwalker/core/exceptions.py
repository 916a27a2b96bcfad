"""Library-wide exception hierarchy for feedwalker.

All custom exceptions subclass ``FeedwalkerError``, enabling consistent error
handling and structured logging across the paging engine and its adapters.

Hierarchy::

    FeedwalkerError
    ├── WalkError                    (kind: WalkErrorKind)
    │   ├── TransientError
    │   ├── RateLimitedError         (reset_at: datetime)
    │   └── TerminalError            (reason: TerminalReason)
    ├── FutureAlreadyCompletedError
    └── ConcurrentAdvanceError       (direction: str)

``WalkError`` subclasses are what a Page Fetcher raises.  The engine retries
``TransientError`` and ``RateLimitedError`` according to the retry policy and
re-raises the final error unchanged; ``TerminalError`` is never retried.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum


class WalkErrorKind(str, Enum):
    """Retry classification carried by every :class:`WalkError`.

    Attributes:
        TRANSIENT: The failure may go away on its own (connection reset,
            upstream 5xx).  Retried with exponential backoff.
        RATE_LIMITED: The server refused the call until a known instant.
            Retried no earlier than ``reset_at``.
        TERMINAL: Retrying cannot help (bad argument, revoked authorization,
            deleted resource).
    """

    TRANSIENT = "transient"
    RATE_LIMITED = "rate_limited"
    TERMINAL = "terminal"


class TerminalReason(str, Enum):
    """Why a :class:`TerminalError` cannot be retried."""

    BAD_ARGUMENT = "bad_argument"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    INVALID_RESPONSE = "invalid_response"


class FeedwalkerError(Exception):
    """Base class for all feedwalker exceptions.

    Callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


# ---------------------------------------------------------------------------
# Fetch failures
# ---------------------------------------------------------------------------


class WalkError(FeedwalkerError):
    """A failed page fetch, tagged with its retry classification.

    Args:
        message: Human-readable description of the failure.
        collection: Identity of the collection being walked, for logging.
    """

    kind: WalkErrorKind

    def __init__(self, message: str, collection: str | None = None) -> None:
        super().__init__(message)
        self.collection = collection

    @property
    def retryable(self) -> bool:
        """Whether the retry policy may ever retry this error."""
        return self.kind is not WalkErrorKind.TERMINAL


class TransientError(WalkError):
    """Raised for failures that may succeed on a later attempt."""

    kind = WalkErrorKind.TRANSIENT


class RateLimitedError(WalkError):
    """Raised when the upstream API refuses a call until its window resets.

    Args:
        message: Human-readable description of the rate limit.
        reset_at: Instant (timezone-aware, UTC) at which the rate-limit
            window reopens.  Naive datetimes are assumed to be UTC.
        collection: Identity of the collection being walked.
    """

    kind = WalkErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str,
        reset_at: datetime,
        collection: str | None = None,
    ) -> None:
        super().__init__(message, collection=collection)
        if reset_at.tzinfo is None:
            reset_at = reset_at.replace(tzinfo=timezone.utc)
        self.reset_at = reset_at

    def retry_after(self, now: datetime) -> float:
        """Return the seconds from *now* until ``reset_at`` (never negative)."""
        return max(0.0, (self.reset_at - now).total_seconds())


class TerminalError(WalkError):
    """Raised for failures that must be surfaced to the caller immediately.

    Args:
        message: Human-readable description of the failure.
        reason: Why the call cannot succeed.
        collection: Identity of the collection being walked.
    """

    kind = WalkErrorKind.TERMINAL

    def __init__(
        self,
        message: str,
        reason: TerminalReason,
        collection: str | None = None,
    ) -> None:
        super().__init__(message, collection=collection)
        self.reason = reason


# ---------------------------------------------------------------------------
# Engine usage errors
# ---------------------------------------------------------------------------


class FutureAlreadyCompletedError(FeedwalkerError):
    """Raised when a :class:`~feedwalker.paging.future.PageFuture` is awaited twice.

    Each future represents exactly one fetch.  To retry, call the walker or
    timeline operation again to obtain a new future.
    """

    def __init__(self) -> None:
        super().__init__("Page future has already been awaited")


class ConcurrentAdvanceError(FeedwalkerError):
    """Raised when a second fetch starts in a direction that is still in flight.

    Args:
        direction: The direction that already has a fetch in flight.
    """

    def __init__(self, direction: str) -> None:
        super().__init__(
            f"A fetch in direction '{direction}' is already in flight; "
            "await it before advancing again"
        )
        self.direction = direction
