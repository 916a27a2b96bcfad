"""ID-windowed timeline for chronological feeds.

Posts and direct messages are addressed by monotonically increasing 64-bit
IDs.  An :class:`IDTimeline` remembers the lowest and highest IDs it has
observed (its :class:`IDWindow`) and derives each request from them:

- :meth:`IDTimeline.poll_newest` asks for items newer than the window
  (``since_id = window.max_id``) and extends the window upward.
- :meth:`IDTimeline.page_backward` asks for items older than the window
  (``max_id = window.min_id - 1``, saturating at 0) and extends the window
  downward.  A page shorter than ``page_size`` means history is exhausted.

States::

    FRESH ──poll_newest / page_backward──▶ POLLING ──short backward page──▶ EXHAUSTED
      ▲                                                                        │
      └──────────────────────────────── reset() ◀──────────────────────────────┘

``EXHAUSTED`` only concerns the backward direction: ``page_backward`` then
returns an empty page without a request, while ``poll_newest`` keeps working.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from feedwalker.core.exceptions import TerminalError, TerminalReason
from feedwalker.core.logging_config import bind_walk_context, new_walk_id
from feedwalker.paging.base import (
    MIN_ID,
    CollectionId,
    FetchRequest,
    Page,
    PageFetcher,
    saturating_decrement,
)
from feedwalker.paging.future import InFlightGuard, PageFuture
from feedwalker.paging.retry import ClockFn, RetryPolicy, SleepFn, fetch_with_retry, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NEWEST: str = "newest"
_BACKWARD: str = "backward"


class TimelineState(str, Enum):
    """Lifecycle state of an :class:`IDTimeline`.

    Attributes:
        FRESH: No page has been observed yet; the window is empty.
        POLLING: At least one page was observed; the window is defined.
        EXHAUSTED: The last backward page was short; there is no more history.
    """

    FRESH = "fresh"
    POLLING = "polling"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class IDWindow:
    """The range of item IDs a timeline has covered.

    Attributes:
        min_id: Smallest item ID observed (inclusive), or ``None``.
        max_id: Largest item ID observed (inclusive), or ``None``.
        lower_bounded: Whether a backward page has bounded history from
            below.  Polled pages alone only tell what is newest, so the
            window has no exclusive lower bound until this is set.
    """

    min_id: int | None = None
    max_id: int | None = None
    lower_bounded: bool = False

    @property
    def since_id(self) -> int | None:
        """Exclusive lower bound of the window.

        ``None`` until a backward page has bounded the window, and when the
        window already reaches the smallest possible ID.
        """
        if not self.lower_bounded or self.min_id is None or self.min_id == MIN_ID:
            return None
        return self.min_id - 1

    @property
    def is_empty(self) -> bool:
        return self.min_id is None and self.max_id is None

    def extend_newer(self, page: Page) -> IDWindow:
        """Return the window with its upper bound raised to cover *page*."""
        page_min, page_max = _id_range(page)
        max_id = page_max if self.max_id is None else max(self.max_id, page_max)
        min_id = page_min if self.min_id is None else self.min_id
        return IDWindow(min_id=min_id, max_id=max_id, lower_bounded=self.lower_bounded)

    def extend_older(self, page: Page) -> IDWindow:
        """Return the window with its lower bound lowered to cover *page*."""
        page_min, page_max = _id_range(page)
        min_id = page_min if self.min_id is None else min(self.min_id, page_min)
        max_id = page_max if self.max_id is None else self.max_id
        return IDWindow(min_id=min_id, max_id=max_id, lower_bounded=True)


def _id_range(page: Page) -> tuple[int, int]:
    if page.min_id is None or page.max_id is None:
        raise ValueError("cannot extend a window with a page that carries no ID range")
    return page.min_id, page.max_id


class IDTimeline(Generic[T]):
    """Bidirectional traversal of one ID-ordered feed.

    ``poll_newest`` and ``page_backward`` may be in flight at the same time;
    each snapshots the window when its fetch starts and merges only its own
    bound on completion.  Two calls in the same direction must be serialised.

    Args:
        fetcher: Shared page fetcher.
        collection: Identity of the feed.
        page_size: Items requested per page.
        retry_policy: Retry policy; defaults to the one built from settings.
        sleep: Coroutine function used between retries.
        clock: Returns the current UTC time.
        walk_id: ID tagging this timeline's log records.  Generated when
            omitted and regenerated by :meth:`reset`.
    """

    def __init__(
        self,
        fetcher: PageFetcher[T],
        collection: CollectionId,
        page_size: int,
        *,
        retry_policy: RetryPolicy | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = utcnow,
        walk_id: str | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self._fetcher = fetcher
        self.collection = collection
        self.page_size = page_size
        self._retry_policy = retry_policy or RetryPolicy.from_settings()
        self._sleep = sleep
        self._clock = clock
        self._guard = InFlightGuard()
        self.walk_id = walk_id or new_walk_id()
        self._generation = 0
        self._state = TimelineState.FRESH
        self._window = IDWindow()

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> TimelineState:
        return self._state

    @property
    def window(self) -> IDWindow:
        """Immutable snapshot of the current window."""
        return self._window

    @property
    def min_id(self) -> int | None:
        return self._window.min_id

    @property
    def max_id(self) -> int | None:
        return self._window.max_id

    # ------------------------------------------------------------------
    # Paging operations
    # ------------------------------------------------------------------

    def poll_newest(self) -> PageFuture[Page[T]]:
        """Fetch items newer than anything observed so far.

        Resolves to the new items, newest first.  An empty page means nothing
        new has been posted; the state never becomes ``EXHAUSTED`` here.

        Raises (when awaited):
            ConcurrentAdvanceError: Another ``poll_newest`` is in flight.
            WalkError: The fetch failed and the retry policy gave up.
        """
        return PageFuture(self._poll_newest, label=_NEWEST)

    def page_backward(self) -> PageFuture[Page[T]]:
        """Fetch the page of items just older than anything observed so far.

        Resolves to an empty page without a request once the timeline is
        ``EXHAUSTED``.

        Raises (when awaited):
            ConcurrentAdvanceError: Another ``page_backward`` is in flight.
            WalkError: The fetch failed and the retry policy gave up.
        """
        return PageFuture(self._page_backward, label=_BACKWARD)

    def fetch_between(
        self,
        since_id: int | None = None,
        max_id: int | None = None,
    ) -> PageFuture[Page[T]]:
        """Fetch the items in ``(since_id, max_id]`` without touching the window.

        When the range holds more than ``page_size`` items the server returns
        the newest ones.
        """
        request = FetchRequest.for_window(
            self.collection, self.page_size, since_id=since_id, max_id=max_id
        )
        return PageFuture(lambda: self._fetch_detached(request), label="between")

    def reset(self) -> None:
        """Discard the window and return to ``FRESH``."""
        self._generation += 1
        self.walk_id = new_walk_id()
        self._window = IDWindow()
        self._state = TimelineState.FRESH
        logger.debug("paging: reset timeline for %s", self.collection)

    def with_page_size(self, page_size: int) -> IDTimeline[T]:
        """Return a new ``FRESH`` timeline over the same feed with a different page size."""
        return IDTimeline(
            self._fetcher,
            self.collection,
            page_size,
            retry_policy=self._retry_policy,
            sleep=self._sleep,
            clock=self._clock,
        )

    # ------------------------------------------------------------------
    # Lazy sequences
    # ------------------------------------------------------------------

    async def pages(self) -> AsyncIterator[Page[T]]:
        """Yield non-empty pages moving back into history until exhausted."""
        while self._state is not TimelineState.EXHAUSTED:
            page = await self.page_backward()
            if page.items:
                yield page

    async def items(self) -> AsyncIterator[T]:
        """Yield every item from the newest page back to the oldest, one at a time."""
        async for page in self.pages():
            for item in page.items:
                yield item

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch(self, request: FetchRequest) -> Page[T]:
        return await fetch_with_retry(
            self._fetcher,
            request,
            self._retry_policy,
            sleep=self._sleep,
            clock=self._clock,
        )

    def _bind_log_context(self) -> None:
        # Runs inside the PageFuture's task, so the binding ends with it.
        bind_walk_context(self.walk_id, str(self.collection))

    async def _fetch_detached(self, request: FetchRequest) -> Page[T]:
        self._bind_log_context()
        return await self._fetch(request)

    def _check_ids(self, page: Page[T]) -> None:
        if page.items and (page.min_id is None or page.max_id is None):
            raise TerminalError(
                f"non-empty page for {self.collection} carries no ID range",
                reason=TerminalReason.INVALID_RESPONSE,
                collection=str(self.collection),
            )

    async def _poll_newest(self) -> Page[T]:
        self._bind_log_context()
        with self._guard.claim(_NEWEST):
            generation = self._generation
            request = FetchRequest.for_window(
                self.collection, self.page_size, since_id=self._window.max_id
            )
            page = await self._fetch(request)
            self._check_ids(page)

            if generation == self._generation and page.items:
                # Merge into the current window, not the snapshot, so a
                # concurrent page_backward completion is kept.
                self._window = self._window.extend_newer(page)
                if self._state is TimelineState.FRESH:
                    self._state = TimelineState.POLLING
            logger.debug(
                "paging: polled %d new items for %s, window=(%s, %s]",
                len(page),
                self.collection,
                self._window.since_id,
                self._window.max_id,
            )
            return page

    async def _page_backward(self) -> Page[T]:
        self._bind_log_context()
        with self._guard.claim(_BACKWARD):
            if self._state is TimelineState.EXHAUSTED:
                return Page.empty()
            if self._window.min_id == MIN_ID:
                # Nothing can be older than the smallest ID.
                self._state = TimelineState.EXHAUSTED
                return Page.empty()

            generation = self._generation
            min_id = self._window.min_id
            max_id = saturating_decrement(min_id) if min_id is not None else None
            request = FetchRequest.for_window(self.collection, self.page_size, max_id=max_id)
            page = await self._fetch(request)
            self._check_ids(page)

            if generation == self._generation:
                if page.items:
                    self._window = self._window.extend_older(page)
                if len(page) < self.page_size:
                    self._state = TimelineState.EXHAUSTED
                    logger.debug(
                        "paging: history exhausted for %s (%d < %d items)",
                        self.collection,
                        len(page),
                        self.page_size,
                    )
                elif self._state is TimelineState.FRESH:
                    self._state = TimelineState.POLLING
            return page

    def __repr__(self) -> str:
        return (
            f"<IDTimeline {self.collection} state={self._state.value} "
            f"window=({self._window.min_id}, {self._window.max_id})>"
        )


def new_id_timeline(
    fetcher: PageFetcher[T],
    collection_id: CollectionId | str,
    page_size: int | None = None,
    **kwargs,
) -> IDTimeline[T]:
    """Construct an :class:`IDTimeline`.

    Args:
        fetcher: Shared page fetcher.
        collection_id: Collection identity, or a bare endpoint name.
        page_size: Items per page.  ``None`` uses ``Settings.timeline_page_size``.
        **kwargs: Passed through to :class:`IDTimeline`.
    """
    if isinstance(collection_id, str):
        collection_id = CollectionId.of(collection_id)
    if page_size is None:
        from feedwalker.config.settings import get_settings  # noqa: PLC0415

        page_size = get_settings().timeline_page_size
    return IDTimeline(fetcher, collection_id, page_size, **kwargs)
