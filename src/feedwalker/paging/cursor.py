"""Cursor walker for cursor-paginated collections.

Collections such as follower IDs, mute lists and list memberships are served
in pages linked by opaque cursors.  A :class:`CursorWalker` owns one live
cursor per direction and advances them independently:

- ``advance(Direction.FORWARD)`` requests the page at ``next_cursor`` and
  records only the response's ``next_cursor``.
- ``advance(Direction.BACKWARD)`` requests the page at ``previous_cursor`` and
  records only the response's ``previous_cursor``.

Both cursors start at ``CURSOR_START``.  Once a direction's cursor is
``CURSOR_END`` the walker answers :data:`NO_MORE_PAGES` without a request.

Example::

    walker = new_cursor_walker(fetcher, CollectionId.of("followers/ids", screen_name="rustlang"))
    async for user_id in walker.items():
        print(user_id)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

from feedwalker.core.exceptions import TerminalError, TerminalReason
from feedwalker.core.logging_config import bind_walk_context, new_walk_id
from feedwalker.paging.base import (
    CURSOR_END,
    CURSOR_START,
    NO_MORE_PAGES,
    CollectionId,
    Direction,
    EndOfCollection,
    FetchRequest,
    Page,
    PageFetcher,
)
from feedwalker.paging.future import InFlightGuard, PageFuture
from feedwalker.paging.retry import ClockFn, RetryPolicy, SleepFn, fetch_with_retry, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CursorWalker(Generic[T]):
    """Forward/backward traversal of one cursor-paginated collection.

    State is exclusive to the instance; construct one walker per collection
    query.  Same-direction advances must be serialised (await one before
    starting the next); forward and backward advances may overlap.

    Args:
        fetcher: Shared page fetcher.
        collection: Identity of the collection to walk.
        page_size: Items requested per page.
        retry_policy: Retry policy; defaults to the one built from settings.
        start_cursor: Cursor both directions start from.  Pass a cursor saved
            from an earlier walk to resume from that position.
        sleep: Coroutine function used between retries.
        clock: Returns the current UTC time.
        walk_id: ID tagging this walker's log records.  Generated when
            omitted and regenerated by :meth:`reset`.

    Attributes:
        next_cursor: Cursor the next forward advance requests.
        previous_cursor: Cursor the next backward advance requests.
    """

    def __init__(
        self,
        fetcher: PageFetcher[T],
        collection: CollectionId,
        page_size: int,
        *,
        retry_policy: RetryPolicy | None = None,
        start_cursor: int = CURSOR_START,
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
        self._start_cursor = start_cursor
        self._sleep = sleep
        self._clock = clock
        self._guard = InFlightGuard()
        self.walk_id = walk_id or new_walk_id()
        # Bumped by reset() so an in-flight fetch cannot write stale cursors.
        self._generation = 0
        self.next_cursor: int = start_cursor
        self.previous_cursor: int = start_cursor

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------

    def cursor_for(self, direction: Direction) -> int:
        """Return the cursor the next advance in *direction* will request."""
        if Direction(direction) is Direction.FORWARD:
            return self.next_cursor
        return self.previous_cursor

    def is_exhausted(self, direction: Direction = Direction.FORWARD) -> bool:
        """Whether *direction* has reached the end of the collection."""
        return self.cursor_for(direction) == CURSOR_END

    def in_flight(self, direction: Direction = Direction.FORWARD) -> bool:
        """Whether a fetch in *direction* is currently running."""
        return self._guard.is_active(Direction(direction).value)

    # ------------------------------------------------------------------
    # Paging operations
    # ------------------------------------------------------------------

    def advance(
        self,
        direction: Direction = Direction.FORWARD,
    ) -> PageFuture[Page[T] | EndOfCollection]:
        """Fetch the next page in *direction*.

        The returned future resolves to the page, or to
        :data:`NO_MORE_PAGES` when the direction is exhausted.  On failure
        the cursor is left unchanged, so advancing again re-requests the
        same page.

        Raises (when awaited):
            ConcurrentAdvanceError: A fetch in *direction* is still in flight.
            WalkError: The fetch failed and the retry policy gave up.
        """
        direction = Direction(direction)
        return PageFuture(lambda: self._advance(direction), label=direction.value)

    def fetch_at(self, cursor: int) -> PageFuture[Page[T]]:
        """Fetch the page at *cursor* without touching the walker's cursors.

        Useful for callers that manage pagination by hand.
        """
        request = FetchRequest.for_cursor(self.collection, self.page_size, cursor)
        return PageFuture(lambda: self._fetch_detached(request), label=f"cursor={cursor}")

    def reset(self) -> None:
        """Return both cursors to the start cursor."""
        self._generation += 1
        self.walk_id = new_walk_id()
        self.next_cursor = self._start_cursor
        self.previous_cursor = self._start_cursor
        logger.debug("paging: reset cursor walker for %s", self.collection)

    def with_page_size(self, page_size: int) -> CursorWalker[T]:
        """Return a new walker over the same collection with a different page size.

        The new walker starts from the start cursor; this one is unchanged.
        """
        return CursorWalker(
            self._fetcher,
            self.collection,
            page_size,
            retry_policy=self._retry_policy,
            start_cursor=self._start_cursor,
            sleep=self._sleep,
            clock=self._clock,
        )

    # ------------------------------------------------------------------
    # Lazy sequences
    # ------------------------------------------------------------------

    async def pages(self) -> AsyncIterator[Page[T]]:
        """Yield pages moving forward until the collection is exhausted.

        Errors propagate out of the iteration; the walker keeps its position,
        so a new ``pages()`` call resumes from the failed page.
        """
        while True:
            page = await self.advance(Direction.FORWARD)
            if page is NO_MORE_PAGES:
                return
            yield page

    async def items(self) -> AsyncIterator[T]:
        """Yield every remaining item moving forward, one at a time."""
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

    async def _advance(self, direction: Direction) -> Page[T] | EndOfCollection:
        self._bind_log_context()
        with self._guard.claim(direction.value):
            cursor = self.cursor_for(direction)
            if cursor == CURSOR_END:
                logger.debug(
                    "paging: %s exhausted in direction %s", self.collection, direction.value
                )
                return NO_MORE_PAGES

            generation = self._generation
            request = FetchRequest.for_cursor(self.collection, self.page_size, cursor)
            page = await self._fetch(request)

            new_cursor = (
                page.next_cursor if direction is Direction.FORWARD else page.previous_cursor
            )
            if new_cursor is None:
                raise TerminalError(
                    f"page for {self.collection} carries no {direction.value} cursor",
                    reason=TerminalReason.INVALID_RESPONSE,
                    collection=str(self.collection),
                )
            if new_cursor == cursor and cursor != CURSOR_START:
                raise TerminalError(
                    f"{direction.value} cursor for {self.collection} did not advance "
                    f"(still {cursor})",
                    reason=TerminalReason.INVALID_RESPONSE,
                    collection=str(self.collection),
                )

            if generation == self._generation:
                if direction is Direction.FORWARD:
                    self.next_cursor = new_cursor
                else:
                    self.previous_cursor = new_cursor
            return page

    def __repr__(self) -> str:
        return (
            f"<CursorWalker {self.collection} page_size={self.page_size} "
            f"next={self.next_cursor} previous={self.previous_cursor}>"
        )


def new_cursor_walker(
    fetcher: PageFetcher[T],
    collection_id: CollectionId | str,
    page_size: int | None = None,
    **kwargs,
) -> CursorWalker[T]:
    """Construct a :class:`CursorWalker`.

    Args:
        fetcher: Shared page fetcher.
        collection_id: Collection identity, or a bare endpoint name.
        page_size: Items per page.  ``None`` uses ``Settings.cursor_page_size``.
        **kwargs: Passed through to :class:`CursorWalker`.
    """
    if isinstance(collection_id, str):
        collection_id = CollectionId.of(collection_id)
    if page_size is None:
        from feedwalker.config.settings import get_settings  # noqa: PLC0415

        page_size = get_settings().cursor_page_size
    return CursorWalker(fetcher, collection_id, page_size, **kwargs)
