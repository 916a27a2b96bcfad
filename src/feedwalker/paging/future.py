"""One-shot awaitable wrapping a single page fetch.

A :class:`PageFuture` is what every walker and timeline operation returns.
It does nothing until it is awaited (or :meth:`PageFuture.start` schedules
it), resolves exactly once, and can be cancelled at any point before
resolution.  Owners apply their state update in the same step that receives
the fetcher's response, so a cancelled future never leaves a partial update
behind.

Typical usage::

    page = await walker.advance()

    # interleave two walks
    a = walker_a.advance().start()
    b = walker_b.advance().start()
    page_a, page_b = await a, await b

    # caller-level timeout
    page = await asyncio.wait_for(timeline.poll_newest(), timeout=10)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Generator, Iterator
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from feedwalker.core.exceptions import ConcurrentAdvanceError, FutureAlreadyCompletedError

R = TypeVar("R")


class InFlightGuard:
    """Tracks which directions of one walker or timeline have a fetch in flight."""

    def __init__(self) -> None:
        self._active: set[str] = set()

    def is_active(self, direction: str) -> bool:
        return direction in self._active

    @contextmanager
    def claim(self, direction: str) -> Iterator[None]:
        """Hold *direction* for the duration of the block.

        Raises:
            ConcurrentAdvanceError: If *direction* is already held.
        """
        if direction in self._active:
            raise ConcurrentAdvanceError(direction)
        self._active.add(direction)
        try:
            yield
        finally:
            self._active.discard(direction)


class PageFuture(Generic[R]):
    """A single in-flight page fetch, consumed on first observation.

    Args:
        run: Zero-argument coroutine function performing the fetch and the
            owner's state update.  Called at most once.
        label: Short description used in ``repr`` (e.g. ``"forward"``).
    """

    def __init__(self, run: Callable[[], Awaitable[R]], label: str = "page") -> None:
        self._run = run
        self._label = label
        self._task: asyncio.Future[R] | None = None
        self._observed = False
        self._cancelled = False

    def start(self) -> PageFuture[R]:
        """Schedule the fetch on the running event loop without awaiting it.

        Returns ``self`` so calls can be chained.  Has no effect on a future
        that is already running, awaited or cancelled.
        """
        if self._task is None and not self._observed and not self._cancelled:
            self._task = asyncio.ensure_future(self._run())
        return self

    def cancel(self) -> bool:
        """Cancel the fetch.

        A future that has not started is marked cancelled and will never
        issue its request.  A running fetch is cancelled at its current
        suspension point.

        Returns:
            ``True`` if a pending fetch was cancelled, ``False`` if the fetch
            had already resolved.
        """
        if self._task is not None:
            return self._task.cancel()
        if self._observed:
            return False
        self._cancelled = True
        return True

    def cancelled(self) -> bool:
        if self._task is not None:
            return self._task.cancelled()
        return self._cancelled

    def done(self) -> bool:
        """Whether the fetch has resolved, failed or been cancelled."""
        if self._task is not None:
            return self._task.done()
        return self._cancelled

    def __await__(self) -> Generator[Any, None, R]:
        return self._observe().__await__()

    async def _observe(self) -> R:
        if self._observed:
            raise FutureAlreadyCompletedError()
        self._observed = True
        if self._task is None:
            if self._cancelled:
                raise asyncio.CancelledError()
            self._task = asyncio.ensure_future(self._run())
        # Cancelling the awaiting task propagates into the fetch task.
        return await self._task

    def __repr__(self) -> str:
        if self.cancelled():
            status = "cancelled"
        elif self._observed:
            status = "observed"
        elif self._task is not None:
            status = "running"
        else:
            status = "pending"
        return f"<PageFuture {self._label} {status}>"
