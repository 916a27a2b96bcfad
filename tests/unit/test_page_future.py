"""Unit tests for PageFuture and InFlightGuard.

Tests cover:
- The fetch does not run until the future is awaited or started
- A second await raises FutureAlreadyCompletedError
- start() schedules the fetch so two futures run interleaved
- cancel() before start prevents the fetch; cancel() while running stops it
- done()/cancelled() report status; callers can wrap futures in asyncio.wait_for
- InFlightGuard rejects a second claim and releases on exit or error
"""

from __future__ import annotations

import asyncio

import pytest

from feedwalker.core.exceptions import ConcurrentAdvanceError, FutureAlreadyCompletedError
from feedwalker.paging.future import InFlightGuard, PageFuture


class _Counter:
    """Zero-argument coroutine function that counts its calls."""

    def __init__(self, result: object = "page", *, hold: asyncio.Event | None = None) -> None:
        self.calls = 0
        self.result = result
        self.hold = hold
        self.started = asyncio.Event()

    async def __call__(self) -> object:
        self.calls += 1
        self.started.set()
        if self.hold is not None:
            await self.hold.wait()
        return self.result


# ---------------------------------------------------------------------------
# PageFuture
# ---------------------------------------------------------------------------


class TestPageFuture:
    @pytest.mark.asyncio
    async def test_fetch_is_lazy_until_awaited(self) -> None:
        """Constructing a future does not run the fetch."""
        run = _Counter()
        future = PageFuture(run)
        await asyncio.sleep(0)

        assert run.calls == 0
        assert await future == "page"
        assert run.calls == 1

    @pytest.mark.asyncio
    async def test_second_await_raises_already_completed(self) -> None:
        """A future is consumed by its first await."""
        future = PageFuture(_Counter())
        await future

        with pytest.raises(FutureAlreadyCompletedError):
            await future

    @pytest.mark.asyncio
    async def test_second_await_after_failure_raises_already_completed(self) -> None:
        """A failed future is also consumed; the original error is not re-raised."""

        async def boom() -> None:
            raise RuntimeError("fetch failed")

        future = PageFuture(boom)
        with pytest.raises(RuntimeError):
            await future

        with pytest.raises(FutureAlreadyCompletedError):
            await future

    @pytest.mark.asyncio
    async def test_start_runs_two_fetches_interleaved(self) -> None:
        """Two started futures are both in flight before either is awaited."""
        hold = asyncio.Event()
        first_run, second_run = _Counter("a", hold=hold), _Counter("b", hold=hold)

        first = PageFuture(first_run).start()
        second = PageFuture(second_run).start()
        await first_run.started.wait()
        await second_run.started.wait()
        hold.set()

        assert (await first, await second) == ("a", "b")

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self) -> None:
        """Calling start() twice schedules a single fetch."""
        run = _Counter()
        future = PageFuture(run)

        assert future.start() is future
        future.start()
        await future

        assert run.calls == 1

    @pytest.mark.asyncio
    async def test_cancel_before_start_prevents_fetch(self) -> None:
        """A future cancelled before running never calls its fetch."""
        run = _Counter()
        future = PageFuture(run)

        assert future.cancel()
        assert future.cancelled()
        assert future.done()
        with pytest.raises(asyncio.CancelledError):
            await future
        assert run.calls == 0

    @pytest.mark.asyncio
    async def test_cancel_while_running(self) -> None:
        """A running fetch is cancelled at its suspension point."""
        run = _Counter(hold=asyncio.Event())
        future = PageFuture(run).start()
        await run.started.wait()

        assert not future.done()
        future.cancel()
        with pytest.raises(asyncio.CancelledError):
            await future
        assert future.cancelled()

    @pytest.mark.asyncio
    async def test_cancel_after_resolution_returns_false(self) -> None:
        """Cancelling an already resolved future has no effect."""
        future = PageFuture(_Counter())
        await future

        assert future.cancel() is False
        assert future.done()
        assert not future.cancelled()

    @pytest.mark.asyncio
    async def test_wait_for_timeout_cancels_fetch(self) -> None:
        """Callers bound a fetch with asyncio.wait_for; the fetch is cancelled on timeout."""
        run = _Counter(hold=asyncio.Event())
        future = PageFuture(run)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(future, timeout=0.01)

        assert future.cancelled()

    def test_repr_reports_status(self) -> None:
        """repr() shows the label and a pending status before any await."""
        future = PageFuture(_Counter(), label="forward")

        assert repr(future) == "<PageFuture forward pending>"
        future.cancel()
        assert repr(future) == "<PageFuture forward cancelled>"


# ---------------------------------------------------------------------------
# InFlightGuard
# ---------------------------------------------------------------------------


class TestInFlightGuard:
    def test_second_claim_same_direction_rejected(self) -> None:
        """Claiming a held direction raises ConcurrentAdvanceError."""
        guard = InFlightGuard()

        with guard.claim("forward"):
            assert guard.is_active("forward")
            with pytest.raises(ConcurrentAdvanceError):
                with guard.claim("forward"):
                    pass

        assert not guard.is_active("forward")

    def test_different_directions_are_independent(self) -> None:
        """Forward and backward can be held at the same time."""
        guard = InFlightGuard()

        with guard.claim("forward"), guard.claim("backward"):
            assert guard.is_active("forward")
            assert guard.is_active("backward")

    def test_claim_released_on_error(self) -> None:
        """An exception inside the block still releases the direction."""
        guard = InFlightGuard()

        with pytest.raises(ValueError):
            with guard.claim("newest"):
                raise ValueError("fetch failed")

        assert not guard.is_active("newest")
