"""Pagination and windowing engine.

Public symbols:

- ``CursorWalker`` / ``new_cursor_walker()``: forward and backward traversal
  of cursor-paginated collections.
- ``IDTimeline`` / ``new_id_timeline()``: ID-windowed traversal of
  chronological feeds, polling for new items and paging back into history.
- ``PageFuture``: the one-shot, cancellable awaitable every operation returns.
- ``RetryPolicy`` / ``fetch_with_retry()``: retry and backoff for page fetches.
- ``PageFetcher``: the protocol a transport implements to feed the engine.
"""

from __future__ import annotations

from feedwalker.paging.base import (
    CURSOR_END,
    CURSOR_START,
    MAX_ID,
    MIN_ID,
    NO_MORE_PAGES,
    CollectionId,
    Direction,
    EndOfCollection,
    FetchRequest,
    ItemSource,
    Page,
    PageFetcher,
    PagingMode,
    RateLimitStatus,
)
from feedwalker.paging.cursor import CursorWalker, new_cursor_walker
from feedwalker.paging.future import PageFuture
from feedwalker.paging.retry import (
    NO_RETRY,
    RetryDecision,
    RetryPolicy,
    fetch_with_retry,
)
from feedwalker.paging.timeline import IDTimeline, IDWindow, TimelineState, new_id_timeline

__all__ = [
    # shared types
    "CURSOR_END",
    "CURSOR_START",
    "MAX_ID",
    "MIN_ID",
    "NO_MORE_PAGES",
    "CollectionId",
    "Direction",
    "EndOfCollection",
    "FetchRequest",
    "ItemSource",
    "Page",
    "PageFetcher",
    "PagingMode",
    "RateLimitStatus",
    # engine
    "CursorWalker",
    "new_cursor_walker",
    "IDTimeline",
    "IDWindow",
    "TimelineState",
    "new_id_timeline",
    "PageFuture",
    # retry
    "NO_RETRY",
    "RetryDecision",
    "RetryPolicy",
    "fetch_with_retry",
]
