"""Shared types for the paging engine.

The engine talks to the outside world through exactly one capability, the
:class:`PageFetcher` protocol: given a :class:`FetchRequest`, perform one
round trip and return a decoded :class:`Page`, or raise a
:class:`~feedwalker.core.exceptions.WalkError` subclass.

Two addressing schemes are supported:

- **Cursor mode**: the request carries an opaque ``cursor``; the page carries
  ``next_cursor`` and ``previous_cursor``.  ``CURSOR_START`` (``-1``) asks for
  the first page, ``CURSOR_END`` (``0``) means "nothing further this way".
- **ID mode**: the request carries ``since_id`` (exclusive) and ``max_id``
  (inclusive) bounds; the page carries the smallest and largest item IDs it
  contains.

The engine never inspects items; the fetcher reports the pagination metadata.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Final, Generic, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

CURSOR_START: Final[int] = -1
"""Cursor value that requests the first page of a collection."""

CURSOR_END: Final[int] = 0
"""Cursor value the server returns when no page exists in that direction."""

MIN_ID: Final[int] = 0
"""Smallest representable item ID."""

MAX_ID: Final[int] = 2**64 - 1
"""Largest representable item ID (IDs are unsigned 64-bit)."""


def saturating_decrement(value: int) -> int:
    """Return ``value - 1`` clamped at :data:`MIN_ID`."""
    return max(MIN_ID, value - 1)


def _check_id(name: str, value: int | None) -> None:
    if value is not None and not MIN_ID <= value <= MAX_ID:
        raise ValueError(f"{name}={value} is outside the unsigned 64-bit ID range")


class Direction(str, Enum):
    """Traversal direction of a cursor walker."""

    FORWARD = "forward"
    BACKWARD = "backward"


class PagingMode(str, Enum):
    """Addressing scheme used by a collection endpoint."""

    CURSOR = "cursor"
    ID = "id"


class EndOfCollection(Enum):
    """Marker returned instead of a page once a direction is exhausted.

    Kept distinct from an empty :class:`Page` (a genuinely empty result) and
    from errors (always raised as exceptions).
    """

    NO_MORE_PAGES = "no_more_pages"

    def __repr__(self) -> str:
        return "NO_MORE_PAGES"


NO_MORE_PAGES: Final = EndOfCollection.NO_MORE_PAGES


@dataclass(frozen=True)
class CollectionId:
    """Identity of one collection query: an endpoint name plus its fixed params.

    Two walkers over ``CollectionId.of("followers/ids", screen_name="a")`` and
    ``CollectionId.of("followers/ids", screen_name="b")`` are unrelated and
    hold independent state.

    Attributes:
        endpoint: Registry name of the endpoint (e.g. ``"followers/ids"``).
        params: Sorted ``(name, value)`` pairs sent with every request.
    """

    endpoint: str
    params: tuple[tuple[str, str], ...] = ()

    @classmethod
    def of(cls, endpoint: str, **params: Any) -> CollectionId:
        """Build a collection identity, dropping ``None`` params and stringifying the rest."""
        pairs = tuple(
            sorted((key, str(value)) for key, value in params.items() if value is not None)
        )
        return cls(endpoint=endpoint, params=pairs)

    def __str__(self) -> str:
        if not self.params:
            return self.endpoint
        query = "&".join(f"{key}={value}" for key, value in self.params)
        return f"{self.endpoint}?{query}"


@dataclass(frozen=True)
class RateLimitStatus:
    """Rate-limit information reported alongside a page.

    Attributes:
        limit: Request ceiling for the current window, if reported.
        remaining: Requests left in the current window, if reported.
        reset_at: UTC instant at which the window resets, if reported.
    """

    limit: int | None = None
    remaining: int | None = None
    reset_at: datetime | None = None


@dataclass(frozen=True)
class FetchRequest:
    """Immutable parameter set for a single page fetch.

    Build instances with :meth:`for_cursor` or :meth:`for_window`; the
    constructor validates that exactly one addressing scheme is used.
    """

    collection: CollectionId
    page_size: int
    mode: PagingMode
    cursor: int | None = None
    since_id: int | None = None
    max_id: int | None = None

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.mode is PagingMode.CURSOR:
            if self.cursor is None:
                raise ValueError("cursor-mode requests require a cursor")
            if self.since_id is not None or self.max_id is not None:
                raise ValueError("cursor-mode requests cannot carry ID bounds")
        else:
            if self.cursor is not None:
                raise ValueError("ID-mode requests cannot carry a cursor")
            _check_id("since_id", self.since_id)
            _check_id("max_id", self.max_id)

    @classmethod
    def for_cursor(
        cls,
        collection: CollectionId,
        page_size: int,
        cursor: int,
    ) -> FetchRequest:
        """Build a cursor-mode request."""
        return cls(
            collection=collection,
            page_size=page_size,
            mode=PagingMode.CURSOR,
            cursor=cursor,
        )

    @classmethod
    def for_window(
        cls,
        collection: CollectionId,
        page_size: int,
        since_id: int | None = None,
        max_id: int | None = None,
    ) -> FetchRequest:
        """Build an ID-mode request bounded by ``(since_id, max_id]``."""
        return cls(
            collection=collection,
            page_size=page_size,
            mode=PagingMode.ID,
            since_id=since_id,
            max_id=max_id,
        )


@dataclass(frozen=True)
class Page(Generic[T]):
    """One batch of items plus pagination metadata.

    ``items`` is stored as a tuple so a page cannot change after it has been
    handed to the caller.

    Attributes:
        items: Items in server order (newest-first for ID-mode feeds).
        next_cursor: Cursor of the following page (cursor mode).
        previous_cursor: Cursor of the preceding page (cursor mode).
        min_id: Smallest item ID on the page (ID mode, non-empty pages).
        max_id: Largest item ID on the page (ID mode, non-empty pages).
        rate_limit: Rate-limit status reported with the response, if any.
    """

    items: tuple[T, ...] = ()
    next_cursor: int | None = None
    previous_cursor: int | None = None
    min_id: int | None = None
    max_id: int | None = None
    rate_limit: RateLimitStatus | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))
        _check_id("min_id", self.min_id)
        _check_id("max_id", self.max_id)
        if (
            self.min_id is not None
            and self.max_id is not None
            and self.min_id > self.max_id
        ):
            raise ValueError(f"min_id={self.min_id} is greater than max_id={self.max_id}")

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @classmethod
    def empty(cls) -> Page[T]:
        """Return a page with no items and no metadata."""
        return cls()


class PageFetcher(Protocol[T_co]):
    """The single capability the engine needs from the transport layer.

    Implementations must be safe to call concurrently from many walkers and
    must not keep per-call mutable state.
    """

    async def fetch_page(self, request: FetchRequest) -> Page[T_co]:
        """Perform one round trip for *request*.

        Raises:
            TransientError: The call may succeed if repeated.
            RateLimitedError: The call may succeed after ``reset_at``.
            TerminalError: The call cannot succeed.
        """
        ...


@runtime_checkable
class ItemSource(Protocol[T_co]):
    """Anything that lazily yields the items of a collection, one at a time.

    The sequence is finite and consumes the source's state; construct a new
    source to start over.

    :class:`~feedwalker.paging.cursor.CursorWalker` and
    :class:`~feedwalker.paging.timeline.IDTimeline` both satisfy it, so code
    that only drains items can accept either.
    """

    def items(self) -> AsyncIterator[T_co]:
        ...
