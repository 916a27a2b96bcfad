"""Unit tests for the shared paging types.

Tests cover CollectionId normalisation, FetchRequest validation, Page
immutability and ID-range checks, saturating_decrement(), and the ItemSource
protocol.
"""

from __future__ import annotations

import dataclasses

import pytest

from feedwalker.paging.base import (
    MAX_ID,
    NO_MORE_PAGES,
    CollectionId,
    EndOfCollection,
    FetchRequest,
    ItemSource,
    Page,
    PagingMode,
    RateLimitStatus,
    saturating_decrement,
)
from feedwalker.paging.cursor import CursorWalker
from feedwalker.paging.retry import NO_RETRY
from feedwalker.paging.timeline import IDTimeline
from tests.factories import ScriptedFetcher, cursor_page, id_page


class TestCollectionId:
    def test_params_are_sorted_stringified_and_none_dropped(self) -> None:
        """Equal queries produce equal identities regardless of argument order."""
        a = CollectionId.of("lists/members", slug="team", owner_id=12, cursor_hint=None)
        b = CollectionId.of("lists/members", owner_id="12", slug="team")

        assert a == b
        assert a.params == (("owner_id", "12"), ("slug", "team"))

    def test_str_renders_query(self) -> None:
        """str() gives a readable endpoint?query form used in logs."""
        assert str(CollectionId.of("followers/ids", screen_name="rustlang")) == (
            "followers/ids?screen_name=rustlang"
        )
        assert str(CollectionId.of("statuses/home_timeline")) == "statuses/home_timeline"

    def test_different_params_are_different_collections(self) -> None:
        """Walkers over different users never share an identity."""
        assert CollectionId.of("followers/ids", user_id=1) != CollectionId.of(
            "followers/ids", user_id=2
        )


class TestFetchRequest:
    def test_cursor_request(self) -> None:
        """for_cursor() builds a cursor-mode request without ID bounds."""
        request = FetchRequest.for_cursor(CollectionId.of("friends/ids"), 500, -1)

        assert request.mode is PagingMode.CURSOR
        assert request.cursor == -1
        assert request.since_id is None and request.max_id is None

    def test_window_request(self) -> None:
        """for_window() builds an ID-mode request."""
        request = FetchRequest.for_window(
            CollectionId.of("statuses/home_timeline"), 20, since_id=10, max_id=99
        )

        assert request.mode is PagingMode.ID
        assert (request.since_id, request.max_id) == (10, 99)
        assert request.cursor is None

    def test_mixed_addressing_is_rejected(self) -> None:
        """A request cannot carry both a cursor and ID bounds."""
        with pytest.raises(ValueError):
            FetchRequest(
                collection=CollectionId.of("friends/ids"),
                page_size=20,
                mode=PagingMode.CURSOR,
                cursor=-1,
                max_id=5,
            )
        with pytest.raises(ValueError):
            FetchRequest(
                collection=CollectionId.of("statuses/home_timeline"),
                page_size=20,
                mode=PagingMode.ID,
                cursor=-1,
            )

    @pytest.mark.parametrize("bad_id", [-1, MAX_ID + 1])
    def test_ids_outside_unsigned_64_bit_range_rejected(self, bad_id) -> None:
        """ID bounds must fit an unsigned 64-bit integer."""
        with pytest.raises(ValueError):
            FetchRequest.for_window(CollectionId.of("statuses/home_timeline"), 20, max_id=bad_id)

    def test_page_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            FetchRequest.for_cursor(CollectionId.of("friends/ids"), 0, -1)

    def test_requests_are_immutable(self) -> None:
        request = FetchRequest.for_cursor(CollectionId.of("friends/ids"), 20, -1)

        with pytest.raises(dataclasses.FrozenInstanceError):
            request.cursor = 5  # type: ignore[misc]


class TestPage:
    def test_items_are_frozen_into_a_tuple(self) -> None:
        """A list handed to Page is copied into a tuple."""
        source = [1, 2, 3]
        page = Page(items=source, next_cursor=0)
        source.append(4)

        assert page.items == (1, 2, 3)
        assert len(page) == 3
        assert list(page) == [1, 2, 3]

    def test_min_greater_than_max_rejected(self) -> None:
        with pytest.raises(ValueError):
            Page(items=("a",), min_id=10, max_id=5)

    def test_rate_limit_does_not_affect_equality(self) -> None:
        """Two pages with the same data are equal whatever their rate-limit status."""
        status = RateLimitStatus(limit=15, remaining=3)

        assert Page(items=(1,), next_cursor=0, rate_limit=status) == Page(items=(1,), next_cursor=0)

    def test_empty_page(self) -> None:
        page = Page.empty()

        assert page.is_empty
        assert page.min_id is None and page.next_cursor is None


class TestHelpers:
    def test_no_more_pages_is_distinct_from_empty_page(self) -> None:
        """The exhaustion marker is neither a Page nor falsy-equal to one."""
        assert isinstance(NO_MORE_PAGES, EndOfCollection)
        assert NO_MORE_PAGES != Page.empty()
        assert repr(NO_MORE_PAGES) == "NO_MORE_PAGES"

    @pytest.mark.parametrize(("value", "expected"), [(10, 9), (1, 0), (0, 0)])
    def test_saturating_decrement(self, value, expected) -> None:
        """Decrementing below zero clamps at zero."""
        assert saturating_decrement(value) == expected


async def _drain(source: ItemSource) -> list:
    return [item async for item in source.items()]


class TestItemSource:
    @pytest.mark.asyncio
    async def test_walker_and_timeline_are_item_sources(self, sleep, clock) -> None:
        """Both traversal types satisfy ItemSource and drain the same way."""
        walker = CursorWalker(
            ScriptedFetcher(cursor_page([1, 2], next_cursor=0)),
            CollectionId.of("friends/ids"),
            2,
            retry_policy=NO_RETRY,
            sleep=sleep,
            clock=clock,
        )
        timeline = IDTimeline(
            ScriptedFetcher(id_page([9, 8])),
            CollectionId.of("statuses/home_timeline"),
            5,
            retry_policy=NO_RETRY,
            sleep=sleep,
            clock=clock,
        )

        assert isinstance(walker, ItemSource)
        assert isinstance(timeline, ItemSource)
        assert await _drain(walker) == [1, 2]
        assert [post["id"] for post in await _drain(timeline)] == [9, 8]

    def test_fetcher_is_not_an_item_source(self) -> None:
        """An object without items() does not satisfy the protocol."""
        assert not isinstance(ScriptedFetcher(), ItemSource)
