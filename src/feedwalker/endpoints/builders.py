"""Construct walkers and timelines for registered endpoints.

Example::

    walker = walker_for(fetcher, "followers/ids", screen_name="rustlang")
    timeline = timeline_for(fetcher, "statuses/user_timeline", page_size=50, user_id=12)
"""

from __future__ import annotations

from typing import Any

from feedwalker.endpoints.registry import Endpoint, autodiscover, get_endpoint
from feedwalker.paging.base import CollectionId, PageFetcher, PagingMode
from feedwalker.paging.cursor import CursorWalker
from feedwalker.paging.retry import RetryPolicy
from feedwalker.paging.timeline import IDTimeline


def _resolve(name: str, mode: PagingMode) -> Endpoint:
    autodiscover()
    endpoint = get_endpoint(name)
    if endpoint.mode is not mode:
        raise ValueError(
            f"endpoint '{name}' uses {endpoint.mode.value} paging, not {mode.value}"
        )
    return endpoint


def walker_for(
    fetcher: PageFetcher[Any],
    name: str,
    *,
    page_size: int | None = None,
    retry_policy: RetryPolicy | None = None,
    **params: Any,
) -> CursorWalker[Any]:
    """Return a :class:`CursorWalker` over the cursor-mode endpoint *name*.

    Args:
        fetcher: Shared page fetcher.
        name: Registered endpoint name, e.g. ``"followers/ids"``.
        page_size: Items per page; defaults to the endpoint's default.
        retry_policy: Retry policy; defaults to the one built from settings.
        **params: Fixed query parameters identifying the collection.

    Raises:
        KeyError: If no endpoint called *name* is registered.
        ValueError: If the endpoint is not cursor-paginated, or *page_size*
            exceeds the endpoint's maximum.
    """
    endpoint = _resolve(name, PagingMode.CURSOR)
    size = endpoint.check_page_size(
        endpoint.default_page_size if page_size is None else page_size
    )
    return CursorWalker(
        fetcher,
        CollectionId.of(endpoint.name, **params),
        size,
        retry_policy=retry_policy,
    )


def timeline_for(
    fetcher: PageFetcher[Any],
    name: str,
    *,
    page_size: int | None = None,
    retry_policy: RetryPolicy | None = None,
    **params: Any,
) -> IDTimeline[Any]:
    """Return an :class:`IDTimeline` over the ID-mode endpoint *name*.

    Raises:
        KeyError: If no endpoint called *name* is registered.
        ValueError: If the endpoint is not ID-paginated, or *page_size*
            exceeds the endpoint's maximum.
    """
    endpoint = _resolve(name, PagingMode.ID)
    size = endpoint.check_page_size(
        endpoint.default_page_size if page_size is None else page_size
    )
    return IDTimeline(
        fetcher,
        CollectionId.of(endpoint.name, **params),
        size,
        retry_policy=retry_policy,
    )
