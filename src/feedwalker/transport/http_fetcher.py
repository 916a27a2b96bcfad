"""Page fetcher over ``httpx`` for the REST API's collection endpoints.

:class:`HttpPageFetcher` implements the
:class:`~feedwalker.paging.base.PageFetcher` protocol.  It looks the
collection's endpoint up in the registry, sends one GET request, maps the
HTTP outcome onto the :class:`~feedwalker.core.exceptions.WalkError`
hierarchy and decodes the body into a :class:`~feedwalker.paging.base.Page`.

Authentication is not handled here: configure it on the
:class:`httpx.AsyncClient` passed in (default headers or an ``httpx.Auth``).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from feedwalker.core.exceptions import (
    RateLimitedError,
    TerminalError,
    TerminalReason,
    TransientError,
)
from feedwalker.endpoints.registry import Endpoint, autodiscover, get_endpoint
from feedwalker.paging.base import FetchRequest, Page, PagingMode, RateLimitStatus
from feedwalker.paging.retry import ClockFn, utcnow

logger = logging.getLogger(__name__)

RATE_LIMIT_ERROR_CODE: int = 88
"""API error code reported in the body when a rate limit is exceeded."""

DEFAULT_RATE_LIMIT_WAIT: float = 60.0
"""Wait assumed when a rate-limited response carries no reset information."""

_HEADER_LIMIT = "x-rate-limit-limit"
_HEADER_REMAINING = "x-rate-limit-remaining"
_HEADER_RESET = "x-rate-limit-reset"


# ---------------------------------------------------------------------------
# Header helpers
# ---------------------------------------------------------------------------


def _int_header(headers: httpx.Headers, name: str) -> int | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_rate_limit(headers: httpx.Headers) -> RateLimitStatus | None:
    """Decode the ``X-Rate-Limit-*`` response headers.

    Returns:
        A :class:`RateLimitStatus`, or ``None`` if none of the headers are
        present.  Unparseable values are reported as ``None``.
    """
    limit = _int_header(headers, _HEADER_LIMIT)
    remaining = _int_header(headers, _HEADER_REMAINING)
    reset = _int_header(headers, _HEADER_RESET)
    if limit is None and remaining is None and reset is None:
        return None
    reset_at = datetime.fromtimestamp(reset, tz=timezone.utc) if reset is not None else None
    return RateLimitStatus(limit=limit, remaining=remaining, reset_at=reset_at)


def _error_codes(response: httpx.Response) -> set[int]:
    """Return the API error codes in an error body (``{"errors": [{"code": n}]}``)."""
    try:
        body = response.json()
    except ValueError:
        return set()
    if not isinstance(body, dict):
        return set()
    codes: set[int] = set()
    for error in body.get("errors") or []:
        if isinstance(error, dict) and isinstance(error.get("code"), int):
            codes.add(error["code"])
    return codes


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


class HttpPageFetcher:
    """Fetch pages of registered endpoints over HTTP.

    Safe to share between any number of walkers and timelines: the only
    state is the client, which ``httpx`` allows to be used concurrently.

    Args:
        client: Shared HTTP client.  When omitted a client is created with
            ``Settings.request_timeout`` and closed by :meth:`aclose`.
        base_url: Base URL endpoint paths are appended to.  Defaults to
            ``Settings.api_base_url``.
        clock: Returns the current UTC time; used to turn ``Retry-After``
            into an absolute reset instant.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        clock: ClockFn = utcnow,
    ) -> None:
        from feedwalker.config.settings import get_settings  # noqa: PLC0415

        settings = get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=settings.request_timeout)
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._clock = clock
        autodiscover()

    async def aclose(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpPageFetcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # PageFetcher protocol
    # ------------------------------------------------------------------

    async def fetch_page(self, request: FetchRequest) -> Page[Any]:
        """Perform one GET request for *request* and decode the page.

        Raises:
            TransientError: Connection failure or HTTP 5xx.
            RateLimitedError: HTTP 429, or error code 88 in the body.
            TerminalError: Any other non-2xx status or an undecodable body.
        """
        collection = str(request.collection)
        try:
            endpoint = get_endpoint(request.collection.endpoint)
        except KeyError as exc:
            raise TerminalError(
                str(exc), reason=TerminalReason.BAD_ARGUMENT, collection=collection
            ) from None
        if endpoint.mode is not request.mode:
            raise TerminalError(
                f"endpoint '{endpoint.name}' uses {endpoint.mode.value} paging, "
                f"got a {request.mode.value} request",
                reason=TerminalReason.BAD_ARGUMENT,
                collection=collection,
            )

        url = f"{self._base_url}/{endpoint.path}"
        params = self._build_params(endpoint, request)
        logger.debug("http: GET %s params=%s", url, params)
        try:
            response = await self._client.get(url, params=params)
        except httpx.RequestError as exc:
            raise TransientError(
                f"connection error for {collection}: {exc}", collection=collection
            ) from exc

        self._raise_for_status(response, collection)

        try:
            body = response.json()
        except ValueError as exc:
            raise TerminalError(
                f"response for {collection} is not valid JSON",
                reason=TerminalReason.INVALID_RESPONSE,
                collection=collection,
            ) from exc

        rate_limit = parse_rate_limit(response.headers)
        try:
            if endpoint.mode is PagingMode.CURSOR:
                return self._decode_cursor_page(endpoint, body, rate_limit)
            return self._decode_id_page(endpoint, body, rate_limit)
        except (KeyError, TypeError, ValueError) as exc:
            raise TerminalError(
                f"could not decode page for {collection}: {exc}",
                reason=TerminalReason.INVALID_RESPONSE,
                collection=collection,
            ) from exc

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    @staticmethod
    def _build_params(endpoint: Endpoint, request: FetchRequest) -> dict[str, Any]:
        params: dict[str, Any] = dict(request.collection.params)
        if endpoint.accepts_page_size:
            params["count"] = request.page_size
        if request.mode is PagingMode.CURSOR:
            params["cursor"] = request.cursor
        else:
            if request.since_id is not None:
                params["since_id"] = request.since_id
            if request.max_id is not None:
                params["max_id"] = request.max_id
        return params

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    def _rate_limit_reset(self, response: httpx.Response) -> datetime:
        reset = _int_header(response.headers, _HEADER_RESET)
        if reset is not None:
            return datetime.fromtimestamp(reset, tz=timezone.utc)
        retry_after = response.headers.get("retry-after")
        try:
            wait = float(retry_after) if retry_after is not None else DEFAULT_RATE_LIMIT_WAIT
        except ValueError:
            wait = DEFAULT_RATE_LIMIT_WAIT
        return self._clock() + timedelta(seconds=wait)

    def _raise_for_status(self, response: httpx.Response, collection: str) -> None:
        status = response.status_code
        if status < 400:
            return

        has_reset = _HEADER_RESET in response.headers
        if status == 429 or (has_reset and RATE_LIMIT_ERROR_CODE in _error_codes(response)):
            reset_at = self._rate_limit_reset(response)
            logger.info(
                "http: rate limited on %s until %s", collection, reset_at.isoformat()
            )
            raise RateLimitedError(
                f"rate limit exceeded for {collection} (HTTP {status})",
                reset_at=reset_at,
                collection=collection,
            )
        if status >= 500:
            raise TransientError(
                f"HTTP {status} from upstream for {collection}", collection=collection
            )

        if status in (401, 403):
            reason = TerminalReason.UNAUTHORIZED
        elif status == 404:
            reason = TerminalReason.NOT_FOUND
        else:
            reason = TerminalReason.BAD_ARGUMENT
        raise TerminalError(
            f"HTTP {status} for {collection}", reason=reason, collection=collection
        )

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    @staticmethod
    def _item_list(endpoint: Endpoint, body: Any) -> list[Any]:
        items = body if endpoint.items_key is None else body[endpoint.items_key]
        if not isinstance(items, list):
            raise TypeError(f"expected a list of items, got {type(items).__name__}")
        return items

    @classmethod
    def _decode_cursor_page(
        cls,
        endpoint: Endpoint,
        body: Any,
        rate_limit: RateLimitStatus | None,
    ) -> Page[Any]:
        if not isinstance(body, dict):
            raise TypeError(f"expected a JSON object, got {type(body).__name__}")
        next_cursor = body.get("next_cursor")
        previous_cursor = body.get("previous_cursor")
        return Page(
            items=tuple(cls._item_list(endpoint, body)),
            next_cursor=int(next_cursor) if next_cursor is not None else None,
            previous_cursor=int(previous_cursor) if previous_cursor is not None else None,
            rate_limit=rate_limit,
        )

    @classmethod
    def _decode_id_page(
        cls,
        endpoint: Endpoint,
        body: Any,
        rate_limit: RateLimitStatus | None,
    ) -> Page[Any]:
        items = cls._item_list(endpoint, body)
        if not items:
            return Page(rate_limit=rate_limit)
        ids = [int(item["id"]) for item in items]
        return Page(
            items=tuple(items),
            min_id=min(ids),
            max_id=max(ids),
            rate_limit=rate_limit,
        )
