"""HTTP transport feeding pages to the paging engine."""

from __future__ import annotations

from feedwalker.transport.http_fetcher import HttpPageFetcher, parse_rate_limit

__all__ = ["HttpPageFetcher", "parse_rate_limit"]
