"""Endpoint registry mapping collection names to their paging metadata.

Endpoints register themselves on import of :mod:`feedwalker.endpoints.catalog`
by passing an :class:`Endpoint` record to :func:`register`.  The registry is
a module-level singleton keyed by ``Endpoint.name``, which is also the
``endpoint`` part of every :class:`~feedwalker.paging.base.CollectionId`.

Example: registering an endpoint::

    from feedwalker.endpoints.registry import Endpoint, register
    from feedwalker.paging.base import PagingMode

    register(Endpoint(
        name="followers/ids",
        path="followers/ids.json",
        mode=PagingMode.CURSOR,
        items_key="ids",
        default_page_size=500,
        max_page_size=5000,
    ))

Example: looking up an endpoint::

    from feedwalker.endpoints.registry import autodiscover, get_endpoint

    autodiscover()
    endpoint = get_endpoint("statuses/home_timeline")
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass

from feedwalker.paging.base import PagingMode

logger = logging.getLogger(__name__)

_BUILTIN_MODULES: tuple[str, ...] = ("feedwalker.endpoints.catalog",)

# Registry singleton: endpoint name -> Endpoint
_REGISTRY: dict[str, Endpoint] = {}


@dataclass(frozen=True)
class Endpoint:
    """Paging metadata for one collection endpoint.

    Attributes:
        name: Unique registry key (e.g. ``"followers/ids"``).
        path: URL path relative to ``Settings.api_base_url``.
        mode: Addressing scheme the endpoint uses.
        items_key: Key of the item list in the JSON response body, or
            ``None`` when the body is the list itself.
        default_page_size: Page size used when the caller gives none.
        max_page_size: Largest page size the server accepts.
        accepts_page_size: Whether the server honours a ``count`` parameter.
            Some endpoints ignore it and always return fixed-size pages.
        description: One-line human-readable description.
    """

    name: str
    path: str
    mode: PagingMode
    items_key: str | None
    default_page_size: int = 20
    max_page_size: int = 200
    accepts_page_size: bool = True
    description: str = ""

    def __post_init__(self) -> None:
        if not 1 <= self.default_page_size <= self.max_page_size:
            raise ValueError(
                f"endpoint '{self.name}': default_page_size={self.default_page_size} "
                f"must be between 1 and max_page_size={self.max_page_size}"
            )

    def check_page_size(self, page_size: int) -> int:
        """Return *page_size* if the endpoint accepts it.

        Raises:
            ValueError: If *page_size* is outside ``1..max_page_size``.
        """
        if not 1 <= page_size <= self.max_page_size:
            raise ValueError(
                f"page_size={page_size} is outside 1..{self.max_page_size} "
                f"for endpoint '{self.name}'"
            )
        return page_size


def register(endpoint: Endpoint) -> Endpoint:
    """Add *endpoint* to the global registry.

    If an endpoint with the same name is already registered, the new record
    overwrites the old one and a warning is emitted.

    Returns:
        The same record, so calls can be used as expressions.
    """
    if endpoint.name in _REGISTRY and _REGISTRY[endpoint.name] != endpoint:
        logger.warning(
            "Endpoint '%s' is already registered (path %s). Overwriting with path %s.",
            endpoint.name,
            _REGISTRY[endpoint.name].path,
            endpoint.path,
        )
    _REGISTRY[endpoint.name] = endpoint
    logger.debug(
        "Registered endpoint: name=%s mode=%s path=%s",
        endpoint.name,
        endpoint.mode.value,
        endpoint.path,
    )
    return endpoint


def unregister(name: str) -> None:
    """Remove the endpoint called *name*, if registered."""
    _REGISTRY.pop(name, None)


def get_endpoint(name: str) -> Endpoint:
    """Retrieve a registered endpoint by name.

    Raises:
        KeyError: If no endpoint with the given name is registered.  Callers
            should call ``autodiscover()`` before their first lookup if the
            built-in catalog may not have been imported yet.
    """
    try:
        return _REGISTRY[name]
    except KeyError:
        registered = sorted(_REGISTRY.keys())
        raise KeyError(
            f"No endpoint registered under '{name}'. "
            f"Registered endpoints: {registered}. "
            "Did you forget to call autodiscover()?"
        ) from None


def list_endpoints(mode: PagingMode | None = None) -> list[dict]:  # type: ignore[type-arg]
    """Return metadata for all registered endpoints, ordered by mode then name.

    Args:
        mode: Only list endpoints using this addressing scheme.

    Returns:
        List of dicts with ``name``, ``path``, ``mode``, ``default_page_size``,
        ``max_page_size`` and ``description`` keys.
    """
    endpoints = sorted(_REGISTRY.values(), key=lambda e: (e.mode.value, e.name))
    return [
        {
            "name": e.name,
            "path": e.path,
            "mode": e.mode.value,
            "default_page_size": e.default_page_size,
            "max_page_size": e.max_page_size,
            "description": e.description,
        }
        for e in endpoints
        if mode is None or e.mode is mode
    ]


def autodiscover() -> None:
    """Import the built-in endpoint catalog so its records are registered.

    Idempotent: re-importing an already imported module is a no-op.
    """
    for module_name in _BUILTIN_MODULES:
        importlib.import_module(module_name)
        logger.debug("Autodiscovered endpoint module: %s", module_name)
