"""Collection endpoints and the registry that describes them.

Public symbols:

- ``Endpoint``: paging metadata for one endpoint (path, mode, page sizes).
- ``register()`` / ``get_endpoint()`` / ``list_endpoints()`` /
  ``autodiscover()``: the module-level endpoint registry.
- ``walker_for()`` / ``timeline_for()``: build a cursor walker or ID
  timeline for a registered endpoint.
"""

from __future__ import annotations

from feedwalker.endpoints.builders import timeline_for, walker_for
from feedwalker.endpoints.registry import (
    Endpoint,
    autodiscover,
    get_endpoint,
    list_endpoints,
    register,
    unregister,
)

__all__ = [
    "Endpoint",
    "autodiscover",
    "get_endpoint",
    "list_endpoints",
    "register",
    "unregister",
    "timeline_for",
    "walker_for",
]
