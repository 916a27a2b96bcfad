"""Configuration package for feedwalker.

Re-exports the settings symbols so that callers can write::

    from feedwalker.config import get_settings

without needing to know which sub-module each symbol lives in.
"""

from __future__ import annotations

from feedwalker.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
