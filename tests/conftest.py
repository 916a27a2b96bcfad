"""Shared pytest fixtures for feedwalker tests.

Fixture summary
---------------
fetcher         — ScriptedFetcher replaying queued pages/errors, recording requests.
clock           — FakeClock returning a fixed, manually advanced UTC instant.
sleep           — RecordingSleep collecting retry delays and advancing ``clock``.
retry_policy    — RetryPolicy with small, deterministic delays.
collection      — CollectionId used by most cursor-walker tests.

No test touches the network.  HTTP-level tests mock ``httpx`` with respx.
"""

from __future__ import annotations

import os

import pytest

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Pin the settings that engine defaults read so a developer's .env or shell
# cannot change test outcomes.

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "FEEDWALKER_API_BASE_URL": "https://api.test.example/1.1",
    "FEEDWALKER_CURSOR_PAGE_SIZE": "20",
    "FEEDWALKER_TIMELINE_PAGE_SIZE": "20",
    "FEEDWALKER_RETRY_MAX_ATTEMPTS": "3",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ[_key] = _default

# ---------------------------------------------------------------------------
# Application imports (after env bootstrap)
# ---------------------------------------------------------------------------

from feedwalker.config.settings import get_settings  # noqa: E402
from feedwalker.paging.base import CollectionId  # noqa: E402
from feedwalker.paging.retry import RetryPolicy  # noqa: E402
from tests.factories.fakes import FakeClock, RecordingSleep, ScriptedFetcher  # noqa: E402

# Clear the lru_cache so Settings() re-reads from the patched environment.
get_settings.cache_clear()


@pytest.fixture
def fetcher() -> ScriptedFetcher:
    """Return an empty ScriptedFetcher; tests queue responses on it."""
    return ScriptedFetcher()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep(clock: FakeClock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture
def retry_policy() -> RetryPolicy:
    """Policy with three attempts and one-second base backoff."""
    return RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=30.0, rate_limit_max_wait=900.0)


@pytest.fixture
def collection() -> CollectionId:
    return CollectionId.of("followers/ids", screen_name="rustlang")


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Re-read settings for every test so monkeypatched env vars take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
