"""Factory Boy factories, page builders and test doubles.

Available helpers
-----------------
AccountFactory   — raw account object dict
TweetFactory     — raw post object dict
cursor_page()    — cursor-mode Page
id_page()        — ID-mode Page of TweetFactory posts
ids_of()         — post IDs of an ID-mode Page
ScriptedFetcher  — PageFetcher replaying queued pages and errors
Gate             — scripted response held in flight until released
FakeClock        — manually advanced UTC clock
RecordingSleep   — sleep replacement recording retry delays
"""

from __future__ import annotations

from tests.factories.fakes import FakeClock, Gate, RecordingSleep, ScriptedFetcher
from tests.factories.pages import AccountFactory, TweetFactory, cursor_page, id_page, ids_of

__all__ = [
    "AccountFactory",
    "FakeClock",
    "Gate",
    "RecordingSleep",
    "ScriptedFetcher",
    "TweetFactory",
    "cursor_page",
    "id_page",
    "ids_of",
]
