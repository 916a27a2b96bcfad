"""Built-in collection endpoints of the REST API (v1.1).

Cursor-mode endpoints return ``{"<items_key>": [...], "next_cursor": n,
"previous_cursor": n}``.  ID-mode endpoints return a JSON list of objects,
newest first, each carrying a numeric ``id``.
"""

from __future__ import annotations

from feedwalker.endpoints.registry import Endpoint, register
from feedwalker.paging.base import PagingMode

_CURSOR = PagingMode.CURSOR
_ID = PagingMode.ID

# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

FOLLOWERS_IDS = register(Endpoint(
    name="followers/ids",
    path="followers/ids.json",
    mode=_CURSOR,
    items_key="ids",
    default_page_size=500,
    max_page_size=5000,
    description="IDs of the accounts following a user",
))

FOLLOWERS_LIST = register(Endpoint(
    name="followers/list",
    path="followers/list.json",
    mode=_CURSOR,
    items_key="users",
    default_page_size=20,
    max_page_size=200,
    description="Accounts following a user",
))

FRIENDS_IDS = register(Endpoint(
    name="friends/ids",
    path="friends/ids.json",
    mode=_CURSOR,
    items_key="ids",
    default_page_size=500,
    max_page_size=5000,
    description="IDs of the accounts a user follows",
))

FRIENDS_LIST = register(Endpoint(
    name="friends/list",
    path="friends/list.json",
    mode=_CURSOR,
    items_key="users",
    default_page_size=20,
    max_page_size=200,
    description="Accounts a user follows",
))

# Blocks, mutes and pending follow requests ignore ``count``.
BLOCKS_IDS = register(Endpoint(
    name="blocks/ids",
    path="blocks/ids.json",
    mode=_CURSOR,
    items_key="ids",
    default_page_size=5000,
    max_page_size=5000,
    accepts_page_size=False,
    description="IDs of the accounts the authenticated user blocks",
))

BLOCKS_LIST = register(Endpoint(
    name="blocks/list",
    path="blocks/list.json",
    mode=_CURSOR,
    items_key="users",
    default_page_size=20,
    max_page_size=20,
    accepts_page_size=False,
    description="Accounts the authenticated user blocks",
))

MUTES_IDS = register(Endpoint(
    name="mutes/users/ids",
    path="mutes/users/ids.json",
    mode=_CURSOR,
    items_key="ids",
    default_page_size=5000,
    max_page_size=5000,
    accepts_page_size=False,
    description="IDs of the accounts the authenticated user mutes",
))

MUTES_LIST = register(Endpoint(
    name="mutes/users/list",
    path="mutes/users/list.json",
    mode=_CURSOR,
    items_key="users",
    default_page_size=20,
    max_page_size=20,
    accepts_page_size=False,
    description="Accounts the authenticated user mutes",
))

FRIENDSHIPS_INCOMING = register(Endpoint(
    name="friendships/incoming",
    path="friendships/incoming.json",
    mode=_CURSOR,
    items_key="ids",
    default_page_size=5000,
    max_page_size=5000,
    accepts_page_size=False,
    description="IDs of accounts with a pending follow request to the authenticated user",
))

FRIENDSHIPS_OUTGOING = register(Endpoint(
    name="friendships/outgoing",
    path="friendships/outgoing.json",
    mode=_CURSOR,
    items_key="ids",
    default_page_size=5000,
    max_page_size=5000,
    accepts_page_size=False,
    description="IDs of protected accounts the authenticated user asked to follow",
))

RETWEETERS_IDS = register(Endpoint(
    name="statuses/retweeters/ids",
    path="statuses/retweeters/ids.json",
    mode=_CURSOR,
    items_key="ids",
    default_page_size=100,
    max_page_size=100,
    description="IDs of the accounts that retweeted a post",
))

# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------

LIST_MEMBERSHIPS = register(Endpoint(
    name="lists/memberships",
    path="lists/memberships.json",
    mode=_CURSOR,
    items_key="lists",
    default_page_size=20,
    max_page_size=1000,
    description="Lists a user has been added to",
))

LIST_OWNERSHIPS = register(Endpoint(
    name="lists/ownerships",
    path="lists/ownerships.json",
    mode=_CURSOR,
    items_key="lists",
    default_page_size=20,
    max_page_size=1000,
    description="Lists owned by a user",
))

LIST_SUBSCRIPTIONS = register(Endpoint(
    name="lists/subscriptions",
    path="lists/subscriptions.json",
    mode=_CURSOR,
    items_key="lists",
    default_page_size=20,
    max_page_size=1000,
    description="Lists a user subscribes to",
))

LIST_MEMBERS = register(Endpoint(
    name="lists/members",
    path="lists/members.json",
    mode=_CURSOR,
    items_key="users",
    default_page_size=20,
    max_page_size=5000,
    description="Members of a list",
))

LIST_SUBSCRIBERS = register(Endpoint(
    name="lists/subscribers",
    path="lists/subscribers.json",
    mode=_CURSOR,
    items_key="users",
    default_page_size=20,
    max_page_size=5000,
    description="Subscribers of a list",
))

LIST_STATUSES = register(Endpoint(
    name="lists/statuses",
    path="lists/statuses.json",
    mode=_ID,
    items_key=None,
    default_page_size=20,
    max_page_size=200,
    description="Posts from the members of a list",
))

# ---------------------------------------------------------------------------
# Timelines
# ---------------------------------------------------------------------------

HOME_TIMELINE = register(Endpoint(
    name="statuses/home_timeline",
    path="statuses/home_timeline.json",
    mode=_ID,
    items_key=None,
    default_page_size=20,
    max_page_size=200,
    description="Posts from the authenticated user and the accounts they follow",
))

USER_TIMELINE = register(Endpoint(
    name="statuses/user_timeline",
    path="statuses/user_timeline.json",
    mode=_ID,
    items_key=None,
    default_page_size=20,
    max_page_size=200,
    description="Posts by a single user",
))

MENTIONS_TIMELINE = register(Endpoint(
    name="statuses/mentions_timeline",
    path="statuses/mentions_timeline.json",
    mode=_ID,
    items_key=None,
    default_page_size=20,
    max_page_size=200,
    description="Posts mentioning the authenticated user",
))

RETWEETS_OF_ME = register(Endpoint(
    name="statuses/retweets_of_me",
    path="statuses/retweets_of_me.json",
    mode=_ID,
    items_key=None,
    default_page_size=20,
    max_page_size=100,
    description="The authenticated user's posts that others have retweeted",
))

LIKES = register(Endpoint(
    name="favorites/list",
    path="favorites/list.json",
    mode=_ID,
    items_key=None,
    default_page_size=20,
    max_page_size=200,
    description="Posts liked by a user",
))

# ---------------------------------------------------------------------------
# Direct messages
# ---------------------------------------------------------------------------

DIRECT_MESSAGES_RECEIVED = register(Endpoint(
    name="direct_messages",
    path="direct_messages.json",
    mode=_ID,
    items_key=None,
    default_page_size=20,
    max_page_size=200,
    description="Direct messages received by the authenticated user",
))

DIRECT_MESSAGES_SENT = register(Endpoint(
    name="direct_messages/sent",
    path="direct_messages/sent.json",
    mode=_ID,
    items_key=None,
    default_page_size=20,
    max_page_size=200,
    description="Direct messages sent by the authenticated user",
))
