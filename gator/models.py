"""Records stored in and read from the gator database."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class User:
    """A registered user."""

    id: UUID
    created_at: datetime
    updated_at: datetime
    name: str


@dataclass(frozen=True)
class Feed:
    """An RSS feed added by a user."""

    id: UUID
    created_at: datetime
    updated_at: datetime
    name: str
    url: str
    user_id: UUID
    last_fetched_at: datetime | None = None


@dataclass(frozen=True)
class FeedFollow:
    """A user following a feed."""

    id: UUID
    created_at: datetime
    updated_at: datetime
    user_id: UUID
    feed_id: UUID


@dataclass(frozen=True)
class Post:
    """An item collected from a feed."""

    id: UUID
    created_at: datetime
    updated_at: datetime
    title: str
    url: str
    description: str | None = None
    published_at: str | None = None
    feed_id: UUID | None = None


@dataclass(frozen=True)
class FeedFollowDetail:
    """A newly created follow together with the user and feed names."""

    id: UUID
    created_at: datetime
    updated_at: datetime
    user_id: UUID
    feed_id: UUID
    user_name: str
    feed_name: str


@dataclass(frozen=True)
class FeedListing:
    """A feed with the name of the user who added it, if any."""

    name: str
    url: str
    user: str | None


@dataclass(frozen=True)
class FollowedFeed:
    """The name of a followed feed and of its follower."""

    feed_name: str
    user_name: str