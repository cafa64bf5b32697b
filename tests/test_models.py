import dataclasses
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from gator.models import (
    Feed,
    FeedFollow,
    FeedFollowDetail,
    FeedListing,
    FollowedFeed,
    Post,
    User,
)

NOW = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


def test_user_equality_by_value():
    ident = uuid4()
    assert User(ident, NOW, NOW, "alice") == User(ident, NOW, NOW, "alice")
    assert User(ident, NOW, NOW, "alice") != User(ident, NOW, NOW, "bob")


def test_user_is_immutable():
    user = User(uuid4(), NOW, NOW, "alice")
    with pytest.raises(dataclasses.FrozenInstanceError):
        user.name = "bob"
    assert user.name == "alice"


def test_feed_last_fetched_defaults_to_none():
    feed = Feed(uuid4(), NOW, NOW, "blog", "https://example.com/rss", uuid4())
    assert feed.last_fetched_at is None


def test_feed_replace_keeps_other_fields():
    feed = Feed(uuid4(), NOW, NOW, "blog", "https://example.com/rss", uuid4())
    fetched = dataclasses.replace(feed, last_fetched_at=NOW)
    assert fetched.last_fetched_at == NOW
    assert fetched.url == feed.url
    assert fetched.id == feed.id


def test_post_optional_fields_default_to_none():
    post = Post(uuid4(), NOW, NOW, "title", "https://example.com/a")
    assert post.description is None
    assert post.published_at is None


def test_records_are_hashable():
    ident = uuid4()
    follows = {
        FeedFollow(ident, NOW, NOW, ident, ident),
        FeedFollow(ident, NOW, NOW, ident, ident),
    }
    assert len(follows) == 1


def test_follow_detail_fields():
    user_id, feed_id = uuid4(), uuid4()
    detail = FeedFollowDetail(uuid4(), NOW, NOW, user_id, feed_id, "alice", "blog")
    assert (detail.user_id, detail.feed_id) == (user_id, feed_id)
    assert (detail.user_name, detail.feed_name) == ("alice", "blog")


def test_listing_and_followed_feed():
    listing = FeedListing("blog", "https://example.com/rss", None)
    assert listing.user is None
    assert FollowedFeed("blog", "alice") == FollowedFeed("blog", "alice")