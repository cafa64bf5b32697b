"""Storage of users, feeds, follows and posts in SQLite."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path
from uuid import UUID

from gator.models import (
    Feed,
    FeedFollowDetail,
    FeedListing,
    FollowedFeed,
    Post,
    User,
)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS feeds (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    name TEXT NOT NULL,
    url TEXT NOT NULL UNIQUE,
    user_id TEXT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    last_fetched_at TEXT
);
CREATE TABLE IF NOT EXISTS feed_follows (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    user_id TEXT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    feed_id TEXT NOT NULL REFERENCES feeds (id) ON DELETE CASCADE,
    UNIQUE (user_id, feed_id)
);
CREATE TABLE IF NOT EXISTS posts (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    title TEXT NOT NULL,
    url TEXT NOT NULL UNIQUE,
    description TEXT,
    published_at TEXT,
    feed_id TEXT NOT NULL REFERENCES feeds (id) ON DELETE CASCADE
);
"""

_FEED_COLUMNS = "id, created_at, updated_at, name, url, user_id, last_fetched_at"
_POST_COLUMNS = "id, created_at, updated_at, title, url, description, published_at, feed_id"


class DatabaseError(Exception):
    """A query failed."""


class NotFoundError(DatabaseError):
    """A query that should return one row returned none."""


class UniqueViolationError(DatabaseError):
    """An insert would duplicate a value that must be unique."""

    def __init__(self, constraint: str) -> None:
        super().__init__(f'duplicate key value violates unique constraint "{constraint}"')
        self.constraint = constraint


def _integrity_error(exc: sqlite3.IntegrityError) -> DatabaseError:
    message = str(exc)
    prefix = "UNIQUE constraint failed: "
    if message.startswith(prefix):
        columns = [part.strip() for part in message[len(prefix):].split(",")]
        table = columns[0].split(".", 1)[0]
        names = [column.split(".", 1)[-1] for column in columns]
        if names == ["id"]:
            return UniqueViolationError(f"{table}_pkey")
        return UniqueViolationError(f"{table}_{'_'.join(names)}_key")
    return DatabaseError(message)


def _time(value: datetime) -> str:
    return value.isoformat()


def _parse_time(value: str | None) -> datetime | None:
    return None if value is None else datetime.fromisoformat(value)


def _user(row: sqlite3.Row) -> User:
    return User(
        id=UUID(row["id"]),
        created_at=_parse_time(row["created_at"]),
        updated_at=_parse_time(row["updated_at"]),
        name=row["name"],
    )


def _feed(row: sqlite3.Row) -> Feed:
    return Feed(
        id=UUID(row["id"]),
        created_at=_parse_time(row["created_at"]),
        updated_at=_parse_time(row["updated_at"]),
        name=row["name"],
        url=row["url"],
        user_id=UUID(row["user_id"]),
        last_fetched_at=_parse_time(row["last_fetched_at"]),
    )


def _post(row: sqlite3.Row) -> Post:
    return Post(
        id=UUID(row["id"]),
        created_at=_parse_time(row["created_at"]),
        updated_at=_parse_time(row["updated_at"]),
        title=row["title"],
        url=row["url"],
        description=row["description"],
        published_at=row["published_at"],
        feed_id=UUID(row["feed_id"]),
    )


class Queries:
    """The queries the application runs against its database."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection
        self._conn.row_factory = sqlite3.Row
        self._execute("PRAGMA foreign_keys = ON")

    def __enter__(self) -> Queries:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()

    def _execute(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.IntegrityError as exc:
            raise _integrity_error(exc) from exc
        except sqlite3.Error as exc:
            raise DatabaseError(str(exc)) from exc

    def _one(self, sql: str, params: tuple = ()) -> sqlite3.Row:
        rows = self._execute(sql, params)
        if not rows:
            raise NotFoundError("no rows in result set")
        return rows[0]

    def create_schema(self) -> None:
        """Create the tables if they do not exist yet."""
        try:
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise DatabaseError(str(exc)) from exc

    def create_user(self, id: UUID, created_at: datetime, updated_at: datetime, name: str) -> User:
        self._execute(
            "INSERT INTO users (id, created_at, updated_at, name) VALUES (?, ?, ?, ?)",
            (str(id), _time(created_at), _time(updated_at), name),
        )
        return _user(self._one("SELECT id, created_at, updated_at, name FROM users WHERE id = ?", (str(id),)))

    def get_user(self, name: str) -> User:
        return _user(self._one("SELECT id, created_at, updated_at, name FROM users WHERE name = ?", (name,)))

    def get_users(self) -> list[User]:
        return [_user(row) for row in self._execute("SELECT id, created_at, updated_at, name FROM users")]

    def delete_all_users(self) -> None:
        self._execute("DELETE FROM users")

    def create_feed(
        self,
        id: UUID,
        created_at: datetime,
        updated_at: datetime,
        name: str,
        url: str,
        user_id: UUID,
    ) -> Feed:
        self._execute(
            "INSERT INTO feeds (id, created_at, updated_at, name, url, user_id) VALUES (?, ?, ?, ?, ?, ?)",
            (str(id), _time(created_at), _time(updated_at), name, url, str(user_id)),
        )
        return _feed(self._one(f"SELECT {_FEED_COLUMNS} FROM feeds WHERE id = ?", (str(id),)))

    def get_feed(self, url: str) -> Feed:
        return _feed(self._one(f"SELECT {_FEED_COLUMNS} FROM feeds WHERE url = ?", (url,)))

    def get_feeds(self) -> list[FeedListing]:
        rows = self._execute(
            "SELECT feeds.name AS name, feeds.url AS url, users.name AS user "
            "FROM feeds LEFT JOIN users ON feeds.user_id = users.id"
        )
        return [FeedListing(name=row["name"], url=row["url"], user=row["user"]) for row in rows]

    def get_next_feed_to_fetch(self) -> Feed:
        return _feed(
            self._one(
                f"SELECT {_FEED_COLUMNS} FROM feeds "
                "ORDER BY last_fetched_at IS NOT NULL, last_fetched_at ASC, rowid LIMIT 1"
            )
        )

    def mark_feed_fetched(self, id: UUID, last_fetched_at: datetime | None, updated_at: datetime) -> None:
        self._execute(
            "UPDATE feeds SET last_fetched_at = ?, updated_at = ? WHERE id = ?",
            (
                None if last_fetched_at is None else _time(last_fetched_at),
                _time(updated_at),
                str(id),
            ),
        )

    def create_feed_follow(
        self,
        id: UUID,
        created_at: datetime,
        updated_at: datetime,
        user_id: UUID,
        feed_id: UUID,
    ) -> FeedFollowDetail:
        self._execute(
            "INSERT INTO feed_follows (id, created_at, updated_at, user_id, feed_id) VALUES (?, ?, ?, ?, ?)",
            (str(id), _time(created_at), _time(updated_at), str(user_id), str(feed_id)),
        )
        row = self._one(
            "SELECT feed_follows.id, feed_follows.created_at, feed_follows.updated_at, "
            "feed_follows.user_id, feed_follows.feed_id, "
            "users.name AS user_name, feeds.name AS feed_name "
            "FROM feed_follows "
            "INNER JOIN users ON feed_follows.user_id = users.id "
            "INNER JOIN feeds ON feed_follows.feed_id = feeds.id "
            "WHERE feed_follows.id = ?",
            (str(id),),
        )
        return FeedFollowDetail(
            id=UUID(row["id"]),
            created_at=_parse_time(row["created_at"]),
            updated_at=_parse_time(row["updated_at"]),
            user_id=UUID(row["user_id"]),
            feed_id=UUID(row["feed_id"]),
            user_name=row["user_name"],
            feed_name=row["feed_name"],
        )

    def get_follows_for_user(self, user_id: UUID) -> list[FollowedFeed]:
        rows = self._execute(
            "SELECT feeds.name AS feed_name, users.name AS user_name "
            "FROM feed_follows "
            "INNER JOIN users ON feed_follows.user_id = users.id "
            "INNER JOIN feeds ON feed_follows.feed_id = feeds.id "
            "WHERE feed_follows.user_id = ?",
            (str(user_id),),
        )
        return [FollowedFeed(feed_name=row["feed_name"], user_name=row["user_name"]) for row in rows]

    def delete_follow(self, name: str, url: str) -> None:
        self._execute(
            "DELETE FROM feed_follows "
            "WHERE user_id = (SELECT id FROM users WHERE users.name = ?) "
            "AND feed_id = (SELECT id FROM feeds WHERE url = ?)",
            (name, url),
        )

    def create_post(
        self,
        id: UUID,
        created_at: datetime,
        updated_at: datetime,
        title: str,
        url: str,
        description: str | None,
        published_at: str | None,
        feed_id: UUID,
    ) -> Post:
        self._execute(
            f"INSERT INTO posts ({_POST_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                str(id),
                _time(created_at),
                _time(updated_at),
                title,
                url,
                description,
                published_at,
                str(feed_id),
            ),
        )
        return _post(self._one(f"SELECT {_POST_COLUMNS} FROM posts WHERE id = ?", (str(id),)))

    def get_posts_for_user(self, user_id: UUID, limit: int) -> list[Post]:
        if limit < 0:
            raise DatabaseError("LIMIT must not be negative")
        rows = self._execute(
            f"SELECT {_POST_COLUMNS} FROM posts "
            "WHERE feed_id IN (SELECT feed_id FROM feed_follows WHERE user_id = ?) "
            "ORDER BY created_at DESC LIMIT ?",
            (str(user_id), limit),
        )
        return [_post(row) for row in rows]


def connect(path: str | Path) -> Queries:
    """Open the database file at ``path`` and return its queries."""
    try:
        connection = sqlite3.connect(str(path), isolation_level=None)
    except sqlite3.Error as exc:
        raise DatabaseError(str(exc)) from exc
    return Queries(connection)