"""The gator command line: users, feeds, follows and the aggregator loop."""

from __future__ import annotations

import re
import sys
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from functools import wraps
from typing import Callable
from uuid import uuid4

from gator import config
from gator.config import Config
from gator.database import DatabaseError, Queries, UniqueViolationError, connect
from gator.models import User
from gator.rss import fetch_feed


class CommandError(Exception):
    """A command was used wrongly or could not do its work."""


@dataclass
class State:
    """What every command handler works with."""

    cfg: Config
    db: Queries


@dataclass
class Command:
    """A command name and its arguments; ``args[0]`` is the name itself."""

    name: str
    args: list[str] = field(default_factory=list)


Handler = Callable[[State, Command], None]
UserHandler = Callable[[State, Command, User], None]


@dataclass
class Commands:
    """The table of command names and their handlers."""

    handlers: dict[str, Handler] = field(default_factory=dict)

    def register(self, name: str, handler: Handler) -> None:
        self.handlers[name] = handler

    def run(self, state: State, command: Command) -> None:
        try:
            handler = self.handlers[command.name]
        except KeyError:
            raise CommandError("Non existent command") from None
        handler(state, command)


def logged_in(handler: UserHandler) -> Handler:
    """Wrap ``handler`` so that it receives the current user."""

    @wraps(handler)
    def wrapper(state: State, command: Command) -> None:
        user = state.db.get_user(state.cfg.current_user_name)
        handler(state, command, user)

    return wrapper


def _now() -> datetime:
    return datetime.now().astimezone()


_UNIT_NANOSECONDS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_NUMBER = re.compile(r"([0-9]*)(?:\.([0-9]*))?")
_UNIT = re.compile(r"[^0-9.]*")
_MAX_NANOSECONDS = 1 << 63


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"1m30s"`` or ``"1.5h"``."""
    invalid = ValueError(f'time: invalid duration "{text}"')
    rest = text
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise invalid

    total = 0
    while rest:
        number = _NUMBER.match(rest)
        whole, fraction = number.group(1), number.group(2) or ""
        if not whole and not fraction:
            raise invalid
        rest = rest[number.end():]
        unit = _UNIT.match(rest).group(0)
        if not unit:
            raise ValueError(f'time: missing unit in duration "{text}"')
        if unit not in _UNIT_NANOSECONDS:
            raise ValueError(f'time: unknown unit "{unit}" in duration "{text}"')
        rest = rest[len(unit):]
        scale = _UNIT_NANOSECONDS[unit]
        value = int(whole or "0") * scale
        if fraction:
            value += int(fraction) * scale // 10 ** len(fraction)
        total += value
        if total > _MAX_NANOSECONDS:
            raise invalid

    if not negative and total > _MAX_NANOSECONDS - 1:
        raise invalid
    delta = timedelta(microseconds=total // 1000)
    return -delta if negative else delta


def scrape_feeds(state: State) -> None:
    """Fetch the feed that waited longest and store its new posts."""
    feed = state.db.get_next_feed_to_fetch()
    now = _now()
    state.db.mark_feed_fetched(feed.id, now, now)

    try:
        rss = fetch_feed(feed.url)
    except (OSError, ValueError):
        return

    for item in rss.items:
        now = _now()
        try:
            state.db.create_post(
                id=uuid4(),
                created_at=now,
                updated_at=now,
                title=item.title,
                url=item.link,
                description=item.description,
                published_at=item.pub_date,
                feed_id=feed.id,
            )
        except UniqueViolationError as exc:
            if "posts_url_key" in str(exc):
                continue
            raise
        print(f"post created - {item.title}")


def handler_login(state: State, command: Command) -> None:
    if len(command.args) != 2:
        raise CommandError("Username is required")
    username = command.args[1]
    try:
        state.db.get_user(username)
    except DatabaseError:
        raise CommandError(f"User {username} doesn't exist") from None
    try:
        state.cfg.set_user(username)
    except OSError as exc:
        raise CommandError("Error setting new user") from exc
    print(f"Login successful as {username}!")


def handler_register(state: State, command: Command) -> None:
    if len(command.args) != 2:
        raise CommandError("Username is required")
    username = command.args[1]
    try:
        state.db.get_user(username)
    except DatabaseError:
        pass
    else:
        raise CommandError(f'User {username} already exists, use command "login"')

    now = _now()
    user = state.db.create_user(id=uuid4(), created_at=now, updated_at=now, name=username)
    try:
        state.cfg.set_user(user.name)
    except OSError as exc:
        raise CommandError("Error setting new user") from exc

    print(f"User {user.name} created successfully")
    print(f"ID: {user.id}\nCreatedAt: {user.created_at}\nUpdatedAt: {user.updated_at}\nName: {user.name}")


def handler_reset(state: State, command: Command) -> None:
    try:
        state.db.delete_all_users()
    except DatabaseError as exc:
        raise CommandError("Error resetting database") from exc
    print("Database reset!")


def handler_users(state: State, command: Command) -> None:
    try:
        users = state.db.get_users()
    except DatabaseError as exc:
        raise CommandError("Error retrieving all users") from exc
    for user in users:
        if user.name == state.cfg.current_user_name:
            print(f" * {user.name} (current)")
        else:
            print(f" * {user.name}")


def handler_agg(state: State, command: Command) -> None:
    if len(command.args) != 2:
        raise CommandError("wrong args number")
    text = command.args[1]
    interval = parse_duration(text).total_seconds()
    print(f"Collecting feeeds every {text}")

    if interval <= 0:
        # A non-positive interval never ticks, so only the first scrape runs.
        scrape_feeds(state)
        threading.Event().wait()

    next_tick = time.monotonic()
    while True:
        scrape_feeds(state)
        next_tick += interval
        now = time.monotonic()
        while next_tick < now:
            next_tick += interval
        time.sleep(next_tick - now)


def handler_add_feed(state: State, command: Command, user: User) -> None:
    if len(command.args) != 3:
        raise CommandError("Enter name and url of feed as arguments")
    name, url = command.args[1], command.args[2]

    now = _now()
    try:
        feed = state.db.create_feed(
            id=uuid4(), created_at=now, updated_at=now, name=name, url=url, user_id=user.id
        )
        now = _now()
        state.db.create_feed_follow(
            id=uuid4(), created_at=now, updated_at=now, user_id=user.id, feed_id=feed.id
        )
    except DatabaseError:
        return

    print(
        f"ID: {feed.id}\nCreatedAt: {feed.created_at}\nUpdatedAt: {feed.updated_at}\n"
        f"Name: {feed.name}\nUrl: {feed.url}\nUserID: {feed.user_id}"
    )


def handler_feeds(state: State, command: Command) -> None:
    for feed in state.db.get_feeds():
        print(f"{feed.name}:\nURL: {feed.url}\nUser: {feed.user or ''}\n")


def _feed_url(command: Command) -> str:
    if len(command.args) < 2:
        raise CommandError("Feed url is required")
    return command.args[1]


def handler_follow(state: State, command: Command, user: User) -> None:
    url = _feed_url(command)
    feed = state.db.get_feed(url)
    now = _now()
    follow = state.db.create_feed_follow(
        id=uuid4(), created_at=now, updated_at=now, user_id=user.id, feed_id=feed.id
    )
    print(
        f"New follow added successfully:\nID: {follow.id}\nCreatedAt: {follow.created_at}\n"
        f"UpdatedAt: {follow.updated_at}\nUserID: {follow.user_id}\nFeedID: {follow.feed_id}"
    )


def handler_following(state: State, command: Command, user: User) -> None:
    follows = state.db.get_follows_for_user(user.id)
    print(f"{state.cfg.current_user_name} (current user) is following:")
    for follow in follows:
        print(f" * {follow.feed_name}")


def handler_unfollow(state: State, command: Command, user: User) -> None:
    url = _feed_url(command)
    state.db.delete_follow(user.name, url)
    print("Follow removed")


_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1


def _parse_limit(text: str) -> int:
    if not re.fullmatch(r"[+-]?[0-9]+", text):
        return 0
    return max(_INT32_MIN, min(_INT32_MAX, int(text)))


def handler_browse(state: State, command: Command, user: User) -> None:
    limit = _parse_limit(command.args[1]) if len(command.args) == 2 else 2
    for post in state.db.get_posts_for_user(user.id, limit):
        print(f"* {post.title}")
        print(f"  {post.description or ''}")
        print(f"  Published: {post.published_at or ''}")
        print(f"  URL: {post.url}\n")


def build_commands() -> Commands:
    """Return the table of every gator command."""
    commands = Commands()
    commands.register("login", handler_login)
    commands.register("register", handler_register)
    commands.register("reset", handler_reset)
    commands.register("users", handler_users)
    commands.register("agg", handler_agg)
    commands.register("addfeed", logged_in(handler_add_feed))
    commands.register("feeds", handler_feeds)
    commands.register("follow", logged_in(handler_follow))
    commands.register("following", logged_in(handler_following))
    commands.register("unfollow", logged_in(handler_unfollow))
    commands.register("browse", logged_in(handler_browse))
    return commands


def main(argv: list[str] | None = None) -> int:
    """Run one gator command; return the process exit status."""
    args = list(sys.argv[1:] if argv is None else argv)

    try:
        cfg = config.read()
    except (OSError, ValueError) as exc:
        print(exc)
        return 1

    if not args:
        print("Not enough arguments were provided")
        return 1

    command = Command(name=args[0], args=args)
    try:
        with connect(cfg.db_url) as queries:
            queries.create_schema()
            build_commands().run(State(cfg=cfg, db=queries), command)
    except (CommandError, DatabaseError, OSError, ValueError) as exc:
        print(exc)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())