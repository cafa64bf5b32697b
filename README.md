# gator

`gator` is a small command-line RSS aggregator. You register users, add and follow feeds, run a collector that keeps pulling new posts from those feeds, and then browse the latest posts from the feeds you follow. Everything is kept in a local SQLite database file.

## Installation

```
pip install .
```

This installs the `gator` command. The same entry point can also be run as `python -m gator.cli`.

## Configuration

gator reads its settings from `.gatorconfig.json` in your home directory. The file must exist before the first command is run, because gator does not create it:

```json
{
  "db_url": "/path/to/gator.db",
  "current_username": ""
}
```

`db_url` is the path of the SQLite database file that holds users, feeds, follows and posts. The file and its tables are created on first use. `current_username` holds the logged-in user. The `login` and `register` commands rewrite the configuration file to update it.

## Commands

Each run carries out one command. If a command fails, gator prints the error and exits with status 1.

Create a user. You are logged in as that user once it is created. Registering a name that already exists fails:

```
gator register alice
```

Switch to an existing user:

```
gator login alice
```

List all users. The current user is marked `(current)`:

```
gator users
```

Add a feed. The current user follows it automatically. A feed URL can be added only once. If the feed cannot be stored, nothing is printed:

```
gator addfeed "Example Blog" https://example.com/feed.xml
```

List every feed, its URL and the user who added it:

```
gator feeds
```

Follow a feed that another user added, list the feeds you follow, or stop following a feed:

```
gator follow https://example.com/feed.xml
gator following
gator unfollow https://example.com/feed.xml
```

Collect posts at a fixed interval:

```
gator agg 1m
```

On each tick the collector fetches the feed that was fetched least recently, with feeds never fetched taken first. It marks that feed as fetched and stores each item of the feed as a post. Items whose URL is already stored are skipped. A feed that cannot be downloaded or parsed is passed over until the next tick. Intervals take forms such as `30s`, `1.5m`, `1h30m` or `500ms`. The units are `ns`, `us`, `ms`, `s`, `m` and `h`. Stop the collector with Ctrl-C.

Browse the newest posts from the feeds you follow. Two posts are shown by default. A number sets how many are shown:

```
gator browse
gator browse 10
```

Delete all users. Their feeds, follows and posts are deleted with them:

```
gator reset
```

## Using it as a library

- `gator.config`: `read()` loads a `Config` holding `db_url` and `current_user_name`. `Config.set_user()` changes the current user and writes the file back.
- `gator.database`: `connect(path)` opens a SQLite file and returns `Queries`. It creates the tables with `create_schema()` and offers methods for users, feeds, follows and posts. Failures raise `DatabaseError`, or one of its subclasses `NotFoundError` and `UniqueViolationError`.
- `gator.rss`: `parse_feed(data)` turns RSS XML into an `RSSFeed` with its `RSSItem`s. `fetch_feed(url)` downloads a feed and parses it.
- `gator.cli`: `main(argv=None)` runs one command and returns the exit status. `parse_duration()` parses collector intervals.

## What gator does not do

- It does not create `.gatorconfig.json`. You write that file yourself.
- It stores data only in a local SQLite file. There is no database server and no network service.
- It has no password or other authentication. Anyone who runs it can log in as any registered user.

## Running the tests

```
pip install .[test]
pytest
```