"""Command-line RSS feed aggregator storing users, feeds, follows and posts in SQLite."""

__version__ = "0.1.0"
__all__ = ["__version__"]