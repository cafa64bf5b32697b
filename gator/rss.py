"""Fetching and parsing RSS feeds."""

from __future__ import annotations

import html
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from urllib.error import HTTPError
from urllib.request import Request, urlopen

USER_AGENT = "gator"


@dataclass
class RSSItem:
    """One entry of an RSS channel."""

    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: str = ""


@dataclass
class RSSFeed:
    """The channel of an RSS document and its items."""

    title: str = ""
    link: str = ""
    description: str = ""
    items: list[RSSItem] = field(default_factory=list)


def _local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rpartition("}")[2]


def _text(element: ET.Element) -> str:
    """Character data directly inside ``element``, without nested elements."""
    return (element.text or "") + "".join(child.tail or "" for child in element)


def _parse_item(element: ET.Element) -> RSSItem:
    item = RSSItem()
    for child in element:
        name = _local_name(child.tag)
        if name == "title":
            item.title = _text(child)
        elif name == "link":
            item.link = _text(child)
        elif name == "description":
            item.description = _text(child)
        elif name == "pubDate":
            item.pub_date = _text(child)
    return item


def parse_feed(data: bytes | str) -> RSSFeed:
    """Parse an RSS document; raise ``ValueError`` if it is not well-formed XML."""
    raw = data.encode("utf-8") if isinstance(data, str) else data
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as exc:
        raise ValueError(f"invalid feed XML: {exc}") from exc

    feed = RSSFeed()
    for channel in root:
        if _local_name(channel.tag) != "channel":
            continue
        for child in channel:
            name = _local_name(child.tag)
            if name == "title":
                feed.title = _text(child)
            elif name == "link":
                feed.link = _text(child)
            elif name == "description":
                feed.description = _text(child)
            elif name == "item":
                feed.items.append(_parse_item(child))

    feed.title = html.unescape(feed.title)
    feed.description = html.unescape(feed.description)
    return feed


def fetch_feed(feed_url: str) -> RSSFeed:
    """Download the feed at ``feed_url`` and parse it, whatever the HTTP status."""
    request = Request(feed_url, headers={"User-Agent": USER_AGENT}, method="GET")
    try:
        with urlopen(request) as response:
            body = response.read()
    except HTTPError as exc:
        try:
            body = exc.read()
        finally:
            exc.close()
    return parse_feed(body)