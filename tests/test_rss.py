import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from gator.rss import RSSFeed, RSSItem, fetch_feed, parse_feed

FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example &amp;amp; Co</title>
    <link>https://example.com/</link>
    <description>News &amp;lt;daily&amp;gt;</description>
    <item>
      <title>First post</title>
      <link>https://example.com/first</link>
      <description><![CDATA[<p>Hello</p>]]></description>
      <pubDate>Mon, 01 Jan 2024 00:00:00 +0000</pubDate>
    </item>
    <item>
      <title>Second post</title>
      <link>https://example.com/second</link>
    </item>
  </channel>
</rss>
"""


class _FeedHandler(BaseHTTPRequestHandler):
    status = 200
    body = FEED
    seen_agents: list = []

    def do_GET(self):
        type(self).seen_agents.append(self.headers.get("User-Agent"))
        self.send_response(type(self).status)
        self.send_header("Content-Type", "application/rss+xml")
        self.send_header("Content-Length", str(len(type(self).body)))
        self.end_headers()
        self.wfile.write(type(self).body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def server():
    _FeedHandler.status = 200
    _FeedHandler.body = FEED
    _FeedHandler.seen_agents = []
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _FeedHandler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd
    httpd.shutdown()
    httpd.server_close()
    thread.join()


def _url(httpd):
    return f"http://127.0.0.1:{httpd.server_port}/feed.xml"


def test_parse_channel_fields_are_unescaped():
    feed = parse_feed(FEED)
    assert feed.title == "Example & Co"
    assert feed.link == "https://example.com/"
    assert feed.description == "News <daily>"


def test_parse_items_in_order():
    feed = parse_feed(FEED)
    assert [item.title for item in feed.items] == ["First post", "Second post"]
    assert feed.items[0] == RSSItem(
        title="First post",
        link="https://example.com/first",
        description="<p>Hello</p>",
        pub_date="Mon, 01 Jan 2024 00:00:00 +0000",
    )


def test_missing_item_fields_are_empty():
    second = parse_feed(FEED).items[1]
    assert second.description == ""
    assert second.pub_date == ""


def test_parse_accepts_text():
    assert parse_feed(FEED.decode("utf-8")) == parse_feed(FEED)


def test_document_without_channel_gives_empty_feed():
    assert parse_feed(b"<rss></rss>") == RSSFeed()


def test_nested_elements_do_not_leak_into_text():
    feed = parse_feed(b"<rss><channel><title>A<b>inner</b>B</title></channel></rss>")
    assert feed.title == "AB"


@pytest.mark.parametrize("data", [b"", b"<rss><channel>", b"not xml at all"])
def test_malformed_document_raises(data):
    with pytest.raises(ValueError):
        parse_feed(data)


def test_fetch_feed_parses_response_and_sends_user_agent(server):
    feed = fetch_feed(_url(server))
    assert feed == parse_feed(FEED)
    assert _FeedHandler.seen_agents == ["gator"]


def test_fetch_feed_ignores_http_status(server):
    _FeedHandler.status = 404
    feed = fetch_feed(_url(server))
    assert [item.link for item in feed.items] == [
        "https://example.com/first",
        "https://example.com/second",
    ]


def test_fetch_feed_with_bad_body_raises(server):
    _FeedHandler.body = b"<html><body>oops"
    with pytest.raises(ValueError):
        fetch_feed(_url(server))