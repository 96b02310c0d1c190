"""Shared test fixtures for feedchat tests."""

import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from feedchat.events import ContactPropertyListener, MessageListener
from feedchat.feed_parser import ParsedFeed


SAMPLE_RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test Feed</title>
    <link>https://example.com</link>
    <description>A test RSS feed</description>
    <item>
      <title>Second Article</title>
      <link>https://example.com/article-2</link>
      <guid>article-2</guid>
      <description>Description of the second article</description>
      <pubDate>Fri, 13 Feb 2026 09:00:00 GMT</pubDate>
    </item>
    <item>
      <title>First Article</title>
      <link>https://example.com/article-1</link>
      <guid>article-1</guid>
      <description>Description of the first article</description>
      <pubDate>Fri, 13 Feb 2026 10:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>"""

SAMPLE_UNDATED_RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Undated Feed</title>
    <link>https://example.com</link>
    <item>
      <title>Newest</title>
      <guid>item-3</guid>
    </item>
    <item>
      <title>Middle</title>
      <guid>item-2</guid>
    </item>
    <item>
      <title>Oldest</title>
      <guid>item-1</guid>
    </item>
  </channel>
</rss>"""

SAMPLE_PARTLY_DATED_RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Partly Dated Feed</title>
    <link>https://example.com</link>
    <item>
      <title>Undated Newest</title>
      <guid>n1</guid>
    </item>
    <item>
      <title>Dated Older</title>
      <guid>d</guid>
      <pubDate>Fri, 13 Feb 2026 09:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>"""

SAMPLE_ATOM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Test Atom Feed</title>
  <link href="https://example.com"/>
  <subtitle>A test Atom feed</subtitle>
  <entry>
    <title>Atom Entry 1</title>
    <link href="https://example.com/entry-1"/>
    <id>urn:uuid:entry-1</id>
    <summary>Summary of entry 1</summary>
    <updated>2026-02-13T10:00:00Z</updated>
  </entry>
</feed>"""

SAMPLE_NOT_A_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<html>
  <body>This is not a feed</body>
</html>"""


def dated_item(guid: str, hour: int) -> dict:
    return {
        "guid": guid,
        "title": f"Item {guid}",
        "link": f"https://example.com/{guid}",
        "summary": None,
        "published_at": datetime(2026, 2, 13, hour, tzinfo=timezone.utc),
    }


def token_item(guid: str) -> dict:
    return {
        "guid": guid,
        "title": f"Item {guid}",
        "link": None,
        "summary": None,
        "published_at": None,
    }


def make_feed(title: str = "Feed A", items: list[dict] | None = None) -> ParsedFeed:
    return ParsedFeed(
        title=title,
        items=items or [],
        warnings=[],
    )


@pytest.fixture
def tmp_db_path():
    """Provide a temporary SQLite database path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = f.name
    yield path
    for suffix in ("", "-wal", "-shm"):
        try:
            os.unlink(path + suffix)
        except OSError:
            pass


@pytest.fixture
def message_listener():
    """A MessageListener mock recording every callback."""
    return MagicMock(spec=MessageListener)


@pytest.fixture
def property_listener():
    """A ContactPropertyListener mock recording every callback."""
    return MagicMock(spec=ContactPropertyListener)
