"""RSS/Atom feed fetching and parsing using feedparser."""

from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape
from time import struct_time
from urllib.parse import urlparse

import feedparser

from feedchat.item_key import DateItemKey, ItemKey, TokenItemKey


MAX_ITEMS = 50
NOT_FOUND_STATUSES = (404, 410)
NO_NEW_ITEMS_HTML = "<i>No new items.</i>"


class FeedParseError(Exception):
    """Raised when a feed cannot be retrieved or parsed."""


class FeedNotFoundError(FeedParseError):
    """Raised when the feed no longer exists at its address."""


@dataclass
class ParsedFeed:
    """Result of parsing an RSS/Atom feed.

    Items are ordered newest first when all of them are dated, and in feed
    order otherwise.
    """

    title: str
    items: list[dict]
    warnings: list[str]

    @property
    def uses_dates(self) -> bool:
        """True when every item carries a publication date."""
        return bool(self.items) and all(
            item["published_at"] is not None for item in self.items
        )

    @property
    def last_item_key(self) -> ItemKey | None:
        """Marker for the newest item, or None for an empty feed."""
        if not self.items:
            return None
        if self.uses_dates:
            return DateItemKey(max(item["published_at"] for item in self.items))
        return TokenItemKey(self.items[0]["guid"])

    def items_since(self, key: ItemKey | None) -> list[dict]:
        """Return the items newer than ``key``.

        All items are returned when there is no marker yet or the marker is
        of a different kind than the feed currently provides.
        """
        if self.uses_dates and isinstance(key, DateItemKey):
            return [item for item in self.items if item["published_at"] > key.date]
        if not self.uses_dates and isinstance(key, TokenItemKey):
            newer = []
            for item in self.items:
                if key.matches(item["guid"]):
                    return newer
                newer.append(item)
        return list(self.items)


def fetch_and_parse(url: str) -> ParsedFeed:
    """Fetch and parse an RSS or Atom feed from a URL.

    Args:
        url: The feed URL to fetch and parse.

    Returns:
        ParsedFeed with feed metadata and items.

    Raises:
        FeedNotFoundError: If the server reports the feed as gone.
        FeedParseError: If the URL is invalid, unreachable, or not a valid feed.
    """
    _validate_url(url)

    parsed = feedparser.parse(url)
    status = parsed.get("status", 200)

    if status in NOT_FOUND_STATUSES:
        raise FeedNotFoundError(f"Feed no longer exists: HTTP {status}")

    if status in (401, 403):
        raise FeedParseError(
            "Feed requires authentication. Ensure the URL is publicly accessible."
        )

    if status >= 400:
        raise FeedParseError(f"Could not reach URL: HTTP {status}")

    if not parsed.feed.get("title"):
        if parsed.get("bozo") and parsed.get("bozo_exception"):
            raise FeedParseError(
                f"Could not read feed: {parsed.get('bozo_exception')}"
            )
        raise FeedParseError("URL does not point to a valid RSS or Atom feed")

    warnings: list[str] = []
    if parsed.get("bozo"):
        warnings.append(
            f"Feed has formatting issues: {parsed.get('bozo_exception')}"
        )

    items = _extract_items(parsed.entries, warnings)

    return ParsedFeed(
        title=parsed.feed.get("title"),
        items=items[:MAX_ITEMS],
        warnings=warnings,
    )


def feed_to_html(items: list[dict]) -> str:
    """Render feed items as the HTML body of a chat message."""
    if not items:
        return NO_NEW_ITEMS_HTML

    parts = []
    for item in reversed(items):
        title = escape(item["title"])
        if item.get("link"):
            title = f'<a href="{escape(item["link"], quote=True)}">{title}</a>'
        parts.append(f"<b>{title}</b>")
        if item.get("published_at"):
            parts.append(f"<i>{item['published_at']:%Y-%m-%d %H:%M} UTC</i>")
        if item.get("summary"):
            parts.append(item["summary"])
        parts.append("<br>")
    return "<br>\n".join(parts)


def _validate_url(url: str) -> None:
    """Validate that the URL has a valid format."""
    try:
        result = urlparse(url)
        if not result.scheme or not result.netloc:
            raise FeedParseError("Invalid URL format")
        if result.scheme not in ("http", "https"):
            raise FeedParseError("Invalid URL format: only http and https are supported")
    except ValueError:
        raise FeedParseError("Invalid URL format")


def _extract_items(entries: list, warnings: list[str]) -> list[dict]:
    """Extract normalized item dicts from feedparser entries."""
    items = []
    for entry in entries:
        try:
            guid = (
                entry.get("id")
                or entry.get("guid")
                or entry.get("link")
            )
            if not guid:
                warnings.append(
                    f"Skipping entry with no identifier: {entry.get('title', 'unknown')}"
                )
                continue

            items.append({
                "guid": guid,
                "title": entry.get("title", "Untitled"),
                "link": entry.get("link"),
                "summary": entry.get("summary") or entry.get("description"),
                "published_at": _parse_date(entry),
            })
        except Exception as e:
            warnings.append(f"Skipping malformed entry: {e}")
            continue

    # Newest first when every entry is dated; otherwise the feed's own order
    if all(item["published_at"] is not None for item in items):
        items.sort(key=lambda x: x["published_at"], reverse=True)
    return items


def _parse_date(entry: dict) -> datetime | None:
    """Parse publication date from a feedparser entry as an aware UTC datetime."""
    for field in ("published_parsed", "updated_parsed"):
        time_struct = entry.get(field)
        if isinstance(time_struct, struct_time):
            try:
                return datetime(*time_struct[:6], tzinfo=timezone.utc)
            except (ValueError, OverflowError):
                continue
    return None
