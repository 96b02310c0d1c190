"""Data models for feedchat."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from feedchat.item_key import ItemKey

DEFAULT_MIME_TYPE = "text/plain"
HTML_MIME_TYPE = "text/html"
DEFAULT_MIME_ENCODING = "utf-8"


class PresenceStatus(Enum):
    """Presence of a feed contact."""

    ONLINE = "online"
    OFFLINE = "offline"


class RegistrationState(Enum):
    """Connection state of the account that owns the feed contacts."""

    REGISTERED = "registered"
    UNREGISTERED = "unregistered"
    CONNECTION_FAILED = "connection_failed"


@dataclass(eq=False)
class FeedContact:
    """A subscribed RSS/Atom feed, shown to the user as a chat contact."""

    address: str
    display_name: str
    status: PresenceStatus = PresenceStatus.ONLINE
    last_item_key: ItemKey | None = None
    persistent: bool = True
    created_at: datetime = field(default_factory=datetime.utcnow)
    id: int | None = None

    def __str__(self) -> str:
        return f"{self.display_name} <{self.address}>"


@dataclass
class Message:
    """A chat message carrying feed items to the user."""

    content: str
    content_type: str = HTML_MIME_TYPE
    encoding: str = DEFAULT_MIME_ENCODING
    subject: str | None = None


@dataclass
class RefreshOutcome:
    """What a single feed check found."""

    name_changed: bool = False
    has_new_item: bool = False
    should_notify: bool = False
