"""Markers recording the newest feed item already delivered to the user."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class DateItemKey:
    """Marker for feeds whose items carry publication dates."""

    date: datetime

    def is_newer_than(self, other: "ItemKey | None") -> bool:
        if not isinstance(other, DateItemKey):
            return True
        return self.date > other.date

    def to_string(self) -> str:
        return f"date:{self.date.isoformat()}"


@dataclass(frozen=True)
class TokenItemKey:
    """Marker for feeds identified only by an opaque item token (guid/link).

    Tokens have no ordering; two tokens are the same marker when they are
    equal ignoring case.
    """

    token: str

    def is_newer_than(self, other: "ItemKey | None") -> bool:
        if not isinstance(other, TokenItemKey):
            return True
        return not self.matches(other.token)

    def matches(self, token: str | None) -> bool:
        return token is not None and self.token.lower() == token.lower()

    def to_string(self) -> str:
        return f"token:{self.token}"


ItemKey = DateItemKey | TokenItemKey


def parse_item_key(value: str | None) -> ItemKey | None:
    """Rebuild a marker from its stored string form.

    Raises:
        ValueError: If the value has an unknown prefix or a bad date.
    """
    if not value:
        return None
    kind, _, payload = value.partition(":")
    if kind == "date":
        return DateItemKey(datetime.fromisoformat(payload))
    if kind == "token":
        return TokenItemKey(payload)
    raise ValueError(f"Unknown item key: {value!r}")
