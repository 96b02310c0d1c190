"""SQLite storage for feed contacts and their last-seen markers."""

import sqlite3
import threading
from datetime import datetime

from feedchat.item_key import parse_item_key
from feedchat.models import FeedContact, PresenceStatus

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS contacts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    address TEXT UNIQUE NOT NULL,
    display_name TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'online',
    last_item_key TEXT,
    persistent INTEGER DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


class Database:
    """SQLite database manager for feed contacts.

    The connection is shared between the refresh timer and worker threads,
    so every statement runs under a lock.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def connect(self) -> None:
        """Open database connection and initialize schema."""
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    def add_contact(self, contact: FeedContact) -> FeedContact:
        """Insert a new contact and return it with its assigned id.

        Raises:
            ValueError: If a contact with the same address already exists.
        """
        with self._lock:
            try:
                cursor = self.conn.execute(
                    """INSERT INTO contacts (address, display_name, status,
                       last_item_key, persistent, created_at)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (
                        contact.address,
                        contact.display_name,
                        contact.status.value,
                        _key_to_str(contact),
                        int(contact.persistent),
                        _dt_to_str(contact.created_at),
                    ),
                )
            except sqlite3.IntegrityError:
                raise ValueError(f"Already subscribed to {contact.address}")
            self.conn.commit()
        contact.id = cursor.lastrowid
        return contact

    def update_contact(self, contact: FeedContact) -> None:
        """Store the contact's display name, presence and marker."""
        with self._lock:
            self.conn.execute(
                """UPDATE contacts SET display_name = ?, status = ?,
                   last_item_key = ? WHERE address = ?""",
                (
                    contact.display_name,
                    contact.status.value,
                    _key_to_str(contact),
                    contact.address,
                ),
            )
            self.conn.commit()

    def get_contact_by_address(self, address: str) -> FeedContact | None:
        """Look up a contact by its feed address."""
        with self._lock:
            row = self.conn.execute(
                "SELECT * FROM contacts WHERE address = ?", (address,)
            ).fetchone()
        return _row_to_contact(row) if row else None

    def get_all_contacts(self) -> list[FeedContact]:
        """Return all contacts in subscription order."""
        with self._lock:
            rows = self.conn.execute(
                "SELECT * FROM contacts ORDER BY id"
            ).fetchall()
        return [_row_to_contact(r) for r in rows]

    def delete_contact(self, address: str) -> bool:
        """Delete a contact. Returns True if deleted."""
        with self._lock:
            cursor = self.conn.execute(
                "DELETE FROM contacts WHERE address = ?", (address,)
            )
            self.conn.commit()
        return cursor.rowcount > 0


# --- Helper functions ---


def _dt_to_str(dt: datetime | None) -> str | None:
    """Convert datetime to ISO string for storage."""
    return dt.isoformat() if dt else None


def _str_to_dt(s: str | None) -> datetime | None:
    """Convert stored ISO string back to datetime."""
    if not s:
        return None
    return datetime.fromisoformat(s)


def _key_to_str(contact: FeedContact) -> str | None:
    key = contact.last_item_key
    return key.to_string() if key else None


def _row_to_contact(row: sqlite3.Row) -> FeedContact:
    """Convert a database row to a FeedContact dataclass."""
    return FeedContact(
        id=row["id"],
        address=row["address"],
        display_name=row["display_name"],
        status=PresenceStatus(row["status"]),
        last_item_key=parse_item_key(row["last_item_key"]),
        persistent=bool(row["persistent"]),
        created_at=_str_to_dt(row["created_at"]) or datetime.utcnow(),
    )
