"""Contact list for feed contacts: subscriptions, presence and change events."""

import logging
import threading

from feedchat.database import Database
from feedchat.events import (
    CONTACT_CALLBACKS,
    ContactPropertyChangeEvent,
    ListenerSet,
)
from feedchat.models import FeedContact, PresenceStatus

logger = logging.getLogger(__name__)


class UnsubscribeError(Exception):
    """Raised when a contact cannot be removed from the contact list."""


class ContactList:
    """The set of subscribed feeds, optionally persisted in a Database.

    Contacts are shared with the refresh engine, which mutates their display
    name, presence and marker and reports those changes back through
    change_presence_status() and fire_contact_property_change().
    """

    def __init__(self, db: Database | None = None):
        self._db = db
        self._contacts: list[FeedContact] = []
        self._lock = threading.RLock()
        self._property_listeners = ListenerSet(CONTACT_CALLBACKS)

    def load(self) -> int:
        """Load stored contacts. Returns the number of contacts loaded."""
        if self._db is None:
            return 0
        stored = self._db.get_all_contacts()
        with self._lock:
            known = {c.address for c in self._contacts}
            self._contacts.extend(c for c in stored if c.address not in known)
        logger.info("Loaded %d feed contacts", len(stored))
        return len(stored)

    def contacts(self) -> list[FeedContact]:
        """Snapshot of all contacts."""
        with self._lock:
            return list(self._contacts)

    def find(self, address: str) -> FeedContact | None:
        with self._lock:
            for contact in self._contacts:
                if contact.address == address:
                    return contact
        return None

    def subscribe(self, address: str, display_name: str | None = None) -> FeedContact:
        """Add a feed contact.

        The display name defaults to the address until the first refresh
        replaces it with the feed title.

        Raises:
            ValueError: If the address is already subscribed.
        """
        with self._lock:
            if self.find(address) is not None:
                raise ValueError(f"Already subscribed to {address}")
            contact = FeedContact(address=address, display_name=display_name or address)
            if self._db is not None:
                self._db.add_contact(contact)
            self._contacts.append(contact)
        logger.info("Subscribed to %s", address)
        return contact

    def unsubscribe(self, contact: FeedContact) -> None:
        """Remove a feed contact.

        Raises:
            UnsubscribeError: If the contact is not in this list.
        """
        with self._lock:
            if contact not in self._contacts:
                raise UnsubscribeError(f"Not subscribed to {contact.address}")
            self._contacts.remove(contact)
            if self._db is not None:
                self._db.delete_contact(contact.address)
        logger.info("Unsubscribed from %s", contact.address)

    def change_presence_status(
        self, contact: FeedContact, status: PresenceStatus
    ) -> None:
        """Set a contact's presence and store it."""
        old_status = contact.status
        contact.status = status
        if old_status != status:
            logger.info("Feed '%s' is now %s", contact.display_name, status.value)
        self._store(contact)

    def take_offline(self, contact: FeedContact) -> bool:
        """Set a contact OFFLINE unless it already is.

        Returns True only for the caller that made the change.
        """
        with self._lock:
            if contact.status == PresenceStatus.OFFLINE:
                return False
            self.change_presence_status(contact, PresenceStatus.OFFLINE)
        return True

    def fire_contact_property_change(
        self, property_name: str, contact: FeedContact, old_value, new_value
    ) -> None:
        """Store a modified contact and notify property listeners."""
        self._store(contact)
        self._property_listeners.fire(
            ContactPropertyChangeEvent(contact, property_name, old_value, new_value)
        )

    def add_property_listener(self, listener) -> None:
        self._property_listeners.add(listener)

    def remove_property_listener(self, listener) -> None:
        self._property_listeners.remove(listener)

    def _store(self, contact: FeedContact) -> None:
        if self._db is not None and contact.persistent:
            self._db.update_contact(contact)
