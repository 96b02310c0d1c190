"""Tests for contact storage."""

from datetime import datetime, timezone

import pytest

from feedchat.database import Database
from feedchat.item_key import DateItemKey, TokenItemKey
from feedchat.models import FeedContact, PresenceStatus


@pytest.fixture
def db(tmp_db_path):
    database = Database(tmp_db_path)
    database.connect()
    yield database
    database.close()


def test_conn_requires_connect(tmp_db_path):
    with pytest.raises(RuntimeError):
        Database(tmp_db_path).conn


def test_add_contact_assigns_id(db):
    contact = db.add_contact(FeedContact("https://example.com/feed", "Feed A"))
    assert contact.id is not None
    assert db.get_contact_by_address("https://example.com/feed").display_name == "Feed A"


def test_duplicate_address_rejected(db):
    db.add_contact(FeedContact("https://example.com/feed", "Feed A"))
    with pytest.raises(ValueError):
        db.add_contact(FeedContact("https://example.com/feed", "Feed B"))


def test_update_persists_name_status_and_marker(db, tmp_db_path):
    contact = db.add_contact(FeedContact("https://example.com/feed", "Feed A"))
    contact.display_name = "Renamed"
    contact.status = PresenceStatus.OFFLINE
    contact.last_item_key = DateItemKey(datetime(2026, 2, 13, 10, tzinfo=timezone.utc))
    db.update_contact(contact)
    db.close()

    reopened = Database(tmp_db_path)
    reopened.connect()
    stored = reopened.get_contact_by_address("https://example.com/feed")
    reopened.close()

    assert stored.display_name == "Renamed"
    assert stored.status == PresenceStatus.OFFLINE
    assert stored.last_item_key == contact.last_item_key


def test_get_all_contacts_in_subscription_order(db):
    db.add_contact(FeedContact("https://a.example.com/feed", "A"))
    db.add_contact(FeedContact(
        "https://b.example.com/feed", "B", last_item_key=TokenItemKey("abc")
    ))

    contacts = db.get_all_contacts()

    assert [c.display_name for c in contacts] == ["A", "B"]
    assert contacts[0].last_item_key is None
    assert contacts[1].last_item_key == TokenItemKey("abc")


def test_delete_contact(db):
    db.add_contact(FeedContact("https://example.com/feed", "Feed A"))
    assert db.delete_contact("https://example.com/feed")
    assert not db.delete_contact("https://example.com/feed")
    assert db.get_contact_by_address("https://example.com/feed") is None
