"""Tests for listener registration and event dispatch."""

from unittest.mock import MagicMock

from feedchat.events import (
    MESSAGE_CALLBACKS,
    ListenerSet,
    MessageDeliveredEvent,
    MessageDeliveryFailedEvent,
    MessageListener,
    MessageReceivedEvent,
)
from feedchat.models import FeedContact, Message

CONTACT = FeedContact("https://example.com/feed", "Feed A")
MESSAGE = Message("hello")


def test_routes_each_event_type_to_its_callback(message_listener):
    listeners = ListenerSet(MESSAGE_CALLBACKS)
    listeners.add(message_listener)

    received = MessageReceivedEvent(MESSAGE, CONTACT)
    delivered = MessageDeliveredEvent(MESSAGE, CONTACT)
    failed = MessageDeliveryFailedEvent(MESSAGE, CONTACT, "offline")
    for event in (received, delivered, failed):
        listeners.fire(event)

    message_listener.message_received.assert_called_once_with(received)
    message_listener.message_delivered.assert_called_once_with(delivered)
    message_listener.message_delivery_failed.assert_called_once_with(failed)


def test_adding_twice_delivers_once(message_listener):
    listeners = ListenerSet(MESSAGE_CALLBACKS)
    listeners.add(message_listener)
    listeners.add(message_listener)

    listeners.fire(MessageReceivedEvent(MESSAGE, CONTACT))

    assert len(listeners) == 1
    assert message_listener.message_received.call_count == 1


def test_remove_unknown_listener_is_ignored(message_listener):
    listeners = ListenerSet(MESSAGE_CALLBACKS)
    listeners.remove(message_listener)
    assert len(listeners) == 0


def test_unknown_event_type_is_ignored(message_listener):
    listeners = ListenerSet(MESSAGE_CALLBACKS)
    listeners.add(message_listener)

    listeners.fire(object())

    assert message_listener.mock_calls == []


def test_listeners_called_in_registration_order():
    calls = []
    listeners = ListenerSet(MESSAGE_CALLBACKS)
    for name in ("first", "second", "third"):
        listener = MagicMock(spec=MessageListener)
        listener.message_received.side_effect = lambda event, name=name: calls.append(name)
        listeners.add(listener)

    listeners.fire(MessageReceivedEvent(MESSAGE, CONTACT))

    assert calls == ["first", "second", "third"]


def test_registration_changes_during_dispatch_apply_to_next_event(message_listener):
    listeners = ListenerSet(MESSAGE_CALLBACKS)
    late = MagicMock(spec=MessageListener)

    class SelfRemoving(MessageListener):
        def __init__(self):
            self.received = 0

        def message_received(self, event):
            self.received += 1
            listeners.remove(self)
            listeners.add(late)

    self_removing = SelfRemoving()
    listeners.add(self_removing)
    listeners.add(message_listener)

    listeners.fire(MessageReceivedEvent(MESSAGE, CONTACT))

    assert self_removing.received == 1
    assert message_listener.message_received.call_count == 1
    late.message_received.assert_not_called()

    listeners.fire(MessageReceivedEvent(MESSAGE, CONTACT))

    assert self_removing.received == 1
    assert message_listener.message_received.call_count == 2
    late.message_received.assert_called_once()
