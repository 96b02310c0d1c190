"""Message and contact events, and the listener set that delivers them."""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from feedchat.models import FeedContact, Message

OFFLINE_MESSAGES_NOT_SUPPORTED = "offline_messages_not_supported"
PROPERTY_DISPLAY_NAME = "DisplayName"


@dataclass
class MessageReceivedEvent:
    message: Message
    source: FeedContact
    timestamp: datetime = field(default_factory=datetime.utcnow)


@dataclass
class MessageDeliveredEvent:
    message: Message
    destination: FeedContact
    timestamp: datetime = field(default_factory=datetime.utcnow)


@dataclass
class MessageDeliveryFailedEvent:
    message: Message
    destination: FeedContact
    reason: str
    timestamp: datetime = field(default_factory=datetime.utcnow)


@dataclass
class ContactPropertyChangeEvent:
    contact: FeedContact
    property_name: str
    old_value: Any
    new_value: Any


class MessageListener:
    """Base class for objects notified of message traffic.

    Subclasses override only the callbacks they care about.
    """

    def message_received(self, event: MessageReceivedEvent) -> None:
        pass

    def message_delivered(self, event: MessageDeliveredEvent) -> None:
        pass

    def message_delivery_failed(self, event: MessageDeliveryFailedEvent) -> None:
        pass


class ContactPropertyListener:
    """Base class for objects notified when a contact property changes."""

    def contact_property_changed(self, event: ContactPropertyChangeEvent) -> None:
        pass


MESSAGE_CALLBACKS = {
    MessageReceivedEvent: "message_received",
    MessageDeliveredEvent: "message_delivered",
    MessageDeliveryFailedEvent: "message_delivery_failed",
}

CONTACT_CALLBACKS = {
    ContactPropertyChangeEvent: "contact_property_changed",
}


class ListenerSet:
    """Thread-safe set of listeners with type-routed dispatch.

    Dispatch iterates over a copy taken under the lock, so listeners may add
    or remove registrations while an event is being delivered. Registration
    order is preserved.
    """

    def __init__(self, callbacks: dict[type, str]):
        self._callbacks = callbacks
        self._listeners: list = []
        self._lock = threading.Lock()

    def add(self, listener) -> None:
        """Register a listener. Registering the same listener twice is a no-op."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove(self, listener) -> None:
        """Unregister a listener, ignoring listeners that were never added."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def fire(self, event) -> None:
        """Deliver an event to every registered listener.

        Events of a type with no registered callback are ignored.
        """
        method_name = self._callbacks.get(type(event))
        if method_name is None:
            return

        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            getattr(listener, method_name)(event)

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def __contains__(self, listener) -> bool:
        with self._lock:
            return listener in self._listeners
