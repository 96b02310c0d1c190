"""Instant messaging for feed contacts: refreshing feeds into chat messages."""

import logging
import threading
from datetime import datetime
from typing import Callable

from feedchat.events import (
    MESSAGE_CALLBACKS,
    OFFLINE_MESSAGES_NOT_SUPPORTED,
    PROPERTY_DISPLAY_NAME,
    ListenerSet,
    MessageDeliveredEvent,
    MessageDeliveryFailedEvent,
    MessageReceivedEvent,
)
from feedchat.feed_parser import (
    FeedNotFoundError,
    FeedParseError,
    ParsedFeed,
    feed_to_html,
    fetch_and_parse,
)
from feedchat.models import (
    DEFAULT_MIME_ENCODING,
    DEFAULT_MIME_TYPE,
    HTML_MIME_TYPE,
    FeedContact,
    Message,
    PresenceStatus,
    RefreshOutcome,
    RegistrationState,
)
from feedchat.presence import ContactList, UnsubscribeError
from feedchat.scheduler import (
    DEFAULT_INITIAL_DELAY,
    DEFAULT_REFRESH_PERIOD,
    RefreshScheduler,
    SchedulerState,
)

logger = logging.getLogger(__name__)

REFRESHING_TEXT = "Refreshing feed..."
CONFIRM_REMOVE_TITLE = "Feed no longer available"
CONFIRM_REMOVE_MESSAGE = (
    "The feed at {address} no longer exists. "
    "Do you want to remove it from your contact list?"
)


class FeedMessenger:
    """Turns feed updates into chat messages for the contacts of a ContactList.

    A background timer checks every feed periodically while the account is
    registered; sending a message to a feed contact refreshes that feed
    immediately on a worker thread.

    Args:
        contact_list: The contacts to refresh.
        fetch: Reads a feed address into a ParsedFeed, raising
            FeedNotFoundError or FeedParseError.
        confirm: Asks the user a yes/no question, given a title and a
            message. Used before removing a feed that no longer exists.
        initial_delay: Seconds before the first scheduled sweep.
        period: Seconds between scheduled sweeps.
        registered: Start the timer right away.
    """

    def __init__(
        self,
        contact_list: ContactList,
        fetch: Callable[[str], ParsedFeed] = fetch_and_parse,
        confirm: Callable[[str, str], bool] | None = None,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        period: float = DEFAULT_REFRESH_PERIOD,
        registered: bool = False,
    ):
        self.contact_list = contact_list
        self.fetch = fetch
        self.confirm = confirm
        self._listeners = ListenerSet(MESSAGE_CALLBACKS)
        self._scheduler = RefreshScheduler(self.refresh_all, initial_delay, period)
        self._workers: set[threading.Thread] = set()
        self._workers_lock = threading.Lock()

        if registered:
            self.start()

    # --- Listeners and messages ---

    def add_listener(self, listener) -> None:
        self._listeners.add(listener)

    def remove_listener(self, listener) -> None:
        self._listeners.remove(listener)

    def create_message(
        self,
        content: str | bytes,
        content_type: str = HTML_MIME_TYPE,
        encoding: str = DEFAULT_MIME_ENCODING,
        subject: str | None = None,
    ) -> Message:
        if isinstance(content, bytes):
            content = content.decode(encoding)
        return Message(content, content_type, encoding, subject)

    def is_offline_messaging_supported(self) -> bool:
        return False

    def is_content_type_supported(self, content_type: str) -> bool:
        return content_type in (DEFAULT_MIME_TYPE, HTML_MIME_TYPE)

    def send_message(self, contact: FeedContact, message: Message) -> None:
        """Handle a message sent to a feed by refreshing that feed.

        Feeds cannot receive messages, so the message is acknowledged and the
        feed's new items come back as a received message.
        """
        if contact.persistent and contact.status == PresenceStatus.OFFLINE:
            self._listeners.fire(MessageDeliveryFailedEvent(
                message, contact, OFFLINE_MESSAGES_NOT_SUPPORTED, datetime.utcnow()
            ))
            return

        ack = self.create_message(REFRESHING_TEXT, DEFAULT_MIME_TYPE)
        self._listeners.fire(MessageDeliveredEvent(ack, contact, datetime.utcnow()))
        self.refresh_one_async(contact)

    # --- Refreshing ---

    def check_feed(
        self, contact: FeedContact, user_requested: bool = False
    ) -> RefreshOutcome | None:
        """Fetch a contact's feed and deliver anything new.

        A user-requested check always produces a received message, even when
        nothing changed. Returns None when the feed could not be read.
        """
        try:
            feed = self.fetch(contact.address)
        except FeedNotFoundError as e:
            logger.warning("Feed '%s' no longer exists: %s", contact.address, e)
            self.handle_feed_not_found(contact)
            return None
        except FeedParseError as e:
            logger.error("Failed to retrieve feed '%s': %s", contact.address, e)
            return None

        for warning in feed.warnings:
            logger.warning("Feed '%s': %s", contact.address, warning)

        if contact.status == PresenceStatus.OFFLINE:
            self.contact_list.change_presence_status(contact, PresenceStatus.ONLINE)

        old_name = contact.display_name
        new_name = feed.title
        name_changed = new_name != old_name
        contact.display_name = new_name

        previous_key = contact.last_item_key
        message = self.create_message(feed_to_html(feed.items_since(previous_key)))

        feed_key = feed.last_item_key
        has_new_item = feed_key is not None and feed_key.is_newer_than(previous_key)
        if has_new_item:
            contact.last_item_key = feed_key

        if name_changed or has_new_item:
            self.contact_list.fire_contact_property_change(
                PROPERTY_DISPLAY_NAME, contact, old_name, new_name
            )

        should_notify = has_new_item or user_requested
        if should_notify:
            if has_new_item:
                logger.info("Feed '%s': new items", new_name)
            self._listeners.fire(
                MessageReceivedEvent(message, contact, datetime.utcnow())
            )

        return RefreshOutcome(name_changed, has_new_item, should_notify)

    def refresh_all(self) -> None:
        """Check every feed contact, without notifying for unchanged feeds."""
        for contact in self.contact_list.contacts():
            try:
                self.check_feed(contact, user_requested=False)
            except Exception:
                logger.exception("Failed to refresh feed for %s", contact)

    def refresh_one(self, contact: FeedContact) -> RefreshOutcome | None:
        """Check one feed now, notifying even if nothing is new."""
        return self.check_feed(contact, user_requested=True)

    def refresh_one_async(self, contact: FeedContact) -> threading.Thread:
        """Run refresh_one() on a worker thread."""
        return self._spawn(self.refresh_one, contact, name="feed-refresh")

    # --- Timer lifecycle ---

    @property
    def scheduler_state(self) -> SchedulerState:
        return self._scheduler.state

    def start(self) -> None:
        self._scheduler.start()

    def stop(self) -> None:
        self._scheduler.stop()

    def registration_state_changed(self, state: RegistrationState) -> None:
        """Run the refresh timer only while the account is registered."""
        if state == RegistrationState.REGISTERED:
            self.start()
        else:
            self.stop()

    # --- Dead feeds ---

    def handle_feed_not_found(self, contact: FeedContact) -> threading.Thread:
        """Take a vanished feed offline and offer to remove it, off-thread."""
        return self._spawn(self._recover_dead_feed, contact, name="feed-not-found")

    def _recover_dead_feed(self, contact: FeedContact) -> None:
        # Offline contacts have already been reported to the user
        if not self.contact_list.take_offline(contact):
            return

        if self.confirm is None:
            return

        message = CONFIRM_REMOVE_MESSAGE.format(address=contact.address)
        try:
            remove = self.confirm(CONFIRM_REMOVE_TITLE, message)
        except Exception:
            logger.exception("Could not ask about removing %s", contact.address)
            return

        if remove:
            try:
                self.contact_list.unsubscribe(contact)
            except UnsubscribeError as e:
                logger.info("We could not remove a dead contact: %s", e)

    # --- Worker threads ---

    def wait_for_workers(self, timeout: float | None = None) -> None:
        """Wait for outstanding refresh and dead-feed threads to finish."""
        with self._workers_lock:
            workers = list(self._workers)
        for worker in workers:
            worker.join(timeout)

    def _spawn(self, target: Callable, *args, name: str) -> threading.Thread:
        def run():
            try:
                target(*args)
            except Exception:
                logger.exception("%s worker failed", name)
            finally:
                with self._workers_lock:
                    self._workers.discard(thread)

        thread = threading.Thread(target=run, daemon=True, name=name)
        with self._workers_lock:
            self._workers.add(thread)
        thread.start()
        return thread
