"""Entry point for feedchat: python -m feedchat [FEED_URL ...]"""

import logging
import sys
import threading

from feedchat.config import Settings
from feedchat.database import Database
from feedchat.events import MessageListener
from feedchat.messaging import FeedMessenger
from feedchat.presence import ContactList


class ConsoleListener(MessageListener):
    """Prints feed messages to the terminal."""

    def message_received(self, event) -> None:
        print(f"\n[{event.source.display_name}]\n{event.message.content}\n")

    def message_delivered(self, event) -> None:
        print(f"-> {event.destination.display_name}: {event.message.content}")

    def message_delivery_failed(self, event) -> None:
        print(f"-> {event.destination.display_name}: not delivered ({event.reason})")


def confirm_on_console(title: str, message: str) -> bool:
    """Ask a yes/no question on stdin."""
    try:
        answer = input(f"\n{title}\n{message} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def main(argv: list[str] | None = None) -> None:
    """Subscribe to any feeds given on the command line and keep them refreshed."""
    settings = Settings.from_env()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet noisy loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    db = Database(settings.db_path)
    db.connect()

    contact_list = ContactList(db)
    contact_list.load()

    addresses = sys.argv[1:] if argv is None else argv
    for address in addresses:
        if contact_list.find(address) is None:
            contact_list.subscribe(address)

    messenger = FeedMessenger(
        contact_list,
        confirm=confirm_on_console,
        initial_delay=settings.initial_delay,
        period=settings.refresh_period,
    )
    messenger.add_listener(ConsoleListener())

    for contact in contact_list.contacts():
        messenger.refresh_one_async(contact)
    messenger.start()

    print("feedchat running (Ctrl+C to quit).")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        print("\nGoodbye!")
    finally:
        messenger.stop()
        messenger.wait_for_workers(timeout=5)
        db.close()


if __name__ == "__main__":
    main()
