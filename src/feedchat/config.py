"""Environment-driven settings for feedchat."""

import os
from dataclasses import dataclass

from feedchat.scheduler import DEFAULT_INITIAL_DELAY, DEFAULT_REFRESH_PERIOD

DEFAULT_DB_PATH = "feedchat.db"


@dataclass
class Settings:
    db_path: str = DEFAULT_DB_PATH
    refresh_period: float = DEFAULT_REFRESH_PERIOD
    initial_delay: float = DEFAULT_INITIAL_DELAY
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Read settings from FEEDCHAT_* environment variables.

        Raises:
            ValueError: If a numeric setting is not a positive number.
        """
        env = os.environ if environ is None else environ
        settings = cls(
            db_path=env.get("FEEDCHAT_DB_PATH", DEFAULT_DB_PATH),
            refresh_period=float(env.get("FEEDCHAT_REFRESH_PERIOD", DEFAULT_REFRESH_PERIOD)),
            initial_delay=float(env.get("FEEDCHAT_INITIAL_DELAY", DEFAULT_INITIAL_DELAY)),
            log_level=env.get("FEEDCHAT_LOG_LEVEL", "INFO").upper(),
        )
        if settings.refresh_period <= 0:
            raise ValueError("FEEDCHAT_REFRESH_PERIOD must be positive")
        if settings.initial_delay < 0:
            raise ValueError("FEEDCHAT_INITIAL_DELAY must not be negative")
        return settings
