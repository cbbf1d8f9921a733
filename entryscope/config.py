"""Environment-driven settings for entryscope."""

import logging
import os

DATABASE_URL_ENV = "ENTRYSCOPE_DATABASE_URL"
LOG_LEVEL_ENV = "ENTRYSCOPE_LOG_LEVEL"

DEFAULT_DATABASE_URL = "memory://"
DEFAULT_LOG_LEVEL = "INFO"


def get_database_url() -> str | None:
    """Return the configured storage URL, or None when unset."""
    return os.getenv(DATABASE_URL_ENV) or None


def get_log_level() -> int:
    """Resolve ENTRYSCOPE_LOG_LEVEL to a logging level, falling back to INFO."""
    name = (os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        return logging.INFO
    return level
