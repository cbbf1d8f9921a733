"""
Storage factory: pick an entry storage backend from a URL.
"""

from typing import Optional

from entryscope.config import DATABASE_URL_ENV, DEFAULT_DATABASE_URL, get_database_url
from entryscope.errors import UnsupportedStorageURL
from entryscope.logging import get_logger
from entryscope.storage.interfaces import EntryStorageInterface
from entryscope.storage.memory import InMemoryEntryStorage
from entryscope.storage.sqlite import SQLiteEntryStorage

logger = get_logger(__name__)

SQLITE_PREFIX = "sqlite:///"


def create_storage(url: Optional[str] = None) -> EntryStorageInterface:
    """
    Build a storage backend for ``url``, falling back to ENTRYSCOPE_DATABASE_URL.

    ``memory://`` gives in-memory storage; ``sqlite:///<path>`` (or
    ``sqlite:///:memory:``) gives SQLite.
    """
    url = url or get_database_url()
    if url is None:
        logger.info(f"{DATABASE_URL_ENV} not set, defaulting to in-memory storage.")
        url = DEFAULT_DATABASE_URL

    if url == DEFAULT_DATABASE_URL:
        return InMemoryEntryStorage()
    if url.startswith(SQLITE_PREFIX):
        db_path = url[len(SQLITE_PREFIX):] or ":memory:"
        return SQLiteEntryStorage(db_path)
    raise UnsupportedStorageURL(f"Unsupported storage URL: {url!r}")
