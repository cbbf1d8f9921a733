"""Entry storage interfaces and backends."""

from entryscope.storage.factory import create_storage
from entryscope.storage.interfaces import EntryQueryInterface, EntryStorageInterface
from entryscope.storage.memory import InMemoryEntryQuery, InMemoryEntryStorage
from entryscope.storage.sqlite import SQLiteEntryQuery, SQLiteEntryStorage

__all__ = [
    "EntryQueryInterface",
    "EntryStorageInterface",
    "InMemoryEntryQuery",
    "InMemoryEntryStorage",
    "SQLiteEntryQuery",
    "SQLiteEntryStorage",
    "create_storage",
]
