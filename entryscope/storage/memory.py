"""In-memory entry storage for tests and development.

Entries live in a dict keyed by uuid, in sequence order. Queries evaluate
each predicate in Python; the tag sub-query is resolved to a set of uuids
up front.

Not thread-safe, and every query is a full scan.
"""

from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from entryscope.logging import get_logger
from entryscope.models import Entry, IncomingEntry, serialized_timestamp, to_naive_utc
from entryscope.predicates import Operator, Predicate, SortDirection
from entryscope.storage.interfaces import EntryQueryInterface, EntryStorageInterface

logger = get_logger(__name__)

Matcher = Callable[[Entry], bool]


def _column_value(entry: Entry, column: str) -> Any:
    """Read a column the way the SQL backend compares it."""
    if column == "created_at":
        return serialized_timestamp(entry.created_at)
    return getattr(entry, column)


class InMemoryEntryQuery(EntryQueryInterface):
    def __init__(self, storage: "InMemoryEntryStorage"):
        self._storage = storage
        self._matchers: list[Matcher] = []
        self._sort: Optional[tuple[str, SortDirection]] = None
        self._limit: Optional[int] = None

    def _matcher(self, predicate: Predicate) -> Matcher:
        value = predicate.value
        column = predicate.column
        if predicate.operator is Operator.IN_TAGGED:
            tagged = self._storage.uuids_tagged(value)
            return lambda entry: _column_value(entry, column) in tagged
        if predicate.operator is Operator.EQ:
            return lambda entry: _column_value(entry, column) == value
        if predicate.operator is Operator.LT:
            return lambda entry: _column_value(entry, column) < value
        if predicate.operator is Operator.GT:
            return lambda entry: _column_value(entry, column) > value
        if predicate.operator is Operator.CONTAINS:
            return lambda entry: str(value) in str(_column_value(entry, column))
        raise ValueError(f"Unsupported operator: {predicate.operator}")

    def apply_predicate(self, predicate: Predicate) -> "InMemoryEntryQuery":
        self._matchers.append(self._matcher(predicate))
        return self

    def apply_sort(self, column: str, direction: SortDirection) -> "InMemoryEntryQuery":
        self._sort = (column, direction)
        return self

    def apply_limit(self, limit: int) -> "InMemoryEntryQuery":
        self._limit = limit
        return self

    def execute(self) -> list[Entry]:
        results = [entry for entry in self._storage.entries() if all(match(entry) for match in self._matchers)]
        if self._sort is not None:
            column, direction = self._sort
            results.sort(key=lambda entry: _column_value(entry, column), reverse=direction is SortDirection.DESC)
        if self._limit is not None:
            results = results[: self._limit]
        return results


class InMemoryEntryStorage(EntryStorageInterface):
    """Entry storage backed by plain dicts.

    Example:
        ```python
        storage = InMemoryEntryStorage()
        storage.store([IncomingEntry(type="request", content={"method": "GET"})])
        entries = storage.get("request", QueryOptions().with_method("GET"))
        ```
    """

    def __init__(self) -> None:
        self._entries: dict[str, Entry] = {}
        self._tags: dict[str, list[str]] = {}
        self._sequence = 0

    def entries(self) -> list[Entry]:
        """All entries in ascending sequence order."""
        return list(self._entries.values())

    def uuids_tagged(self, tag: str) -> set[str]:
        return {uuid for uuid, tags in self._tags.items() if tag in tags}

    def store(self, entries: Sequence[IncomingEntry]) -> list[Entry]:
        stored = []
        for incoming in entries:
            self._sequence += 1
            entry = incoming.to_entry(self._sequence)
            self._entries.pop(entry.uuid, None)
            self._entries[entry.uuid] = entry
            self._tags[entry.uuid] = list(incoming.tags)
            stored.append(entry)
        logger.info("Stored %d entries", len(stored))
        return stored

    def find(self, uuid: str) -> Optional[Entry]:
        return self._entries.get(uuid)

    def query(self) -> InMemoryEntryQuery:
        return InMemoryEntryQuery(self)

    def tags_for(self, uuid: str) -> list[str]:
        return list(self._tags.get(uuid, []))

    def prune(self, before: datetime) -> int:
        cutoff = to_naive_utc(before)
        stale = [uuid for uuid, entry in self._entries.items() if entry.created_at < cutoff]
        for uuid in stale:
            del self._entries[uuid]
            self._tags.pop(uuid, None)
        logger.info("Pruned %d entries created before %s", len(stale), cutoff)
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        self._tags.clear()

    def count(self) -> int:
        return len(self._entries)

    def close(self) -> None:
        pass
