"""
SQLite implementation of the entry storage interface.

Predicates become SQLAlchemy clauses. ``created_at`` is compared as
second-precision text (``YYYY-MM-DD HH:MM:SS``), the same form as the
normalized UTC bounds and the in-memory backend. Substring
filters use ``instr`` so they are literal and case-sensitive.
"""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import func
from sqlmodel import Session, SQLModel, col, create_engine, select

from entryscope.logging import get_logger
from entryscope.models import TIMESTAMP_TEXT_FORMAT, Entry, EntryTag, IncomingEntry, to_naive_utc
from entryscope.predicates import Operator, Predicate, SortDirection
from entryscope.storage.interfaces import EntryQueryInterface, EntryStorageInterface

logger = get_logger(__name__)


def _column(name: str):
    attribute = getattr(Entry, name)
    if name == "created_at":
        return func.strftime(TIMESTAMP_TEXT_FORMAT, attribute)
    return attribute


class SQLiteEntryQuery(EntryQueryInterface):
    """
    Accumulates a ``SELECT ... FROM entries`` statement.
    """

    def __init__(self, session: Session):
        self._session = session
        self._statement = select(Entry)

    def _clause(self, predicate: Predicate):
        if predicate.operator is Operator.IN_TAGGED:
            tagged = select(EntryTag.entry_uuid).where(EntryTag.tag == predicate.value)
            return col(Entry.uuid).in_(tagged)
        column = _column(predicate.column)
        if predicate.operator is Operator.EQ:
            return column == predicate.value
        if predicate.operator is Operator.LT:
            return column < predicate.value
        if predicate.operator is Operator.GT:
            return column > predicate.value
        if predicate.operator is Operator.CONTAINS:
            return func.instr(column, str(predicate.value)) > 0
        raise ValueError(f"Unsupported operator: {predicate.operator}")

    def apply_predicate(self, predicate: Predicate) -> "SQLiteEntryQuery":
        self._statement = self._statement.where(self._clause(predicate))
        return self

    def apply_sort(self, column: str, direction: SortDirection) -> "SQLiteEntryQuery":
        attribute = col(getattr(Entry, column))
        self._statement = self._statement.order_by(
            attribute.desc() if direction is SortDirection.DESC else attribute.asc()
        )
        return self

    def apply_limit(self, limit: int) -> "SQLiteEntryQuery":
        self._statement = self._statement.limit(limit)
        return self

    def execute(self) -> list[Entry]:
        return list(self._session.exec(self._statement).all())


class SQLiteEntryStorage(EntryStorageInterface):
    """
    SQLite implementation of the entry storage interface.
    """

    def __init__(self, db_path: str = ":memory:", check_same_thread: bool = True):
        # For in-memory databases shared with another thread, set check_same_thread=False
        connect_args = {"check_same_thread": check_same_thread}
        self.engine = create_engine(f"sqlite:///{db_path}", connect_args=connect_args)
        SQLModel.metadata.create_all(self.engine)
        self._session = Session(self.engine)

    def _next_sequence(self) -> int:
        current = self._session.exec(select(func.max(Entry.sequence))).one()
        return (current or 0) + 1

    def store(self, entries: Sequence[IncomingEntry]) -> list[Entry]:
        """
        Persist entries and tags in one transaction.
        """
        stored = []
        try:
            sequence = self._next_sequence()
            for incoming in entries:
                entry = self._session.merge(incoming.to_entry(sequence))
                for old_tag in self._session.exec(select(EntryTag).where(EntryTag.entry_uuid == entry.uuid)).all():
                    self._session.delete(old_tag)
                for tag in incoming.tags:
                    self._session.add(EntryTag(entry_uuid=entry.uuid, tag=tag))
                stored.append(entry)
                sequence += 1
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        for entry in stored:
            self._session.refresh(entry)
        logger.info("Stored %d entries", len(stored))
        return stored

    def find(self, uuid: str) -> Optional[Entry]:
        return self._session.get(Entry, uuid)

    def query(self) -> SQLiteEntryQuery:
        return SQLiteEntryQuery(self._session)

    def tags_for(self, uuid: str) -> list[str]:
        statement = select(EntryTag.tag).where(EntryTag.entry_uuid == uuid).order_by(col(EntryTag.id))
        return list(self._session.exec(statement).all())

    def _delete_entries(self, entries: Sequence[Entry]) -> int:
        uuids = [entry.uuid for entry in entries]
        try:
            if uuids:
                for tag in self._session.exec(select(EntryTag).where(col(EntryTag.entry_uuid).in_(uuids))).all():
                    self._session.delete(tag)
                for entry in entries:
                    self._session.delete(entry)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        return len(uuids)

    def prune(self, before: datetime) -> int:
        cutoff = to_naive_utc(before)
        stale = self._session.exec(select(Entry).where(Entry.created_at < cutoff)).all()
        deleted = self._delete_entries(stale)
        logger.info("Pruned %d entries created before %s", deleted, cutoff)
        return deleted

    def clear(self) -> None:
        self._delete_entries(self._session.exec(select(Entry)).all())
        for tag in self._session.exec(select(EntryTag)).all():
            self._session.delete(tag)
        self._session.commit()

    def count(self) -> int:
        return self._session.exec(select(func.count()).select_from(Entry)).one()

    def close(self) -> None:
        """
        Close the session and dispose of the engine.
        """
        self._session.close()
        self.engine.dispose()
