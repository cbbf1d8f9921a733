"""
SQLModel tables for the entry log, plus the model callers hand to ``store()``.
"""

import json
import uuid as uuid_module
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field as PydanticField, field_validator
from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

TIMESTAMP_TEXT_FORMAT = "%Y-%m-%d %H:%M:%S"


def serialize_content(content: dict[str, Any]) -> str:
    """Serialize an entry payload to the compact JSON text that gets stored.

    No spaces after separators, non-ASCII as ``\\uXXXX`` and forward slashes
    escaped as ``\\/``. Substring filters on content are written against this
    exact form.
    """
    return json.dumps(content, separators=(",", ":"), default=str).replace("/", "\\/")


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def serialized_timestamp(value: datetime) -> str:
    """Second-precision text of a created_at, as comparisons and substring matches see it."""
    return value.strftime(TIMESTAMP_TEXT_FORMAT)


class Entry(SQLModel, table=True):
    """One recorded diagnostic event."""

    __tablename__ = "entries"

    uuid: str = Field(primary_key=True)
    sequence: int = Field(index=True, unique=True, description="Store-assigned, monotonically increasing")
    type: str = Field(index=True)
    batch_id: Optional[str] = Field(default=None, index=True)
    family_hash: Optional[str] = Field(default=None, index=True)
    content: str = Field(default="{}", description="Serialized JSON payload")
    # naive UTC
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=False), index=True, nullable=False))
    should_display_on_index: bool = Field(default=True)

    @property
    def payload(self) -> dict[str, Any]:
        return json.loads(self.content)


class EntryTag(SQLModel, table=True):
    """Associates one entry with one tag."""

    __tablename__ = "entries_tags"

    id: Optional[int] = Field(default=None, primary_key=True)
    entry_uuid: str = Field(index=True)
    tag: str = Field(index=True)


class IncomingEntry(BaseModel):
    """An entry as captured, before the store assigns its sequence."""

    uuid: str = PydanticField(default_factory=lambda: str(uuid_module.uuid4()))
    type: str
    batch_id: str | None = None
    family_hash: str | None = None
    content: dict[str, Any] = PydanticField(default_factory=dict)
    created_at: datetime = PydanticField(default_factory=lambda: datetime.now(timezone.utc))
    should_display_on_index: bool = True
    tags: tuple[str, ...] = ()

    @field_validator("created_at")
    @classmethod
    def created_at_in_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    def to_entry(self, sequence: int) -> Entry:
        return Entry(
            uuid=self.uuid,
            sequence=sequence,
            type=self.type,
            batch_id=self.batch_id,
            family_hash=self.family_hash,
            content=serialize_content(self.content),
            created_at=self.created_at,
            should_display_on_index=self.should_display_on_index,
        )
