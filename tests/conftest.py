"""Shared fixtures for entryscope tests.

This module provides:
- ``make_entry``: factory for IncomingEntry objects with sensible defaults
- ``storage``: an empty entry store, parametrized over the in-memory and
  SQLite backends so storage tests run against both
- ``compiler``: a PredicateCompiler
"""

from datetime import datetime
from typing import Any

import pytest

from entryscope.compiler import PredicateCompiler
from entryscope.models import IncomingEntry
from entryscope.storage.memory import InMemoryEntryStorage
from entryscope.storage.sqlite import SQLiteEntryStorage


def make_entry(uuid: str, **overrides: Any) -> IncomingEntry:
    """Create an IncomingEntry of type "request" with a fixed timestamp."""
    fields: dict[str, Any] = {
        "uuid": uuid,
        "type": "request",
        "created_at": datetime(2024, 3, 10, 12, 0, 0),
        "content": {},
    }
    fields.update(overrides)
    return IncomingEntry(**fields)


@pytest.fixture(params=["memory", "sqlite"])
def storage(request):
    """An empty entry store for each backend."""
    if request.param == "memory":
        store = InMemoryEntryStorage()
    else:
        store = SQLiteEntryStorage(":memory:")
    yield store
    store.close()


@pytest.fixture
def compiler() -> PredicateCompiler:
    return PredicateCompiler()
