"""Predicate, sort and plan models produced by the compiler.

These are storage-neutral descriptions: a backend decides how to turn a
``Predicate`` into a SQL clause or an in-memory check.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Operator(str, Enum):
    """Comparison applied by a predicate."""

    EQ = "eq"
    LT = "lt"
    GT = "gt"
    CONTAINS = "contains"
    """Literal substring match on the column's serialized text."""

    IN_TAGGED = "in_tagged"
    """Entry uuid belongs to the set of uuids tagged with the value."""


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Predicate(BaseModel, frozen=True):
    """One conjunctive condition on the entry store."""

    name: str = Field(description="Filter step that produced this predicate.")
    column: str = Field(description="Entry column the predicate reads.")
    operator: Operator
    value: Any


class SortSpec(BaseModel, frozen=True):
    column: str = "sequence"
    direction: SortDirection


class QueryPlan(BaseModel, frozen=True):
    """Everything a storage backend needs to run one entry query."""

    entry_type: str | None = None
    predicates: tuple[Predicate, ...] = ()
    sort: SortSpec | None = None
    limit: int

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(predicate.name for predicate in self.predicates)

    def predicate(self, name: str) -> Predicate | None:
        """Return the predicate produced by the named step, if any."""
        for predicate in self.predicates:
            if predicate.name == name:
                return predicate
        return None
