"""
Storage interfaces for the entry log.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Sequence

from entryscope.compiler import PredicateCompiler
from entryscope.models import Entry, IncomingEntry
from entryscope.options import QueryOptions
from entryscope.predicates import Predicate, QueryPlan, SortDirection


class EntryQueryInterface(ABC):
    """
    A single query over the entry store, narrowed step by step.
    Every ``apply_*`` method returns the query so calls can be chained.
    """

    @abstractmethod
    def apply_predicate(self, predicate: Predicate) -> "EntryQueryInterface":
        """
        AND one predicate into the query.
        """

    @abstractmethod
    def apply_sort(self, column: str, direction: SortDirection) -> "EntryQueryInterface":
        """
        Order results by ``column``.
        """

    @abstractmethod
    def apply_limit(self, limit: int) -> "EntryQueryInterface":
        """
        Cap the number of results.
        """

    @abstractmethod
    def execute(self) -> list[Entry]:
        """
        Run the query and return the matching entries in order.
        """

    def apply_plan(self, plan: QueryPlan) -> "EntryQueryInterface":
        for predicate in plan.predicates:
            self.apply_predicate(predicate)
        if plan.sort is not None:
            self.apply_sort(plan.sort.column, plan.sort.direction)
        return self.apply_limit(plan.limit)


class EntryStorageInterface(ABC):
    """
    Abstract interface for an entry storage backend.
    """

    @abstractmethod
    def store(self, entries: Sequence[IncomingEntry]) -> list[Entry]:
        """
        Persist entries and their tags, assigning increasing sequence numbers.
        An entry whose uuid already exists replaces the stored one.
        """

    @abstractmethod
    def find(self, uuid: str) -> Optional[Entry]:
        """
        Get an entry by its uuid.
        """

    @abstractmethod
    def query(self) -> EntryQueryInterface:
        """
        Start a new query over all stored entries.
        """

    @abstractmethod
    def tags_for(self, uuid: str) -> list[str]:
        """
        Tags attached to an entry, in the order they were stored.
        """

    @abstractmethod
    def prune(self, before: datetime) -> int:
        """
        Delete entries created strictly before ``before``. Returns how many were deleted.
        """

    @abstractmethod
    def clear(self) -> None:
        """
        Delete every entry and tag.
        """

    @abstractmethod
    def count(self) -> int:
        """
        Total number of stored entries.
        """

    @abstractmethod
    def close(self) -> None:
        """
        Release any resources held by the backend.
        """

    def get(
        self,
        entry_type: Optional[str],
        options: QueryOptions,
        compiler: Optional[PredicateCompiler] = None,
    ) -> list[Entry]:
        """
        Compile ``options`` for ``entry_type`` and return the matching entries.
        """
        plan = (compiler or PredicateCompiler()).compile(entry_type, options)
        return self.query().apply_plan(plan).execute()
