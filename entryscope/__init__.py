"""
entryscope - filter and paginate a log of recorded application entries.

Callers describe what they want with ``QueryOptions``; ``PredicateCompiler``
turns that into a ``QueryPlan`` any storage backend can execute:

    options = QueryOptions.from_request({"tag": "slow", "sort": "desc", "take": "20"})
    plan = PredicateCompiler().compile("request", options)
    entries = storage.query().apply_plan(plan).execute()
"""

from entryscope.compiler import FILTER_STEPS, FilterStep, PredicateCompiler, escape_path
from entryscope.errors import (
    EntryQueryError,
    InvalidLimit,
    InvalidSequence,
    InvalidSortDirection,
    InvalidTimestamp,
    UnsupportedStorageURL,
)
from entryscope.models import Entry, EntryTag, IncomingEntry, serialize_content
from entryscope.options import DEFAULT_LIMIT, SOURCE_TIME_ZONE, QueryOptions, normalize_time
from entryscope.predicates import Operator, Predicate, QueryPlan, SortDirection, SortSpec

__all__ = [
    "DEFAULT_LIMIT",
    "FILTER_STEPS",
    "SOURCE_TIME_ZONE",
    "Entry",
    "EntryQueryError",
    "EntryTag",
    "FilterStep",
    "IncomingEntry",
    "InvalidLimit",
    "InvalidSequence",
    "InvalidSortDirection",
    "InvalidTimestamp",
    "Operator",
    "Predicate",
    "PredicateCompiler",
    "QueryOptions",
    "QueryPlan",
    "SortDirection",
    "SortSpec",
    "UnsupportedStorageURL",
    "escape_path",
    "normalize_time",
    "serialize_content",
]

__version__ = "0.1.0"
