"""Compile QueryOptions into a storage-neutral QueryPlan.

The compiler walks ``FILTER_STEPS`` in order. Each step pairs a condition
with a builder; when the condition holds the builder contributes one
predicate. All predicates are conjunctive.

The last step is the default-visibility filter: entries not flagged
``should_display_on_index`` are hidden unless the caller asked for an
explicit grouping (batch, tag or family hash).
"""

from typing import Any, Callable, NamedTuple

from entryscope.logging import get_logger
from entryscope.options import QueryOptions, check_limit, check_sort
from entryscope.predicates import Operator, Predicate, QueryPlan, SortSpec

logger = get_logger(__name__)

GROUPING_FILTERS = ("batch_id", "tag", "family_hash")

Condition = Callable[[str | None, QueryOptions], bool]
Builder = Callable[[str | None, QueryOptions], Predicate]


class FilterStep(NamedTuple):
    name: str
    applies: Condition
    build: Builder


def escape_path(path: str) -> str:
    """Escape forward slashes the way they appear in serialized content."""
    return path.replace("/", "\\/")


def _option_set(attribute: str) -> Condition:
    def applies(entry_type: str | None, options: QueryOptions) -> bool:
        return bool(getattr(options, attribute))

    return applies


def _option_predicate(
    attribute: str,
    column: str,
    operator: Operator,
    render: Callable[[Any], Any] | None = None,
) -> Builder:
    def build(entry_type: str | None, options: QueryOptions) -> Predicate:
        value = getattr(options, attribute)
        return Predicate(
            name=attribute,
            column=column,
            operator=operator,
            value=render(value) if render else value,
        )

    return build


def _shows_default_listing(entry_type: str | None, options: QueryOptions) -> bool:
    return not any(getattr(options, attribute) for attribute in GROUPING_FILTERS)


FILTER_STEPS: tuple[FilterStep, ...] = (
    FilterStep(
        "type",
        lambda entry_type, options: bool(entry_type),
        lambda entry_type, options: Predicate(name="type", column="type", operator=Operator.EQ, value=entry_type),
    ),
    FilterStep("batch_id", _option_set("batch_id"), _option_predicate("batch_id", "batch_id", Operator.EQ)),
    FilterStep("tag", _option_set("tag"), _option_predicate("tag", "uuid", Operator.IN_TAGGED)),
    FilterStep("family_hash", _option_set("family_hash"), _option_predicate("family_hash", "family_hash", Operator.EQ)),
    FilterStep(
        "before_sequence",
        _option_set("before_sequence"),
        _option_predicate("before_sequence", "sequence", Operator.LT),
    ),
    FilterStep("start_time", _option_set("start_time"), _option_predicate("start_time", "created_at", Operator.GT)),
    FilterStep("end_time", _option_set("end_time"), _option_predicate("end_time", "created_at", Operator.LT)),
    FilterStep(
        "around_time",
        _option_set("around_time"),
        _option_predicate("around_time", "created_at", Operator.CONTAINS),
    ),
    FilterStep("path", _option_set("path"), _option_predicate("path", "content", Operator.CONTAINS, escape_path)),
    FilterStep(
        "method",
        _option_set("method"),
        _option_predicate("method", "content", Operator.CONTAINS, lambda method: f'"method":"{method}"'),
    ),
    FilterStep("search", _option_set("search"), _option_predicate("search", "content", Operator.CONTAINS)),
    FilterStep(
        "status_code",
        _option_set("status_code"),
        _option_predicate("status_code", "content", Operator.CONTAINS, lambda code: f'"response_status":{code}'),
    ),
    FilterStep(
        "visibility",
        _shows_default_listing,
        lambda entry_type, options: Predicate(
            name="visibility",
            column="should_display_on_index",
            operator=Operator.EQ,
            value=True,
        ),
    ),
)


class PredicateCompiler:
    """Stateless compiler from (entry type, options) to a QueryPlan.

    Sort and limit are re-validated here so options built by hand cannot
    hand an arbitrary direction or a non-positive limit to storage.
    """

    def __init__(self, steps: tuple[FilterStep, ...] = FILTER_STEPS):
        self._steps = steps

    def compile(self, entry_type: str | None, options: QueryOptions) -> QueryPlan:
        limit = check_limit(options.limit)
        direction = check_sort(options.sort)
        predicates = tuple(
            step.build(entry_type, options) for step in self._steps if step.applies(entry_type, options)
        )
        plan = QueryPlan(
            entry_type=entry_type or None,
            predicates=predicates,
            sort=None if direction is None else SortSpec(direction=direction),
            limit=limit,
        )
        logger.debug(plan)
        return plan
