"""Tests for compiling QueryOptions into a QueryPlan.

This module verifies:
- The type predicate is added only for a non-empty entry type
- Each optional filter contributes exactly one predicate, in fixed order
- Default visibility applies iff no grouping filter (batch, tag, family hash) is set
- Path escaping and the content substrings for method and status code
- Sort and limit re-validation for hand-built options
- ``uuids`` never produces a predicate
"""

import itertools
import logging

import pytest

from entryscope.compiler import FILTER_STEPS, GROUPING_FILTERS, PredicateCompiler, escape_path
from entryscope.errors import InvalidLimit, InvalidSortDirection
from entryscope.options import QueryOptions
from entryscope.predicates import Operator, SortDirection

OPTIONAL_FILTERS = {
    "batch_id": "b1",
    "tag": "slow",
    "family_hash": "fh",
    "before_sequence": 10,
    "start_time": "2024-03-09 20:30:00",
    "end_time": "2024-03-10 20:29:59",
    "around_time": "2024-03-10",
    "path": "/api/users",
    "method": "GET",
    "search": "timeout",
    "status_code": 404,
}


class TestPredicateSteps:
    """One predicate per populated criterion."""

    def test_type_only(self, compiler: PredicateCompiler) -> None:
        plan = compiler.compile("request", QueryOptions())

        assert plan.names == ("type", "visibility")
        assert plan.predicate("type").value == "request"
        assert plan.predicate("type").operator is Operator.EQ
        assert plan.sort is None
        assert plan.limit == 50

    @pytest.mark.parametrize("entry_type", ["", None])
    def test_empty_entry_type_adds_no_type_predicate(self, compiler: PredicateCompiler, entry_type) -> None:
        plan = compiler.compile(entry_type, QueryOptions())
        assert plan.names == ("visibility",)
        assert plan.entry_type is None

    def test_all_filters_follow_step_order(self, compiler: PredicateCompiler) -> None:
        plan = compiler.compile("request", QueryOptions(**OPTIONAL_FILTERS))
        expected = tuple(step.name for step in FILTER_STEPS if step.name != "visibility")
        assert plan.names == expected

    def test_predicate_semantics(self, compiler: PredicateCompiler) -> None:
        plan = compiler.compile("request", QueryOptions(**OPTIONAL_FILTERS))
        expected = {
            "batch_id": ("batch_id", Operator.EQ, "b1"),
            "tag": ("uuid", Operator.IN_TAGGED, "slow"),
            "family_hash": ("family_hash", Operator.EQ, "fh"),
            "before_sequence": ("sequence", Operator.LT, 10),
            "start_time": ("created_at", Operator.GT, "2024-03-09 20:30:00"),
            "end_time": ("created_at", Operator.LT, "2024-03-10 20:29:59"),
            "around_time": ("created_at", Operator.CONTAINS, "2024-03-10"),
            "path": ("content", Operator.CONTAINS, "\\/api\\/users"),
            "method": ("content", Operator.CONTAINS, '"method":"GET"'),
            "search": ("content", Operator.CONTAINS, "timeout"),
            "status_code": ("content", Operator.CONTAINS, '"response_status":404'),
        }
        for name, (column, operator, value) in expected.items():
            predicate = plan.predicate(name)
            assert predicate is not None, name
            assert (predicate.column, predicate.operator, predicate.value) == (column, operator, value)

    @pytest.mark.parametrize("k", range(len(OPTIONAL_FILTERS) + 1))
    def test_conjunctive_filter_count(self, compiler: PredicateCompiler, k: int) -> None:
        """k populated filters -> k predicates + type + visibility per the grouping rule."""
        for chosen in itertools.islice(itertools.combinations(OPTIONAL_FILTERS, k), 25):
            options = QueryOptions(**{name: OPTIONAL_FILTERS[name] for name in chosen})
            plan = compiler.compile("request", options)
            visibility = 0 if set(chosen) & set(GROUPING_FILTERS) else 1
            assert len(plan.predicates) == k + 1 + visibility

    @pytest.mark.parametrize("field,value", [("before_sequence", 0), ("status_code", 0), ("path", ""), ("tag", "")])
    def test_falsy_values_count_as_unset(self, compiler: PredicateCompiler, field: str, value) -> None:
        plan = compiler.compile("request", QueryOptions(**{field: value}))
        assert plan.names == ("type", "visibility")

    def test_uuids_are_not_compiled(self, compiler: PredicateCompiler) -> None:
        plan = compiler.compile("request", QueryOptions().with_uuids(["a", "b"]))
        assert plan.names == ("type", "visibility")


class TestVisibility:
    """Exactly one of {visibility applied, visibility suppressed} per plan."""

    @pytest.mark.parametrize("field", GROUPING_FILTERS)
    def test_grouping_filter_suppresses_visibility(self, compiler: PredicateCompiler, field: str) -> None:
        plan = compiler.compile("request", QueryOptions(**{field: "x"}))
        assert plan.predicate("visibility") is None

    @pytest.mark.parametrize("field", [name for name in OPTIONAL_FILTERS if name not in GROUPING_FILTERS])
    def test_other_filters_keep_visibility(self, compiler: PredicateCompiler, field: str) -> None:
        plan = compiler.compile("request", QueryOptions(**{field: OPTIONAL_FILTERS[field]}))
        predicate = plan.predicate("visibility")
        assert predicate is not None
        assert (predicate.column, predicate.operator, predicate.value) == (
            "should_display_on_index",
            Operator.EQ,
            True,
        )

    def test_visibility_is_last(self, compiler: PredicateCompiler) -> None:
        plan = compiler.compile("request", QueryOptions(search="x", path="/y"))
        assert plan.names[-1] == "visibility"


class TestSortAndLimit:
    """Sort directive and result size."""

    @pytest.mark.parametrize("token,direction", [("asc", SortDirection.ASC), ("desc", SortDirection.DESC)])
    def test_sort_on_sequence(self, compiler: PredicateCompiler, token: str, direction: SortDirection) -> None:
        plan = compiler.compile("request", QueryOptions().with_sort(token))
        assert plan.sort is not None
        assert plan.sort.column == "sequence"
        assert plan.sort.direction is direction

    def test_sort_is_not_a_predicate(self, compiler: PredicateCompiler) -> None:
        plan = compiler.compile("request", QueryOptions().with_sort("desc"))
        assert plan.names == ("type", "visibility")

    def test_limit_carries_through(self, compiler: PredicateCompiler) -> None:
        assert compiler.compile("request", QueryOptions().with_limit(7)).limit == 7

    @pytest.mark.parametrize("limit", [0, -3])
    def test_hand_built_bad_limit_is_rejected(self, compiler: PredicateCompiler, limit: int) -> None:
        with pytest.raises(InvalidLimit):
            compiler.compile("request", QueryOptions(limit=limit))

    def test_hand_built_bad_sort_is_rejected(self, compiler: PredicateCompiler) -> None:
        with pytest.raises(InvalidSortDirection):
            compiler.compile("request", QueryOptions(sort="up"))


class TestSubstrings:
    """Content substrings mirror the stored serialization."""

    def test_escape_path_replaces_every_slash(self) -> None:
        assert escape_path("/api/users") == "\\/api\\/users"
        assert escape_path("no-slash") == "no-slash"

    def test_status_code_is_a_prefix_match_string(self, compiler: PredicateCompiler) -> None:
        plan = compiler.compile("request", QueryOptions().with_status_code("40"))
        assert plan.predicate("status_code").value == '"response_status":40'


class TestCompilerLogging:
    def test_plan_is_logged_at_debug(self, compiler: PredicateCompiler, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger="entryscope.compiler"):
            compiler.compile("request", QueryOptions(tag="slow"))
        assert "in_tagged" in caplog.text

    def test_compile_does_not_mutate_options(self, compiler: PredicateCompiler) -> None:
        options = QueryOptions(tag="slow", sort="desc")
        before = options.model_dump()
        compiler.compile("request", options)
        assert options.model_dump() == before
