"""Query options for filtering the entry log.

``QueryOptions`` is a frozen pydantic model. Every ``with_*`` method returns a
new instance, so a chain like::

    options = QueryOptions().with_tag("slow").with_sort("desc").with_limit(10)

never mutates an options object another caller may hold.

Start and end bounds may be given as wall-clock time in a fixed source time
zone (``SOURCE_TIME_ZONE``); with ``use_time_zone`` on they are converted to
UTC strings before they reach the compiler.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Mapping, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field

from entryscope.errors import InvalidLimit, InvalidSequence, InvalidSortDirection, InvalidTimestamp
from entryscope.logging import get_logger
from entryscope.predicates import SortDirection

logger = get_logger(__name__)

SOURCE_TIME_ZONE = "Asia/Tehran"
DEFAULT_LIMIT = 50
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_BOUND_CLOCK = {"start": "00:00:00", "end": "23:59:59"}
_TRUTHY = {"1", "true", "yes", "on"}


def _to_utc(value: str, source_zone: str) -> str:
    local = datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=ZoneInfo(source_zone))
    return local.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def normalize_time(
    value: str | None,
    bound: Literal["start", "end"],
    use_time_zone: Any,
    source_zone: str = SOURCE_TIME_ZONE,
) -> str | None:
    """Convert a start/end bound from ``source_zone`` wall-clock time to UTC.

    A lone date (``2024-03-10``) is widened to the first or last second of
    that day depending on ``bound``; if it cannot be parsed it is returned
    as given. A full ``YYYY-MM-DD HH:MM:SS`` value is converted directly and
    raises InvalidTimestamp when malformed. Anything else passes through.
    """
    if not use_time_zone or value is None:
        return value

    tokens = value.split(" ")
    if len(tokens) == 1 and tokens[0] != "":
        date = tokens[0]
        try:
            return _to_utc(f"{date} {_BOUND_CLOCK[bound]}", source_zone)
        except (ValueError, OverflowError, ZoneInfoNotFoundError):
            logger.warning("Could not convert %s date %r from %s; keeping it unconverted", bound, date, source_zone)
            return date

    if len(value) == len("YYYY-MM-DD HH:MM:SS"):
        try:
            return _to_utc(value, source_zone)
        except (ValueError, OverflowError, ZoneInfoNotFoundError) as exc:
            raise InvalidTimestamp(f"Cannot convert {bound} time {value!r} from {source_zone} to UTC") from exc

    return value


def check_limit(limit: Any) -> int:
    """Return ``limit`` as a positive int or raise InvalidLimit."""
    if isinstance(limit, str):
        try:
            limit = int(limit.strip())
        except ValueError as exc:
            raise InvalidLimit(f"limit must be a positive integer, got {limit!r}") from exc
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidLimit(f"limit must be a positive integer, got {limit!r}")
    return limit


def check_sequence(sequence: Any) -> int | None:
    """Return a before-sequence cursor as an int; empty means no cursor."""
    if sequence is None or sequence == "":
        return None
    if isinstance(sequence, str):
        try:
            return int(sequence.strip())
        except ValueError as exc:
            raise InvalidSequence(f"before must be an integer sequence, got {sequence!r}") from exc
    if isinstance(sequence, bool) or not isinstance(sequence, int):
        raise InvalidSequence(f"before must be an integer sequence, got {sequence!r}")
    return sequence


def check_sort(direction: Any) -> SortDirection | None:
    """Map a sort token to a SortDirection; empty means no sort requested."""
    if direction is None or direction == "":
        return None
    if isinstance(direction, SortDirection):
        return direction
    try:
        return SortDirection(str(direction).lower())
    except ValueError as exc:
        raise InvalidSortDirection(f"sort must be 'asc' or 'desc', got {direction!r}") from exc


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def _param(params: Mapping[str, Any], key: str) -> Any:
    value = params.get(key)
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def _split_uuids(raw: Any) -> list[str] | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return [item.strip() for item in raw.split(",") if item.strip()]
    return [str(item) for item in raw]


class QueryOptions(BaseModel, frozen=True):
    """Optional filter criteria for one entry query."""

    batch_id: str | None = Field(default=None, description="Batch the entries must belong to.")
    tag: str | None = Field(default=None, description="Tag the entries must carry.")
    family_hash: str | None = Field(default=None, description="Family hash the entries must share.")
    before_sequence: int | None = Field(default=None, description="Exclusive upper bound on sequence.")
    uuids: tuple[str, ...] | None = Field(
        default=None,
        description="Explicit entry ids. Accepted and kept, but never compiled into a predicate.",
    )
    start_time: str | None = Field(default=None, description="Exclusive lower bound on created_at (UTC).")
    end_time: str | None = Field(default=None, description="Exclusive upper bound on created_at (UTC).")
    around_time: str | None = Field(default=None, description="Substring of created_at.")
    path: str | None = None
    method: str | None = None
    sort: str | None = Field(default=None, description="'asc' or 'desc' on sequence.")
    search: str | None = Field(default=None, description="Raw substring of the serialized content.")
    status_code: int | str | None = None
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_request(cls, params: Mapping[str, Any]) -> "QueryOptions":
        """Build options from an untyped request parameter bag.

        Blank strings count as missing. ``take`` falls back to DEFAULT_LIMIT.
        """
        use_time_zone = _truthy(params.get("use_time_zone"))
        take = _param(params, "take")
        return (
            cls()
            .with_batch_id(_param(params, "batch_id"))
            .with_uuids(_split_uuids(_param(params, "uuids")))
            .with_before_sequence(_param(params, "before"))
            .with_tag(_param(params, "tag"))
            .with_family_hash(_param(params, "family_hash"))
            .with_start_time(_param(params, "start_time"), use_time_zone)
            .with_end_time(_param(params, "end_time"), use_time_zone)
            .with_around_time(_param(params, "around_time"))
            .with_path(_param(params, "path"))
            .with_method(_param(params, "method"))
            .with_sort(_param(params, "sort"))
            .with_search(_param(params, "search"))
            .with_status_code(_param(params, "status_code"))
            .with_limit(DEFAULT_LIMIT if take is None else take)
        )

    @classmethod
    def for_batch_id(cls, batch_id: str | None) -> "QueryOptions":
        return cls().with_batch_id(batch_id)

    def _derive(self, **changes: Any) -> "QueryOptions":
        return type(self).model_validate({**self.model_dump(), **changes})

    def with_batch_id(self, batch_id: str | None) -> "QueryOptions":
        return self._derive(batch_id=batch_id)

    def with_tag(self, tag: str | None) -> "QueryOptions":
        return self._derive(tag=tag)

    def with_family_hash(self, family_hash: str | None) -> "QueryOptions":
        return self._derive(family_hash=family_hash)

    def with_before_sequence(self, sequence: int | str | None) -> "QueryOptions":
        return self._derive(before_sequence=check_sequence(sequence))

    def with_uuids(self, uuids: Sequence[str] | None) -> "QueryOptions":
        return self._derive(uuids=None if uuids is None else tuple(uuids))

    def with_start_time(self, start_time: str | None, use_time_zone: Any = False) -> "QueryOptions":
        return self._derive(start_time=normalize_time(start_time, "start", use_time_zone))

    def with_end_time(self, end_time: str | None, use_time_zone: Any = False) -> "QueryOptions":
        return self._derive(end_time=normalize_time(end_time, "end", use_time_zone))

    def with_around_time(self, around_time: str | None) -> "QueryOptions":
        return self._derive(around_time=around_time)

    def with_path(self, path: str | None) -> "QueryOptions":
        return self._derive(path=path)

    def with_method(self, method: str | None) -> "QueryOptions":
        return self._derive(method=method)

    def with_sort(self, sort: str | None) -> "QueryOptions":
        direction = check_sort(sort)
        return self._derive(sort=None if direction is None else direction.value)

    def with_search(self, search: str | None) -> "QueryOptions":
        return self._derive(search=search)

    def with_status_code(self, status_code: int | str | None) -> "QueryOptions":
        return self._derive(status_code=status_code)

    def with_limit(self, limit: int | str) -> "QueryOptions":
        return self._derive(limit=check_limit(limit))
