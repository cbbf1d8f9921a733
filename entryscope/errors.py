"""Exceptions raised while building and executing entry queries."""


class EntryQueryError(ValueError):
    """Base class for invalid query input."""


class InvalidTimestamp(EntryQueryError):
    """A full timestamp could not be converted from the source time zone."""


class InvalidLimit(EntryQueryError):
    """The requested result size is not a positive integer."""


class InvalidSortDirection(EntryQueryError):
    """The sort token is neither ``asc`` nor ``desc``."""


class UnsupportedStorageURL(EntryQueryError):
    """The storage URL names a scheme no backend handles."""


class InvalidSequence(EntryQueryError):
    """The pagination cursor is not an integer sequence number."""
