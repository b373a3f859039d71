"""
oti/errors.py

Exception hierarchy for the sync engine.

Errors fall into two groups:

    • per-item, non-fatal errors (ParseError, WriteRejectedError) that are
      caught by the stage that owns the item and recorded on the report
    • fatal errors (StoreUnreachableError, QueryRejectedError,
      NoteListingError, ConfigError) that abort the run and surface at the
      CLI as a non-zero exit code

StoreError carries an optional `report` so that a write phase aborted
midway can still hand its partial counters to the caller.
"""

from typing import Any, Optional


class OtiError(Exception):
    """Base class for every error raised by this package."""


# ---------------------------------------------------------------------------
# Note parsing (non-fatal, one note at a time)
# ---------------------------------------------------------------------------
class ParseError(OtiError):
    """A single note could not be turned into a (date, tags) pair."""

    def __init__(self, message: str, source_identifier: Optional[str] = None) -> None:
        super().__init__(message)
        self.source_identifier = source_identifier


class MissingFrontmatterError(ParseError):
    pass


class MalformedDateError(ParseError):
    pass


class MalformedTagFieldError(ParseError):
    pass


# ---------------------------------------------------------------------------
# Store access
# ---------------------------------------------------------------------------
class StoreError(OtiError):
    """
    Failure talking to the timeseries store.

    `report` is attached by the point writer when a batch write is aborted
    after earlier batches were already accepted.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.report: Optional[Any] = None


class StoreUnreachableError(StoreError):
    pass


class QueryRejectedError(StoreError):
    pass


class WriteRejectedError(StoreError):
    pass


# ---------------------------------------------------------------------------
# Process-level failures
# ---------------------------------------------------------------------------
class NoteListingError(OtiError):
    """The notes directory itself cannot be enumerated."""


class ConfigError(OtiError):
    """Required configuration is missing or invalid."""
