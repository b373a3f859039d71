"""
oti/types.py

Centralized type definitions for the sync engine.

This module defines the value objects passed between pipeline stages and the
Protocols describing the external collaborators (note lister and timeseries
store). Keeping these in one place gives:

    • a single source of truth for the record shapes
    • clear contracts between the CLI, the orchestrator and the store adapters
    • easy dependency injection of fakes in tests

Value objects are frozen dataclasses: a plan computed once per run must not
be mutated by later stages.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypedDict,
)


# ---------------------------------------------------------------------------
# TagSet
# ---------------------------------------------------------------------------
# Ordered, deduplicated tag strings for one date. Order is first appearance
# in the note so that points derived from it are reproducible.
# ---------------------------------------------------------------------------
TagSet = Tuple[str, ...]


# ---------------------------------------------------------------------------
# ParsedNote
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ParsedNote:
    date: date
    tags: TagSet
    source_identifier: str


# ---------------------------------------------------------------------------
# Index diagnostics
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class IndexWarning:
    """A note that was skipped; the run carried on without it."""

    source_identifier: str
    reason: str


@dataclass(frozen=True)
class DuplicateDate:
    """Two or more notes claimed the same date; `kept` won the tie-break."""

    date: date
    kept: str
    discarded: Tuple[str, ...]


# ---------------------------------------------------------------------------
# IngestionRecord / SyncPlan
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class IngestionRecord:
    date: date
    tags: TagSet
    source_identifier: str = ""


SyncPlan = Tuple[IngestionRecord, ...]


# ---------------------------------------------------------------------------
# Point / PointStatus
# ---------------------------------------------------------------------------
# A single timeseries point as understood by every store adapter. Tags are
# indexed string dimensions, fields are the measured values.
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Point:
    measurement: str
    time: datetime
    tags: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PointStatus:
    accepted: bool
    reason: Optional[str] = None


# ---------------------------------------------------------------------------
# SyncSummary
# ---------------------------------------------------------------------------
# Serializable shape of a SyncReport. Consumed by the CLI summary printer
# and by tests asserting on counters.
# ---------------------------------------------------------------------------
class SyncSummary(TypedDict):
    state: str
    cursor: Optional[str]
    planned: int
    attempted: int
    succeeded: int
    failed: int
    failures: List[Dict[str, Any]]
    warnings: List[Dict[str, Any]]
    duplicates: List[Dict[str, Any]]


# ---------------------------------------------------------------------------
# NoteLister
# ---------------------------------------------------------------------------
# Produces (source_identifier, raw_text) pairs. Ordering is not guaranteed
# and callers must not rely on it.
# ---------------------------------------------------------------------------
NoteSource = Tuple[str, str]

# Called with (source_identifier, reason) for a file that could not be read.
ListingErrorHandler = Callable[[str, str], None]


class NoteLister(Protocol):
    def __call__(
        self, on_error: Optional[ListingErrorHandler] = None
    ) -> Iterable[NoteSource]: ...


# ---------------------------------------------------------------------------
# Store capabilities
# ---------------------------------------------------------------------------
# The store adapters in oti/stores/ implement both Protocols. They are kept
# separate so tests (and the cursor resolver) can depend on only the
# capability they use.
# ---------------------------------------------------------------------------
class LatestTimestampQuery(Protocol):
    def latest_timestamp(self) -> Optional[datetime]:
        """
        Return the newest timestamp written under this tool's measurement,
        or None when nothing has been written yet.

        Raises StoreUnreachableError or QueryRejectedError.
        """
        ...


class BatchPointWriter(Protocol):
    def write_points(self, points: Sequence[Point]) -> List[PointStatus]:
        """
        Write a batch of points and return one status per point, in order.

        Raises StoreUnreachableError when the store cannot be reached at all.
        """
        ...


class TimeseriesStore(LatestTimestampQuery, BatchPointWriter, Protocol):
    pass
