"""
High-level sync orchestrator.

This module defines the canonical sync pass: one linear run through

    START → CURSOR_RESOLVED → PLANNED → WRITTEN → DONE

with FAILED reachable from any state on a fatal error. It is kept explicit
and side-effect-transparent so that:

    • tests can assert on stage ordering and on exact counters
    • dry-run mode can compute the full plan without touching the store
    • a fatal error stops the pass immediately and reaches the CLI unchanged

Fatal: the store is unreachable or rejects the cursor query, the store
becomes unreachable mid-write, or the notes directory cannot be listed.
Everything else (bad notes, duplicate dates, rejected points) is recorded
on the report and the pass carries on.

Two passes must not overlap against the same measurement: cursor
resolution and writing are a read-then-write window and nothing here locks
it. The scheduler is expected to run one pass at a time.
"""

from datetime import date
from typing import List, Optional

from oti.errors import NoteListingError, StoreError
from oti.logging_utils import log_verbose
from oti.sync.cursor import resolve_cursor
from oti.sync.note_index import build_note_index
from oti.sync.planner import plan_ingestion
from oti.sync.point_writer import DEFAULT_BATCH_SIZE, write_plan
from oti.sync.report import SyncReport, SyncState
from oti.types import IndexWarning, NoteLister, TimeseriesStore


def run_sync(
    lister: NoteLister,
    store: TimeseriesStore,
    today: date,
    measurement: str,
    tag_marker: Optional[str] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    workers: int = 1,
    dry_run: bool = False,
    verbose: bool = False,
) -> SyncReport:
    """
    Run one sync pass and return its report.

    Parameters
    ----------
    lister : NoteLister
        Yields (source_identifier, raw_text) for every candidate note.
    store : TimeseriesStore
        Provides both the latest-timestamp query and the batch writer.
    today : date
        The run date. Notes dated today or later are never written.
    measurement : str
        Series identity of this tool inside the store.

    Raises
    ------
    StoreError
        Fatal store failure. When raised from the write phase, `error.report`
        carries the partial counters.
    NoteListingError
        The notes directory could not be enumerated.
    """
    report = SyncReport()

    try:
        # ------------------------------------------------------------
        # START — list and index notes (per-note errors are warnings)
        # ------------------------------------------------------------
        log_verbose("Indexing notes...", verbose)
        listing_warnings: List[IndexWarning] = []

        def on_listing_error(source_identifier: str, reason: str) -> None:
            listing_warnings.append(IndexWarning(source_identifier, reason))

        index = build_note_index(lister(on_error=on_listing_error), workers=workers)
        report.warnings = sorted(
            listing_warnings + index.warnings, key=lambda w: w.source_identifier
        )
        report.duplicates = index.duplicates
        log_verbose(
            f"Indexed {len(index.tags_by_date)} dates "
            f"({len(report.warnings)} skipped, {len(report.duplicates)} duplicates).",
            verbose,
        )

        # ------------------------------------------------------------
        # CURSOR_RESOLVED — fatal on any StoreError
        # ------------------------------------------------------------
        log_verbose("Resolving sync cursor...", verbose)
        report.cursor = resolve_cursor(store)
        report.state = SyncState.CURSOR_RESOLVED
        log_verbose(f"Cursor: {report.cursor or 'none (first run)'}", verbose)

        # ------------------------------------------------------------
        # PLANNED
        # ------------------------------------------------------------
        plan = plan_ingestion(
            index.tags_by_date,
            report.cursor,
            today,
            tag_marker=tag_marker,
            sources_by_date=index.sources_by_date,
        )
        report.planned = len(plan)
        report.state = SyncState.PLANNED
        log_verbose(f"Planned {len(plan)} dates before {today.isoformat()}.", verbose)

        if dry_run:
            report.state = SyncState.DONE
            return report

        # ------------------------------------------------------------
        # WRITTEN — rejected points are recorded, not fatal
        # ------------------------------------------------------------
        if plan:
            log_verbose("Writing points...", verbose)
            write_plan(store, plan, measurement, batch_size=batch_size, report=report)
        report.state = SyncState.WRITTEN

    except (StoreError, NoteListingError):
        report.state = SyncState.FAILED
        raise

    report.state = SyncState.DONE
    return report
