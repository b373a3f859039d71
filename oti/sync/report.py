"""
Structured sync metrics.

SyncReport accumulates state across the pipeline stages of one run and is
the only thing the orchestrator hands back to the caller. It is never
persisted: the CLI prints it and the process exits.
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from oti.types import DuplicateDate, IndexWarning, SyncSummary


class SyncState(Enum):
    START = "start"
    CURSOR_RESOLVED = "cursor_resolved"
    PLANNED = "planned"
    WRITTEN = "written"
    DONE = "done"
    FAILED = "failed"


class SyncReport:
    """
    Counters and diagnostics for one orchestration pass.

    Tests assert on exact counter values; the CLI prints the summary for
    the operator.
    """

    def __init__(self) -> None:
        self.state = SyncState.START

        # Cursor resolved from the store (None on first run)
        self.cursor: Optional[date] = None

        # Records in the plan
        self.planned = 0

        # Records submitted to the store / fully accepted / with a rejection
        self.attempted = 0
        self.succeeded = 0
        self.failed = 0

        # Per-record write failures: {"date", "source", "error"}
        self.failures: List[Dict[str, Any]] = []

        # Notes skipped while indexing, and same-date clashes
        self.warnings: List[IndexWarning] = []
        self.duplicates: List[DuplicateDate] = []

    @property
    def ok(self) -> bool:
        return self.state is SyncState.DONE

    def to_summary_dict(self) -> SyncSummary:
        return {
            "state": self.state.value,
            "cursor": self.cursor.isoformat() if self.cursor else None,
            "planned": self.planned,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "failures": list(self.failures),
            "warnings": [
                {"source": w.source_identifier, "reason": w.reason} for w in self.warnings
            ],
            "duplicates": [
                {
                    "date": d.date.isoformat(),
                    "kept": d.kept,
                    "discarded": list(d.discarded),
                }
                for d in self.duplicates
            ],
        }
