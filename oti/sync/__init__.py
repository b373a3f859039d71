"""
Public sync API surface.

External callers (CLI, tests) import from here rather than reaching into
submodules:

    • run_sync        — orchestrator entry point
    • SyncReport      — run metrics
    • SyncState       — orchestrator states
"""

from .orchestrator import run_sync
from .report import SyncReport, SyncState

__all__ = [
    "run_sync",
    "SyncReport",
    "SyncState",
]
