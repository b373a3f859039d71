"""
Sync cursor resolution.

The store is the only record of what has already been synced: the cursor
is the calendar date of the newest point this tool wrote, recomputed on
every run. There is no local state file.
"""

from datetime import date, timezone
from typing import Optional

from oti.types import LatestTimestampQuery


def resolve_cursor(store: LatestTimestampQuery) -> Optional[date]:
    """
    Return the latest date already present in the store, or None.

    Points are written at UTC midnight (plus a few seconds per tag), so the
    timestamp is normalized to UTC before taking its date. Naive timestamps
    are assumed to already be UTC.

    StoreUnreachableError / QueryRejectedError propagate unchanged: without a
    cursor no plan can be computed safely.
    """
    latest = store.latest_timestamp()
    if latest is None:
        return None

    if latest.tzinfo is not None:
        latest = latest.astimezone(timezone.utc)

    return latest.date()
