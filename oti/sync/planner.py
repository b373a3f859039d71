"""
Ingestion planning.

Pure function from (index, cursor, today) to the ordered records to push.
The window is open on both sides:

    cursor < date < today

Dates at or before the cursor are already in the store; today's note is
still being written and is picked up by tomorrow's run.
"""

from datetime import date
from typing import Mapping, Optional

from oti.types import IngestionRecord, SyncPlan, TagSet


def filter_tags(tags: TagSet, tag_marker: Optional[str]) -> TagSet:
    """Keep only tags containing `tag_marker` (all tags when it is unset)."""
    if not tag_marker:
        return tags
    return tuple(tag for tag in tags if tag_marker in tag)


def plan_ingestion(
    tags_by_date: Mapping[date, TagSet],
    cursor: Optional[date],
    today: date,
    tag_marker: Optional[str] = None,
    sources_by_date: Optional[Mapping[date, str]] = None,
) -> SyncPlan:
    """
    Build the SyncPlan for this run.

    Out-of-range dates are dropped silently; they are not errors. A date whose
    tags are all removed by `tag_marker` is still planned so the cursor moves
    past it.
    """
    sources = sources_by_date or {}
    records = []

    for note_date in sorted(tags_by_date):
        if cursor is not None and note_date <= cursor:
            continue
        if note_date >= today:
            continue

        records.append(
            IngestionRecord(
                date=note_date,
                tags=filter_tags(tags_by_date[note_date], tag_marker),
                source_identifier=sources.get(note_date, ""),
            )
        )

    return tuple(records)
