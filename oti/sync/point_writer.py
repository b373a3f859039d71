"""
Point writer: pushes a SyncPlan into the store in batches.

Failure policy:

    • a point the store rejects fails only its own record; every other
      record is still written and the run completes
    • a store that cannot be reached aborts the write phase; the partial
      report is attached to the raised error, and whatever was accepted
      before stays written

There is no retry here. Re-running the whole sync is always safe because
the next run recomputes the range from the store's cursor.
"""

from typing import List, Optional, Sequence, Tuple

from oti.errors import StoreError
from oti.points import record_to_points
from oti.sync.report import SyncReport
from oti.types import BatchPointWriter, IngestionRecord, Point, SyncPlan

DEFAULT_BATCH_SIZE = 500

Batch = List[Tuple[IngestionRecord, List[Point]]]


def batch_records(
    plan: SyncPlan, measurement: str, batch_size: int = DEFAULT_BATCH_SIZE
) -> List[Batch]:
    """
    Group records into batches of at most `batch_size` points.

    A record's points are never split across batches. A single record with
    more points than `batch_size` gets a batch of its own.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    batches: List[Batch] = []
    current: Batch = []
    current_size = 0

    for record in plan:
        points = record_to_points(record, measurement)

        if current and current_size + len(points) > batch_size:
            batches.append(current)
            current, current_size = [], 0

        current.append((record, points))
        current_size += len(points)

    if current:
        batches.append(current)

    return batches


def _flatten(batch: Batch) -> Sequence[Point]:
    return [point for _record, points in batch for point in points]


def write_plan(
    store: BatchPointWriter,
    plan: SyncPlan,
    measurement: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
    report: Optional[SyncReport] = None,
) -> SyncReport:
    """
    Write every record of `plan` and account for each one on the report.

    Raises
    ------
    StoreUnreachableError
        When a batch cannot be delivered at all. `error.report` holds the
        counters accumulated so far.
    """
    report = report if report is not None else SyncReport()

    for batch in batch_records(plan, measurement, batch_size):
        try:
            statuses = store.write_points(_flatten(batch))
        except StoreError as e:
            e.report = report
            raise

        offset = 0
        for record, points in batch:
            report.attempted += 1
            record_statuses = statuses[offset : offset + len(points)]
            offset += len(points)

            reasons = [s.reason or "rejected" for s in record_statuses if not s.accepted]
            if len(record_statuses) < len(points):
                reasons.append("store returned no status for some points")

            if reasons:
                report.failed += 1
                report.failures.append(
                    {
                        "date": record.date.isoformat(),
                        "source": record.source_identifier,
                        "error": "; ".join(reasons),
                    }
                )
            else:
                report.succeeded += 1

    return report
