"""
oti/points.py

Conversion of ingestion records into timeseries points, and the InfluxDB
line protocol encoding of those points.

Point layout (one record → N points):

    • one point per tag, at UTC midnight of the note's date + i seconds,
      where i is the tag's position, so points of one day never overwrite
      each other
    • tags:   weekday=<Mon..Sun>, frontmatter_tag=<tag>
    • fields: value=1i

A date with no tags is still written, as a single `value=0i` point at
midnight carrying only the weekday tag. Without it the cursor would never
move past an untagged day and that day would be replanned on every run.
"""

from datetime import datetime, time, timedelta, timezone
from typing import Any, Dict, List

from oti.types import IngestionRecord, Point

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

WEEKDAY_TAG = "weekday"
FRONTMATTER_TAG = "frontmatter_tag"
VALUE_FIELD = "value"


def record_to_points(record: IngestionRecord, measurement: str) -> List[Point]:
    midnight = datetime.combine(record.date, time(0, 0), tzinfo=timezone.utc)
    weekday = WEEKDAYS[record.date.weekday()]

    if not record.tags:
        return [
            Point(
                measurement=measurement,
                time=midnight,
                tags={WEEKDAY_TAG: weekday},
                fields={VALUE_FIELD: 0},
            )
        ]

    return [
        Point(
            measurement=measurement,
            time=midnight + timedelta(seconds=position),
            tags={WEEKDAY_TAG: weekday, FRONTMATTER_TAG: tag},
            fields={VALUE_FIELD: 1},
        )
        for position, tag in enumerate(record.tags)
    ]


# ============================================================================
# LINE PROTOCOL
# ============================================================================


def _escape_measurement(value: str) -> str:
    return value.replace("\\", "\\\\").replace(",", "\\,").replace(" ", "\\ ")


def _escape_key(value: str) -> str:
    # Tag keys, tag values and field keys share the same escaping rules.
    return (
        value.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace("=", "\\=")
        .replace(" ", "\\ ")
    )


def _format_field_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def epoch_seconds(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def to_line_protocol(point: Point) -> str:
    """
    Encode a point as one line of InfluxDB line protocol (second precision).

    Tags are sorted by key and empty tag values are omitted, both as the
    InfluxDB write API expects.
    """
    parts = [_escape_measurement(point.measurement)]

    tags: Dict[str, str] = point.tags
    for key in sorted(tags):
        if tags[key] == "":
            continue
        parts.append(f"{_escape_key(key)}={_escape_key(tags[key])}")

    fields = ",".join(
        f"{_escape_key(key)}={_format_field_value(value)}"
        for key, value in sorted(point.fields.items())
    )

    return f"{','.join(parts)} {fields} {epoch_seconds(point.time)}"
