"""
Parser for daily notes with YAML frontmatter.

This module turns the raw text of one daily note into a ParsedNote: the
calendar date the note belongs to and the normalized tags from its header.
It is a pure function over its inputs (text + source identifier); reading
files is the lister's job.

Date precedence is an explicit, ordered list of sources:

    1. `date:` field in the frontmatter
    2. a `YYYY-MM-DD` prefix on the file name

The first source that yields a valid calendar date wins.
"""

import re
from datetime import date, datetime
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml
from frontmatter.default_handlers import YAMLHandler

from oti.errors import MalformedDateError, MalformedTagFieldError, MissingFrontmatterError
from oti.parsers.tags import TagField
from oti.types import ParsedNote

# `2024-01-01.md`, `2024-01-01 Monday.md` and `2024-01-01a.md` all match,
# `20240101.md` and `2024-01-011.md` do not.
FILENAME_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?!\d)")

DATE_KEY = "date"
TAG_KEYS = ("tags", "tag")

_YAML = YAMLHandler()


class _NoteLoader(yaml.SafeLoader):
    """SafeLoader that leaves timestamps as text, so `date: 2024-02-30` is
    treated like any other unusable date instead of failing the whole header."""


_NoteLoader.add_constructor(
    "tag:yaml.org,2002:timestamp",
    lambda loader, node: loader.construct_scalar(node),
)


# ============================================================================
# 1 — FRONTMATTER HEADER
# ============================================================================


def read_frontmatter(text: str) -> Dict[str, Any]:
    """
    Return the frontmatter mapping at the start of `text`.

    Raises
    ------
    MissingFrontmatterError
        If the text does not open with a `---` fence, the fence is never
        closed, or the header is not a YAML key-value mapping.
    """
    text = text.lstrip("\ufeff")

    if not _YAML.detect(text):
        raise MissingFrontmatterError("no frontmatter header found")

    try:
        header, _body = _YAML.split(text)
    except ValueError as e:
        raise MissingFrontmatterError("frontmatter header is not closed") from e

    try:
        metadata = _YAML.load(header, Loader=_NoteLoader)
    except yaml.YAMLError as e:
        raise MissingFrontmatterError(f"frontmatter is not valid YAML: {e}") from e

    if metadata is None:
        return {}

    if not isinstance(metadata, dict):
        raise MissingFrontmatterError("frontmatter is not a key-value mapping")

    return metadata


# ============================================================================
# 2 — DATE SOURCES
# ============================================================================


def date_from_value(value: Any) -> Optional[date]:
    """Coerce a frontmatter `date:` value; YAML may already have parsed it."""
    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        candidate = value.strip()
        try:
            return date.fromisoformat(candidate)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(candidate.replace("Z", "+00:00")).date()
        except ValueError:
            return None

    return None


def date_from_filename(source_identifier: str) -> Optional[date]:
    name = PurePosixPath(source_identifier.replace("\\", "/")).name
    match = FILENAME_DATE_RE.match(name)
    if not match:
        return None

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def resolve_note_date(metadata: Dict[str, Any], source_identifier: str) -> date:
    attempts: List[Tuple[str, Callable[[], Optional[date]]]] = [
        ("frontmatter", lambda: date_from_value(metadata.get(DATE_KEY))),
        ("filename", lambda: date_from_filename(source_identifier)),
    ]

    for _source, attempt in attempts:
        resolved = attempt()
        if resolved is not None:
            return resolved

    raise MalformedDateError(
        f"no valid date in frontmatter `{DATE_KEY}` or file name {source_identifier!r}"
    )


# ============================================================================
# 3 — PARSE A SINGLE NOTE
# ============================================================================


def parse_daily_note(text: str, source_identifier: str) -> ParsedNote:
    """
    Parse one daily note into (date, tags).

    A header without any tag key is normal and yields an empty TagSet; the
    date still counts as processed downstream.

    Raises
    ------
    MissingFrontmatterError, MalformedDateError, MalformedTagFieldError
        Each carries `source_identifier` for the index warning.
    """
    try:
        metadata = read_frontmatter(text)
        note_date = resolve_note_date(metadata, source_identifier)

        raw_tags = None
        for key in TAG_KEYS:
            if key in metadata:
                raw_tags = metadata[key]
                break
        tag_field = TagField.from_value(raw_tags)

    except (MissingFrontmatterError, MalformedDateError, MalformedTagFieldError) as e:
        e.source_identifier = source_identifier
        raise

    return ParsedNote(
        date=note_date,
        tags=tag_field.to_tag_set(),
        source_identifier=source_identifier,
    )
