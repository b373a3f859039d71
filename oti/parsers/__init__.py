"""
Note parsers.

    • parse_daily_note — raw text + source identifier → ParsedNote
    • normalize_tags   — trim / drop empties / dedupe
"""

from .daily_note import parse_daily_note
from .tags import TagField, TagFieldKind, normalize_tags

__all__ = [
    "parse_daily_note",
    "normalize_tags",
    "TagField",
    "TagFieldKind",
]
