"""
Tag field resolution and normalization.

Frontmatter is loosely typed: `tags` may be missing, a single scalar, or a
list of scalars. That shape is resolved exactly once, at parse time, into a
TagField variant; later stages only ever see a normalized TagSet.

Normalization rules:
    • Strip whitespace
    • Drop empty values
    • Deduplicate case-sensitively, keeping first-appearance order
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Iterable, List, Tuple

from oti.errors import MalformedTagFieldError
from oti.types import TagSet

# YAML can hand back any of these for an unquoted scalar (e.g. `tags: 2024`).
SCALAR_TYPES = (str, int, float, bool, date)


def normalize_tags(raw_tags: Iterable[str]) -> TagSet:
    """
    Normalize raw tag strings into a TagSet.

    No case folding or prefix handling is applied: `Work` and `work` are two
    different tags, as are `#work` and `work`.
    """
    seen: List[str] = []

    for tag in raw_tags:
        if not tag:
            continue

        normalized = tag.strip()
        if normalized and normalized not in seen:
            seen.append(normalized)

    return tuple(seen)


class TagFieldKind(Enum):
    ABSENT = "absent"
    SCALAR = "scalar"
    SEQUENCE = "sequence"


@dataclass(frozen=True)
class TagField:
    kind: TagFieldKind
    values: Tuple[str, ...] = ()

    @classmethod
    def from_value(cls, value: Any) -> "TagField":
        """
        Classify a raw frontmatter value.

        Raises
        ------
        MalformedTagFieldError
            If the value is a mapping, or a sequence holding anything other
            than scalars.
        """
        if value is None:
            return cls(TagFieldKind.ABSENT)

        if isinstance(value, SCALAR_TYPES):
            return cls(TagFieldKind.SCALAR, (str(value),))

        if isinstance(value, (list, tuple)):
            items: List[str] = []
            for item in value:
                if item is None:
                    continue
                if not isinstance(item, SCALAR_TYPES):
                    raise MalformedTagFieldError(
                        f"tags list contains a {type(item).__name__}, expected scalars"
                    )
                items.append(str(item))
            return cls(TagFieldKind.SEQUENCE, tuple(items))

        raise MalformedTagFieldError(
            f"tags must be a scalar or a list of scalars, got {type(value).__name__}"
        )

    def to_tag_set(self) -> TagSet:
        return normalize_tags(self.values)
