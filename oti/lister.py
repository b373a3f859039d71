"""
Filesystem note lister.

Walks `<vault>/<notes_dir>` recursively and yields (identifier, text) for
every Markdown file. The identifier is the file's POSIX path relative to
the notes directory; it is used for diagnostics and for the duplicate-date
tie-break, never as a lookup key.
"""

from pathlib import Path
from typing import Iterator, Optional

from oti.errors import NoteListingError
from oti.types import ListingErrorHandler, NoteSource

NOTE_SUFFIX = ".md"


def build_notes_path(vault_path: str, notes_dir: str) -> Path:
    return Path(vault_path) / notes_dir


def list_notes(
    notes_dir: Path, on_error: Optional[ListingErrorHandler] = None
) -> Iterator[NoteSource]:
    """
    Yield (identifier, raw_text) for every `*.md` file below `notes_dir`.

    Raises
    ------
    NoteListingError
        If `notes_dir` does not exist or is not a directory. Raised on the
        first iteration, since this is a generator.

    A single file that cannot be read or decoded is passed to `on_error`
    and skipped.
    """
    if not notes_dir.is_dir():
        raise NoteListingError(f"notes directory not found: {notes_dir}")

    try:
        paths = sorted(
            p for p in notes_dir.rglob(f"*{NOTE_SUFFIX}") if p.is_file()
        )
    except OSError as e:
        raise NoteListingError(f"could not list {notes_dir}: {e}") from e

    for path in paths:
        identifier = path.relative_to(notes_dir).as_posix()
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            if on_error is not None:
                on_error(identifier, f"unreadable: {e}")
            continue

        yield identifier, text
