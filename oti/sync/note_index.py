"""
Date index over a vault's daily notes.

Consumes (source_identifier, raw_text) pairs, parses each one and builds a
mapping date → TagSet. Two rules keep the index usable on messy vaults:

    • a note that fails to parse is skipped with a warning; one bad file
      never aborts the run
    • when several notes claim the same date, the lexicographically
      smallest source identifier wins and the clash is recorded

Parsing is independent per note and may run on a thread pool. The merge
below is single-threaded and sorts before resolving ties, so the result
does not depend on listing order or on which worker finished first.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from itertools import groupby
from typing import Callable, Dict, Iterable, List, Tuple, Union

from oti.errors import ParseError
from oti.parsers.daily_note import parse_daily_note
from oti.types import DuplicateDate, IndexWarning, NoteSource, ParsedNote, TagSet

NoteParser = Callable[[str, str], ParsedNote]


@dataclass
class NoteIndex:
    tags_by_date: Dict[date, TagSet] = field(default_factory=dict)
    sources_by_date: Dict[date, str] = field(default_factory=dict)
    warnings: List[IndexWarning] = field(default_factory=list)
    duplicates: List[DuplicateDate] = field(default_factory=list)


def _parse_one(
    source: NoteSource, parser: NoteParser
) -> Union[ParsedNote, IndexWarning]:
    source_identifier, text = source
    try:
        return parser(text, source_identifier)
    except ParseError as e:
        return IndexWarning(
            source_identifier=source_identifier,
            reason=f"{type(e).__name__}: {e}",
        )


def build_note_index(
    sources: Iterable[NoteSource],
    parser: NoteParser = parse_daily_note,
    workers: int = 1,
) -> NoteIndex:
    """
    Parse every note and index the results by date.

    Parameters
    ----------
    sources : iterable of (source_identifier, raw_text)
        Consumed lazily when workers == 1.
    parser : callable
        Injected for tests; defaults to parse_daily_note.
    workers : int
        Number of parsing threads. 1 parses inline.
    """
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda s: _parse_one(s, parser), sources))
    else:
        outcomes = [_parse_one(source, parser) for source in sources]

    index = NoteIndex()
    parsed: List[ParsedNote] = []

    for outcome in outcomes:
        if isinstance(outcome, IndexWarning):
            index.warnings.append(outcome)
        else:
            parsed.append(outcome)

    index.warnings.sort(key=lambda w: w.source_identifier)

    # Sort by (date, source) so the first note of each group is the winner.
    parsed.sort(key=lambda note: (note.date, note.source_identifier))

    for note_date, group in groupby(parsed, key=lambda note: note.date):
        notes: Tuple[ParsedNote, ...] = tuple(group)
        winner = notes[0]

        index.tags_by_date[note_date] = winner.tags
        index.sources_by_date[note_date] = winner.source_identifier

        if len(notes) > 1:
            index.duplicates.append(
                DuplicateDate(
                    date=note_date,
                    kept=winner.source_identifier,
                    discarded=tuple(n.source_identifier for n in notes[1:]),
                )
            )

    return index
