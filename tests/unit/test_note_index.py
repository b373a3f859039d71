"""
Tests for build_note_index().

These tests validate:
    • per-note parse failures become warnings, never exceptions
    • duplicate dates resolve to the smallest source identifier,
      whatever the input order
    • threaded parsing produces the same index as inline parsing
"""

from datetime import date

import pytest

from oti.sync.note_index import build_note_index

NOTE_A = ("2024-01-01a.md", "---\ndate: 2024-01-01\ntags: [from-a]\n---\n")
NOTE_B = ("2024-01-01b.md", "---\ndate: 2024-01-01\ntags: [from-b]\n---\n")


@pytest.mark.parametrize("sources", [[NOTE_A, NOTE_B], [NOTE_B, NOTE_A]])
def test_duplicate_date_keeps_smallest_identifier(sources):
    index = build_note_index(sources)

    assert index.tags_by_date == {date(2024, 1, 1): ("from-a",)}
    assert len(index.duplicates) == 1

    duplicate = index.duplicates[0]
    assert duplicate.date == date(2024, 1, 1)
    assert duplicate.kept == "2024-01-01a.md"
    assert duplicate.discarded == ("2024-01-01b.md",)


def test_malformed_notes_are_skipped_with_warnings():
    sources = [
        ("2024-01-02.md", "---\ntags: ok\n---\n"),
        ("broken.md", "no header here"),
        ("undated.md", "---\ntags: x\n---\n"),
        ("2024-01-04.md", "---\ntags: {x: 1}\n---\n"),
    ]

    index = build_note_index(sources)

    assert index.tags_by_date == {date(2024, 1, 2): ("ok",)}
    assert [w.source_identifier for w in index.warnings] == [
        "2024-01-04.md",
        "broken.md",
        "undated.md",
    ]
    reasons = {w.source_identifier: w.reason for w in index.warnings}
    assert reasons["broken.md"].startswith("MissingFrontmatterError")
    assert reasons["undated.md"].startswith("MalformedDateError")
    assert reasons["2024-01-04.md"].startswith("MalformedTagFieldError")


def test_sources_are_consumed_lazily_from_a_generator():
    def generate():
        yield "2024-01-05.md", "---\ntags: [g]\n---\n"

    index = build_note_index(generate())

    assert index.tags_by_date == {date(2024, 1, 5): ("g",)}
    assert index.sources_by_date == {date(2024, 1, 5): "2024-01-05.md"}


def test_threaded_parsing_matches_inline_parsing():
    sources = [
        (f"2024-02-{day:02d}.md", f"---\ntags: [t{day}]\n---\n") for day in range(1, 29)
    ]
    sources += [NOTE_B, NOTE_A, ("junk.md", "plain text")]

    inline = build_note_index(list(reversed(sources)))
    threaded = build_note_index(sources, workers=4)

    assert threaded.tags_by_date == inline.tags_by_date
    assert threaded.duplicates == inline.duplicates
    assert threaded.warnings == inline.warnings
