"""
parse_cli.py

Typer command group for checking how a single note will be read:

    oti parse note <path>

Prints the resolved date and tags, or the parse error that would make the
sync skip the note. Useful when a day is missing from the dashboard.
"""

import json
from pathlib import Path

import typer

from oti.errors import ParseError
from oti.parsers import parse_daily_note

parse_app = typer.Typer(help="Inspect how notes are parsed, without touching the store.")


@parse_app.command("note")
def parse_note(
    path: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="Path to a daily note.",
    ),
) -> None:
    """Parse one note and print its date and tags as JSON."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        typer.echo(f"UnreadableNote: {e}", err=True)
        raise typer.Exit(code=1)

    try:
        note = parse_daily_note(text, path.name)
    except ParseError as e:
        typer.echo(f"{type(e).__name__}: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps({"date": note.date.isoformat(), "tags": list(note.tags)}))
