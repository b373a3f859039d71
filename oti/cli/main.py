"""
Root entrypoint for the obsidian-to-influx CLI.

Defines the top-level `oti` command and mounts the sub-apps:

    • oti/cli/sync_cli.py   →  `oti sync ...`
    • oti/cli/parse_cli.py  →  `oti parse ...`

The tool is meant to be started by a scheduler (cron, a container
entrypoint) as a one-shot batch job:

    oti sync run
"""

from dotenv import load_dotenv
import typer

from .parse_cli import parse_app
from .sync_cli import sync_app

# Load environment variables from a .env file, if present
load_dotenv()

cli = typer.Typer(
    help=(
        "Sync daily-note frontmatter tags into a timeseries store.\n\n"
        "  oti sync run       push every complete, unsynced day\n"
        "  oti sync cursor    show the newest day already in the store\n"
        "  oti parse note     check how one note is read"
    )
)

cli.add_typer(sync_app, name="sync")
cli.add_typer(parse_app, name="parse")

if __name__ == "__main__":
    cli()
