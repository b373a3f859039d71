"""
Sync command-line interface.

This module defines the `sync` command group, mounted in oti/cli/main.py:

    oti sync run [--dry-run] [--verbose] [--debug] [--today YYYY-MM-DD] [--workers N]
    oti sync cursor

The commands stay thin: they load configuration, build the store adapter,
delegate to the orchestrator and turn the outcome into an exit code.

Exit codes:
    0   run finished (rejected points and skipped notes are still a success)
    1   fatal store error, or the notes directory could not be listed
    78  configuration missing or invalid (EX_CONFIG)
"""

from datetime import date, datetime
from functools import partial
from typing import Any, Optional

import typer

from oti.config import STORE_INFLUX, SyncConfig
from oti.errors import ConfigError, NoteListingError, StoreError
from oti.lister import build_notes_path, list_notes
from oti.logging_utils import log_debug, log_verbose, log_warning
from oti.stores import InfluxStore, SupabaseStore
from oti.sync import SyncReport, run_sync
from oti.sync.cursor import resolve_cursor

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 78

sync_app = typer.Typer(
    help=(
        "Sync daily-note tags into the timeseries store.\n\n"
        "Each run asks the store for the newest date already written and "
        "pushes every complete day after it (today is always left out). "
        "Runs are safe to repeat; schedule at most one at a time."
    )
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def load_config() -> SyncConfig:
    return SyncConfig.from_env()


def build_store(config: SyncConfig) -> Any:
    """Create the store adapter selected by OTI_STORE."""
    if config.store == STORE_INFLUX:
        return InfluxStore(
            base_url=config.influx_url,
            database=config.db_name or "",
            measurement=config.measurement,
            timeout=config.timeout,
        )

    return SupabaseStore.from_credentials(
        url=config.supabase_url or "",
        key=config.supabase_key or "",
        measurement=config.measurement,
        table=config.supabase_table,
        timeout=config.timeout,
    )


def open_store(config: SyncConfig) -> Any:
    """build_store(), with settings the SDK refuses reported as exit 78."""
    try:
        return build_store(config)
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)


def close_store(store: Any) -> None:
    close = getattr(store, "close", None)
    if close is not None:
        close()


def print_summary(report: SyncReport) -> None:
    summary = report.to_summary_dict()

    typer.echo("\n=== Sync Summary ===")
    for key in ("state", "cursor", "planned", "attempted", "succeeded", "failed"):
        typer.echo(f"{key}: {summary[key]}")

    for failure in summary["failures"]:
        log_warning(f"write failed for {failure['date']} ({failure['source']}): {failure['error']}")
    for warning in summary["warnings"]:
        log_warning(f"skipped {warning['source']}: {warning['reason']}")
    for duplicate in summary["duplicates"]:
        log_warning(
            f"duplicate date {duplicate['date']}: kept {duplicate['kept']}, "
            f"ignored {', '.join(duplicate['discarded'])}"
        )


def _parse_today(value: Optional[str], config: SyncConfig) -> date:
    if value is None:
        return datetime.now(config.zone).date()
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from e


# ---------------------------------------------------------------------------
# Command: oti sync run
# ---------------------------------------------------------------------------
@sync_app.command("run")
def sync_run(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Compute the plan without writing to the store."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print pipeline progress."),
    debug: bool = typer.Option(False, "--debug", help="Print diagnostic details."),
    today: Optional[str] = typer.Option(
        None, "--today", help="Override the run date (YYYY-MM-DD). Defaults to today in OTI_TIMEZONE."
    ),
    workers: int = typer.Option(1, "--workers", min=1, help="Threads used to parse notes."),
) -> None:
    """Run one incremental sync pass."""
    try:
        config = load_config()
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)

    run_date = _parse_today(today, config)
    notes_path = build_notes_path(config.vault_path, config.notes_dir)

    log_verbose(f"Notes directory: {notes_path}", verbose)
    log_debug(f"store={config.store} measurement={config.measurement} today={run_date}", debug)

    store = open_store(config)
    try:
        report = run_sync(
            partial(list_notes, notes_path),
            store,
            today=run_date,
            measurement=config.measurement,
            tag_marker=config.tag_marker,
            batch_size=config.batch_size,
            workers=workers,
            dry_run=dry_run,
            verbose=verbose,
        )
    except StoreError as e:
        typer.echo(f"Sync failed: {e}", err=True)
        if e.report is not None:
            print_summary(e.report)
        raise typer.Exit(code=EXIT_FAILED)
    except NoteListingError as e:
        typer.echo(f"Sync failed: {e}", err=True)
        raise typer.Exit(code=EXIT_FAILED)
    finally:
        close_store(store)

    if dry_run:
        typer.echo("Dry run: nothing was written.")
    print_summary(report)
    raise typer.Exit(code=EXIT_OK)


# ---------------------------------------------------------------------------
# Command: oti sync cursor
# ---------------------------------------------------------------------------
@sync_app.command("cursor")
def sync_cursor() -> None:
    """Show the latest date already present in the store."""
    try:
        config = load_config()
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)

    store = open_store(config)
    try:
        cursor = resolve_cursor(store)
    except StoreError as e:
        typer.echo(f"Could not resolve cursor: {e}", err=True)
        raise typer.Exit(code=EXIT_FAILED)
    finally:
        close_store(store)

    typer.echo(cursor.isoformat() if cursor else "none (nothing synced yet)")
