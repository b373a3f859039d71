"""
logging_utils.py

Small logging helpers shared by the CLI and the sync orchestrator.

Output goes through Typer's echo so it behaves the same under the real
terminal and under typer.testing.CliRunner. There is no logging framework:
a one-shot batch job run by a scheduler only needs predictable lines on
stdout/stderr, which the scheduler captures.
"""

import typer


def log_verbose(message: str, verbose: bool) -> None:
    """
    Print a high-level progress message when verbose mode is enabled.

    Messages should be short, plain-English descriptions of what the
    pipeline is doing (e.g. "Resolving sync cursor...").
    """
    if verbose:
        typer.echo(message)


def log_debug(message: str, debug: bool) -> None:
    """Print a diagnostic line prefixed with [debug] when debug mode is on."""
    if debug:
        typer.echo(f"[debug] {message}")


def log_warning(message: str) -> None:
    """Always printed, on stderr."""
    typer.echo(f"warning: {message}", err=True)
