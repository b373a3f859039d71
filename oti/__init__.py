"""
obsidian-to-influx (oti)

Incrementally syncs the frontmatter tags of daily notes into a timeseries
store. The public entry point for callers is `oti.sync.run_sync`; the
process entry point is the `oti` Typer CLI (oti/cli/main.py).
"""

__version__ = "0.2.0"
