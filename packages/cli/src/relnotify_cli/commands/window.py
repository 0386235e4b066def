"""Show the reporting window a run would use."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from relnotify_cli.options import build_config, repo_option, sha_option
from relnotify_core.git.history import GitHistory
from relnotify_core.window import resolve_window

console = Console()


@click.command("window")
@repo_option
@sha_option
@click.pass_context
def window_cmd(ctx, repo: str | None, deployment_ref: str | None):
    """Print the start of the reporting window and the comparison link.

    Reads only the local git checkout; no network calls are made.
    """
    config = build_config(ctx, repository=repo, deployment_ref=deployment_ref)
    history = GitHistory()
    head = config.deployment_ref or history.head_sha()

    window = resolve_window(config.repository, head_ref=head, history=history, lookback_days=config.lookback_days)

    table = Table(title=f"Report window: {config.repository}", show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Since", window.since)
    table.add_row("Release tag", window.marker or f"(none, last {config.lookback_days} days)")
    table.add_row("Compare", window.compare_url)
    console.print(table)
