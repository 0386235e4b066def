"""Collect, render and post release notes."""

from __future__ import annotations

import click
from rich.console import Console

from relnotify_cli.options import EXIT_OK, build_config, repo_option, sha_option
from relnotify_core.pipeline import run_pipeline

console = Console()


@click.command("notify")
@repo_option
@click.option(
    "--webhook",
    "webhook_url",
    default=None,
    help="Chat webhook URL. Defaults to $TEAMS_WEBHOOK. Without one, notes are printed instead.",
)
@sha_option
@click.option("--dry-run", is_flag=True, help="Render and print the notes without posting them.")
@click.pass_context
def notify_cmd(ctx, repo: str | None, webhook_url: str | None, deployment_ref: str | None, dry_run: bool):
    """Post release notes for the latest changes to a chat webhook.

    The report covers everything since the most recent git tag, or the last
    7 days when the repository has no tags. The rich card is tried first;
    if the webhook rejects it, a plain-text message is sent instead.

    \b
    Environment variables:
      GITHUB_REPOSITORY    owner/name (required unless --repo is given)
      TEAMS_WEBHOOK        webhook URL (optional)
      GITHUB_TOKEN         GitHub token for higher API rate limits (optional)
      GITHUB_SHA           deployed commit shown in the notes (optional)
    """
    config = build_config(ctx, repository=repo, webhook_url=webhook_url, deployment_ref=deployment_ref)

    result = run_pipeline(config, send=not dry_run)

    outcome = result.outcome
    if outcome is not None and outcome.attempts and not outcome.delivered:
        console.print(
            f"[yellow]Warning: release notes were not delivered "
            f"(final HTTP status {outcome.final_status} after {outcome.attempts} attempt(s)).[/yellow]"
        )

    console.print("relnotify completed.")
    ctx.exit(EXIT_OK)
