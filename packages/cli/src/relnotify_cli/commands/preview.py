"""Render release notes without posting them."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.syntax import Syntax

from relnotify_cli.options import build_config, repo_option, sha_option
from relnotify_core.pipeline import prepare

console = Console()


@click.command("preview")
@repo_option
@sha_option
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "card"]),
    default="text",
    show_default=True,
    help="Print the plain-text fallback or the Adaptive Card JSON payload.",
)
@click.pass_context
def preview_cmd(ctx, repo: str | None, deployment_ref: str | None, output_format: str):
    """Show the release notes a notify run would post."""
    config = build_config(ctx, repository=repo, deployment_ref=deployment_ref)
    result = prepare(config)

    console.print()
    if output_format == "card":
        payload = json.dumps(result.structured.to_payload(), indent=2, ensure_ascii=False)
        console.print(Syntax(payload, "json", word_wrap=True))
    else:
        console.print(result.flat.text, markup=False, highlight=False)
