"""CLI entry point for relnotify.

Commands:
  notify   collect, render and post release notes to the webhook
  preview  render release notes without posting them
  window   show which reporting window a run would use
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from relnotify_cli.commands.notify import notify_cmd
from relnotify_cli.commands.preview import preview_cmd
from relnotify_cli.commands.window import window_cmd


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # urllib3 logs every request at DEBUG, including the webhook URL.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("relnotify"),
    prog_name="relnotify",
)
@click.option(
    "--config",
    "config_path",
    default=".relnotify.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="RELNOTIFY_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Post release notes for a GitHub repository to a chat webhook."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(notify_cmd)
main.add_command(preview_cmd)
main.add_command(window_cmd)
