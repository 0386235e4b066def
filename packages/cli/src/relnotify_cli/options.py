"""Config resolution shared by every command."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape

from relnotify_core.config import NotifierConfig, load_config
from relnotify_core.errors import ConfigError, MissingRepositoryError

err_console = Console(stderr=True)

# Exit codes. Delivery problems never change the exit status.
EXIT_OK = 0
EXIT_MISSING_REPOSITORY = 2


def repo_option(f):
    return click.option(
        "--repo",
        default=None,
        help="GitHub repository in owner/name format. Defaults to $GITHUB_REPOSITORY.",
    )(f)


def sha_option(f):
    return click.option(
        "--sha",
        "deployment_ref",
        default=None,
        help="Deployed commit or ref. Defaults to $GITHUB_SHA, then the local HEAD.",
    )(f)


def build_config(ctx: click.Context, **overrides) -> NotifierConfig:
    """Merge file, CLI and environment settings into a NotifierConfig.

    A missing repository exits with EXIT_MISSING_REPOSITORY before any
    network call is made.
    """
    from relnotify_cli.auth import resolve_gh_cli_token

    config_path = (ctx.obj or {}).get("config_path", ".relnotify.yml")
    try:
        config = load_config(config_path, cli_overrides=overrides)
    except ConfigError as e:
        raise click.ClickException(str(e))

    if not config.get("github_token"):
        config["github_token"] = resolve_gh_cli_token()

    try:
        return NotifierConfig.from_dict(config)
    except MissingRepositoryError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        ctx.exit(EXIT_MISSING_REPOSITORY)
    except ConfigError as e:
        raise click.ClickException(str(e))
