"""Borrow a GitHub token from a local `gh auth login` session.

CI runs get GITHUB_TOKEN through the config layer's environment lookup. This
covers local runs, where the token only raises the search rate limit.
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)

GH_TOKEN_COMMAND = ("gh", "auth", "token")


def resolve_gh_cli_token(timeout: float = 5) -> str | None:
    """Return the token stored by the GitHub CLI, or None. Never raises."""
    try:
        result = subprocess.run(list(GH_TOKEN_COMMAND), capture_output=True, text=True, timeout=timeout)
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.debug("gh CLI unavailable (%s); using anonymous API access.", type(e).__name__)
        return None

    token = result.stdout.strip() if result.returncode == 0 else ""
    if not token:
        logger.debug("gh CLI has no session; using anonymous API access.")
        return None
    logger.debug("Resolved GitHub token via gh CLI session.")
    return token
