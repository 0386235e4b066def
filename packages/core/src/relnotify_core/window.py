"""Reporting window resolution.

The window starts at the last release tag when the checkout has one, and at
a fixed lookback from now otherwise. Resolution never fails: everything
downstream needs a window, so every git problem degrades to the lookback.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import quote

from relnotify_core.git.history import GitHistory
from relnotify_core.models import ReportWindow, shorten_sha
from relnotify_core.sanitize import sanitize_timestamp

logger = logging.getLogger(__name__)

GITHUB_URL = "https://github.com"
DEFAULT_LOOKBACK_DAYS = 7

_UTC_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def lookback_timestamp(now: datetime | None = None, days: int = DEFAULT_LOOKBACK_DAYS) -> str:
    """Return ``now - days`` in UTC as ``YYYY-MM-DDTHH:MM:SSZ``.

    A naive ``now`` is taken to be UTC already.
    """
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return (current.astimezone(timezone.utc) - timedelta(days=days)).strftime(_UTC_FORMAT)


def _head(ref: str | None) -> str:
    # Full SHAs are never put in outbound links.
    return shorten_sha(ref) if ref else "HEAD"


def compare_url(repo: str, base: str, head: str | None = None) -> str:
    return f"{GITHUB_URL}/{repo}/compare/{quote(base, safe='/')}...{_head(head)}"


def history_url(repo: str, head: str | None = None) -> str:
    return f"{GITHUB_URL}/{repo}/commits/{_head(head)}"


def _baseline_since(history: GitHistory) -> tuple[str, str] | None:
    """Return (tag, whitelisted timestamp) for the latest tag, or None."""
    try:
        tag = history.latest_tag()
        if not tag:
            return None
        since = sanitize_timestamp(history.tag_timestamp(tag))
    except Exception as e:
        logger.warning("Could not read release tags (%s): %s", type(e).__name__, e)
        return None
    if not since:
        logger.warning("Tag %s has no readable timestamp; using the default lookback.", tag)
        return None
    return tag, since


def resolve_window(
    repo: str,
    head_ref: str | None = None,
    history: GitHistory | None = None,
    now: datetime | None = None,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> ReportWindow:
    """Work out where the report starts.

    With a release tag, ``since`` is the committer date of the tagged commit
    and the compare link diffs the tag against ``head_ref``. Without one,
    ``since`` is ``lookback_days`` before now (UTC) and the link points at the
    commit history instead.
    """
    history = history if history is not None else GitHistory()
    baseline = _baseline_since(history)

    if baseline is not None:
        tag, since = baseline
        return ReportWindow(
            since=since,
            compare_url=compare_url(repo, tag, head_ref),
            has_baseline=True,
            marker=tag,
        )

    return ReportWindow(
        since=sanitize_timestamp(lookback_timestamp(now, lookback_days)),
        compare_url=history_url(repo, head_ref),
        has_baseline=False,
    )
