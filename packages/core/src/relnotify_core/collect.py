"""Collect merged pull requests and local commits for a report window.

Both sources are soft dependencies. A GitHub outage, a rate limit, a
shallow checkout or a missing git binary all produce an empty list and a
warning in the log; "nothing found" is a normal state the renderer knows how
to display.
"""

from __future__ import annotations

import logging

from relnotify_core.gh.search import get_client, search_merged_pulls, to_change_record
from relnotify_core.git.history import GitHistory
from relnotify_core.models import ChangeRecord, CommitRecord, ReportWindow

logger = logging.getLogger(__name__)


def collect_changes(
    repo: str,
    window: ReportWindow,
    token: str | None = None,
    client=None,
    page_size: int = 50,
) -> list[ChangeRecord]:
    """Return PRs merged into ``repo`` after ``window.since``, in API order.

    Never raises. The token only buys rate-limit headroom.
    """
    try:
        gh = client if client is not None else get_client(token, per_page=page_size)
        items = search_merged_pulls(gh, repo, window.since)
    except Exception as e:
        logger.warning("Could not fetch merged PRs (%s): %s", type(e).__name__, e)
        return []

    changes: list[ChangeRecord] = []
    # An injected client does not necessarily honour per_page.
    for item in items[:page_size]:
        try:
            changes.append(to_change_record(item))
        except Exception as e:
            logger.warning("Skipping unreadable search result (%s): %s", type(e).__name__, e)
    return changes


def collect_commits(window: ReportWindow, history: GitHistory | None = None) -> list[CommitRecord]:
    """Return non-merge commits after ``window.since``, newest first. Never raises."""
    history = history if history is not None else GitHistory()
    try:
        return history.commits_since(window.since)
    except Exception as e:
        logger.warning("Could not read local commit history (%s): %s", type(e).__name__, e)
        return []
