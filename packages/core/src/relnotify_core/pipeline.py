"""Release notification orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from rich.console import Console

from relnotify_core.collect import collect_changes, collect_commits
from relnotify_core.config import NotifierConfig
from relnotify_core.delivery import DeliveryOutcome, deliver
from relnotify_core.git.history import GitHistory
from relnotify_core.models import ChangeRecord, CommitRecord, ReportWindow
from relnotify_core.render import FlatDocument, StructuredDocument, render, short_ref
from relnotify_core.window import resolve_window

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything one run produced. Nothing here outlives the process."""

    window: ReportWindow
    structured: StructuredDocument
    flat: FlatDocument
    changes: list[ChangeRecord] = field(default_factory=list)
    commits: list[CommitRecord] = field(default_factory=list)
    outcome: DeliveryOutcome | None = None  # None when delivery was skipped


def _deployment_ref(config: NotifierConfig, history: GitHistory) -> str | None:
    if config.deployment_ref:
        return config.deployment_ref
    return history.head_sha()


def prepare(
    config: NotifierConfig,
    history: GitHistory | None = None,
    client=None,
    now: datetime | None = None,
) -> PipelineResult:
    """Resolve the window, collect both sources and render. No delivery.

    Stages run one after another; each only sees the output of the one
    before it.
    """
    history = history if history is not None else GitHistory()
    deployment_ref = _deployment_ref(config, history)

    console.print(f"Release notes: repo={config.repository} ref={short_ref(deployment_ref)}")

    window = resolve_window(
        config.repository,
        head_ref=deployment_ref,
        history=history,
        now=now,
        lookback_days=config.lookback_days,
    )
    if window.has_baseline:
        console.print(f"Collecting changes since release {window.marker}: {window.since}")
    else:
        console.print(f"No release tag found. Collecting changes since: {window.since}")

    changes = collect_changes(
        config.repository,
        window,
        token=config.api_token,
        client=client,
        page_size=config.page_size,
    )
    commits = collect_commits(window, history=history)
    console.print(f"Collected {len(changes)} merged PR(s) and {len(commits)} commit(s).")

    structured, flat = render(
        window,
        changes,
        commits,
        config.repository,
        deployment_ref=deployment_ref,
        title=config.title,
        display_limit=config.display_limit,
        description_limit=config.description_limit,
    )
    return PipelineResult(window=window, structured=structured, flat=flat, changes=changes, commits=commits)


def run_pipeline(
    config: NotifierConfig,
    history: GitHistory | None = None,
    client=None,
    session=None,
    now: datetime | None = None,
    send: bool = True,
) -> PipelineResult:
    """Run one release notification end to end and return what happened.

    Delivery failures are reported in ``result.outcome`` and the log, never
    raised: the notification is advisory.
    """
    result = prepare(config, history=history, client=client, now=now)

    if not send:
        console.print("[yellow]Dry run: not posting to the webhook.[/yellow]")
        console.print(result.flat.text, markup=False, highlight=False)
        return result

    result.outcome = deliver(
        result.structured,
        result.flat,
        config.webhook_url,
        session=session,
        timeout=config.request_timeout,
        signals=config.rejection_signals,
    )
    if not result.outcome.delivered:
        logger.warning(
            "Release notes for %s were not delivered (HTTP %s).", config.repository, result.outcome.final_status
        )
    return result
