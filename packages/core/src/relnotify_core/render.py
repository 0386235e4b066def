"""Render collected records into the two notification formats.

Both formats are built from one list of logical lines so they can never
disagree about what was released:

- StructuredDocument: one Adaptive Card TextBlock per line, plus OpenUrl
  actions. No markdown emphasis inside blocks; Teams renders some of it
  inconsistently when it is mixed with links in a single block.
- FlatDocument: the same lines joined with real newlines, posted as
  ``{"text": ...}`` when the card is rejected.
"""

from __future__ import annotations

from dataclasses import dataclass

from relnotify_core.models import SHORT_HASH_LENGTH, ChangeRecord, CommitRecord, ReportWindow, shorten_sha
from relnotify_core.sanitize import sanitize
from relnotify_core.window import GITHUB_URL

DEFAULT_TITLE = "Release Notes"
DISPLAY_LIMIT = 5
DESCRIPTION_LIMIT = 200
ELLIPSIS = "..."

CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"
CARD_SCHEMA = "http://adaptivecards.io/schemas/adaptive-card.json"
CARD_VERSION = "1.3"

HEADING = "heading"
META = "meta"
SECTION = "section"
ITEM = "item"
NOTICE = "notice"

# TextBlock styling per block kind.
_BLOCK_STYLE: dict[str, dict] = {
    HEADING: {"size": "Medium", "weight": "Bolder"},
    META: {"isSubtle": True, "spacing": "None"},
    SECTION: {"weight": "Bolder", "separator": True},
    ITEM: {"spacing": "Small"},
    NOTICE: {"isSubtle": True},
}


@dataclass(frozen=True)
class Block:
    kind: str
    text: str


@dataclass(frozen=True)
class Action:
    title: str
    url: str


@dataclass(frozen=True)
class StructuredDocument:
    """Ordered content blocks and link actions for the rich card."""

    blocks: tuple[Block, ...] = ()
    actions: tuple[Action, ...] = ()

    def to_card(self) -> dict:
        body = []
        for block in self.blocks:
            body.append({"type": "TextBlock", "text": block.text, "wrap": True, **_BLOCK_STYLE.get(block.kind, {})})
        return {
            "$schema": CARD_SCHEMA,
            "type": "AdaptiveCard",
            "version": CARD_VERSION,
            "body": body,
            "actions": [{"type": "Action.OpenUrl", "title": a.title, "url": a.url} for a in self.actions],
        }

    def to_payload(self) -> dict:
        """Wrap the card in the message envelope Teams incoming webhooks expect."""
        return {
            "type": "message",
            "attachments": [{"contentType": CARD_CONTENT_TYPE, "contentUrl": None, "content": self.to_card()}],
        }


@dataclass(frozen=True)
class FlatDocument:
    """Plain-text rendering with literal line breaks."""

    text: str

    def to_payload(self) -> dict:
        return {"text": self.text}


def truncate(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    """Cap ``text`` at ``limit`` characters, ending in ``...`` when cut.

    Whitespace before the cut point is trimmed, so a cut result can be
    shorter than ``limit``. It is never longer.
    """
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)].rstrip() + ELLIPSIS


def short_ref(ref: str | None) -> str:
    """Return the displayable form of a deployment reference."""
    value = sanitize(ref).replace("\n", " ")
    if not value:
        return "unknown"
    return shorten_sha(value)


def _single_line(text: str) -> str:
    return sanitize(text).replace("\n", " ")


def _change_line(change: ChangeRecord, description_limit: int) -> str:
    title = truncate(_single_line(change.title) or "(untitled)", description_limit)
    line = f"#{change.number} {title} by {_single_line(change.author) or 'unknown'}"
    url = _single_line(change.url)
    return f"{line} - {url}" if url else line


def _commit_line(repo: str, commit: CommitRecord, description_limit: int) -> str:
    short = _single_line(commit.short_hash)[:SHORT_HASH_LENGTH] or _single_line(commit.full_hash)[:SHORT_HASH_LENGTH]
    subject = truncate(_single_line(commit.subject) or "(no subject)", description_limit)
    author = _single_line(commit.author) or "unknown"
    return f"{short} {subject} by {author} - {GITHUB_URL}/{repo}/commit/{short}"


def _section_header(label: str, shown: int, total: int) -> str:
    return f"{label} (showing {shown}/{total})"


def build_blocks(
    window: ReportWindow,
    changes: list[ChangeRecord],
    commits: list[CommitRecord],
    repo: str,
    deployment_ref: str | None = None,
    title: str = DEFAULT_TITLE,
    display_limit: int = DISPLAY_LIMIT,
    description_limit: int = DESCRIPTION_LIMIT,
) -> tuple[list[Block], list[Action]]:
    """Build the logical lines shared by both document formats."""
    repo = _single_line(repo)
    since = _single_line(window.since)
    shown_changes = changes[:display_limit]
    shown_commits = commits[:display_limit]

    if window.has_baseline and window.marker:
        since_line = f"Since: {since} (release {_single_line(window.marker)})"
    else:
        since_line = f"Since: {since} (no release tag, default lookback)"

    blocks = [
        Block(HEADING, _single_line(title) or DEFAULT_TITLE),
        Block(META, f"Repository: {repo}"),
        Block(META, f"Deployed commit: {short_ref(deployment_ref)}"),
        Block(META, since_line),
        Block(META, f"Summary: {len(changes)} merged PR(s), {len(commits)} commit(s)"),
    ]

    if not changes and not commits:
        blocks.append(Block(NOTICE, "No activity found in this window."))

    blocks.append(Block(SECTION, _section_header("Merged pull requests", len(shown_changes), len(changes))))
    if shown_changes:
        blocks.extend(Block(ITEM, _change_line(c, description_limit)) for c in shown_changes)
    else:
        blocks.append(Block(NOTICE, f"No merged changes found since {since}."))

    blocks.append(Block(SECTION, _section_header("Commits", len(shown_commits), len(commits))))
    if shown_commits:
        blocks.extend(Block(ITEM, _commit_line(repo, c, description_limit)) for c in shown_commits)
    else:
        blocks.append(Block(NOTICE, f"No commits found since {since}."))

    actions = [
        Action("View full comparison", _single_line(window.compare_url)),
        Action("View repository", f"{GITHUB_URL}/{repo}"),
    ]
    return blocks, actions


def _flatten(blocks: list[Block], actions: list[Action]) -> str:
    lines: list[str] = []
    for block in blocks:
        if block.kind == SECTION:
            lines.append("")
        lines.append(block.text)
    lines.append("")
    lines.extend(f"{a.title}: {a.url}" for a in actions)
    return "\n".join(lines)


def render(
    window: ReportWindow,
    changes: list[ChangeRecord],
    commits: list[CommitRecord],
    repo: str,
    deployment_ref: str | None = None,
    title: str = DEFAULT_TITLE,
    display_limit: int = DISPLAY_LIMIT,
    description_limit: int = DESCRIPTION_LIMIT,
) -> tuple[StructuredDocument, FlatDocument]:
    """Return the rich card and the plain-text fallback for one report. Pure."""
    blocks, actions = build_blocks(
        window,
        changes,
        commits,
        repo,
        deployment_ref=deployment_ref,
        title=title,
        display_limit=display_limit,
        description_limit=description_limit,
    )
    return StructuredDocument(blocks=tuple(blocks), actions=tuple(actions)), FlatDocument(_flatten(blocks, actions))
