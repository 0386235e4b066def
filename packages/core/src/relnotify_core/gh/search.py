"""GitHub search helpers for merged pull requests."""

from __future__ import annotations

from github import Auth, Github
from github.GithubObject import NotSet

from relnotify_core.models import ChangeRecord
from relnotify_core.sanitize import sanitize, sanitize_timestamp


def get_client(token: str | None = None, timeout: float = 15, per_page: int = 50) -> Github:
    """Return a PyGithub client, anonymous when no token is available.

    Anonymous search is limited to 10 requests per minute, which is plenty
    for one query per release.
    """
    if token:
        return Github(auth=Auth.Token(token), timeout=int(timeout), per_page=per_page)
    return Github(timeout=int(timeout), per_page=per_page)


def build_merged_query(repo: str, since: str) -> str:
    return f"repo:{repo} is:pr is:merged merged:>{since}"


def search_merged_pulls(client: Github, repo: str, since: str) -> list:
    """Return the first page of PRs merged into ``repo`` after ``since``.

    Only page 0 is requested so the whole lookup is a single GET; the page
    size set on the client caps how many items come back.
    """
    return list(client.search_issues(build_merged_query(repo, since)).get_page(0))


def _value(obj, name: str):
    value = getattr(obj, name, None) if obj is not None else None
    return None if value is NotSet else value


def _format_time(value) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        value = value.isoformat()
    return sanitize_timestamp(value)


def to_change_record(item) -> ChangeRecord:
    """Map a search result item to a ChangeRecord.

    Every field is optional on the wire; missing values become 0, "" or
    "unknown" instead of failing the whole collection.
    """
    try:
        number = int(_value(item, "number") or 0)
    except (TypeError, ValueError):
        number = 0

    user = _value(item, "user")
    author = sanitize(_value(user, "login")) or "unknown"

    merged_at = _value(_value(item, "pull_request"), "merged_at") or _value(item, "closed_at")

    return ChangeRecord(
        number=number,
        title=sanitize(_value(item, "title")),
        author=author,
        url=sanitize(_value(item, "html_url")),
        merged_at=_format_time(merged_at),
    )
