"""Records passed between the pipeline stages.

Every record is created fresh for one run and thrown away after delivery.
Text fields are already sanitized by the time a record exists.
"""

from __future__ import annotations

from dataclasses import dataclass

SHORT_HASH_LENGTH = 7


@dataclass(frozen=True)
class ReportWindow:
    """The lower bound of the reporting period and where to view the full diff."""

    since: str  # ISO-8601, whitelisted to [0-9T:+-Z]
    compare_url: str
    has_baseline: bool
    marker: str | None = None  # release tag name when has_baseline is True


@dataclass(frozen=True)
class ChangeRecord:
    """A merged pull request."""

    number: int
    title: str
    author: str
    url: str
    merged_at: str = ""


@dataclass(frozen=True)
class CommitRecord:
    """A non-merge commit from the local history."""

    full_hash: str
    short_hash: str
    author: str
    committed_at: str
    subject: str


def shorten_sha(ref: str) -> str:
    """Return the 7-character prefix of a hex commit SHA; other refs pass through."""
    value = ref.strip()
    if len(value) > SHORT_HASH_LENGTH and all(c in "0123456789abcdefABCDEF" for c in value):
        return value[:SHORT_HASH_LENGTH]
    return value
