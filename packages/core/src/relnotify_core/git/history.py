"""Read release tags and commits from the local git checkout.

PyGithub can only see what has been pushed; the notifier runs inside the
checkout that was just deployed, so tags and commits are read with the git
CLI directly.

``git log`` output is parsed with control characters as separators. Records
are NUL-terminated (``-z``) because git subjects are C strings and can never
contain NUL. Fields are split on the ASCII unit separator with a bounded
split, so the subject is always the last field and keeps any separator-like
bytes it happens to contain.
"""

from __future__ import annotations

import logging
import subprocess
from datetime import datetime

from relnotify_core.errors import HistoryUnavailable
from relnotify_core.models import SHORT_HASH_LENGTH, CommitRecord
from relnotify_core.sanitize import sanitize, sanitize_timestamp

logger = logging.getLogger(__name__)

FIELD_SEP = "\x1f"
RECORD_SEP = "\x00"

# %H full hash, %h abbreviated hash, %an author name, %cI strict ISO-8601
# committer date, %s subject.
_LOG_FORMAT = "%H%x1f%h%x1f%an%x1f%cI%x1f%s"
_FIELD_COUNT = 5


def parse_iso8601(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp as emitted by git or GitHub, or return None."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _is_after(committed_at: str, since: datetime | None) -> bool:
    if since is None:
        return True
    when = parse_iso8601(committed_at)
    if when is None or when.tzinfo is None or since.tzinfo is None:
        # Cannot compare reliably; trust git's own --since filter.
        return True
    return when > since


def parse_log_output(raw: str, since: str | None = None) -> list[CommitRecord]:
    """Turn ``git log -z --format=<_LOG_FORMAT>`` output into CommitRecords.

    Malformed records (fewer than five fields, empty hash) are skipped.
    When ``since`` is given, commits not strictly after it are dropped.
    """
    since_dt = parse_iso8601(since) if since else None
    commits: list[CommitRecord] = []

    for record in raw.split(RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        fields = record.split(FIELD_SEP, _FIELD_COUNT - 1)
        if len(fields) < _FIELD_COUNT:
            logger.debug("Skipping malformed git log record: %r", record[:80])
            continue

        full_hash, _abbrev, author, committed_at, subject = fields
        full_hash = full_hash.strip()
        if not full_hash:
            continue
        committed_at = sanitize_timestamp(committed_at)
        if not _is_after(committed_at, since_dt):
            continue

        commits.append(
            CommitRecord(
                full_hash=full_hash,
                # %h grows past seven characters in large repositories; the
                # documents always show exactly seven.
                short_hash=full_hash[:SHORT_HASH_LENGTH],
                author=sanitize(author) or "unknown",
                committed_at=committed_at,
                subject=sanitize(subject),
            )
        )

    return commits


class GitHistory:
    """Thin wrapper around the git CLI for one working tree."""

    def __init__(self, cwd: str | None = None, timeout: float = 10):
        self.cwd = cwd
        self.timeout = timeout

    def _run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.cwd,
                capture_output=True,
                timeout=self.timeout,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired, OSError) as e:
            raise HistoryUnavailable(f"git {args[0]} failed: {e}") from e
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise HistoryUnavailable(f"git {args[0]} exited {result.returncode}: {stderr}")
        return result.stdout.decode("utf-8", errors="replace")

    def latest_tag(self) -> str | None:
        """Return the most recent tag reachable from HEAD, or None if there is none."""
        try:
            tag = self._run("describe", "--tags", "--abbrev=0").strip()
        except HistoryUnavailable as e:
            # `git describe` exits non-zero when no tag exists.
            logger.debug("No release tag found: %s", e)
            return None
        return tag or None

    def tag_timestamp(self, tag: str) -> str | None:
        """Return the committer date of the commit ``tag`` points to (ISO-8601)."""
        try:
            value = self._run("log", "-1", "--format=%cI", tag, "--").strip()
        except HistoryUnavailable as e:
            logger.debug("Could not read timestamp for tag %s: %s", tag, e)
            return None
        return value or None

    def head_sha(self) -> str | None:
        try:
            return self._run("rev-parse", "HEAD").strip() or None
        except HistoryUnavailable:
            return None

    def commits_since(self, since: str) -> list[CommitRecord]:
        """Return non-merge commits strictly after ``since``, newest first.

        Raises HistoryUnavailable when git cannot be run in this directory.
        """
        raw = self._run(
            "log",
            "-z",
            "--no-merges",
            f"--since={since}",
            f"--format={_LOG_FORMAT}",
        )
        return parse_log_output(raw, since=since)
