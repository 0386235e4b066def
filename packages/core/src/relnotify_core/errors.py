"""Exception hierarchy for relnotify.

Only configuration problems are fatal. Data-source failures are raised by the
low-level readers and absorbed by the collectors; delivery failures never
surface as exceptions at all.
"""

from __future__ import annotations


class RelnotifyError(Exception):
    """Base class for all relnotify errors."""


class ConfigError(RelnotifyError):
    """Configuration is missing or malformed."""


class MissingRepositoryError(ConfigError):
    """The repository identity (owner/name) was not supplied."""


class HistoryUnavailable(RelnotifyError):
    """The local git history could not be read."""
