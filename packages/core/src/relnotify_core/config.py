from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from relnotify_core.errors import ConfigError, MissingRepositoryError

DEFAULT_CONFIG: dict = {
    "title": "Release Notes",
    "display_limit": 5,
    "description_limit": 200,
    "lookback_days": 7,
    "page_size": 50,  # GitHub search caps per_page at 100
    "request_timeout": 30,
    "rejection_signals": ["required", "invalid", "error"],
}

# Environment variables consulted for keys that are still unset after the
# config file and CLI overrides. Names match what GitHub Actions injects.
ENV_KEYS: dict = {
    "repository": "GITHUB_REPOSITORY",
    "webhook_url": "TEAMS_WEBHOOK",
    "github_token": "GITHUB_TOKEN",
    "deployment_ref": "GITHUB_SHA",
}

_REPO_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def load_config(config_path: str = ".relnotify.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .relnotify.yml in the current directory
      3. CLI argument overrides
      4. Environment variables, for keys none of the above supplied
    """
    config = {**DEFAULT_CONFIG, "rejection_signals": list(DEFAULT_CONFIG["rejection_signals"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping, got {type(file_config).__name__}.")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    for key, env_name in ENV_KEYS.items():
        if not config.get(key):
            config[key] = os.environ.get(env_name) or None

    return config


def _parse_signals(value) -> tuple[str, ...]:
    """Normalise rejection_signals to a tuple of lower-case words.

    A bare string is one word, not a sequence of characters. Blank entries are
    dropped: an empty word matches every response body.
    """
    if not value:
        value = DEFAULT_CONFIG["rejection_signals"]
    elif isinstance(value, str):
        value = [value]
    elif not isinstance(value, (list, tuple)):
        raise ConfigError(f"rejection_signals must be a list of words, got {type(value).__name__}.")

    signals = tuple(str(s).strip().lower() for s in value if s is not None and str(s).strip())
    if not signals:
        raise ConfigError("rejection_signals must contain at least one word.")
    return signals


@dataclass(frozen=True)
class NotifierConfig:
    """Everything one pipeline run needs, resolved up front.

    Only ``repository`` is required. A missing webhook turns delivery into a
    log-only no-op, a missing token means anonymous GitHub API calls, and a
    missing deployment reference is shown as "unknown".
    """

    repository: str
    webhook_url: str | None = None
    api_token: str | None = None
    deployment_ref: str | None = None
    title: str = DEFAULT_CONFIG["title"]
    display_limit: int = DEFAULT_CONFIG["display_limit"]
    description_limit: int = DEFAULT_CONFIG["description_limit"]
    lookback_days: int = DEFAULT_CONFIG["lookback_days"]
    page_size: int = DEFAULT_CONFIG["page_size"]
    request_timeout: float = DEFAULT_CONFIG["request_timeout"]
    rejection_signals: tuple[str, ...] = tuple(DEFAULT_CONFIG["rejection_signals"])

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.repository.split("/", 1)[1]

    @classmethod
    def from_dict(cls, config: dict) -> "NotifierConfig":
        repository = (config.get("repository") or "").strip()
        if not repository:
            raise MissingRepositoryError("GITHUB_REPOSITORY not set; pass --repo or set it in the environment.")
        if not _REPO_RE.match(repository):
            raise MissingRepositoryError(f"Repository must be in owner/name format, got {repository!r}.")

        try:
            display_limit = int(config.get("display_limit", DEFAULT_CONFIG["display_limit"]))
            description_limit = int(config.get("description_limit", DEFAULT_CONFIG["description_limit"]))
            lookback_days = int(config.get("lookback_days", DEFAULT_CONFIG["lookback_days"]))
            page_size = int(config.get("page_size", DEFAULT_CONFIG["page_size"]))
            request_timeout = float(config.get("request_timeout", DEFAULT_CONFIG["request_timeout"]))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        if display_limit < 1:
            raise ConfigError("display_limit must be at least 1.")
        # The ellipsis alone takes three characters.
        if description_limit < 4:
            raise ConfigError("description_limit must be at least 4.")
        if lookback_days < 1:
            raise ConfigError("lookback_days must be at least 1.")
        if not 1 <= page_size <= 100:
            raise ConfigError("page_size must be between 1 and 100.")

        signals = _parse_signals(config.get("rejection_signals"))

        return cls(
            repository=repository,
            webhook_url=config.get("webhook_url") or None,
            api_token=config.get("github_token") or None,
            deployment_ref=config.get("deployment_ref") or None,
            title=config.get("title") or DEFAULT_CONFIG["title"],
            display_limit=display_limit,
            description_limit=description_limit,
            lookback_days=lookback_days,
            page_size=page_size,
            request_timeout=request_timeout,
            rejection_signals=signals,
        )
