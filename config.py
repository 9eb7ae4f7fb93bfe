"""Credential and endpoint configuration.

Values come from a YAML file (``~/.config/self-review/config.yml`` unless
``SELF_REVIEW_CONFIG`` points elsewhere), overridden by environment variables.
The resulting ``Config`` is passed explicitly to each pipeline stage.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "self-review" / "config.yml"

CONFIG_KEYS = (
    "github_token",
    "jira_url",
    "jira_username",
    "jira_token",
    "anthropic_api_key",
    "openai_api_key",
)


@dataclass(frozen=True, slots=True)
class Config:
    github_token: str | None = None
    jira_url: str | None = None
    jira_username: str | None = None
    jira_token: str | None = None
    anthropic_api_key: str | None = None
    openai_api_key: str | None = None

    def get(self, key: str) -> str | None:
        """Return a configured value, treating empty strings as absent."""
        value = getattr(self, key)
        return value if value else None

    def has_github(self) -> bool:
        return self.get("github_token") is not None

    def has_jira(self) -> bool:
        return all(self.get(k) for k in ("jira_url", "jira_username", "jira_token"))

    def has_any_source(self) -> bool:
        return self.has_github() or self.has_jira()

    def has_llm(self) -> bool:
        return bool(self.get("anthropic_api_key") or self.get("openai_api_key"))


def config_path() -> Path:
    override = os.getenv("SELF_REVIEW_CONFIG")
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def load_config(path: Path | None = None) -> Config:
    """Load config from YAML, then apply env var overrides.

    A missing or unreadable file is not an error: every key is simply
    unconfigured. Unknown keys in the file are ignored.
    """
    path = path or config_path()
    values: dict[str, str] = {}

    if path.exists():
        try:
            document = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            LOGGER.warning("Ignoring unparsable config file %s: %s", path, exc)
            document = None
        if isinstance(document, dict):
            for key in CONFIG_KEYS:
                value = document.get(key)
                if isinstance(value, str) and value.strip():
                    values[key] = value.strip()
        elif document is not None:
            LOGGER.warning("Ignoring config file %s: expected a mapping", path)
    else:
        LOGGER.debug("No config file at %s", path)

    for key in CONFIG_KEYS:
        env_value = os.getenv(key.upper())
        if env_value and env_value.strip():
            values[key] = env_value.strip()

    return Config(**values)
