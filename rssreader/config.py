"""Configuration for the RSS reader service."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from rssreader.feeds import split_urls


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


@dataclass
class Settings:
    """Runtime settings. Environment first, CLI flags override in jobs/serve.py."""

    host: str = "0.0.0.0"
    port: int = 8080
    data_dir: str = "data"
    feeds_file: str | None = None
    auto_save: bool = True
    default_feeds: list[str] = field(default_factory=list)
    fetch_timeout_s: float = 10.0

    @property
    def feeds_path(self) -> Path:
        if self.feeds_file:
            return Path(self.feeds_file)
        return Path(self.data_dir) / "feeds.json"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from RSS_* environment variables."""
        return cls(
            host=os.environ.get("RSS_HOST", "0.0.0.0"),
            port=int(os.environ.get("RSS_PORT", "8080")),
            data_dir=os.environ.get("RSS_DATA_DIR", "data"),
            feeds_file=os.environ.get("RSS_FEEDS_FILE") or None,
            auto_save=_env_bool("RSS_AUTOSAVE", True),
            default_feeds=split_urls(os.environ.get("RSS_DEFAULT_FEEDS", "")),
            fetch_timeout_s=float(os.environ.get("RSS_FETCH_TIMEOUT", "10.0")),
        )
