from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .ttl import (
    DEFAULT_TTL,
    INACTIVE_FOLLOWERS_THRESHOLD,
    INACTIVE_TTL,
    POPULAR_FOLLOWERS_THRESHOLD,
    POPULAR_REPOS_THRESHOLD,
    POPULAR_TTL,
    TTLPolicy,
)


DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


@dataclass(slots=True)
class GitHubConfig:
    api_key_env: str = "GITHUB_TOKEN"
    ping_timeout: float = 5.0
    profile_timeout: float = 10.0
    repos_timeout: float = 20.0
    commits_timeout: float = 25.0


@dataclass(slots=True)
class CacheConfig:
    max_cost: int = 1_000_000
    repo_weight: int = 100
    workers: int = 4


@dataclass(slots=True)
class StatsConfig:
    activity_window_days: int = 90
    recent_window_days: int = 30
    top_languages: int = 3


@dataclass(slots=True)
class OutputConfig:
    directory: Optional[Path] = None


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(slots=True)
class AppConfig:
    github: GitHubConfig = field(default_factory=GitHubConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    ttl: TTLPolicy = field(default_factory=TTLPolicy)
    stats: StatsConfig = field(default_factory=StatsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _minutes(raw: Dict[str, Any], key: str, default: timedelta) -> timedelta:
    if key not in raw:
        return default
    return timedelta(minutes=float(raw[key]))


def load_config(path: Optional[Path] = None) -> AppConfig:
    config_path = path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return AppConfig()

    with config_path.open("r", encoding="utf-8") as handle:
        raw: Dict[str, Any] = yaml.safe_load(handle) or {}

    github_raw = raw.get("github", {})
    cache_raw = raw.get("cache", {})
    ttl_raw = raw.get("ttl", {})
    stats_raw = raw.get("stats", {})
    output_raw = raw.get("output", {})
    logging_raw = raw.get("logging", {})

    output_dir = output_raw.get("directory")

    config = AppConfig(
        github=GitHubConfig(
            api_key_env=str(github_raw.get("api_key_env", "GITHUB_TOKEN")),
            ping_timeout=float(github_raw.get("ping_timeout", 5.0)),
            profile_timeout=float(github_raw.get("profile_timeout", 10.0)),
            repos_timeout=float(github_raw.get("repos_timeout", 20.0)),
            commits_timeout=float(github_raw.get("commits_timeout", 25.0)),
        ),
        cache=CacheConfig(
            max_cost=int(cache_raw.get("max_cost", 1_000_000)),
            repo_weight=int(cache_raw.get("repo_weight", 100)),
            workers=int(cache_raw.get("workers", 4)),
        ),
        ttl=TTLPolicy(
            popular_followers=int(ttl_raw.get("popular_followers", POPULAR_FOLLOWERS_THRESHOLD)),
            popular_repos=int(ttl_raw.get("popular_repos", POPULAR_REPOS_THRESHOLD)),
            inactive_followers=int(ttl_raw.get("inactive_followers", INACTIVE_FOLLOWERS_THRESHOLD)),
            popular_ttl=_minutes(ttl_raw, "popular_minutes", POPULAR_TTL),
            inactive_ttl=_minutes(ttl_raw, "inactive_minutes", INACTIVE_TTL),
            default_ttl=_minutes(ttl_raw, "default_minutes", DEFAULT_TTL),
        ),
        stats=StatsConfig(
            activity_window_days=int(stats_raw.get("activity_window_days", 90)),
            recent_window_days=int(stats_raw.get("recent_window_days", 30)),
            top_languages=int(stats_raw.get("top_languages", 3)),
        ),
        output=OutputConfig(
            directory=Path(output_dir) if output_dir else None,
        ),
        logging=LoggingConfig(
            level=str(logging_raw.get("level", "INFO")).upper(),
        ),
    )

    return config
