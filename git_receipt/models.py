from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

NO_LANGUAGE_DATA = "No data"
UNKNOWN_DAY = "Unknown"


@dataclass(frozen=True, slots=True)
class Profile:
    login: str
    name: str = ""
    followers: int = 0
    following: int = 0
    public_repos: int = 0
    bio: str = ""
    location: str = ""
    created_at: Optional[datetime] = None
    html_url: str = ""
    captured_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class RepositorySummary:
    name: str
    stars: int = 0
    forks: int = 0
    language: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class Stats:
    total_stars: int = 0
    total_forks: int = 0
    repo_count: int = 0
    top_languages: Tuple[str, ...] = ()
    most_active_day: str = UNKNOWN_DAY
    commits_30d: int = 0

    @property
    def top_languages_label(self) -> str:
        if not self.top_languages:
            return NO_LANGUAGE_DATA
        return ", ".join(self.top_languages)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    profile: Profile
    stats: Stats
    cached_at: datetime
    ttl: timedelta

    @property
    def expires_at(self) -> datetime:
        return self.cached_at + self.ttl

    def is_fresh(self, now: datetime) -> bool:
        return now - self.cached_at < self.ttl


@dataclass(frozen=True, slots=True)
class CacheMetrics:
    hits: int = 0
    misses: int = 0
    keys_added: int = 0
    cost_added: int = 0

    @property
    def ratio(self) -> float:
        lookups = self.hits + self.misses
        if not lookups:
            return 0.0
        return self.hits / lookups * 100

    def as_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "ratio": self.ratio,
            "keys_added": self.keys_added,
            "cost_added": self.cost_added,
        }


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
