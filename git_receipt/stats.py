from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .config import StatsConfig
from .github_api import UpstreamError
from .models import UNKNOWN_DAY, RepositorySummary, Stats, utc_now

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

logger = logging.getLogger(__name__)


def rank_languages(repos: Iterable[RepositorySummary], limit: int = 3) -> Tuple[str, ...]:
    counts = Counter(repo.language for repo in repos if repo.language)
    return tuple(language for language, _ in counts.most_common(limit))


def most_active_day(timestamps: Iterable[datetime]) -> str:
    counts = Counter(WEEKDAYS[stamp.weekday()] for stamp in timestamps)
    if not counts:
        return UNKNOWN_DAY
    # max() keeps the first maximum, so ties resolve Monday-first
    return max(WEEKDAYS, key=lambda day: counts.get(day, 0))


def count_recent_commits(timestamps: Iterable[datetime], since: datetime) -> int:
    per_day = Counter(stamp.date() for stamp in timestamps if stamp >= since)
    return sum(per_day.values())


class StatsAggregator:
    def __init__(
        self,
        fetcher=None,
        config: Optional[StatsConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._fetcher = fetcher
        self._config = config or StatsConfig()
        self._clock = clock

    def aggregate(self, username: str, repos: Sequence[RepositorySummary]) -> Stats:
        now = self._clock()
        activity_since = now - timedelta(days=self._config.activity_window_days)
        recent_since = now - timedelta(days=self._config.recent_window_days)

        timestamps = self._collect_commits(username, repos, activity_since) if self._fetcher else []
        return Stats(
            total_stars=sum(repo.stars for repo in repos),
            total_forks=sum(repo.forks for repo in repos),
            repo_count=len(repos),
            top_languages=rank_languages(repos, self._config.top_languages),
            most_active_day=most_active_day(timestamps),
            commits_30d=count_recent_commits(timestamps, recent_since),
        )

    def _collect_commits(
        self,
        username: str,
        repos: Sequence[RepositorySummary],
        since: datetime,
    ) -> List[datetime]:
        timestamps: List[datetime] = []
        for repo in repos:
            if repo.updated_at is None or repo.updated_at < since:
                continue
            try:
                history = self._fetcher.fetch_commits(username, repo.name, since)
            except UpstreamError as error:
                logger.warning("Skipping commit history for %s/%s: %s", username, repo.name, error)
                continue
            timestamps.extend(stamp for stamp in history if stamp >= since)
        return timestamps
