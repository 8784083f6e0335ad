"""Concurrent misses on the same username are not coalesced. Every caller runs
its own fetch and the last store wins.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from threading import Lock
from typing import Callable, Optional, Tuple

from cachetools import LFUCache

from .config import AppConfig
from .models import CacheEntry, CacheMetrics, Profile, Stats, utc_now
from .stats import StatsAggregator
from .ttl import DEFAULT_POLICY, TTLPolicy, compute_ttl

DEFAULT_MAX_COST = 1_000_000
DEFAULT_REPO_WEIGHT = 100
DEFAULT_WORKERS = 4

logger = logging.getLogger(__name__)


class AdaptiveCache:
    def __init__(
        self,
        fetcher,
        aggregator: Optional[StatsAggregator] = None,
        *,
        policy: TTLPolicy = DEFAULT_POLICY,
        max_cost: int = DEFAULT_MAX_COST,
        repo_weight: int = DEFAULT_REPO_WEIGHT,
        workers: int = DEFAULT_WORKERS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._fetcher = fetcher
        self._aggregator = aggregator or StatsAggregator(fetcher, clock=clock)
        self._policy = policy
        self._repo_weight = repo_weight
        self._clock = clock
        self._store: LFUCache = LFUCache(maxsize=max_cost, getsizeof=self.entry_cost)
        self._store_lock = Lock()
        self._metrics_lock = Lock()
        self._hits = 0
        self._misses = 0
        self._keys_added = 0
        self._cost_added = 0
        self._executor = ThreadPoolExecutor(max_workers=max(2, workers), thread_name_prefix="git-receipt")

    @classmethod
    def from_config(cls, fetcher, config: AppConfig) -> "AdaptiveCache":
        aggregator = StatsAggregator(fetcher, config.stats)
        return cls(
            fetcher,
            aggregator,
            policy=config.ttl,
            max_cost=config.cache.max_cost,
            repo_weight=config.cache.repo_weight,
            workers=config.cache.workers,
        )

    def __enter__(self) -> "AdaptiveCache":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __contains__(self, username: str) -> bool:
        with self._store_lock:
            return username in self._store

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def entry_cost(self, entry: CacheEntry) -> int:
        return (
            len(entry.profile.login)
            + len(entry.profile.name)
            + len(entry.stats.top_languages_label)
            + self._repo_weight * entry.stats.repo_count
        )

    def get_user_data(self, username: str) -> CacheEntry:
        with self._store_lock:
            cached: Optional[CacheEntry] = self._store.get(username)

        if cached is not None:
            if cached.is_fresh(self._clock()):
                self._record(hits=1)
                logger.debug("Cache HIT for user: %s", username)
                return cached
            logger.info("Cache EXPIRED for user: %s", username)

        self._record(misses=1)
        logger.info("Cache MISS for user: %s", username)

        profile, stats = self._fetch_fresh(username)
        entry = CacheEntry(
            profile=profile,
            stats=stats,
            cached_at=self._clock(),
            ttl=compute_ttl(profile, self._policy),
        )
        self._admit(username, entry)
        return entry

    def get_cache_metrics(self) -> CacheMetrics:
        with self._metrics_lock:
            return CacheMetrics(
                hits=self._hits,
                misses=self._misses,
                keys_added=self._keys_added,
                cost_added=self._cost_added,
            )

    def _fetch_fresh(self, username: str) -> Tuple[Profile, Stats]:
        profile_future = self._executor.submit(self._fetcher.fetch_profile, username)
        stats_future = self._executor.submit(self._collect_stats, username)
        try:
            profile = profile_future.result()
            stats = stats_future.result()
        except Exception:
            stats_future.cancel()
            raise
        return profile, stats

    def _collect_stats(self, username: str) -> Stats:
        repos = self._fetcher.fetch_repositories(username)
        return self._aggregator.aggregate(username, repos)

    def _admit(self, username: str, entry: CacheEntry) -> bool:
        cost = self.entry_cost(entry)
        with self._store_lock:
            try:
                self._store[username] = entry
            except ValueError:
                # larger than the whole budget; drop any stale copy as well
                self._store.pop(username, None)
                admitted = False
            else:
                admitted = True

        if not admitted:
            logger.info("Cache REJECTED user: %s (cost %d over budget %d)", username, cost, self._store.maxsize)
            return False

        self._record(keys_added=1, cost_added=cost)
        logger.info("Cached user: %s for %s (cost %d)", username, entry.ttl, cost)
        return True

    def _record(self, hits: int = 0, misses: int = 0, keys_added: int = 0, cost_added: int = 0) -> None:
        with self._metrics_lock:
            self._hits += hits
            self._misses += misses
            self._keys_added += keys_added
            self._cost_added += cost_added
