from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .models import Profile

POPULAR_FOLLOWERS_THRESHOLD = 1000
POPULAR_REPOS_THRESHOLD = 50
INACTIVE_FOLLOWERS_THRESHOLD = 10

POPULAR_TTL = timedelta(minutes=15)
INACTIVE_TTL = timedelta(hours=2)
DEFAULT_TTL = timedelta(minutes=30)


@dataclass(frozen=True, slots=True)
class TTLPolicy:
    popular_followers: int = POPULAR_FOLLOWERS_THRESHOLD
    popular_repos: int = POPULAR_REPOS_THRESHOLD
    inactive_followers: int = INACTIVE_FOLLOWERS_THRESHOLD
    popular_ttl: timedelta = POPULAR_TTL
    inactive_ttl: timedelta = INACTIVE_TTL
    default_ttl: timedelta = DEFAULT_TTL


DEFAULT_POLICY = TTLPolicy()


def compute_ttl(profile: Profile, policy: TTLPolicy = DEFAULT_POLICY) -> timedelta:
    if profile.followers > policy.popular_followers or profile.public_repos > policy.popular_repos:
        return policy.popular_ttl
    if profile.public_repos == 0 and profile.followers < policy.inactive_followers:
        return policy.inactive_ttl
    return policy.default_ttl
