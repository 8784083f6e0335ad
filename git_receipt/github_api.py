from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from requests import Response
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import GitHubConfig
from .models import Profile, RepositorySummary

API_ROOT = "https://api.github.com"
_USER_AGENT = "git-receipt/0.1"
_PAGE_SIZE = 100

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    pass


class NotFoundError(UpstreamError):
    pass


class UpstreamTimeout(UpstreamError):
    pass


class UpstreamUnavailable(UpstreamError):
    pass


@dataclass(slots=True)
class GitHubSession:
    http: requests.Session
    rate_limited: bool = False

    @classmethod
    def create(cls, token_env: str = "GITHUB_TOKEN") -> "GitHubSession":
        session = requests.Session()
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": _USER_AGENT,
        }
        token = os.getenv(token_env)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        session.headers.update(headers)
        return cls(http=session)

    def close(self) -> None:
        self.http.close()


def _error_message(response: Response) -> str:
    if response.headers.get("Content-Type", "").startswith("application/json"):
        try:
            return str(response.json().get("message", ""))
        except ValueError:
            pass
    return response.text


def _is_rate_limited(response: Response) -> bool:
    if response.status_code == 429:
        return True
    if response.status_code != 403:
        return False
    return response.headers.get("X-RateLimit-Remaining") == "0" or "rate limit" in response.text.lower()


def _raise_for_status(response: Response) -> None:
    if response.status_code < 400:
        return
    message = f"GitHub API request failed: {response.status_code} {_error_message(response)}"
    if response.status_code == 404:
        raise NotFoundError(message)
    if response.status_code >= 500:
        raise UpstreamUnavailable(message)
    raise UpstreamError(message)


@retry(
    retry=retry_if_exception_type(UpstreamUnavailable),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    reraise=True,
)
def _get(session: GitHubSession, url: str, params: Optional[Dict[str, str]] = None, *, timeout: float) -> Response:
    if not url.startswith("http"):
        url = f"{API_ROOT}{url}"
    try:
        response = session.http.get(url, params=params, timeout=timeout)
    except requests.Timeout as error:
        raise UpstreamTimeout(f"GitHub API request timed out after {timeout:g}s: {url}") from error
    except requests.RequestException as error:
        raise UpstreamUnavailable(f"GitHub API unreachable: {error}") from error
    if _is_rate_limited(response):
        session.rate_limited = True
        raise UpstreamUnavailable(f"GitHub API rate limit exceeded: {response.status_code} {_error_message(response)}")
    _raise_for_status(response)
    return response


def _json(response: Response, expected: type) -> Any:
    try:
        payload = response.json()
    except ValueError as error:
        raise UpstreamUnavailable(f"GitHub API returned a non-JSON body: {response.url}") from error
    if not isinstance(payload, expected):
        raise UpstreamUnavailable(f"GitHub API returned an unexpected {type(payload).__name__} body: {response.url}")
    return payload


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _profile_from_payload(payload: Dict[str, Any], captured_at: datetime) -> Profile:
    return Profile(
        login=str(payload.get("login", "")),
        name=payload.get("name") or "",
        followers=int(payload.get("followers") or 0),
        following=int(payload.get("following") or 0),
        public_repos=int(payload.get("public_repos") or 0),
        bio=payload.get("bio") or "",
        location=payload.get("location") or "",
        created_at=_parse_timestamp(payload.get("created_at")),
        html_url=payload.get("html_url") or "",
        captured_at=captured_at,
    )


def _repository_from_payload(payload: Dict[str, Any]) -> RepositorySummary:
    return RepositorySummary(
        name=str(payload.get("name", "")),
        stars=int(payload.get("stargazers_count") or 0),
        forks=int(payload.get("forks_count") or 0),
        language=payload.get("language") or None,
        updated_at=_parse_timestamp(payload.get("updated_at")),
    )


class GitHubFetcher:
    def __init__(self, session: GitHubSession, config: Optional[GitHubConfig] = None) -> None:
        self._session = session
        self._config = config or GitHubConfig()

    @classmethod
    def create(cls, config: Optional[GitHubConfig] = None) -> "GitHubFetcher":
        config = config or GitHubConfig()
        return cls(GitHubSession.create(token_env=config.api_key_env), config)

    @property
    def authenticated(self) -> bool:
        return "Authorization" in self._session.http.headers

    def fetch_profile(self, username: str) -> Profile:
        response = _get(self._session, f"/users/{username}", timeout=self._config.profile_timeout)
        return _profile_from_payload(_json(response, dict), captured_at=datetime.now(timezone.utc))

    def fetch_repositories(self, username: str) -> List[RepositorySummary]:
        repos: List[RepositorySummary] = []
        url: Optional[str] = f"/users/{username}/repos"
        params: Optional[Dict[str, str]] = {
            "per_page": str(_PAGE_SIZE),
            "sort": "updated",
            "direction": "desc",
        }
        while url:
            response = _get(self._session, url, params=params, timeout=self._config.repos_timeout)
            repos.extend(_repository_from_payload(item) for item in _json(response, list))
            url = response.links.get("next", {}).get("url")
            # the next link already carries the query string
            params = None
        logger.debug("Fetched %d repositories for %s", len(repos), username)
        return repos

    def fetch_commits(self, username: str, repo: str, since: datetime) -> List[datetime]:
        params = {
            "author": username,
            "since": since.isoformat(),
            "per_page": str(_PAGE_SIZE),
        }
        response = _get(
            self._session,
            f"/repos/{username}/{repo}/commits",
            params=params,
            timeout=self._config.commits_timeout,
        )
        timestamps: List[datetime] = []
        for item in _json(response, list):
            author = (item.get("commit") or {}).get("author") or {}
            stamp = _parse_timestamp(author.get("date"))
            if stamp is not None:
                timestamps.append(stamp)
        return timestamps

    def check_api_status(self) -> bool:
        try:
            _get(self._session, "/users/github", timeout=self._config.ping_timeout)
        except UpstreamError as error:
            logger.warning("GitHub API status check failed: %s", error)
            return False
        return True

    def close(self) -> None:
        self._session.close()
