from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from unittest import mock

import requests

from git_receipt.config import StatsConfig
from git_receipt.github_api import GitHubFetcher, GitHubSession, UpstreamTimeout
from git_receipt.models import RepositorySummary
from git_receipt.stats import StatsAggregator, count_recent_commits, most_active_day, rank_languages

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)  # a Monday


def _repo(name: str, language: str | None = None, stars: int = 0, forks: int = 0, age_days: int = 1) -> RepositorySummary:
    return RepositorySummary(
        name=name,
        stars=stars,
        forks=forks,
        language=language,
        updated_at=NOW - timedelta(days=age_days),
    )


class CommitFetcher:
    def __init__(self, history: dict) -> None:
        self.history = history
        self.calls: list[tuple[str, str, datetime]] = []

    def fetch_commits(self, username: str, repo: str, since: datetime) -> list[datetime]:
        self.calls.append((username, repo, since))
        result = self.history.get(repo, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class RankLanguagesTests(unittest.TestCase):
    def test_ties_keep_first_seen_order(self) -> None:
        repos = [_repo("a", "Go"), _repo("b", "Go"), _repo("c", "Python"), _repo("d", "Go"), _repo("e", "Rust")]
        self.assertEqual(rank_languages(repos), ("Go", "Python", "Rust"))

    def test_limit_and_missing_languages(self) -> None:
        repos = [
            _repo("a", "Rust"),
            _repo("b", None),
            _repo("c", "C"),
            _repo("d", "Python"),
            _repo("e", "Python"),
            _repo("f", "Go"),
        ]
        self.assertEqual(rank_languages(repos), ("Python", "Rust", "C"))

    def test_case_sensitive(self) -> None:
        repos = [_repo("a", "go"), _repo("b", "Go"), _repo("c", "Go")]
        self.assertEqual(rank_languages(repos), ("Go", "go"))


class ActivityTests(unittest.TestCase):
    def test_most_active_day(self) -> None:
        wednesday = datetime(2026, 10, 14, 9, tzinfo=timezone.utc)
        friday = datetime(2026, 10, 16, 9, tzinfo=timezone.utc)
        self.assertEqual(most_active_day([wednesday, friday, wednesday]), "Wednesday")

    def test_tie_resolves_in_calendar_order(self) -> None:
        friday = datetime(2026, 10, 16, 9, tzinfo=timezone.utc)
        tuesday = datetime(2026, 10, 13, 9, tzinfo=timezone.utc)
        self.assertEqual(most_active_day([friday, tuesday]), "Tuesday")

    def test_no_commits(self) -> None:
        self.assertEqual(most_active_day([]), "Unknown")

    def test_recent_commit_window(self) -> None:
        since = NOW - timedelta(days=30)
        stamps = [NOW - timedelta(days=1), NOW - timedelta(days=1), NOW - timedelta(days=29), NOW - timedelta(days=31)]
        self.assertEqual(count_recent_commits(stamps, since), 3)


class StatsAggregatorTests(unittest.TestCase):
    def test_empty_input(self) -> None:
        stats = StatsAggregator(clock=lambda: NOW).aggregate("octocat", [])
        self.assertEqual(stats.total_stars, 0)
        self.assertEqual(stats.total_forks, 0)
        self.assertEqual(stats.repo_count, 0)
        self.assertEqual(stats.top_languages_label, "No data")
        self.assertEqual(stats.most_active_day, "Unknown")
        self.assertEqual(stats.commits_30d, 0)

    def test_totals_include_repos_without_language(self) -> None:
        repos = [_repo("a", "Go", stars=5, forks=1), _repo("b", None, stars=7, forks=2)]
        stats = StatsAggregator(clock=lambda: NOW).aggregate("octocat", repos)
        self.assertEqual(stats.total_stars, 12)
        self.assertEqual(stats.total_forks, 3)
        self.assertEqual(stats.repo_count, 2)
        self.assertEqual(stats.top_languages_label, "Go")

    def test_no_commit_data(self) -> None:
        fetcher = CommitFetcher({})
        stats = StatsAggregator(fetcher, clock=lambda: NOW).aggregate("octocat", [_repo("a", "Go")])
        self.assertEqual(stats.most_active_day, "Unknown")
        self.assertEqual(stats.commits_30d, 0)

    def test_failed_history_does_not_abort(self) -> None:
        wednesday = datetime(2026, 10, 14, 9, tzinfo=timezone.utc)
        fetcher = CommitFetcher(
            {
                "broken": UpstreamTimeout("slow"),
                "good": [wednesday, wednesday, NOW - timedelta(days=45)],
            }
        )
        repos = [_repo("broken", "Go", stars=3), _repo("good", "Python", stars=4)]
        stats = StatsAggregator(fetcher, clock=lambda: NOW).aggregate("octocat", repos)
        self.assertEqual(stats.total_stars, 7)
        self.assertEqual(stats.most_active_day, "Wednesday")
        self.assertEqual(stats.commits_30d, 2)
        self.assertEqual([call[1] for call in fetcher.calls], ["broken", "good"])

    def test_unreadable_commit_page_is_skipped(self) -> None:
        bad = requests.Response()
        bad.status_code = 200
        bad._content = b"<html>bad gateway</html>"
        bad.headers["Content-Type"] = "text/html"
        good = requests.Response()
        good.status_code = 200
        good._content = b'[{"commit": {"author": {"date": "2026-10-14T09:00:00Z"}}}]'
        good.headers["Content-Type"] = "application/json"
        http = mock.Mock(spec=requests.Session)
        http.get.side_effect = [bad, good]
        fetcher = GitHubFetcher(GitHubSession(http=http))

        repos = [_repo("proxied", "Go", stars=3), _repo("fine", "Go", stars=2)]
        stats = StatsAggregator(fetcher, clock=lambda: NOW).aggregate("octocat", repos)

        self.assertEqual(stats.total_stars, 5)
        self.assertEqual(stats.most_active_day, "Wednesday")
        self.assertEqual(stats.commits_30d, 1)
        self.assertEqual(http.get.call_count, 2)

    def test_dormant_repos_are_not_queried(self) -> None:
        fetcher = CommitFetcher({})
        repos = [_repo("fresh", age_days=10), _repo("dormant", age_days=120)]
        StatsAggregator(fetcher, clock=lambda: NOW).aggregate("octocat", repos)
        self.assertEqual(len(fetcher.calls), 1)
        username, repo, since = fetcher.calls[0]
        self.assertEqual((username, repo), ("octocat", "fresh"))
        self.assertEqual(since, NOW - timedelta(days=90))

    def test_configured_windows(self) -> None:
        fetcher = CommitFetcher({"a": [NOW - timedelta(days=2), NOW - timedelta(days=8)]})
        config = StatsConfig(activity_window_days=30, recent_window_days=7, top_languages=1)
        stats = StatsAggregator(fetcher, config, clock=lambda: NOW).aggregate(
            "octocat", [_repo("a", "Go"), _repo("b", "Rust")]
        )
        self.assertEqual(stats.commits_30d, 1)
        self.assertEqual(stats.top_languages, ("Go",))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
