from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .cache import AdaptiveCache
from .config import load_config
from .github_api import GitHubFetcher, UpstreamError
from .report import render_receipt, write_receipt

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-receipt",
        description="Print a shopping-style receipt for GitHub accounts.",
    )
    parser.add_argument("usernames", nargs="*", help="GitHub usernames, e.g. octocat")
    parser.add_argument("--config", type=Path, help="Path to settings YAML file", default=None)
    parser.add_argument("--output-dir", dest="output_dir", type=Path, help="Write receipts into this directory instead of stdout")
    parser.add_argument("--metrics", action="store_true", help="Print cache metrics as JSON when done")
    parser.add_argument("--ping", action="store_true", help="Check that the GitHub API is reachable")
    return parser


def app(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.usernames and not args.ping:
        parser.error("at least one username is required")

    config = load_config(args.config)
    if args.output_dir:
        config.output.directory = args.output_dir

    logging.basicConfig(
        level=config.logging.level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    fetcher = GitHubFetcher.create(config.github)
    if not fetcher.authenticated:
        logger.info("No %s set, using unauthenticated GitHub API limits", config.github.api_key_env)

    failures = 0
    try:
        if args.ping:
            status = "ok" if fetcher.check_api_status() else "error"
            print(json.dumps({"status": "ok", "github_api": status}))
            if status != "ok":
                failures += 1

        with AdaptiveCache.from_config(fetcher, config) as cache:
            for username in args.usernames:
                try:
                    entry = cache.get_user_data(username)
                except UpstreamError as exc:
                    logger.error("User '%s' not available: %s", username, exc)
                    failures += 1
                    continue
                if config.output.directory:
                    path = write_receipt(entry, config.output.directory)
                    print(f"Receipt generated: {path}")
                else:
                    sys.stdout.write(render_receipt(entry))

            if args.metrics:
                print(json.dumps(cache.get_cache_metrics().as_dict(), indent=2))
    finally:
        fetcher.close()

    return 1 if failures else 0


def main() -> None:  # pragma: no cover
    sys.exit(app(sys.argv[1:]))


if __name__ == "__main__":  # pragma: no cover
    main()
