from __future__ import annotations

import random
import string
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .models import CacheEntry

SERVERS = ("Grace Hopper", "Alan Turing", "Ada Lovelace", "Tim Berners-Lee", "Linus Torvalds")
_CODE_ALPHABET = string.ascii_uppercase + string.digits
_WIDTH = 40


@dataclass(slots=True)
class ReceiptData:
    username: str
    formatted_date: str
    order_number: str
    customer_name: str
    public_repos: int
    total_stars: int
    total_forks: int
    followers: int
    following: int
    top_languages: str
    most_active_day: str
    commits_30d: int
    contribution_score: int
    server_name: str
    time_string: str
    coupon_code: str
    auth_code: str
    card_year: int


def contribution_score(entry: CacheEntry) -> int:
    profile = entry.profile
    return profile.public_repos * 3 + profile.followers * 2 + entry.stats.total_stars


def build_receipt_data(entry: CacheEntry, now: datetime, rng: random.Random) -> ReceiptData:
    profile = entry.profile
    stats = entry.stats
    return ReceiptData(
        username=profile.login,
        formatted_date=now.strftime("%A, %B %d, %Y"),
        order_number=f"{rng.randrange(10000):04d}",
        customer_name=profile.name or profile.login,
        public_repos=profile.public_repos,
        total_stars=stats.total_stars,
        total_forks=stats.total_forks,
        followers=profile.followers,
        following=profile.following,
        top_languages=stats.top_languages_label,
        most_active_day=stats.most_active_day,
        commits_30d=stats.commits_30d,
        contribution_score=contribution_score(entry),
        server_name=rng.choice(SERVERS),
        time_string=now.strftime("%I:%M:%S %p").lstrip("0"),
        coupon_code="".join(rng.choice(_CODE_ALPHABET) for _ in range(6)),
        auth_code=f"{rng.randrange(1_000_000):06d}",
        card_year=now.year,
    )


def render_receipt(entry: CacheEntry, now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> str:
    data = build_receipt_data(entry, now or datetime.now(), rng or random.Random())
    lines: List[str] = []
    lines.append("GITHUB RECEIPT".center(_WIDTH))
    lines.append(data.formatted_date.center(_WIDTH))
    lines.append(f"ORDER #{data.order_number}".center(_WIDTH))
    lines.append("")
    lines.append(f"CUSTOMER: {data.customer_name}")
    lines.append(f"@{data.username}")
    lines.append("-" * _WIDTH)
    lines.extend(
        _row(label, value)
        for label, value in (
            ("REPOSITORIES", data.public_repos),
            ("STARS EARNED", data.total_stars),
            ("REPO FORKS", data.total_forks),
            ("FOLLOWERS", data.followers),
            ("FOLLOWING", data.following),
            ("TOP LANGUAGES", data.top_languages),
            ("MOST ACTIVE DAY", data.most_active_day),
            ("COMMITS (30D)", data.commits_30d),
        )
    )
    lines.append("-" * _WIDTH)
    lines.append(_row("CONTRIBUTION SCORE", data.contribution_score))
    lines.append("")
    lines.append(f"Served by: {data.server_name}")
    lines.append(data.time_string)
    lines.append("")
    lines.append(f"COUPON CODE: {data.coupon_code}")
    lines.append(f"CARD #: **** **** **** {data.card_year}")
    lines.append(f"AUTH CODE: {data.auth_code}")
    lines.append("")
    lines.append("THANK YOU FOR CODING!".center(_WIDTH))
    return "\n".join(lines) + "\n"


def write_receipt(entry: CacheEntry, directory: Path, **kwargs) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    receipt_path = directory / f"{entry.profile.login}-receipt.txt"
    receipt_path.write_text(render_receipt(entry, **kwargs), encoding="utf-8")
    return receipt_path


def _row(label: str, value: object) -> str:
    text = str(value)
    padding = max(1, _WIDTH - len(label) - len(text))
    return f"{label}{' ' * padding}{text}"
