"""Reductions over a user's repository list: languages, topics and rankings."""
import math
from collections import Counter
from typing import Iterable, Mapping, Optional

from ..schemas.insights import LanguageDistribution, RepoSummary

# Composite "activity" proxy used by most_active
ACTIVITY_WEIGHTS = {
    "open_issues_count": 1.0,
    "forks_count": 0.5,
    "stargazers_count": 0.2,
}


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like JavaScript's Math.round (halves go up, not to even)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _sorted_desc(counts: Mapping[str, float]) -> list[tuple[str, float]]:
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def aggregate_languages(
    repos: Iterable[RepoSummary],
    repo_languages: Optional[Mapping[str, Mapping[str, int]]] = None,
) -> LanguageDistribution:
    """Sum language byte counts across repos and convert them to percentages.

    ``repo_languages`` is keyed by ``owner/name``; repos without an entry
    contribute nothing.
    """
    repo_languages = repo_languages or {}
    totals: Counter = Counter()
    for repo in repos:
        for language, size in (repo_languages.get(repo.key) or {}).items():
            totals[language] += size or 0

    ranked = _sorted_desc(totals)
    grand_total = sum(size for _, size in ranked) or 1
    percentages = [
        (language, round_half_up(size / grand_total * 1000) / 10)
        for language, size in ranked
    ]
    return LanguageDistribution(
        totals=dict(ranked),
        percentages=percentages,
        top3=percentages[:3],
    )


def most_starred(repos: Iterable[RepoSummary], top_n: int = 3) -> list[RepoSummary]:
    return sorted(repos, key=lambda r: r.stargazers_count, reverse=True)[:top_n]


def activity_score(repo: RepoSummary) -> float:
    return sum(getattr(repo, field) * weight for field, weight in ACTIVITY_WEIGHTS.items())


def most_active(repos: Iterable[RepoSummary], top_n: int = 3) -> list[RepoSummary]:
    return sorted(repos, key=activity_score, reverse=True)[:top_n]


def topics_frequency(repos: Iterable[RepoSummary]) -> list[tuple[str, int]]:
    """Count topic tags across repos, most frequent first."""
    freq: Counter = Counter()
    for repo in repos:
        freq.update(repo.topics)
    return _sorted_desc(freq)
