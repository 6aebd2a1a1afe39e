"""
Profile score: a 0-100 rating of a GitHub profile with a letter grade.

Five weighted parts:
1. Profile completeness (20)
2. Repository quality (30)
3. Skills & diversity (25)
4. Community engagement (10)
5. Activity & consistency (15)

Linear parts award floor(value / target * max) points below the target and
the full max at or above it. Stepped parts check thresholds from the top down
and fall back to a linear scale below the lowest step.
"""
import math
from datetime import datetime, timezone
from typing import Optional

from ..core.database import utcnow
from ..schemas.insights import Insights, ProfileScore

SCORE_WEIGHTS = {
    "profile": {
        "name": 5,
        "bio": 5,
        "location": 3,
        "company": 3,
        "blog": 2,
        "twitter_username": 2,
    },
    "repos": {
        "count": {"target": 10, "max": 10},
        "stars": {"steps": [(100, 10), (50, 7), (10, 5)], "target": 100, "max": 10},
        "described": {"target": 5, "max": 10},
    },
    "skills": {
        "languages": {"target": 5, "max": 13},
        "topics": {"target": 10, "max": 12},
    },
    "community": {
        "followers": {"steps": [(100, 5), (50, 4), (10, 2)], "target": 100, "max": 5},
        "following": {"target": 20, "max": 3},
        "gists": {"target": 5, "max": 2},
    },
    "activity": {
        "account_age": {"target": 2, "max": 5},
        "repos_per_year": {"target": 5, "max": 10},
    },
}

GRADE_LADDER = [
    (90, "A+"),
    (85, "A"),
    (80, "A-"),
    (75, "B+"),
    (70, "B"),
    (65, "B-"),
    (60, "C+"),
    (55, "C"),
    (50, "C-"),
    (45, "D+"),
    (40, "D"),
    (35, "D-"),
]

SECONDS_PER_YEAR = 60 * 60 * 24 * 365


def linear_points(value: float, rule: dict) -> int:
    if value >= rule["target"]:
        return rule["max"]
    return math.floor((value / rule["target"]) * rule["max"])


def stepped_points(value: float, rule: dict) -> int:
    for threshold, points in rule["steps"]:
        if value >= threshold:
            return points
    return math.floor((value / rule["target"]) * rule["max"])


def grade_for(score: float) -> str:
    for threshold, grade in GRADE_LADDER:
        if score >= threshold:
            return grade
    return "F"


def account_age_years(created_at: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Whole 365-day years between account creation and ``now`` (naive UTC)."""
    if created_at is None:
        return 0
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(timezone.utc).replace(tzinfo=None)
    now = now or utcnow()
    return max(0, math.floor((now - created_at).total_seconds() / SECONDS_PER_YEAR))


def profile_points(insights: Insights) -> int:
    user = insights.user
    return sum(
        points
        for field, points in SCORE_WEIGHTS["profile"].items()
        if getattr(user, field)
    )


def repository_points(insights: Insights) -> int:
    rules = SCORE_WEIGHTS["repos"]
    total_stars = sum(repo.stargazers_count for repo in insights.top_starred)
    described = sum(1 for repo in insights.top_starred if repo.description)
    return (
        linear_points(insights.repos_count, rules["count"])
        + stepped_points(total_stars, rules["stars"])
        + linear_points(described, rules["described"])
    )


def skill_points(insights: Insights) -> int:
    rules = SCORE_WEIGHTS["skills"]
    return linear_points(len(insights.languages.percentages), rules["languages"]) + linear_points(
        len(insights.topics), rules["topics"]
    )


def community_points(insights: Insights) -> int:
    rules = SCORE_WEIGHTS["community"]
    user = insights.user
    return (
        stepped_points(user.followers, rules["followers"])
        + linear_points(user.following, rules["following"])
        + linear_points(user.public_gists, rules["gists"])
    )


def activity_points(insights: Insights, now: Optional[datetime] = None) -> int:
    rules = SCORE_WEIGHTS["activity"]
    age = account_age_years(insights.user.created_at, now)
    points = linear_points(age, rules["account_age"])
    if insights.repos_count > 0 and age > 0:
        repos_per_year = insights.repos_count / max(age, 1)
        points += linear_points(repos_per_year, rules["repos_per_year"])
    return points


def calculate_profile_score(insights: Insights, now: Optional[datetime] = None) -> ProfileScore:
    """Score an assembled profile. ``now`` defaults to the current UTC time."""
    total = (
        profile_points(insights)
        + repository_points(insights)
        + skill_points(insights)
        + community_points(insights)
        + activity_points(insights, now)
    )
    score = min(100, max(0, round(total)))
    return ProfileScore(score=score, grade=grade_for(score))
