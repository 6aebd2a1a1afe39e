from datetime import datetime, timezone

import pytest

from app.schemas.insights import GitHubUser, Insights, LanguageDistribution
from app.services.scoring import (
    account_age_years,
    activity_points,
    calculate_profile_score,
    community_points,
    grade_for,
    profile_points,
    repository_points,
    skill_points,
)

from conftest import make_repo

NOW = datetime(2025, 6, 1)


def make_insights(user=None, repos_count=10, stars=(100, 10, 1), described=3, languages=5, topics=10):
    user_data = {
        "login": "octocat",
        "name": "The Octocat",
        "bio": "Mascot",
        "location": "SF",
        "company": "@github",
        "blog": "https://github.blog",
        "twitter_username": "octocat",
        "followers": 120,
        "following": 20,
        "public_gists": 5,
        "created_at": "2011-01-25T18:44:36Z",
    }
    user_data.update(user or {})
    top_starred = [
        make_repo(f"r{i}", stars=count, description="desc" if i < described else None)
        for i, count in enumerate(stars)
    ]
    return Insights(
        user=GitHubUser.model_validate(user_data),
        repos_count=repos_count,
        languages=LanguageDistribution(percentages=[(f"L{i}", 1.0) for i in range(languages)]),
        topics=[(f"t{i}", 1) for i in range(topics)],
        top_starred=top_starred,
    )


def test_full_profile_breakdown():
    insights = make_insights()
    assert profile_points(insights) == 20
    # 10 repos, 111 stars, 3 described -> 10 + 10 + 6
    assert repository_points(insights) == 26
    assert skill_points(insights) == 25
    assert community_points(insights) == 10
    # 14 years -> 5, 10 repos / 14 years -> floor(0.714 / 5 * 10) = 1
    assert activity_points(insights, NOW) == 6

    score = calculate_profile_score(insights, now=NOW)
    assert score.score == 87
    assert score.grade == "A"


def test_empty_profile_scores_zero():
    insights = Insights(user=GitHubUser(login="ghost"))
    score = calculate_profile_score(insights, now=NOW)
    assert score.score == 0
    assert score.grade == "F"


def test_profile_fields_only_count_when_present():
    insights = make_insights(user={"bio": "", "company": None, "twitter_username": None})
    assert profile_points(insights) == 20 - 5 - 3 - 2


@pytest.mark.parametrize(
    "stars, expected",
    [((100,), 10), ((99,), 7), ((50,), 7), ((49,), 5), ((10,), 5), ((9,), 0), ((0,), 0)],
)
def test_star_points_are_stepped(stars, expected):
    insights = make_insights(repos_count=0, stars=stars, described=0)
    assert repository_points(insights) == expected


@pytest.mark.parametrize("followers, expected", [(100, 5), (50, 4), (49, 2), (10, 2), (9, 0), (0, 0)])
def test_follower_points_are_stepped(followers, expected):
    insights = make_insights(user={"followers": followers, "following": 0, "public_gists": 0})
    assert community_points(insights) == expected


def test_linear_parts_floor_and_cap():
    insights = make_insights(languages=2, topics=25)
    # floor(2/5 * 13) = 5, topics capped at 12
    assert skill_points(insights) == 17


def test_activity_needs_repos_and_age():
    young = make_insights(user={"created_at": "2025-01-01T00:00:00Z"})
    assert activity_points(young, NOW) == 0

    no_repos = make_insights(repos_count=0)
    assert activity_points(no_repos, NOW) == 5

    prolific = make_insights(repos_count=30, user={"created_at": "2020-01-01T00:00:00Z"})
    # 5 years -> 5, 6 repos/year -> capped 10
    assert activity_points(prolific, NOW) == 15


def test_score_is_always_in_range():
    huge = make_insights(
        repos_count=10_000,
        stars=(10**6, 10**6, 10**6),
        languages=50,
        topics=50,
        user={"followers": 10**6, "following": 10**6, "public_gists": 10**6},
    )
    score = calculate_profile_score(huge, now=NOW)
    assert 0 <= score.score <= 100
    assert score.grade == grade_for(score.score)


@pytest.mark.parametrize(
    "field, values",
    [
        ("followers", [0, 5, 10, 30, 50, 75, 100, 500]),
        ("following", [0, 3, 10, 19, 20, 40]),
        ("public_gists", [0, 1, 4, 5, 9]),
    ],
)
def test_score_never_drops_when_community_counts_grow(field, values):
    scores = [calculate_profile_score(make_insights(user={field: v}), now=NOW).score for v in values]
    assert scores == sorted(scores)


def test_score_never_drops_when_stars_or_repos_grow():
    by_stars = [calculate_profile_score(make_insights(stars=(s,)), now=NOW).score for s in (0, 9, 10, 49, 50, 99, 100, 900)]
    assert by_stars == sorted(by_stars)
    by_repos = [calculate_profile_score(make_insights(repos_count=n), now=NOW).score for n in (1, 3, 5, 9, 10, 40, 100)]
    assert by_repos == sorted(by_repos)


@pytest.mark.parametrize(
    "score, grade",
    [
        (100, "A+"), (90, "A+"), (89, "A"), (85, "A"), (84, "A-"), (80, "A-"),
        (75, "B+"), (70, "B"), (65, "B-"), (60, "C+"), (55, "C"), (50, "C-"),
        (45, "D+"), (40, "D"), (35, "D-"), (34, "F"), (0, "F"),
    ],
)
def test_grade_ladder(score, grade):
    assert grade_for(score) == grade


def test_account_age_years():
    created = datetime(2020, 1, 1, tzinfo=timezone.utc)
    assert account_age_years(created, datetime(2022, 1, 1)) == 2
    assert account_age_years(created, datetime(2020, 12, 30)) == 0
    assert account_age_years(None, NOW) == 0
    assert account_age_years(datetime(2030, 1, 1), NOW) == 0
