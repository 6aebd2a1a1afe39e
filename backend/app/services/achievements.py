"""
Achievement catalog and stateless evaluation.

Nothing is persisted: whether an achievement is unlocked is recomputed from
the current metrics on every call, so identical metrics always give an
identical report.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import BaseModel

from ..schemas.insights import Insights
from .analytics import round_half_up
from .scoring import account_age_years

CATEGORY_SCORE = "score"
CATEGORY_STARS = "stars"
CATEGORY_REPOS = "repos"
CATEGORY_FOLLOWERS = "followers"
CATEGORY_LANGUAGES = "languages"
CATEGORY_ACTIVITY = "activity"
CATEGORY_SPECIAL = "special"

UNRANKED = 999999


@dataclass(frozen=True)
class Tier:
    name: str
    color: str
    order: int


BRONZE = Tier("Bronze", "#CD7F32", 1)
SILVER = Tier("Silver", "#C0C0C0", 2)
GOLD = Tier("Gold", "#FFD700", 3)
PLATINUM = Tier("Platinum", "#E5E4E2", 4)
DIAMOND = Tier("Diamond", "#B9F2FF", 5)
LEGENDARY = Tier("Legendary", "#FF6B35", 6)


@dataclass(frozen=True)
class AchievementMetrics:
    score: int = 0
    grade: str = "F"
    total_stars: int = 0
    public_repos: int = 0
    followers: int = 0
    rank: int = UNRANKED
    language_count: int = 0
    weekend_activity: float = 0
    night_activity: int = 0
    morning_activity: int = 0
    active_days: int = 0
    account_age: int = 0


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    icon: str
    category: str
    tier: Tier
    condition: Callable[[AchievementMetrics], bool]
    progress: Callable[[AchievementMetrics], float]
    secret: bool = False


def threshold(
    id: str, name: str, description: str, icon: str, category: str, tier: Tier,
    metric: str, target: float, secret: bool = False,
) -> Achievement:
    """An achievement unlocked once ``metric`` reaches ``target``."""
    return Achievement(
        id=id,
        name=name,
        description=description,
        icon=icon,
        category=category,
        tier=tier,
        condition=lambda m: getattr(m, metric) >= target,
        progress=lambda m: min(getattr(m, metric) / target * 100, 100),
        secret=secret,
    )


ACHIEVEMENTS: list[Achievement] = [
    # Score
    threshold("first_steps", "First Steps", "Reach a profile score of 10", "Baby", CATEGORY_SCORE, BRONZE, "score", 10),
    threshold("getting_started", "Getting Started", "Reach a profile score of 25", "Sprout", CATEGORY_SCORE, BRONZE, "score", 25),
    threshold("skilled_coder", "Skilled Coder", "Reach a profile score of 50", "Code2", CATEGORY_SCORE, SILVER, "score", 50),
    threshold("advanced_developer", "Advanced Developer", "Reach a profile score of 70", "Rocket", CATEGORY_SCORE, GOLD, "score", 70),
    threshold("expert_coder", "Expert Coder", "Reach a profile score of 85", "Trophy", CATEGORY_SCORE, PLATINUM, "score", 85),
    threshold("elite_developer", "Elite Developer", "Reach a perfect score of 95+", "Crown", CATEGORY_SCORE, LEGENDARY, "score", 95),
    # Stars
    threshold("first_star", "First Star", "Get your first star", "Star", CATEGORY_STARS, BRONZE, "total_stars", 1),
    threshold("star_gazer", "Star Gazer", "Collect 50 stars", "Sparkles", CATEGORY_STARS, BRONZE, "total_stars", 50),
    threshold("rising_star", "Rising Star", "Collect 250 stars", "Sparkle", CATEGORY_STARS, SILVER, "total_stars", 250),
    threshold("star_collector", "Star Collector", "Collect 1,000 stars", "Stars", CATEGORY_STARS, GOLD, "total_stars", 1000),
    threshold("supernova", "Supernova", "Collect 5,000 stars", "Zap", CATEGORY_STARS, PLATINUM, "total_stars", 5000),
    threshold("galaxy", "Galaxy", "Collect 10,000 stars", "Orbit", CATEGORY_STARS, DIAMOND, "total_stars", 10000),
    # Repositories
    threshold("hello_world", "Hello World", "Create your first repository", "Package", CATEGORY_REPOS, BRONZE, "public_repos", 1),
    threshold("active_builder", "Active Builder", "Create 10 repositories", "Hammer", CATEGORY_REPOS, BRONZE, "public_repos", 10),
    threshold("prolific_creator", "Prolific Creator", "Create 25 repositories", "Construction", CATEGORY_REPOS, SILVER, "public_repos", 25),
    threshold("project_master", "Project Master", "Create 50 repositories", "Target", CATEGORY_REPOS, GOLD, "public_repos", 50),
    threshold("code_factory", "Code Factory", "Create 100 repositories", "Factory", CATEGORY_REPOS, PLATINUM, "public_repos", 100),
    # Followers
    threshold("first_follower", "First Follower", "Get your first follower", "UserPlus", CATEGORY_FOLLOWERS, BRONZE, "followers", 1),
    threshold("popular_dev", "Popular Dev", "Reach 50 followers", "Users", CATEGORY_FOLLOWERS, SILVER, "followers", 50),
    threshold("community_leader", "Community Leader", "Reach 250 followers", "Award", CATEGORY_FOLLOWERS, GOLD, "followers", 250),
    threshold("influencer", "Influencer", "Reach 1,000 followers", "Megaphone", CATEGORY_FOLLOWERS, PLATINUM, "followers", 1000),
    threshold("celebrity", "Celebrity", "Reach 5,000 followers", "Flame", CATEGORY_FOLLOWERS, DIAMOND, "followers", 5000),
    # Languages
    threshold("monolingual", "Monolingual", "Master 1 programming language", "FileCode", CATEGORY_LANGUAGES, BRONZE, "language_count", 1),
    threshold("bilingual", "Bilingual", "Code in 3 languages", "MessageSquare", CATEGORY_LANGUAGES, BRONZE, "language_count", 3),
    threshold("multilingual", "Multilingual", "Code in 5 languages", "Languages", CATEGORY_LANGUAGES, SILVER, "language_count", 5),
    threshold("polyglot", "Polyglot", "Code in 10 languages", "Globe", CATEGORY_LANGUAGES, GOLD, "language_count", 10),
    threshold("language_master", "Language Master", "Code in 20 languages", "GraduationCap", CATEGORY_LANGUAGES, PLATINUM, "language_count", 20),
    # Activity
    threshold("weekend_warrior", "Weekend Warrior", "Code on weekends", "Palmtree", CATEGORY_ACTIVITY, BRONZE, "weekend_activity", 10),
    threshold("night_owl", "Night Owl", "Code between midnight and 6 AM (your local time)", "Moon", CATEGORY_ACTIVITY, SILVER, "night_activity", 20),
    threshold("early_bird", "Early Bird", "Code between 5 AM and 9 AM (your local time)", "Sunrise", CATEGORY_ACTIVITY, SILVER, "morning_activity", 20),
    threshold("consistent_contributor", "Consistent Contributor", "Be active for 30 days", "Flame", CATEGORY_ACTIVITY, GOLD, "active_days", 30),
    threshold("unstoppable", "Unstoppable", "Be active for 100 days", "Zap", CATEGORY_ACTIVITY, PLATINUM, "active_days", 100),
    threshold("year_round", "Year Round", "Be active for 365 days", "PartyPopper", CATEGORY_ACTIVITY, LEGENDARY, "active_days", 365),
    # Special
    threshold("perfect_score", "Perfectionist", "Achieve a perfect 100 score", "Gem", CATEGORY_SPECIAL, LEGENDARY, "score", 100, secret=True),
    Achievement(
        id="grade_a_plus",
        name="Straight A+",
        description="Achieve Grade A+",
        icon="Diamond",
        category=CATEGORY_SPECIAL,
        tier=DIAMOND,
        condition=lambda m: m.grade == "A+",
        progress=lambda m: 100 if m.grade == "A+" else 0,
    ),
    Achievement(
        id="top_10",
        name="Top 10",
        description="Reach top 10 on the leaderboard",
        icon="Medal",
        category=CATEGORY_SPECIAL,
        tier=GOLD,
        condition=lambda m: m.rank <= 10,
        progress=lambda m: 100 if m.rank <= 10 else max(100 - m.rank, 0),
    ),
    Achievement(
        id="number_one",
        name="#1",
        description="Reach #1 on the leaderboard",
        icon="Crown",
        category=CATEGORY_SPECIAL,
        tier=LEGENDARY,
        condition=lambda m: m.rank == 1,
        progress=lambda m: 100 if m.rank == 1 else 0,
        secret=True,
    ),
    threshold("veteran", "Veteran", "GitHub account older than 5 years", "Shield", CATEGORY_SPECIAL, GOLD, "account_age", 5),
    threshold("ancient", "Ancient", "GitHub account older than 10 years", "Landmark", CATEGORY_SPECIAL, LEGENDARY, "account_age", 10, secret=True),
]


class TierInfo(BaseModel):
    name: str
    color: str
    order: int


class AchievementStatus(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    category: str
    tier: TierInfo
    secret: bool
    progress: int


class AchievementReport(BaseModel):
    unlocked: list[AchievementStatus]
    locked: list[AchievementStatus]
    total: int
    unlocked_count: int
    completion_percentage: int


# Derived activity aggregates

def weekend_activity(insights: Optional[Insights]) -> float:
    if insights is None:
        return 0
    return sum(count for _, count in insights.weekly[:12]) / 4


def night_activity(insights: Optional[Insights]) -> int:
    if insights is None:
        return 0
    return sum(insights.commit_times.hours[0:6])


def morning_activity(insights: Optional[Insights]) -> int:
    if insights is None:
        return 0
    return sum(insights.commit_times.hours[5:10])


def active_days(insights: Optional[Insights]) -> int:
    """Approximate: every week with activity counts as 7 active days."""
    if insights is None:
        return 0
    return 7 * sum(1 for _, count in insights.weekly if count > 0)


def _field(entry: Any, name: str, default: Any) -> Any:
    if entry is None:
        return default
    value = entry.get(name) if isinstance(entry, dict) else getattr(entry, name, None)
    return default if value is None else value


def collect_metrics(
    entry: Any,
    insights: Optional[Insights],
    rank: Optional[int] = None,
    now: Optional[datetime] = None,
) -> AchievementMetrics:
    """Snapshot the metrics achievements are judged on.

    ``entry`` is a leaderboard row (model or dict) supplying score, grade,
    total_stars, public_repos and followers; everything else comes from the
    user's insights.
    """
    created_at = insights.user.created_at if insights else None
    return AchievementMetrics(
        score=_field(entry, "score", 0),
        grade=_field(entry, "grade", "F"),
        total_stars=_field(entry, "total_stars", 0),
        public_repos=_field(entry, "public_repos", 0),
        followers=_field(entry, "followers", 0),
        rank=rank or UNRANKED,
        language_count=len(insights.languages.percentages) if insights else 0,
        weekend_activity=weekend_activity(insights),
        night_activity=night_activity(insights),
        morning_activity=morning_activity(insights),
        active_days=active_days(insights),
        account_age=account_age_years(created_at, now),
    )


def _status(achievement: Achievement, progress: int) -> AchievementStatus:
    tier = achievement.tier
    return AchievementStatus(
        id=achievement.id,
        name=achievement.name,
        description=achievement.description,
        icon=achievement.icon,
        category=achievement.category,
        tier=TierInfo(name=tier.name, color=tier.color, order=tier.order),
        secret=achievement.secret,
        progress=progress,
    )


def evaluate_achievements(
    metrics: AchievementMetrics, catalog: Optional[list[Achievement]] = None
) -> AchievementReport:
    catalog = ACHIEVEMENTS if catalog is None else catalog
    unlocked: list[tuple[Achievement, int]] = []
    locked: list[tuple[Achievement, int]] = []

    for achievement in catalog:
        if achievement.condition(metrics):
            unlocked.append((achievement, 100))
        else:
            progress = min(max(achievement.progress(metrics), 0), 100)
            locked.append((achievement, int(round_half_up(progress))))

    unlocked.sort(key=lambda item: item[0].tier.order, reverse=True)
    locked.sort(key=lambda item: item[1], reverse=True)

    total = len(catalog)
    return AchievementReport(
        unlocked=[_status(a, p) for a, p in unlocked],
        locked=[_status(a, p) for a, p in locked],
        total=total,
        unlocked_count=len(unlocked),
        completion_percentage=int(round_half_up(len(unlocked) / total * 100)) if total else 0,
    )
