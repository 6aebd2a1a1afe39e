import logging
from collections import Counter
from typing import Optional

from sqlalchemy import ColumnElement
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.leaderboard import LeaderboardEntry
from ..repositories import LeaderboardRepository
from ..schemas.insights import Insights
from .analytics import round_half_up

logger = logging.getLogger(__name__)

LEADERBOARD_TOPICS = 10
FILTER_LANGUAGES = 50
FILTER_TOPICS = 30
TOP_N = 10


def build_leaderboard_entry(insights: Insights) -> dict:
    """Leaderboard columns derived from a user's insights."""
    user = insights.user
    score = insights.profile_score
    top3 = insights.languages.top3
    return {
        "name": user.name or user.login,
        "avatar": user.avatar_url,
        "score": score.score if score else 0,
        "grade": score.grade if score else "F",
        "location": user.location,
        "bio": user.bio,
        "public_repos": user.public_repos,
        "followers": user.followers,
        "total_stars": sum(repo.stargazers_count for repo in insights.top_starred),
        "top_language": top3[0][0] if top3 else None,
        "profile_url": user.html_url,
        "languages": [language for language, _ in insights.languages.percentages if language],
        "topics": [topic for topic, _ in insights.topics[:LEADERBOARD_TOPICS]],
    }


def _most_common(values: list[str], n: int) -> list[str]:
    # Counter keeps first-seen order on equal counts
    return [value for value, _ in Counter(values).most_common(n)]


class LeaderboardService:
    def __init__(self, db: AsyncSession):
        self.repo = LeaderboardRepository(db)

    async def update_from_insights(self, username: str, insights: Insights) -> LeaderboardEntry:
        entry = await self.repo.upsert(insights.user.login or username, **build_leaderboard_entry(insights))
        logger.info(f"Leaderboard updated for {username}")
        return entry

    async def get_entry(self, username: str) -> Optional[LeaderboardEntry]:
        return await self.repo.get_by_username(username)

    async def get_rank(self, username: str) -> Optional[dict]:
        entry = await self.repo.get_by_username(username)
        if entry is None:
            return None
        rank = await self.repo.rank_of(entry.score)
        total = await self.repo.count()
        return {
            "entry": entry,
            "rank": rank,
            "total": total,
            "percentile": round(rank / total * 100, 1) if total else 0.0,
        }

    async def get_niche_rank(
        self, username: str, language: Optional[str] = None, topic: Optional[str] = None
    ) -> Optional[dict]:
        """Rank among entries sharing a language (or else a topic); global without either."""
        entry = await self.repo.get_by_username(username)
        if entry is None:
            return None

        where = None
        niche_type = "global"
        if language:
            where = self.repo.language_filter(language)
            niche_type = f"language: {language}"
        elif topic:
            where = self.repo.topic_filter(topic)
            niche_type = f"topic: {topic}"

        rank = await self.repo.rank_of(entry.score, where)
        total = await self.repo.count(where)
        return {
            "entry": entry,
            "rank": rank,
            "total": total,
            "percentile": round(rank / total * 100, 1) if total else 0.0,
            "niche_type": niche_type,
        }

    async def get_page(
        self, page: int = 1, limit: int = 50, where: Optional[ColumnElement[bool]] = None
    ) -> dict:
        entries = await self.repo.page(page, limit, where)
        total = await self.repo.count(where)
        offset = (page - 1) * limit
        return {
            "entries": [(offset + index + 1, entry) for index, entry in enumerate(entries)],
            "pagination": {
                "current_page": page,
                "total_pages": -(-total // limit) if limit else 0,
                "total_entries": total,
                "has_more": page * limit < total,
            },
        }

    async def get_language_page(self, language: str, page: int = 1, limit: int = 50) -> dict:
        """Entries listing ``language`` (any case) among their languages or as top language."""
        return await self.get_page(page, limit, self.repo.language_filter(language))

    async def get_topic_page(self, topic: str, page: int = 1, limit: int = 50) -> dict:
        return await self.get_page(page, limit, self.repo.topic_filter(topic))

    async def get_filters(self) -> dict:
        languages = await self.repo.value_counts(LeaderboardEntry.languages, FILTER_LANGUAGES)
        topics = await self.repo.value_counts(LeaderboardEntry.topics, FILTER_TOPICS)
        return {
            "languages": [{"language": value, "count": count} for value, count in languages],
            "topics": [{"topic": value, "count": count} for value, count in topics],
        }

    async def get_stats(self) -> dict:
        top = await self.repo.top()
        return {
            "total_users": await self.repo.count(),
            "average_score": round(await self.repo.average_score(), 1),
            "top_score": top.score if top else 0,
            "top_user": top.username if top else None,
        }

    async def get_top_average(self, n: int = TOP_N) -> dict:
        """Averages over the ``n`` highest scoring entries."""
        top = await self.repo.page(1, n)
        if not top:
            return {"average": None, "top_users": [], "count": 0}

        def mean(field: str) -> int:
            return int(round_half_up(sum(getattr(e, field) or 0 for e in top) / len(top)))

        grades = _most_common([e.grade for e in top if e.grade], 1)
        return {
            "average": {
                "score": mean("score"),
                "public_repos": mean("public_repos"),
                "total_stars": mean("total_stars"),
                "followers": mean("followers"),
                "grade": grades[0] if grades else "A",
                "top_languages": _most_common([e.top_language for e in top if e.top_language], 3),
            },
            "top_users": [
                {"username": e.username, "name": e.name, "score": e.score, "grade": e.grade, "rank": i + 1}
                for i, e in enumerate(top)
            ],
            "count": len(top),
        }
