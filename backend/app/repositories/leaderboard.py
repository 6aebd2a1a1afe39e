from typing import List, Optional
from sqlalchemy import ColumnElement, select, func, or_, true
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.leaderboard import LeaderboardEntry
from app.repositories.base import BaseRepository


class LeaderboardRepository(BaseRepository[LeaderboardEntry]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, LeaderboardEntry)

    def _json_values(self, column):
        """One row per element of a JSON array column, exposed as ``.c.value``."""
        if self.dialect_name == "postgresql":
            return func.json_array_elements_text(column).table_valued("value")
        return func.json_each(column).table_valued("value")

    def _contains(self, column, value: str) -> ColumnElement[bool]:
        """Case-insensitive exact match against any element of a JSON array."""
        values = self._json_values(column)
        return (
            select(values.c.value)
            .where(func.lower(values.c.value) == value.lower())
            .exists()
        )

    def language_filter(self, language: str) -> ColumnElement[bool]:
        return or_(
            self._contains(LeaderboardEntry.languages, language),
            func.lower(LeaderboardEntry.top_language) == language.lower(),
        )

    def topic_filter(self, topic: str) -> ColumnElement[bool]:
        return self._contains(LeaderboardEntry.topics, topic)

    async def rank_of(self, score: int, where: Optional[ColumnElement[bool]] = None) -> int:
        """1 + number of entries with a strictly higher score."""
        stmt = select(func.count(LeaderboardEntry.id)).where(LeaderboardEntry.score > score)
        if where is not None:
            stmt = stmt.where(where)
        result = await self.session.execute(stmt)
        return (result.scalar() or 0) + 1

    async def count(self, where: Optional[ColumnElement[bool]] = None) -> int:
        stmt = select(func.count(LeaderboardEntry.id))
        if where is not None:
            stmt = stmt.where(where)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def page(
        self, page: int = 1, limit: int = 50, where: Optional[ColumnElement[bool]] = None
    ) -> List[LeaderboardEntry]:
        stmt = (
            select(LeaderboardEntry)
            .order_by(LeaderboardEntry.score.desc(), LeaderboardEntry.updated_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        if where is not None:
            stmt = stmt.where(where)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def top(self) -> Optional[LeaderboardEntry]:
        entries = await self.page(1, 1)
        return entries[0] if entries else None

    async def average_score(self) -> float:
        result = await self.session.execute(select(func.avg(LeaderboardEntry.score)))
        return float(result.scalar() or 0)

    async def value_counts(self, column, limit: int) -> list[tuple[str, int]]:
        """How many entries list each element of a JSON array column, most common first."""
        values = self._json_values(column)
        count = func.count(LeaderboardEntry.id).label("count")
        stmt = (
            select(values.c.value, count)
            .select_from(LeaderboardEntry)
            .join(values, true())
            .where(values.c.value.is_not(None), values.c.value != "")
            .group_by(values.c.value)
            .order_by(count.desc(), values.c.value)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(value, total) for value, total in result.all()]
