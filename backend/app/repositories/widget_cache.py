from datetime import datetime, timedelta
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import WIDGET_CACHE_EXPIRE_AFTER
from app.models.cache import WidgetCache
from app.repositories.base import BaseRepository


class WidgetCacheRepository(BaseRepository[WidgetCache]):
    def __init__(self, session: AsyncSession, expire_after: timedelta = WIDGET_CACHE_EXPIRE_AFTER):
        super().__init__(session, WidgetCache)
        self.expire_after = expire_after

    async def save(self, username: str, insights: dict, last_updated: datetime) -> WidgetCache:
        """Replace the whole cached insights document for a user."""
        entry = await self.upsert(username, insights=insights, last_updated=last_updated)
        await self.purge_expired(last_updated)
        return entry

    async def invalidate(self, username: str) -> bool:
        entry = await self.get_by_username(username)
        if entry is None:
            return False
        await self.delete(entry)
        return True

    async def purge_expired(self, now: datetime) -> int:
        """Delete entries not refreshed within the absolute expiry window."""
        cutoff = now - self.expire_after
        stmt = delete(WidgetCache).where(WidgetCache.last_updated < cutoff)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0
