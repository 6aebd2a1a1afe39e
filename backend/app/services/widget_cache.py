import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import WIDGET_CACHE_STALE_AFTER
from ..core.database import utcnow
from ..repositories import WidgetCacheRepository
from ..schemas.insights import Insights
from .insights import InsightsAssembler

logger = logging.getLogger(__name__)


class WidgetCacheService:
    """Read-through cache of assembled Insights, one row per username.

    Fresh rows (younger than the staleness window) are served as stored;
    missing or stale rows are rebuilt and overwritten as a whole.
    """

    def __init__(
        self,
        db: AsyncSession,
        assembler: Optional[InsightsAssembler] = None,
        clock: Callable[[], datetime] = utcnow,
        stale_after: timedelta = WIDGET_CACHE_STALE_AFTER,
    ):
        self.cache_repo = WidgetCacheRepository(db)
        self.assembler = assembler or InsightsAssembler()
        self.clock = clock
        self.stale_after = stale_after

    async def get_or_generate(self, username: str, refresh: bool = False) -> Optional[Insights]:
        """Cached insights for ``username``, or None if they cannot be produced."""
        try:
            if not refresh:
                cached = await self._get_fresh(username)
                if cached is not None:
                    return cached

            logger.info(f"Regenerating cache for {username}...")
            insights = await self.assembler.build(username, refresh=refresh)
            await self.cache_repo.save(
                username,
                insights.model_dump(mode="json"),
                last_updated=self.clock(),
            )
            logger.info(f"Cache regenerated for {username}")
            return insights
        except Exception as e:
            logger.error(f"Failed to get/generate cache for {username}: {e}")
            await self.cache_repo.session.rollback()
            return None

    async def _get_fresh(self, username: str) -> Optional[Insights]:
        cached = await self.cache_repo.get_by_username(username)
        if cached is None or cached.last_updated is None:
            return None
        age = self.clock() - cached.last_updated
        if age >= self.stale_after:
            return None
        logger.info(f"Using cached data for {username} ({age.total_seconds() / 3600:.1f}h old)")
        return Insights.model_validate(cached.insights)

    async def invalidate(self, username: str) -> bool:
        return await self.cache_repo.invalidate(username)
