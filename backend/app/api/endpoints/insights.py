from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.services.insights import InsightsAssembler
from app.services.leaderboard import LeaderboardService
from app.services.providers import DataProvider, get_provider
from app.services.widget_cache import WidgetCacheService

router = APIRouter()


async def load_insights(username: str, refresh: bool, db: AsyncSession, provider: DataProvider):
    service = WidgetCacheService(db, InsightsAssembler(provider))
    insights = await service.get_or_generate(username, refresh=refresh)
    if insights is None:
        raise HTTPException(status_code=404, detail="No data available")
    return insights


@router.get("/insights/{username}")
async def get_insights(
    username: str,
    refresh: bool = False,
    db: AsyncSession = Depends(get_db),
    provider: DataProvider = Depends(get_provider),
):
    """Get analytics insights for a GitHub user (cached for 6 hours)."""
    insights = await load_insights(username, refresh, db, provider)
    await LeaderboardService(db).update_from_insights(username, insights)
    return insights.model_dump(mode="json", by_alias=True)


@router.get("/insights/{username}/score")
async def get_profile_score(
    username: str,
    db: AsyncSession = Depends(get_db),
    provider: DataProvider = Depends(get_provider),
):
    """Get just the profile score and grade."""
    insights = await load_insights(username, False, db, provider)
    if insights.profile_score is None:
        raise HTTPException(status_code=404, detail="No data available")
    return insights.profile_score.model_dump()
