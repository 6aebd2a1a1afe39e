from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.services.achievements import collect_metrics, evaluate_achievements
from app.services.insights import InsightsAssembler
from app.services.leaderboard import LeaderboardService
from app.services.providers import DataProvider, get_provider
from app.services.widget_cache import WidgetCacheService

router = APIRouter()


@router.get("/achievements/{username}")
async def get_user_achievements(
    username: str,
    db: AsyncSession = Depends(get_db),
    provider: DataProvider = Depends(get_provider),
):
    """Evaluate achievements live from the leaderboard entry and cached insights."""
    ranking = await LeaderboardService(db).get_rank(username)
    if ranking is None:
        raise HTTPException(status_code=404, detail="User not found in leaderboard")

    # Missing insights only zero the activity-derived metrics
    insights = await WidgetCacheService(db, InsightsAssembler(provider)).get_or_generate(username)

    metrics = collect_metrics(ranking["entry"], insights, rank=ranking["rank"])
    return {"success": True, "data": evaluate_achievements(metrics).model_dump()}
