from .insights import router as insights_router
from .achievements import router as achievements_router
from .leaderboard import router as leaderboard_router

__all__ = ["insights_router", "achievements_router", "leaderboard_router"]
