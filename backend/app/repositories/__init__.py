from .widget_cache import WidgetCacheRepository
from .leaderboard import LeaderboardRepository

__all__ = ["WidgetCacheRepository", "LeaderboardRepository"]
