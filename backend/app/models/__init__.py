from .cache import WidgetCache
from .leaderboard import LeaderboardEntry

__all__ = ["WidgetCache", "LeaderboardEntry"]
