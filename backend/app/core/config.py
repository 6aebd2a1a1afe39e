import os
from datetime import timedelta

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./engit.db")

# GitHub REST API
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN", "").strip() or None
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
GITHUB_API_VERSION = os.getenv("GITHUB_API_VERSION", "2022-11-28")
GITHUB_TIMEOUT_SECONDS = float(os.getenv("GITHUB_TIMEOUT_SECONDS", "15"))

# Fan-out limits for per-repo fetches
LANGUAGE_FETCH_CONCURRENCY = int(os.getenv("LANGUAGE_FETCH_CONCURRENCY", "5"))
COMMIT_REPO_LIMIT = int(os.getenv("COMMIT_REPO_LIMIT", "10"))

# Raw response cache TTLs (seconds)
USER_CACHE_TTL = 60 * 60
REPO_CACHE_TTL = 60 * 30

# Widget cache: stale after 6 hours, purged after 30 days
WIDGET_CACHE_STALE_AFTER = timedelta(hours=int(os.getenv("WIDGET_CACHE_STALE_HOURS", "6")))
WIDGET_CACHE_EXPIRE_AFTER = timedelta(days=int(os.getenv("WIDGET_CACHE_EXPIRE_DAYS", "30")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
