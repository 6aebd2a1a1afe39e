from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Sequence

import httpx

from ..core.cache import TTLCache
from ..core.config import (
    GITHUB_API_URL,
    GITHUB_TIMEOUT_SECONDS,
    GITHUB_TOKEN,
    REPO_CACHE_TTL,
    USER_CACHE_TTL,
)
from ..core.database import utcnow
from ..schemas.insights import RepoSummary
from . import github


@dataclass(frozen=True)
class RawResponse:
    """A fetched payload and the time it was fetched from upstream."""

    data: Any
    last_updated: datetime


class DataProvider(ABC):
    """Abstract source of the raw GitHub data the insights pipeline consumes."""

    @abstractmethod
    async def fetch_user(self, username: str, refresh: bool = False) -> RawResponse:
        """Profile: name, bio, location, company, blog, followers, created_at, ..."""

    @abstractmethod
    async def fetch_user_repos(self, username: str, refresh: bool = False) -> RawResponse:
        """List of repository payloads, most recently updated first."""

    @abstractmethod
    async def fetch_repo_languages(self, owner: str, repo: str, refresh: bool = False) -> RawResponse:
        """Mapping of language name to byte count."""

    @abstractmethod
    async def fetch_user_events(self, username: str, refresh: bool = False) -> RawResponse:
        """Public events: ``[{type, created_at, payload}]``."""

    @abstractmethod
    async def fetch_user_commits(
        self, username: str, repos: Sequence[RepoSummary], refresh: bool = False
    ) -> RawResponse:
        """Commit payloads: ``[{commit: {author: {date}}}]``."""


class GitHubProvider(DataProvider):
    """GitHub REST data fetching with a short-lived response cache."""

    def __init__(
        self,
        token: Optional[str] = GITHUB_TOKEN,
        cache: Optional[TTLCache] = None,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.token = token
        self.cache = cache if cache is not None else TTLCache(default_ttl=REPO_CACHE_TTL)
        self.client = client
        self.clock = clock

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.client is not None:
            yield self.client
            return
        async with httpx.AsyncClient(base_url=GITHUB_API_URL, timeout=GITHUB_TIMEOUT_SECONDS) as client:
            yield client

    async def _cached(
        self,
        key: str,
        fetch: Callable[[httpx.AsyncClient], Awaitable[Any]],
        ttl: float,
        refresh: bool,
    ) -> RawResponse:
        if not refresh:
            hit = self.cache.get(key)
            if hit is not None:
                return hit
        async with self._client() as client:
            data = await fetch(client)
        value = RawResponse(data=data, last_updated=self.clock())
        self.cache.set(key, value, ttl)
        return value

    async def fetch_user(self, username: str, refresh: bool = False) -> RawResponse:
        return await self._cached(
            f"user:{username}",
            lambda client: github.fetch_user(client, username, self.token),
            USER_CACHE_TTL,
            refresh,
        )

    async def fetch_user_repos(self, username: str, refresh: bool = False) -> RawResponse:
        return await self._cached(
            f"repos:{username}",
            lambda client: github.fetch_user_repos(client, username, self.token),
            REPO_CACHE_TTL,
            refresh,
        )

    async def fetch_repo_languages(self, owner: str, repo: str, refresh: bool = False) -> RawResponse:
        return await self._cached(
            f"lang:{owner}/{repo}",
            lambda client: github.fetch_repo_languages(client, owner, repo, self.token),
            REPO_CACHE_TTL,
            refresh,
        )

    async def fetch_user_events(self, username: str, refresh: bool = False) -> RawResponse:
        return await self._cached(
            f"events:{username}",
            lambda client: github.fetch_user_events(client, username, self.token),
            REPO_CACHE_TTL,
            refresh,
        )

    async def fetch_user_commits(
        self, username: str, repos: Sequence[RepoSummary], refresh: bool = False
    ) -> RawResponse:
        return await self._cached(
            f"commits:{username}",
            lambda client: github.fetch_user_commits(client, username, repos, self.token),
            REPO_CACHE_TTL,
            refresh,
        )


_default_provider: Optional[GitHubProvider] = None


def get_provider() -> DataProvider:
    """FastAPI dependency returning the process-wide provider (shared raw cache)."""
    global _default_provider
    if _default_provider is None:
        _default_provider = GitHubProvider()
    return _default_provider
