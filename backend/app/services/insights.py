import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from ..core.config import LANGUAGE_FETCH_CONCURRENCY
from ..core.database import utcnow
from ..schemas.insights import GitHubUser, Insights, RepoSummary
from .activity import commit_time_distribution, weekly_activity
from .analytics import aggregate_languages, most_active, most_starred, topics_frequency
from .domain import infer_domain
from .github import GitHubAPIError
from .providers import DataProvider, GitHubProvider
from .scoring import calculate_profile_score

logger = logging.getLogger(__name__)

TOP_REPOS = 3
TOP_TOPICS = 20
DOMAIN_TOPICS = 10


class InsightsAssembler:
    """Fetches a user's raw GitHub data and derives the full Insights object.

    Holds no state between calls; caching of the result is up to the caller.
    """

    def __init__(
        self,
        provider: Optional[DataProvider] = None,
        language_concurrency: int = LANGUAGE_FETCH_CONCURRENCY,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.provider = provider or GitHubProvider()
        self.language_concurrency = language_concurrency
        self.clock = clock

    async def build(self, username: str, refresh: bool = False, timezone_offset: int = 0) -> Insights:
        # 1. Fetch independent inputs in parallel
        user_resp, repos_resp, events = await asyncio.gather(
            self.provider.fetch_user(username, refresh),
            self.provider.fetch_user_repos(username, refresh),
            self._events(username, refresh),
        )
        user = GitHubUser.model_validate(user_resp.data or {})
        repos = [RepoSummary.model_validate(r) for r in (repos_resp.data or [])]

        # 2. Per-repo inputs
        repo_languages, commits = await asyncio.gather(
            self._languages(repos, refresh),
            self._commits(username, repos, refresh),
        )

        # 3. Derive
        languages = aggregate_languages(repos, repo_languages)
        topics = topics_frequency(repos)
        insights = Insights(
            user=user,
            repos_count=len(repos),
            languages=languages,
            topics=topics[:TOP_TOPICS],
            top_starred=most_starred(repos, TOP_REPOS),
            top_active=most_active(repos, TOP_REPOS),
            commit_times=commit_time_distribution(events, timezone_offset),
            weekly=weekly_activity(events, commits),
            domain=infer_domain(languages.percentages, topics[:DOMAIN_TOPICS]),
        )
        # Score last: it reads languages, topics, top_starred and repos_count
        insights.profile_score = calculate_profile_score(insights, now=self.clock())
        return insights

    async def _languages(self, repos: list[RepoSummary], refresh: bool) -> dict[str, dict[str, int]]:
        semaphore = asyncio.Semaphore(self.language_concurrency)

        async def _one(repo: RepoSummary) -> tuple[str, dict[str, int]]:
            async with semaphore:
                try:
                    resp = await self.provider.fetch_repo_languages(repo.owner, repo.name, refresh)
                    return repo.key, resp.data or {}
                except GitHubAPIError as e:
                    logger.warning(f"No language data for {repo.key}: {e}")
                    return repo.key, {}

        return dict(await asyncio.gather(*(_one(repo) for repo in repos)))

    async def _events(self, username: str, refresh: bool) -> list[dict]:
        try:
            resp = await self.provider.fetch_user_events(username, refresh)
            return resp.data or []
        except GitHubAPIError as e:
            logger.warning(f"No events for {username}: {e}")
            return []

    async def _commits(self, username: str, repos: list[RepoSummary], refresh: bool) -> list[dict]:
        try:
            resp = await self.provider.fetch_user_commits(username, repos, refresh)
            return resp.data or []
        except GitHubAPIError as e:
            logger.warning(f"No commits for {username}: {e}")
            return []
