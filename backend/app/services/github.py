import asyncio
import logging
from typing import Any, Iterable

import httpx

from ..core.config import COMMIT_REPO_LIMIT, GITHUB_API_VERSION

logger = logging.getLogger(__name__)

REPO_PAGES = 3
PER_PAGE = 100
COMMITS_PER_REPO = 30


class GitHubAPIError(RuntimeError):
    pass


def build_headers(token: str | None = None) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


async def fetch_json(
    client: httpx.AsyncClient,
    path: str,
    params: dict | None = None,
    token: str | None = None,
) -> Any:
    """GET a REST path and decode the JSON body, raising GitHubAPIError on failure."""
    try:
        response = await client.get(path, params=params, headers=build_headers(token))
    except httpx.HTTPError as e:
        raise GitHubAPIError(f"GitHub request to {path} failed: {e}") from e

    if response.status_code == 404:
        raise GitHubAPIError(f"GitHub resource not found: {path}")
    if response.status_code == 403 and "rate limit" in response.text.lower():
        reset = response.headers.get("X-RateLimit-Reset")
        raise GitHubAPIError(f"GitHub rate limit exceeded (resets at {reset})")
    if response.status_code >= 400:
        raise GitHubAPIError(f"GitHub REST error {response.status_code}: {response.text[:300]}")

    try:
        return response.json()
    except ValueError as e:
        raise GitHubAPIError(f"GitHub returned invalid JSON for {path}") from e


async def fetch_user(client: httpx.AsyncClient, username: str, token: str | None = None) -> dict:
    return await fetch_json(client, f"/users/{username}", token=token)


async def fetch_user_repos(
    client: httpx.AsyncClient, username: str, token: str | None = None
) -> list[dict]:
    """Public repositories, most recently updated first, up to 300."""
    repos: list[dict] = []
    for page in range(1, REPO_PAGES + 1):
        batch = await fetch_json(
            client,
            f"/users/{username}/repos",
            params={"per_page": PER_PAGE, "page": page, "sort": "updated"},
            token=token,
        )
        repos.extend(batch or [])
        if len(batch or []) < PER_PAGE:
            break
    return repos


async def fetch_repo_languages(
    client: httpx.AsyncClient, owner: str, repo: str, token: str | None = None
) -> dict[str, int]:
    return await fetch_json(client, f"/repos/{owner}/{repo}/languages", token=token) or {}


async def fetch_user_events(
    client: httpx.AsyncClient, username: str, token: str | None = None
) -> list[dict]:
    return await fetch_json(
        client, f"/users/{username}/events", params={"per_page": PER_PAGE}, token=token
    ) or []


async def fetch_user_commits(
    client: httpx.AsyncClient,
    username: str,
    repos: Iterable[Any],
    token: str | None = None,
    repo_limit: int = COMMIT_REPO_LIMIT,
    concurrency: int = 5,
) -> list[dict]:
    """Commits authored by ``username`` in their most recently updated own repos.

    ``repos`` must already be ordered by recency. Repos that fail (empty
    repositories answer 409) are skipped.
    """
    own = [r for r in repos if not r.fork][:repo_limit]
    semaphore = asyncio.Semaphore(concurrency)

    async def _repo_commits(repo) -> list[dict]:
        async with semaphore:
            try:
                return await fetch_json(
                    client,
                    f"/repos/{repo.owner}/{repo.name}/commits",
                    params={"author": username, "per_page": COMMITS_PER_REPO},
                    token=token,
                ) or []
            except GitHubAPIError as e:
                logger.warning(f"Skipping commits for {repo.owner}/{repo.name}: {e}")
                return []

    batches = await asyncio.gather(*(_repo_commits(repo) for repo in own))
    return [commit for batch in batches for commit in batch]
