"""Shared test fixtures."""

from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.database import Base
from app.schemas.insights import RepoSummary
from app.services.github import GitHubAPIError
from app.services.providers import DataProvider, RawResponse

import app.models  # noqa: F401  (registers tables)

FETCHED_AT = datetime(2025, 6, 1, 12, 0, 0)


def make_repo(name, owner="octocat", stars=0, forks=0, issues=0, topics=(), description=None, **extra):
    return RepoSummary.model_validate(
        {
            "owner": {"login": owner},
            "name": name,
            "stargazers_count": stars,
            "forks_count": forks,
            "open_issues_count": issues,
            "topics": list(topics),
            "description": description,
            **extra,
        }
    )


class FakeProvider(DataProvider):
    """In-memory DataProvider recording every call it receives."""

    def __init__(self, user=None, repos=None, languages=None, events=None, commits=None, failing_languages=()):
        self.user = user or {"login": "octocat"}
        self.repos = repos or []
        self.languages = languages or {}
        self.events = events or []
        self.commits = commits or []
        self.failing_languages = set(failing_languages)
        self.calls: list[tuple] = []

    async def fetch_user(self, username, refresh=False):
        self.calls.append(("user", username, refresh))
        return RawResponse(self.user, FETCHED_AT)

    async def fetch_user_repos(self, username, refresh=False):
        self.calls.append(("repos", username, refresh))
        return RawResponse(self.repos, FETCHED_AT)

    async def fetch_repo_languages(self, owner, repo, refresh=False):
        key = f"{owner}/{repo}"
        self.calls.append(("languages", key, refresh))
        if key in self.failing_languages:
            raise GitHubAPIError(f"boom: {key}")
        return RawResponse(self.languages.get(key, {}), FETCHED_AT)

    async def fetch_user_events(self, username, refresh=False):
        self.calls.append(("events", username, refresh))
        if isinstance(self.events, Exception):
            raise self.events
        return RawResponse(self.events, FETCHED_AT)

    async def fetch_user_commits(self, username, repos, refresh=False):
        self.calls.append(("commits", username, refresh))
        if isinstance(self.commits, Exception):
            raise self.commits
        return RawResponse(self.commits, FETCHED_AT)


@pytest.fixture
def sample_user():
    return {
        "login": "octocat",
        "name": "The Octocat",
        "bio": "Mascot",
        "location": "San Francisco",
        "company": "@github",
        "blog": "https://github.blog",
        "twitter_username": None,
        "avatar_url": "https://avatars.githubusercontent.com/u/583231",
        "html_url": "https://github.com/octocat",
        "followers": 120,
        "following": 9,
        "public_repos": 8,
        "public_gists": 8,
        "created_at": "2011-01-25T18:44:36Z",
    }


@pytest.fixture
def sample_repos():
    return [
        {
            "owner": {"login": "octocat"},
            "name": "Hello-World",
            "full_name": "octocat/Hello-World",
            "stargazers_count": 80,
            "forks_count": 40,
            "open_issues_count": 2,
            "topics": ["web", "react"],
            "description": "My first repo",
            "language": "JavaScript",
            "fork": False,
        },
        {
            "owner": {"login": "octocat"},
            "name": "ml-lab",
            "stargazers_count": 30,
            "forks_count": 1,
            "open_issues_count": 25,
            "topics": ["machine-learning", "pytorch", "web"],
            "description": None,
            "language": "Python",
            "fork": False,
        },
        {
            "owner": {"login": "octocat"},
            "name": "dotfiles",
            "stargazers_count": 1,
            "forks_count": 0,
            "open_issues_count": 0,
            "topics": [],
            "language": "Shell",
            "fork": False,
        },
    ]


@pytest.fixture
def sample_languages():
    return {
        "octocat/Hello-World": {"JavaScript": 6000, "CSS": 1000},
        "octocat/ml-lab": {"Python": 2500},
        "octocat/dotfiles": {"Shell": 500},
    }


@pytest.fixture
def sample_events():
    return [
        {"type": "PushEvent", "created_at": "2025-05-30T23:15:00Z", "payload": {"size": 2}},
        {"type": "PushEvent", "created_at": "2025-05-30T22:05:00Z"},
        {"type": "PullRequestEvent", "created_at": "2025-05-29T02:40:00Z"},
        {"type": "WatchEvent", "created_at": "2025-05-28T08:00:00Z"},
        {"type": "IssuesEvent", "created_at": "not-a-date"},
    ]


@pytest.fixture
def sample_commits():
    return [
        {"commit": {"author": {"date": "2025-05-27T09:00:00Z"}}},
        {"commit": {"committer": {"date": "2025-04-01T10:00:00Z"}}},
        {"commit": {}},
    ]


@pytest.fixture
def fake_provider(sample_user, sample_repos, sample_languages, sample_events, sample_commits):
    return FakeProvider(
        user=sample_user,
        repos=sample_repos,
        languages=sample_languages,
        events=sample_events,
        commits=sample_commits,
    )


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def session_factory(db_url):
    """Return an async factory: ``async with await session_factory() as s``.

    NullPool keeps connections from leaking between event loops.
    """

    async def _factory():
        engine = create_async_engine(db_url, poolclass=NullPool)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        return async_sessionmaker(engine, expire_on_commit=False)()

    return _factory
