from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case fields internally, camelCase keys when dumped by alias."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class GitHubUser(CamelModel):
    login: str = ""
    name: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    company: Optional[str] = None
    blog: Optional[str] = None
    twitter_username: Optional[str] = None
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None
    followers: int = 0
    following: int = 0
    public_repos: int = 0
    public_gists: int = 0
    created_at: Optional[datetime] = None

    @field_validator("followers", "following", "public_repos", "public_gists", mode="before")
    @classmethod
    def _none_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class RepoSummary(CamelModel):
    """The analytics-relevant fields of one repository."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    full_name: str = ""
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    topics: tuple[str, ...] = ()
    description: Optional[str] = None
    language: Optional[str] = None
    html_url: Optional[str] = None
    fork: bool = False

    @model_validator(mode="before")
    @classmethod
    def _from_github_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        owner = data.get("owner")
        if isinstance(owner, dict):
            data["owner"] = owner.get("login", "")
        for key in ("stargazers_count", "forks_count", "open_issues_count"):
            if data.get(key) is None:
                data.pop(key, None)
        if data.get("topics") is None:
            data.pop("topics", None)
        if not data.get("full_name") and data.get("owner") and data.get("name"):
            data["full_name"] = f"{data['owner']}/{data['name']}"
        return data

    @property
    def key(self) -> str:
        return f"{self.owner}/{self.name}"


class LanguageDistribution(CamelModel):
    totals: dict[str, int] = Field(default_factory=dict)
    percentages: list[tuple[str, float]] = Field(default_factory=list)
    top3: list[tuple[str, float]] = Field(default_factory=list)


class ActivityProfile(CamelModel):
    hours: list[int] = Field(default_factory=lambda: [0] * 24)
    profile: Literal["night-coder", "early-bird"] = "early-bird"


class DomainScore(CamelModel):
    domain: str = "Generalist"
    scores: dict[str, float] = Field(default_factory=dict)


class ProfileScore(CamelModel):
    score: int = Field(ge=0, le=100)
    grade: str


class Insights(CamelModel):
    """Everything derived for one user; replaced as a whole, never patched."""

    user: GitHubUser
    repos_count: int = 0
    languages: LanguageDistribution = Field(default_factory=LanguageDistribution)
    topics: list[tuple[str, int]] = Field(default_factory=list)
    top_starred: list[RepoSummary] = Field(default_factory=list)
    top_active: list[RepoSummary] = Field(default_factory=list)
    commit_times: ActivityProfile = Field(default_factory=ActivityProfile)
    weekly: list[tuple[str, int]] = Field(default_factory=list)
    domain: DomainScore = Field(default_factory=DomainScore)
    profile_score: Optional[ProfileScore] = None
