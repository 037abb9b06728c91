"""Pydantic models for foliochat's conversation and repository data."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------

Role = Literal["system", "user", "assistant"]


class Turn(BaseModel):
    """One message in the conversation transcript."""

    role: Role
    content: str
    scratch: bool = False
    """Injected to steer a single completion; removed once it resolves."""

    def to_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


# ---------------------------------------------------------------------------
# GitHub data
# ---------------------------------------------------------------------------

class Repository(BaseModel):
    """A repository as listed by the GitHub user-repos endpoint."""

    name: str
    description: str | None = None
    language: str | None = None
    stars: int = 0
    forks: int = 0
    updated_at: str = ""
    url: str = ""


class Commit(BaseModel):
    """A commit trimmed down to what the digest needs."""

    sha: str
    message: str  # first line only
    author: str = ""
    date: str = ""
    url: str = ""


class RepositoryActivity(BaseModel):
    """A repository together with its most recent commits."""

    repository: str
    description: str | None = None
    language: str | None = None
    stars: int = 0
    forks: int = 0
    recent_commits: list[Commit] = Field(default_factory=list)
    last_updated: str = ""
    url: str = ""


class ContributionSummary(BaseModel):
    """Result of ``GitHubClient.get_contribution_summary``."""

    username: str
    total_repositories: int
    contribution_summary: list[RepositoryActivity] = Field(default_factory=list)


class ProviderError(BaseModel):
    """Error envelope returned by the GitHub provider instead of raising."""

    error: Literal[True] = True
    status: int | None = None
    message: str


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_FEATURED_PROJECTS = [
    "AI Portfolio - Showcasing my AI tools",
    "House Rent - Full-stack rental property platform",
    "ArtPromptAI - AI painting generator from story prompts",
    "Flood-Prediction - Flood forecasting with KNN",
    "JP solutions - Business website",
]

DEFAULT_PROJECT_TITLES = [
    "AI Portfolio",
    "House Rent",
    "Flood-Prediction",
    "JP solutions",
    "ArtPromTai",
]


class FoliochatConfig(BaseModel):
    """User configuration stored in ``foliochat.toml``.

    Precedence: CLI flag > environment > foliochat.toml > default.
    """

    github_user: str = "sridhar1805"
    """GitHub handle whose repositories feed the digest."""

    github_token: str | None = None
    """Optional token; raises the GitHub API rate limit."""

    owner_name: str = "Sridharan"
    """Name of the portfolio owner, used in prompts."""

    assistant_name: str = "S.ai"

    profile_path: str | None = None
    """Optional text file with the owner's profile, appended to the system prompt."""

    model: str = "openai"
    endpoint: str = "https://text.pollinations.ai/openai"
    referrer: str = "FolioChatPortfolio"

    max_repos: int = 10
    digest_ttl: float = 600.0
    """Seconds after a successful refresh before the digest is stale."""

    min_request_interval: float = 1.5
    max_retries: int = 3
    base_retry_delay: float = 1.0
    max_retry_delay: float = 10.0
    request_timeout: float = 60.0

    featured_projects: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FEATURED_PROJECTS)
    )
    """Lines of the curated featured-projects section of the digest."""

    project_titles: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PROJECT_TITLES)
    )
    """Project names recognised in questions besides repository names."""

    def validate_values(self) -> list[str]:
        """Return a list of problems (empty if the config is usable)."""
        errors: list[str] = []
        if not self.github_user.strip():
            errors.append("github_user must not be empty")
        if self.max_repos <= 0:
            errors.append("max_repos must be positive")
        if self.digest_ttl < 0:
            errors.append("digest_ttl must not be negative")
        if self.min_request_interval < 0:
            errors.append("min_request_interval must not be negative")
        if self.max_retries < 0:
            errors.append("max_retries must not be negative")
        if self.base_retry_delay <= 0:
            errors.append("base_retry_delay must be positive")
        if self.max_retry_delay < self.base_retry_delay:
            errors.append("max_retry_delay must be at least base_retry_delay")
        if self.request_timeout <= 0:
            errors.append("request_timeout must be positive")
        if self.profile_path and not Path(self.profile_path).expanduser().is_file():
            errors.append(f"profile_path does not point to a file: {self.profile_path}")
        return errors
