"""Repository context builder -- the GitHub digest injected into prompts.

The digest is rebuilt wholesale on refresh and swapped in with a single
assignment, so readers only ever see a complete document. Refresh failures
never propagate: the previous digest (or a placeholder) stays in place.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .models import ContributionSummary, ProviderError, RepositoryActivity

logger = logging.getLogger(__name__)

FALLBACK_DIGEST = "Working on some exciting new projects!"
DIGEST_TTL_SECONDS = 600.0
COMMITS_IN_DIGEST = 3

_LEADING_PUNCTUATION = re.compile(r"^[^\w\s]+")


class RepositoryDataProvider(Protocol):
    async def get_contribution_summary(
        self, username: str, repo_limit: int = 5
    ) -> ContributionSummary | ProviderError: ...


class RefreshStatus(Enum):
    REFRESHED = "refreshed"
    FRESH = "fresh"
    KEPT_STALE = "kept_stale"


@dataclass(frozen=True)
class RepositoryDigest:
    text: str
    repositories: tuple[RepositoryActivity, ...]
    refreshed_at: float


@dataclass(frozen=True)
class RefreshResult:
    status: RefreshStatus
    digest: RepositoryDigest | None
    error: str | None = None


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def normalize_commit_message(message: str) -> str:
    """First line, leading punctuation and surrounding whitespace stripped, lower-cased."""
    first_line = message.split("\n")[0]
    return _LEADING_PUNCTUATION.sub("", first_line).strip().lower()


def format_digest(
    owner: str,
    repositories: Sequence[RepositoryActivity],
    featured_projects: Sequence[str],
) -> str:
    """Render the digest document.

    Section order and layout are fixed so the system prompt stays stable
    across refreshes.
    """
    lines: list[str] = []

    lines.append("## Repository Overview")
    lines.append(f"{owner} has {len(repositories)} active repositories covering various projects.")
    lines.append("")

    # dict preserves first-seen language order
    language_counts: dict[str, int] = {}
    for repo in repositories:
        if repo.language:
            language_counts[repo.language] = language_counts.get(repo.language, 0) + 1

    lines.append("## Technologies Used")
    for language, count in language_counts.items():
        lines.append(f"- **{language}**: {count} projects")
    lines.append("")

    lines.append("## Project Details")
    for repo in repositories:
        lines.append(f"### {repo.repository}")
        if repo.description:
            lines.append(f"**Description**: {repo.description}")
        if repo.language:
            lines.append(f"**Primary Language**: {repo.language}")
        counters = []
        if repo.stars:
            counters.append(f"**Stars**: {repo.stars}")
        if repo.forks:
            counters.append(f"**Forks**: {repo.forks}")
        if counters:
            lines.append(" | ".join(counters))
        if repo.recent_commits:
            lines.append("**Recent Updates**:")
            for commit in repo.recent_commits[:COMMITS_IN_DIGEST]:
                lines.append(f"- {normalize_commit_message(commit.message)}")
        lines.append("")

    lines.append("## Featured Projects")
    for project in featured_projects:
        lines.append(f"- {project}")

    return "\n".join(lines) + "\n"


def format_project_excerpt(repo: RepositoryActivity) -> str:
    """Per-project excerpt used to answer questions about one project."""
    parts = [f"## {repo.repository}", ""]
    if repo.description:
        parts += [f"**Description**: {repo.description}", ""]
    if repo.language:
        parts += [f"**Primary Language**: {repo.language}", ""]
    if repo.recent_commits:
        parts.append("**Recent Activity**:")
        parts += [f"- {normalize_commit_message(c.message)}" for c in repo.recent_commits]
    return "\n".join(parts).rstrip("\n") + "\n"


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class RepositoryContextBuilder:
    """Fetches, formats and caches the repository digest for one owner."""

    def __init__(
        self,
        provider: RepositoryDataProvider,
        owner_name: str,
        *,
        featured_projects: Sequence[str] = (),
        project_titles: Sequence[str] = (),
        ttl: float = DIGEST_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider
        self.owner_name = owner_name
        self.featured_projects = tuple(featured_projects)
        self.project_titles = tuple(project_titles)
        self.ttl = ttl
        self._clock = clock
        self._digest: RepositoryDigest | None = None

    @property
    def digest(self) -> RepositoryDigest | None:
        return self._digest

    @property
    def digest_text(self) -> str:
        return self._digest.text if self._digest else FALLBACK_DIGEST

    @property
    def repositories(self) -> tuple[RepositoryActivity, ...]:
        return self._digest.repositories if self._digest else ()

    def is_stale(self) -> bool:
        if self._digest is None:
            return True
        return self._clock() - self._digest.refreshed_at >= self.ttl

    async def refresh(self, owner_handle: str, max_repos: int, *, force: bool = False) -> RefreshResult:
        """Rebuild the digest if it is stale (or *force* is set).

        Never raises; on failure the previous digest is kept.
        """
        if not force and not self.is_stale():
            return RefreshResult(RefreshStatus.FRESH, self._digest)

        try:
            summary = await self._provider.get_contribution_summary(owner_handle, max_repos)
            if isinstance(summary, ProviderError):
                raise RuntimeError(summary.message)
            repositories = tuple(summary.contribution_summary)
            text = format_digest(self.owner_name, repositories, self.featured_projects)
        except Exception as exc:
            logger.warning("Error fetching GitHub data for %s, keeping previous digest: %s", owner_handle, exc)
            return RefreshResult(RefreshStatus.KEPT_STALE, self._digest, error=str(exc))

        self._digest = RepositoryDigest(
            text=text, repositories=repositories, refreshed_at=self._clock()
        )
        logger.info("Repository digest refreshed (%d repositories)", len(repositories))
        return RefreshResult(RefreshStatus.REFRESHED, self._digest)

    # ------------------------------------------------------------------
    # Project lookup
    # ------------------------------------------------------------------

    def match_project(self, query: str) -> str | None:
        """Name of the first known repository or curated project in *query*."""
        lowered = query.lower()
        for repo in self.repositories:
            if repo.repository.lower() in lowered:
                return repo.repository
        for title in self.project_titles:
            if title.lower() in lowered:
                return title
        return None

    def project_excerpt(self, project_name: str) -> str | None:
        """Excerpt for the repository equal to or containing *project_name*."""
        wanted = project_name.lower()
        for repo in self.repositories:
            name = repo.repository.lower()
            if name == wanted or wanted in name:
                return format_project_excerpt(repo)
        return None
