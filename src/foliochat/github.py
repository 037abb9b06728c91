"""GitHub data provider -- repositories and recent commits for one user.

Every public method returns either typed records or a
:class:`~foliochat.models.ProviderError` envelope; nothing here raises to the
caller. Blocking urllib calls run in worker threads.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from .models import Commit, ContributionSummary, ProviderError, Repository, RepositoryActivity

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
COMMITS_PER_REPOSITORY = 3


class GitHubAPIError(RuntimeError):
    """Non-2xx answer from the GitHub API."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        super().__init__(message)


def _format_date(raw: Any) -> str:
    if not raw or not isinstance(raw, str):
        return ""
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return raw


@dataclass
class GitHubClient:
    """Minimal GitHub REST client using stdlib only."""

    base_url: str = GITHUB_API_URL
    token: str | None = None
    timeout: float = 15.0

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "foliochat",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_json_sync(self, url: str) -> Any:
        """Blocking GET returning decoded JSON. Meant for asyncio.to_thread."""
        req = urllib.request.Request(url, headers=self._headers(), method="GET")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as exc:
            body = exc.read().decode("utf-8", errors="replace")
            try:
                message = json.loads(body).get("message") or body
            except (json.JSONDecodeError, AttributeError):
                message = body
            raise GitHubAPIError(exc.code, f"GitHub API error: {message or exc.reason}") from exc

    async def _get_json(self, url: str) -> Any | ProviderError:
        try:
            return await asyncio.to_thread(self._get_json_sync, url)
        except GitHubAPIError as exc:
            logger.warning("GitHub API error %s for %s: %s", exc.status, url, exc)
            return ProviderError(status=exc.status, message=str(exc))
        except (urllib.error.URLError, OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("GitHub request to %s failed: %s", url, exc)
            return ProviderError(message=f"Network or processing error: {exc}")

    # ------------------------------------------------------------------
    # Provider operations
    # ------------------------------------------------------------------

    async def get_repositories(
        self, username: str, count: int = 10
    ) -> list[Repository] | ProviderError:
        """Most recently updated repositories of *username*."""
        query = urllib.parse.urlencode({"per_page": count, "sort": "updated"})
        url = f"{self.base_url}/users/{urllib.parse.quote(username)}/repos?{query}"
        data = await self._get_json(url)
        if isinstance(data, ProviderError):
            return data
        if not isinstance(data, list):
            logger.warning("GitHub did not return a list of repositories: %r", data)
            return ProviderError(message="Invalid data format received from GitHub API for repositories.")

        repos: list[Repository] = []
        for raw in data[:count]:
            if not isinstance(raw, dict) or not raw.get("name"):
                logger.debug("Skipping invalid repository entry: %r", raw)
                continue
            try:
                repo = Repository(
                    name=raw["name"],
                    description=raw.get("description"),
                    language=raw.get("language"),
                    stars=raw.get("stargazers_count") or 0,
                    forks=raw.get("forks_count") or 0,
                    updated_at=_format_date(raw.get("updated_at")),
                    url=raw.get("html_url") or "",
                )
            except ValidationError as exc:
                logger.debug("Skipping malformed repository entry %r: %s", raw.get("name"), exc)
                continue
            repos.append(repo)
        logger.debug("Fetched %d repositories for %s", len(repos), username)
        return repos

    async def get_recent_commits(
        self, username: str, repo_name: str, count: int = COMMITS_PER_REPOSITORY
    ) -> list[Commit] | ProviderError:
        """Latest *count* commits of ``username/repo_name``."""
        owner = urllib.parse.quote(username, safe="")
        repo = urllib.parse.quote(repo_name, safe="")
        url = f"{self.base_url}/repos/{owner}/{repo}/commits?per_page={count}"
        data = await self._get_json(url)
        if isinstance(data, ProviderError):
            return data
        if not isinstance(data, list):
            logger.warning("GitHub did not return a list of commits for %s: %r", repo_name, data)
            return ProviderError(message="Invalid data format received from GitHub API for commits.")

        commits: list[Commit] = []
        try:
            for entry in data[:count]:
                info = entry["commit"]
                author = info.get("author") or {}
                commits.append(
                    Commit(
                        sha=entry["sha"][:7],
                        message=(info.get("message") or "").split("\n")[0],
                        author=author.get("name") or "",
                        date=_format_date(author.get("date")),
                        url=entry.get("html_url") or "",
                    )
                )
        except (KeyError, TypeError, AttributeError, ValidationError) as exc:
            logger.warning("Malformed commit payload for %s: %s", repo_name, exc)
            return ProviderError(message=f"Malformed commit payload: {exc}")
        return commits

    async def get_contribution_summary(
        self, username: str, repo_limit: int = 5
    ) -> ContributionSummary | ProviderError:
        """Repositories of *username* with their recent commits.

        Commit lookups run concurrently; a repository whose commits cannot be
        fetched is kept with an empty commit list.
        """
        repos = await self.get_repositories(username, repo_limit)
        if isinstance(repos, ProviderError):
            return repos

        commit_results = await asyncio.gather(
            *(self.get_recent_commits(username, r.name, COMMITS_PER_REPOSITORY) for r in repos)
        )

        activity: list[RepositoryActivity] = []
        for repo, commits in zip(repos, commit_results):
            if isinstance(commits, ProviderError):
                logger.info("No commits for %s: %s", repo.name, commits.message)
                commits = []
            activity.append(
                RepositoryActivity(
                    repository=repo.name,
                    description=repo.description,
                    language=repo.language,
                    stars=repo.stars,
                    forks=repo.forks,
                    recent_commits=commits,
                    last_updated=repo.updated_at,
                    url=repo.url or f"https://github.com/{username}/{repo.name}",
                )
            )

        logger.info("Built contribution summary for %d repositories", len(activity))
        return ContributionSummary(
            username=username,
            total_repositories=len(repos),
            contribution_summary=activity,
        )
