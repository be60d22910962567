"""GitHub data fetcher for trust scoring."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from pkgtrust.adapters.base import split_repo_path
from pkgtrust.config import Settings
from pkgtrust.exceptions import (
    InvalidRepositoryError,
    MissingCredentialError,
    UpstreamFetchError,
)
from pkgtrust.models.schemas import (
    GitHubContributors,
    IssueWindow,
    RepoEntry,
    RepositorySummary,
)

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class GitHubFetcher:
    """Fetches repository data from the GitHub API.

    Requires a GitHub personal access token. Every request carries it as a
    bearer credential; a missing token fails at construction time.
    """

    BASE_URL = "https://api.github.com"
    CONTRIBUTORS_URL_PREFIX = "https://api.github.com/repos/"
    ISSUE_WINDOW = timedelta(days=90)
    ISSUE_MAX_PAGES = 10
    LOW_RATE_LIMIT = 100

    def __init__(
        self,
        token: str | None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the fetcher.

        Args:
            token: GitHub personal access token.
            client: Optional httpx client. If not provided, a new client is
                created per request.
            timeout: Request timeout used when no client is supplied.

        Raises:
            MissingCredentialError: If no token is given.
        """
        if not token:
            raise MissingCredentialError()
        self._token = token
        self._client = client
        self._timeout = timeout

        # Rate limit tracking
        self.rate_limit_remaining: int = 5000
        self.rate_limit_total: int = 5000
        self.rate_limit_reset: datetime | None = None

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> "GitHubFetcher":
        """Create a fetcher from process settings."""
        return cls(token=settings.github_token, client=client, timeout=settings.http_timeout)

    def _headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        return {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "Authorization": f"Bearer {self._token}",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=self._timeout, headers=self._headers())

    def _update_rate_limits(self, response: httpx.Response) -> None:
        """Extract and store rate limit info from response headers."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        limit = response.headers.get("X-RateLimit-Limit")
        reset = response.headers.get("X-RateLimit-Reset")

        if remaining is not None:
            self.rate_limit_remaining = int(remaining)
            if self.rate_limit_remaining < self.LOW_RATE_LIMIT:
                logger.warning(f"GitHub rate limit low: {self.rate_limit_remaining} requests left")
        if limit is not None:
            self.rate_limit_total = int(limit)
        if reset is not None:
            self.rate_limit_reset = datetime.fromtimestamp(int(reset), tz=timezone.utc)

    def _url(self, path_or_url: str) -> str:
        if path_or_url.startswith(("http://", "https://")):
            return path_or_url
        return f"{self.BASE_URL}{path_or_url}"

    async def _fetch(self, path: str, params: dict | None = None) -> Any:
        """Fetch from GitHub API.

        Accepts an API path or an absolute URL (for download URLs).
        Returns None if 404, raises on other errors.
        """
        client = await self._get_client()
        url = self._url(path)

        try:
            response = await client.get(url, params=params, headers=self._headers())
            self._update_rate_limits(response)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        finally:
            if self._client is None:
                await client.aclose()

    async def _fetch_all_pages(
        self,
        path: str,
        params: dict | None = None,
        max_pages: int = 10,
    ) -> list:
        """Fetch all pages from a paginated endpoint."""
        client = await self._get_client()
        url = self._url(path)
        params = dict(params or {})
        params.setdefault("per_page", 100)

        results = []
        page = 1

        try:
            while page <= max_pages:
                params["page"] = page
                response = await client.get(url, params=params, headers=self._headers())
                self._update_rate_limits(response)
                if response.status_code == 404:
                    break
                response.raise_for_status()

                data = response.json()
                if not data:
                    break
                if not isinstance(data, list):
                    raise ValueError(f"Expected a list from {url}")

                results.extend(data)

                # Check if there are more pages
                if len(data) < params["per_page"]:
                    break
                page += 1
            else:
                logger.debug(f"Page limit of {max_pages} reached for {url}, results truncated")

            return results
        finally:
            if self._client is None:
                await client.aclose()

    async def fetch_summary(self, url: str) -> RepositorySummary:
        """Fetch basic repository information.

        Args:
            url: Canonical GitHub repository URL.

        Returns:
            RepositorySummary for the repository.

        Raises:
            InvalidRepositoryError: If the URL is not an owner/repo path.
            UpstreamFetchError: If the repository cannot be fetched.
        """
        ref = split_repo_path(url)

        try:
            data = await self._fetch(f"/repos/{ref.owner}/{ref.repo}")
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamFetchError("repository summary", str(e)) from e

        if data is None:
            raise UpstreamFetchError("repository summary", f"{ref.owner}/{ref.repo} not found")
        if not isinstance(data, dict):
            raise UpstreamFetchError("repository summary", "unexpected response shape")

        license_info = data.get("license") or {}
        contributors_url = data.get("contributors_url")

        return RepositorySummary(
            stars=data.get("stargazers_count") or 0,
            forks=data.get("forks_count") or 0,
            open_issues=data.get("open_issues_count"),
            license_name=license_info.get("name") or "No license",
            updated_at=_parse_timestamp(data.get("updated_at")),
            contributors_source=(
                GitHubContributors(url=contributors_url) if contributors_url else None
            ),
        )

    async def fetch_issue_window(self, url: str) -> IssueWindow:
        """Fetch open and closed issues active within the lookback window.

        The two states are queried concurrently. Pull requests, which the
        issues endpoint also returns, are dropped.

        Raises:
            InvalidRepositoryError: If the URL is not an owner/repo path.
            UpstreamFetchError: If either query fails.
        """
        ref = split_repo_path(url)
        since = datetime.now(timezone.utc) - self.ISSUE_WINDOW
        path = f"/repos/{ref.owner}/{ref.repo}/issues"

        try:
            open_issues, closed_issues = await asyncio.gather(
                self._fetch_all_pages(
                    path,
                    params={"state": "open", "since": since.isoformat()},
                    max_pages=self.ISSUE_MAX_PAGES,
                ),
                self._fetch_all_pages(
                    path,
                    params={"state": "closed", "since": since.isoformat()},
                    max_pages=self.ISSUE_MAX_PAGES,
                ),
            )
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamFetchError("issues", str(e)) from e

        return IssueWindow(
            open_issues=[i for i in open_issues if "pull_request" not in i],
            closed_issues=[i for i in closed_issues if "pull_request" not in i],
            since=since,
        )

    async def fetch_contributors_count(self, contributors_url: str) -> int:
        """Count the contributors listed at a GitHub API URL.

        Raises:
            InvalidRepositoryError: If the URL is not a GitHub API repos URL.
            UpstreamFetchError: If the listing cannot be fetched.
        """
        if not contributors_url or not contributors_url.startswith(self.CONTRIBUTORS_URL_PREFIX):
            raise InvalidRepositoryError(contributors_url, "Invalid contributors count URL")

        try:
            contributors = await self._fetch_all_pages(contributors_url, max_pages=5)
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamFetchError("contributors", str(e)) from e

        return len(contributors)

    async def fetch_directory_listing(self, url: str) -> list[RepoEntry]:
        """Fetch the top-level contents of a repository.

        Raises:
            InvalidRepositoryError: If the URL is not an owner/repo path.
            UpstreamFetchError: If the repository has no readable contents.
            httpx.HTTPError: On transport or non-404 HTTP failures.
        """
        ref = split_repo_path(url)
        data = await self._fetch(f"/repos/{ref.owner}/{ref.repo}/contents")
        if data is None or not isinstance(data, list):
            raise UpstreamFetchError("directory listing", f"{ref.owner}/{ref.repo} has no contents")

        return [RepoEntry.model_validate(item) for item in data]

    async def fetch_json_file(self, download_url: str) -> Any:
        """Fetch a raw file by its download URL and parse it as JSON.

        Raises:
            UpstreamFetchError: If the file does not exist.
            httpx.HTTPError: On transport or non-404 HTTP failures.
            ValueError: If the content is not JSON.
        """
        data = await self._fetch(download_url)
        if data is None:
            raise UpstreamFetchError("file", f"{download_url} not found")
        return data

    async def fetch_closed_pulls(self, url: str, limit: int = 100) -> list[dict]:
        """Fetch the most recent page of closed pull requests.

        No further pages are requested.
        """
        ref = split_repo_path(url)
        data = await self._fetch(
            f"/repos/{ref.owner}/{ref.repo}/pulls",
            params={"state": "closed", "per_page": limit},
        )
        if data is None or not isinstance(data, list):
            raise UpstreamFetchError("pull requests", f"{ref.owner}/{ref.repo} has no pull list")
        return data

    async def fetch_pull_reviews(self, url: str, number: int) -> list[dict]:
        """Fetch the review list of a single pull request."""
        ref = split_repo_path(url)
        data = await self._fetch(f"/repos/{ref.owner}/{ref.repo}/pulls/{number}/reviews")
        if data is None or not isinstance(data, list):
            raise UpstreamFetchError("reviews", f"pull request #{number} has no review list")
        return data
