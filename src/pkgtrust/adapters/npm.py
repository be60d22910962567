"""NPM package registry adapter."""

import logging

import httpx

from pkgtrust.adapters.base import BaseAdapter, normalize_repo_url
from pkgtrust.exceptions import (
    InvalidRepositoryError,
    RepositoryNotFoundError,
    UpstreamFetchError,
)

logger = logging.getLogger(__name__)


class NpmAdapter(BaseAdapter):
    """Adapter for the NPM package registry.

    Data sources:
    - Package metadata: https://registry.npmjs.org/{package}
    """

    REGISTRY_URL = "https://registry.npmjs.org"
    PACKAGE_PATH_MARKER = "npmjs.com/package/"

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 30.0) -> None:
        """Initialize the adapter.

        Args:
            client: Optional httpx client for making requests.
            timeout: Request timeout used when no client is supplied.
        """
        self._client = client
        self._timeout = timeout

    @property
    def host(self) -> str:
        return "npmjs.com"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=self._timeout)

    async def _fetch_json(self, url: str) -> dict:
        """Fetch JSON from a URL."""
        client = await self._get_client()
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
        finally:
            if self._client is None:
                await client.aclose()

    def package_name(self, reference: str) -> str:
        """Extract the package name from an npmjs.com package URL.

        Supports scoped packages (https://www.npmjs.com/package/@org/pkg).
        Version suffixes (/v/1.2.3) and query strings are dropped.
        """
        if self.PACKAGE_PATH_MARKER not in reference:
            raise InvalidRepositoryError(reference, "Invalid npm URL")

        path = reference.split(self.PACKAGE_PATH_MARKER, 1)[1]
        path = path.split("?", 1)[0].split("#", 1)[0].strip("/")
        parts = [part for part in path.split("/") if part]
        if not parts:
            raise InvalidRepositoryError(reference, "Invalid npm URL")

        if parts[0].startswith("@"):
            if len(parts) < 2:
                raise InvalidRepositoryError(reference, "Invalid npm URL")
            return f"{parts[0]}/{parts[1]}"
        return parts[0]

    async def get_repository(self, name: str) -> tuple[str | None, int | None]:
        """Fetch the declared repository of an NPM package.

        Args:
            name: Package name (supports scoped packages like @org/pkg).

        Returns:
            Tuple of (normalized repository URL or None, maintainer count).

        Raises:
            RepositoryNotFoundError: If the package doesn't exist.
            UpstreamFetchError: If the registry request fails.
        """
        # URL-encode scoped package names
        encoded_name = name.replace("/", "%2F")
        url = f"{self.REGISTRY_URL}/{encoded_name}"

        try:
            data = await self._fetch_json(url)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise RepositoryNotFoundError(name, "Package not found in npm") from e
            raise UpstreamFetchError("npm metadata", str(e)) from e
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamFetchError("npm metadata", str(e)) from e

        if not isinstance(data, dict):
            raise UpstreamFetchError("npm metadata", "unexpected response shape")

        # Fall back to the latest version's manifest for the repository field
        latest_version = data.get("dist-tags", {}).get("latest", "")
        version_data = data.get("versions", {}).get(latest_version, {})
        repository = data.get("repository") or version_data.get("repository")
        repository_url = self._extract_repo_url(repository)

        maintainers = data.get("maintainers") or []
        maintainer_count = len([m for m in maintainers if isinstance(m, dict | str)])

        logger.debug(f"npm package {name}: repository={repository_url}, maintainers={maintainer_count}")
        return repository_url, maintainer_count

    def _extract_repo_url(self, repository: dict | str | None) -> str | None:
        """Extract repository URL from npm repository field.

        Handles various formats:
        - {"type": "git", "url": "git+https://github.com/owner/repo.git"}
        - "github:owner/repo"
        - "https://github.com/owner/repo"
        """
        if not repository:
            return None

        if isinstance(repository, str):
            url = repository
        elif isinstance(repository, dict):
            url = repository.get("url", "")
        else:
            return None

        if not url:
            return None

        url = normalize_repo_url(url)
        return url if url else None
