"""Abstract base class for package registry adapters and URL helpers."""

import re
from abc import ABC, abstractmethod

from pkgtrust.exceptions import InvalidRepositoryError
from pkgtrust.models.schemas import RepoRef

GITHUB_HOST_MARKER = "github.com/"


class BaseAdapter(ABC):
    """Base class for package registry adapters.

    An adapter recovers the declared source repository of a package
    from its registry metadata.
    """

    @property
    @abstractmethod
    def host(self) -> str:
        """Return the registry web host this adapter recognizes."""
        ...

    def handles(self, reference: str) -> bool:
        """Check whether a reference points at this adapter's registry."""
        return self.host in reference

    @abstractmethod
    def package_name(self, reference: str) -> str:
        """Extract the package name from a registry URL.

        Raises:
            InvalidRepositoryError: If the URL has no package path.
        """
        ...

    @abstractmethod
    async def get_repository(self, name: str) -> tuple[str | None, int | None]:
        """Fetch the declared repository URL and maintainer count of a package.

        Args:
            name: Package name.

        Returns:
            Tuple of (normalized repository URL or None, maintainer count or None).

        Raises:
            RepositoryNotFoundError: If the package doesn't exist.
            UpstreamFetchError: If the registry request fails.
        """
        ...


def normalize_repo_url(url: str) -> str:
    """Strip VCS protocol decorations from a repository URL.

    Handles the forms registries commonly store:
    - git+https://github.com/owner/repo.git
    - git://github.com/owner/repo.git
    - github:owner/repo
    """
    url = url.strip()
    if url.startswith("git+"):
        url = url[len("git+"):]
    if url.startswith("git:"):
        url = "https:" + url[len("git:"):]

    # GitHub shorthand and scp-style SSH remotes
    if url.startswith("github:"):
        url = f"https://{GITHUB_HOST_MARKER}{url[len('github:'):]}"
    elif url.startswith("git@github.com:"):
        url = f"https://{GITHUB_HOST_MARKER}{url[len('git@github.com:'):]}"

    url = url.rstrip("/")
    url = re.sub(r"\.git$", "", url)
    return url


def is_github_url(url: str) -> bool:
    """Check whether a URL points at the GitHub web host."""
    return GITHUB_HOST_MARKER in url


def split_repo_path(url: str) -> RepoRef:
    """Split a canonical GitHub URL into owner and repo.

    Args:
        url: URL of the form host/owner/repo.

    Returns:
        RepoRef for the repository.

    Raises:
        InvalidRepositoryError: If the path after the host is not exactly
            two non-empty segments.
    """
    if GITHUB_HOST_MARKER not in url:
        raise InvalidRepositoryError(url, "Invalid GitHub URL")

    repo_path = url.split(GITHUB_HOST_MARKER, 1)[1].strip().rstrip("/")
    parts = [part.strip() for part in repo_path.split("/")]
    if len(parts) != 2 or not all(parts):
        raise InvalidRepositoryError(url)

    return RepoRef(owner=parts[0], repo=parts[1])
