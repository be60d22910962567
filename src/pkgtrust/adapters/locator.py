"""Resolve package references to canonical GitHub repository URLs."""

import io
import json
import logging
import zipfile
from typing import Any

from pkgtrust.adapters.base import BaseAdapter, is_github_url, normalize_repo_url
from pkgtrust.adapters.npm import NpmAdapter
from pkgtrust.exceptions import InvalidRepositoryError, RepositoryNotFoundError
from pkgtrust.models.schemas import ResolvedRepository

logger = logging.getLogger(__name__)


class RepositoryLocator:
    """Maps a registry or GitHub reference to a canonical repository URL."""

    def __init__(self, adapters: list[BaseAdapter] | None = None) -> None:
        """Initialize the locator.

        Args:
            adapters: Registry adapters to consult. Defaults to npm only.
        """
        self.adapters = adapters if adapters is not None else [NpmAdapter()]

    async def resolve(self, reference: str) -> ResolvedRepository:
        """Resolve a reference.

        Registry URLs are looked up in the registry and the declared
        repository field is returned. GitHub URLs are returned unchanged.

        Args:
            reference: npm package URL or GitHub repository URL.

        Returns:
            ResolvedRepository with the canonical URL.

        Raises:
            RepositoryNotFoundError: If the registry declares no repository.
            InvalidRepositoryError: If the reference is not a supported URL.
        """
        reference = reference.strip()

        for adapter in self.adapters:
            if not adapter.handles(reference):
                continue

            name = adapter.package_name(reference)
            repository_url, maintainer_count = await adapter.get_repository(name)
            if not repository_url:
                logger.info(f"No repository URL found in registry data for {name}")
                raise RepositoryNotFoundError(reference)

            logger.debug(f"Resolved {reference} to {repository_url}")
            return ResolvedRepository(url=repository_url, maintainer_count=maintainer_count)

        if is_github_url(reference):
            return ResolvedRepository(url=reference)

        raise InvalidRepositoryError(reference, "Not a GitHub or npm URL")


def repository_from_manifest(manifest: dict[str, Any], source: str = "package.json") -> str:
    """Extract the normalized repository URL declared in a package manifest.

    Args:
        manifest: Parsed package.json content.
        source: Name used in error messages.

    Returns:
        Normalized repository URL.

    Raises:
        RepositoryNotFoundError: If the repository field is absent or empty.
    """
    repository = manifest.get("repository")
    if not repository:
        raise RepositoryNotFoundError(source, "Repository field not found")

    # Both string and object repository formats are in use
    if isinstance(repository, str):
        url = repository
    elif isinstance(repository, dict):
        url = repository.get("url")
    else:
        url = None
    if not url:
        raise RepositoryNotFoundError(source, "Repository URL not found")

    return normalize_repo_url(url)


def repository_from_archive(content: bytes) -> str:
    """Read the repository URL from package.json at the root of a zip archive.

    Args:
        content: Raw zip archive bytes.

    Returns:
        Normalized repository URL.

    Raises:
        RepositoryNotFoundError: If the archive has no root package.json or
            the manifest declares no repository.
        InvalidRepositoryError: If the archive or manifest cannot be read.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            try:
                raw = archive.read("package.json")
            except KeyError as e:
                raise RepositoryNotFoundError("archive", "package.json not found") from e
    except zipfile.BadZipFile as e:
        raise InvalidRepositoryError("archive", "Not a zip archive") from e

    try:
        manifest = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidRepositoryError("package.json", "Malformed package.json") from e

    if not isinstance(manifest, dict):
        raise InvalidRepositoryError("package.json", "Malformed package.json")

    return repository_from_manifest(manifest)
