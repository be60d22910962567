"""Package registry adapters and repository resolution."""

from pkgtrust.adapters.base import BaseAdapter, normalize_repo_url, split_repo_path
from pkgtrust.adapters.locator import (
    RepositoryLocator,
    repository_from_archive,
    repository_from_manifest,
)
from pkgtrust.adapters.npm import NpmAdapter

__all__ = [
    "BaseAdapter",
    "NpmAdapter",
    "RepositoryLocator",
    "normalize_repo_url",
    "repository_from_archive",
    "repository_from_manifest",
    "split_repo_path",
]
