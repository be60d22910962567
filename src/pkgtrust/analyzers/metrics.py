"""Metric calculators for package trust scoring.

Every calculator returns a score in [0, 1]. The four core metrics are pure
functions of data fetched once per run. RampUp, PinnedDependencies and
PRReview fetch their own data and map any failure to a fallback score
instead of raising.
"""

import asyncio
import logging
import math
import re

import httpx

from pkgtrust.analyzers.github import GitHubFetcher
from pkgtrust.exceptions import TrustScoreError
from pkgtrust.models.schemas import RepoEntry, RepositorySummary

logger = logging.getLogger(__name__)

# Failures a self-fetching calculator absorbs
DEGRADED_ERRORS = (httpx.HTTPError, TrustScoreError, ValueError, TypeError, AttributeError)

# Licenses compatible with LGPL v2.1, by GitHub display name
COMPATIBLE_LICENSES = frozenset({
    "GNU General Public License v2.0",
    "GNU General Public License v3.0",
    "GNU Lesser General Public License v2.1",
    "GNU Lesser General Public License v3.0",
    "MIT License",
    "ISC License",
})

README_NAMES = frozenset({"readme.md", "readme.rst", "readme.txt", "readme"})
MANIFEST_FILES = frozenset({"package.json", "requirements.txt", "build.gradle", "pom.xml"})
CI_CONFIG_FILES = frozenset({".travis.yml", ".circleci/config.yml", ".github/workflows/ci.yml"})
RAMP_UP_MAX_SCORE = 8

PINNED_PATTERNS = [
    re.compile(r"^\d+\.\d+\.\d+$"),  # 2.3.4
    re.compile(r"^\d+\.\d+$"),  # 2.3
    re.compile(r"^\d+\.\d+\.(x|\*)$"),  # 2.3.x, 2.3.*
]

PR_SAMPLE_SIZE = 100
REVIEW_BATCH_SIZE = 10


def bus_factor_score(contributor_count: int) -> float:
    """Score resilience to contributor turnover.

    Buckets: 10+ contributors -> 1.0, 5-9 -> 0.7, 2-4 -> 0.4, otherwise 0.1.
    """
    if contributor_count >= 10:
        bucket = 10
    elif contributor_count >= 5:
        bucket = 7
    elif contributor_count >= 2:
        bucket = 4
    else:
        bucket = 1

    return bucket / 10


def correctness_score(open_issue_count: int | None) -> float:
    """Score code quality from the open issue count.

    Decreases as 1 / (1 + ln(1 + n)) and never reaches 0. A missing count
    scores 0.
    """
    if open_issue_count is None:
        logger.info("Issue count is missing, returning correctness score of 0")
        return 0.0

    if open_issue_count == 0:
        return 1.0

    return round(1 / (1 + math.log(1 + open_issue_count)), 2)


def responsive_maintainer_score(open_issues: list, closed_issues: list) -> float:
    """Score maintenance activity as the closed/open issue ratio, capped at 1.

    No issue activity at all scores 0. Closed issues with none left open
    score 1.
    """
    if not open_issues:
        return 1.0 if closed_issues else 0.0

    return min(len(closed_issues) / len(open_issues), 1.0)


def license_score(summary: RepositorySummary) -> float:
    """Score 1 if the repository license is on the compatibility allow-list."""
    if summary.license_name in COMPATIBLE_LICENSES:
        return 1.0
    return 0.0


def _has_file(entries: list[RepoEntry], names: frozenset[str]) -> bool:
    return any(
        entry.name.lower() in names or entry.path.lower() in names for entry in entries
    )


def _has_dir(entries: list[RepoEntry], name: str) -> bool:
    return any(entry.type == "dir" and entry.name.lower() == name for entry in entries)


async def ramp_up_score(fetcher: GitHubFetcher, url: str) -> float:
    """Score onboarding ease from documentation and project layout.

    One point each for a README, CONTRIBUTING.md, a src directory, a test
    directory, a build manifest and a CI config, out of a fixed maximum of 8.
    """
    try:
        entries = await fetcher.fetch_directory_listing(url)
    except DEGRADED_ERRORS as e:
        logger.warning(f"Error fetching repository contents for ramp-up score: {e}")
        return 0.0

    checks = [
        _has_file(entries, README_NAMES),
        _has_file(entries, frozenset({"contributing.md"})),
        _has_dir(entries, "src"),
        _has_dir(entries, "test"),
        _has_file(entries, MANIFEST_FILES),
        _has_file(entries, CI_CONFIG_FILES),
    ]

    return sum(checks) / RAMP_UP_MAX_SCORE


def is_pinned(version: str) -> bool:
    """Check whether a version constraint pins at least major.minor.

    Exact versions, major.minor and wildcard patch count as pinned. Caret and
    tilde ranges, comparison ranges and tags do not. Tilde (~X.Y.Z) is
    deliberately unpinned here even though the legacy pattern list accepted it.
    """
    if not isinstance(version, str):
        return False

    version = version.strip()
    return any(pattern.match(version) for pattern in PINNED_PATTERNS)


def pinned_fraction(dependencies: dict, dev_dependencies: dict) -> float:
    """Fraction of unique dependency names whose constraints are all pinned.

    A name declared in both maps counts only if both constraints are pinned.
    With no dependencies at all there is nothing to penalize and the
    fraction is 1.0.
    """
    if not isinstance(dependencies, dict) or not isinstance(dev_dependencies, dict):
        raise ValueError("Dependency maps must be objects")

    names = set(dependencies) | set(dev_dependencies)
    if not names:
        return 1.0

    pinned = 0
    for name in names:
        versions = [m[name] for m in (dependencies, dev_dependencies) if name in m]
        if all(is_pinned(v) for v in versions):
            pinned += 1

    return round(pinned / len(names), 2)


async def pinned_dependencies_score(fetcher: GitHubFetcher, url: str) -> float:
    """Score how strictly package.json dependency versions are pinned.

    A repository with no root package.json scores 1.0. Fetch or parse
    failures score 0.
    """
    try:
        entries = await fetcher.fetch_directory_listing(url)
        manifest = next(
            (entry for entry in entries if entry.name.lower() == "package.json"), None
        )
        if manifest is None:
            return 1.0
        if not manifest.download_url:
            raise ValueError("package.json has no download URL")

        content = await fetcher.fetch_json_file(manifest.download_url)
        if not isinstance(content, dict):
            raise ValueError("package.json is not an object")

        return pinned_fraction(
            content.get("dependencies") or {},
            content.get("devDependencies") or {},
        )
    except DEGRADED_ERRORS as e:
        logger.warning(f"Error calculating pinned dependencies score: {e}")
        return 0.0


async def pr_review_score(fetcher: GitHubFetcher, url: str) -> float:
    """Score the fraction of merged pull requests that received a review.

    Looks at merged PRs among the most recent closed page. Review lists are
    fetched concurrently within batches of 10, one batch at a time.
    """
    try:
        closed = await fetcher.fetch_closed_pulls(url, limit=PR_SAMPLE_SIZE)
        merged = [pr for pr in closed if pr.get("merged_at")][:PR_SAMPLE_SIZE]
        if not merged:
            return 0.0

        reviewed = 0
        for start in range(0, len(merged), REVIEW_BATCH_SIZE):
            batch = merged[start:start + REVIEW_BATCH_SIZE]
            reviews = await asyncio.gather(
                *(fetcher.fetch_pull_reviews(url, pr["number"]) for pr in batch)
            )
            reviewed += sum(1 for review_list in reviews if review_list)

        return round(reviewed / len(merged), 2)
    except (*DEGRADED_ERRORS, KeyError) as e:
        logger.warning(f"Error in pull request review score: {e}")
        return 0.0
