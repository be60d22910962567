"""Data models and schemas."""

from pkgtrust.models.schemas import (
    ContributorSource,
    GitHubContributors,
    IssueWindow,
    MetricOutcome,
    NpmMaintainerCount,
    PipelineState,
    RepoEntry,
    RepoRef,
    RepositorySummary,
    ResolvedRepository,
    Result,
)

__all__ = [
    "ContributorSource",
    "GitHubContributors",
    "IssueWindow",
    "MetricOutcome",
    "NpmMaintainerCount",
    "PipelineState",
    "RepoEntry",
    "RepoRef",
    "RepositorySummary",
    "ResolvedRepository",
    "Result",
]
