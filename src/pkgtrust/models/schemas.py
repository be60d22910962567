"""Pydantic models for trust scoring data."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class PipelineState(str, Enum):
    """States of a single scoring run."""

    IDLE = "idle"
    RESOLVING = "resolving"
    FETCHING_CORE = "fetching_core"
    SCORING_FAN_OUT = "scoring_fan_out"
    AGGREGATED = "aggregated"
    DONE = "done"
    FAILED = "failed"


class RepoRef(BaseModel):
    """Reference to a GitHub repository."""

    owner: str
    repo: str

    @property
    def url(self) -> str:
        """Get the full repository URL."""
        return f"https://github.com/{self.owner}/{self.repo}"


class ResolvedRepository(BaseModel):
    """Canonical repository URL recovered from a reference."""

    url: str
    maintainer_count: int | None = None  # Only set for npm-sourced references


# --- Contributor sources ---


class GitHubContributors(BaseModel):
    """Contributors listed at a GitHub API URL (counted by paging through it)."""

    kind: Literal["github"] = "github"
    url: str


class NpmMaintainerCount(BaseModel):
    """Maintainer count taken directly from npm registry metadata."""

    kind: Literal["npm"] = "npm"
    count: int


ContributorSource = Annotated[
    GitHubContributors | NpmMaintainerCount,
    Field(discriminator="kind"),
]


# --- GitHub Data Models ---


class RepositorySummary(BaseModel):
    """Repository metadata shared by the core metrics."""

    stars: int = 0
    forks: int = 0
    open_issues: int | None = None
    license_name: str = "No license"
    updated_at: datetime | None = None
    contributors_source: ContributorSource | None = None


class IssueWindow(BaseModel):
    """Open and closed issues with activity inside the lookback window."""

    open_issues: list[dict] = Field(default_factory=list)
    closed_issues: list[dict] = Field(default_factory=list)
    since: datetime | None = None


class RepoEntry(BaseModel):
    """A single entry of a repository directory listing."""

    name: str
    path: str = ""
    type: Literal["file", "dir", "symlink", "submodule"] = "file"
    download_url: str | None = None
    size: int = 0


# --- Scores ---


class MetricOutcome(BaseModel):
    """Score and wall-clock latency of one calculator invocation."""

    score: float = Field(ge=0.0, le=1.0)
    latency_ms: int = Field(default=0, ge=0)
    label: str


# Rating record field names, in the order the registry serves them
RATING_FIELDS = {
    "ramp_up": "RampUp",
    "correctness": "Correctness",
    "bus_factor": "BusFactor",
    "responsive_maintainer": "ResponsiveMaintainer",
    "license": "LicenseScore",
    "pinned_dependencies": "GoodPinningPractice",
    "pr_review": "PullRequest",
}


class Result(BaseModel):
    """Final trust score with per-metric scores and latencies."""

    url: str
    net_score: float = Field(ge=0.0, le=1.0)
    net_score_latency_ms: int = Field(default=0, ge=0)
    bus_factor: MetricOutcome
    correctness: MetricOutcome
    ramp_up: MetricOutcome
    responsive_maintainer: MetricOutcome
    license: MetricOutcome
    pinned_dependencies: MetricOutcome
    pr_review: MetricOutcome

    def metrics(self) -> dict[str, MetricOutcome]:
        """Return the seven metric outcomes keyed by field name."""
        return {name: getattr(self, name) for name in RATING_FIELDS}

    def scores(self) -> dict[str, float]:
        """Return all scores without latencies.

        Two runs over identical upstream data produce equal dicts.
        """
        scores = {name: outcome.score for name, outcome in self.metrics().items()}
        scores["net_score"] = self.net_score
        return scores

    def to_rating(self) -> dict[str, float | int]:
        """Flatten into the rating record stored and served by the registry."""
        rating: dict[str, float | int] = {"NetScore": self.net_score}
        for name, key in RATING_FIELDS.items():
            rating[key] = getattr(self, name).score
        for name, key in RATING_FIELDS.items():
            rating[f"{key}Latency"] = getattr(self, name).latency_ms
        rating["NetScoreLatency"] = self.net_score_latency_ms
        return rating
