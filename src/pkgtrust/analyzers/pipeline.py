"""End-to-end trust scoring pipeline for a single reference."""

import asyncio
import logging
import time

import httpx

from pkgtrust.adapters.locator import RepositoryLocator
from pkgtrust.adapters.npm import NpmAdapter
from pkgtrust.analyzers.github import GitHubFetcher
from pkgtrust.analyzers.metrics import (
    bus_factor_score,
    correctness_score,
    license_score,
    pinned_dependencies_score,
    pr_review_score,
    ramp_up_score,
    responsive_maintainer_score,
)
from pkgtrust.analyzers.scorer import Scorer
from pkgtrust.config import Settings
from pkgtrust.exceptions import UpstreamFetchError
from pkgtrust.models.schemas import (
    GitHubContributors,
    IssueWindow,
    NpmMaintainerCount,
    PipelineState,
    RepositorySummary,
    ResolvedRepository,
    Result,
)
from pkgtrust.monitoring.timing import elapsed_ms, measure_latency

logger = logging.getLogger(__name__)


async def _gather_all(*aws):
    """Await every awaitable, then raise the first failure if any.

    Unlike a plain gather, no sibling is left running after a failure.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class ScoringPipeline:
    """Orchestrates one trust scoring run per reference.

    Pipeline stages:
    1. Resolve the reference to a canonical GitHub URL
    2. Fetch the summary and its contributor count alongside the issue window
    3. Run all seven metric calculators concurrently, each timed
    4. Combine the weighted scores into a NetScore

    Failures in stages 1-2 abort the run. Calculator failures are absorbed
    by the calculators themselves.
    """

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            settings: Process settings; must carry a GitHub token.
            client: Optional shared HTTP client. When omitted, one is created
                on entering the async context.

        Raises:
            MissingCredentialError: If settings carry no GitHub token.
        """
        self.settings = settings
        self.scorer = Scorer()
        self.state = PipelineState.IDLE
        self._http_client = client
        self._owns_client = False
        self._bind(client)

    def _bind(self, client: httpx.AsyncClient | None) -> None:
        self.github = GitHubFetcher.from_settings(self.settings, client=client)
        self.locator = RepositoryLocator(
            [NpmAdapter(client=client, timeout=self.settings.http_timeout)]
        )

    async def __aenter__(self) -> "ScoringPipeline":
        """Set up shared HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.settings.http_timeout)
            self._owns_client = True
            self._bind(self._http_client)
        return self

    async def __aexit__(self, *args) -> None:
        """Clean up HTTP client."""
        if self._owns_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None
            self._owns_client = False
            self._bind(None)

    def _transition(self, state: PipelineState) -> None:
        logger.debug(f"Pipeline state: {self.state.value} -> {state.value}")
        self.state = state

    async def compute_trust_score(self, reference: str) -> Result:
        """Score a single package reference.

        Args:
            reference: npm package URL or GitHub repository URL.

        Returns:
            Result with NetScore and every per-metric score and latency.

        Raises:
            TrustScoreError: On any fatal failure. No partial Result is
                produced.
        """
        start = time.perf_counter()
        self.state = PipelineState.IDLE

        try:
            self._transition(PipelineState.RESOLVING)
            resolved = await self.locator.resolve(reference)

            self._transition(PipelineState.FETCHING_CORE)
            (summary, contributor_count), issues = await _gather_all(
                self._fetch_summary_and_contributors(resolved),
                self.github.fetch_issue_window(resolved.url),
            )

            self._transition(PipelineState.SCORING_FAN_OUT)
            outcomes = await self._run_calculators(
                resolved.url, summary, issues, contributor_count
            )

            self._transition(PipelineState.AGGREGATED)
            net_score = self.scorer.net_score(
                {name: outcome.score for name, outcome in outcomes.items()}
            )
            result = Result(
                url=resolved.url,
                net_score=net_score,
                net_score_latency_ms=elapsed_ms(start),
                **outcomes,
            )
        except Exception as e:
            self._transition(PipelineState.FAILED)
            logger.error(f"Error scoring {reference}: {e}")
            raise

        self._transition(PipelineState.DONE)
        logger.info(f"Processed URL: {resolved.url}, Score: {net_score}")
        return result

    async def _fetch_summary_and_contributors(
        self, resolved: ResolvedRepository
    ) -> tuple[RepositorySummary, int]:
        """Fetch the summary, then its contributor count, alongside the issue window."""
        summary = await self.github.fetch_summary(resolved.url)
        contributor_count = await self._resolve_contributor_count(summary, resolved)
        return summary, contributor_count

    async def _resolve_contributor_count(
        self, summary: RepositorySummary, resolved: ResolvedRepository
    ) -> int:
        """Count contributors from GitHub, falling back to npm maintainers."""
        source = summary.contributors_source
        if source is None and resolved.maintainer_count is not None:
            source = NpmMaintainerCount(count=resolved.maintainer_count)

        if isinstance(source, GitHubContributors):
            return await self.github.fetch_contributors_count(source.url)
        if isinstance(source, NpmMaintainerCount):
            return source.count

        raise UpstreamFetchError("contributors", "No contributor or maintainer data available")

    async def _run_calculators(
        self,
        url: str,
        summary: RepositorySummary,
        issues: IssueWindow,
        contributor_count: int,
    ) -> dict:
        """Run all seven calculators concurrently through the latency runner."""
        open_issues = list(issues.open_issues)
        closed_issues = list(issues.closed_issues)
        summary_copy = summary.model_copy()

        names = [
            "bus_factor",
            "correctness",
            "ramp_up",
            "responsive_maintainer",
            "license",
            "pinned_dependencies",
            "pr_review",
        ]
        outcomes = await asyncio.gather(
            measure_latency(lambda: bus_factor_score(contributor_count), "BusFactor"),
            measure_latency(lambda: correctness_score(summary_copy.open_issues), "Correctness"),
            measure_latency(lambda: ramp_up_score(self.github, url), "RampUp"),
            measure_latency(
                lambda: responsive_maintainer_score(open_issues, closed_issues),
                "ResponsiveMaintainer",
            ),
            measure_latency(lambda: license_score(summary_copy), "License"),
            measure_latency(
                lambda: pinned_dependencies_score(self.github, url), "PinnedDependencies"
            ),
            measure_latency(lambda: pr_review_score(self.github, url), "PRReview"),
        )

        for outcome in outcomes:
            logger.debug(f"{outcome.label}: score={outcome.score} latency={outcome.latency_ms}ms")

        return dict(zip(names, outcomes))


async def compute_trust_score(reference: str, settings: Settings | None = None) -> Result:
    """Score a package reference with a fresh pipeline.

    Args:
        reference: npm package URL or GitHub repository URL.
        settings: Process settings. Defaults to Settings.from_env().

    Returns:
        The scoring Result.
    """
    settings = settings or Settings.from_env()
    async with ScoringPipeline(settings) as pipeline:
        return await pipeline.compute_trust_score(reference)
