"""Analyzers for fetching repository data and scoring it."""

from pkgtrust.analyzers.github import GitHubFetcher
from pkgtrust.analyzers.pipeline import ScoringPipeline, compute_trust_score
from pkgtrust.analyzers.scorer import Scorer

__all__ = ["GitHubFetcher", "ScoringPipeline", "Scorer", "compute_trust_score"]
