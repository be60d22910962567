"""Weighted NetScore calculation and the upload acceptance gate."""

from pkgtrust.models.schemas import Result


class Scorer:
    """Combines per-metric scores into a NetScore.

    Scoring weights (total 100%):
    - Responsive Maintainer: 30%
    - Correctness: 25%
    - Ramp Up: 15%
    - Bus Factor: 10%
    - License: 10%
    - Pinned Dependencies: 5%
    - PR Review: 5%
    """

    # Score weights
    WEIGHTS = {
        "bus_factor": 0.1,
        "correctness": 0.25,
        "ramp_up": 0.15,
        "responsive_maintainer": 0.3,
        "license": 0.1,
        "pinned_dependencies": 0.05,
        "pr_review": 0.05,
    }

    def net_score(self, scores: dict[str, float]) -> float:
        """Calculate the weighted NetScore.

        Args:
            scores: Score per metric, keyed like WEIGHTS.

        Returns:
            Weighted sum rounded to 2 decimal places, clamped to [0, 1].

        Raises:
            KeyError: If a weighted metric is missing.
        """
        total = sum(weight * scores[name] for name, weight in self.WEIGHTS.items())
        return min(max(round(total, 2), 0.0), 1.0)

    def is_acceptable(self, result: Result, minimum: float = 0.0) -> bool:
        """Check whether every per-metric score reaches the minimum.

        A registry rejects uploads whose rating fails this check.
        """
        return all(outcome.score >= minimum for outcome in result.metrics().values())
