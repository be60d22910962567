"""Tests for NetScore aggregation and the acceptance gate."""

import pytest

from pkgtrust.analyzers.scorer import Scorer
from pkgtrust.models.schemas import MetricOutcome, RATING_FIELDS, Result


def make_result(**scores: float) -> Result:
    outcomes = {
        name: MetricOutcome(score=scores.get(name, 1.0), label=label)
        for name, label in RATING_FIELDS.items()
    }
    return Result(url="https://github.com/acme/widget", net_score=0.5, **outcomes)


class TestNetScore:
    def test_weights_sum_to_one(self):
        assert sum(Scorer.WEIGHTS.values()) == pytest.approx(1.0)

    def test_weights_cover_every_metric(self):
        assert set(Scorer.WEIGHTS) == set(RATING_FIELDS)

    def test_perfect_scores(self):
        assert Scorer().net_score(dict.fromkeys(Scorer.WEIGHTS, 1.0)) == 1.0

    def test_zero_scores(self):
        assert Scorer().net_score(dict.fromkeys(Scorer.WEIGHTS, 0.0)) == 0.0

    def test_weighted_sum_rounded(self):
        scores = {
            "bus_factor": 1.0,
            "correctness": 1.0,
            "ramp_up": 0.75,
            "responsive_maintainer": 1.0,
            "license": 1.0,
            "pinned_dependencies": 0.5,
            "pr_review": 0.5,
        }
        assert Scorer().net_score(scores) == 0.91

    def test_responsive_maintainer_dominates(self):
        scores = dict.fromkeys(Scorer.WEIGHTS, 0.0)
        scores["responsive_maintainer"] = 1.0
        assert Scorer().net_score(scores) == 0.3

    def test_missing_metric(self):
        with pytest.raises(KeyError):
            Scorer().net_score({"bus_factor": 1.0})


class TestIsAcceptable:
    def test_default_minimum_accepts_zero_scores(self):
        assert Scorer().is_acceptable(make_result(license=0.0))

    def test_one_metric_below_minimum_rejects(self):
        assert not Scorer().is_acceptable(make_result(pr_review=0.4), minimum=0.5)

    def test_all_at_minimum_accepts(self):
        result = make_result(**dict.fromkeys(RATING_FIELDS, 0.5))
        assert Scorer().is_acceptable(result, minimum=0.5)
