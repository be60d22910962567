"""Tests for the command line interface."""

import json
import zipfile

import pytest
from typer.testing import CliRunner

from conftest import REPO_URL, add_healthy_repo
from pkgtrust import cli
from pkgtrust.analyzers.pipeline import ScoringPipeline

runner = CliRunner()


def json_lines(output: str) -> list[dict]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


@pytest.fixture
def mocked_pipeline(monkeypatch, client, upstream):
    """Route every pipeline the CLI builds through the mocked transport."""
    monkeypatch.setenv("GITHUB_TOKEN", "test-token")
    monkeypatch.setenv("LOG_LEVEL", "0")
    monkeypatch.setattr(
        cli, "ScoringPipeline", lambda settings: ScoringPipeline(settings, client=client)
    )
    add_healthy_repo(upstream)
    return upstream


class TestScore:
    def test_json_rating(self, mocked_pipeline):
        result = runner.invoke(cli.app, ["score", REPO_URL, "--json"])

        assert result.exit_code == 0
        [rating] = json_lines(result.output)
        assert rating["URL"] == REPO_URL
        assert rating["NetScore"] == 0.91
        assert rating["RampUp"] == 0.75
        assert rating["GoodPinningPractice"] == 0.5

    def test_table_output(self, mocked_pipeline):
        result = runner.invoke(cli.app, ["score", REPO_URL])

        assert result.exit_code == 0
        assert "NetScore" in result.output
        assert "PinnedDependencies" in result.output

    def test_writes_output_file(self, mocked_pipeline, tmp_path):
        output = tmp_path / "rating.json"
        result = runner.invoke(cli.app, ["score", REPO_URL, "--json", "-o", str(output)])

        assert result.exit_code == 0
        assert json.loads(output.read_text())["PullRequest"] == 0.5

    def test_reference_from_zip(self, mocked_pipeline, tmp_path):
        archive = tmp_path / "widget.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("package.json", json.dumps({"repository": "github:acme/widget"}))

        result = runner.invoke(cli.app, ["score", "--zip", str(archive), "--json"])

        assert result.exit_code == 0
        assert json_lines(result.output)[0]["URL"] == REPO_URL

    def test_unsupported_reference(self, mocked_pipeline):
        result = runner.invoke(cli.app, ["score", "https://gitlab.com/acme/widget", "--json"])

        assert result.exit_code == 2
        assert json_lines(result.output) == []

    def test_missing_token(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        result = runner.invoke(cli.app, ["score", REPO_URL, "--json"])

        assert result.exit_code == 2

    def test_requires_a_reference(self, mocked_pipeline):
        result = runner.invoke(cli.app, ["score"])

        assert result.exit_code == 2


class TestBatch:
    def test_one_line_per_reference(self, mocked_pipeline, tmp_path):
        references = tmp_path / "urls.txt"
        references.write_text(f"{REPO_URL}\n\nhttps://gitlab.com/acme/widget\n")

        result = runner.invoke(cli.app, ["batch", str(references)])

        assert result.exit_code == 0
        lines = json_lines(result.output)
        assert [line["URL"] for line in lines] == [REPO_URL, "https://gitlab.com/acme/widget"]
        assert lines[0]["NetScore"] == 0.91
        assert lines[1] == {"URL": "https://gitlab.com/acme/widget", "NetScore": -1}

    def test_summary_lists_failures(self, mocked_pipeline, tmp_path):
        references = tmp_path / "urls.txt"
        references.write_text("https://gitlab.com/acme/widget\n")

        result = runner.invoke(cli.app, ["batch", str(references)])

        assert result.exit_code == 0
        assert "Recent failures" in result.output
        assert "InvalidRepositoryError" in result.output

    def test_writes_metrics_file(self, mocked_pipeline, tmp_path):
        references = tmp_path / "urls.txt"
        references.write_text(f"{REPO_URL}\nhttps://gitlab.com/acme/widget\n")
        metrics_file = tmp_path / "metrics.json"

        result = runner.invoke(
            cli.app, ["batch", str(references), "--metrics-json", str(metrics_file)]
        )

        assert result.exit_code == 0
        metrics = json.loads(metrics_file.read_text())
        assert metrics["scored_count"] == 1
        assert metrics["failed_count"] == 1
        assert metrics["labels"]["NetScore"]["count"] == 1
        assert metrics["recent_errors"][0]["reference"] == "https://gitlab.com/acme/widget"
        assert metrics["recent_errors"][0]["error_type"] == "InvalidRepositoryError"

    def test_missing_file(self, mocked_pipeline, tmp_path):
        result = runner.invoke(cli.app, ["batch", str(tmp_path / "missing.txt")])

        assert result.exit_code == 2


class TestCheck:
    def test_accepted_with_default_minimum(self, mocked_pipeline):
        result = runner.invoke(cli.app, ["check", REPO_URL])

        assert result.exit_code == 0
        assert "Accepted" in result.output

    def test_rejected_below_minimum(self, mocked_pipeline):
        result = runner.invoke(cli.app, ["check", REPO_URL, "--min-score", "0.6"])

        assert result.exit_code == 1
        assert "Rejected" in result.output
        assert "PinnedDependencies" in result.output

    def test_minimum_from_environment(self, mocked_pipeline, monkeypatch):
        monkeypatch.setenv("PKGTRUST_MIN_METRIC_SCORE", "0.6")
        result = runner.invoke(cli.app, ["check", REPO_URL])

        assert result.exit_code == 1

    def test_scoring_failure(self, mocked_pipeline):
        del mocked_pipeline.routes["https://api.github.com/repos/acme/widget"]
        result = runner.invoke(cli.app, ["check", REPO_URL])

        assert result.exit_code == 2
