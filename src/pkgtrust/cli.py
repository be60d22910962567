"""CLI entry point for pkgtrust."""

import asyncio
import json
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from pkgtrust.adapters.locator import repository_from_archive
from pkgtrust.analyzers.pipeline import ScoringPipeline
from pkgtrust.analyzers.scorer import Scorer
from pkgtrust.config import Settings
from pkgtrust.exceptions import TrustScoreError
from pkgtrust.log import configure_logging
from pkgtrust.models.schemas import Result
from pkgtrust.monitoring import LatencyCollector

app = typer.Typer(help="Package trustworthiness scoring tool.")

console = Console()
err_console = Console(stderr=True)


def _load_settings() -> Settings:
    try:
        settings = Settings.from_env()
    except TrustScoreError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)
    configure_logging(settings)
    return settings


def _score_color(score: float) -> str:
    if score >= 0.7:
        return "green"
    if score >= 0.4:
        return "yellow"
    return "red"


def _print_result(result: Result) -> None:
    """Render a Result as a rich table."""
    console.print()
    console.print(f"[bold cyan]{result.url}[/bold cyan]")
    color = _score_color(result.net_score)
    console.print(f"NetScore: [bold {color}]{result.net_score:.2f}[/bold {color}]")
    console.print()

    table = Table(title="Metrics")
    table.add_column("Metric", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Latency (ms)", justify="right", style="dim")

    for outcome in result.metrics().values():
        color = _score_color(outcome.score)
        table.add_row(
            outcome.label,
            f"[{color}]{outcome.score:.2f}[/{color}]",
            str(outcome.latency_ms),
        )
    table.add_row("NetScore", f"{result.net_score:.2f}", str(result.net_score_latency_ms))

    console.print(table)


@app.command()
def score(
    reference: str | None = typer.Argument(None, help="npm package URL or GitHub repository URL"),
    archive: Path | None = typer.Option(
        None, "--zip", "-z", help="Zip archive whose package.json names the repository"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Print the rating as JSON"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON file"),
) -> None:
    """Score a single package reference."""
    settings = _load_settings()

    if archive is not None:
        try:
            reference = repository_from_archive(archive.read_bytes())
        except (OSError, TrustScoreError) as e:
            err_console.print(f"[red]{e}[/red]")
            raise typer.Exit(2)

    if not reference:
        err_console.print("[red]Provide a reference or --zip archive[/red]")
        raise typer.Exit(2)

    try:
        result = asyncio.run(_score(settings, reference, show_progress=not json_output))
    except TrustScoreError as e:
        err_console.print(f"[red]Error scoring {reference}: {e}[/red]")
        raise typer.Exit(2)

    rating = result.to_rating()
    if json_output:
        typer.echo(json.dumps({"URL": reference, **rating}))
    else:
        _print_result(result)

    if output:
        output.write_text(json.dumps({"URL": reference, **rating}, indent=2))
        if not json_output:
            console.print(f"\n[green]Saved to {output}[/green]")


async def _score(settings: Settings, reference: str, show_progress: bool = True) -> Result:
    """Async implementation of score."""
    async with ScoringPipeline(settings) as pipeline:
        if not show_progress:
            return await pipeline.compute_trust_score(reference)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=err_console,
            transient=True,
        ) as progress:
            progress.add_task(f"Scoring {reference}...", total=None)
            return await pipeline.compute_trust_score(reference)


@app.command()
def batch(
    file: Path = typer.Argument(..., help="File with one reference per line"),
    metrics_output: Path | None = typer.Option(
        None, "--metrics-json", help="Write latency and failure statistics to this JSON file"
    ),
) -> None:
    """Score every reference in a file, printing one JSON line each."""
    settings = _load_settings()

    try:
        references = [
            line.strip() for line in file.read_text().splitlines() if line.strip()
        ]
    except OSError as e:
        err_console.print(f"[red]Could not read {file}: {e}[/red]")
        raise typer.Exit(2)

    try:
        collector = asyncio.run(_batch(settings, references))
    except TrustScoreError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)

    _print_latency_summary(collector)

    if metrics_output:
        metrics_output.write_text(json.dumps(collector.get_metrics().to_dict(), indent=2))
        err_console.print(f"[green]Saved metrics to {metrics_output}[/green]")


async def _batch(settings: Settings, references: list[str]) -> LatencyCollector:
    """Async implementation of batch."""
    collector = LatencyCollector()

    async with ScoringPipeline(settings) as pipeline:
        for reference in references:
            try:
                result = await pipeline.compute_trust_score(reference)
            except TrustScoreError as e:
                collector.record_failure(reference, e)
                typer.echo(json.dumps({"URL": reference, "NetScore": -1}))
                continue

            collector.record_result(result)
            typer.echo(json.dumps({"URL": reference, **result.to_rating()}))

    return collector


def _print_latency_summary(collector: LatencyCollector) -> None:
    metrics = collector.get_metrics()

    table = Table(title="Latency Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Runs", justify="right")
    table.add_column("Mean (ms)", justify="right")
    table.add_column("Max (ms)", justify="right")

    for label, stats in metrics.labels.items():
        table.add_row(label, str(stats.count), f"{stats.mean_ms:.1f}", str(stats.max_ms))

    err_console.print(table)
    line = f"Scored: {metrics.scored_count}  Failed: {metrics.failed_count}"
    if metrics.average_net_score is not None:
        line += f"  Average NetScore: {metrics.average_net_score:.2f}"
    err_console.print(line)

    if metrics.recent_errors:
        err_console.print("\n[bold red]Recent failures:[/bold red]")
        for entry in metrics.recent_errors:
            err_console.print(
                f"  {entry.reference}: {entry.error_type}: {entry.message}", markup=False
            )


@app.command()
def check(
    reference: str = typer.Argument(..., help="npm package URL or GitHub repository URL"),
    min_score: float | None = typer.Option(
        None, "--min-score", "-m", help="Minimum per-metric score (defaults to PKGTRUST_MIN_METRIC_SCORE)"
    ),
) -> None:
    """Decide whether a package would be accepted for upload.

    Exits 0 when accepted, 1 when rejected and 2 when scoring fails.
    """
    settings = _load_settings()
    minimum = settings.min_metric_score if min_score is None else min_score

    try:
        result = asyncio.run(_score(settings, reference, show_progress=False))
    except TrustScoreError as e:
        err_console.print(f"[red]Error checking package rating: {e}[/red]")
        raise typer.Exit(2)

    if not Scorer().is_acceptable(result, minimum):
        failing = [
            outcome.label for outcome in result.metrics().values() if outcome.score < minimum
        ]
        console.print(
            f"[red]Rejected[/red] {reference}: {', '.join(failing)} below {minimum:.2f}"
        )
        raise typer.Exit(1)

    console.print(f"[green]Accepted[/green] {reference} (NetScore {result.net_score:.2f})")


if __name__ == "__main__":
    app()
