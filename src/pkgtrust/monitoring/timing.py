"""Latency instrumentation for metric calculators."""

import inspect
import time
from collections.abc import Awaitable, Callable

from pkgtrust.models.schemas import MetricOutcome

Computation = Callable[[], float | Awaitable[float]]


def elapsed_ms(start: float) -> int:
    """Whole milliseconds elapsed since a time.perf_counter() reading."""
    return max(int((time.perf_counter() - start) * 1000), 0)


async def measure_latency(compute: Computation, label: str) -> MetricOutcome:
    """Run a zero-argument computation and time it.

    The computation may be a plain function or a coroutine function. No
    retry or timeout is applied.

    Args:
        compute: Callable returning a score, or an awaitable of one.
        label: Metric name recorded on the outcome.

    Returns:
        MetricOutcome with the score and elapsed wall-clock milliseconds.
    """
    start = time.perf_counter()
    score = compute()
    if inspect.isawaitable(score):
        score = await score
    return MetricOutcome(score=score, latency_ms=elapsed_ms(start), label=label)
