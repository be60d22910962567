"""Latency instrumentation and collection."""

from .metrics import LatencyCollector, RunMetrics
from .timing import measure_latency

__all__ = ["LatencyCollector", "RunMetrics", "measure_latency"]
