"""Thread-safe latency statistics across scoring runs."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pkgtrust.models.schemas import Result


@dataclass
class ErrorEntry:
    """A fatal failure recorded for one reference."""

    timestamp: datetime
    reference: str
    error_type: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "reference": self.reference,
            "error_type": self.error_type,
            "message": self.message,
        }


@dataclass
class LabelStats:
    """Running latency statistics for one metric label."""

    count: int = 0
    total_ms: int = 0
    max_ms: int = 0

    @property
    def mean_ms(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_ms / self.count

    def add(self, latency_ms: int) -> None:
        self.count += 1
        self.total_ms += latency_ms
        self.max_ms = max(self.max_ms, latency_ms)


@dataclass
class RunMetrics:
    """Snapshot of everything recorded so far."""

    scored_count: int = 0
    failed_count: int = 0
    total_net_score: float = 0.0
    labels: dict[str, LabelStats] = field(default_factory=dict)

    # Errors (ring buffer of last N)
    recent_errors: deque[ErrorEntry] = field(default_factory=lambda: deque(maxlen=10))

    @property
    def average_net_score(self) -> float | None:
        """Average NetScore of successful runs."""
        if self.scored_count == 0:
            return None
        return self.total_net_score / self.scored_count

    def to_dict(self) -> dict[str, Any]:
        """Serialize metrics to a dictionary for JSON output."""
        return {
            "scored_count": self.scored_count,
            "failed_count": self.failed_count,
            "average_net_score": self.average_net_score,
            "labels": {
                label: {
                    "count": stats.count,
                    "mean_ms": round(stats.mean_ms, 1),
                    "max_ms": stats.max_ms,
                }
                for label, stats in self.labels.items()
            },
            "recent_errors": [e.to_dict() for e in self.recent_errors],
        }


class LatencyCollector:
    """Thread-safe collector of per-metric latencies across scoring runs.

    Each successful Result contributes one sample per metric label plus
    one for NetScore. Fatal failures are counted and kept in a small ring
    buffer.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._metrics = RunMetrics()

    def record_result(self, result: Result) -> None:
        """Record the latencies and NetScore of a successful run."""
        with self._lock:
            self._metrics.scored_count += 1
            self._metrics.total_net_score += result.net_score
            for outcome in result.metrics().values():
                self._stats(outcome.label).add(outcome.latency_ms)
            self._stats("NetScore").add(result.net_score_latency_ms)

    def record_failure(self, reference: str, error: Exception) -> None:
        """Record a run that produced no Result."""
        with self._lock:
            self._metrics.failed_count += 1
            self._metrics.recent_errors.append(
                ErrorEntry(
                    timestamp=datetime.now(),
                    reference=reference,
                    error_type=type(error).__name__,
                    message=str(error),
                )
            )

    def _stats(self, label: str) -> LabelStats:
        if label not in self._metrics.labels:
            self._metrics.labels[label] = LabelStats()
        return self._metrics.labels[label]

    def get_metrics(self) -> RunMetrics:
        """Return a copy of the current metrics."""
        with self._lock:
            return RunMetrics(
                scored_count=self._metrics.scored_count,
                failed_count=self._metrics.failed_count,
                total_net_score=self._metrics.total_net_score,
                labels={
                    label: LabelStats(stats.count, stats.total_ms, stats.max_ms)
                    for label, stats in self._metrics.labels.items()
                },
                recent_errors=deque(self._metrics.recent_errors, maxlen=10),
            )
