"""Lightweight in-process metrics for Mission Control.

Tracks HTTP requests and store refresh cycles without a metrics backend.
"""

from __future__ import annotations

from collections import defaultdict, deque
from threading import Lock


def _percentiles(samples: list[float]) -> dict:
    ordered = sorted(samples)

    def percentile(p: float) -> float:
        if not ordered:
            return 0.0
        idx = int((len(ordered) - 1) * p)
        return round(ordered[idx], 2)

    return {
        "samples": len(ordered),
        "p50": percentile(0.50),
        "p95": percentile(0.95),
        "p99": percentile(0.99),
    }


class InMemoryMetrics:
    def __init__(self, latency_window: int = 2000) -> None:
        self._lock = Lock()
        self._requests_total = 0
        self._status_counts: dict[str, int] = defaultdict(int)
        self._path_counts: dict[str, int] = defaultdict(int)
        self._latencies_ms = deque(maxlen=latency_window)
        self._refresh_counts: dict[str, int] = defaultdict(int)
        self._refresh_ms = deque(maxlen=latency_window)
        self._resolutions: dict[str, int] = defaultdict(int)

    def observe_request(self, path: str, status_code: int, duration_ms: float) -> None:
        bucket = f"{status_code // 100}xx"
        with self._lock:
            self._requests_total += 1
            self._status_counts[bucket] += 1
            self._path_counts[path] += 1
            self._latencies_ms.append(float(duration_ms))

    def observe_refresh(self, outcome: str, duration_ms: float | None = None) -> None:
        """Record a refresh cycle: 'success', 'failure' or 'skipped'."""
        with self._lock:
            self._refresh_counts[outcome] += 1
            if duration_ms is not None:
                self._refresh_ms.append(float(duration_ms))

    def observe_resolution(self, ok: bool) -> None:
        with self._lock:
            self._resolutions["success" if ok else "failure"] += 1

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "requests_total": self._requests_total,
                "status_counts": dict(self._status_counts),
                "path_counts": dict(self._path_counts),
                "latency_ms": _percentiles(list(self._latencies_ms)),
                "refresh": {
                    "counts": dict(self._refresh_counts),
                    "duration_ms": _percentiles(list(self._refresh_ms)),
                },
                "resolutions": dict(self._resolutions),
            }


metrics = InMemoryMetrics()
