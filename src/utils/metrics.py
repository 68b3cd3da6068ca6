"""Metrics collection for lookups, cache activity and TibiaData calls.

Metric names are dotted, with the category as prefix (``lookup.cache_hit``,
``tibiadata.get_character``). Timings are recorded in milliseconds.
"""

import logging
import statistics
import threading
import time
from collections import defaultdict
from contextlib import contextmanager


class MetricCategories:
    """Pre-defined metric category prefixes."""

    LOOKUP = "lookup"  # lookup.* - pipeline outcomes
    CACHE = "cache"  # cache.* - response cache activity
    TIBIADATA = "tibiadata"  # tibiadata.* - HTTP call timings


class MetricsCollector:
    """Collects timing and counter values.

    Usage:
        metrics = MetricsCollector()

        with metrics.time_operation("tibiadata.get_character"):
            await client.get_character("Gandalf")

        metrics.increment("lookup.cache_hit")
        stats = metrics.get_stats("tibiadata.get_character")
    """

    def __init__(self) -> None:
        self._metrics: dict[str, list[float]] = defaultdict(list)
        self._lock = threading.Lock()

    @contextmanager
    def time_operation(self, operation: str):
        """Context manager recording the elapsed time of the block."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(operation, (time.perf_counter() - start) * 1000)

    def record(self, metric: str, value: float) -> None:
        """Record a metric value."""
        with self._lock:
            self._metrics[metric].append(value)

    def increment(self, metric: str) -> None:
        """Record one occurrence of a counted event."""
        self.record(metric, 1.0)

    def count(self, metric: str) -> int:
        """Number of values recorded for a metric."""
        with self._lock:
            return len(self._metrics.get(metric, []))

    def get_stats(self, metric: str) -> dict:
        """Get statistics for a metric.

        Returns:
            Dictionary with count, min, max, avg and p95
        """
        with self._lock:
            values = sorted(self._metrics.get(metric, []))
        if not values:
            return {"count": 0, "min": 0.0, "max": 0.0, "avg": 0.0, "p95": 0.0}

        count = len(values)
        return {
            "count": count,
            "min": values[0],
            "max": values[-1],
            "avg": statistics.mean(values),
            "p95": values[min(int(count * 0.95), count - 1)],
        }

    def clear(self) -> None:
        """Clear all collected metrics."""
        with self._lock:
            self._metrics.clear()

    def report(self, logger: logging.Logger | None = None) -> str:
        """Generate a human-readable report, optionally logging each line."""
        with self._lock:
            names = sorted(self._metrics)
        lines = ["METRICS REPORT"]
        if not names:
            lines.append("No metrics collected.")
        for name in names:
            stats = self.get_stats(name)
            lines.append(
                f"  {name}: count={stats['count']}, avg={stats['avg']:.2f}, "
                f"max={stats['max']:.2f}, p95={stats['p95']:.2f}"
            )

        if logger:
            for line in lines:
                logger.info(line)
        return "\n".join(lines)


_metrics_instance: MetricsCollector | None = None
_metrics_lock = threading.Lock()


def get_metrics(metrics: MetricsCollector | None = None) -> MetricsCollector:
    """Get the shared MetricsCollector, optionally replacing it."""
    global _metrics_instance  # noqa: PLW0603
    with _metrics_lock:
        if metrics is not None:
            _metrics_instance = metrics
        elif _metrics_instance is None:
            _metrics_instance = MetricsCollector()
        return _metrics_instance


def reset_metrics() -> None:
    """Reset the shared collector. Primarily for testing."""
    global _metrics_instance  # noqa: PLW0603
    with _metrics_lock:
        _metrics_instance = None
