"""
Rolling-window performance monitoring.

Records one immutable data point per operation outcome, keeps the most recent
``max_data_points`` of them, and computes aggregate, percentile and per-group
statistics on demand.
"""

import logging
import math
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Sequence

from ..config.constants import (
    PERFORMANCE_HIGH_ERROR_RATE_THRESHOLD,
    PERFORMANCE_MAX_DATA_POINTS,
    PERFORMANCE_MIN_POINTS_FOR_ERROR_RATE,
    PERFORMANCE_SLOW_OPERATION_THRESHOLD,
)
from .models import MetricDataPoint, OperationMetrics, PerformanceMetrics

logger = logging.getLogger(__name__)

RECENT_ERRORS_LIMIT = 5


@dataclass
class PerformanceMonitorConfig:
    max_data_points: int = PERFORMANCE_MAX_DATA_POINTS
    slow_operation_threshold: float = PERFORMANCE_SLOW_OPERATION_THRESHOLD
    high_error_rate_threshold: float = PERFORMANCE_HIGH_ERROR_RATE_THRESHOLD


def percentile(sorted_durations: Sequence[float], fraction: float) -> float:
    """Nearest-rank percentile of an ascending sequence."""
    if not sorted_durations:
        return 0.0
    index = max(0, math.ceil(len(sorted_durations) * fraction) - 1)
    return sorted_durations[min(index, len(sorted_durations) - 1)]


class PerformanceMonitor:
    """Records operation outcomes and derives performance statistics."""

    def __init__(
        self,
        name: str = "default",
        config: Optional[PerformanceMonitorConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        self.name = name
        self.config = config or PerformanceMonitorConfig()
        self._clock = clock
        self._points: Deque[MetricDataPoint] = deque(maxlen=self.config.max_data_points)
        self._timeout_count = 0
        self._circuit_breaker_trips = 0

    def record(
        self,
        operation: str,
        duration: float,
        success: bool,
        provider: Optional[str] = None,
        error: Optional[str] = None,
        retry_count: Optional[int] = None,
        cache_hit: Optional[bool] = None,
        auth_mode: Optional[str] = None
    ) -> MetricDataPoint:
        """Append a data point, dropping the oldest once the window is full."""
        point = MetricDataPoint(
            operation=operation,
            duration=duration,
            success=success,
            timestamp=self._clock(),
            provider=provider,
            error=error,
            retry_count=retry_count,
            cache_hit=cache_hit,
            auth_mode=auth_mode,
        )
        self._points.append(point)

        details = {
            "monitor": self.name,
            "operation": point.group_key,
            "duration_ms": int(duration * 1000),
            "success": success,
        }
        if duration > self.config.slow_operation_threshold:
            logger.warning(f"Slow operation {point.group_key} took {duration:.2f}s", extra=details)
        else:
            logger.debug(f"Recorded {point.group_key}", extra=details)

        if not success:
            self._check_error_rate()
        return point

    def record_timeout(self) -> None:
        self._timeout_count += 1

    def record_circuit_breaker_trip(self) -> None:
        self._circuit_breaker_trips += 1

    def _check_error_rate(self) -> None:
        if len(self._points) < PERFORMANCE_MIN_POINTS_FOR_ERROR_RATE:
            return
        failures = sum(1 for p in self._points if not p.success)
        error_rate = failures / len(self._points)
        if error_rate > self.config.high_error_rate_threshold:
            logger.warning(
                f"High error rate for {self.name}: {error_rate:.1%}",
                extra={"monitor": self.name, "error_rate": error_rate}
            )

    def _aggregate(self, points: Sequence[MetricDataPoint], metrics: PerformanceMetrics) -> PerformanceMetrics:
        total = len(points)
        metrics.total_requests = total
        if total == 0:
            return metrics

        durations = sorted(p.duration for p in points)
        metrics.success_count = sum(1 for p in points if p.success)
        metrics.failure_count = total - metrics.success_count
        metrics.retry_count = sum(p.retry_count or 0 for p in points)
        metrics.average_duration = sum(durations) / total
        metrics.p50_duration = percentile(durations, 0.50)
        metrics.p95_duration = percentile(durations, 0.95)
        metrics.p99_duration = percentile(durations, 0.99)
        metrics.success_rate = metrics.success_count / total
        metrics.error_rate = metrics.failure_count / total
        metrics.slow_operations = sum(
            1 for d in durations if d > self.config.slow_operation_threshold
        )

        cache_points = [p for p in points if p.cache_hit is not None]
        if cache_points:
            metrics.cache_hits = sum(1 for p in cache_points if p.cache_hit)
            metrics.cache_misses = len(cache_points) - metrics.cache_hits
            metrics.cache_hit_rate = metrics.cache_hits / len(cache_points)
        return metrics

    def get_metrics(self) -> PerformanceMetrics:
        """Aggregate metrics across all retained data points."""
        metrics = self._aggregate(list(self._points), PerformanceMetrics())
        metrics.timeout_count = self._timeout_count
        metrics.circuit_breaker_trips = self._circuit_breaker_trips
        return metrics

    def _grouped(self, key: Callable[[MetricDataPoint], Optional[str]]) -> Dict[str, List[MetricDataPoint]]:
        groups: Dict[str, List[MetricDataPoint]] = {}
        for point in self._points:
            name = key(point)
            if name is not None:
                groups.setdefault(name, []).append(point)
        return groups

    def _operation_metrics(self, points: Iterable[MetricDataPoint]) -> OperationMetrics:
        points = list(points)
        metrics = self._aggregate(points, OperationMetrics())
        failures = [p for p in points if not p.success]
        successes = [p for p in points if p.success]
        metrics.recent_errors = [p.error or "Unknown error" for p in failures[-RECENT_ERRORS_LIMIT:]]
        metrics.last_success = successes[-1].timestamp if successes else None
        metrics.last_failure = failures[-1].timestamp if failures else None
        return metrics

    def get_metrics_by_operation(self) -> Dict[str, OperationMetrics]:
        """Metrics grouped by ``operation`` or ``operation:provider``."""
        return {
            name: self._operation_metrics(points)
            for name, points in self._grouped(lambda p: p.group_key).items()
        }

    def get_metrics_by_provider(self) -> Dict[str, PerformanceMetrics]:
        return {
            name: self._aggregate(points, PerformanceMetrics())
            for name, points in self._grouped(lambda p: p.provider).items()
        }

    def get_data_points(self) -> List[MetricDataPoint]:
        return list(self._points)

    def export_metrics(self) -> Dict[str, Any]:
        return {
            "overall": self.get_metrics().to_dict(),
            "by_operation": {
                name: metrics.to_dict()
                for name, metrics in self.get_metrics_by_operation().items()
            },
            "timestamp": self._clock(),
        }

    def clear(self) -> None:
        self._points.clear()
        self._timeout_count = 0
        self._circuit_breaker_trips = 0


class PerformanceMonitorRegistry:
    """Named performance monitors shared by every caller that references the same name."""

    def __init__(
        self,
        default_config: Optional[PerformanceMonitorConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        self.default_config = default_config
        self._clock = clock
        self.monitors: Dict[str, PerformanceMonitor] = {}

    def get_or_create(self, name: str, config: Optional[PerformanceMonitorConfig] = None) -> PerformanceMonitor:
        if name not in self.monitors:
            self.monitors[name] = PerformanceMonitor(
                name, config or self.default_config, clock=self._clock
            )
        return self.monitors[name]

    def get(self, name: str) -> Optional[PerformanceMonitor]:
        return self.monitors.get(name)

    def get_all(self) -> Dict[str, PerformanceMonitor]:
        return dict(self.monitors)

    def export_all_metrics(self) -> Dict[str, Dict[str, Any]]:
        return {name: monitor.export_metrics() for name, monitor in self.monitors.items()}

    def clear_all(self) -> None:
        for monitor in self.monitors.values():
            monitor.clear()
