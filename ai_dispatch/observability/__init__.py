"""Observability layer for performance monitoring and logging.

This layer handles:
- Per-operation timing and outcome data points
- Percentile, error-rate and cache-hit aggregation
- Structured provider logging
"""

from .models import MetricDataPoint, OperationMetrics, PerformanceMetrics
from .monitor import (
    PerformanceMonitor,
    PerformanceMonitorConfig,
    PerformanceMonitorRegistry,
    percentile,
)
from .logging import ProviderLogger, RequestTrace

__all__ = [
    # Models
    "MetricDataPoint",
    "OperationMetrics",
    "PerformanceMetrics",

    # Monitor
    "PerformanceMonitor",
    "PerformanceMonitorConfig",
    "PerformanceMonitorRegistry",
    "percentile",

    # Logging
    "ProviderLogger",
    "RequestTrace",
]
