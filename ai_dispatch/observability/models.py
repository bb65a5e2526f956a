"""
Metrics models for the performance monitor.

Data points are immutable once recorded; aggregate views are recomputed
from the retained points on demand.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
import time


@dataclass(frozen=True)
class MetricDataPoint:
    """A single recorded operation outcome."""
    operation: str
    duration: float
    success: bool
    timestamp: float = field(default_factory=time.time)
    provider: Optional[str] = None
    error: Optional[str] = None
    retry_count: Optional[int] = None
    cache_hit: Optional[bool] = None
    auth_mode: Optional[str] = None

    @property
    def group_key(self) -> str:
        if self.provider:
            return f"{self.operation}:{self.provider}"
        return self.operation

    def to_dict(self) -> Dict[str, Any]:
        """Convert data point to dictionary format."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass
class PerformanceMetrics:
    """Aggregate statistics over a set of data points."""
    total_requests: int = 0
    success_count: int = 0
    failure_count: int = 0
    timeout_count: int = 0
    retry_count: int = 0
    circuit_breaker_trips: int = 0
    average_duration: float = 0.0
    p50_duration: float = 0.0
    p95_duration: float = 0.0
    p99_duration: float = 0.0
    success_rate: float = 0.0
    error_rate: float = 0.0
    slow_operations: int = 0

    # Present only when cache-hit data was recorded
    cache_hits: Optional[int] = None
    cache_misses: Optional[int] = None
    cache_hit_rate: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary format."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass
class OperationMetrics(PerformanceMetrics):
    """Aggregate statistics for one operation (or operation:provider pair)."""
    recent_errors: List[str] = field(default_factory=list)
    last_success: Optional[float] = None
    last_failure: Optional[float] = None
