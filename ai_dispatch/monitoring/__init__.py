"""Monitoring boundary: status reads, resets and health probes."""

from .health import HealthCheckService, HealthStatus, ServiceHealth, SystemHealth
from .service import MonitoringService

__all__ = [
    "HealthCheckService",
    "HealthStatus",
    "ServiceHealth",
    "SystemHealth",
    "MonitoringService",
]
