"""
Read and maintenance operations over the shared resilience components.

These back the monitoring endpoints a host process exposes; none of them
carries business semantics.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from ..registry import ResilienceRegistry
from ..reliability.recovery import OperationMetadata

logger = logging.getLogger(__name__)


class MonitoringService:
    """Facade over a ResilienceRegistry for status reads and resets."""

    def __init__(self, registry: ResilienceRegistry):
        self.registry = registry

    def get_circuit_breaker_status(self) -> Dict[str, Dict[str, Any]]:
        logger.info("Getting circuit breaker status")
        return self.registry.circuit_breakers.get_all_stats()

    def get_performance_metrics(self) -> Dict[str, Dict[str, Any]]:
        logger.info("Getting performance metrics")
        return self.registry.performance_monitors.export_all_metrics()

    def get_cache_stats(self) -> Dict[str, Dict[str, Any]]:
        return self.registry.caches.get_all_stats()

    def clear_caches(self) -> None:
        logger.info("Clearing all caches")
        self.registry.caches.clear_all()

    def reset_circuit_breakers(self) -> None:
        logger.info("Resetting all circuit breakers")
        self.registry.circuit_breakers.reset_all()

    def get_last_error(self) -> Dict[str, Any]:
        """Describe the last failed operation, if any."""
        failed = self.registry.recovery.get_last_failed_operation()
        if failed is None:
            return {"has_error": False}
        return {"has_error": True, **failed.to_dict()}

    def clear_error_state(self) -> None:
        logger.info("Clearing error state")
        self.registry.recovery.clear_last_failed_operation()

    async def retry_last_operation(
        self,
        executor: Callable[[OperationMetadata], Awaitable[Any]]
    ) -> Optional[Any]:
        logger.info("Retrying last failed operation")
        return await self.registry.recovery.retry_last_operation(executor)
