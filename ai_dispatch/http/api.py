"""FastAPI endpoints for the monitoring boundary.

Mount the router returned by ``create_monitoring_router`` in a host
application to expose circuit-breaker and performance status plus the
maintenance operations.
"""

from typing import Any, Dict

from fastapi import APIRouter

from ..monitoring.service import MonitoringService


def create_monitoring_router(service: MonitoringService) -> APIRouter:
    """Build a router bound to ``service``."""
    router = APIRouter(prefix="/monitoring", tags=["monitoring"])

    @router.get("/circuit-breakers")
    async def circuit_breaker_status() -> Dict[str, Any]:
        """Stats for every circuit breaker by name."""
        return {"success": True, "circuit_breakers": service.get_circuit_breaker_status()}

    @router.post("/circuit-breakers/reset")
    async def reset_circuit_breakers() -> Dict[str, Any]:
        service.reset_circuit_breakers()
        return {"success": True}

    @router.get("/performance")
    async def performance_metrics() -> Dict[str, Any]:
        """Exported metrics for every performance monitor by name."""
        return {"success": True, "metrics": service.get_performance_metrics()}

    @router.post("/caches/clear")
    async def clear_caches() -> Dict[str, Any]:
        service.clear_caches()
        return {"success": True}

    @router.get("/last-error")
    async def last_error() -> Dict[str, Any]:
        return {"success": True, **service.get_last_error()}

    @router.delete("/last-error")
    async def clear_last_error() -> Dict[str, Any]:
        service.clear_error_state()
        return {"success": True}

    return router
