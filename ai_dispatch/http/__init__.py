"""HTTP layer for AI Dispatch.

Exposes the monitoring boundary as a FastAPI router:

    from ai_dispatch.http import create_monitoring_router
"""

from .api import create_monitoring_router

__all__ = ["create_monitoring_router"]
