"""
Explicit container for the shared resilience components.

Build one ``ResilienceRegistry`` at process start and hand it to every
provider adapter; named breakers, caches and monitors are then shared by all
callers that reference the same name.
"""

import time
from typing import Callable, Optional

from .config.settings import DispatchSettings
from .observability.monitor import PerformanceMonitorRegistry
from .reliability.cache import CacheRegistry
from .reliability.circuit_breaker import CircuitBreakerRegistry
from .reliability.rate_limiter import RateLimiter, create_default_rate_limiter
from .reliability.recovery import RecoveryManager


class ResilienceRegistry:
    """Owns the circuit breakers, caches, monitors, rate limiter and recovery manager."""

    def __init__(
        self,
        settings: Optional[DispatchSettings] = None,
        clock: Callable[[], float] = time.time,
        rate_limiter: Optional[RateLimiter] = None,
        recovery: Optional[RecoveryManager] = None
    ):
        self.settings = settings or DispatchSettings()
        self.clock = clock
        self.circuit_breakers = CircuitBreakerRegistry(
            self.settings.circuit_breaker.to_circuit_config(), clock=clock
        )
        self.caches = CacheRegistry(self.settings.cache.to_cache_config(), clock=clock)
        self.performance_monitors = PerformanceMonitorRegistry(
            self.settings.performance.to_monitor_config(), clock=clock
        )
        self.rate_limiter = rate_limiter or create_default_rate_limiter(
            self.settings.rate_limit_channels(), clock=clock
        )
        self.recovery = recovery or RecoveryManager()

    @classmethod
    def from_env(cls, **kwargs) -> "ResilienceRegistry":
        return cls(DispatchSettings.from_env(), **kwargs)
