"""
On-demand health probes for the AI services.

Each probe is a lightweight authenticated request made with httpx; the
response status maps onto healthy / degraded / down / unknown.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

import httpx
from pydantic import BaseModel, Field

from ..config.constants import DEFAULT_MODELS, GEMINI_REST_BASE_URL
from ..models.provider_config import AuthMode, ProviderConfig

logger = logging.getLogger(__name__)

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
OPENAI_MODELS_URL = "https://api.openai.com/v1/models"
TOKEN_EXPIRY_WARNING = 24 * 60 * 60.0


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DOWN = "down"
    UNKNOWN = "unknown"


class ServiceHealth(BaseModel):
    """Result of one service probe."""
    status: HealthStatus
    last_checked: float
    response_time: Optional[float] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SystemHealth(BaseModel):
    services: Dict[str, ServiceHealth]
    overall: HealthStatus
    last_full_check: float


class HealthCheckService:
    """
    Probes each configured provider on demand.

    Args:
        credentials: Provider name to ProviderConfig; missing providers report unknown
        timeout: Per-probe timeout in seconds
        http_client: Optional shared httpx.AsyncClient
        clock: Wall clock, for token expiry and timestamps
    """

    SERVICES = ("claude", "openai", "gemini")

    def __init__(
        self,
        credentials: Mapping[str, ProviderConfig],
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time
    ):
        self.credentials = dict(credentials)
        self.timeout = timeout
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._clock = clock
        self._last: Optional[SystemHealth] = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def aclose(self) -> None:
        """Close the probe client if this service opened it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "HealthCheckService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def get_health_status(self) -> Optional[SystemHealth]:
        """Result of the most recent ``check_all``."""
        return self._last

    async def check_all(self) -> SystemHealth:
        results = await asyncio.gather(*(self.check_service(name) for name in self.SERVICES))
        services = dict(zip(self.SERVICES, results))
        self._last = SystemHealth(
            services=services,
            overall=self.overall_status(services.values()),
            last_full_check=self._clock(),
        )
        return self._last

    async def check_service(self, service: str) -> ServiceHealth:
        config = self.credentials.get(service)
        if config is None:
            return self._health(HealthStatus.UNKNOWN, error="No API key configured")

        if service == "claude":
            return await self._probe(
                "POST",
                ANTHROPIC_MESSAGES_URL,
                headers={"x-api-key": config.credential, "anthropic-version": ANTHROPIC_VERSION},
                json={
                    "model": config.model or DEFAULT_MODELS["claude"],
                    "max_tokens": 10,
                    "messages": [{"role": "user", "content": "ping"}],
                },
            )
        if service == "openai":
            return await self._probe(
                "GET", OPENAI_MODELS_URL,
                headers={"Authorization": f"Bearer {config.credential}"},
            )
        if service == "gemini":
            if config.auth_mode == AuthMode.OAUTH:
                return self._check_token_expiry(config)
            return await self._probe(
                "GET", f"{GEMINI_REST_BASE_URL}/models",
                params={"key": config.credential},
                down_statuses=(401, 403),
            )
        return self._health(HealthStatus.UNKNOWN, error=f"Unknown service: {service}")

    def _check_token_expiry(self, config: ProviderConfig) -> ServiceHealth:
        expires_at = config.oauth_tokens.expires_at if config.oauth_tokens else None
        metadata = {"token_expiry": expires_at}
        expires_in = expires_at - self._clock() if expires_at else 0.0
        if expires_in < TOKEN_EXPIRY_WARNING:
            return self._health(HealthStatus.DEGRADED, error="OAuth token expires soon",
                                metadata=metadata)
        return self._health(HealthStatus.HEALTHY, metadata=metadata)

    async def _probe(self, method: str, url: str, down_statuses=(401, 403),
                     **request_kwargs: Any) -> ServiceHealth:
        started = time.monotonic()
        try:
            response = await self.http_client.request(method, url, timeout=self.timeout,
                                                      **request_kwargs)
        except httpx.HTTPError as e:
            logger.warning("Health probe failed for %s: %s", url, e)
            return self._health(HealthStatus.DOWN, error=str(e) or "Connection failed")

        response_time = time.monotonic() - started
        status = response.status_code
        if 200 <= status < 300:
            return self._health(HealthStatus.HEALTHY, response_time=response_time)
        if status == 429:
            return self._health(HealthStatus.DEGRADED, response_time=response_time,
                                error="Rate limited")
        if status in down_statuses:
            return self._health(HealthStatus.DOWN, response_time=response_time,
                                error="Invalid API key")
        return self._health(HealthStatus.DEGRADED, response_time=response_time,
                            error=f"HTTP {status}")

    def _health(self, status: HealthStatus, **fields: Any) -> ServiceHealth:
        return ServiceHealth(status=status, last_checked=self._clock(), **fields)

    @staticmethod
    def overall_status(services) -> HealthStatus:
        """Down or degraded anywhere degrades the whole; any healthy service keeps it healthy."""
        statuses = {s.status for s in services}
        if HealthStatus.DOWN in statuses or HealthStatus.DEGRADED in statuses:
            return HealthStatus.DEGRADED
        if HealthStatus.HEALTHY in statuses:
            return HealthStatus.HEALTHY
        return HealthStatus.UNKNOWN
