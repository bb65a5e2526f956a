"""
Runtime settings for the dispatch layer.

Defaults come from ``constants``; ``DispatchSettings.from_env()`` layers
``AI_DISPATCH_*`` environment overrides (optionally from a ``.env`` file)
on top of them.
"""

import os
from typing import Dict, List, Mapping, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from . import constants
from ..observability.monitor import PerformanceMonitorConfig
from ..reliability.cache import CacheConfig
from ..reliability.circuit_breaker import CircuitBreakerConfig
from ..reliability.retry import RetryConfig


class TimeoutSettings(BaseModel):
    """Per-provider deadlines in seconds."""
    message: float = Field(default=60.0, gt=0)
    validation: float = Field(default=30.0, gt=0)
    stream: float = Field(default=120.0, gt=0)


class RetrySettings(BaseModel):
    max_attempts: int = Field(default=constants.RETRY_MAX_ATTEMPTS, ge=1)
    initial_delay: float = Field(default=constants.RETRY_INITIAL_DELAY, ge=0)
    max_delay: float = Field(default=constants.RETRY_MAX_DELAY, ge=0)
    backoff_multiplier: float = Field(default=constants.RETRY_BACKOFF_MULTIPLIER, ge=1)
    retryable_error_codes: List[str] = Field(
        default_factory=lambda: list(constants.RETRYABLE_ERROR_CODES)
    )
    retryable_status_codes: List[int] = Field(
        default_factory=lambda: list(constants.RETRYABLE_STATUS_CODES)
    )

    @field_validator("retryable_error_codes", "retryable_status_codes", mode="before")
    @classmethod
    def split_csv(cls, v):
        """Accept comma-separated strings from the environment."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    def to_retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            backoff_multiplier=self.backoff_multiplier,
            retryable_error_codes=list(self.retryable_error_codes),
            retryable_status_codes=list(self.retryable_status_codes),
        )


class CircuitBreakerSettings(BaseModel):
    failure_threshold: int = Field(default=constants.CIRCUIT_FAILURE_THRESHOLD, ge=1)
    success_threshold: int = Field(default=constants.CIRCUIT_SUCCESS_THRESHOLD, ge=1)
    timeout: float = Field(default=constants.CIRCUIT_OPEN_TIMEOUT, ge=0)
    monitoring_window: float = Field(default=constants.CIRCUIT_MONITORING_WINDOW, gt=0)

    def to_circuit_config(self) -> CircuitBreakerConfig:
        return CircuitBreakerConfig(
            failure_threshold=self.failure_threshold,
            success_threshold=self.success_threshold,
            timeout=self.timeout,
            monitoring_window=self.monitoring_window,
        )


class CacheSettings(BaseModel):
    max_size: int = Field(default=constants.CACHE_MAX_SIZE, ge=1)
    default_ttl: float = Field(default=constants.CACHE_DEFAULT_TTL, gt=0)
    validation_ttl: float = Field(default=constants.API_KEY_VALIDATION_TTL, gt=0)

    def to_cache_config(self) -> CacheConfig:
        return CacheConfig(max_size=self.max_size, default_ttl=self.default_ttl)


class PerformanceSettings(BaseModel):
    max_data_points: int = Field(default=constants.PERFORMANCE_MAX_DATA_POINTS, ge=1)
    slow_operation_threshold: float = Field(
        default=constants.PERFORMANCE_SLOW_OPERATION_THRESHOLD, gt=0
    )
    high_error_rate_threshold: float = Field(
        default=constants.PERFORMANCE_HIGH_ERROR_RATE_THRESHOLD, ge=0, le=1
    )

    def to_monitor_config(self) -> PerformanceMonitorConfig:
        return PerformanceMonitorConfig(
            max_data_points=self.max_data_points,
            slow_operation_threshold=self.slow_operation_threshold,
            high_error_rate_threshold=self.high_error_rate_threshold,
        )


class RateLimitSettings(BaseModel):
    max_requests: int = Field(ge=1)
    window: float = Field(gt=0)


def _default_timeouts() -> Dict[str, TimeoutSettings]:
    return {name: TimeoutSettings(**values) for name, values in constants.API_TIMEOUTS.items()}


def _default_rate_limits() -> Dict[str, RateLimitSettings]:
    return {
        channel: RateLimitSettings(max_requests=max_requests, window=window)
        for channel, (max_requests, window) in constants.RATE_LIMIT_CHANNELS.items()
    }


# Environment suffix -> (section, field)
ENV_OVERRIDES: Dict[str, Tuple[str, str]] = {
    "RETRY_MAX_ATTEMPTS": ("retry", "max_attempts"),
    "RETRY_INITIAL_DELAY": ("retry", "initial_delay"),
    "RETRY_MAX_DELAY": ("retry", "max_delay"),
    "RETRY_BACKOFF_MULTIPLIER": ("retry", "backoff_multiplier"),
    "RETRY_ERROR_CODES": ("retry", "retryable_error_codes"),
    "RETRY_STATUS_CODES": ("retry", "retryable_status_codes"),
    "CIRCUIT_FAILURE_THRESHOLD": ("circuit_breaker", "failure_threshold"),
    "CIRCUIT_SUCCESS_THRESHOLD": ("circuit_breaker", "success_threshold"),
    "CIRCUIT_TIMEOUT": ("circuit_breaker", "timeout"),
    "CIRCUIT_MONITORING_WINDOW": ("circuit_breaker", "monitoring_window"),
    "CACHE_MAX_SIZE": ("cache", "max_size"),
    "CACHE_DEFAULT_TTL": ("cache", "default_ttl"),
    "CACHE_VALIDATION_TTL": ("cache", "validation_ttl"),
    "PERFORMANCE_MAX_DATA_POINTS": ("performance", "max_data_points"),
    "PERFORMANCE_SLOW_THRESHOLD": ("performance", "slow_operation_threshold"),
    "PERFORMANCE_ERROR_RATE_THRESHOLD": ("performance", "high_error_rate_threshold"),
}


class DispatchSettings(BaseModel):
    """All tunables for timeouts, retries, breakers, caches, monitors and rate limits."""
    timeouts: Dict[str, TimeoutSettings] = Field(default_factory=_default_timeouts)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    circuit_breaker: CircuitBreakerSettings = Field(default_factory=CircuitBreakerSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    performance: PerformanceSettings = Field(default_factory=PerformanceSettings)
    rate_limits: Dict[str, RateLimitSettings] = Field(default_factory=_default_rate_limits)

    def timeouts_for(self, provider: str) -> TimeoutSettings:
        return self.timeouts.get(provider) or TimeoutSettings()

    def rate_limit_channels(self) -> Dict[str, Tuple[int, float]]:
        return {
            channel: (limit.max_requests, limit.window)
            for channel, limit in self.rate_limits.items()
        }

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 dotenv: bool = True) -> "DispatchSettings":
        """
        Build settings from ``AI_DISPATCH_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``
            dotenv: Load a ``.env`` file into the process environment first

        Examples:
            AI_DISPATCH_RETRY_MAX_ATTEMPTS=5
            AI_DISPATCH_CLAUDE_MESSAGE_TIMEOUT=90
            AI_DISPATCH_RATE_LIMIT_SEND_MESSAGE=30/60
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        prefix = constants.ENV_PREFIX
        data: Dict[str, dict] = {}

        for suffix, (section, field_name) in ENV_OVERRIDES.items():
            value = environ.get(prefix + suffix)
            if value is not None:
                data.setdefault(section, {})[field_name] = value

        timeouts = {name: t.model_dump() for name, t in _default_timeouts().items()}
        for provider, values in timeouts.items():
            for kind in ("message", "validation", "stream"):
                value = environ.get(f"{prefix}{provider.upper()}_{kind.upper()}_TIMEOUT")
                if value is not None:
                    values[kind] = value
        data["timeouts"] = timeouts

        rate_limits = {
            channel: limit.model_dump() for channel, limit in _default_rate_limits().items()
        }
        for channel in rate_limits:
            value = environ.get(f"{prefix}RATE_LIMIT_{channel.upper()}")
            if value:
                max_requests, _, window = value.partition("/")
                rate_limits[channel] = {"max_requests": max_requests, "window": window or 60}
        data["rate_limits"] = rate_limits

        return cls.model_validate(data)
