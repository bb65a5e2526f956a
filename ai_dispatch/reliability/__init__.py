"""Reliability layer for guarded calls to external services.

This layer handles:
- Timeout guards that stop waiting without cancelling
- Retry logic with exponential backoff and jitter
- Circuit breakers with pure state transitions
- Bounded LRU caches with TTL
- Sliding-window rate limiting
- Error classification and operation recovery
"""

from .errors import (
    CircuitBreakerOpenError,
    OperationTimeoutError,
    RateLimitExceededError,
    RetryExhaustedError,
)
from .timeout import with_timeout, is_timeout_error
from .retry import (
    RetryConfig,
    RetryExecutor,
    calculate_delay,
    is_retryable_error,
    with_retry,
)
from .circuit_breaker import (
    CircuitBreaker, CircuitBreakerConfig, CircuitBreakerRegistry,
    CircuitSnapshot, CircuitState, CircuitStats
)
from .cache import BoundedCache, CacheConfig, CacheRegistry, CacheStats
from .rate_limiter import (
    RateLimitConfig, RateLimiter, RateLimitResult, create_default_rate_limiter
)
from .error_classifier import ErrorClassifier, ErrorCategory, ErrorClassification
from .recovery import (
    DEFAULT_RECOVERY_CONFIG,
    RATE_LIMIT_RECOVERY_CONFIG,
    TIMEOUT_RECOVERY_CONFIG,
    FailedOperation,
    OperationMetadata,
    RecoveryConfig,
    RecoveryManager,
    config_for_category,
)

__all__ = [
    "CircuitBreakerOpenError",
    "OperationTimeoutError",
    "RateLimitExceededError",
    "RetryExhaustedError",
    "with_timeout",
    "is_timeout_error",
    "RetryConfig",
    "RetryExecutor",
    "calculate_delay",
    "is_retryable_error",
    "with_retry",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerRegistry",
    "CircuitSnapshot",
    "CircuitState",
    "CircuitStats",
    "BoundedCache",
    "CacheConfig",
    "CacheRegistry",
    "CacheStats",
    "RateLimitConfig",
    "RateLimiter",
    "RateLimitResult",
    "create_default_rate_limiter",
    "ErrorClassifier",
    "ErrorCategory",
    "ErrorClassification",
    "DEFAULT_RECOVERY_CONFIG",
    "RATE_LIMIT_RECOVERY_CONFIG",
    "TIMEOUT_RECOVERY_CONFIG",
    "FailedOperation",
    "OperationMetadata",
    "RecoveryConfig",
    "RecoveryManager",
    "config_for_category",
]
