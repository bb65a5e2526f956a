"""Typed errors raised by the resilience utilities."""

from datetime import datetime
from typing import Optional


class OperationTimeoutError(TimeoutError):
    """Raised when an operation loses the race against its deadline."""

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message)
        self.message = message
        self.timeout = timeout


class RetryExhaustedError(Exception):
    """Raised after the final retryable attempt has failed.

    Attributes:
        attempts: Number of attempts that were made
        last_error: The exception raised by the final attempt
    """

    def __init__(self, message: str, attempts: int, last_error: Exception):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error

    @property
    def status_code(self) -> Optional[int]:
        return getattr(self.last_error, "status_code", None)

    @property
    def error_category(self):
        return getattr(self.last_error, "error_category", None)


class CircuitBreakerOpenError(Exception):
    """Raised instead of calling a dependency whose circuit is open."""

    status_code = 503

    def __init__(self, name: str, next_attempt_time: float):
        self.name = name
        self.next_attempt_time = next_attempt_time
        next_attempt = datetime.fromtimestamp(next_attempt_time).isoformat()
        super().__init__(
            f"Circuit breaker '{name}' is OPEN. Service unavailable. "
            f"Next attempt at {next_attempt}"
        )


class RateLimitExceededError(Exception):
    """Raised when a rate-limited channel rejects a request."""

    status_code = 429

    def __init__(self, channel: str, retry_after: int):
        self.channel = channel
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded for '{channel}'. Retry after {retry_after}s"
        )
