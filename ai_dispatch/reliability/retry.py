from __future__ import annotations

import asyncio
import errno
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from ..config.constants import (
    RETRY_BACKOFF_MULTIPLIER,
    RETRY_INITIAL_DELAY,
    RETRY_JITTER_RATIO,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_DELAY,
    RETRYABLE_ERROR_CODES,
    RETRYABLE_STATUS_CODES,
)
from .errors import RetryExhaustedError
from .timeout import is_timeout_error

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Message fragments that indicate a transient transport condition
TRANSIENT_MESSAGE_PATTERNS = (
    "network",
    "timeout",
    "timed out",
    "connection",
    "econnreset",
    "socket hang up",
)

RetryHook = Callable[[int, Exception, float], None]


@dataclass
class RetryConfig:
    max_attempts: int = RETRY_MAX_ATTEMPTS
    initial_delay: float = RETRY_INITIAL_DELAY
    max_delay: float = RETRY_MAX_DELAY
    backoff_multiplier: float = RETRY_BACKOFF_MULTIPLIER
    retryable_error_codes: List[str] = field(default_factory=lambda: list(RETRYABLE_ERROR_CODES))
    retryable_status_codes: List[int] = field(default_factory=lambda: list(RETRYABLE_STATUS_CODES))
    jitter_ratio: float = RETRY_JITTER_RATIO


def get_status_code(error: Any) -> Optional[int]:
    """Extract an HTTP status code from an error, if it carries one."""
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool) and 100 <= value < 600:
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value
    return None


def get_error_code(error: Any) -> Optional[str]:
    """Extract a symbolic socket error code (e.g. ``ECONNRESET``)."""
    code = getattr(error, "code", None)
    if isinstance(code, str):
        return code
    err_no = getattr(error, "errno", None)
    if isinstance(err_no, int):
        return errno.errorcode.get(err_no)
    return None


def get_retry_after(error: Any) -> Optional[float]:
    """
    Extract a provider retry hint in seconds.

    Checks a ``retry_after`` attribute first, then a ``Retry-After`` header on
    the error's response.
    """
    retry_after = getattr(error, "retry_after", None)
    if isinstance(retry_after, (int, float)) and not isinstance(retry_after, bool):
        return float(retry_after)

    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None)
    if headers:
        value = headers.get("Retry-After") or headers.get("retry-after")
        if value:
            try:
                return float(value)
            except (TypeError, ValueError):
                return None
    return None


def iter_error_chain(error: BaseException):
    """Yield an error followed by the errors it wraps."""
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = getattr(current, "original_error", None) or current.__cause__


def is_retryable_error(error: Exception, config: Optional[RetryConfig] = None) -> bool:
    """
    Decide whether a failure is transient.

    A status code, when present, is decisive: only the configured statuses
    (429 and 5xx by default) are retried, so 401/403 and other 4xx are not.
    Otherwise timeouts, known socket error codes, errors flagged retryable and
    messages describing network or timeout conditions are retried.
    """
    config = config or RetryConfig()

    status = get_status_code(error)
    if status is not None:
        return status in config.retryable_status_codes

    if is_timeout_error(error):
        return True

    for cause in iter_error_chain(error):
        if get_error_code(cause) in config.retryable_error_codes:
            return True

    if getattr(error, "is_retryable", False) is True:
        return True

    message = str(error).lower()
    return any(pattern in message for pattern in TRANSIENT_MESSAGE_PATTERNS)


def calculate_delay(attempt: int, config: RetryConfig, retry_after: Optional[float] = None) -> float:
    """
    Compute the sleep before the next attempt.

    Args:
        attempt: Zero-based retry index (0 for the first retry)
        config: Retry configuration
        retry_after: Provider hint in seconds, overrides the backoff when set

    Returns:
        Delay in seconds
    """
    if retry_after is not None and retry_after > 0:
        return min(retry_after, config.max_delay)

    capped = min(config.initial_delay * (config.backoff_multiplier ** attempt), config.max_delay)
    jitter = random.uniform(0, config.jitter_ratio * capped)
    return capped + jitter


class RetryExecutor:
    """
    Retries a failing operation with exponential backoff.

    This class handles:
    - Transient/permanent error classification
    - Exponential backoff with jitter
    - Respect for Retry-After hints
    - Exhaustion reporting via RetryExhaustedError
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        logger: Optional[Any] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.config = config or RetryConfig()
        self.logger = logger
        self._sleep = sleep

    async def execute_with_retry(
        self,
        func: Callable[[], Awaitable[T]],
        on_retry: Optional[RetryHook] = None
    ) -> T:
        """
        Execute a function with retry logic.

        Args:
            func: Zero-argument async callable to execute
            on_retry: Called with (attempt, error, delay) before each backoff sleep

        Returns:
            Result from the first successful attempt

        Raises:
            RetryExhaustedError: If the final attempt fails with a retryable error
            Exception: A non-retryable error, immediately and unchanged
        """
        config = self.config
        log = self.logger or logger
        attempt = 0

        while True:
            attempt += 1
            try:
                return await func()
            except Exception as e:  # noqa: BLE001
                if not is_retryable_error(e, config):
                    raise

                if attempt >= config.max_attempts:
                    log.error(f"All {attempt} attempts failed: {e}")
                    raise RetryExhaustedError(
                        f"Operation failed after {attempt} attempts: {e}",
                        attempts=attempt,
                        last_error=e
                    ) from e

                delay = calculate_delay(attempt - 1, config, get_retry_after(e))
                log.info(
                    f"Attempt {attempt}/{config.max_attempts} failed, "
                    f"retrying in {delay:.2f}s: {e}"
                )
                if on_retry is not None:
                    on_retry(attempt, e, delay)

                await self._sleep(delay)


async def with_retry(
    func: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    logger: Optional[Any] = None,
    on_retry: Optional[RetryHook] = None
) -> T:
    """Run ``func`` under a one-off RetryExecutor."""
    return await RetryExecutor(config, logger).execute_with_retry(func, on_retry=on_retry)
