"""
Recovery management for whole business operations.

A coarser retry driver than RetryExecutor: it wraps an entire operation,
chooses retry behaviour from the error category, and remembers the most
recent terminal failure so it can be replayed on request.
"""

import asyncio
import logging
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Optional, TypeVar

from .error_classifier import ErrorCategory, ErrorClassification, ErrorClassifier
from .retry import RetryConfig, calculate_delay, get_status_code

logger = logging.getLogger(__name__)

T = TypeVar('T')

HISTORY_LIMIT = 10

NETWORK_ERROR_MARKERS = ("econnrefused", "enotfound", "etimedout", "network", "fetch failed")


@dataclass(frozen=True)
class RecoveryConfig:
    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0
    retryable_categories: FrozenSet[ErrorCategory] = frozenset({
        ErrorCategory.NETWORK,
        ErrorCategory.TIMEOUT,
        ErrorCategory.RATE_LIMIT,
        ErrorCategory.API_ERROR,
    })

    def to_retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            backoff_multiplier=self.backoff_multiplier,
        )


DEFAULT_RECOVERY_CONFIG = RecoveryConfig()

RATE_LIMIT_RECOVERY_CONFIG = RecoveryConfig(
    max_attempts=2,
    initial_delay=5.0,
    max_delay=60.0,
    retryable_categories=frozenset({ErrorCategory.RATE_LIMIT}),
)

TIMEOUT_RECOVERY_CONFIG = RecoveryConfig(
    max_attempts=1,
    initial_delay=2.0,
    max_delay=2.0,
    backoff_multiplier=1.0,
    retryable_categories=frozenset({ErrorCategory.TIMEOUT}),
)


def config_for_category(category: Optional[ErrorCategory]) -> RecoveryConfig:
    """Pick the recovery preset suited to an error category."""
    if category is ErrorCategory.RATE_LIMIT:
        return RATE_LIMIT_RECOVERY_CONFIG
    if category is ErrorCategory.TIMEOUT:
        return TIMEOUT_RECOVERY_CONFIG
    return DEFAULT_RECOVERY_CONFIG


@dataclass(frozen=True)
class OperationMetadata:
    id: str
    name: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def create(cls, name: str, context: Optional[Dict[str, Any]] = None) -> "OperationMetadata":
        return cls(id=f"{name}-{uuid.uuid4().hex[:12]}", name=name, context=dict(context or {}))


@dataclass
class FailedOperation:
    operation: OperationMetadata
    error: Exception
    classification: ErrorClassification
    attempt_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": {
                "id": self.operation.id,
                "name": self.operation.name,
                "context": self.operation.context,
                "timestamp": self.operation.timestamp,
            },
            "error": str(self.error),
            "error_type": type(self.error).__name__,
            "classification": self.classification.to_dict(),
            "attempt_count": self.attempt_count,
        }


class RecoveryManager:
    """Retries business operations and keeps the last terminal failure for replay."""

    def __init__(self, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self._sleep = sleep
        self._last_failed: Optional[FailedOperation] = None
        self._history: "OrderedDict[str, FailedOperation]" = OrderedDict()

    def should_retry(self, error: Exception, config: RecoveryConfig) -> bool:
        """
        Decide whether a failed operation may be attempted again.

        Checks, in order: an explicit ``retryable`` flag, an explicit error
        category, the HTTP status (5xx and 429 retry, other 4xx do not), and
        finally network-failure markers in the message.
        """
        retryable = getattr(error, "retryable", None)
        if isinstance(retryable, bool):
            return retryable

        category = getattr(error, "error_category", None) or getattr(error, "category", None)
        if isinstance(category, ErrorCategory):
            return category in config.retryable_categories

        status = get_status_code(error)
        if status is not None:
            return status >= 500 or status == 429

        message = str(error).lower()
        return any(marker in message for marker in NETWORK_ERROR_MARKERS)

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        metadata: OperationMetadata,
        config: RecoveryConfig = DEFAULT_RECOVERY_CONFIG
    ) -> T:
        """
        Run an operation with category-aware retries.

        Raises:
            Exception: The final error once the operation is not retryable or
                attempts are exhausted; the failure is stored for replay first.
        """
        retry_config = config.to_retry_config()
        attempt = 0

        while True:
            attempt += 1
            try:
                result = await operation()
            except Exception as error:  # noqa: BLE001
                if attempt >= config.max_attempts or not self.should_retry(error, config):
                    self.record_failure(metadata, error, attempt)
                    raise

                delay = calculate_delay(attempt - 1, retry_config)
                logger.info(
                    f"Operation {metadata.name} failed (attempt {attempt}/{config.max_attempts}), "
                    f"retrying in {delay:.2f}s",
                    extra={"operation_id": metadata.id, "operation": metadata.name}
                )
                await self._sleep(delay)
                continue

            if self._last_failed is not None and self._last_failed.operation.id == metadata.id:
                self._last_failed = None
            return result

    def record_failure(self, metadata: OperationMetadata, error: Exception, attempt_count: int) -> FailedOperation:
        """Store a terminal failure as the last failed operation and in history."""
        failed = FailedOperation(
            operation=metadata,
            error=error,
            classification=ErrorClassifier.classify_error(error),
            attempt_count=attempt_count,
        )
        self._last_failed = failed
        self._remember(failed)

        logger.error(
            f"Operation {metadata.name} failed after {attempt_count} attempt(s): {error}",
            extra={
                "operation_id": metadata.id,
                "operation": metadata.name,
                "category": failed.classification.category.value,
            }
        )
        return failed

    async def retry_last_operation(
        self,
        executor: Callable[[OperationMetadata], Awaitable[T]]
    ) -> Optional[T]:
        """
        Replay the last failed operation through ``executor``.

        Returns None when nothing is stored. On failure the stored record's
        attempt count and error are updated and the error is raised.
        """
        failed = self._last_failed
        if failed is None:
            return None

        try:
            result = await executor(failed.operation)
        except Exception as error:  # noqa: BLE001
            failed.attempt_count += 1
            failed.error = error
            failed.classification = ErrorClassifier.classify_error(error)
            self._remember(failed)
            raise

        self._last_failed = None
        logger.info(
            f"Recovered operation {failed.operation.name}",
            extra={"operation_id": failed.operation.id, "operation": failed.operation.name}
        )
        return result

    def _remember(self, failed: FailedOperation) -> None:
        self._history.pop(failed.operation.id, None)
        self._history[failed.operation.id] = failed
        while len(self._history) > HISTORY_LIMIT:
            self._history.popitem(last=False)

    def get_last_failed_operation(self) -> Optional[FailedOperation]:
        return self._last_failed

    def clear_last_failed_operation(self) -> None:
        self._last_failed = None

    def get_operation_from_history(self, operation_id: str) -> Optional[FailedOperation]:
        return self._history.get(operation_id)

    def get_history(self) -> List[FailedOperation]:
        return list(self._history.values())

    def clear_operation_history(self) -> None:
        self._history.clear()
