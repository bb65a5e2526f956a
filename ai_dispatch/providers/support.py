"""
Shared scaffolding composed into every provider adapter.

``ProviderSupport`` owns option merging, the guarded call chain
(rate limit, circuit breaker, retry, timeout), per-attempt performance
recording, cached credential validation and streaming bookkeeping.
"""

import hashlib
import time
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable, Optional, TypeVar

from ..config.constants import VALIDATION_CACHE_NAME, VALIDATION_KEY_DIGEST_LENGTH
from ..models.conversation_types import RequestOptions
from ..observability.logging import ProviderLogger
from ..registry import ResilienceRegistry
from ..reliability.errors import CircuitBreakerOpenError, RateLimitExceededError
from ..reliability.recovery import OperationMetadata
from ..reliability.retry import RetryExecutor
from ..reliability.timeout import is_timeout_error, with_timeout
from .errors import ErrorMapper

T = TypeVar('T')

SEND_MESSAGE = "send_message"
STREAM_MESSAGE = "stream_message"
VALIDATE_API_KEY = "validate_api_key"


class ProviderSupport:
    """Resilience plumbing for one provider adapter."""

    def __init__(
        self,
        provider: str,
        registry: ResilienceRegistry,
        auth_mode: Optional[str] = None,
        default_options: Optional[RequestOptions] = None
    ):
        self.provider = provider
        self.registry = registry
        self.auth_mode = auth_mode
        self.default_options = default_options or RequestOptions()

        settings = registry.settings
        self.logger = ProviderLogger(provider, auth_mode=auth_mode)
        self.timeouts = settings.timeouts_for(provider)
        self.retry_config = settings.retry.to_retry_config()
        self.validation_ttl = settings.cache.validation_ttl

        self.circuit_breaker = registry.circuit_breakers.get_or_create(f"{provider}-api")
        self.monitor = registry.performance_monitors.get_or_create(f"{provider}-provider")
        self.validation_cache = registry.caches.get_or_create(VALIDATION_CACHE_NAME)

    def merge_options(self, options: Optional[RequestOptions] = None) -> RequestOptions:
        return self.default_options.merged(options)

    def _record(self, operation: str, started: Optional[float], success: bool,
                error: Optional[BaseException] = None, **fields: Any) -> None:
        duration = time.monotonic() - started if started is not None else 0.0
        self.monitor.record(
            operation,
            duration,
            success,
            provider=self.provider,
            error=str(error) if error is not None else None,
            auth_mode=self.auth_mode,
            **fields
        )

    async def call(
        self,
        operation: str,
        request: Callable[[], Awaitable[T]],
        timeout: float,
        model: str,
        metadata: Optional[OperationMetadata] = None,
        **point_fields: Any
    ) -> T:
        """
        Run ``request`` through the resilience chain.

        Order, outermost first: rate limit, circuit breaker, retry executor,
        timeout guard, the outbound call. Every attempt records a data point;
        a terminal failure with ``metadata`` is stored for manual replay.

        Args:
            operation: Operation name, also the rate-limit channel
            request: Factory returning a fresh outbound call per attempt
            timeout: Per-attempt deadline in seconds
            model: Active model, for logging
            metadata: Identifies the operation for the recovery manager
            **point_fields: Extra fields for the recorded data points
        """
        retries = 0
        timeout_message = (
            f"{ErrorMapper.PROVIDER_LABELS.get(self.provider, self.provider)} "
            f"{operation.replace('_', ' ')} timed out after {timeout:g}s"
        )

        def count_retry(attempt: int, error: Exception, delay: float) -> None:
            nonlocal retries
            retries = attempt

        async def attempt() -> T:
            started = time.monotonic()
            try:
                result = await with_timeout(request(), timeout, timeout_message)
            except Exception as error:
                if is_timeout_error(error):
                    self.monitor.record_timeout()
                self._record(operation, started, False, error=error,
                             retry_count=retries, **point_fields)
                raise
            self._record(operation, started, True, retry_count=retries, **point_fields)
            return result

        executor = RetryExecutor(self.retry_config, self.logger)

        with self.logger.track_request(operation, model):
            try:
                self.registry.rate_limiter.acquire(operation)
                return await self.circuit_breaker.execute(
                    lambda: executor.execute_with_retry(attempt, on_retry=count_retry)
                )
            except (CircuitBreakerOpenError, RateLimitExceededError) as error:
                if isinstance(error, CircuitBreakerOpenError):
                    self.monitor.record_circuit_breaker_trip()
                self._record(operation, None, False, error=error, **point_fields)
                self._remember_failure(metadata, error, 0)
                raise
            except Exception as error:
                self._remember_failure(metadata, error, getattr(error, "attempts", retries + 1))
                raise

    def _remember_failure(self, metadata: Optional[OperationMetadata],
                          error: Exception, attempts: int) -> None:
        if metadata is not None:
            self.registry.recovery.record_failure(metadata, error, attempts)

    def validation_cache_key(self, credential: str) -> str:
        """Cache key for a credential; holds a truncated sha256 digest, never the secret."""
        digest = hashlib.sha256(credential.encode("utf-8")).hexdigest()
        return f"validation:{self.provider}:{digest[:VALIDATION_KEY_DIGEST_LENGTH]}"

    async def validate(
        self,
        credential: str,
        probe: Callable[[], Awaitable[Any]],
        model: str,
        auth_markers: Iterable[str],
        auth_statuses: Iterable[int] = (401,)
    ) -> bool:
        """
        Validate a credential with a cached, guarded probe call.

        A definite auth rejection is cached as False; rate limits, timeouts
        and other ambiguous failures return False without caching.
        """
        cache_key = self.validation_cache_key(credential)
        cached = self.validation_cache.get(cache_key)
        if cached is not None:
            self._record(VALIDATE_API_KEY, None, True, cache_hit=True)
            return cached

        try:
            await self.call(VALIDATE_API_KEY, probe, self.timeouts.validation, model,
                            cache_hit=False)
        except Exception as error:  # noqa: BLE001
            if ErrorMapper.is_auth_failure(error, auth_markers, auth_statuses):
                self.validation_cache.set(cache_key, False, self.validation_ttl)
                self.logger.warning("Credential rejected", model=model)
            else:
                self.logger.warning("Credential validation inconclusive", model=model,
                                    error_type=type(error).__name__)
            return False

        self.validation_cache.set(cache_key, True, self.validation_ttl)
        return True

    async def stream(
        self,
        open_stream: Callable[[], Awaitable[AsyncIterator[str]]],
        model: str
    ) -> AsyncIterator[str]:
        """
        Yield chunks from a provider stream with timing, logging and metrics.

        Opening the stream is bounded by the stream timeout; chunk delivery
        is not retried or circuit-guarded.
        """
        started = time.monotonic()
        chunks = 0
        total_chars = 0

        with self.logger.track_request(STREAM_MESSAGE, model) as trace:
            try:
                self.registry.rate_limiter.acquire(STREAM_MESSAGE)
                stream = await with_timeout(
                    open_stream(),
                    self.timeouts.stream,
                    f"{ErrorMapper.PROVIDER_LABELS.get(self.provider, self.provider)} "
                    f"stream timed out after {self.timeouts.stream:g}s"
                )
                async for chunk in stream:
                    if not chunk:
                        continue
                    chunks += 1
                    total_chars += len(chunk)
                    yield chunk
            except Exception as error:
                if is_timeout_error(error):
                    self.monitor.record_timeout()
                self._record(STREAM_MESSAGE, started, False, error=error)
                raise

            self._record(STREAM_MESSAGE, started, True)
            self.logger.log_streaming_metrics(trace, chunks, total_chars)

    def request_metadata(self, operation: str, model: str, messages: Iterable[Any],
                         system_prompt: str, options: RequestOptions) -> OperationMetadata:
        """Describe a request so a failed call can be replayed later."""
        context: Dict[str, Any] = {
            "provider": self.provider,
            "model": model,
            "messages": [
                m.model_dump(mode="json") if hasattr(m, "model_dump") else dict(m)
                for m in messages
            ],
            "system_prompt": system_prompt,
            "options": options.model_dump(),
        }
        return OperationMetadata.create(operation, context)
