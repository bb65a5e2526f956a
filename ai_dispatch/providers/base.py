"""
Base Provider Adapter Interface

This module defines the contract every AI provider adapter satisfies and the
error type adapters raise. Shared scaffolding (option merging, the guarded
call chain, validation caching, logging) lives in ``ProviderSupport`` and is
composed into each adapter rather than inherited.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional, Sequence

from ..models.conversation_types import MessageInput, RequestOptions
from ..models.streaming import StreamCallbacks


class ProviderAdapter(ABC):
    """
    Interface implemented by the Claude, OpenAI and Gemini adapters.

    The adapter is responsible for:
    - Translating the canonical {messages, system_prompt, options} request
      into the provider's request shape
    - Making the API call through the resilience chain
    - Normalizing responses to plain text
    - Mapping provider errors to ProviderError

    Provider adapters should NOT contain:
    - Business logic deciding what to ask
    - Cross-provider logic
    """

    provider_name: str

    @abstractmethod
    async def send_message(
        self,
        messages: Sequence[MessageInput],
        system_prompt: str,
        options: Optional[RequestOptions] = None
    ) -> str:
        """
        Send a conversation and return the complete response text.

        The call is guarded, outermost first, by the circuit breaker, the
        retry executor and the timeout guard.

        Raises:
            CircuitBreakerOpenError: If the provider's circuit is open
            RetryExhaustedError: If every retryable attempt failed
            ProviderError: For non-retryable provider errors (auth, bad request)
        """

    @abstractmethod
    def stream(
        self,
        messages: Sequence[MessageInput],
        system_prompt: str,
        options: Optional[RequestOptions] = None
    ) -> AsyncIterator[str]:
        """
        Stream the response as an async iterator of text chunks.

        The iterator is lazy, finite and cannot be restarted; it ends after
        the last chunk or raises the stream's error.
        """

    @abstractmethod
    async def stream_message(
        self,
        messages: Sequence[MessageInput],
        system_prompt: str,
        callbacks: StreamCallbacks,
        options: Optional[RequestOptions] = None
    ) -> None:
        """
        Deliver a streamed response through callbacks.

        Chunks go to ``on_token`` and the full text to ``on_complete``. On
        failure ``on_error`` is invoked **and** the error is raised.
        """

    @abstractmethod
    async def validate_api_key(self) -> bool:
        """
        Check that the configured credential works.

        Results are cached per credential: a definite authentication
        failure is cached as False, ambiguous failures are not cached.
        """

    @abstractmethod
    def get_model(self) -> str:
        """Return the active model identifier."""

    @abstractmethod
    def set_model(self, model: str) -> None:
        """Swap the active model at runtime."""

    async def aclose(self) -> None:
        """Close network clients the adapter created itself."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class ProviderError(Exception):
    """
    Base exception for provider-related errors.

    This should be raised for:
    - API transport errors
    - Authentication failures
    - Rate limiting
    - Transient failures that may be retryable

    Attributes:
        message: Error message
        provider: Provider name
        status_code: HTTP status code if applicable
        retry_after: Seconds to wait before retry if the provider said so
        is_retryable: Whether this error should be retried
        original_error: The original exception if wrapped
        error_category: ErrorCategory assigned by the ErrorMapper
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        self.is_retryable = False  # Default, should be set by error mapper
        self.original_error: Optional[Exception] = None
        self.error_category = None
        self.user_message: Optional[str] = None
