"""
Error mapping utilities for provider adapters.

This module provides consistent error mapping across all providers,
converting SDK and HTTP errors to standardized ProviderError instances.
"""

from typing import Any, Dict, Iterable

from .base import ProviderError
from ..reliability.error_classifier import ErrorCategory, ErrorClassifier
from ..reliability.retry import get_retry_after, get_status_code, iter_error_chain


class ErrorMapper:
    """Maps provider-specific errors to standardized ProviderError."""

    PROVIDER_LABELS = {
        "claude": "Anthropic",
        "openai": "OpenAI",
        "gemini": "Gemini",
    }

    @staticmethod
    def map_error(error: Exception, provider: str) -> ProviderError:
        """
        Map any error raised while calling a provider to ProviderError.

        The original message is kept in the ProviderError message so that
        marker checks (e.g. "invalid api key") still work after mapping.
        """
        if isinstance(error, ProviderError):
            return error

        classification = ErrorClassifier.classify_error(error, provider)
        label = ErrorMapper.PROVIDER_LABELS.get(provider, provider)

        provider_error = ProviderError(
            message=f"{label} API error: {error}",
            provider=provider,
            status_code=get_status_code(error),
            retry_after=get_retry_after(error)
        )
        provider_error.is_retryable = classification.is_retryable
        provider_error.original_error = error
        provider_error.error_category = classification.category
        provider_error.user_message = classification.user_message
        provider_error.__cause__ = error
        return provider_error

    @staticmethod
    def map_anthropic_error(error: Exception) -> ProviderError:
        return ErrorMapper.map_error(error, "claude")

    @staticmethod
    def map_openai_error(error: Exception) -> ProviderError:
        return ErrorMapper.map_error(error, "openai")

    @staticmethod
    def map_gemini_error(error: Exception) -> ProviderError:
        return ErrorMapper.map_error(error, "gemini")

    @staticmethod
    def is_auth_failure(error: Exception, markers: Iterable[str], statuses: Iterable[int] = (401,)) -> bool:
        """
        Check whether an error definitively rejects the credential.

        Looks through wrapped errors for an auth status code or one of the
        provider's auth message markers.
        """
        statuses = set(statuses)
        markers = [m.lower() for m in markers]
        for cause in iter_error_chain(error):
            if get_status_code(cause) in statuses:
                return True
            if getattr(cause, "error_category", None) in (ErrorCategory.AUTH, ErrorCategory.OAUTH):
                return True
            text = str(cause).lower()
            if any(marker in text for marker in markers):
                return True
        return False

    @staticmethod
    def get_error_classification(error: ProviderError) -> Dict[str, Any]:
        """
        Get detailed error classification for logging/metrics.

        Args:
            error: The ProviderError to classify

        Returns:
            Dict with error classification details
        """
        return {
            'provider': error.provider,
            'status_code': error.status_code,
            'is_retryable': error.is_retryable,
            'retry_after': error.retry_after,
            'error_type': type(error.original_error).__name__ if error.original_error else None,
            'category': error.error_category.value if error.error_category else None,
        }
