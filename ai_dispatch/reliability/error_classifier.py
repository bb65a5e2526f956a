"""
Error classification for retry decisions and error reporting.

This module maps SDK exceptions, HTTP statuses, transport errors and message
patterns from every provider onto one shared taxonomy.
"""

from enum import Enum
from typing import Any, Dict, Optional, Set
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from .errors import (
    CircuitBreakerOpenError,
    OperationTimeoutError,
    RateLimitExceededError,
    RetryExhaustedError,
)
from .retry import get_error_code, get_retry_after, get_status_code


class ErrorCategory(Enum):
    """Standard error categories across all providers."""
    NETWORK = "network"
    AUTH = "auth"
    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    API_ERROR = "api_error"
    VALIDATION = "validation"
    OAUTH = "oauth"
    INTERNAL = "internal"


@dataclass
class ErrorClassification:
    """Detailed error classification."""
    category: ErrorCategory
    is_retryable: bool
    suggested_delay: Optional[float] = None
    user_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "is_retryable": self.is_retryable,
            "suggested_delay": self.suggested_delay,
            "user_message": self.user_message,
        }


class ErrorClassifier:
    """Classifies errors raised anywhere in the dispatch path."""

    # SDK exception class names, shared by the anthropic and openai clients
    SDK_ERROR_MAPPINGS = {
        'AuthenticationError': (ErrorCategory.AUTH, False, 'Invalid API key or authentication failed'),
        'PermissionDeniedError': (ErrorCategory.AUTH, False, 'Permission denied for this API key'),
        'RateLimitError': (ErrorCategory.RATE_LIMIT, True, 'Rate limit exceeded, please wait before retrying'),
        'BadRequestError': (ErrorCategory.API_ERROR, False, 'Invalid request parameters'),
        'NotFoundError': (ErrorCategory.API_ERROR, False, 'Model or resource not found'),
        'ConflictError': (ErrorCategory.API_ERROR, False, 'Request conflicts with current state'),
        'UnprocessableEntityError': (ErrorCategory.API_ERROR, False, 'Request could not be processed'),
        'InternalServerError': (ErrorCategory.API_ERROR, True, 'Internal server error, please retry'),
        'APIConnectionError': (ErrorCategory.NETWORK, True, 'Network connection error'),
        'APITimeoutError': (ErrorCategory.TIMEOUT, True, 'Request timed out'),
        'ServerError': (ErrorCategory.API_ERROR, True, 'Server error, please retry'),
    }

    PROVIDER_LABELS = {
        'claude': 'Anthropic',
        'openai': 'OpenAI',
        'gemini': 'Gemini',
    }

    # Checked in order, so timeout wins over network
    ERROR_PATTERNS = (
        (ErrorCategory.OAUTH, False,
         ['invalid_grant', 'token has been expired', 'token expired', 'invalid_token',
          'oauth']),
        (ErrorCategory.TIMEOUT, True,
         ['timeout', 'timed out', 'etimedout']),
        (ErrorCategory.RATE_LIMIT, True,
         ['rate limit', 'too many requests', 'quota exceeded', 'too_many_requests',
          'resource_exhausted', 'throttled']),
        (ErrorCategory.AUTH, False,
         ['invalid api key', 'invalid x-api-key', 'incorrect api key', 'api key not valid',
          'api_key_invalid', 'unauthenticated', 'unauthorized', 'authentication failed']),
        (ErrorCategory.NETWORK, True,
         ['econnrefused', 'econnreset', 'enotfound', 'enetunreach', 'eai_again',
          'network', 'connection', 'fetch failed', 'socket hang up']),
        (ErrorCategory.API_ERROR, True,
         ['server error', 'internal error', 'service unavailable', 'overloaded']),
    )

    USER_MESSAGES = {
        ErrorCategory.NETWORK: 'Could not reach the AI service',
        ErrorCategory.AUTH: 'The API key was rejected',
        ErrorCategory.TIMEOUT: 'The request took too long',
        ErrorCategory.RATE_LIMIT: 'Too many requests, please wait before retrying',
        ErrorCategory.API_ERROR: 'The AI service returned an error',
        ErrorCategory.VALIDATION: 'The request was invalid',
        ErrorCategory.OAUTH: 'The sign-in session has expired or was revoked',
        ErrorCategory.INTERNAL: 'An unexpected error occurred',
    }

    RETRYABLE_STATUS_CODES: Set[int] = {429, 500, 502, 503, 504, 520, 521, 522, 523, 524}

    @classmethod
    def classify_error(cls, error: Exception, provider: Optional[str] = None) -> ErrorClassification:
        """
        Classify an error with detailed metadata.

        Args:
            error: The exception to classify
            provider: Optional provider name (claude, openai, gemini)

        Returns:
            ErrorClassification with category, retry info, and messaging
        """
        if isinstance(error, RetryExhaustedError):
            return cls.classify_error(error.last_error, provider)

        # Already classified by an ErrorMapper
        category = getattr(error, 'error_category', None)
        if isinstance(category, ErrorCategory):
            return ErrorClassification(
                category=category,
                is_retryable=bool(getattr(error, 'is_retryable', False)),
                suggested_delay=get_retry_after(error),
                user_message=cls.USER_MESSAGES[category]
            )

        resilience = cls._classify_resilience_error(error)
        if resilience is not None:
            return resilience

        error_type = type(error).__name__
        if error_type in cls.SDK_ERROR_MAPPINGS:
            category, retryable, message = cls.SDK_ERROR_MAPPINGS[error_type]
            label = cls.PROVIDER_LABELS.get(provider or '')
            return ErrorClassification(
                category=category,
                is_retryable=retryable,
                suggested_delay=cls._get_retry_delay(error, category),
                user_message=f"{label}: {message}" if label else message
            )

        return cls._classify_generic_error(error)

    @classmethod
    def _classify_resilience_error(cls, error: Exception) -> Optional[ErrorClassification]:
        if isinstance(error, (OperationTimeoutError, httpx.TimeoutException)):
            return cls._build(ErrorCategory.TIMEOUT, True, error)
        if isinstance(error, RateLimitExceededError):
            return cls._build(ErrorCategory.RATE_LIMIT, True, error)
        if isinstance(error, CircuitBreakerOpenError):
            return cls._build(ErrorCategory.API_ERROR, True, error)
        if isinstance(error, (ValidationError, ValueError)):
            return cls._build(ErrorCategory.VALIDATION, False, error)
        if isinstance(error, (httpx.NetworkError, ConnectionError)):
            return cls._build(ErrorCategory.NETWORK, True, error)
        return None

    @classmethod
    def _classify_generic_error(cls, error: Exception) -> ErrorClassification:
        """Generic error classification based on attributes and patterns."""
        status_code = get_status_code(error)
        error_str = str(error).lower()

        if status_code is not None:
            retryable = status_code in cls.RETRYABLE_STATUS_CODES
            category = cls._categorize_by_status_code(status_code)
            if not retryable:
                # Some services report bad credentials as a plain 400
                for candidate, _, patterns in cls.ERROR_PATTERNS:
                    if candidate in (ErrorCategory.OAUTH, ErrorCategory.AUTH) and any(
                        pattern in error_str for pattern in patterns
                    ):
                        category = candidate
                        break
            return cls._build(category, retryable, error)

        if get_error_code(error) is not None:
            return cls._build(ErrorCategory.NETWORK, True, error)

        for category, retryable, patterns in cls.ERROR_PATTERNS:
            if any(pattern in error_str for pattern in patterns):
                return cls._build(category, retryable, error)

        return cls._build(ErrorCategory.INTERNAL, False, error)

    @classmethod
    def _build(cls, category: ErrorCategory, retryable: bool, error: Exception) -> ErrorClassification:
        return ErrorClassification(
            category=category,
            is_retryable=retryable,
            suggested_delay=cls._get_retry_delay(error, category) if retryable else None,
            user_message=cls.USER_MESSAGES[category]
        )

    @classmethod
    def _categorize_by_status_code(cls, status_code: int) -> ErrorCategory:
        """Categorize error based on HTTP status code."""
        if status_code in (401, 403):
            return ErrorCategory.AUTH
        elif status_code == 408:
            return ErrorCategory.TIMEOUT
        elif status_code == 429:
            return ErrorCategory.RATE_LIMIT
        elif status_code >= 400:
            return ErrorCategory.API_ERROR
        else:
            return ErrorCategory.INTERNAL

    @classmethod
    def _get_retry_delay(cls, error: Exception, category: ErrorCategory) -> Optional[float]:
        """Extract retry delay from error, falling back to a per-category default."""
        retry_after = get_retry_after(error)
        if retry_after is not None:
            return retry_after

        if category is ErrorCategory.RATE_LIMIT:
            return 60.0
        elif category is ErrorCategory.TIMEOUT:
            return 5.0
        elif category is ErrorCategory.API_ERROR:
            return 10.0
        return None
