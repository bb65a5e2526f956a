"""Tests for error classification."""

import httpx
import pytest

from ai_dispatch.reliability.error_classifier import ErrorCategory, ErrorClassifier
from ai_dispatch.reliability.errors import (
    CircuitBreakerOpenError,
    OperationTimeoutError,
    RateLimitExceededError,
    RetryExhaustedError,
)
from tests.helpers.mock_exceptions import (
    MockAnthropicAuthenticationError,
    MockAnthropicBadRequestError,
    MockAnthropicServerError,
    MockGeminiAPIError,
    MockNetworkError,
    MockRateLimitError,
)


class RateLimitError(Exception):
    """Stand-in named like the SDK class."""


class APIConnectionError(Exception):
    pass


def classify(error, provider=None):
    return ErrorClassifier.classify_error(error, provider)


class TestErrorClassifier:

    def test_sdk_class_names(self):
        result = classify(RateLimitError("slow down"), "claude")
        assert result.category is ErrorCategory.RATE_LIMIT
        assert result.is_retryable
        assert result.suggested_delay == 60.0
        assert result.user_message.startswith("Anthropic: ")

        assert classify(APIConnectionError("x")).category is ErrorCategory.NETWORK

    @pytest.mark.parametrize("error,category,retryable", [
        (MockAnthropicAuthenticationError(), ErrorCategory.AUTH, False),
        (MockAnthropicBadRequestError(), ErrorCategory.API_ERROR, False),
        (MockAnthropicServerError(status_code=502), ErrorCategory.API_ERROR, True),
        (MockRateLimitError(retry_after=12), ErrorCategory.RATE_LIMIT, True),
        (MockGeminiAPIError(403, "PERMISSION_DENIED", "denied"), ErrorCategory.AUTH, False),
    ])
    def test_status_codes(self, error, category, retryable):
        result = classify(error)
        assert result.category is category
        assert result.is_retryable is retryable

    def test_retry_after_becomes_suggested_delay(self):
        assert classify(MockRateLimitError(retry_after=12)).suggested_delay == 12.0

    def test_bad_credentials_reported_as_400(self):
        error = MockGeminiAPIError(400, "INVALID_ARGUMENT", "API key not valid. Please pass a valid API key.")
        assert classify(error).category is ErrorCategory.AUTH

    def test_resilience_errors(self):
        assert classify(OperationTimeoutError("slow", 1.0)).category is ErrorCategory.TIMEOUT
        assert classify(RateLimitExceededError("send_message", 5)).category is ErrorCategory.RATE_LIMIT
        assert classify(CircuitBreakerOpenError("claude-api", 0.0)).is_retryable
        assert classify(ValueError("bad input")).category is ErrorCategory.VALIDATION
        assert classify(httpx.ConnectError("refused")).category is ErrorCategory.NETWORK
        assert classify(httpx.ReadTimeout("slow")).category is ErrorCategory.TIMEOUT

    def test_retry_exhausted_classifies_last_error(self):
        error = RetryExhaustedError("done", 3, MockAnthropicServerError(status_code=503))
        assert classify(error).category is ErrorCategory.API_ERROR

    def test_socket_codes(self):
        assert classify(MockNetworkError()).category is ErrorCategory.NETWORK

    @pytest.mark.parametrize("message,category", [
        ("invalid_grant: Token has been expired or revoked", ErrorCategory.OAUTH),
        ("Request timed out", ErrorCategory.TIMEOUT),
        ("Too many requests", ErrorCategory.RATE_LIMIT),
        ("Invalid API key", ErrorCategory.AUTH),
        ("fetch failed", ErrorCategory.NETWORK),
        ("Model is overloaded", ErrorCategory.API_ERROR),
        ("something odd", ErrorCategory.INTERNAL),
    ])
    def test_message_patterns(self, message, category):
        assert classify(Exception(message)).category is category

    def test_to_dict(self):
        data = classify(Exception("Too many requests")).to_dict()
        assert data["category"] == "rate_limit"
        assert data["is_retryable"] is True
