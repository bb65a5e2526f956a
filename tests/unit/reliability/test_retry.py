"""Tests for retry classification, backoff and the retry executor."""

from unittest.mock import AsyncMock, Mock

import pytest

from ai_dispatch.reliability.errors import OperationTimeoutError, RetryExhaustedError
from ai_dispatch.reliability.retry import (
    RetryConfig,
    RetryExecutor,
    calculate_delay,
    get_retry_after,
    get_status_code,
    is_retryable_error,
    with_retry,
)
from tests.helpers.mock_exceptions import (
    MockAnthropicAuthenticationError,
    MockAnthropicServerError,
    MockNetworkError,
    MockRateLimitError,
)


def no_sleep_executor(config=None):
    sleep = AsyncMock()
    return RetryExecutor(config or RetryConfig(), sleep=sleep), sleep


class TestErrorInspection:

    def test_status_code_from_attribute(self):
        assert get_status_code(MockAnthropicServerError(status_code=502)) == 502

    def test_status_code_from_response(self):
        error = Exception("wrapped")
        error.response = Mock(status_code=404)
        assert get_status_code(error) == 404

    def test_string_status_is_ignored(self):
        error = Exception("x")
        error.status = "UNAVAILABLE"
        assert get_status_code(error) is None

    def test_retry_after_header(self):
        assert get_retry_after(MockRateLimitError(retry_after=7)) == 7.0

    def test_retry_after_attribute_wins(self):
        error = MockRateLimitError(retry_after=7)
        error.retry_after = 2
        assert get_retry_after(error) == 2.0


class TestIsRetryableError:

    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_retryable_statuses(self, status):
        assert is_retryable_error(MockAnthropicServerError(status_code=status))

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 408, 422])
    def test_client_errors_are_not_retried(self, status):
        error = MockAnthropicServerError("network timeout", status_code=status)
        assert not is_retryable_error(error)

    def test_socket_error_code(self):
        assert is_retryable_error(MockNetworkError(code="ECONNREFUSED"))

    def test_unknown_socket_code_falls_back_to_message(self):
        assert not is_retryable_error(MockNetworkError("bad", code="EWHATEVER"))

    def test_timeout_error(self):
        assert is_retryable_error(OperationTimeoutError("slow", 1.0))

    def test_message_patterns(self):
        assert is_retryable_error(Exception("Network connection lost"))
        assert not is_retryable_error(Exception("invalid prompt"))

    def test_custom_status_allowlist(self):
        config = RetryConfig(retryable_status_codes=[503])
        assert not is_retryable_error(MockAnthropicServerError(status_code=500), config)


class TestCalculateDelay:

    def test_exponential_growth_without_jitter(self):
        config = RetryConfig(initial_delay=1.0, max_delay=8.0, jitter_ratio=0.0)
        assert [calculate_delay(n, config) for n in range(5)] == [1.0, 2.0, 4.0, 8.0, 8.0]

    def test_jitter_is_bounded(self):
        config = RetryConfig(initial_delay=1.0, max_delay=8.0)
        for attempt in range(6):
            capped = min(2 ** attempt, 8.0)
            delay = calculate_delay(attempt, config)
            assert capped <= delay <= capped * 1.25

    def test_retry_after_overrides_and_is_capped(self):
        config = RetryConfig(max_delay=8.0)
        assert calculate_delay(0, config, retry_after=3.0) == 3.0
        assert calculate_delay(0, config, retry_after=60.0) == 8.0


class TestRetryExecutor:

    @pytest.mark.asyncio
    async def test_success_after_transient_failures(self):
        executor, sleep = no_sleep_executor(RetryConfig(max_attempts=3))
        func = AsyncMock(side_effect=[MockNetworkError(), MockNetworkError(), "ok"])

        assert await executor.execute_with_retry(func) == "ok"
        assert func.call_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_error_raises_immediately(self):
        executor, sleep = no_sleep_executor()
        error = MockAnthropicAuthenticationError()
        func = AsyncMock(side_effect=error)

        with pytest.raises(MockAnthropicAuthenticationError) as exc_info:
            await executor.execute_with_retry(func)

        assert exc_info.value is error
        assert func.call_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exhaustion_raises_retry_exhausted(self):
        executor, _ = no_sleep_executor(RetryConfig(max_attempts=3))
        last = MockAnthropicServerError(status_code=503)
        func = AsyncMock(side_effect=[MockNetworkError(), MockNetworkError(), last])

        with pytest.raises(RetryExhaustedError) as exc_info:
            await executor.execute_with_retry(func)

        assert exc_info.value.attempts == 3
        assert exc_info.value.last_error is last
        assert exc_info.value.status_code == 503
        assert exc_info.value.__cause__ is last

    @pytest.mark.asyncio
    async def test_on_retry_hook_receives_attempt_and_delay(self):
        executor, _ = no_sleep_executor(RetryConfig(initial_delay=1.0, jitter_ratio=0.0))
        calls = []
        func = AsyncMock(side_effect=[MockNetworkError(), "ok"])

        await executor.execute_with_retry(func, on_retry=lambda a, e, d: calls.append((a, d)))

        assert calls == [(1, 1.0)]

    @pytest.mark.asyncio
    async def test_sleep_uses_retry_after_hint(self):
        executor, sleep = no_sleep_executor(RetryConfig(max_delay=8.0))
        func = AsyncMock(side_effect=[MockRateLimitError(retry_after=5), "ok"])

        await executor.execute_with_retry(func)

        sleep.assert_awaited_once_with(5.0)

    @pytest.mark.asyncio
    async def test_with_retry_helper(self):
        func = AsyncMock(side_effect=[MockNetworkError(), "ok"])
        result = await with_retry(func, RetryConfig(initial_delay=0.0))
        assert result == "ok"
