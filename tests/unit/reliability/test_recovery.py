"""Tests for operation-level recovery."""

from unittest.mock import AsyncMock

import pytest

from ai_dispatch.reliability.error_classifier import ErrorCategory
from ai_dispatch.reliability.recovery import (
    DEFAULT_RECOVERY_CONFIG,
    HISTORY_LIMIT,
    RATE_LIMIT_RECOVERY_CONFIG,
    TIMEOUT_RECOVERY_CONFIG,
    OperationMetadata,
    RecoveryConfig,
    RecoveryManager,
    config_for_category,
)
from tests.helpers.mock_exceptions import (
    MockAnthropicAuthenticationError,
    MockAnthropicServerError,
    MockNetworkError,
)


class CategorizedError(Exception):
    def __init__(self, message, category):
        super().__init__(message)
        self.error_category = category


@pytest.fixture
def manager():
    return RecoveryManager(sleep=AsyncMock())


class TestShouldRetry:

    def test_explicit_flag_wins(self, manager):
        error = MockAnthropicServerError()
        error.retryable = False
        assert not manager.should_retry(error, DEFAULT_RECOVERY_CONFIG)

    def test_category_must_be_allowed_by_config(self, manager):
        error = CategorizedError("slow", ErrorCategory.TIMEOUT)
        assert manager.should_retry(error, DEFAULT_RECOVERY_CONFIG)
        assert not manager.should_retry(error, RATE_LIMIT_RECOVERY_CONFIG)

    def test_status_codes(self, manager):
        assert manager.should_retry(MockAnthropicServerError(status_code=500), DEFAULT_RECOVERY_CONFIG)
        assert manager.should_retry(MockAnthropicServerError(status_code=429), DEFAULT_RECOVERY_CONFIG)
        assert not manager.should_retry(MockAnthropicAuthenticationError(), DEFAULT_RECOVERY_CONFIG)

    def test_network_markers(self, manager):
        assert manager.should_retry(Exception("connect ECONNREFUSED"), DEFAULT_RECOVERY_CONFIG)
        assert not manager.should_retry(Exception("bad prompt"), DEFAULT_RECOVERY_CONFIG)


class TestPresets:

    def test_preset_values(self):
        assert (DEFAULT_RECOVERY_CONFIG.max_attempts, DEFAULT_RECOVERY_CONFIG.initial_delay,
                DEFAULT_RECOVERY_CONFIG.max_delay) == (3, 1.0, 30.0)
        assert RATE_LIMIT_RECOVERY_CONFIG.retryable_categories == {ErrorCategory.RATE_LIMIT}
        assert TIMEOUT_RECOVERY_CONFIG.max_attempts == 1

    def test_config_for_category(self):
        assert config_for_category(ErrorCategory.RATE_LIMIT) is RATE_LIMIT_RECOVERY_CONFIG
        assert config_for_category(ErrorCategory.TIMEOUT) is TIMEOUT_RECOVERY_CONFIG
        assert config_for_category(None) is DEFAULT_RECOVERY_CONFIG


class TestExecuteWithRetry:

    @pytest.mark.asyncio
    async def test_retries_transient_failures(self, manager):
        operation = AsyncMock(side_effect=[Exception("network down"), "ok"])
        metadata = OperationMetadata.create("send_message")

        assert await manager.execute_with_retry(operation, metadata) == "ok"
        assert operation.await_count == 2
        assert manager.get_last_failed_operation() is None

    @pytest.mark.asyncio
    async def test_terminal_failure_is_stored(self, manager):
        error = MockAnthropicAuthenticationError()
        metadata = OperationMetadata.create("send_message", {"provider": "claude"})

        with pytest.raises(MockAnthropicAuthenticationError):
            await manager.execute_with_retry(AsyncMock(side_effect=error), metadata)

        failed = manager.get_last_failed_operation()
        assert failed.operation is metadata
        assert failed.error is error
        assert failed.attempt_count == 1
        assert failed.classification.category is ErrorCategory.AUTH
        assert manager.get_operation_from_history(metadata.id) is failed

    @pytest.mark.asyncio
    async def test_exhaustion_stores_attempt_count(self, manager):
        config = RecoveryConfig(max_attempts=2, initial_delay=0.0)
        operation = AsyncMock(side_effect=Exception("network down"))

        with pytest.raises(Exception, match="network down"):
            await manager.execute_with_retry(operation, OperationMetadata.create("op"), config)

        assert operation.await_count == 2
        assert manager.get_last_failed_operation().attempt_count == 2


class TestReplay:

    @pytest.mark.asyncio
    async def test_nothing_to_replay(self, manager):
        assert await manager.retry_last_operation(AsyncMock()) is None

    @pytest.mark.asyncio
    async def test_successful_replay_clears_last_failure(self, manager):
        metadata = OperationMetadata.create("send_message", {"model": "m"})
        manager.record_failure(metadata, Exception("boom"), 1)
        executor = AsyncMock(return_value="recovered")

        assert await manager.retry_last_operation(executor) == "recovered"
        executor.assert_awaited_once_with(metadata)
        assert manager.get_last_failed_operation() is None
        assert manager.get_operation_from_history(metadata.id) is not None

    @pytest.mark.asyncio
    async def test_failed_replay_updates_record(self, manager):
        metadata = OperationMetadata.create("send_message")
        manager.record_failure(metadata, Exception("boom"), 2)
        second = Exception("still broken")

        with pytest.raises(Exception, match="still broken"):
            await manager.retry_last_operation(AsyncMock(side_effect=second))

        failed = manager.get_last_failed_operation()
        assert failed.attempt_count == 3
        assert failed.error is second

    @pytest.mark.asyncio
    async def test_replay_is_a_single_attempt(self, manager):
        manager.record_failure(OperationMetadata.create("send_message"), MockNetworkError(), 3)
        executor = AsyncMock(side_effect=MockNetworkError())

        with pytest.raises(MockNetworkError):
            await manager.retry_last_operation(executor)

        assert executor.await_count == 1
        manager._sleep.assert_not_awaited()


class TestHistory:

    def test_history_is_bounded(self, manager):
        ids = []
        for i in range(HISTORY_LIMIT + 2):
            metadata = OperationMetadata.create(f"op{i}")
            ids.append(metadata.id)
            manager.record_failure(metadata, Exception("x"), 1)

        history = manager.get_history()
        assert len(history) == HISTORY_LIMIT
        assert [f.operation.id for f in history] == ids[2:]
        assert manager.get_operation_from_history(ids[0]) is None

    def test_metadata_ids_are_prefixed_and_unique(self):
        first = OperationMetadata.create("send_message")
        second = OperationMetadata.create("send_message")
        assert first.id.startswith("send_message-")
        assert first.id != second.id

    def test_clear(self, manager):
        manager.record_failure(OperationMetadata.create("op"), Exception("x"), 1)
        manager.clear_last_failed_operation()
        manager.clear_operation_history()
        assert manager.get_last_failed_operation() is None
        assert manager.get_history() == []

    def test_to_dict(self, manager):
        metadata = OperationMetadata.create("op", {"provider": "openai"})
        data = manager.record_failure(metadata, ValueError("bad"), 1).to_dict()
        assert data["operation"]["context"] == {"provider": "openai"}
        assert data["error_type"] == "ValueError"
        assert data["classification"]["category"] == "validation"
