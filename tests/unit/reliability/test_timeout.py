"""Tests for the timeout guard."""

import asyncio

import pytest

from ai_dispatch.reliability.errors import OperationTimeoutError
from ai_dispatch.reliability.timeout import is_timeout_error, with_timeout


class TestWithTimeout:

    @pytest.mark.asyncio
    async def test_returns_result_when_operation_settles_first(self):
        async def quick():
            return "done"

        assert await with_timeout(quick(), 1.0) == "done"

    @pytest.mark.asyncio
    async def test_propagates_operation_error_unchanged(self):
        async def failing():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await with_timeout(failing(), 1.0)

    @pytest.mark.asyncio
    async def test_raises_timeout_with_default_message(self):
        with pytest.raises(OperationTimeoutError) as exc_info:
            await with_timeout(asyncio.sleep(1), 0.01)

        assert str(exc_info.value) == "Operation timed out after 0.01s"
        assert exc_info.value.timeout == 0.01

    @pytest.mark.asyncio
    async def test_custom_message(self):
        with pytest.raises(OperationTimeoutError, match="Claude call timed out"):
            await with_timeout(asyncio.sleep(1), 0.01, "Claude call timed out")

    @pytest.mark.asyncio
    async def test_timed_out_operation_keeps_running(self):
        """The guard stops waiting but the operation still completes later."""
        finished = asyncio.Event()

        async def slow():
            await asyncio.sleep(0.05)
            finished.set()
            return "late"

        with pytest.raises(OperationTimeoutError):
            await with_timeout(slow(), 0.01)

        await asyncio.wait_for(finished.wait(), 1.0)
        assert finished.is_set()

    @pytest.mark.asyncio
    async def test_late_failure_of_abandoned_operation_is_not_raised(self):
        async def slow_failure():
            await asyncio.sleep(0.02)
            raise RuntimeError("too late")

        with pytest.raises(OperationTimeoutError):
            await with_timeout(slow_failure(), 0.005)

        # Let the abandoned task finish; its error must not surface here
        await asyncio.sleep(0.05)


class TestIsTimeoutError:

    def test_recognizes_timeout_types(self):
        assert is_timeout_error(OperationTimeoutError("x", 1.0))
        assert is_timeout_error(asyncio.TimeoutError())
        assert is_timeout_error(TimeoutError())

    def test_rejects_other_errors(self):
        assert not is_timeout_error(ValueError("timeout in message only"))
