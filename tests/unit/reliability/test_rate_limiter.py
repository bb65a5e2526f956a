"""Tests for the sliding-window rate limiter."""

import pytest

from ai_dispatch.reliability.errors import RateLimitExceededError
from ai_dispatch.reliability.rate_limiter import RateLimiter, create_default_rate_limiter


@pytest.fixture
def limiter(clock):
    limiter = RateLimiter(clock=clock)
    limiter.configure("send_message", max_requests=3, window=60.0)
    return limiter


class TestRateLimiter:

    def test_admits_up_to_limit_then_rejects(self, limiter):
        results = [limiter.check_limit("send_message") for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert results[-1].retry_after == 60

    def test_retry_after_counts_down_to_oldest_expiry(self, limiter, clock):
        for _ in range(3):
            limiter.check_limit("send_message")
            clock.advance(10.0)

        result = limiter.check_limit("send_message")
        assert not result.allowed
        assert result.retry_after == 30

    def test_zero_limit_blocks_channel(self, limiter):
        limiter.configure("blocked", max_requests=0, window=60.0)

        result = limiter.check_limit("blocked")
        assert not result.allowed
        assert result.retry_after == 60
        assert limiter.get_usage("blocked")["current"] == 0

    def test_window_slides(self, limiter, clock):
        for _ in range(3):
            limiter.check_limit("send_message")

        clock.advance(60.0)
        assert limiter.check_limit("send_message").allowed

    def test_rejected_requests_are_not_recorded(self, limiter):
        for _ in range(5):
            limiter.check_limit("send_message")
        assert limiter.get_usage("send_message")["current"] == 3

    def test_unconfigured_channel_is_unlimited(self, limiter):
        assert all(limiter.check_limit("other").allowed for _ in range(100))
        assert limiter.get_usage("other") is None

    def test_channels_are_independent(self, limiter):
        limiter.configure("validate_api_key", max_requests=1, window=60.0)
        limiter.check_limit("validate_api_key")

        assert not limiter.check_limit("validate_api_key").allowed
        assert limiter.check_limit("send_message").allowed

    def test_acquire_raises_when_rejected(self, limiter):
        for _ in range(3):
            limiter.acquire("send_message")

        with pytest.raises(RateLimitExceededError) as exc_info:
            limiter.acquire("send_message")

        assert exc_info.value.channel == "send_message"
        assert exc_info.value.retry_after == 60
        assert exc_info.value.status_code == 429

    def test_usage(self, limiter):
        limiter.check_limit("send_message")
        assert limiter.get_usage("send_message") == {"current": 1, "max": 3, "window": 60.0}

    def test_clear_and_clear_channel(self, limiter):
        limiter.configure("stream_message", max_requests=1, window=60.0)
        limiter.check_limit("send_message")
        limiter.check_limit("stream_message")

        limiter.clear_channel("stream_message")
        assert limiter.get_usage("stream_message")["current"] == 0
        assert limiter.get_usage("send_message")["current"] == 1

        limiter.clear()
        assert limiter.get_usage("send_message")["current"] == 0

    def test_cleanup_drops_idle_channels(self, limiter, clock):
        limiter.check_limit("send_message")
        clock.advance(61.0)

        assert limiter.cleanup() == 1
        assert limiter.cleanup() == 0

    def test_default_channels(self, clock):
        limiter = create_default_rate_limiter(clock=clock)
        assert limiter.is_configured("send_message")
        assert limiter.is_configured("stream_message")
        assert limiter.get_usage("validate_api_key")["max"] == 10
