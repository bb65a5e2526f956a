"""Tests for dispatch settings and environment overrides."""

import pytest
from pydantic import ValidationError

from ai_dispatch.config.settings import DispatchSettings, RetrySettings


class TestDispatchSettings:

    def test_defaults(self):
        settings = DispatchSettings()
        assert settings.retry.max_attempts == 3
        assert settings.circuit_breaker.failure_threshold == 5
        assert settings.timeouts_for("claude").message == 60.0
        assert settings.rate_limit_channels()["validate_api_key"] == (10, 60.0)

    def test_unknown_provider_gets_default_timeouts(self):
        assert DispatchSettings().timeouts_for("mystery").stream == 120.0

    def test_conversions(self):
        settings = DispatchSettings()
        assert settings.retry.to_retry_config().retryable_status_codes == [429, 500, 502, 503, 504]
        assert settings.circuit_breaker.to_circuit_config().timeout == 30.0
        assert settings.cache.to_cache_config().max_size == 100
        assert settings.performance.to_monitor_config().max_data_points == 1000

    def test_validation(self):
        with pytest.raises(ValidationError):
            RetrySettings(max_attempts=0)
        with pytest.raises(ValidationError):
            RetrySettings(backoff_multiplier=0.5)


class TestFromEnv:

    def test_empty_environment_matches_defaults(self):
        assert DispatchSettings.from_env({}) == DispatchSettings()

    def test_section_overrides(self):
        settings = DispatchSettings.from_env({
            "AI_DISPATCH_RETRY_MAX_ATTEMPTS": "5",
            "AI_DISPATCH_RETRY_STATUS_CODES": "429, 503",
            "AI_DISPATCH_CIRCUIT_TIMEOUT": "12.5",
            "AI_DISPATCH_CACHE_VALIDATION_TTL": "60",
            "UNRELATED": "ignored",
        })

        assert settings.retry.max_attempts == 5
        assert settings.retry.retryable_status_codes == [429, 503]
        assert settings.circuit_breaker.timeout == 12.5
        assert settings.cache.validation_ttl == 60.0

    def test_timeout_overrides(self):
        settings = DispatchSettings.from_env({"AI_DISPATCH_CLAUDE_MESSAGE_TIMEOUT": "90"})
        assert settings.timeouts_for("claude").message == 90.0
        assert settings.timeouts_for("openai").message == 60.0

    def test_rate_limit_overrides(self):
        settings = DispatchSettings.from_env({
            "AI_DISPATCH_RATE_LIMIT_SEND_MESSAGE": "30/120",
            "AI_DISPATCH_RATE_LIMIT_STREAM_MESSAGE": "5",
        })
        channels = settings.rate_limit_channels()
        assert channels["send_message"] == (30, 120.0)
        assert channels["stream_message"] == (5, 60.0)

    def test_invalid_value_raises(self):
        with pytest.raises(ValidationError):
            DispatchSettings.from_env({"AI_DISPATCH_RETRY_MAX_ATTEMPTS": "zero"})
