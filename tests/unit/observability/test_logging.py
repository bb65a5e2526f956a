"""Tests for the structured provider logger."""

import logging

import pytest

from ai_dispatch.observability.logging import ProviderLogger


LOGGER_NAME = "ai_dispatch.providers.claude"


class TestProviderLogger:

    def test_bound_fields_render_and_travel_in_extra(self, caplog):
        log = ProviderLogger("claude", auth_mode="api_key", model=None)
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            log.info("Ready", request_id="abc")

        record = caplog.records[-1]
        assert record.getMessage() == "[provider=claude auth_mode=api_key request_id=abc] Ready"
        assert record.fields == {"provider": "claude", "auth_mode": "api_key", "request_id": "abc"}

    def test_bind_returns_new_logger(self):
        base = ProviderLogger("claude")
        bound = base.bind(model="claude-sonnet")
        assert bound.bound_fields == {"model": "claude-sonnet"}
        assert base.bound_fields == {}

    def test_error_includes_exception_details(self, caplog):
        with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
            ProviderLogger("claude").error("Failed", error=ValueError("bad"))

        fields = caplog.records[-1].fields
        assert fields["error_type"] == "ValueError"
        assert fields["error_msg"] == "bad"

    def test_track_request_logs_completion(self, caplog):
        log = ProviderLogger("claude")
        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            with log.track_request("send_message", "claude-sonnet", request_id="req1") as trace:
                assert trace.request_id == "req1"

        messages = [r.getMessage() for r in caplog.records]
        assert any("Starting send_message request" in m for m in messages)
        assert any("Completed send_message request" in m for m in messages)

    def test_track_request_logs_and_reraises_failure(self, caplog):
        log = ProviderLogger("claude")
        with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
            with pytest.raises(RuntimeError):
                with log.track_request("send_message", "claude-sonnet"):
                    raise RuntimeError("boom")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.fields["error_msg"] == "boom"

    def test_skips_formatting_when_disabled(self, caplog):
        with caplog.at_level(logging.WARNING, logger=LOGGER_NAME):
            ProviderLogger("claude").debug("hidden")
        assert caplog.records == []
