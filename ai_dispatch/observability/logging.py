"""
Structured logging utility for provider adapters.

Every record carries the provider name plus any bound fields (model,
auth mode) both in the rendered message and in ``extra`` so handlers with
structured formatters can pick them up.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional


@dataclass
class RequestTrace:
    """Timing and identity of one tracked request."""
    method: str
    model: str
    request_id: str
    start_time: float = field(default_factory=time.time)

    def elapsed(self) -> float:
        return time.time() - self.start_time


class ProviderLogger:
    """Structured logger for provider adapters."""

    def __init__(self, provider_name: str, **bound_fields: Any):
        """
        Args:
            provider_name: Name of the provider (e.g., "claude", "gemini")
            **bound_fields: Fields attached to every record from this logger
        """
        self.provider = provider_name
        self.bound_fields = {k: v for k, v in bound_fields.items() if v is not None}
        self.logger = logging.getLogger(f"ai_dispatch.providers.{provider_name}")

    def bind(self, **fields: Any) -> "ProviderLogger":
        """Return a logger that adds ``fields`` to every record."""
        return ProviderLogger(self.provider, **{**self.bound_fields, **fields})

    def _log(self, level: int, message: str, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        merged: Dict[str, Any] = {"provider": self.provider, **self.bound_fields}
        merged.update((k, v) for k, v in fields.items() if v is not None)
        rendered = " ".join(f"{key}={value}" for key, value in merged.items())
        self.logger.log(level, f"[{rendered}] {message}", extra={"fields": merged})

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, error: Optional[BaseException] = None, **fields: Any) -> None:
        if error is not None:
            fields["error_type"] = type(error).__name__
            fields["error_msg"] = str(error)
        self._log(logging.ERROR, message, **fields)

    @contextmanager
    def track_request(self, method: str, model: str,
                      request_id: Optional[str] = None) -> Iterator[RequestTrace]:
        """
        Track request timing and log start, completion and failure.

        Args:
            method: The method being called (e.g., "send_message")
            model: The model being used
            request_id: Optional request ID (generated if not provided)

        Yields:
            RequestTrace for the request
        """
        trace = RequestTrace(method=method, model=model,
                             request_id=request_id or uuid.uuid4().hex[:8])
        self.debug(f"Starting {method} request", model=model,
                   request_id=trace.request_id)
        try:
            yield trace
        except Exception as e:
            self.error(f"Failed {method} request", error=e, model=model,
                       request_id=trace.request_id,
                       duration_ms=int(trace.elapsed() * 1000))
            raise
        self.info(f"Completed {method} request", model=model,
                  request_id=trace.request_id,
                  duration_ms=int(trace.elapsed() * 1000))

    def log_streaming_metrics(self, trace: RequestTrace, chunks: int, total_chars: int) -> None:
        duration = trace.elapsed()
        self.info(
            "Streaming metrics",
            model=trace.model,
            request_id=trace.request_id,
            chunks=chunks,
            total_chars=total_chars,
            chars_per_second=int(total_chars / duration) if duration > 0 else 0
        )
