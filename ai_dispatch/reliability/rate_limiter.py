"""
Sliding-window rate limiting, one independent window per named channel.

Channels without a configured limit are unlimited.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from ..config.constants import RATE_LIMIT_CHANNELS
from .errors import RateLimitExceededError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window: float


@dataclass(frozen=True)
class RequestRecord:
    timestamp: float
    count: int = 1


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    retry_after: Optional[int] = None


class RateLimiter:
    """Admission controller counting requests in the most recent ``window`` seconds."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._limits: Dict[str, RateLimitConfig] = {}
        self._records: Dict[str, List[RequestRecord]] = {}

    def configure(self, channel: str, max_requests: int, window: float) -> None:
        self._limits[channel] = RateLimitConfig(max_requests=max_requests, window=window)

    def is_configured(self, channel: str) -> bool:
        return channel in self._limits

    def _prune(self, channel: str, window: float, now: float) -> List[RequestRecord]:
        records = [r for r in self._records.get(channel, []) if r.timestamp > now - window]
        self._records[channel] = records
        return records

    def check_limit(self, channel: str) -> RateLimitResult:
        """Admit and record a request, or reject it with a retry hint in whole seconds."""
        limit = self._limits.get(channel)
        if limit is None:
            return RateLimitResult(allowed=True)

        now = self._clock()
        records = self._prune(channel, limit.window, now)
        in_window = sum(r.count for r in records)

        if in_window >= limit.max_requests:
            if records:
                retry_after = max(1, math.ceil(records[0].timestamp + limit.window - now))
            else:
                # A zero limit rejects with nothing in the window
                retry_after = max(1, math.ceil(limit.window))
            logger.warning(
                f"Rate limit exceeded for {channel}",
                extra={"channel": channel, "current": in_window, "retry_after": retry_after}
            )
            return RateLimitResult(allowed=False, retry_after=retry_after)

        records.append(RequestRecord(timestamp=now))
        return RateLimitResult(allowed=True)

    def acquire(self, channel: str) -> None:
        """Like ``check_limit`` but raises RateLimitExceededError on rejection."""
        result = self.check_limit(channel)
        if not result.allowed:
            raise RateLimitExceededError(channel, result.retry_after)

    def get_usage(self, channel: str) -> Optional[Dict[str, float]]:
        limit = self._limits.get(channel)
        if limit is None:
            return None
        records = self._prune(channel, limit.window, self._clock())
        return {
            "current": sum(r.count for r in records),
            "max": limit.max_requests,
            "window": limit.window,
        }

    def clear(self) -> None:
        self._records.clear()

    def clear_channel(self, channel: str) -> None:
        self._records.pop(channel, None)

    def cleanup(self) -> int:
        """Drop channels with no requests left in their window."""
        now = self._clock()
        removed = 0
        for channel in list(self._records):
            limit = self._limits.get(channel)
            window = limit.window if limit else 0.0
            if not self._prune(channel, window, now):
                del self._records[channel]
                removed += 1
        return removed


def create_default_rate_limiter(
    channels: Optional[Mapping[str, Tuple[int, float]]] = None,
    clock: Callable[[], float] = time.time
) -> RateLimiter:
    """Build a limiter with the standard dispatch channels configured."""
    limiter = RateLimiter(clock=clock)
    for channel, (max_requests, window) in (channels or RATE_LIMIT_CHANNELS).items():
        limiter.configure(channel, max_requests, window)
    return limiter
