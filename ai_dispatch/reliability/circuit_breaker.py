"""
Circuit breaker pattern implementation for provider resilience.

This module implements the circuit breaker pattern to prevent
cascading failures and provide fast failure detection.

The state machine itself is a set of pure functions over an immutable
``CircuitSnapshot``; ``CircuitBreaker`` applies them using an injected clock
and takes care of bookkeeping, logging and callbacks.
"""

from enum import Enum
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar
import inspect
import logging
import time

from ..config.constants import (
    CIRCUIT_FAILURE_THRESHOLD,
    CIRCUIT_MONITORING_WINDOW,
    CIRCUIT_OPEN_TIMEOUT,
    CIRCUIT_SUCCESS_THRESHOLD,
)
from .errors import CircuitBreakerOpenError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing recovery


@dataclass
class CircuitBreakerConfig:
    """Circuit breaker configuration."""
    failure_threshold: int = CIRCUIT_FAILURE_THRESHOLD   # Failures in window before opening
    success_threshold: int = CIRCUIT_SUCCESS_THRESHOLD   # Successes to close from half-open
    timeout: float = CIRCUIT_OPEN_TIMEOUT                # Seconds before attempting recovery
    monitoring_window: float = CIRCUIT_MONITORING_WINDOW  # Window for failure counting
    half_open_max_calls: int = 1                         # Concurrent probes while half-open

    # Optional callbacks, called with the breaker
    on_open: Optional[Callable] = None
    on_close: Optional[Callable] = None
    on_half_open: Optional[Callable] = None
    # Called with the breaker, the previous state and the new state
    on_state_change: Optional[Callable] = None


@dataclass(frozen=True)
class FailureRecord:
    timestamp: float
    message: str


@dataclass(frozen=True)
class CircuitSnapshot:
    """Immutable breaker state."""
    state: CircuitState = CircuitState.CLOSED
    failures: Tuple[FailureRecord, ...] = ()
    half_open_successes: int = 0
    next_attempt_time: float = 0.0

    @property
    def failure_count(self) -> int:
        return len(self.failures)


@dataclass(frozen=True)
class Transition:
    """Result of applying an event to a snapshot."""
    snapshot: CircuitSnapshot
    previous_state: CircuitState

    @property
    def changed(self) -> bool:
        return self.snapshot.state is not self.previous_state


@dataclass(frozen=True)
class Admission:
    allowed: bool
    transition: Transition


def admit(snapshot: CircuitSnapshot, now: float) -> Admission:
    """Decide whether a call may proceed, moving OPEN to HALF_OPEN once the cooldown has elapsed."""
    if snapshot.state is CircuitState.OPEN:
        if now >= snapshot.next_attempt_time:
            probing = replace(snapshot, state=CircuitState.HALF_OPEN, half_open_successes=0)
            return Admission(True, Transition(probing, CircuitState.OPEN))
        return Admission(False, Transition(snapshot, CircuitState.OPEN))
    return Admission(True, Transition(snapshot, snapshot.state))


def _trip(snapshot: CircuitSnapshot, config: CircuitBreakerConfig, now: float,
          failures: Tuple[FailureRecord, ...]) -> CircuitSnapshot:
    return replace(
        snapshot,
        state=CircuitState.OPEN,
        failures=failures,
        half_open_successes=0,
        next_attempt_time=now + config.timeout
    )


def record_success(snapshot: CircuitSnapshot, config: CircuitBreakerConfig, now: float) -> Transition:
    """Apply a successful call."""
    previous = snapshot.state
    if previous is CircuitState.HALF_OPEN:
        successes = snapshot.half_open_successes + 1
        if successes >= config.success_threshold:
            return Transition(CircuitSnapshot(), previous)
        return Transition(replace(snapshot, half_open_successes=successes), previous)
    if previous is CircuitState.CLOSED:
        return Transition(replace(snapshot, failures=()), previous)
    return Transition(snapshot, previous)


def record_failure(snapshot: CircuitSnapshot, config: CircuitBreakerConfig, now: float,
                   message: str = "") -> Transition:
    """Apply a failed call, pruning failures that fell out of the monitoring window."""
    previous = snapshot.state
    failures = tuple(
        record for record in snapshot.failures + (FailureRecord(now, message),)
        if now - record.timestamp < config.monitoring_window
    )

    if previous is CircuitState.HALF_OPEN:
        return Transition(_trip(snapshot, config, now, failures), previous)
    if previous is CircuitState.CLOSED and len(failures) >= config.failure_threshold:
        return Transition(_trip(snapshot, config, now, failures), previous)
    return Transition(replace(snapshot, failures=failures), previous)


@dataclass
class CircuitStats:
    """Reporting counters, not used for transitions."""
    total_requests: int = 0
    total_failures: int = 0
    total_successes: int = 0
    last_failure_time: Optional[float] = None
    last_success_time: Optional[float] = None
    last_state_change: Optional[float] = None


class CircuitBreaker:
    """
    Circuit breaker for provider connections.

    Prevents cascading failures by failing fast when a provider
    is experiencing issues.
    """

    def __init__(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self.stats = CircuitStats()
        self._clock = clock
        self._snapshot = CircuitSnapshot()
        self._half_open_in_flight = 0

    @property
    def state(self) -> CircuitState:
        return self._snapshot.state

    @property
    def snapshot(self) -> CircuitSnapshot:
        return self._snapshot

    async def execute(self, func: Callable[[], Awaitable[T]]) -> T:
        """
        Execute function through circuit breaker.

        Args:
            func: Async function to execute

        Returns:
            Result from successful function execution

        Raises:
            CircuitBreakerOpenError: If the circuit is open, or half-open with a probe in flight
            Original exception: If function fails
        """
        admission = admit(self._snapshot, self._clock())
        await self._apply(admission.transition)

        probing = self.state is CircuitState.HALF_OPEN
        if not admission.allowed or (
            probing and self._half_open_in_flight >= self.config.half_open_max_calls
        ):
            raise CircuitBreakerOpenError(self.name, self._snapshot.next_attempt_time)

        self.stats.total_requests += 1
        if probing:
            self._half_open_in_flight += 1

        try:
            result = await func()
        except Exception as error:
            await self._on_failure(error)
            raise
        else:
            await self._on_success()
            return result
        finally:
            if probing:
                self._half_open_in_flight = max(0, self._half_open_in_flight - 1)

    async def _on_success(self):
        now = self._clock()
        self.stats.total_successes += 1
        self.stats.last_success_time = now
        await self._apply(record_success(self._snapshot, self.config, now))

    async def _on_failure(self, error: Exception):
        now = self._clock()
        self.stats.total_failures += 1
        self.stats.last_failure_time = now
        await self._apply(record_failure(self._snapshot, self.config, now, str(error)))

        logger.warning(
            f"Circuit breaker {self.name} recorded failure",
            extra={
                "circuit_breaker": self.name,
                "state": self.state.value,
                "failures_in_window": self._snapshot.failure_count
            }
        )

    async def _apply(self, transition: Transition):
        self._snapshot = transition.snapshot
        if not transition.changed:
            return

        self.stats.last_state_change = self._clock()
        new_state = transition.snapshot.state
        details = {
            "circuit_breaker": self.name,
            "previous_state": transition.previous_state.value,
            "state": new_state.value,
        }

        if new_state is CircuitState.OPEN:
            logger.error(
                f"Circuit breaker {self.name} opened",
                extra={**details, "next_attempt_time": transition.snapshot.next_attempt_time}
            )
            callback = self.config.on_open
        elif new_state is CircuitState.HALF_OPEN:
            logger.info(f"Circuit breaker {self.name} half-open", extra=details)
            callback = self.config.on_half_open
        else:
            logger.info(f"Circuit breaker {self.name} closed", extra=details)
            callback = self.config.on_close

        if callback:
            try:
                await self._call_callback(callback)
            except Exception as e:
                logger.error(f"Error in {new_state.value} callback: {e}")

        if self.config.on_state_change:
            try:
                await self._call_callback(
                    self.config.on_state_change, transition.previous_state, new_state
                )
            except Exception as e:
                logger.error(f"Error in state change callback: {e}")

    async def _call_callback(self, callback: Callable, *args):
        """Call callback, handling both sync and async."""
        result = callback(self, *args)
        if inspect.isawaitable(result):
            await result

    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    def is_closed(self) -> bool:
        return self.state == CircuitState.CLOSED

    def is_half_open(self) -> bool:
        return self.state == CircuitState.HALF_OPEN

    def get_stats(self) -> Dict[str, Any]:
        """Get circuit statistics for reporting."""
        snapshot = self._snapshot
        return {
            "state": snapshot.state.value,
            "failure_count": snapshot.failure_count,
            "success_count": snapshot.half_open_successes,
            "last_failure_time": self.stats.last_failure_time,
            "last_success_time": self.stats.last_success_time,
            "next_attempt_time": snapshot.next_attempt_time or None,
            "total_requests": self.stats.total_requests,
            "total_failures": self.stats.total_failures,
            "total_successes": self.stats.total_successes,
        }

    def reset(self):
        """Reset circuit breaker to closed state."""
        self._snapshot = CircuitSnapshot()
        self.stats = CircuitStats()
        self._half_open_in_flight = 0
        logger.info(f"Circuit breaker {self.name} reset")


class CircuitBreakerRegistry:
    """Named circuit breakers shared by every caller that references the same name."""

    def __init__(
        self,
        default_config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        self.default_config = default_config
        self._clock = clock
        self.circuit_breakers: Dict[str, CircuitBreaker] = {}

    def get_or_create(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None
    ) -> CircuitBreaker:
        """Get existing or create new circuit breaker."""
        if name not in self.circuit_breakers:
            self.circuit_breakers[name] = CircuitBreaker(
                name, config or self.default_config, clock=self._clock
            )
        return self.circuit_breakers[name]

    def get(self, name: str) -> Optional[CircuitBreaker]:
        """Get circuit breaker by name."""
        return self.circuit_breakers.get(name)

    def get_all(self) -> Dict[str, CircuitBreaker]:
        return dict(self.circuit_breakers)

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get stats for all circuit breakers."""
        return {name: cb.get_stats() for name, cb in self.circuit_breakers.items()}

    def reset_all(self):
        """Reset all circuit breakers."""
        for cb in self.circuit_breakers.values():
            cb.reset()
