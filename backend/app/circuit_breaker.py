"""Circuit breaker pattern implementation for resilient remote calls."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from .errors import RemoteUnavailableError
from .metrics import (
    circuit_breaker_failures_total,
    circuit_breaker_opened_total,
    circuit_breaker_rejected_total,
    set_circuit_state,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states"""

    CLOSED = "closed"  # Normal operation, requests allowed
    OPEN = "open"  # Circuit broken, requests rejected
    HALF_OPEN = "half_open"  # Testing if service recovered


@dataclass
class CircuitBreakerStats:
    """Statistics for circuit breaker monitoring"""

    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0
    last_failure_time: float | None = None
    last_success_time: float | None = None
    consecutive_failures: int = 0
    circuit_opened_count: int = 0


class CircuitOpenError(RemoteUnavailableError):
    """Raised instead of calling the remote service while the circuit is open."""


class CircuitBreaker:
    """
    Circuit breaker guarding an async dependency.

    The circuit breaker has three states:
    - CLOSED: Normal operation, all requests pass through
    - OPEN: After failure threshold, requests are immediately rejected
    - HALF_OPEN: After cooldown, one test request is allowed

    Only exceptions listed in ``failure_exceptions`` count as failures; anything else
    propagates without touching the state.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int | None = None,
        cooldown_seconds: float | None = None,
        success_threshold: int = 1,
        enabled: bool | None = None,
        failure_exceptions: tuple[type[BaseException], ...] = (Exception,),
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize circuit breaker.

        Args:
            name: Identifier for this circuit breaker
            failure_threshold: Number of consecutive failures before opening circuit
            cooldown_seconds: Time to wait before attempting recovery
            success_threshold: Successes needed in half-open state to close circuit
            enabled: Whether circuit breaker is active
            failure_exceptions: Exception types that count as a failed call
            clock: Monotonic time source (injectable for tests)
        """
        self.name = name
        self.failure_threshold = failure_threshold if failure_threshold is not None else 3
        self.cooldown_seconds = cooldown_seconds if cooldown_seconds is not None else 60.0
        self.success_threshold = success_threshold
        self.enabled = enabled if enabled is not None else True
        self.failure_exceptions = failure_exceptions
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._stats = CircuitBreakerStats()
        self._last_state_change = self._clock()
        self._half_open_successes = 0
        set_circuit_state(self.name, self._state.value)

    @property
    def state(self) -> CircuitState:
        """Get current circuit state, checking for automatic transitions."""
        if self._state == CircuitState.OPEN:
            if self._clock() - self._last_state_change >= self.cooldown_seconds:
                self._transition_to(CircuitState.HALF_OPEN)
        return self._state

    @property
    def stats(self) -> CircuitBreakerStats:
        return self._stats

    def _transition_to(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        self._last_state_change = self._clock()
        set_circuit_state(self.name, new_state.value)

        if new_state == CircuitState.OPEN:
            self._stats.circuit_opened_count += 1
            circuit_breaker_opened_total.labels(circuit_name=self.name).inc()
            logger.warning(
                "Circuit breaker '%s' opened after %d consecutive failures",
                self.name,
                self._stats.consecutive_failures,
            )
        elif new_state == CircuitState.CLOSED:
            self._stats.consecutive_failures = 0
            self._half_open_successes = 0
            if old_state == CircuitState.HALF_OPEN:
                logger.info("Circuit breaker '%s' closed after successful recovery", self.name)
        elif new_state == CircuitState.HALF_OPEN:
            self._half_open_successes = 0
            logger.info("Circuit breaker '%s' entering half-open state for testing", self.name)

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """
        Await ``func(*args, **kwargs)`` through the circuit breaker.

        Raises:
            CircuitOpenError: If circuit is open
            Original exception: If func fails
        """
        if not self.enabled:
            return await func(*args, **kwargs)

        if self.state == CircuitState.OPEN:
            self._stats.rejected_calls += 1
            circuit_breaker_rejected_total.labels(circuit_name=self.name).inc()
            raise CircuitOpenError(
                f"Circuit breaker '{self.name}' is open. "
                f"Service will be retried after {self.cooldown_seconds:g} seconds."
            )

        try:
            result = await func(*args, **kwargs)
        except self.failure_exceptions:
            self._on_failure()
            raise
        self._on_success()
        return result

    def _on_success(self) -> None:
        self._stats.total_calls += 1
        self._stats.successful_calls += 1
        self._stats.last_success_time = self._clock()
        self._stats.consecutive_failures = 0

        if self._state == CircuitState.HALF_OPEN:
            self._half_open_successes += 1
            if self._half_open_successes >= self.success_threshold:
                self._transition_to(CircuitState.CLOSED)

    def _on_failure(self) -> None:
        self._stats.total_calls += 1
        self._stats.failed_calls += 1
        self._stats.last_failure_time = self._clock()
        self._stats.consecutive_failures += 1
        circuit_breaker_failures_total.labels(circuit_name=self.name).inc()

        if self._state == CircuitState.HALF_OPEN:
            # Failure in half-open state immediately opens circuit
            self._transition_to(CircuitState.OPEN)
        elif (
            self._state == CircuitState.CLOSED
            and self._stats.consecutive_failures >= self.failure_threshold
        ):
            self._transition_to(CircuitState.OPEN)

    def reset(self) -> None:
        """Manually reset the circuit breaker to closed state."""
        self._state = CircuitState.CLOSED
        self._stats.consecutive_failures = 0
        self._half_open_successes = 0
        self._last_state_change = self._clock()
        set_circuit_state(self.name, self._state.value)
        logger.info("Circuit breaker '%s' manually reset", self.name)

    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    def is_closed(self) -> bool:
        return self.state == CircuitState.CLOSED

    def snapshot(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "state": self.state.value,
            "consecutive_failures": self._stats.consecutive_failures,
            "opened_count": self._stats.circuit_opened_count,
        }


__all__ = [
    "CircuitBreaker",
    "CircuitBreakerStats",
    "CircuitOpenError",
    "CircuitState",
]
