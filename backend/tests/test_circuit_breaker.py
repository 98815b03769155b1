"""Test circuit breaker implementation."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from backend.app.circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState
from backend.app.errors import RemoteUnavailableError


class CircuitTestFailure(RemoteUnavailableError):
    """Custom error for circuit breaker tests."""


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _breaker(clock=None, **kwargs):
    kwargs.setdefault("failure_threshold", 3)
    kwargs.setdefault("cooldown_seconds", 10)
    return CircuitBreaker(
        "test",
        failure_exceptions=(CircuitTestFailure,),
        clock=clock or FakeClock(),
        **kwargs,
    )


def _call(breaker, func, *args, **kwargs):
    return asyncio.run(breaker.call(func, *args, **kwargs))


class TestCircuitBreaker:
    """Test the circuit breaker pattern implementation."""

    def test_circuit_starts_closed(self):
        """Circuit should start in closed state."""
        breaker = _breaker()
        assert breaker.state == CircuitState.CLOSED
        assert breaker.is_closed()
        assert not breaker.is_open()

    def test_successful_calls_pass_through(self):
        """Successful calls should pass through when circuit is closed."""
        breaker = _breaker()
        func = AsyncMock(return_value="success")

        result = _call(breaker, func, "arg1", key="value")

        assert result == "success"
        func.assert_awaited_once_with("arg1", key="value")
        assert breaker.state == CircuitState.CLOSED
        assert breaker.stats.successful_calls == 1
        assert breaker.stats.failed_calls == 0

    def test_circuit_opens_after_threshold(self):
        """Circuit should open after consecutive failures reach threshold."""
        breaker = _breaker()
        failing_func = AsyncMock(side_effect=CircuitTestFailure("Test failure"))

        for _ in range(2):
            with pytest.raises(CircuitTestFailure, match="Test failure"):
                _call(breaker, failing_func)
            assert breaker.state == CircuitState.CLOSED

        with pytest.raises(CircuitTestFailure, match="Test failure"):
            _call(breaker, failing_func)
        assert breaker.state == CircuitState.OPEN
        assert breaker.stats.consecutive_failures == 3
        assert breaker.stats.circuit_opened_count == 1

    def test_open_circuit_rejects_calls(self):
        """Open circuit should reject calls immediately."""
        breaker = _breaker(failure_threshold=1)
        with pytest.raises(CircuitTestFailure):
            _call(breaker, AsyncMock(side_effect=CircuitTestFailure("boom")))

        func = AsyncMock(return_value="success")
        with pytest.raises(CircuitOpenError) as exc_info:
            _call(breaker, func)

        func.assert_not_awaited()
        assert "Circuit breaker 'test' is open" in str(exc_info.value)
        assert breaker.stats.rejected_calls == 1

    def test_rejection_is_a_remote_failure(self):
        """Callers that absorb remote failures also absorb an open circuit."""
        assert issubclass(CircuitOpenError, RemoteUnavailableError)

    def test_success_resets_consecutive_failures(self):
        breaker = _breaker()
        failing_func = AsyncMock(side_effect=CircuitTestFailure("flaky"))
        for _ in range(2):
            with pytest.raises(CircuitTestFailure):
                _call(breaker, failing_func)

        _call(breaker, AsyncMock(return_value="ok"))
        assert breaker.stats.consecutive_failures == 0

        with pytest.raises(CircuitTestFailure):
            _call(breaker, failing_func)
        assert breaker.state == CircuitState.CLOSED

    def test_unlisted_exceptions_do_not_count(self):
        breaker = _breaker(failure_threshold=1)
        with pytest.raises(KeyError):
            _call(breaker, AsyncMock(side_effect=KeyError("programming error")))
        assert breaker.state == CircuitState.CLOSED
        assert breaker.stats.failed_calls == 0

    def test_circuit_transitions_to_half_open(self):
        """Circuit should move to half-open once the cooldown has elapsed."""
        clock = FakeClock()
        breaker = _breaker(clock, failure_threshold=1, cooldown_seconds=30)
        with pytest.raises(CircuitTestFailure):
            _call(breaker, AsyncMock(side_effect=CircuitTestFailure("down")))

        clock.advance(29)
        assert breaker.state == CircuitState.OPEN
        clock.advance(1)
        assert breaker.state == CircuitState.HALF_OPEN

    def test_half_open_success_closes_circuit(self):
        clock = FakeClock()
        breaker = _breaker(clock, failure_threshold=1)
        with pytest.raises(CircuitTestFailure):
            _call(breaker, AsyncMock(side_effect=CircuitTestFailure("down")))
        clock.advance(10)

        assert _call(breaker, AsyncMock(return_value="recovered")) == "recovered"
        assert breaker.state == CircuitState.CLOSED

    def test_half_open_failure_reopens_circuit(self):
        clock = FakeClock()
        breaker = _breaker(clock, failure_threshold=2)
        failing_func = AsyncMock(side_effect=CircuitTestFailure("down"))
        for _ in range(2):
            with pytest.raises(CircuitTestFailure):
                _call(breaker, failing_func)
        clock.advance(10)
        assert breaker.state == CircuitState.HALF_OPEN

        with pytest.raises(CircuitTestFailure):
            _call(breaker, failing_func)
        assert breaker.state == CircuitState.OPEN
        assert breaker.stats.circuit_opened_count == 2

    def test_success_threshold_in_half_open(self):
        clock = FakeClock()
        breaker = _breaker(clock, failure_threshold=1, success_threshold=2)
        with pytest.raises(CircuitTestFailure):
            _call(breaker, AsyncMock(side_effect=CircuitTestFailure("down")))
        clock.advance(10)

        _call(breaker, AsyncMock(return_value="ok"))
        assert breaker.state == CircuitState.HALF_OPEN
        _call(breaker, AsyncMock(return_value="ok"))
        assert breaker.state == CircuitState.CLOSED

    def test_manual_reset(self):
        breaker = _breaker(failure_threshold=1)
        with pytest.raises(CircuitTestFailure):
            _call(breaker, AsyncMock(side_effect=CircuitTestFailure("down")))
        assert breaker.is_open()

        breaker.reset()
        assert breaker.is_closed()
        assert _call(breaker, AsyncMock(return_value="ok")) == "ok"

    def test_disabled_breaker_never_opens(self):
        breaker = _breaker(failure_threshold=1, enabled=False)
        failing_func = AsyncMock(side_effect=CircuitTestFailure("down"))
        for _ in range(3):
            with pytest.raises(CircuitTestFailure):
                _call(breaker, failing_func)
        assert breaker.state == CircuitState.CLOSED
        assert failing_func.await_count == 3

    def test_snapshot(self):
        breaker = _breaker(failure_threshold=1)
        with pytest.raises(CircuitTestFailure):
            _call(breaker, AsyncMock(side_effect=CircuitTestFailure("down")))
        assert breaker.snapshot() == {
            "name": "test",
            "state": "open",
            "consecutive_failures": 1,
            "opened_count": 1,
        }
