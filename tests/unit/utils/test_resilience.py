"""Unit tests for resilience utilities."""

from unittest.mock import AsyncMock

import pytest

from yeet_cache.core.errors import PostNotFoundError
from yeet_cache.utils.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitOpenError,
    CircuitState,
    with_retries,
)


@pytest.mark.asyncio
class TestWithRetries:
    """Test with_retries retry functionality."""

    async def test_retry_success_first_attempt(self):
        mock_func = AsyncMock(return_value="success")

        result = await with_retries(mock_func, attempts=3)

        assert result == "success"
        assert mock_func.call_count == 1

    async def test_retry_transient_failure_then_success(self):
        mock_func = AsyncMock(side_effect=[ConnectionError("1"), ConnectionError("2"), "success"])

        result = await with_retries(mock_func, attempts=3, backoff_ms=[1, 1])

        assert result == "success"
        assert mock_func.call_count == 3

    async def test_retry_max_attempts_exceeded(self):
        mock_func = AsyncMock(side_effect=ConnectionError("Persistent error"))

        with pytest.raises(ConnectionError, match="Persistent error"):
            await with_retries(mock_func, attempts=3, backoff_ms=[1])

        assert mock_func.call_count == 3

    async def test_no_retry_errors_raise_immediately(self):
        mock_func = AsyncMock(side_effect=PostNotFoundError(1))

        with pytest.raises(PostNotFoundError):
            await with_retries(mock_func, attempts=3, backoff_ms=[1], no_retry=(PostNotFoundError,))

        assert mock_func.call_count == 1


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
class TestCircuitBreaker:
    """Test CircuitBreaker functionality."""

    async def test_circuit_initially_closed(self):
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=3))

        assert breaker.state == CircuitState.CLOSED
        assert await breaker.run(AsyncMock(return_value="result")) == "result"

    async def test_circuit_opens_after_threshold(self):
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=3), name="repository")
        failing_func = AsyncMock(side_effect=ConnectionError("fail"))

        for _ in range(3):
            with pytest.raises(ConnectionError):
                await breaker.run(failing_func)

        assert breaker.state == CircuitState.OPEN
        with pytest.raises(CircuitOpenError, match="circuit_open") as excinfo:
            await breaker.run(failing_func)
        assert excinfo.value.name == "repository"
        assert failing_func.call_count == 3

    async def test_open_error_is_runtime_error(self):
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=1))
        with pytest.raises(ConnectionError):
            await breaker.run(AsyncMock(side_effect=ConnectionError()))

        with pytest.raises(RuntimeError):
            await breaker.run(AsyncMock())

    async def test_half_open_after_cooldown_then_closed(self):
        clock = FakeMonotonic()
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=1, reset_timeout_seconds=10), clock=clock)
        with pytest.raises(ConnectionError):
            await breaker.run(AsyncMock(side_effect=ConnectionError()))

        clock.now = 10.0
        assert await breaker.run(AsyncMock(return_value="success")) == "success"
        assert breaker.state == CircuitState.CLOSED

    async def test_half_open_failure_reopens(self):
        clock = FakeMonotonic()
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=3, reset_timeout_seconds=10), clock=clock)
        failing = AsyncMock(side_effect=ConnectionError())
        for _ in range(3):
            with pytest.raises(ConnectionError):
                await breaker.run(failing)

        clock.now = 11.0
        with pytest.raises(ConnectionError):
            await breaker.run(failing)

        assert breaker.state == CircuitState.OPEN
        with pytest.raises(CircuitOpenError):
            await breaker.run(failing)

    async def test_success_resets_failure_count(self):
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=3))
        failing = AsyncMock(side_effect=ConnectionError())
        success = AsyncMock(return_value="success")

        for _ in range(2):
            with pytest.raises(ConnectionError):
                await breaker.run(failing)
        await breaker.run(success)
        for _ in range(2):
            with pytest.raises(ConnectionError):
                await breaker.run(failing)

        assert await breaker.run(success) == "success"

    async def test_disabled_breaker_only_runs_the_call(self):
        breaker = CircuitBreaker(CircuitBreakerConfig(enabled=False, failure_threshold=1))
        failing = AsyncMock(side_effect=ConnectionError())

        for _ in range(3):
            with pytest.raises(ConnectionError):
                await breaker.run(failing)

        assert breaker.state == CircuitState.CLOSED
        assert failing.await_count == 3

    async def test_ignored_errors_do_not_trip(self):
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=1), ignore=(PostNotFoundError,))
        not_found = AsyncMock(side_effect=PostNotFoundError(1))

        for _ in range(3):
            with pytest.raises(PostNotFoundError):
                await breaker.run(not_found)

        assert breaker.state == CircuitState.CLOSED
        assert not_found.call_count == 3
