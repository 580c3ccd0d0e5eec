from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple, Type, TypeVar

T = TypeVar("T")

_logger = logging.getLogger(__name__)

ExcTypes = Tuple[Type[BaseException], ...]


class CircuitOpenError(RuntimeError):
    def __init__(self, name: str) -> None:
        super().__init__("circuit_open")
        self.name = name


@dataclass
class CircuitBreakerConfig:
    enabled: bool = True
    failure_threshold: int = 5
    reset_timeout_seconds: float = 30.0


class CircuitState:
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Stops calling a failing dependency until ``reset_timeout_seconds`` pass.

    Exceptions listed in ``ignore`` are business outcomes (not found, duplicate)
    and pass through without counting as failures.
    A breaker built with ``enabled=False`` only runs the call.
    """

    def __init__(
        self,
        config: Optional[CircuitBreakerConfig] = None,
        *,
        name: str = "default",
        ignore: ExcTypes = (),
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._config = config or CircuitBreakerConfig()
        self.name = name
        self._ignore = ignore
        self._clock = clock or time.monotonic
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0

    @property
    def state(self) -> str:
        return self._state

    def _can_attempt(self) -> bool:
        if self._state == CircuitState.OPEN:
            if (self._clock() - self._opened_at) >= self._config.reset_timeout_seconds:
                self._state = CircuitState.HALF_OPEN
                _logger.info("Circuit %s half-open, probing", self.name)
                return True
            return False
        return True

    def _on_success(self) -> None:
        if self._state != CircuitState.CLOSED:
            _logger.info("Circuit %s closed", self.name)
        self._state = CircuitState.CLOSED
        self._failures = 0

    def _on_failure(self) -> None:
        self._failures += 1
        if self._state == CircuitState.HALF_OPEN or self._failures >= self._config.failure_threshold:
            if self._state != CircuitState.OPEN:
                _logger.warning("Circuit %s opened after %d failures", self.name, self._failures)
            self._state = CircuitState.OPEN
            self._opened_at = self._clock()

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        if not self._config.enabled:
            return await fn()
        if not self._can_attempt():
            raise CircuitOpenError(self.name)
        try:
            result = await fn()
        except self._ignore:
            self._on_success()
            raise
        except Exception:
            self._on_failure()
            raise
        else:
            self._on_success()
            return result


async def with_retries(
    coro_factory: Callable[[], Awaitable[T]],
    attempts: int = 3,
    backoff_ms: Optional[Iterable[int]] = None,
    *,
    no_retry: ExcTypes = (),
) -> T:
    """Await ``coro_factory()`` up to ``attempts`` times.

    Errors listed in ``no_retry`` are raised immediately.
    """
    backoff_seq: List[int] = list(backoff_ms or [100, 500, 2000])
    last_exc: Exception | None = None
    for attempt in range(attempts):
        try:
            return await coro_factory()
        except no_retry:
            raise
        except Exception as exc:  # noqa: BLE001 - broad for retry wrapper
            last_exc = exc
            if attempt == attempts - 1:
                break
            delay_ms = backoff_seq[min(attempt, len(backoff_seq) - 1)]
            _logger.debug("Retrying after %s (attempt %d/%d)", exc, attempt + 1, attempts)
            await asyncio.sleep(delay_ms / 1000.0)
    assert last_exc is not None
    raise last_exc
