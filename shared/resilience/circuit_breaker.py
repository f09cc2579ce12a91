from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class CircuitBreakerOpenError(RuntimeError):
    pass


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    failure_threshold: int = 3
    recovery_timeout_seconds: float = 5.0


class CircuitBreaker:
    def __init__(
        self,
        config: CircuitBreakerConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or CircuitBreakerConfig()
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at: float | None = None

    @property
    def state(self) -> str:
        if self._state == CircuitState.OPEN and self._can_half_open():
            self._state = CircuitState.HALF_OPEN
        return self._state.value

    @property
    def failures(self) -> int:
        return self._failures

    def allow_call(self) -> None:
        if self._state == CircuitState.OPEN and not self._can_half_open():
            raise CircuitBreakerOpenError("Circuit is open")
        if self._state == CircuitState.OPEN:
            self._state = CircuitState.HALF_OPEN

    def on_success(self) -> None:
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = None

    def on_failure(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            self._trip_open()
            return
        self._failures += 1
        if self._failures >= self._config.failure_threshold:
            self._trip_open()

    def _trip_open(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()

    def _can_half_open(self) -> bool:
        if self._opened_at is None:
            return False
        return self._clock() - self._opened_at >= self._config.recovery_timeout_seconds
