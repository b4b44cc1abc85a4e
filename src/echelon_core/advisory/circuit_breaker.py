"""Consecutive-failure circuit breaker shared by all advisory calls."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    CLOSED -> OPEN after ``failure_threshold`` consecutive failed calls.

    While OPEN every request is refused until ``cooldown_seconds`` have passed;
    the breaker then reports HALF_OPEN and admits a single trial request. A
    success closes the circuit, a failure re-opens it for another cooldown.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        cooldown_seconds: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = float(cooldown_seconds)
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at: Optional[float] = None
        self._trial_in_flight = False

    @property
    def state(self) -> CircuitState:
        if self._state is CircuitState.OPEN and self.retry_after() == 0.0:
            self._state = CircuitState.HALF_OPEN
            self._trial_in_flight = False
            logger.info("Advisory circuit half-open; admitting a trial request")
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def retry_after(self) -> float:
        """Seconds left in the current cooldown (0 when not open)."""
        if self._state is not CircuitState.OPEN or self._opened_at is None:
            return 0.0
        remaining = self._opened_at + self.cooldown_seconds - self._clock()
        return max(0.0, remaining)

    def allow_request(self) -> bool:
        state = self.state
        if state is CircuitState.CLOSED:
            return True
        if state is CircuitState.HALF_OPEN and not self._trial_in_flight:
            self._trial_in_flight = True
            return True
        return False

    def record_success(self) -> None:
        if self._state is not CircuitState.CLOSED:
            logger.info("Advisory circuit closed after successful call")
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = None
        self._trial_in_flight = False

    def release_trial(self) -> None:
        """Give back a half-open trial slot whose call ended without an outcome."""
        self._trial_in_flight = False

    def record_failure(self) -> None:
        self._consecutive_failures += 1
        if self._state is CircuitState.HALF_OPEN or self._consecutive_failures >= self.failure_threshold:
            self._open()

    def _open(self) -> None:
        if self._state is not CircuitState.OPEN:
            logger.warning(
                "Advisory circuit opened after %d consecutive failures; cooling down for %.0fs",
                self._consecutive_failures,
                self.cooldown_seconds,
            )
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        self._trial_in_flight = False

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "consecutive_failures": self._consecutive_failures,
            "failure_threshold": self.failure_threshold,
            "retry_after_seconds": round(self.retry_after(), 3),
        }
