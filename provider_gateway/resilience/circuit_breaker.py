# provider_gateway/resilience/circuit_breaker.py
"""Circuit breaker guarding a provider transport.

closed -> open after `failure_threshold` consecutive failures; open -> half_open
once `recovery_timeout` has elapsed; a single trial call then either closes the
breaker (success) or reopens it (failure).

Only transport-level failures (connection errors, 5xx, abandoned calls) count
as failures. A provider answering "no" (SOAP fault, 4xx) is a healthy provider.

One breaker per client factory, shared for the life of the process and only
touched from the event loop.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from provider_gateway.resilience.errors import CircuitOpenError
from provider_gateway.web import metrics

log = logging.getLogger("gateway.circuit")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    name: str = "default"
    failure_threshold: int = 5
    recovery_timeout: float = 30.0
    clock: Callable[[], float] = time.monotonic

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failures: int = field(default=0, init=False)
    _opened_at: Optional[float] = field(default=None, init=False)
    _trial_in_flight: bool = field(default=False, init=False)

    @property
    def state(self) -> CircuitState:
        self._maybe_half_open()
        return self._state

    def _maybe_half_open(self) -> None:
        if self._state == CircuitState.OPEN and self.clock() - self._opened_at >= self.recovery_timeout:
            self._move(CircuitState.HALF_OPEN)

    def _move(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        self._trial_in_flight = False
        if new_state == CircuitState.CLOSED:
            self._failures = 0
            self._opened_at = None
        elif new_state == CircuitState.OPEN:
            self._opened_at = self.clock()

        metrics.CIRCUIT_OPEN.labels(breaker=self.name).set(1 if new_state == CircuitState.OPEN else 0)
        log.warning("circuit %s: %s -> %s", self.name, old_state.value, new_state.value)

    def allow_request(self) -> bool:
        self._maybe_half_open()
        if self._state == CircuitState.CLOSED:
            return True
        if self._state == CircuitState.HALF_OPEN and not self._trial_in_flight:
            self._trial_in_flight = True
            return True
        return False

    def ensure_closed(self) -> None:
        """Raise CircuitOpenError if the breaker rejects this request."""
        if not self.allow_request():
            raise CircuitOpenError(f"Circuit '{self.name}' is open, rejecting request")

    def record_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            self._move(CircuitState.CLOSED)
        else:
            self._failures = 0

    def record_failure(self) -> None:
        self._failures += 1
        if self._state == CircuitState.HALF_OPEN or (
            self._state == CircuitState.CLOSED and self._failures >= self.failure_threshold
        ):
            self._move(CircuitState.OPEN)

    def release(self) -> None:
        """Admitted call ended without saying anything about provider health."""
        self._trial_in_flight = False
