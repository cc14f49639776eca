from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..errors import CircuitOpenError
from ..typing import Action, T
from ..utils.logging import get_logger
from .base import Policy, PolicyKind

logger = get_logger()


class CircuitState(str, Enum):
    """States of a :class:`CircuitBreakerPolicy`."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerPolicy(Policy[T]):
    """Stop calling an action that keeps failing.

    The breaker counts failures while ``closed``.  Once ``failure_threshold``
    is reached it opens and rejects calls with :class:`CircuitOpenError`
    without running the action.  The first call made ``reset_timeout``
    seconds or more after the last failure moves the breaker to
    ``half_open`` and goes through; calls made in that window all go
    through as trials.  A success closes the breaker again, a failure counts
    as usual and reopens it once the threshold is reached.

    State lives on the instance and is shared by every builder holding it.
    Check-and-transition steps run under a lock that is never held across
    an ``await``.
    """

    kind = PolicyKind.CIRCUIT_BREAKER

    def __init__(
        self,
        failure_threshold: int = 3,
        reset_timeout: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError(f"failure_threshold must be >= 1, got {failure_threshold}")
        if reset_timeout < 0:
            raise ValueError(f"reset_timeout must not be negative, got {reset_timeout}")
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def last_failure_time(self) -> Optional[float]:
        return self._last_failure_time

    def to_config(self) -> Dict[str, Any]:
        return {"failure_threshold": self.failure_threshold, "reset_timeout": self.reset_timeout}

    def clone(self) -> "CircuitBreakerPolicy[T]":
        return CircuitBreakerPolicy(self.failure_threshold, self.reset_timeout, clock=self._clock)

    def _before_call(self) -> None:
        with self._lock:
            if self._state is not CircuitState.OPEN:
                return
            elapsed = self._clock() - (self._last_failure_time or 0.0)
            if elapsed < self.reset_timeout:
                raise CircuitOpenError(self.reset_timeout - elapsed)
            self._state = CircuitState.HALF_OPEN
        logger.info(f"Circuit half-open after {elapsed:.3f}s")

    def _on_success(self) -> None:
        with self._lock:
            previous = self._state
            self._failure_count = 0
            self._state = CircuitState.CLOSED
        if previous is not CircuitState.CLOSED:
            logger.info("Circuit closed")

    def _on_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = self._clock()
            opened = self._failure_count >= self.failure_threshold and self._state is not CircuitState.OPEN
            if self._failure_count >= self.failure_threshold:
                self._state = CircuitState.OPEN
            count = self._failure_count
        if opened:
            logger.warning(f"Circuit opened after {count} failure(s)")

    async def execute(self, action: Action[T]) -> T:
        self._before_call()
        try:
            result = await action()
        except Exception:
            self._on_failure()
            raise
        self._on_success()
        return result
