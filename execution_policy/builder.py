# -*- coding: utf-8 -*-
"""Fluent composition of policies into one execution pipeline.

Example::

    result = await (
        PolicyBuilder()
        .retry(RetryOptions.EXPONENTIAL_JITTER.copy_with(max_attempts=4),
               retry_if=lambda e: isinstance(e, ConnectionError))
        .timeout(2.0)
        .fallback(default_value)
        .execute(fetch_data)
    )

Attachment order does not matter.  Policies are sorted by their
``order`` so the pipeline is always nested as
``Fallback ⊃ CircuitBreaker ⊃ Retry ⊃ Timeout ⊃ action``.
"""

from __future__ import annotations

from typing import Callable, Generic, List, Optional, Sequence, Tuple

from .debugger import PolicyDebugger
from .policies import (
    CircuitBreakerPolicy,
    FallbackPolicy,
    Policy,
    RetryOptions,
    RetryPolicy,
    TimeoutPolicy,
)
from .typing import Action, DebugLogger, ErrorHook, RetryPredicate, T
from .utils.logging import get_logger

logger = get_logger()


class PolicyBuilder(Generic[T]):
    """Collect policies and run actions through them."""

    def __init__(self) -> None:
        self._policies: List[Policy[T]] = []

    @property
    def policies(self) -> Tuple[Policy[T], ...]:
        """Attached policies in attachment order."""
        return tuple(self._policies)

    def __len__(self) -> int:
        return len(self._policies)

    def __repr__(self) -> str:
        return f"PolicyBuilder({', '.join(map(repr, self.ordered()))})"

    # attachment ------------------------------------------------------------
    def retry(
        self,
        options: RetryOptions = RetryOptions.FIXED,
        *,
        retry_if: Optional[RetryPredicate] = None,
        on_error: Optional[ErrorHook] = None,
    ) -> "PolicyBuilder[T]":
        """Retry failed attempts according to *options*.

        ``retry_if`` is asked before every retry; ``on_error`` is called
        after every failed attempt with ``(error, traceback, attempt)``.
        """
        self._policies.append(RetryPolicy(options, retry_if=retry_if, on_error=on_error))
        return self

    def timeout(self, seconds: float) -> "PolicyBuilder[T]":
        """Give up waiting on each attempt after *seconds*."""
        self._policies.append(TimeoutPolicy(seconds))
        return self

    def fallback(self, fallback: Action[T]) -> "PolicyBuilder[T]":
        """Return ``await fallback()`` if everything inside fails."""
        self._policies.append(FallbackPolicy(fallback))
        return self

    def circuit_breaker(self, failure_threshold: int = 3, reset_timeout: float = 60.0) -> "PolicyBuilder[T]":
        """Open after *failure_threshold* failures, probe again after *reset_timeout* seconds."""
        self._policies.append(CircuitBreakerPolicy(failure_threshold, reset_timeout))
        return self

    # execution -------------------------------------------------------------
    def ordered(self) -> List[Policy[T]]:
        """Attached policies from outermost to innermost."""
        return sorted(self._policies, key=lambda p: p.order)

    def _compose(self, policies: Sequence[Policy[T]], action: Action[T]) -> Action[T]:
        wrapped = action
        for pol in reversed(policies):
            prev = wrapped

            def wrapper(prev: Action[T] = prev, pol: Policy[T] = pol):
                return pol.execute(prev)

            wrapped = wrapper
        return wrapped

    async def execute(self, action: Action[T]) -> T:
        """Run *action* through every attached policy."""
        return await self._compose(self.ordered(), action)()

    async def debug_execute(self, action: Action[T], logger: Optional[DebugLogger] = None) -> T:
        """Like :py:meth:`execute` but report every layer to *logger*.

        Without *logger* the trace goes to the package logger at DEBUG
        level.  That logger is disabled unless ``EXECUTION_POLICY_LOG_LEVEL``
        is set, so by default the trace is dropped; pass a sink such as
        ``print`` to see it.
        """
        sink: Callable[[str], None] = logger if logger is not None else _trace
        layers = [PolicyDebugger(pol, sink) for pol in self.ordered()]
        return await self._compose(layers, action)()

    # lifecycle -------------------------------------------------------------
    def reset(self) -> "PolicyBuilder[T]":
        """Remove every attached policy so the builder can be reused."""
        self._policies.clear()
        return self

    def copy(self) -> "PolicyBuilder[T]":
        """Return a new builder holding the same policy instances.

        Circuit breakers are shared: tripping one through either builder
        is visible to both.  Use :py:meth:`clone` for independent state.
        """
        new: PolicyBuilder[T] = PolicyBuilder()
        new._policies.extend(self._policies)
        return new

    def clone(self) -> "PolicyBuilder[T]":
        """Return a new builder with independent copies of every policy."""
        new: PolicyBuilder[T] = PolicyBuilder()
        new._policies.extend(pol.clone() for pol in self._policies)
        return new


def _trace(message: str) -> None:
    logger.debug(message)
