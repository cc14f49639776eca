from __future__ import annotations

import time
from typing import Any, Dict

from .policies.base import Policy, PolicyKind
from .typing import Action, DebugLogger, T


class PolicyDebugger(Policy[T]):
    """Wrap a single policy and report its start, outcome and duration.

    ``logger`` receives one line per event::

        [RetryPolicy] → Starting
        [RetryPolicy] ✓ Succeeded in 12ms
        [RetryPolicy] ✗ Failed in 30ms: boom

    Errors are re-raised untouched after being reported.
    """

    def __init__(self, inner: Policy[T], logger: DebugLogger) -> None:
        self.inner = inner
        self.logger = logger

    @property
    def kind(self) -> PolicyKind:  # type: ignore[override]
        return self.inner.kind

    @property
    def name(self) -> str:
        return self.inner.name

    def to_config(self) -> Dict[str, Any]:
        return self.inner.to_config()

    async def execute(self, action: Action[T]) -> T:
        name = self.name
        self.logger(f"[{name}] → Starting")
        started = time.perf_counter()
        try:
            result = await self.inner.execute(action)
        except BaseException as exc:
            self.logger(f"[{name}] ✗ Failed in {_elapsed_ms(started)}ms: {exc}")
            raise
        self.logger(f"[{name}] ✓ Succeeded in {_elapsed_ms(started)}ms")
        return result


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
