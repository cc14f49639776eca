from __future__ import annotations

import asyncio
from typing import Any, Dict, Set

from ..errors import PolicyTimeoutError
from ..typing import Action, T
from .base import Policy, PolicyKind

# abandoned actions stay referenced until they settle
_ABANDONED: Set["asyncio.Future[Any]"] = set()


class TimeoutPolicy(Policy[T]):
    """Fail with :class:`PolicyTimeoutError` when the action runs too long.

    The policy stops waiting once ``seconds`` have elapsed.  Whatever the
    action was doing is not interrupted on its behalf; cleaning up is the
    action's own business.  Cancelling the caller does cancel the action.
    """

    kind = PolicyKind.TIMEOUT

    def __init__(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError(f"timeout must be positive, got {seconds}")
        self.seconds = seconds

    def to_config(self) -> Dict[str, Any]:
        return {"seconds": self.seconds}

    async def execute(self, action: Action[T]) -> T:
        task = asyncio.ensure_future(action())
        try:
            done, _ = await asyncio.wait({task}, timeout=self.seconds)
        except asyncio.CancelledError:
            # the caller gave up, so the action goes with it
            task.cancel()
            raise
        if task in done:
            return task.result()
        _ABANDONED.add(task)
        task.add_done_callback(_release)
        raise PolicyTimeoutError(self.seconds)


def _release(task: "asyncio.Future[Any]") -> None:
    _ABANDONED.discard(task)
    # retrieve the outcome so a late failure is not reported as unhandled
    if not task.cancelled():
        task.exception()
