from __future__ import annotations

from typing import Any, Dict

from ..typing import Action, T
from ..utils.logging import get_logger
from .base import Policy, PolicyKind

logger = get_logger()


class FallbackPolicy(Policy[T]):
    """Return the value of ``fallback`` whenever the action fails.

    Every :class:`Exception` is recovered the same way and the original
    error is dropped.
    """

    kind = PolicyKind.FALLBACK

    def __init__(self, fallback: Action[T]) -> None:
        self.fallback = fallback

    def to_config(self) -> Dict[str, Any]:
        return {"fallback": getattr(self.fallback, "__qualname__", repr(self.fallback))}

    async def execute(self, action: Action[T]) -> T:
        try:
            return await action()
        except Exception as exc:
            logger.debug(f"Falling back after {exc!r}")
            return await self.fallback()
