from __future__ import annotations

import asyncio
import inspect
import random
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, ClassVar, Dict, Optional

from ..typing import Action, ErrorHook, RetryPredicate, T
from ..utils.logging import get_logger
from .base import Policy, PolicyKind

logger = get_logger()


class RetryDelayType(str, Enum):
    """How the delay between attempts grows."""

    FIXED = "fixed"  # base_delay
    LINEAR = "linear"  # base_delay * attempt
    EXPONENTIAL = "exponential"  # base_delay * 2 ** (attempt - 1)
    EXPONENTIAL_JITTER = "exponential_jitter"  # exponential +/- jitter_factor


@dataclass(frozen=True)
class RetryOptions:
    """Immutable retry configuration.

    Delays are expressed in seconds.  ``jitter_factor`` only applies to
    :attr:`RetryDelayType.EXPONENTIAL_JITTER`; ``0.25`` means the computed
    delay is scaled by a random factor in ``[0.75, 1.25]``.
    """

    max_attempts: int = 3
    base_delay: float = 0.3
    delay_type: RetryDelayType = RetryDelayType.FIXED
    jitter_factor: float = 0.25
    max_delay: float = 30.0

    FIXED: ClassVar["RetryOptions"]
    LINEAR: ClassVar["RetryOptions"]
    EXPONENTIAL: ClassVar["RetryOptions"]
    EXPONENTIAL_JITTER: ClassVar["RetryOptions"]

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if not 0 <= self.jitter_factor <= 1:
            raise ValueError(f"jitter_factor must be within [0, 1], got {self.jitter_factor}")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must not be negative")
        # accept plain strings from configuration files
        object.__setattr__(self, "delay_type", RetryDelayType(self.delay_type))

    @classmethod
    def preset(cls, name: str) -> "RetryOptions":
        """Return the preset called *name* (``fixed``, ``linear``, ...)."""
        try:
            return getattr(cls, RetryDelayType(name).name)
        except ValueError:
            choices = ", ".join(t.value for t in RetryDelayType)
            raise ValueError(f"unknown retry preset {name!r}; expected one of {choices}") from None

    def copy_with(self, **changes: Any) -> "RetryOptions":
        """Copy these options, overriding only the given fields."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the failed *attempt* (1-based)."""
        if attempt <= 0:
            return 0.0
        base_ms = self.base_delay * 1000
        if self.delay_type is RetryDelayType.FIXED:
            ms = base_ms
        elif self.delay_type is RetryDelayType.LINEAR:
            ms = base_ms * attempt
        else:
            # keep the power finite, max_delay caps it below
            ms = base_ms * 2.0 ** min(attempt - 1, 1023)

        if self.delay_type is RetryDelayType.EXPONENTIAL_JITTER and self.jitter_factor > 0:
            ms *= random.uniform(1 - self.jitter_factor, 1 + self.jitter_factor)

        capped = round(min(ms, self.max_delay * 1000))
        return max(capped, 0) / 1000

    def to_config(self) -> Dict[str, Any]:
        cfg = asdict(self)
        cfg["delay_type"] = self.delay_type.value
        return cfg


RetryOptions.FIXED = RetryOptions()
RetryOptions.LINEAR = RetryOptions(max_attempts=5, base_delay=0.2, delay_type=RetryDelayType.LINEAR)
RetryOptions.EXPONENTIAL = RetryOptions(max_attempts=5, base_delay=0.2, delay_type=RetryDelayType.EXPONENTIAL)
RetryOptions.EXPONENTIAL_JITTER = RetryOptions(
    max_attempts=7,
    base_delay=0.2,
    delay_type=RetryDelayType.EXPONENTIAL_JITTER,
    jitter_factor=0.25,
)


class RetryPolicy(Policy[T]):
    """Re-run the action according to ``options``.

    ``retry_if`` decides whether a given error is worth another attempt;
    ``on_error`` is called after every failed attempt with the error, its
    traceback and the 1-based attempt number.  The hook may be a coroutine
    function, in which case it is awaited before the next decision.  When
    attempts run out the last error is re-raised as is.
    """

    kind = PolicyKind.RETRY

    def __init__(
        self,
        options: RetryOptions = RetryOptions.FIXED,
        *,
        retry_if: Optional[RetryPredicate] = None,
        on_error: Optional[ErrorHook] = None,
    ) -> None:
        self.options = options
        self.retry_if = retry_if
        self.on_error = on_error

    def to_config(self) -> Dict[str, Any]:
        return self.options.to_config()

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        if attempt >= self.options.max_attempts:
            return False
        return self.retry_if is None or bool(self.retry_if(exc))

    async def execute(self, action: Action[T]) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await action()
            except Exception as exc:
                if self.on_error is not None:
                    res = self.on_error(exc, exc.__traceback__, attempt)
                    if inspect.isawaitable(res):
                        await res
                if not self.should_retry(exc, attempt):
                    logger.debug(f"Attempt {attempt}/{self.options.max_attempts} failed, giving up: {exc!r}")
                    raise
                delay = self.options.delay_for(attempt)
                logger.debug(f"Attempt {attempt}/{self.options.max_attempts} failed, retrying in {delay}s: {exc!r}")
                await asyncio.sleep(delay)
