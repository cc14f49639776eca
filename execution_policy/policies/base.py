# -*- coding: utf-8 -*-
"""Policy interface shared by the built-in resilience layers.

Policies wrap the execution of an asynchronous action.  The set of
variants is closed: every concrete policy binds one :class:`PolicyKind`,
and the kind fixes where the policy sits when a
:class:`~execution_policy.builder.PolicyBuilder` nests them.  Lower
orders wrap outermost::

    Fallback ⊃ CircuitBreaker ⊃ Retry ⊃ Timeout ⊃ action
"""

from __future__ import annotations

import abc
import copy
from enum import Enum
from typing import Any, ClassVar, Dict, Generic, Type

from ..typing import Action, T


class PolicyKind(str, Enum):
    """The built-in policy variants."""

    FALLBACK = "fallback"
    CIRCUIT_BREAKER = "circuit_breaker"
    RETRY = "retry"
    TIMEOUT = "timeout"

    @property
    def order(self) -> int:
        return _ORDERS[self]


_ORDERS: Dict[PolicyKind, int] = {
    PolicyKind.FALLBACK: 1,
    PolicyKind.CIRCUIT_BREAKER: 2,
    PolicyKind.RETRY: 3,
    PolicyKind.TIMEOUT: 4,
}

# one concrete class per kind
_POLICY_REGISTRY: Dict[PolicyKind, Type["Policy"]] = {}


class Policy(abc.ABC, Generic[T]):
    """Base class for all policies.

    Subclasses declare ``kind`` and implement :py:meth:`execute`.  A
    subclass that claims a kind already bound to another class is
    rejected, so the nesting order stays total.
    """

    kind: ClassVar[PolicyKind]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        kind = cls.__dict__.get("kind")
        if not isinstance(kind, PolicyKind):
            return
        existing = _POLICY_REGISTRY.get(kind)
        # module reloads re-register the same class
        if existing is not None and (existing.__module__, existing.__qualname__) != (
            cls.__module__,
            cls.__qualname__,
        ):
            raise TypeError(f"{kind.value} is already implemented by {existing.__name__}")
        _POLICY_REGISTRY[kind] = cls

    @property
    def order(self) -> int:
        """Wrap position; lower values wrap outermost."""
        return self.kind.order

    @property
    def name(self) -> str:
        return type(self).__name__

    @abc.abstractmethod
    async def execute(self, action: Action[T]) -> T:
        """Run ``action`` applying this policy."""

    def to_config(self) -> Dict[str, Any]:
        """Return a printable description of the policy settings."""
        return {}

    def clone(self) -> "Policy[T]":
        """Return an independent policy with the same settings."""
        return copy.copy(self)

    def __repr__(self) -> str:
        settings = ", ".join(f"{k}={v!r}" for k, v in self.to_config().items())
        return f"{self.name}({settings})"


__all__ = [
    "_POLICY_REGISTRY",
    "Policy",
    "PolicyKind",
]
