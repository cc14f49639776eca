"""Policy interface and the built-in implementations."""

from .base import _POLICY_REGISTRY, Policy, PolicyKind
from .circuit_breaker import CircuitBreakerPolicy, CircuitState
from .fallback import FallbackPolicy
from .retry import RetryDelayType, RetryOptions, RetryPolicy
from .timeout import TimeoutPolicy

__all__ = [
    "_POLICY_REGISTRY",
    "Policy",
    "PolicyKind",
    "CircuitBreakerPolicy",
    "CircuitState",
    "FallbackPolicy",
    "RetryDelayType",
    "RetryOptions",
    "RetryPolicy",
    "TimeoutPolicy",
]
