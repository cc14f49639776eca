"""Composable resilience policies for asynchronous actions.

Retry, timeout, fallback and circuit breaking are attached to a
:class:`PolicyBuilder` in any order and always run nested as
``Fallback ⊃ CircuitBreaker ⊃ Retry ⊃ Timeout ⊃ action``::

    result = await (
        PolicyBuilder()
        .retry(RetryOptions.FIXED, retry_if=lambda e: isinstance(e, OSError))
        .timeout(2.0)
        .fallback(load_default)
        .execute(fetch_data)
    )

Use :py:meth:`PolicyBuilder.debug_execute` to trace every layer.
"""

from .builder import PolicyBuilder
from .config import (
    ExecutionPolicyConfig,
    PipelineConfig,
    PipelineNotFoundError,
    get_execution_policy_config,
)
from .debugger import PolicyDebugger
from .errors import CircuitOpenError, ConfigError, ExecutionPolicyError, PolicyTimeoutError
from .policies import (
    CircuitBreakerPolicy,
    CircuitState,
    FallbackPolicy,
    Policy,
    PolicyKind,
    RetryDelayType,
    RetryOptions,
    RetryPolicy,
    TimeoutPolicy,
)

__all__ = [
    "PolicyBuilder",
    "PolicyDebugger",
    "Policy",
    "PolicyKind",
    "RetryPolicy",
    "RetryOptions",
    "RetryDelayType",
    "TimeoutPolicy",
    "FallbackPolicy",
    "CircuitBreakerPolicy",
    "CircuitState",
    "ExecutionPolicyError",
    "PolicyTimeoutError",
    "CircuitOpenError",
    "ConfigError",
    "ExecutionPolicyConfig",
    "PipelineConfig",
    "PipelineNotFoundError",
    "get_execution_policy_config",
]
