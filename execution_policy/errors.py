"""Errors raised by the policy layers themselves.

Errors coming out of the wrapped action are never wrapped; only the two
synthetic failures below (and configuration problems) originate here.
"""

from __future__ import annotations


class ExecutionPolicyError(Exception):
    """Base class for errors produced by this package."""


class PolicyTimeoutError(ExecutionPolicyError, TimeoutError):
    """The action did not settle before the timeout elapsed."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        super().__init__(f"action exceeded {seconds}s")


class CircuitOpenError(ExecutionPolicyError):
    """The circuit breaker rejected the call without running the action."""

    def __init__(self, remaining: float = 0.0) -> None:
        self.remaining = remaining
        super().__init__("Circuit is open")


class ConfigError(ExecutionPolicyError, ValueError):
    """Invalid pipeline configuration."""
