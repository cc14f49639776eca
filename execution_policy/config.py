"""Named pipelines declared in ``pyproject.toml``.

.. code-block:: toml

    [tool.execution_policy.pipelines.fetch]
    retry = { preset = "exponential_jitter", max_attempts = 4, retry_if = "app.net.is_transient" }
    timeout = 2.0
    circuit_breaker = { failure_threshold = 3, reset_timeout = 10.0 }
    fallback = "app.net.cached_value"

Callables are referenced by dotted path and imported when the pipeline is
built.
"""

import importlib
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import toml
from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, ValidationError, field_validator

from execution_policy.builder import PolicyBuilder
from execution_policy.errors import ConfigError
from execution_policy.policies import PolicyKind, RetryDelayType, RetryOptions
from execution_policy.utils.logging import get_logger

logger = get_logger()


class PipelineNotFoundError(KeyError):
    pass


def import_callable(path: str) -> Callable:
    """Resolve ``package.module.attribute`` to the object it names."""
    module_name, _, attr = path.rpartition(".")
    if not module_name:
        raise ConfigError(f"{path!r} is not a dotted path")
    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"cannot import {path!r}: {e}") from e
    if not callable(target):
        raise ConfigError(f"{path!r} is not callable")
    return target


class RetryConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    preset: str = "fixed"
    max_attempts: Optional[PositiveInt] = None
    base_delay: Optional[float] = Field(default=None, ge=0)
    delay_type: Optional[RetryDelayType] = None
    jitter_factor: Optional[float] = Field(default=None, ge=0, le=1)
    max_delay: Optional[float] = Field(default=None, ge=0)
    retry_if: Optional[str] = None
    on_error: Optional[str] = None

    @field_validator("preset")
    @classmethod
    def _known_preset(cls, value: str) -> str:
        RetryOptions.preset(value)
        return value

    def options(self) -> RetryOptions:
        return RetryOptions.preset(self.preset).copy_with(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            delay_type=self.delay_type,
            jitter_factor=self.jitter_factor,
            max_delay=self.max_delay,
        )


class CircuitBreakerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    failure_threshold: PositiveInt = 3
    reset_timeout: float = Field(default=60.0, ge=0)


class PipelineConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    retry: Optional[RetryConfig] = None
    timeout: Optional[PositiveFloat] = None
    fallback: Optional[str] = None
    circuit_breaker: Optional[CircuitBreakerConfig] = None

    def build(self) -> PolicyBuilder:
        builder: PolicyBuilder = PolicyBuilder()
        if self.retry is not None:
            builder.retry(
                self.retry.options(),
                retry_if=import_callable(self.retry.retry_if) if self.retry.retry_if else None,
                on_error=import_callable(self.retry.on_error) if self.retry.on_error else None,
            )
        if self.timeout is not None:
            builder.timeout(self.timeout)
        if self.fallback is not None:
            builder.fallback(import_callable(self.fallback))
        if self.circuit_breaker is not None:
            builder.circuit_breaker(self.circuit_breaker.failure_threshold, self.circuit_breaker.reset_timeout)
        return builder

    def layers(self) -> List[Tuple[PolicyKind, Dict[str, Any]]]:
        """Configured layers from outermost to innermost, without importing anything."""
        found: List[Tuple[PolicyKind, Dict[str, Any]]] = []
        if self.fallback is not None:
            found.append((PolicyKind.FALLBACK, {"fallback": self.fallback}))
        if self.circuit_breaker is not None:
            found.append((PolicyKind.CIRCUIT_BREAKER, self.circuit_breaker.model_dump()))
        if self.retry is not None:
            found.append((PolicyKind.RETRY, self.retry.options().to_config()))
        if self.timeout is not None:
            found.append((PolicyKind.TIMEOUT, {"seconds": self.timeout}))
        return found


class ExecutionPolicyConfig(BaseModel):
    pipelines: List[PipelineConfig] = Field(default_factory=list)

    def __getitem__(self, pipeline_name: str) -> PolicyBuilder:
        for pipeline in self.pipelines:
            if pipeline.name == pipeline_name:
                return pipeline.build()
        raise PipelineNotFoundError(pipeline_name)

    @classmethod
    def model_validate(cls, obj: Any, **kwargs: Any):
        modified_obj = dict(obj)
        pipelines: Union[Dict[str, Any], List[Any], None] = modified_obj.get("pipelines")
        if isinstance(pipelines, dict):
            modified_obj["pipelines"] = [{"name": name, **(body or {})} for name, body in pipelines.items()]
        return super().model_validate(modified_obj, **kwargs)

    def model_dump(self, *args, **kwargs):
        result = super().model_dump(*args, **kwargs)
        result["pipelines"] = {p.pop("name"): p for p in result["pipelines"]}
        return result


def get_execution_policy_config(path: Optional[Path] = None) -> Optional[ExecutionPolicyConfig]:
    """
    Read ``pyproject.toml`` and return its ``[tool.execution_policy]`` table.

    Args:
        path: File to read. Defaults to ``pyproject.toml`` in the current directory.

    Returns:
        Optional[ExecutionPolicyConfig]: The parsed configuration, or None if absent.

    Raises:
        ConfigError: If the table exists but does not describe valid pipelines.
    """
    pyproject_path = path or Path.cwd() / "pyproject.toml"

    if not pyproject_path.is_file():
        logger.warning(f"pyproject.toml not found at {pyproject_path}")
        return None

    try:
        pyproject_data = toml.load(pyproject_path)
    except PermissionError:
        logger.error(f"Permission denied when trying to read {pyproject_path}")
        return None
    except toml.TomlDecodeError as e:
        logger.error(f"Invalid TOML in {pyproject_path}: {e}")
        return None

    section = pyproject_data.get("tool", {}).get("execution_policy")
    if section is None:
        logger.info("[tool.execution_policy] configuration not found in pyproject.toml")
        return None

    try:
        return ExecutionPolicyConfig.model_validate(section)
    except ValidationError as e:
        raise ConfigError(f"invalid [tool.execution_policy] configuration: {e}") from e
