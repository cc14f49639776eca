import asyncio
import textwrap
from pathlib import Path

import pytest

from execution_policy import (
    ConfigError,
    ExecutionPolicyConfig,
    PipelineNotFoundError,
    PolicyKind,
    RetryDelayType,
    get_execution_policy_config,
)
from execution_policy.config import PipelineConfig, import_callable

HELPERS = '''
calls = []


async def default_value():
    return "default"


def is_transient(exc):
    return isinstance(exc, ConnectionError)


def record(exc, tb, attempt):
    calls.append(attempt)


NOT_CALLABLE = 3
'''

PYPROJECT = '''
[project]
name = "demo"

[tool.execution_policy.pipelines.fetch]
retry = { preset = "exponential", max_attempts = 3, base_delay = 0.0, retry_if = "policy_helpers.is_transient", on_error = "policy_helpers.record" }
timeout = 2
circuit_breaker = { failure_threshold = 4, reset_timeout = 10.0 }
fallback = "policy_helpers.default_value"

[tool.execution_policy.pipelines.simple]
timeout = 0.5
'''


@pytest.fixture
def helpers(tmp_path: Path, monkeypatch):
    (tmp_path / "policy_helpers.py").write_text(HELPERS)
    monkeypatch.syspath_prepend(str(tmp_path))
    import policy_helpers

    policy_helpers.calls.clear()
    return policy_helpers


@pytest.fixture
def pyproject(tmp_path: Path) -> Path:
    path = tmp_path / "pyproject.toml"
    path.write_text(PYPROJECT)
    return path


def test_reads_pipelines_from_pyproject(pyproject):
    cfg = get_execution_policy_config(pyproject)
    assert cfg is not None
    assert [p.name for p in cfg.pipelines] == ["fetch", "simple"]
    fetch = cfg.pipelines[0]
    assert fetch.timeout == 2.0
    assert fetch.circuit_breaker.failure_threshold == 4
    assert fetch.retry.options().delay_type is RetryDelayType.EXPONENTIAL
    assert fetch.retry.options().max_attempts == 3


def test_defaults_to_pyproject_in_cwd(pyproject, monkeypatch):
    monkeypatch.chdir(pyproject.parent)
    cfg = get_execution_policy_config()
    assert cfg is not None and len(cfg.pipelines) == 2


def test_missing_file_returns_none(tmp_path):
    assert get_execution_policy_config(tmp_path / "pyproject.toml") is None


def test_missing_table_returns_none(tmp_path):
    path = tmp_path / "pyproject.toml"
    path.write_text('[project]\nname = "demo"\n')
    assert get_execution_policy_config(path) is None


def test_invalid_toml_returns_none(tmp_path):
    path = tmp_path / "pyproject.toml"
    path.write_text("[tool.execution_policy\n")
    assert get_execution_policy_config(path) is None


def test_invalid_pipeline_raises_config_error(tmp_path):
    path = tmp_path / "pyproject.toml"
    path.write_text(
        textwrap.dedent(
            """
            [tool.execution_policy.pipelines.bad]
            retry = { preset = "quadratic" }
            """
        )
    )
    with pytest.raises(ConfigError, match="invalid"):
        get_execution_policy_config(path)


def test_unknown_keys_are_rejected():
    with pytest.raises(ValueError):
        ExecutionPolicyConfig.model_validate({"pipelines": {"x": {"retries": 3}}})


def test_layers_are_listed_in_nesting_order(pyproject):
    fetch = get_execution_policy_config(pyproject).pipelines[0]
    kinds = [kind for kind, _ in fetch.layers()]
    assert kinds == [PolicyKind.FALLBACK, PolicyKind.CIRCUIT_BREAKER, PolicyKind.RETRY, PolicyKind.TIMEOUT]


def test_build_pipeline(pyproject, helpers):
    cfg = get_execution_policy_config(pyproject)
    builder = cfg["fetch"]
    assert len(builder) == 4

    calls = 0

    async def action():
        nonlocal calls
        calls += 1
        raise ConnectionError("refused")

    assert asyncio.run(builder.execute(action)) == "default"
    assert calls == 3
    assert helpers.calls == [1, 2, 3]


def test_build_uses_retry_predicate(pyproject, helpers):
    builder = get_execution_policy_config(pyproject)["fetch"]
    calls = 0

    async def action():
        nonlocal calls
        calls += 1
        raise ValueError("not transient")

    assert asyncio.run(builder.execute(action)) == "default"
    assert calls == 1


def test_unknown_pipeline(pyproject):
    cfg = get_execution_policy_config(pyproject)
    with pytest.raises(PipelineNotFoundError):
        cfg["missing"]


def test_model_dump_round_trips_names(pyproject):
    cfg = get_execution_policy_config(pyproject)
    dumped = cfg.model_dump()
    assert set(dumped["pipelines"]) == {"fetch", "simple"}
    assert dumped["pipelines"]["simple"]["timeout"] == 0.5


def test_import_callable_errors(helpers):
    with pytest.raises(ConfigError, match="dotted path"):
        import_callable("nodots")
    with pytest.raises(ConfigError, match="cannot import"):
        import_callable("policy_helpers.nope")
    with pytest.raises(ConfigError, match="not callable"):
        import_callable("policy_helpers.NOT_CALLABLE")
    assert import_callable("policy_helpers.is_transient") is helpers.is_transient


def test_build_fails_on_unresolvable_fallback():
    pipeline = PipelineConfig(name="x", fallback="no_such_module_here.value")
    with pytest.raises(ConfigError):
        pipeline.build()
