import asyncio
import json

import pytest
from loguru import logger

from execution_policy import CircuitBreakerPolicy, PolicyBuilder, RetryOptions, RetryPolicy
from execution_policy.utils import logging as policy_logging


async def _fail():
    raise RuntimeError("boom")


def _run_failing(policy):
    with pytest.raises(RuntimeError):
        asyncio.run(policy.execute(_fail))


@pytest.fixture
def log_file(tmp_path, monkeypatch):
    path = tmp_path / "policies.log"
    monkeypatch.setenv("EXECUTION_POLICY_LOG_OUTPUT", "file")
    monkeypatch.setenv("EXECUTION_POLICY_LOG_FILE", str(path))
    yield path
    logger.remove()
    monkeypatch.delenv("EXECUTION_POLICY_LOG_LEVEL", raising=False)
    policy_logging.setup_logger()


def test_silent_without_level(log_file, monkeypatch):
    monkeypatch.delenv("EXECUTION_POLICY_LOG_LEVEL", raising=False)
    policy_logging.setup_logger()
    _run_failing(RetryPolicy(RetryOptions(max_attempts=2, base_delay=0.0)))
    assert not log_file.exists()


def test_default_debug_trace_is_dropped_without_level(log_file, monkeypatch):
    monkeypatch.delenv("EXECUTION_POLICY_LOG_LEVEL", raising=False)
    policy_logging.setup_logger()

    async def action():
        return 1

    assert asyncio.run(PolicyBuilder().retry().debug_execute(action)) == 1
    assert not log_file.exists()


def test_human_format(log_file, monkeypatch):
    monkeypatch.setenv("EXECUTION_POLICY_LOG_LEVEL", "DEBUG")
    policy_logging.setup_logger()
    _run_failing(RetryPolicy(RetryOptions(max_attempts=2, base_delay=0.0)))
    logger.complete()
    text = log_file.read_text()
    assert "Attempt 1/2 failed, retrying in 0.0s" in text
    assert "Attempt 2/2 failed, giving up" in text
    assert "DEBUG" in text


def test_json_format(log_file, monkeypatch):
    monkeypatch.setenv("EXECUTION_POLICY_LOG_LEVEL", "INFO")
    monkeypatch.setenv("EXECUTION_POLICY_LOG_FORMAT", "json")
    policy_logging.setup_logger()
    _run_failing(CircuitBreakerPolicy(failure_threshold=1))
    logger.complete()
    records = [json.loads(line) for line in log_file.read_text().splitlines() if line]
    assert records[-1]["level"] == "WARNING"
    assert records[-1]["message"] == "Circuit opened after 1 failure(s)"
    assert records[-1]["module"] == "circuit_breaker"


def test_disable_switch(log_file, monkeypatch):
    monkeypatch.setenv("EXECUTION_POLICY_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("EXECUTION_POLICY_DISABLE_LOGGING", "true")
    policy_logging.setup_logger()
    _run_failing(CircuitBreakerPolicy(failure_threshold=1))
    assert not log_file.exists()


def test_get_logger_returns_loguru_logger():
    assert policy_logging.get_logger() is logger
