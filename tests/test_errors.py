"""Tests for agent_consensus.errors module."""
from __future__ import annotations

import importlib

import pytest


def test_external_service_error_attrs() -> None:
    module = importlib.import_module("agent_consensus.errors")

    error = module.RateLimitError("slow down", provider="openai", agent_index=2)

    assert str(error) == "slow down"
    assert error.message == "slow down"
    assert error.provider == "openai"
    assert error.agent_index == 2


@pytest.mark.parametrize(
    "name",
    ["AuthError", "RetryableError", "TimeoutError", "RateLimitError", "RetriableError"],
)
def test_service_failures_abort_the_pipeline(name: str) -> None:
    module = importlib.import_module("agent_consensus.errors")

    cls = getattr(module, name)

    assert issubclass(cls, module.ExternalServiceError)
    assert issubclass(cls, module.PipelineError)


def test_absorbed_errors_are_not_pipeline_errors() -> None:
    module = importlib.import_module("agent_consensus.errors")

    for name in ("MalformedResponseError", "ReferenceServiceError", "ConfigurationError"):
        cls = getattr(module, name)
        assert issubclass(cls, module.ConsensusError)
        assert not issubclass(cls, module.PipelineError)


def test_timeout_error_does_not_shadow_builtin() -> None:
    module = importlib.import_module("agent_consensus.errors")

    assert module.TimeoutError is not TimeoutError
    assert issubclass(module.TimeoutError, module.RetryableError)


def test_malformed_response_keeps_raw_payload() -> None:
    module = importlib.import_module("agent_consensus.errors")

    error = module.MalformedResponseError("bad", raw={"choices": []})

    assert error.raw == {"choices": []}
