from __future__ import annotations

import pytest

from agent_consensus.config import load_settings
from agent_consensus.config.models import ProviderSettings
from agent_consensus.providers import (
    available_providers,
    create_provider,
    create_provider_from_settings,
    parse_provider_spec,
    RetryingProvider,
    SimulatedProvider,
)
from tests.helpers.fakes import ScriptedProvider


def test_available_providers() -> None:
    assert available_providers() == ("openai", "openrouter", "simulated")


@pytest.mark.parametrize(
    ("spec", "expected"),
    [
        ("openai:gpt-3.5-turbo", ("openai", "gpt-3.5-turbo")),
        ("OpenRouter:meta-llama/llama-3-8b-instruct:free", ("openrouter", "meta-llama/llama-3-8b-instruct:free")),
        (" simulated : judge-v1 ", ("simulated", "judge-v1")),
    ],
)
def test_parse_provider_spec(spec: str, expected: tuple[str, str]) -> None:
    assert parse_provider_spec(spec) == expected


@pytest.mark.parametrize("spec", ["openai", ":model", "openai:", ""])
def test_parse_provider_spec_rejects_invalid(spec: str) -> None:
    with pytest.raises(ValueError):
        parse_provider_spec(spec)


def test_create_provider_simulated() -> None:
    provider = create_provider(ProviderSettings(provider="simulated", model="judge"))

    assert isinstance(provider, SimulatedProvider)
    assert provider.name() == "simulated"
    assert provider.model == "judge"


def test_create_provider_unknown_prefix() -> None:
    with pytest.raises(ValueError, match="unsupported provider prefix: nope"):
        create_provider(ProviderSettings(provider="nope", model="m"))


def test_create_provider_with_custom_factory() -> None:
    scripted = ScriptedProvider()

    provider = create_provider(
        ProviderSettings(provider="fake", model="m"),
        factories={"fake": lambda config: scripted},
    )

    assert provider is scripted


def test_create_provider_from_settings_wraps_retry_layer() -> None:
    plain = create_provider_from_settings(load_settings())
    wrapped = create_provider_from_settings(load_settings(overrides={"retries.max": 2}))

    assert isinstance(plain, SimulatedProvider)
    assert isinstance(wrapped, RetryingProvider)
    assert isinstance(wrapped.inner, SimulatedProvider)
    assert wrapped.name() == "simulated"
