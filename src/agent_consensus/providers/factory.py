"""Helpers for instantiating providers from configuration."""
from __future__ import annotations

from collections.abc import Callable, Mapping

from ..config.models import ConsensusSettings, ProviderSettings
from ..provider_spi import ProviderSPI
from .openai import OpenAIProvider
from .openrouter import OpenRouterProvider
from .retry import RetryingProvider
from .simulated import SimulatedProvider

__all__ = [
    "ProviderFactory",
    "available_providers",
    "create_provider",
    "create_provider_from_settings",
    "parse_provider_spec",
]


ProviderFactory = Callable[[ProviderSettings], ProviderSPI]

_DEFAULT_FACTORIES: dict[str, ProviderFactory] = {
    "openai": OpenAIProvider,
    "openrouter": OpenRouterProvider,
    "simulated": SimulatedProvider,
}


def available_providers() -> tuple[str, ...]:
    return tuple(sorted(_DEFAULT_FACTORIES))


def parse_provider_spec(spec: str) -> tuple[str, str]:
    """Split ``spec`` into ``(prefix, model)``.

    Only the first ``":"`` acts as the separator so that model identifiers such
    as ``"meta-llama/llama-3-8b-instruct:free"`` remain intact.
    """

    if not isinstance(spec, str):
        raise ValueError("provider spec must be a string")

    prefix, sep, remainder = spec.partition(":")
    if not sep:
        raise ValueError(f"invalid provider spec: {spec!r}")

    prefix = prefix.strip().lower()
    remainder = remainder.strip()
    if not prefix or not remainder:
        raise ValueError(f"invalid provider spec: {spec!r}")

    return prefix, remainder


def create_provider(
    config: ProviderSettings,
    *,
    factories: Mapping[str, ProviderFactory] | None = None,
) -> ProviderSPI:
    registry = dict(_DEFAULT_FACTORIES)
    if factories:
        registry.update(factories)
    try:
        factory = registry[config.provider]
    except KeyError as exc:
        supported = ", ".join(sorted(registry))
        raise ValueError(
            f"unsupported provider prefix: {config.provider}. supported: {supported}."
        ) from exc
    return factory(config)


def create_provider_from_settings(
    settings: ConsensusSettings,
    *,
    factories: Mapping[str, ProviderFactory] | None = None,
) -> ProviderSPI:
    """Build the configured provider, wrapped in a retry layer when enabled."""

    provider = create_provider(settings.provider, factories=factories)
    if settings.retries.max > 0:
        return RetryingProvider(
            provider,
            max_retries=settings.retries.max,
            backoff_s=settings.retries.backoff_s,
        )
    return provider
