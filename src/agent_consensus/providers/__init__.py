"""判定サービス（LLM プロバイダ）実装群。"""
from __future__ import annotations

from .base import BaseProvider
from .factory import (
    available_providers,
    create_provider,
    create_provider_from_settings,
    parse_provider_spec,
    ProviderFactory,
)
from .openai import OpenAIProvider
from .openrouter import OpenRouterProvider
from .retry import RetryingProvider
from .simulated import SimulatedProvider

__all__ = [
    "BaseProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "ProviderFactory",
    "RetryingProvider",
    "SimulatedProvider",
    "available_providers",
    "create_provider",
    "create_provider_from_settings",
    "parse_provider_spec",
]
