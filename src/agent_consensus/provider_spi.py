from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass
class ProviderRequest:
    model: str = field(default="")
    prompt: str = ""
    max_tokens: int | None = 10
    temperature: float | None = 0.0
    timeout_s: float | None = 30
    metadata: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        model = (self.model or "").strip()
        if not model:
            raise ValueError("ProviderRequest.model must be a non-empty string")
        self.model = model
        self.prompt = (self.prompt or "").strip()
        if not self.prompt:
            raise ValueError("ProviderRequest.prompt must be a non-empty string")

    @property
    def chat_messages(self) -> list[Mapping[str, Any]]:
        return [{"role": "user", "content": self.prompt}]


@dataclass
class TokenUsage:
    prompt: int = 0
    completion: int = 0

    @property
    def total(self) -> int:
        return self.prompt + self.completion


@dataclass
class ProviderResponse:
    text: str
    latency_ms: int
    token_usage: TokenUsage = field(default_factory=TokenUsage)
    model: str | None = None
    finish_reason: str | None = None
    raw: Any | None = None


class ProviderSPI(Protocol):
    """Judgment service: answer a prompt with free text or raise."""

    def name(self) -> str: ...
    def invoke(self, request: ProviderRequest) -> ProviderResponse: ...


__all__ = [
    "ProviderSPI",
    "ProviderRequest",
    "ProviderResponse",
    "TokenUsage",
]
