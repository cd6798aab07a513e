"""設定値を保持するデータクラス群。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_PROMPT_TEMPLATE = (
    "{agent_label}: Validate the following transaction: '{statement}'. "
    "Is it valid? Answer with a single word, yes or no."
)
DEFAULT_LABEL_TEMPLATE = "Agent {number}"
DEFAULT_REFERENCE_URL = "https://blockstream.info/api/blocks/tip/height"

__all__ = [
    "DEFAULT_LABEL_TEMPLATE",
    "DEFAULT_MODEL",
    "DEFAULT_PROMPT_TEMPLATE",
    "DEFAULT_REFERENCE_URL",
    "ProviderSettings",
    "AgentSettings",
    "JudgmentSettings",
    "RetrySettings",
    "ReferenceSettings",
    "ConsensusSettings",
]


@dataclass(frozen=True)
class ProviderSettings:
    """判定サービス（LLM プロバイダ）の接続設定。"""

    provider: str = "simulated"
    model: str = DEFAULT_MODEL
    endpoint: str | None = None
    auth_env: str | None = None
    seed: int = 0


@dataclass(frozen=True)
class AgentSettings:
    count: int = 3
    label_template: str = DEFAULT_LABEL_TEMPLATE
    max_concurrency: int = 0

    def label_for(self, index: int) -> str:
        return self.label_template.format(number=index + 1, index=index)


@dataclass(frozen=True)
class JudgmentSettings:
    timeout_s: float = 30.0
    max_tokens: int = 10
    temperature: float = 0.0
    affirmative_marker: str = "yes"
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE


@dataclass(frozen=True)
class RetrySettings:
    max: int = 0
    backoff_s: float = 0.0


@dataclass(frozen=True)
class ReferenceSettings:
    enabled: bool = False
    url: str = DEFAULT_REFERENCE_URL
    timeout_s: float = 5.0
    sentinel: int = 0


@dataclass(frozen=True)
class ConsensusSettings:
    """パイプライン全体の設定。"""

    provider: ProviderSettings = field(default_factory=ProviderSettings)
    agents: AgentSettings = field(default_factory=AgentSettings)
    judgment: JudgmentSettings = field(default_factory=JudgmentSettings)
    retries: RetrySettings = field(default_factory=RetrySettings)
    reference: ReferenceSettings = field(default_factory=ReferenceSettings)
    path: Path | None = None
    raw: dict[str, Any] = field(default_factory=dict)
