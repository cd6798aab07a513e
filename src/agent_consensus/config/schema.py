"""設定ファイル検証用の Pydantic モデル。"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import (
    DEFAULT_LABEL_TEMPLATE,
    DEFAULT_MODEL,
    DEFAULT_PROMPT_TEMPLATE,
    DEFAULT_REFERENCE_URL,
)

__all__ = [
    "AgentsConfigModel",
    "JudgmentConfigModel",
    "RetryConfigModel",
    "ReferenceConfigModel",
    "ConsensusSettingsModel",
]


class AgentsConfigModel(BaseModel):
    """投票エージェント設定のスキーマ。"""

    model_config = ConfigDict(extra="forbid")

    count: int = Field(default=3, ge=1)
    label_template: str = DEFAULT_LABEL_TEMPLATE
    max_concurrency: int = Field(default=0, ge=0)

    @field_validator("label_template")
    @classmethod
    def _check_label_template(cls, value: str) -> str:
        try:
            value.format(number=1, index=0)
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(
                "label_template may only use the {number} and {index} placeholders"
            ) from exc
        return value


class JudgmentConfigModel(BaseModel):
    """判定呼び出し設定のスキーマ。"""

    model_config = ConfigDict(extra="forbid")

    timeout_s: float = Field(default=30.0, gt=0)
    max_tokens: int = Field(default=10, ge=1)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    affirmative_marker: str = Field(default="yes", min_length=1)
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE

    @field_validator("affirmative_marker")
    @classmethod
    def _normalize_marker(cls, value: str) -> str:
        marker = value.strip().lower()
        if not marker:
            raise ValueError("affirmative_marker must not be blank")
        return marker

    @field_validator("prompt_template")
    @classmethod
    def _check_prompt_template(cls, value: str) -> str:
        try:
            rendered = value.format(agent_label="Agent 1", statement="Alice pays Bob 5 BTC")
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(
                "prompt_template may only use the {agent_label} and {statement} placeholders"
            ) from exc
        if not rendered.strip():
            raise ValueError("prompt_template must not render to a blank prompt")
        return value


class RetryConfigModel(BaseModel):
    """再試行設定のスキーマ。"""

    model_config = ConfigDict(extra="forbid")

    max: int = Field(default=0, ge=0)
    backoff_s: float = Field(default=0.0, ge=0.0)


class ReferenceConfigModel(BaseModel):
    """参照番号サービス設定のスキーマ。"""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    url: str = DEFAULT_REFERENCE_URL
    timeout_s: float = Field(default=5.0, gt=0)
    sentinel: int = 0


class ConsensusSettingsModel(BaseModel):
    """設定全体のスキーマ。"""

    model_config = ConfigDict(extra="forbid")

    provider: str = "simulated"
    model: str = Field(default=DEFAULT_MODEL, min_length=1)
    endpoint: str | None = None
    auth_env: str | None = None
    seed: int = 0
    agents: AgentsConfigModel = Field(default_factory=AgentsConfigModel)
    judgment: JudgmentConfigModel = Field(default_factory=JudgmentConfigModel)
    retries: RetryConfigModel = Field(default_factory=RetryConfigModel)
    reference: ReferenceConfigModel = Field(default_factory=ReferenceConfigModel)

    @field_validator("provider")
    @classmethod
    def _normalize_provider(cls, value: str) -> str:
        provider = value.strip().lower()
        if not provider:
            raise ValueError("provider must not be blank")
        return provider

    @field_validator("model")
    @classmethod
    def _normalize_model(cls, value: str) -> str:
        model = value.strip()
        if not model:
            raise ValueError("model must not be blank")
        return model
