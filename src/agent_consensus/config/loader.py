"""設定ファイルの読み込みユーティリティ。"""
from __future__ import annotations

from collections.abc import Mapping, MutableMapping
import copy
import os
from pathlib import Path
from typing import Any, cast

from pydantic import ValidationError
import yaml

from ..errors import ConfigurationError
from .models import (
    AgentSettings,
    ConsensusSettings,
    JudgmentSettings,
    ProviderSettings,
    ReferenceSettings,
    RetrySettings,
)
from .schema import ConsensusSettingsModel

__all__ = [
    "DEFAULT_AUTH_ENV",
    "ensure_credentials",
    "load_settings",
    "resolve_auth_env",
]

# 認証が必要なプロバイダと既定の環境変数名
DEFAULT_AUTH_ENV: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}


def _format_validation_error(source: str, exc: ValidationError) -> str:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part is not None)
        message = error.get("msg", "未知のエラー")
        if location:
            details.append(f"{location}: {message}")
        else:
            details.append(message)
    summary = "; ".join(details)
    return f"設定ファイルの検証に失敗しました ({source}): {summary}"


def _load_yaml(path: Path) -> MutableMapping[str, object]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"設定ファイルを読み込めません: {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"YAML の解析に失敗しました: {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, MutableMapping):
        raise ConfigurationError(f"YAML の内容が辞書ではありません: {path}")
    return cast(MutableMapping[str, object], data)


def _apply_overrides(
    data: MutableMapping[str, object], overrides: Mapping[str, object]
) -> None:
    for dotted_key, value in overrides.items():
        if value is None:
            continue
        parts = dotted_key.split(".")
        node: MutableMapping[str, object] = data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, MutableMapping):
                child = {}
                node[part] = child
            node = cast(MutableMapping[str, object], child)
        node[parts[-1]] = value


def load_settings(
    path: str | Path | None = None,
    *,
    overrides: Mapping[str, object] | None = None,
) -> ConsensusSettings:
    """YAML 設定を読み込み、ドット区切りの上書きを適用して検証する。"""

    source = "<defaults>"
    resolved_path: Path | None = None
    data: MutableMapping[str, object] = {}
    if path is not None:
        resolved_path = Path(path).expanduser()
        source = str(resolved_path)
        data = _load_yaml(resolved_path)
    if overrides:
        data = cast(MutableMapping[str, object], copy.deepcopy(dict(data)))
        _apply_overrides(data, overrides)

    try:
        model = ConsensusSettingsModel.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(_format_validation_error(source, exc)) from None

    agents = model.agents
    judgment = model.judgment
    retries = model.retries
    reference = model.reference
    raw_dump: dict[str, Any] = model.model_dump(mode="python")
    return ConsensusSettings(
        provider=ProviderSettings(
            provider=model.provider,
            model=model.model,
            endpoint=model.endpoint,
            auth_env=model.auth_env,
            seed=model.seed,
        ),
        agents=AgentSettings(
            count=agents.count,
            label_template=agents.label_template,
            max_concurrency=agents.max_concurrency,
        ),
        judgment=JudgmentSettings(
            timeout_s=judgment.timeout_s,
            max_tokens=judgment.max_tokens,
            temperature=judgment.temperature,
            affirmative_marker=judgment.affirmative_marker,
            prompt_template=judgment.prompt_template,
        ),
        retries=RetrySettings(max=retries.max, backoff_s=retries.backoff_s),
        reference=ReferenceSettings(
            enabled=reference.enabled,
            url=reference.url,
            timeout_s=reference.timeout_s,
            sentinel=reference.sentinel,
        ),
        path=resolved_path,
        raw=raw_dump,
    )


def resolve_auth_env(provider: ProviderSettings) -> str | None:
    """プロバイダが参照する API キーの環境変数名を返す。"""

    configured = (provider.auth_env or "").strip()
    if configured.upper() == "NONE":
        return None
    if configured:
        return configured
    return DEFAULT_AUTH_ENV.get(provider.provider)


def ensure_credentials(settings: ConsensusSettings) -> str | None:
    """起動時に API キーの存在を確認し、見つかった値を返す。"""

    env_name = resolve_auth_env(settings.provider)
    if env_name is None:
        return None
    value = (os.getenv(env_name) or "").strip()
    if not value:
        raise ConfigurationError(
            f"API キーが未設定です。環境変数 {env_name} を設定してから再実行してください。"
        )
    return value
