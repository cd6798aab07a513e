"""設定関連の公開 API ファサード。"""

from __future__ import annotations

from .loader import DEFAULT_AUTH_ENV, ensure_credentials, load_settings, resolve_auth_env
from .models import (
    AgentSettings,
    ConsensusSettings,
    JudgmentSettings,
    ProviderSettings,
    ReferenceSettings,
    RetrySettings,
)
from .schema import (
    AgentsConfigModel,
    ConsensusSettingsModel,
    JudgmentConfigModel,
    ReferenceConfigModel,
    RetryConfigModel,
)

__all__ = [
    "DEFAULT_AUTH_ENV",
    "AgentSettings",
    "ConsensusSettings",
    "JudgmentSettings",
    "ProviderSettings",
    "ReferenceSettings",
    "RetrySettings",
    "AgentsConfigModel",
    "ConsensusSettingsModel",
    "JudgmentConfigModel",
    "ReferenceConfigModel",
    "RetryConfigModel",
    "ensure_credentials",
    "load_settings",
    "resolve_auth_env",
]
