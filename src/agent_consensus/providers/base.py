"""共通プロバイダ基底クラス。"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..config.models import ProviderSettings
from ..provider_spi import ProviderRequest, ProviderResponse, ProviderSPI

__all__ = ["BaseProvider"]


class BaseProvider(ProviderSPI, ABC):
    """ProviderSPI 実装向けの共通ユーティリティ。"""

    def __init__(self, config: ProviderSettings) -> None:
        name_text = config.provider.strip()
        if not name_text:
            raise ValueError("provider name must be a non-empty string")
        self.config = config

    def name(self) -> str:
        return self.config.provider

    @property
    def model(self) -> str:
        return self.config.model

    @abstractmethod
    def invoke(self, request: ProviderRequest) -> ProviderResponse:  # pragma: no cover - インタフェース
        raise NotImplementedError
