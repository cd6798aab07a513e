"""実際の API 呼び出しを伴わない簡易シミュレータ。"""
from __future__ import annotations

import hashlib
import time

from ..errors import MalformedResponseError, RateLimitError, TimeoutError
from ..provider_spi import ProviderRequest, ProviderResponse, TokenUsage
from .base import BaseProvider

__all__ = ["SimulatedProvider"]

_TIMEOUT_MARKER = "[timeout]"
_RATELIMIT_MARKER = "[ratelimit]"
_MALFORMED_MARKER = "[malformed]"


class SimulatedProvider(BaseProvider):
    """シード・モデル・プロンプトのハッシュで yes/no を決める判定器。

    ステートメントにマーカー（``[TIMEOUT]`` など）を含めると
    対応する障害を再現できる。
    """

    def invoke(self, request: ProviderRequest) -> ProviderResponse:
        prompt = request.prompt
        normalized = prompt.lower()
        if _TIMEOUT_MARKER in normalized:
            raise TimeoutError("simulated timeout", provider=self.name())
        if _RATELIMIT_MARKER in normalized:
            raise RateLimitError("simulated quota exceeded", provider=self.name())
        if _MALFORMED_MARKER in normalized:
            raise MalformedResponseError("simulated malformed response")

        # 擬似レイテンシ（文字数に比例）
        latency_ms = min(len(prompt) * 5, 1500)
        time.sleep(latency_ms / 1000.0 / 100.0)
        seed_material = f"{self.config.seed}:{request.model}:{prompt}".encode()
        digest = hashlib.sha256(seed_material).hexdigest()
        output = "No." if int(digest[:8], 16) % 3 == 0 else "Yes."
        token_usage = TokenUsage(
            prompt=max(1, len(prompt.split())),
            completion=1,
        )
        return ProviderResponse(
            text=output,
            latency_ms=latency_ms,
            token_usage=token_usage,
            model=request.model,
            finish_reason="stop",
            raw={"simulated": True, "digest": digest},
        )
