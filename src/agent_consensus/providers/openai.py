"""OpenAI プロバイダ実装。"""
from __future__ import annotations

import logging
import os
import time
from typing import Any

import openai

from ..config.loader import resolve_auth_env
from ..config.models import ProviderSettings
from ..errors import (
    AuthError,
    ConfigurationError,
    ExternalServiceError,
    MalformedResponseError,
    RateLimitError,
    RetriableError,
    TimeoutError,
)
from ..provider_spi import ProviderRequest, ProviderResponse, TokenUsage
from .base import BaseProvider

__all__ = [
    "OpenAIProvider",
    "extract_text_from_completion",
    "normalize_openai_exception",
    "resolve_api_key",
]

LOGGER = logging.getLogger(__name__)


def resolve_api_key(config: ProviderSettings) -> str:
    env_name = resolve_auth_env(config)
    if not env_name:
        raise ConfigurationError(
            f"{config.provider} プロバイダを利用するには auth_env に API キーの環境変数を指定してください"
        )
    value = (os.getenv(env_name) or "").strip()
    if not value:
        raise ConfigurationError(
            f"Environment variable {env_name!r} is not set. API キーを設定してください。"
        )
    return value


def _error_message(exc: Exception) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message.strip():
        return message.strip()
    return str(exc) or exc.__class__.__name__


def normalize_openai_exception(exc: Exception, *, provider: str = "openai") -> Exception:
    """SDK 例外を正規化された例外階層へ変換する。"""

    message = f"OpenAI API error: {_error_message(exc)}"
    if isinstance(exc, openai.APIResponseValidationError):
        return MalformedResponseError(message)
    if isinstance(exc, openai.APITimeoutError):
        return TimeoutError("OpenAI API 呼び出しがタイムアウトしました", provider=provider)
    if isinstance(exc, openai.RateLimitError):
        return RateLimitError(message, provider=provider)
    if isinstance(exc, openai.AuthenticationError | openai.PermissionDeniedError):
        return AuthError(message, provider=provider)
    if isinstance(exc, openai.APIStatusError):
        status = getattr(exc, "status_code", None)
        if status in {408, 504}:
            return TimeoutError(message, provider=provider)
        if isinstance(status, int) and status >= 500:
            return RetriableError(message, provider=provider)
        return ExternalServiceError(message, provider=provider)
    if isinstance(exc, openai.APIConnectionError):
        return RetriableError(message, provider=provider)
    return ExternalServiceError(message, provider=provider)


def extract_text_from_completion(completion: Any) -> str:
    choices = getattr(completion, "choices", None)
    if not choices:
        raise MalformedResponseError("No valid choice found", raw=completion)
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if not isinstance(content, str):
        raise MalformedResponseError("choice has no text content", raw=completion)
    return content.strip()


def _extract_usage(completion: Any) -> TokenUsage:
    usage = getattr(completion, "usage", None)
    prompt_tokens = getattr(usage, "prompt_tokens", 0)
    completion_tokens = getattr(usage, "completion_tokens", 0)
    return TokenUsage(
        prompt=int(prompt_tokens or 0),
        completion=int(completion_tokens or 0),
    )


class OpenAIProvider(BaseProvider):
    """OpenAI Chat Completions API を利用したプロバイダ実装。"""

    def __init__(self, config: ProviderSettings, *, client: Any | None = None) -> None:
        super().__init__(config)
        if client is None:
            kwargs: dict[str, Any] = {"api_key": resolve_api_key(config), "max_retries": 0}
            if config.endpoint:
                kwargs["base_url"] = config.endpoint
            client = openai.OpenAI(**kwargs)
        self._client = client

    def invoke(self, request: ProviderRequest) -> ProviderResponse:
        kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": request.chat_messages,
        }
        if request.max_tokens is not None:
            kwargs["max_tokens"] = int(request.max_tokens)
        if request.temperature is not None:
            kwargs["temperature"] = float(request.temperature)
        if request.timeout_s is not None:
            kwargs["timeout"] = float(request.timeout_s)

        ts0 = time.time()
        try:
            completion = self._client.chat.completions.create(**kwargs)
        except openai.APIError as exc:
            raise normalize_openai_exception(exc, provider=self.name()) from exc
        latency_ms = int((time.time() - ts0) * 1000)
        LOGGER.debug("Raw API response: %s", completion)

        text = extract_text_from_completion(completion)
        choices = getattr(completion, "choices", None) or []
        finish_reason = getattr(choices[0], "finish_reason", None) if choices else None
        model_name = getattr(completion, "model", None)
        return ProviderResponse(
            text=text,
            latency_ms=latency_ms,
            token_usage=_extract_usage(completion),
            model=model_name if isinstance(model_name, str) else request.model,
            finish_reason=finish_reason if isinstance(finish_reason, str) else None,
        )
