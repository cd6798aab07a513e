"""OpenAI 互換の /chat/completions エンドポイント向けプロバイダ（OpenRouter 既定）。"""
from __future__ import annotations

from collections.abc import Mapping
import logging
import time
from typing import Any

import requests

from ..config.models import ProviderSettings
from ..errors import (
    AuthError,
    ExternalServiceError,
    MalformedResponseError,
    RateLimitError,
    RetriableError,
    TimeoutError,
)
from ..provider_spi import ProviderRequest, ProviderResponse, TokenUsage
from .base import BaseProvider
from .openai import resolve_api_key

__all__ = ["DEFAULT_BASE_URL", "OpenRouterProvider", "coerce_text", "error_for_status"]

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"

_QUOTA_CODES = {"insufficient_quota", "rate_limit_exceeded"}
_AUTH_CODES = {"invalid_api_key", "invalid_authentication"}


def error_for_status(
    status: int | None,
    message: str,
    *,
    provider: str,
    error_code: str | None = None,
) -> ExternalServiceError:
    if status == 429 or error_code in _QUOTA_CODES:
        return RateLimitError(message, provider=provider)
    if status in {401, 403} or error_code in _AUTH_CODES:
        return AuthError(message, provider=provider)
    if status in {408, 504}:
        return TimeoutError(message, provider=provider)
    if status is not None and status >= 500:
        return RetriableError(message, provider=provider)
    return ExternalServiceError(message, provider=provider)


def _normalize_transport_error(exc: Exception, provider: str) -> ExternalServiceError:
    if isinstance(exc, requests.exceptions.Timeout):
        return TimeoutError(str(exc) or "request timed out", provider=provider)
    if isinstance(exc, requests.exceptions.ConnectionError):
        return RetriableError(str(exc) or "connection failed", provider=provider)
    return ExternalServiceError(str(exc) or exc.__class__.__name__, provider=provider)


def coerce_text(data: Any) -> str:
    choices = data.get("choices") if isinstance(data, Mapping) else None
    if not isinstance(choices, list) or not choices:
        raise MalformedResponseError("No valid choice found", raw=data)
    first = choices[0]
    message = first.get("message") if isinstance(first, Mapping) else None
    content = message.get("content") if isinstance(message, Mapping) else None
    if not isinstance(content, str):
        raise MalformedResponseError("choice has no text content", raw=data)
    return content.strip()


def _coerce_usage(data: Mapping[str, Any]) -> TokenUsage:
    usage = data.get("usage")
    if not isinstance(usage, Mapping):
        return TokenUsage()
    try:
        return TokenUsage(
            prompt=int(usage.get("prompt_tokens") or 0),
            completion=int(usage.get("completion_tokens") or 0),
        )
    except (TypeError, ValueError):
        return TokenUsage()


class OpenRouterProvider(BaseProvider):
    """Provider that posts chat completions over ``requests``."""

    def __init__(
        self,
        config: ProviderSettings,
        *,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(config)
        api_key = resolve_api_key(config)
        self._base_url = (config.endpoint or DEFAULT_BASE_URL).rstrip("/")
        self._session = session if session is not None else requests.Session()
        self._session.headers.update(
            {
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            }
        )

    def _build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": request.model,
            "messages": request.chat_messages,
        }
        if request.max_tokens is not None:
            payload["max_tokens"] = int(request.max_tokens)
        if request.temperature is not None:
            payload["temperature"] = float(request.temperature)
        return payload

    def _decode(self, response: Any) -> Mapping[str, Any]:
        status = getattr(response, "status_code", None)
        try:
            data = response.json()
        except ValueError:
            body = getattr(response, "text", "")
            LOGGER.debug("Raw API response: %s", body)
            if status is not None and status >= 400:
                raise error_for_status(status, f"HTTP {status}", provider=self.name()) from None
            raise MalformedResponseError("Unexpected response format", raw=body) from None
        LOGGER.debug("Raw API response: %s", data)

        if isinstance(data, Mapping) and data.get("error") is not None:
            error = data["error"]
            error_code: str | None = None
            if isinstance(error, Mapping):
                message = str(error.get("message") or "unknown error")
                code = error.get("code") or error.get("type")
                error_code = str(code) if code is not None else None
            else:
                message = str(error)
            raise error_for_status(
                status,
                f"API error: {message}",
                provider=self.name(),
                error_code=error_code,
            )
        if status is not None and status >= 400:
            raise error_for_status(status, f"HTTP {status}", provider=self.name())
        if not isinstance(data, Mapping):
            raise MalformedResponseError("Unexpected response format", raw=data)
        return data

    def invoke(self, request: ProviderRequest) -> ProviderResponse:
        url = f"{self._base_url}/chat/completions"
        ts0 = time.time()
        try:
            response = self._session.post(
                url,
                json=self._build_payload(request),
                timeout=request.timeout_s,
            )
        except requests.exceptions.RequestException as exc:
            raise _normalize_transport_error(exc, self.name()) from exc

        try:
            data = self._decode(response)
        finally:
            response.close()
        latency_ms = int((time.time() - ts0) * 1000)

        text = coerce_text(data)
        model_name = data.get("model")
        finish_reason = None
        choices = data.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], Mapping):
            candidate = choices[0].get("finish_reason")
            finish_reason = candidate if isinstance(candidate, str) else None
        return ProviderResponse(
            text=text,
            latency_ms=latency_ms,
            token_usage=_coerce_usage(data),
            model=model_name if isinstance(model_name, str) else request.model,
            finish_reason=finish_reason,
            raw=dict(data),
        )
