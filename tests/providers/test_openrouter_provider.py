from __future__ import annotations

from typing import Any

import pytest
import requests

from agent_consensus.config.models import ProviderSettings
from agent_consensus.errors import (
    AuthError,
    ConfigurationError,
    ExternalServiceError,
    MalformedResponseError,
    RateLimitError,
    RetriableError,
    TimeoutError as ConsensusTimeoutError,
)
from agent_consensus.provider_spi import ProviderRequest
from agent_consensus.providers.openrouter import error_for_status, OpenRouterProvider
from tests.helpers.fakes import FakeResponse, FakeSession


@pytest.fixture(autouse=True)
def _api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENROUTER_API_KEY", "or-key")


def _provider(*responses: Any, endpoint: str | None = None) -> tuple[OpenRouterProvider, FakeSession]:
    session = FakeSession(list(responses))
    config = ProviderSettings(
        provider="openrouter",
        model="meta-llama/llama-3-8b-instruct:free",
        endpoint=endpoint,
    )
    return OpenRouterProvider(config, session=session), session  # type: ignore[arg-type]


def _request() -> ProviderRequest:
    return ProviderRequest(
        model="meta-llama/llama-3-8b-instruct:free",
        prompt="Agent 2: Validate the following transaction: 'x'. Is it valid?",
        timeout_s=9,
    )


def _ok(content: str = "Yes.") -> FakeResponse:
    return FakeResponse(
        payload={
            "model": "meta-llama/llama-3-8b-instruct",
            "choices": [{"message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 17, "completion_tokens": 2},
        }
    )


def test_invoke_posts_chat_completion() -> None:
    response = _ok(" yes ")
    provider, session = _provider(response)

    result = provider.invoke(_request())

    assert result.text == "yes"
    assert result.finish_reason == "stop"
    assert result.token_usage.prompt == 17
    assert response.closed is True
    (call,) = session.calls
    assert call["url"] == "https://openrouter.ai/api/v1/chat/completions"
    assert call["timeout"] == 9
    assert call["json"]["messages"] == [{"role": "user", "content": _request().prompt}]
    assert call["json"]["max_tokens"] == 10
    assert session.headers["Authorization"] == "Bearer or-key"


def test_invoke_uses_custom_endpoint() -> None:
    provider, session = _provider(_ok(), endpoint="http://localhost:8000/v1/")

    provider.invoke(_request())

    assert session.calls[0]["url"] == "http://localhost:8000/v1/chat/completions"


def test_error_object_becomes_external_service_error() -> None:
    body = {"error": {"message": "model overloaded", "type": "server_error"}}
    provider, _ = _provider(FakeResponse(status_code=400, payload=body))

    with pytest.raises(ExternalServiceError, match="API error: model overloaded"):
        provider.invoke(_request())


def test_quota_error_maps_to_rate_limit() -> None:
    body = {"error": {"message": "quota", "type": "insufficient_quota", "code": "insufficient_quota"}}
    provider, _ = _provider(FakeResponse(status_code=200, payload=body))

    with pytest.raises(RateLimitError):
        provider.invoke(_request())


def test_missing_choices_is_malformed() -> None:
    provider, _ = _provider(FakeResponse(payload={"id": "x"}))

    with pytest.raises(MalformedResponseError):
        provider.invoke(_request())


def test_non_json_body_is_malformed() -> None:
    provider, _ = _provider(FakeResponse(text="<html>", json_error=True))

    with pytest.raises(MalformedResponseError, match="Unexpected response format"):
        provider.invoke(_request())


def test_non_json_error_status_maps_by_status() -> None:
    provider, _ = _provider(FakeResponse(status_code=502, text="bad gateway", json_error=True))

    with pytest.raises(RetriableError):
        provider.invoke(_request())


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (requests.Timeout("read timed out"), ConsensusTimeoutError),
        (requests.ConnectionError("refused"), RetriableError),
        (requests.RequestException("odd"), ExternalServiceError),
    ],
)
def test_transport_errors_are_normalized(exc: Exception, expected: type[Exception]) -> None:
    provider, _ = _provider(exc)

    with pytest.raises(expected):
        provider.invoke(_request())


@pytest.mark.parametrize(
    ("status", "code", "expected"),
    [
        (429, None, RateLimitError),
        (401, None, AuthError),
        (403, None, AuthError),
        (400, "invalid_api_key", AuthError),
        (408, None, ConsensusTimeoutError),
        (504, None, ConsensusTimeoutError),
        (500, None, RetriableError),
        (404, None, ExternalServiceError),
        (None, "rate_limit_exceeded", RateLimitError),
    ],
)
def test_error_for_status(status: int | None, code: str | None, expected: type[Exception]) -> None:
    error = error_for_status(status, "msg", provider="openrouter", error_code=code)

    assert type(error) is expected
    assert error.provider == "openrouter"


def test_missing_api_key_is_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENROUTER_API_KEY")

    with pytest.raises(ConfigurationError):
        _provider()
