from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import openai
import pytest

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
from agent_consensus.providers.openai import (
    extract_text_from_completion,
    normalize_openai_exception,
    OpenAIProvider,
    resolve_api_key,
)


def _sdk_error(cls: type[Exception], message: str, **attrs: Any) -> Exception:
    exc = cls.__new__(cls)
    Exception.__init__(exc, message)
    exc.message = message  # type: ignore[attr-defined]
    for key, value in attrs.items():
        setattr(exc, key, value)
    return exc


def _completion(content: Any, *, finish_reason: str = "stop") -> SimpleNamespace:
    message = SimpleNamespace(content=content)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message, finish_reason=finish_reason)],
        usage=SimpleNamespace(prompt_tokens=21, completion_tokens=1),
        model="gpt-3.5-turbo-0125",
    )


class _Completions:
    def __init__(self, result: Any) -> None:
        self._result = result
        self.calls: list[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if isinstance(self._result, BaseException):
            raise self._result
        return self._result


def _client(result: Any) -> tuple[SimpleNamespace, _Completions]:
    completions = _Completions(result)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def _config() -> ProviderSettings:
    return ProviderSettings(provider="openai", model="gpt-3.5-turbo")


def _request() -> ProviderRequest:
    return ProviderRequest(
        model="gpt-3.5-turbo",
        prompt="Agent 1: Validate the following transaction: 'x'. Is it valid?",
        max_tokens=10,
        temperature=0.0,
        timeout_s=12,
    )


def test_invoke_sends_chat_completion_request() -> None:
    client, completions = _client(_completion(" Yes. "))
    provider = OpenAIProvider(_config(), client=client)

    response = provider.invoke(_request())

    assert response.text == "Yes."
    assert response.model == "gpt-3.5-turbo-0125"
    assert response.finish_reason == "stop"
    assert response.token_usage.total == 22
    (call,) = completions.calls
    assert call["model"] == "gpt-3.5-turbo"
    assert call["messages"] == [{"role": "user", "content": _request().prompt}]
    assert call["max_tokens"] == 10
    assert call["temperature"] == 0.0
    assert call["timeout"] == 12.0


@pytest.mark.parametrize(
    "completion",
    [
        SimpleNamespace(choices=[]),
        SimpleNamespace(choices=None),
        _completion(None),
    ],
)
def test_extract_text_rejects_malformed_completion(completion: Any) -> None:
    with pytest.raises(MalformedResponseError):
        extract_text_from_completion(completion)


def test_invoke_maps_sdk_rate_limit() -> None:
    error = _sdk_error(openai.RateLimitError, "You exceeded your current quota", status_code=429)
    client, _ = _client(error)
    provider = OpenAIProvider(_config(), client=client)

    with pytest.raises(RateLimitError, match="You exceeded your current quota") as excinfo:
        provider.invoke(_request())

    assert excinfo.value.provider == "openai"
    assert str(excinfo.value).startswith("OpenAI API error: ")


@pytest.mark.parametrize(
    ("cls", "attrs", "expected"),
    [
        (openai.APITimeoutError, {}, ConsensusTimeoutError),
        (openai.AuthenticationError, {"status_code": 401}, AuthError),
        (openai.PermissionDeniedError, {"status_code": 403}, AuthError),
        (openai.InternalServerError, {"status_code": 500}, RetriableError),
        (openai.APIStatusError, {"status_code": 504}, ConsensusTimeoutError),
        (openai.BadRequestError, {"status_code": 400}, ExternalServiceError),
        (openai.APIConnectionError, {}, RetriableError),
        (openai.APIResponseValidationError, {"status_code": 200}, MalformedResponseError),
    ],
)
def test_normalize_openai_exception(
    cls: type[Exception], attrs: dict[str, Any], expected: type[Exception]
) -> None:
    normalized = normalize_openai_exception(_sdk_error(cls, "boom", **attrs))

    assert type(normalized) is expected


def test_resolve_api_key_reads_default_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    assert resolve_api_key(_config()) == "sk-test"


def test_resolve_api_key_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        resolve_api_key(_config())


def test_provider_without_client_builds_sdk_client(monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[dict[str, Any]] = []

    class _FakeOpenAI:
        def __init__(self, **kwargs: Any) -> None:
            created.append(kwargs)

    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(openai, "OpenAI", _FakeOpenAI)
    config = ProviderSettings(provider="openai", model="m", endpoint="https://proxy.test/v1")

    OpenAIProvider(config)

    assert created == [{"api_key": "sk-test", "max_retries": 0, "base_url": "https://proxy.test/v1"}]
