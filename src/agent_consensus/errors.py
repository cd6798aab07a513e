"""Normalized exception hierarchy for the consensus pipeline."""

from __future__ import annotations


class ConsensusError(Exception):
    """Base class for errors raised by agent_consensus."""


class PipelineError(ConsensusError):
    """Raised when a pipeline run is aborted and the ledger is left unchanged."""


class ExternalServiceError(PipelineError):
    """Raised when the judgment service reports a structured failure."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        agent_index: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.agent_index = agent_index

    def __str__(self) -> str:
        return self.message


class AuthError(ExternalServiceError):
    """Raised when the judgment service rejects the credentials."""


class RetryableError(ExternalServiceError):
    """Base class for failures where a later attempt may succeed."""


class TimeoutError(RetryableError):
    """Raised when a judgment call exceeds its timeout."""


class RateLimitError(RetryableError):
    """Raised when the judgment service signals rate limiting or quota exhaustion."""


class RetriableError(RetryableError):
    """Raised for transient transport or server-side issues."""


class MalformedResponseError(ConsensusError):
    """Raised when a successful judgment response cannot be decoded."""

    def __init__(self, message: str, *, raw: object | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class ReferenceServiceError(ConsensusError):
    """Raised when the optional reference-number lookup fails."""


class ConfigurationError(ConsensusError):
    """Raised when startup configuration is invalid or incomplete."""


__all__ = [
    "ConsensusError",
    "PipelineError",
    "ExternalServiceError",
    "AuthError",
    "RetryableError",
    "TimeoutError",
    "RateLimitError",
    "RetriableError",
    "MalformedResponseError",
    "ReferenceServiceError",
    "ConfigurationError",
]
