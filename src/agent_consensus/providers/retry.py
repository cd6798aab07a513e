"""Retry decorator layered around a judgment provider."""
from __future__ import annotations

from collections.abc import Callable
import logging
import time

from ..errors import RetryableError
from ..provider_spi import ProviderRequest, ProviderResponse, ProviderSPI

__all__ = ["RetryingProvider"]

LOGGER = logging.getLogger(__name__)


class RetryingProvider:
    """Re-invoke ``provider`` on :class:`RetryableError` up to ``max_retries`` times.

    Non-retryable failures and malformed responses propagate on the first
    attempt. The wait grows linearly with ``backoff_s``.
    """

    def __init__(
        self,
        provider: ProviderSPI,
        *,
        max_retries: int,
        backoff_s: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._provider = provider
        self._max_retries = max_retries
        self._backoff_s = max(0.0, backoff_s)
        self._sleep = sleep

    @property
    def inner(self) -> ProviderSPI:
        return self._provider

    def name(self) -> str:
        return self._provider.name()

    def invoke(self, request: ProviderRequest) -> ProviderResponse:
        attempt = 0
        while True:
            try:
                return self._provider.invoke(request)
            except RetryableError as exc:
                if attempt >= self._max_retries:
                    raise
                attempt += 1
                delay = self._backoff_s * attempt
                LOGGER.warning(
                    "retrying %s after %s (attempt %d/%d, sleep %.2fs)",
                    self.name(),
                    exc.__class__.__name__,
                    attempt,
                    self._max_retries,
                    delay,
                )
                if delay > 0:
                    self._sleep(delay)
