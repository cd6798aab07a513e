"""Optional external reference number (e.g. current block height)."""
from __future__ import annotations

import logging
from typing import Protocol

import requests

from .config.models import DEFAULT_REFERENCE_URL
from .errors import ReferenceServiceError

__all__ = [
    "REFERENCE_SENTINEL",
    "BlockHeightReference",
    "ReferenceService",
    "resolve_reference",
]

LOGGER = logging.getLogger(__name__)

REFERENCE_SENTINEL = 0


class ReferenceService(Protocol):
    def current_reference(self) -> int: ...


class BlockHeightReference:
    """Fetch the chain tip height from an endpoint that answers with a bare integer."""

    def __init__(
        self,
        url: str = DEFAULT_REFERENCE_URL,
        *,
        timeout_s: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        self._url = url
        self._timeout_s = timeout_s
        self._session = session if session is not None else requests.Session()

    @property
    def url(self) -> str:
        return self._url

    def current_reference(self) -> int:
        try:
            response = self._session.get(self._url, timeout=self._timeout_s)
        except requests.exceptions.RequestException as exc:
            raise ReferenceServiceError(f"reference lookup failed: {exc}") from exc
        try:
            response.raise_for_status()
            body = response.text.strip()
        except requests.exceptions.RequestException as exc:
            raise ReferenceServiceError(f"reference lookup failed: {exc}") from exc
        finally:
            response.close()
        try:
            height = int(body)
        except ValueError as exc:
            raise ReferenceServiceError(f"reference body is not an integer: {body[:64]!r}") from exc
        if height < 0:
            raise ReferenceServiceError(f"reference number must be non-negative: {height}")
        return height


def resolve_reference(
    service: ReferenceService | None,
    *,
    sentinel: int = REFERENCE_SENTINEL,
) -> int | None:
    """Return the current reference, the sentinel on failure, or ``None`` when unset."""

    if service is None:
        return None
    try:
        return service.current_reference()
    except ReferenceServiceError as exc:
        LOGGER.warning("reference lookup failed; using sentinel %d: %s", sentinel, exc)
        return sentinel
    except Exception as exc:  # noqa: BLE001 - reference lookup is never fatal
        LOGGER.warning(
            "reference service %r raised %s; using sentinel %d: %s",
            service,
            exc.__class__.__name__,
            sentinel,
            exc,
        )
        return sentinel
