"""Single-agent judgment: one prompt, one external call, one boolean vote."""
from __future__ import annotations

import logging

from .config.models import DEFAULT_MODEL, DEFAULT_PROMPT_TEMPLATE
from .errors import ConsensusError, ExternalServiceError, MalformedResponseError
from .models import Statement, Vote
from .provider_spi import ProviderRequest, ProviderSPI

__all__ = ["AgentValidator", "is_affirmative"]

LOGGER = logging.getLogger(__name__)


def is_affirmative(text: str | None, marker: str = "yes") -> bool:
    """Return ``True`` when the lower-cased answer contains ``marker``."""

    if not text:
        return False
    return marker.lower() in text.lower()


class AgentValidator:
    """Ask the judgment service whether a statement is valid for one agent.

    The validator performs exactly one call per :meth:`validate`. A response
    that cannot be decoded counts as a rejection; any other failure is raised
    as :class:`ExternalServiceError`.
    """

    def __init__(
        self,
        provider: ProviderSPI,
        *,
        model: str = DEFAULT_MODEL,
        timeout_s: float | None = 30.0,
        max_tokens: int | None = 10,
        temperature: float | None = 0.0,
        affirmative_marker: str = "yes",
        prompt_template: str = DEFAULT_PROMPT_TEMPLATE,
    ) -> None:
        marker = affirmative_marker.strip().lower()
        if not marker:
            raise ValueError("affirmative_marker must not be blank")
        self._provider = provider
        self._model = model
        self._timeout_s = timeout_s
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._marker = marker
        self._prompt_template = prompt_template

    @property
    def provider(self) -> ProviderSPI:
        return self._provider

    @property
    def timeout_s(self) -> float | None:
        return self._timeout_s

    def build_prompt(self, statement: Statement, agent_label: str) -> str:
        return self._prompt_template.format(agent_label=agent_label, statement=statement.text)

    def validate(self, statement: Statement, agent_index: int, agent_label: str) -> Vote:
        prompt = self.build_prompt(statement, agent_label)
        LOGGER.debug("%s validating transaction %s: %s", agent_label, statement.id, prompt)
        try:
            request = ProviderRequest(
                model=self._model,
                prompt=prompt,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                timeout_s=self._timeout_s,
                metadata={"statement_id": statement.id, "agent_index": agent_index},
            )
            response = self._provider.invoke(request)
        except MalformedResponseError as exc:
            LOGGER.warning(
                "%s returned an unparseable response; counting as rejection: %s",
                agent_label,
                exc,
            )
            return Vote(agent_index=agent_index, agent_label=agent_label, approved=False)
        except ExternalServiceError as exc:
            if exc.agent_index is None:
                exc.agent_index = agent_index
            if exc.provider is None:
                exc.provider = self._provider.name()
            raise
        except ConsensusError:
            raise
        except Exception as exc:
            raise ExternalServiceError(
                str(exc) or exc.__class__.__name__,
                provider=self._provider.name(),
                agent_index=agent_index,
            ) from exc

        approved = is_affirmative(response.text, self._marker)
        LOGGER.info("%s validation result: %s", agent_label, approved)
        return Vote(agent_index=agent_index, agent_label=agent_label, approved=approved)
