"""Concurrent fan-out of one statement to every voting agent."""
from __future__ import annotations

from collections.abc import Callable
from functools import partial
import logging

from .errors import ExternalServiceError
from .models import Statement, Vote
from .parallel_exec import run_parallel_all_sync, waves_for
from .validator import AgentValidator

__all__ = ["JOIN_GRACE_S", "LabelFor", "VoteCollector", "default_agent_label"]

LOGGER = logging.getLogger(__name__)

LabelFor = Callable[[int], str]

# headroom on top of the per-call timeout before the join gives up
JOIN_GRACE_S = 1.0


def default_agent_label(index: int) -> str:
    return f"Agent {index + 1}"


class VoteCollector:
    """Collect one vote per agent, all or nothing."""

    def __init__(
        self,
        validator: AgentValidator,
        *,
        max_concurrency: int | None = None,
        join_timeout_s: float | None = None,
    ) -> None:
        self._validator = validator
        self._max_concurrency = max_concurrency
        self._join_timeout_s = join_timeout_s

    def _join_deadline(self, agent_count: int) -> float | None:
        if self._join_timeout_s is not None:
            return self._join_timeout_s
        per_call = self._validator.timeout_s
        if per_call is None:
            return None
        return per_call * waves_for(agent_count, self._max_concurrency) + JOIN_GRACE_S

    def collect_votes(
        self,
        statement: Statement,
        agent_count: int,
        label_for: LabelFor = default_agent_label,
    ) -> list[Vote]:
        if isinstance(agent_count, bool) or not isinstance(agent_count, int):
            raise TypeError("agent_count must be an int")
        if agent_count < 1:
            raise ValueError("agent_count must be >= 1")

        workers = [
            partial(self._validator.validate, statement, index, label_for(index))
            for index in range(agent_count)
        ]
        try:
            votes = run_parallel_all_sync(
                workers,
                max_concurrency=self._max_concurrency,
                timeout=self._join_deadline(agent_count),
            )
        except ExternalServiceError as exc:
            LOGGER.error(
                "vote collection for %s aborted (agent=%s): %s",
                statement.id,
                exc.agent_index,
                exc,
            )
            raise
        return sorted(votes, key=lambda vote: vote.agent_index)
