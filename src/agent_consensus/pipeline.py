"""Collect votes, aggregate them and append the outcome to the ledger."""
from __future__ import annotations

import logging
import time

from .collector import JOIN_GRACE_S, LabelFor, VoteCollector, default_agent_label
from .config.loader import ensure_credentials
from .config.models import ConsensusSettings
from .consensus import aggregate
from .errors import PipelineError
from .ledger import Ledger, LedgerEntry
from .models import Statement
from .observability import CompositeLogger, EventLogger
from .parallel_exec import waves_for
from .provider_spi import ProviderSPI
from .providers.factory import create_provider_from_settings
from .reference import (
    BlockHeightReference,
    REFERENCE_SENTINEL,
    ReferenceService,
    resolve_reference,
)
from .validator import AgentValidator

__all__ = ["ConsensusPipeline", "build_pipeline"]

LOGGER = logging.getLogger(__name__)


class ConsensusPipeline:
    """One statement in, one ledger entry out.

    A run either appends exactly one entry or raises :class:`PipelineError`
    and leaves the ledger untouched. The entry is appended whatever the
    decision; the ledger records outcomes and does not gate on them.
    """

    def __init__(
        self,
        collector: VoteCollector,
        ledger: Ledger,
        *,
        agent_count: int,
        label_for: LabelFor = default_agent_label,
        reference: ReferenceService | None = None,
        reference_sentinel: int = REFERENCE_SENTINEL,
        event_logger: EventLogger | None = None,
    ) -> None:
        if isinstance(agent_count, bool) or not isinstance(agent_count, int):
            raise TypeError("agent_count must be an int")
        if agent_count < 1:
            raise ValueError("agent_count must be >= 1")
        self._collector = collector
        self._ledger = ledger
        self._agent_count = agent_count
        self._label_for = label_for
        self._reference = reference
        self._reference_sentinel = reference_sentinel
        self._events = CompositeLogger([event_logger] if event_logger is not None else ())

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def agent_count(self) -> int:
        return self._agent_count

    def run_pipeline(self, statement_text: str) -> LedgerEntry:
        text = (statement_text or "").strip()
        if not text:
            raise PipelineError("statement text must not be blank")

        statement = Statement.create(text)
        LOGGER.info("User submitted transaction %s: %r", statement.id, statement.text)
        ts0 = time.perf_counter()
        try:
            votes = self._collector.collect_votes(statement, self._agent_count, self._label_for)
        except PipelineError as exc:
            self._events.emit(
                "pipeline_failed",
                {
                    "status": "error",
                    "statement_id": statement.id,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                    "agent_index": getattr(exc, "agent_index", None),
                    "latency_ms": int((time.perf_counter() - ts0) * 1000),
                },
            )
            raise

        for vote in votes:
            self._events.emit(
                "vote_cast",
                {
                    "statement_id": statement.id,
                    "agent_index": vote.agent_index,
                    "agent_label": vote.agent_label,
                    "approved": vote.approved,
                },
            )

        decision = aggregate(votes)
        LOGGER.info(
            "consensus for %s: %s (%d/%d approved)",
            statement.id,
            decision.reached,
            decision.approvals,
            decision.total,
        )
        external_ref = resolve_reference(self._reference, sentinel=self._reference_sentinel)
        entry = self._ledger.append(
            statement,
            votes,
            decision.rationale,
            external_ref,
            consensus_reached=decision.reached,
        )
        self._events.emit(
            "pipeline_completed",
            {
                "status": "ok",
                "statement_id": statement.id,
                "entry_id": entry.id,
                "consensus_reached": decision.reached,
                "approvals": decision.approvals,
                "total": decision.total,
                "external_ref": external_ref,
                "latency_ms": int((time.perf_counter() - ts0) * 1000),
            },
        )
        return entry

    def ledger_snapshot(self) -> tuple[LedgerEntry, ...]:
        return self._ledger.snapshot()


def _join_timeout(settings: ConsensusSettings) -> float | None:
    if settings.retries.max <= 0:
        return None
    attempts = settings.retries.max + 1
    backoff_total = settings.retries.backoff_s * sum(range(1, settings.retries.max + 1))
    waves = waves_for(settings.agents.count, settings.agents.max_concurrency)
    return (settings.judgment.timeout_s * attempts + backoff_total) * waves + JOIN_GRACE_S


def build_pipeline(
    settings: ConsensusSettings,
    *,
    ledger: Ledger | None = None,
    provider: ProviderSPI | None = None,
    reference: ReferenceService | None = None,
    event_logger: EventLogger | None = None,
) -> ConsensusPipeline:
    """Validate startup configuration and wire the pipeline components.

    Raises :class:`~agent_consensus.errors.ConfigurationError` before any
    statement is processed when credentials are missing.
    """

    if provider is None:
        ensure_credentials(settings)
        provider = create_provider_from_settings(settings)
    judgment = settings.judgment
    validator = AgentValidator(
        provider,
        model=settings.provider.model,
        timeout_s=judgment.timeout_s,
        max_tokens=judgment.max_tokens,
        temperature=judgment.temperature,
        affirmative_marker=judgment.affirmative_marker,
        prompt_template=judgment.prompt_template,
    )
    collector = VoteCollector(
        validator,
        max_concurrency=settings.agents.max_concurrency or None,
        join_timeout_s=_join_timeout(settings),
    )
    if reference is None and settings.reference.enabled:
        reference = BlockHeightReference(
            settings.reference.url,
            timeout_s=settings.reference.timeout_s,
        )
    return ConsensusPipeline(
        collector,
        ledger if ledger is not None else Ledger(),
        agent_count=settings.agents.count,
        label_for=settings.agents.label_for,
        reference=reference,
        reference_sentinel=settings.reference.sentinel,
        event_logger=event_logger,
    )
