"""Multi-agent consensus pipeline with an append-only in-memory ledger."""
from __future__ import annotations

from .collector import VoteCollector, default_agent_label
from .config import ConsensusSettings, load_settings
from .consensus import (
    aggregate,
    CONSENSUS_FAILED,
    CONSENSUS_REACHED,
    ConsensusDecision,
)
from .errors import (
    AuthError,
    ConfigurationError,
    ConsensusError,
    ExternalServiceError,
    MalformedResponseError,
    PipelineError,
    RateLimitError,
    ReferenceServiceError,
    RetriableError,
    RetryableError,
    TimeoutError,
)
from .ledger import Ledger, LedgerEntry
from .models import Statement, Vote
from .pipeline import build_pipeline, ConsensusPipeline
from .validator import AgentValidator

__version__ = "0.1.0"

__all__ = [
    "AgentValidator",
    "AuthError",
    "CONSENSUS_FAILED",
    "CONSENSUS_REACHED",
    "ConfigurationError",
    "ConsensusDecision",
    "ConsensusError",
    "ConsensusPipeline",
    "ConsensusSettings",
    "ExternalServiceError",
    "Ledger",
    "LedgerEntry",
    "MalformedResponseError",
    "PipelineError",
    "RateLimitError",
    "ReferenceServiceError",
    "RetriableError",
    "RetryableError",
    "Statement",
    "TimeoutError",
    "Vote",
    "VoteCollector",
    "aggregate",
    "build_pipeline",
    "default_agent_label",
    "load_settings",
    "__version__",
]
