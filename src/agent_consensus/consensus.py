"""Strict-majority aggregation of agent votes."""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .models import Vote

__all__ = [
    "CONSENSUS_FAILED",
    "CONSENSUS_REACHED",
    "ConsensusDecision",
    "aggregate",
]

CONSENSUS_REACHED = "Consensus reached: Transaction is valid."
CONSENSUS_FAILED = "Consensus failed: Transaction is invalid."


@dataclass(frozen=True, slots=True)
class ConsensusDecision:
    reached: bool
    rationale: str
    approvals: int = 0
    total: int = 0


def aggregate(votes: Sequence[Vote]) -> ConsensusDecision:
    """Fold votes into a decision; ties and empty input do not reach consensus."""

    total = len(votes)
    approvals = sum(1 for vote in votes if vote.approved)
    reached = approvals * 2 > total
    return ConsensusDecision(
        reached=reached,
        rationale=CONSENSUS_REACHED if reached else CONSENSUS_FAILED,
        approvals=approvals,
        total=total,
    )
