"""In-memory append-only ledger of completed pipeline runs."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from threading import Lock
import uuid

from .consensus import CONSENSUS_REACHED
from .models import Statement, Vote

__all__ = ["Ledger", "LedgerEntry"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """Immutable record of one statement, its votes and the outcome."""

    id: str
    statement: Statement
    votes: tuple[Vote, ...]
    decision_note: str
    external_ref: int | None
    created_at: datetime
    consensus_reached: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "statement": self.statement.to_dict(),
            "votes": [vote.to_dict() for vote in self.votes],
            "decision_note": self.decision_note,
            "external_ref": self.external_ref,
            "created_at": self.created_at.isoformat(),
            "consensus_reached": self.consensus_reached,
        }


class Ledger:
    """Ordered sequence of entries that only ever grows.

    ``append`` is the single mutating operation; it holds the lock only for
    the in-memory insert. ``snapshot`` hands out a tuple so callers never see
    the live list.
    """

    def __init__(self) -> None:
        self._entries: list[LedgerEntry] = []
        self._lock = Lock()

    def append(
        self,
        statement: Statement,
        votes: Iterable[Vote],
        decision_note: str,
        external_ref: int | None = None,
        *,
        consensus_reached: bool | None = None,
    ) -> LedgerEntry:
        """Store one finished run; the outcome flag defaults to the standard note."""

        if consensus_reached is None:
            consensus_reached = decision_note == CONSENSUS_REACHED
        entry = LedgerEntry(
            id=str(uuid.uuid4()),
            statement=statement,
            votes=tuple(votes),
            decision_note=decision_note,
            external_ref=external_ref,
            created_at=datetime.now(timezone.utc),
            consensus_reached=consensus_reached,
        )
        with self._lock:
            self._entries.append(entry)
            position = len(self._entries)
        LOGGER.info("block %s added to ledger at height %d", entry.id, position)
        return entry

    def snapshot(self) -> tuple[LedgerEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[LedgerEntry]:
        return iter(self.snapshot())
