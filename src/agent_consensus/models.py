"""Immutable value objects shared by the pipeline components."""

from __future__ import annotations

from dataclasses import dataclass
import uuid


@dataclass(frozen=True, slots=True)
class Statement:
    """A user submission judged by every agent of one pipeline run."""

    id: str
    text: str

    @classmethod
    def create(cls, text: str) -> Statement:
        return cls(id=str(uuid.uuid4()), text=text)

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "text": self.text}


@dataclass(frozen=True, slots=True)
class Vote:
    """A single agent's verdict on a statement."""

    agent_index: int
    agent_label: str
    approved: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "agent_index": self.agent_index,
            "agent_label": self.agent_label,
            "approved": self.approved,
        }


__all__ = ["Statement", "Vote"]
