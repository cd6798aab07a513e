"""レジャーと判定結果の表示用フォーマッタ。

コア側はデータクラスのみを返し、色付けや整形はすべてここで行う。
"""
from __future__ import annotations

from collections.abc import Sequence
import json

import typer

from ..ledger import LedgerEntry
from ..models import Vote
from .utils import _msg

__all__ = [
    "format_decision",
    "format_entry",
    "format_ledger",
    "format_votes",
    "ledger_to_json",
]


def format_votes(votes: Sequence[Vote], lang: str) -> str:
    parts = []
    for vote in votes:
        verdict = _msg(lang, "vote_yes" if vote.approved else "vote_no")
        parts.append(f"{vote.agent_label}: {verdict}")
    return ", ".join(parts)


def format_decision(entry: LedgerEntry, *, color: bool = True) -> str:
    if not color:
        return entry.decision_note
    fg = typer.colors.GREEN if entry.consensus_reached else typer.colors.RED
    return typer.style(entry.decision_note, fg=fg, bold=True)


def format_entry(entry: LedgerEntry, height: int, lang: str) -> str:
    reference = "-" if entry.external_ref is None else str(entry.external_ref)
    lines = [
        _msg(lang, "entry_block", height=height, id=entry.id),
        "  " + _msg(lang, "entry_statement", text=entry.statement.text),
        "  " + _msg(lang, "entry_votes", votes=format_votes(entry.votes, lang)),
        "  " + _msg(lang, "entry_decision", note=entry.decision_note),
        "  " + _msg(lang, "entry_reference", ref=reference),
        "  " + _msg(lang, "entry_created", created=entry.created_at.isoformat()),
    ]
    return "\n".join(lines)


def format_ledger(entries: Sequence[LedgerEntry], lang: str) -> str:
    if not entries:
        return _msg(lang, "ledger_empty")
    blocks = [_msg(lang, "ledger_header", count=len(entries))]
    blocks.extend(format_entry(entry, height, lang) for height, entry in enumerate(entries, start=1))
    return "\n".join(blocks)


def ledger_to_json(entries: Sequence[LedgerEntry]) -> str:
    payload = [entry.to_dict() for entry in entries]
    return json.dumps(payload, ensure_ascii=False, indent=2)
