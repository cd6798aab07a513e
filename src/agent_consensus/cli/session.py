"""Interactive loop feeding one statement at a time into the pipeline."""
from __future__ import annotations

from collections.abc import Callable

import typer

from ..errors import ExternalServiceError, PipelineError
from ..ledger import LedgerEntry
from ..pipeline import ConsensusPipeline
from . import render
from .utils import _msg, _sanitize_message, DEFAULT_LANG

__all__ = ["EXIT_WORDS", "SessionLoop"]

EXIT_WORDS = frozenset({"exit", "quit"})


class SessionLoop:
    """Read statements until ``exit``/``quit`` or EOF.

    A failed run is reported and the loop moves on to the next line; the
    ledger is printed in full after every successful run.
    """

    def __init__(
        self,
        pipeline: ConsensusPipeline,
        *,
        read_line: Callable[[str], str] = input,
        echo: Callable[[str], None] = typer.echo,
        lang: str = DEFAULT_LANG,
        color: bool = True,
    ) -> None:
        self._pipeline = pipeline
        self._read_line = read_line
        self._echo = echo
        self._lang = lang
        self._color = color
        self.processed = 0
        self.failed = 0

    def run(self) -> None:
        prompt = _msg(self._lang, "prompt") + " "
        while True:
            try:
                line = self._read_line(prompt)
            except EOFError:
                break
            text = line.strip()
            if not text:
                continue
            if text.lower() in EXIT_WORDS:
                break
            self.handle(text)
        self._echo(_msg(self._lang, "goodbye", count=len(self._pipeline.ledger)))

    def handle(self, text: str) -> LedgerEntry | None:
        try:
            entry = self._pipeline.run_pipeline(text)
        except PipelineError as exc:
            self.failed += 1
            key = "provider_error" if isinstance(exc, ExternalServiceError) else "pipeline_error"
            message = _sanitize_message(_msg(self._lang, key, error=exc))
            self._echo(self._style_error(message))
            return None
        self.processed += 1
        self._echo(render.format_decision(entry, color=self._color))
        self._echo(render.format_ledger(self._pipeline.ledger_snapshot(), self._lang))
        return entry

    def _style_error(self, message: str) -> str:
        if not self._color:
            return message
        return typer.style(message, fg=typer.colors.RED)
