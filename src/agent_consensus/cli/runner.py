from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
import typer

from ..config import load_settings
from ..config.models import ConsensusSettings
from ..errors import ConfigurationError, ExternalServiceError, PipelineError
from ..ledger import LedgerEntry
from ..observability import CompositeLogger, JsonlLogger
from ..pipeline import build_pipeline, ConsensusPipeline
from ..providers import available_providers, parse_provider_spec
from . import render
from .session import SessionLoop
from .utils import (
    _configure_logging,
    _msg,
    _resolve_lang,
    _sanitize_message,
    EXIT_ENV_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_OK,
    EXIT_PROVIDER_ERROR,
    LOGGER,
)


@dataclass(slots=True)
class CliOptions:
    config: Path | None = None
    env: Path | None = None
    provider: str | None = None
    agents: int | None = None
    timeout: float | None = None
    events: Path | None = None
    reference: bool | None = None
    lang: str | None = None
    log_json: bool = False
    verbose: bool = False


class _InputError(Exception):
    """CLI 引数の不備 (終了コード 2)。"""


def load_env_from_option(env: Path | None, lang: str) -> None:
    if env is None:
        return
    path = Path(env).expanduser().resolve()
    if not path.exists():
        raise ConfigurationError(_msg(lang, "env_missing", path=path))
    load_dotenv(path, override=False)
    LOGGER.info(_sanitize_message(_msg(lang, "env_loaded", path=path)))


def settings_from_options(options: CliOptions, lang: str) -> ConsensusSettings:
    overrides: dict[str, object] = {}
    if options.provider:
        try:
            prefix, model = parse_provider_spec(options.provider)
        except ValueError as exc:
            raise _InputError(_msg(lang, "invalid_provider_spec", spec=options.provider)) from exc
        overrides["provider"] = prefix
        overrides["model"] = model
    overrides["agents.count"] = options.agents
    overrides["judgment.timeout_s"] = options.timeout
    overrides["reference.enabled"] = options.reference
    settings = load_settings(options.config, overrides=overrides)
    supported = available_providers()
    if settings.provider.provider not in supported:
        raise _InputError(
            _msg(
                lang,
                "unsupported_provider",
                provider=settings.provider.provider,
                supported=", ".join(supported),
            )
        )
    return settings


def _prepare(options: CliOptions, lang: str) -> tuple[ConsensusPipeline, ConsensusSettings]:
    settings = settings_from_options(options, lang)
    events = CompositeLogger()
    if options.events is not None:
        events.add(JsonlLogger(options.events))
    return build_pipeline(settings, event_logger=events), settings


def _with_pipeline(
    options: CliOptions,
    action: Callable[[ConsensusPipeline, ConsensusSettings, str], int],
) -> int:
    lang = _resolve_lang(options.lang)
    _configure_logging(options.log_json, options.verbose)
    try:
        load_env_from_option(options.env, lang)
        # .env may set AGENT_CONSENSUS_LANG
        lang = _resolve_lang(options.lang)
        pipeline, settings = _prepare(options, lang)
    except _InputError as exc:
        LOGGER.error(_sanitize_message(str(exc)))
        return EXIT_INPUT_ERROR
    except ConfigurationError as exc:
        LOGGER.error(_sanitize_message(_msg(lang, "config_error", error=exc)))
        return EXIT_ENV_ERROR
    return action(pipeline, settings, lang)


def run_session(
    options: CliOptions,
    *,
    read_line: Callable[[str], str] = input,
) -> int:
    def action(pipeline: ConsensusPipeline, settings: ConsensusSettings, lang: str) -> int:
        typer.echo(
            _msg(
                lang,
                "banner",
                agents=settings.agents.count,
                provider=f"{settings.provider.provider}:{settings.provider.model}",
            )
        )
        loop = SessionLoop(pipeline, read_line=read_line, lang=lang)
        try:
            loop.run()
        except KeyboardInterrupt:
            typer.echo("")
            LOGGER.warning(_msg(lang, "interrupt"))
        return EXIT_OK

    return _with_pipeline(options, action)


def run_submit(options: CliOptions, texts: Sequence[str], *, as_json: bool = False) -> int:
    def action(pipeline: ConsensusPipeline, settings: ConsensusSettings, lang: str) -> int:
        entries: list[LedgerEntry] = []
        exit_code = EXIT_OK
        for text in texts:
            try:
                entries.append(pipeline.run_pipeline(text))
            except ExternalServiceError as exc:
                LOGGER.error(_sanitize_message(_msg(lang, "provider_error", error=exc)))
                exit_code = EXIT_PROVIDER_ERROR
            except PipelineError as exc:
                LOGGER.error(_sanitize_message(_msg(lang, "pipeline_error", error=exc)))
                if exit_code == EXIT_OK:
                    exit_code = EXIT_INPUT_ERROR
        if as_json:
            typer.echo(render.ledger_to_json(entries))
        else:
            for entry in entries:
                typer.echo(render.format_decision(entry))
            typer.echo(render.format_ledger(pipeline.ledger_snapshot(), lang))
        if options.events is not None:
            LOGGER.info(_msg(lang, "events_written", path=options.events))
        return exit_code

    return _with_pipeline(options, action)


__all__ = [
    "CliOptions",
    "load_env_from_option",
    "run_session",
    "run_submit",
    "settings_from_options",
]
