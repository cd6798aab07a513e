from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from .runner import CliOptions, run_session, run_submit

app = typer.Typer(
    add_completion=False,
    help="Multi-agent consensus ledger CLI",
)


def _exit_with(code: int) -> None:
    raise typer.Exit(code)


def _options(ctx: typer.Context) -> CliOptions:
    if isinstance(ctx.obj, CliOptions):
        return ctx.obj
    return CliOptions()


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", help="YAML 設定ファイル"),
    env: Optional[Path] = typer.Option(None, "--env", help="読み込む .env ファイル"),
    provider: Optional[str] = typer.Option(
        None, "--provider", help="<prefix>:<model> 形式のプロバイダ指定 (例: simulated:judge-v1)"
    ),
    agents: Optional[int] = typer.Option(None, "--agents", min=1, help="投票エージェント数"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="1 エージェントあたりのタイムアウト秒"),
    events: Optional[Path] = typer.Option(None, "--events", help="イベント JSONL の出力先"),
    reference: Optional[bool] = typer.Option(
        None, "--reference/--no-reference", help="ブロック高を参照番号として記録する"
    ),
    lang: Optional[str] = typer.Option(None, "--lang", help="メッセージ言語 (ja/en)"),
    log_json: bool = typer.Option(False, "--log-json", help="ログを JSON で出力する"),
    verbose: bool = typer.Option(False, "--verbose", help="DEBUG ログを有効にする"),
) -> None:
    ctx.obj = CliOptions(
        config=config,
        env=env,
        provider=provider,
        agents=agents,
        timeout=timeout,
        events=events,
        reference=reference,
        lang=lang,
        log_json=log_json,
        verbose=verbose,
    )
    if ctx.invoked_subcommand is None:
        _exit_with(run_session(ctx.obj))


@app.command()
def session(ctx: typer.Context) -> None:
    """対話セッションでトランザクションを 1 件ずつ検証します。"""

    _exit_with(run_session(_options(ctx)))


@app.command()
def submit(
    ctx: typer.Context,
    texts: List[str] = typer.Argument(..., help="検証するトランザクションメッセージ"),
    as_json: bool = typer.Option(False, "--json", help="結果を JSON で出力する"),
) -> None:
    """指定したメッセージを順に検証し、レジャーを出力します。"""

    _exit_with(run_submit(_options(ctx), texts, as_json=as_json))


def main(argv: list[str] | None = None) -> int:
    try:
        result = app(args=list(argv) if argv is not None else None, standalone_mode=False)
    except typer.Exit as exc:  # pragma: no cover - Typer converts to Exit
        return int(exc.exit_code or 0)
    return result if isinstance(result, int) else 0


__all__ = ["app", "main", "session", "submit"]
