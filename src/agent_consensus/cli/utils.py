from __future__ import annotations

import json
import logging
import os
import re
from typing import Dict, Optional

LOGGER = logging.getLogger("agent_consensus.cli")

EXIT_OK = 0
EXIT_INPUT_ERROR = 2
EXIT_ENV_ERROR = 3
EXIT_PROVIDER_ERROR = 5

DEFAULT_LANG = "en"
LANG_ENV = "AGENT_CONSENSUS_LANG"

LANG_MESSAGES: Dict[str, Dict[str, str]] = {
    "ja": {
        "env_loaded": ".env を読み込みました: {path}",
        "env_missing": ".env ファイルが見つかりません: {path}",
        "unsupported_provider": "プロバイダ {provider} は未対応です。利用可能: {supported}。",
        "invalid_provider_spec": "--provider は <prefix>:<model> 形式で指定してください: {spec}",
        "config_error": "設定エラー: {error}",
        "provider_error": "判定サービスでエラーが発生しました: {error}",
        "pipeline_error": "トランザクションを処理できませんでした: {error}",
        "interrupt": "ユーザー操作により中断しました",
        "banner": "マルチエージェント合意レジャーへようこそ ({agents} エージェント, プロバイダ {provider})",
        "prompt": "トランザクションメッセージを入力してください ('exit' で終了):",
        "goodbye": "セッションを終了します。レジャーのエントリ数: {count}",
        "ledger_header": "現在のレジャー ({count} 件):",
        "ledger_empty": "レジャーは空です。",
        "entry_block": "ブロック #{height} ({id})",
        "entry_statement": "トランザクション: {text}",
        "entry_votes": "投票: {votes}",
        "entry_decision": "判定: {note}",
        "entry_reference": "参照番号: {ref}",
        "entry_created": "作成日時: {created}",
        "vote_yes": "承認",
        "vote_no": "否認",
        "events_written": "イベントを追記しました: {path}",
    },
    "en": {
        "env_loaded": "Loaded .env file: {path}",
        "env_missing": ".env file not found: {path}",
        "unsupported_provider": "Provider {provider} is not supported. Available: {supported}.",
        "invalid_provider_spec": "--provider must look like <prefix>:<model>: {spec}",
        "config_error": "Configuration error: {error}",
        "provider_error": "Judgment service error: {error}",
        "pipeline_error": "Transaction could not be processed: {error}",
        "interrupt": "Interrupted by user",
        "banner": "Welcome to the multi-agent consensus ledger ({agents} agents, provider {provider})",
        "prompt": "Enter a transaction message (or 'exit' to quit):",
        "goodbye": "Session finished. Ledger entries: {count}",
        "ledger_header": "Current ledger ({count} entries):",
        "ledger_empty": "The ledger is empty.",
        "entry_block": "Block #{height} ({id})",
        "entry_statement": "Transaction: {text}",
        "entry_votes": "Votes: {votes}",
        "entry_decision": "Decision: {note}",
        "entry_reference": "Reference: {ref}",
        "entry_created": "Created: {created}",
        "vote_yes": "yes",
        "vote_no": "no",
        "events_written": "Appended events: {path}",
    },
}

_SENSITIVE_ENV_PATTERNS = ("KEY", "TOKEN", "SECRET", "PASSWORD", "AUTH", "BEARER")


class JsonLogFormatter(logging.Formatter):
    """JSON 形式でログを吐き出すフォーマッタ。"""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _resolve_lang(requested: Optional[str]) -> str:
    env_lang = os.getenv(LANG_ENV)
    for candidate in (requested, env_lang):
        if candidate:
            lowered = candidate.lower()
            if lowered in LANG_MESSAGES:
                return lowered
    return DEFAULT_LANG


def _msg(lang: str, key: str, **params: object) -> str:
    catalog = LANG_MESSAGES.get(lang) or LANG_MESSAGES[DEFAULT_LANG]
    template = catalog.get(key) or LANG_MESSAGES["en"].get(key) or key
    return template.format(**params)


def _sanitize_message(text: str) -> str:
    if not text:
        return text
    sanitized = text
    for name, value in os.environ.items():
        if not value:
            continue
        upper_name = name.upper()
        if any(pattern in upper_name for pattern in _SENSITIVE_ENV_PATTERNS):
            sanitized = sanitized.replace(value, "***")
    sanitized = re.sub(
        r"(Authorization\s*:\s*)(?:Bearer\s+)?\S+", r"\1***", sanitized, flags=re.IGNORECASE
    )
    sanitized = re.sub(r"(Bearer\s+)(?!\*\*\*)\S+", r"\1***", sanitized, flags=re.IGNORECASE)
    return sanitized


def _configure_logging(as_json: bool, verbose: bool = False) -> None:
    handler = logging.StreamHandler()
    if as_json:
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


__all__ = [
    "DEFAULT_LANG",
    "EXIT_ENV_ERROR",
    "EXIT_INPUT_ERROR",
    "EXIT_OK",
    "EXIT_PROVIDER_ERROR",
    "JsonLogFormatter",
    "LANG_ENV",
    "LANG_MESSAGES",
    "LOGGER",
    "_configure_logging",
    "_msg",
    "_resolve_lang",
    "_sanitize_message",
]
