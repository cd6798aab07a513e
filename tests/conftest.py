from collections.abc import Generator
import logging

import pytest


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Generator[None, None, None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def _isolate_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("OPENAI_API_KEY", "OPENROUTER_API_KEY", "AGENT_CONSENSUS_LANG"):
        monkeypatch.delenv(name, raising=False)
