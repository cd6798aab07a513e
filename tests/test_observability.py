from __future__ import annotations

import json
from pathlib import Path

from agent_consensus.observability import CompositeLogger, JsonlLogger
from tests.helpers.fakes import FakeLogger


def test_jsonl_logger_appends_events(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "events.jsonl"
    logger = JsonlLogger(target)

    logger.emit("vote_cast", {"agent_index": 0, "approved": True})
    logger.emit("pipeline_completed", {"status": "ok", "event": "custom"})

    lines = [json.loads(line) for line in target.read_text(encoding="utf-8").splitlines()]
    assert [line["event"] for line in lines] == ["vote_cast", "custom"]
    assert lines[0]["approved"] is True
    assert isinstance(lines[0]["ts"], int)


def test_composite_logger_isolates_failures() -> None:
    class _Broken:
        def emit(self, event_type: str, record: object) -> None:
            raise RuntimeError("boom")

    healthy = FakeLogger()
    composite = CompositeLogger([_Broken()])
    composite.add(healthy)

    composite.emit("vote_cast", {"agent_index": 1})

    assert len(composite) == 2
    assert healthy.events == [("vote_cast", {"agent_index": 1})]

    composite.clear()
    assert len(composite) == 0
