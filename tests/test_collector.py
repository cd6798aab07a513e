from __future__ import annotations

import threading
import time

import pytest

from agent_consensus.collector import default_agent_label, VoteCollector
from agent_consensus.errors import (
    AuthError,
    ExternalServiceError,
    MalformedResponseError,
    TimeoutError as ConsensusTimeoutError,
)
from agent_consensus.models import Statement
from agent_consensus.validator import AgentValidator
from tests.helpers.fakes import BlockingProvider, ScriptedProvider

hypothesis = pytest.importorskip("hypothesis")
st = pytest.importorskip("hypothesis.strategies")


def _statement() -> Statement:
    return Statement.create("Alice pays Bob 5 BTC")


def _collector(provider, **kwargs) -> VoteCollector:
    validator = AgentValidator(provider, model="judge", timeout_s=kwargs.pop("timeout_s", 2.0))
    return VoteCollector(validator, **kwargs)


def test_default_agent_label_is_one_based() -> None:
    assert default_agent_label(0) == "Agent 1"
    assert default_agent_label(4) == "Agent 5"


def test_collect_votes_returns_one_vote_per_agent() -> None:
    provider = ScriptedProvider({1: "No.", 3: "No."})
    votes = _collector(provider).collect_votes(_statement(), 5)

    assert [vote.agent_index for vote in votes] == [0, 1, 2, 3, 4]
    assert [vote.agent_label for vote in votes] == [f"Agent {i}" for i in range(1, 6)]
    assert [vote.approved for vote in votes] == [True, False, True, False, True]
    assert len(provider.requests) == 5


def test_collect_votes_uses_label_function() -> None:
    provider = ScriptedProvider()
    votes = _collector(provider).collect_votes(_statement(), 2, lambda i: f"node-{i}")

    assert [vote.agent_label for vote in votes] == ["node-0", "node-1"]


@hypothesis.settings(max_examples=25, deadline=None)
@hypothesis.given(st.lists(st.floats(min_value=0.0, max_value=0.01), min_size=1, max_size=6))
def test_collect_votes_orders_by_index_for_any_interleaving(delays: list[float]) -> None:
    provider = ScriptedProvider(delays=dict(enumerate(delays)))
    votes = _collector(provider).collect_votes(_statement(), len(delays))

    assert [vote.agent_index for vote in votes] == list(range(len(delays)))


def test_collect_votes_malformed_answer_is_a_rejection() -> None:
    provider = ScriptedProvider({2: MalformedResponseError("empty choices")})
    votes = _collector(provider).collect_votes(_statement(), 3)

    assert [vote.approved for vote in votes] == [True, True, False]


def test_collect_votes_fails_fast_on_service_error() -> None:
    provider = ScriptedProvider({0: AuthError("denied")}, delays={1: 2.0, 2: 2.0})
    started = time.perf_counter()

    with pytest.raises(AuthError) as excinfo:
        _collector(provider).collect_votes(_statement(), 3)

    assert excinfo.value.agent_index == 0
    assert time.perf_counter() - started < 1.0


def test_collect_votes_join_deadline_raises_timeout() -> None:
    release = threading.Event()
    provider = BlockingProvider({1}, release)
    collector = _collector(provider, join_timeout_s=0.05)

    try:
        with pytest.raises(ConsensusTimeoutError):
            collector.collect_votes(_statement(), 3)
    finally:
        release.set()


def test_collect_votes_timeout_is_an_external_service_error() -> None:
    release = threading.Event()
    provider = BlockingProvider({0}, release)
    collector = _collector(provider, join_timeout_s=0.05)

    try:
        with pytest.raises(ExternalServiceError):
            collector.collect_votes(_statement(), 1)
    finally:
        release.set()


def test_collect_votes_with_concurrency_limit() -> None:
    provider = ScriptedProvider(delays={i: 0.005 for i in range(4)})
    votes = _collector(provider, max_concurrency=2).collect_votes(_statement(), 4)

    assert [vote.agent_index for vote in votes] == [0, 1, 2, 3]


@pytest.mark.parametrize("count", [0, -1])
def test_collect_votes_rejects_non_positive_counts(count: int) -> None:
    with pytest.raises(ValueError):
        _collector(ScriptedProvider()).collect_votes(_statement(), count)


@pytest.mark.parametrize("count", [True, 2.0, "3"])
def test_collect_votes_rejects_non_int_counts(count: object) -> None:
    with pytest.raises(TypeError):
        _collector(ScriptedProvider()).collect_votes(_statement(), count)  # type: ignore[arg-type]
