"""Parallel execution helpers for fan-out over independent workers."""
from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import (
    as_completed,
    Future,
    ThreadPoolExecutor,
)
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import TypeVar

from .errors import TimeoutError

T = TypeVar("T")

SyncWorker = Callable[[], T]


def _normalize_concurrency(total: int, limit: int | None) -> int:
    if limit is None or limit <= 0:
        return max(total, 1)
    return max(min(limit, total), 1)


def waves_for(total: int, limit: int | None) -> int:
    """Number of sequential batches needed to run ``total`` workers."""

    workers = _normalize_concurrency(total, limit)
    return -(-total // workers)


def run_parallel_all_sync(
    workers: Sequence[SyncWorker[T]],
    *,
    max_concurrency: int | None = None,
    timeout: float | None = None,
) -> list[T]:
    """Execute workers concurrently and return every result in submission order.

    The first worker failure observed is re-raised immediately and pending
    workers are cancelled. ``timeout`` bounds the whole join; when it elapses
    :class:`~agent_consensus.errors.TimeoutError` is raised.
    """

    if not workers:
        raise ValueError("workers must not be empty")
    max_workers = _normalize_concurrency(len(workers), max_concurrency)
    responses: list[T] = [None] * len(workers)  # type: ignore[list-item]
    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="agent-vote")
    future_map: dict[Future[T], int] = {
        executor.submit(worker): idx for idx, worker in enumerate(workers)
    }
    try:
        for future in as_completed(future_map, timeout=timeout):
            responses[future_map[future]] = future.result()
    except FuturesTimeoutError as exc:
        executor.shutdown(wait=False, cancel_futures=True)
        pending = sorted(idx for fut, idx in future_map.items() if not fut.done())
        raise TimeoutError(
            f"parallel execution exceeded {timeout}s deadline (pending workers: {pending})"
        ) from exc
    except BaseException:
        executor.shutdown(wait=False, cancel_futures=True)
        raise
    executor.shutdown(wait=True)
    return responses


__all__ = [
    "SyncWorker",
    "run_parallel_all_sync",
    "waves_for",
]
