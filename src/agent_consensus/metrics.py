"""Prometheus exporter fed by pipeline events."""

from __future__ import annotations

from typing import Any, Mapping

_STATUS_ALIASES = {
    "ok": "ok",
    "success": "ok",
    "completed": "ok",
    "error": "error",
    "errored": "error",
    "failed": "error",
}


def _normalize_status(value: Any) -> str:
    text = str(value or "unknown").strip().lower()
    return _STATUS_ALIASES.get(text, text or "unknown")


class PrometheusMetricsExporter:
    """Translate pipeline events into Prometheus counters and histograms.

    Implements the ``EventLogger`` protocol so it can be attached to a
    pipeline directly or through ``CompositeLogger``.
    """

    def __init__(self, namespace: str = "agent_consensus", registry: Any | None = None) -> None:
        try:
            from prometheus_client import Counter, Histogram
        except ModuleNotFoundError as exc:  # pragma: no cover - optional dep
            raise RuntimeError(
                "prometheus_client is required to use PrometheusMetricsExporter"
            ) from exc

        extra: dict[str, Any] = {}
        if registry is not None:
            extra["registry"] = registry

        self._votes_total = Counter(
            f"{namespace}_votes_total",
            "Votes cast by agents.",
            ("agent", "approved"),
            **extra,
        )
        self._pipeline_runs_total = Counter(
            f"{namespace}_pipeline_runs_total",
            "Pipeline run outcomes.",
            ("status", "consensus"),
            **extra,
        )
        self._pipeline_latency_ms = Histogram(
            f"{namespace}_pipeline_latency_ms",
            "End-to-end latency of pipeline runs (ms).",
            ("status",),
            **extra,
        )

    def emit(self, event_type: str, record: Mapping[str, Any]) -> None:
        if event_type == "vote_cast":
            agent = record.get("agent_label")
            if agent is None:
                agent = record.get("agent_index")
            agent = "unknown" if agent is None else str(agent)
            approved = "true" if record.get("approved") else "false"
            self._votes_total.labels(agent=agent, approved=approved).inc()
            return

        if event_type in {"pipeline_completed", "pipeline_failed"}:
            status = _normalize_status(record.get("status"))
            reached = record.get("consensus_reached")
            consensus = "none" if reached is None else ("true" if reached else "false")
            self._pipeline_runs_total.labels(status=status, consensus=consensus).inc()

            latency_ms = record.get("latency_ms")
            if isinstance(latency_ms, (int, float)) and latency_ms >= 0:
                self._pipeline_latency_ms.labels(status=status).observe(float(latency_ms))


__all__ = ["PrometheusMetricsExporter"]
