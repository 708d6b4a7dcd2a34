"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Metrics sinks for aggregate observability.

Aggregates emit three counters:

- ``task_settled``: one per input task settlement, labelled
  ``outcome=success|failure``.
- ``resolved``: one per aggregate that reached its quorum.
- ``rejected``: one per aggregate that became unreachable.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

TASK_SETTLED = "task_settled"
RESOLVED = "resolved"
REJECTED = "rejected"


class AggregatorMetrics(Protocol):
    """Minimal metrics interface for aggregate instrumentation."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        """Increment a counter metric."""


class NoOpAggregatorMetrics:
    """Discards every counter update."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        return None


class PrometheusAggregatorMetrics(AggregatorMetrics):
    """
    Prometheus counters for the aggregate metrics listed in this module.

    Counters are registered up front, so two adapters sharing a namespace
    and registry collide; pass a separate ``registry`` per adapter in tests.

    Requires `prometheus_client` package.
    """

    def __init__(self, *, namespace: str = "quorum", registry: object | None = None) -> None:
        try:
            from prometheus_client import REGISTRY, Counter
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "PrometheusAggregatorMetrics requires `prometheus_client` to be installed."
            ) from exc

        target = registry if registry is not None else REGISTRY
        self._task_settled = Counter(
            TASK_SETTLED,
            "Input task settlements observed by aggregates",
            labelnames=("outcome",),
            namespace=namespace,
            registry=target,
        )
        self._outcomes = {
            RESOLVED: Counter(
                RESOLVED,
                "Aggregates that reached their quorum",
                namespace=namespace,
                registry=target,
            ),
            REJECTED: Counter(
                REJECTED,
                "Aggregates whose quorum became unreachable",
                namespace=namespace,
                registry=target,
            ),
        }

    def incr(self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None) -> None:
        if name == TASK_SETTLED:
            outcome = (tags or {}).get("outcome")
            if outcome not in ("success", "failure"):
                raise ValueError(f"{TASK_SETTLED} needs outcome=success|failure, got {outcome!r}")
            self._task_settled.labels(outcome).inc(value)
            return
        counter = self._outcomes.get(name)
        if counter is None:
            raise ValueError(f"Unknown aggregate metric '{name}'")
        counter.inc(value)
