"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Asynchronous coordination primitives for asyncio.

Provides quorum combinators (``some``, ``first_success``) that resolve once
enough concurrent awaitables succeed, and a latest-call guard (``latest``)
that discards results of superseded invocations.

Quick start::

    from quorum import first_success, latest, some

    values = await some({"a": fetch_a(), "b": fetch_b(), "c": fetch_c()}, 2)

    @latest
    async def search(term: str) -> list[str]:
        ...
"""

from .aggregate import first_success, some
from .contracts import AggregatePolicy, GuardPolicy, ProgressEvent
from .errors import (
    ContractViolationError,
    QuorumError,
    QuorumUnreachableError,
    SupersededError,
    TypeMismatchError,
)
from .latest import BoundLatestCall, LatestCall, latest
from .metrics import (
    AggregatorMetrics,
    NoOpAggregatorMetrics,
    PrometheusAggregatorMetrics,
)
from .settings import QuorumSettings
from .slots import TaskSlots

__all__ = [
    "some",
    "first_success",
    "latest",
    "LatestCall",
    "BoundLatestCall",
    "ProgressEvent",
    "AggregatePolicy",
    "GuardPolicy",
    "QuorumSettings",
    "TaskSlots",
    "AggregatorMetrics",
    "NoOpAggregatorMetrics",
    "PrometheusAggregatorMetrics",
    "QuorumError",
    "QuorumUnreachableError",
    "ContractViolationError",
    "TypeMismatchError",
    "SupersededError",
]
