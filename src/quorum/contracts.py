"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed policies and callback contracts shared by the combinators.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any, Literal

OutOfRangeMode = Literal["fail", "clamp"]

FutureFactory = Callable[[], "asyncio.Future[Any]"]


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """
    One task settlement observed by an aggregate.

    Attributes:
        key: Index (sequence input) or mapping key of the settled task.
        result: Success value, when ``succeeded`` is true.
        reason: Failure reason, when ``succeeded`` is false.
        succeeded: Whether the task completed with a value.
    """

    key: Hashable
    result: Any = None
    reason: BaseException | None = None
    succeeded: bool = True


ProgressCallback = Callable[[ProgressEvent], None]


@dataclass(frozen=True, slots=True)
class AggregatePolicy:
    """How ``some`` treats a required count outside ``[0, N]``."""

    out_of_range: OutOfRangeMode = "fail"


@dataclass(frozen=True, slots=True)
class GuardPolicy:
    """Logging controls for latest-call guards."""

    log_superseded: bool = False


def default_future_factory() -> asyncio.Future[Any]:
    """Create a pending future bound to the running event loop."""
    return asyncio.get_running_loop().create_future()
