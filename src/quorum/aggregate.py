"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Quorum combinators over concurrently running awaitables.

``some`` resolves once a required number of tasks succeed, or rejects once
every task has settled without reaching that number. ``first_success``
narrows that to the single first successful value. Both return plain
``asyncio.Future`` objects and never await internally: all state changes
happen in settlement callbacks, which the event loop runs one at a time.

Neither combinator cancels input tasks. Tasks still pending when the
aggregate settles keep running and keep emitting progress events.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Hashable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .contracts import (
    AggregatePolicy,
    FutureFactory,
    ProgressCallback,
    ProgressEvent,
    default_future_factory,
)
from .errors import ContractViolationError, QuorumUnreachableError
from .metrics import (
    REJECTED,
    RESOLVED,
    TASK_SETTLED,
    AggregatorMetrics,
    NoOpAggregatorMetrics,
)
from .slots import TaskSlots

logger = logging.getLogger("quorum.aggregate")

Tasks = Sequence[Awaitable[Any]] | Mapping[Hashable, Awaitable[Any]]


class _QuorumArgs(BaseModel):
    model_config = ConfigDict(strict=True)

    required_count: int
    task_count: int = Field(ge=0)


def _required_count_for(
    required_count: Any, task_count: int, policy: AggregatePolicy
) -> int:
    if isinstance(required_count, bool):
        raise ContractViolationError("required_count must be an int, got bool")
    try:
        args = _QuorumArgs(required_count=required_count, task_count=task_count)
    except ValidationError as error:
        raise ContractViolationError(
            f"required_count must be an int, got {type(required_count).__name__}"
        ) from error

    if 0 <= args.required_count <= args.task_count:
        return args.required_count
    if policy.out_of_range == "clamp":
        clamped = min(max(args.required_count, 0), args.task_count)
        logger.debug(
            "Clamped required_count %d to %d for %d task(s)",
            args.required_count,
            clamped,
            args.task_count,
        )
        return clamped
    raise ContractViolationError(
        f"required_count {args.required_count} outside [0, {args.task_count}]"
    )


def _close_pending(tasks: Any) -> None:
    """Close coroutine objects that will never be scheduled."""
    if isinstance(tasks, Mapping):
        values = list(tasks.values())
    elif isinstance(tasks, Sequence) and not isinstance(tasks, (str, bytes, bytearray)):
        values = list(tasks)
    else:
        return
    for item in values:
        if inspect.iscoroutine(item):
            item.close()


class _QuorumRun:
    """State of one ``some`` invocation."""

    def __init__(
        self,
        slots: TaskSlots[Awaitable[Any]],
        required_count: int,
        outcome: asyncio.Future[Any],
        *,
        on_progress: ProgressCallback | None,
        metrics: AggregatorMetrics,
    ) -> None:
        self._slots = slots
        self._required = required_count
        self._outcome = outcome
        self._on_progress = on_progress
        self._metrics = metrics
        self._results: dict[Hashable, Any] = {}
        self._reasons: dict[Hashable, BaseException] = {}
        self._success_count = 0
        self._fail_count = 0
        self.succeeded_keys: list[Hashable] = []

    @property
    def results(self) -> Mapping[Hashable, Any]:
        return self._results

    def start(self) -> asyncio.Future[Any]:
        loop = self._outcome.get_loop()
        for key, awaitable in self._slots:
            future = asyncio.ensure_future(awaitable, loop=loop)
            future.add_done_callback(
                lambda settled, key=key: self._on_settled(key, settled)
            )
        if self._required == 0:
            self._settle(result=self._slots.blank())
        return self._outcome

    def _on_settled(self, key: Hashable, future: asyncio.Future[Any]) -> None:
        if future.cancelled():
            self._record_failure(key, asyncio.CancelledError(f"Task {key!r} was cancelled"))
            return
        error = future.exception()
        if error is not None:
            self._record_failure(key, error)
        else:
            self._record_success(key, future.result())

    def _record_success(self, key: Hashable, value: Any) -> None:
        self._success_count += 1
        self._results[key] = value
        self.succeeded_keys.append(key)
        logger.debug(
            "Task %r succeeded (%d/%d required)",
            key,
            self._success_count,
            self._required,
        )
        self._metrics.incr(TASK_SETTLED, tags={"outcome": "success"})
        self._notify(ProgressEvent(key=key, result=value, succeeded=True))
        if self._success_count == self._required:
            self._settle(result=self._slots.snapshot(self._results))
        else:
            self._reject_if_exhausted()

    def _record_failure(self, key: Hashable, reason: BaseException) -> None:
        self._fail_count += 1
        self._reasons[key] = reason
        logger.debug(
            "Task %r failed (%d/%d failed): %r",
            key,
            self._fail_count,
            len(self._slots),
            reason,
        )
        self._metrics.incr(TASK_SETTLED, tags={"outcome": "failure"})
        self._notify(ProgressEvent(key=key, reason=reason, succeeded=False))
        self._reject_if_exhausted()

    def _reject_if_exhausted(self) -> None:
        # Every task settled without reaching the quorum.
        settled = self._success_count + self._fail_count
        if settled == len(self._slots) and self._success_count < self._required:
            self._settle(
                error=QuorumUnreachableError(self._slots.snapshot(self._reasons))
            )

    def _notify(self, event: ProgressEvent) -> None:
        if self._on_progress is None:
            return
        try:
            self._on_progress(event)
        except Exception:  # noqa: BLE001
            logger.exception("Progress callback failed for task %r", event.key)

    def _settle(
        self, *, result: Any = None, error: BaseException | None = None
    ) -> None:
        if self._outcome.done():
            return
        if error is not None:
            self._metrics.incr(REJECTED)
            self._outcome.set_exception(error)
        else:
            self._metrics.incr(RESOLVED)
            self._outcome.set_result(result)


def _start(
    tasks: Tasks,
    required_count: int,
    *,
    on_progress: ProgressCallback | None,
    future_factory: FutureFactory | None,
    policy: AggregatePolicy | None,
    metrics: AggregatorMetrics | None,
) -> tuple[asyncio.Future[Any], _QuorumRun | None]:
    outcome = (future_factory or default_future_factory)()
    try:
        slots = TaskSlots.from_tasks(tasks)
        for key, awaitable in slots:
            if not inspect.isawaitable(awaitable):
                raise ContractViolationError(
                    f"Task {key!r} is not awaitable: {type(awaitable).__name__}"
                )
            if asyncio.isfuture(awaitable) and awaitable.get_loop() is not outcome.get_loop():
                raise ContractViolationError(
                    f"Task {key!r} is bound to a different event loop"
                )
        required = _required_count_for(required_count, len(slots), policy or AggregatePolicy())
    except ContractViolationError as error:
        _close_pending(tasks)
        outcome.set_exception(error)
        return outcome, None

    run = _QuorumRun(
        slots,
        required,
        outcome,
        on_progress=on_progress,
        metrics=metrics or NoOpAggregatorMetrics(),
    )
    return run.start(), run


def some(
    tasks: Tasks,
    required_count: int,
    *,
    on_progress: ProgressCallback | None = None,
    future_factory: FutureFactory | None = None,
    policy: AggregatePolicy | None = None,
    metrics: AggregatorMetrics | None = None,
) -> asyncio.Future[Any]:
    """
    Resolve once ``required_count`` tasks have succeeded.

    Args:
        tasks: Sequence of awaitables, or mapping from key to awaitable.
        required_count: Number of successes needed, ``0 <= n <= len(tasks)``.
        on_progress: Called with a ``ProgressEvent`` for every settlement.
        future_factory: Creates the returned future; defaults to the
            running loop's ``create_future``.
        policy: Out-of-range handling for ``required_count``.
        metrics: Counter sink for settlements and outcomes.

    Returns:
        Future resolving with a collection shaped like ``tasks`` holding the
        values of the tasks that had succeeded at that moment (other slots
        ``None``). It rejects with ``QuorumUnreachableError`` once every task
        has settled with fewer than ``required_count`` successes, or with
        ``ContractViolationError`` for invalid arguments.
    """
    outcome, _ = _start(
        tasks,
        required_count,
        on_progress=on_progress,
        future_factory=future_factory,
        policy=policy,
        metrics=metrics,
    )
    return outcome


def first_success(
    tasks: Tasks,
    *,
    on_progress: ProgressCallback | None = None,
    future_factory: FutureFactory | None = None,
    metrics: AggregatorMetrics | None = None,
) -> asyncio.Future[Any]:
    """
    Resolve with the value of the first task to succeed.

    Rejects with the same ``QuorumUnreachableError`` as ``some(tasks, 1)``
    when every task fails.
    """
    factory = future_factory or default_future_factory
    aggregate, run = _start(
        tasks,
        1,
        on_progress=on_progress,
        future_factory=factory,
        policy=None,
        metrics=metrics,
    )
    outcome = factory()

    def _forward(settled: asyncio.Future[Any]) -> None:
        if settled.cancelled():
            outcome.cancel()
            return
        error = settled.exception()
        if outcome.done():
            return
        if error is not None:
            outcome.set_exception(error)
            return
        if run is None or not run.succeeded_keys:
            outcome.set_result(None)
            return
        outcome.set_result(run.results[run.succeeded_keys[0]])

    aggregate.add_done_callback(_forward)
    return outcome
