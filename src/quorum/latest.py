"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Latest-call guard: only the most recently issued call may deliver a result.

Wrapped calls are not cancelled. A superseded call keeps running until its
awaitable settles; only its outcome is replaced with ``SupersededError``.
Callers that hold resources inside the wrapped function must release them
themselves.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections.abc import Callable
from typing import Any

from .contracts import FutureFactory, GuardPolicy, default_future_factory
from .errors import SupersededError, TypeMismatchError

logger = logging.getLogger("quorum.latest")


class LatestCall:
    """
    Callable wrapper that discards results of superseded calls.

    Every call bumps the generation counter before ``fn`` runs. When the
    awaitable returned by ``fn`` settles, the call's future mirrors it only
    if no newer call was issued in the meantime; otherwise it rejects with
    ``SupersededError``. Staleness follows issue order, not completion order.

    Used as a method decorator, all instances share the one counter.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        *,
        policy: GuardPolicy | None = None,
        future_factory: FutureFactory | None = None,
    ) -> None:
        if not callable(fn):
            raise TypeError("Argument needs to be a callable")
        self._fn = fn
        self._policy = policy or GuardPolicy()
        self._future_factory = future_factory or default_future_factory
        self._generation = 0
        functools.update_wrapper(self, fn, updated=())

    @property
    def generation(self) -> int:
        """Generation of the most recently issued call (0 before any call)."""
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return BoundLatestCall(self, instance)

    def __call__(self, *args: Any, **kwargs: Any) -> asyncio.Future[Any]:
        self._generation += 1
        generation = self._generation
        outcome = self._future_factory()

        try:
            inner = self._fn(*args, **kwargs)
        except Exception as error:  # noqa: BLE001
            outcome.set_exception(error)
            return outcome
        if not inspect.isawaitable(inner):
            outcome.set_exception(
                TypeMismatchError(
                    f"{getattr(self._fn, '__qualname__', self._fn)!s} must return "
                    f"an awaitable, got {type(inner).__name__}"
                )
            )
            return outcome

        future = asyncio.ensure_future(inner, loop=outcome.get_loop())
        future.add_done_callback(
            lambda settled: self._on_settled(generation, settled, outcome)
        )
        return outcome

    def _on_settled(
        self,
        generation: int,
        settled: asyncio.Future[Any],
        outcome: asyncio.Future[Any],
    ) -> None:
        error = None if settled.cancelled() else settled.exception()
        if outcome.done():
            return

        if generation != self._generation:
            level = logging.INFO if self._policy.log_superseded else logging.DEBUG
            logger.log(
                level,
                "Discarding result of call %d, superseded by call %d",
                generation,
                self._generation,
            )
            outcome.set_exception(SupersededError(generation, self._generation))
            return

        if settled.cancelled():
            outcome.cancel()
        elif error is not None:
            outcome.set_exception(error)
        else:
            outcome.set_result(settled.result())


class BoundLatestCall:
    """``LatestCall`` accessed through an instance; shares the guard's counter."""

    def __init__(self, guard: LatestCall, instance: Any) -> None:
        self._guard = guard
        self._instance = instance
        functools.update_wrapper(self, guard, updated=())

    @property
    def generation(self) -> int:
        return self._guard.generation

    def is_current(self, generation: int) -> bool:
        return self._guard.is_current(generation)

    def __call__(self, *args: Any, **kwargs: Any) -> asyncio.Future[Any]:
        return self._guard(self._instance, *args, **kwargs)


def latest(
    fn: Callable[..., Any] | None = None,
    *,
    policy: GuardPolicy | None = None,
    future_factory: FutureFactory | None = None,
) -> Any:
    """
    Wrap ``fn`` so only its most recent call delivers a result.

    Usable as ``latest(fn)``, ``@latest`` or ``@latest(policy=...)``.
    """
    if fn is None:
        return lambda target: LatestCall(
            target, policy=policy, future_factory=future_factory
        )
    return LatestCall(fn, policy=policy, future_factory=future_factory)
