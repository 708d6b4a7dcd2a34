from __future__ import annotations

import asyncio
import logging

import pytest

from quorum import (
    GuardPolicy,
    LatestCall,
    SupersededError,
    TypeMismatchError,
    first_success,
    latest,
)


def run_async(coro):
    return asyncio.run(coro)


class _ManualFetch:
    """Hands out one loop future per call so tests control settlement order."""

    def __init__(self) -> None:
        self.futures: list[asyncio.Future] = []
        self.calls: list[tuple] = []

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        future = asyncio.get_running_loop().create_future()
        self.futures.append(future)
        return future


def test_newer_call_supersedes_older_one_that_settles_later():
    async def scenario() -> None:
        async def _lookup(value: str, delay: float) -> str:
            await asyncio.sleep(delay)
            return value

        guarded = latest(_lookup)
        first = guarded("first", 0.5)
        await asyncio.sleep(0.1)
        second = guarded("second", 0.1)

        assert await second == "second"
        assert not first.done()

        with pytest.raises(SupersededError) as info:
            await first
        assert info.value.generation == 1
        assert info.value.current == 2

    run_async(scenario())


def test_older_call_settling_first_is_still_superseded():
    async def scenario() -> None:
        fetch = _ManualFetch()
        guarded = latest(fetch)

        first = guarded("a")
        second = guarded("b")

        fetch.futures[0].set_result("stale")
        await asyncio.sleep(0)
        assert isinstance(first.exception(), SupersededError)
        assert not second.done()

        fetch.futures[1].set_result("fresh")
        assert await second == "fresh"

    run_async(scenario())


def test_superseded_failure_is_reported_as_superseded():
    async def scenario() -> None:
        fetch = _ManualFetch()
        guarded = latest(fetch)

        first = guarded()
        second = guarded()
        fetch.futures[0].set_exception(ConnectionError("offline"))
        fetch.futures[1].set_exception(ConnectionError("still offline"))

        with pytest.raises(SupersededError):
            await first
        with pytest.raises(ConnectionError, match="still offline"):
            await second

    run_async(scenario())


def test_single_call_mirrors_inner_outcome():
    async def scenario() -> None:
        fetch = _ManualFetch()
        guarded = latest(fetch)

        ok = guarded(1, flag=True)
        fetch.futures[0].set_result({"id": 1})
        assert await ok == {"id": 1}
        assert fetch.calls == [((1,), {"flag": True})]

        error = KeyError("missing")
        failed = guarded(2)
        fetch.futures[1].set_exception(error)
        with pytest.raises(KeyError) as info:
            await failed
        assert info.value is error

    run_async(scenario())


def test_generation_advances_once_per_call_before_fn_runs():
    async def scenario() -> None:
        seen = []
        guarded = None

        async def _probe():
            return "ok"

        def _fn():
            seen.append(guarded.generation)
            return _probe()

        guarded = LatestCall(_fn)
        assert guarded.generation == 0

        first = guarded()
        second = guarded()
        assert seen == [1, 2]
        assert guarded.is_current(2)
        assert not guarded.is_current(1)

        assert await second == "ok"
        with pytest.raises(SupersededError):
            await first

    run_async(scenario())


def test_non_awaitable_return_rejects_with_type_mismatch():
    async def scenario() -> None:
        guarded = latest(lambda: "plain value")

        outcome = guarded()
        assert guarded.generation == 1
        with pytest.raises(TypeMismatchError, match="must return an awaitable"):
            await outcome

    run_async(scenario())
    assert issubclass(TypeMismatchError, TypeError)


def test_synchronous_error_is_delivered_through_future():
    async def scenario() -> None:
        def _broken():
            raise ValueError("bad arguments")

        outcome = latest(_broken)()
        with pytest.raises(ValueError, match="bad arguments"):
            await outcome

    run_async(scenario())


def test_wrapping_non_callable_fails_at_wrap_time():
    with pytest.raises(TypeError, match="callable"):
        latest(42)


def test_independent_wrappers_do_not_share_generations():
    async def scenario() -> None:
        fetch_a, fetch_b = _ManualFetch(), _ManualFetch()
        guarded_a, guarded_b = latest(fetch_a), latest(fetch_b)

        call_a = guarded_a()
        call_b = guarded_b()
        fetch_a.futures[0].set_result("a")
        fetch_b.futures[0].set_result("b")

        assert await call_a == "a"
        assert await call_b == "b"

    run_async(scenario())


def test_method_decorator_shares_one_counter_across_instances():
    class _Search:
        def __init__(self, name: str) -> None:
            self.name = name

        @latest
        async def query(self, term: str) -> str:
            await asyncio.sleep(0)
            return f"{self.name}:{term}"

    async def scenario() -> None:
        left, right = _Search("left"), _Search("right")

        stale = left.query("x")
        fresh = right.query("y")

        assert await fresh == "right:y"
        with pytest.raises(SupersededError):
            await stale
        assert _Search.query.generation == 2
        assert _Search.query.__name__ == "query"

    run_async(scenario())


def test_bound_method_exposes_shared_generation():
    class _Lookup:
        @latest
        def fetch(self, key: str):
            return asyncio.get_running_loop().create_future()

    async def scenario() -> None:
        first, second = _Lookup(), _Lookup()

        pending = first.fetch("a")
        assert first.fetch.generation == 1
        assert first.fetch.is_current(1)

        second.fetch("b")
        assert first.fetch.generation == 2
        assert second.fetch.generation == 2
        assert not first.fetch.is_current(1)
        assert first.fetch.__name__ == "fetch"
        assert not pending.done()

    run_async(scenario())


def test_superseded_calls_are_not_logged_as_errors(caplog):
    async def scenario(policy) -> None:
        fetch = _ManualFetch()
        guarded = latest(policy=policy)(fetch)
        first = guarded()
        second = guarded()
        fetch.futures[0].set_result(None)
        fetch.futures[1].set_result(None)
        await second
        with pytest.raises(SupersededError):
            await first

    with caplog.at_level(logging.DEBUG, logger="quorum.latest"):
        run_async(scenario(None))
    assert [r.levelno for r in caplog.records if r.name == "quorum.latest"] == [
        logging.DEBUG
    ]

    caplog.clear()
    with caplog.at_level(logging.DEBUG, logger="quorum.latest"):
        run_async(scenario(GuardPolicy(log_superseded=True)))
    assert [r.levelno for r in caplog.records if r.name == "quorum.latest"] == [
        logging.INFO
    ]


def test_guarded_calls_compose_with_first_success():
    async def scenario() -> None:
        fetch = _ManualFetch()
        guarded = latest(fetch)

        outcome = first_success([guarded("old"), guarded("new")])
        fetch.futures[1].set_result("new result")
        fetch.futures[0].set_result("old result")

        assert await outcome == "new result"

    run_async(scenario())
