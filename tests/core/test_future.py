"""Tests for taskcontract.core.future."""

import asyncio

import pytest

from taskcontract.core.future import Future, Pending, Settled, UnhandledFailure, is_future
from taskcontract.core.result import Err, Ok


def counting(value=None, *, error=None):
    """Async thunk that counts its runs."""
    runs = []

    async def thunk():
        runs.append(1)
        if error is not None:
            raise error
        return value

    return thunk, runs


class TestConstructors:
    @pytest.mark.asyncio
    async def test_value(self):
        assert await Future.value(3) == 3

    @pytest.mark.asyncio
    async def test_failed_exception(self):
        with pytest.raises(ValueError, match="bad"):
            await Future.failed(ValueError("bad"))

    @pytest.mark.asyncio
    async def test_failed_non_exception(self):
        with pytest.raises(UnhandledFailure) as exc_info:
            await Future.failed({"code": "X"}).get()
        assert exc_info.value.error == {"code": "X"}

    @pytest.mark.asyncio
    async def test_from_result(self):
        assert await Future.from_result(Err("e")).settle() == Err("e")

    @pytest.mark.asyncio
    async def test_from_async_awaitable(self):
        async def compute():
            return 5

        assert await Future.from_async(compute()) == 5

    @pytest.mark.asyncio
    async def test_from_async_captures_failure(self):
        thunk, _ = counting(error=KeyError("k"))
        outcome = await Future.from_async(thunk).settle()
        assert outcome.is_err()
        assert isinstance(outcome.error, KeyError)

    @pytest.mark.asyncio
    async def test_attempt_catches_into_result(self):
        async def boom():
            raise ValueError("x")

        outcome = await Future.attempt(boom)
        assert outcome.is_err()
        assert isinstance(outcome.error, ValueError)

    @pytest.mark.asyncio
    async def test_attempt_only_catches_listed(self):
        async def boom():
            raise KeyError("x")

        with pytest.raises(KeyError):
            await Future.attempt(boom, catch=ValueError)

    @pytest.mark.asyncio
    async def test_make_resolve(self):
        future = Future.make(lambda resolve, reject: resolve(7))
        assert await future == 7

    @pytest.mark.asyncio
    async def test_make_first_callback_wins(self):
        def executor(resolve, reject):
            reject("first")
            resolve("second")

        assert await Future.make(executor).settle() == Err("first")

    @pytest.mark.asyncio
    async def test_make_executor_raises(self):
        def executor(resolve, reject):
            raise RuntimeError("executor broke")

        outcome = await Future.make(executor).settle()
        assert isinstance(outcome.error, RuntimeError)

    @pytest.mark.asyncio
    async def test_make_resolves_later(self):
        def executor(resolve, reject):
            asyncio.get_running_loop().call_soon(resolve, "later")

        assert await Future.make(executor) == "later"


class TestSingleResolution:
    @pytest.mark.asyncio
    async def test_starts_without_being_observed(self):
        thunk, runs = counting(1)
        future = Future.from_async(thunk)
        await asyncio.sleep(0)
        assert runs == [1]
        assert isinstance(future.state, Settled)
        assert await future == 1
        assert runs == [1]

    @pytest.mark.asyncio
    async def test_make_and_attempt_start_immediately(self):
        calls = []

        def executor(resolve, reject):
            calls.append("make")
            resolve(None)

        Future.make(executor)
        thunk, runs = counting(2)
        Future.attempt(thunk)
        await asyncio.sleep(0)
        assert calls == ["make"]
        assert runs == [1]

    def test_deferred_outside_event_loop(self):
        thunk, runs = counting(3)
        future = Future.from_async(thunk)
        assert runs == []
        assert isinstance(future.state, Pending)
        assert asyncio.run(future.get()) == 3
        assert runs == [1]

    @pytest.mark.asyncio
    async def test_combinators_are_memoized(self):
        thunk, runs = counting(4)
        source = Future.from_async(thunk)
        mapped = source.map(lambda x: x + 1)
        assert await mapped == 5
        assert await mapped == 5
        assert runs == [1]

    @pytest.mark.asyncio
    async def test_thunk_runs_once(self):
        thunk, runs = counting(2)
        future = Future.from_async(thunk)
        assert await future == 2
        assert await future == 2
        assert await future.map(lambda x: x + 1) == 3
        assert await future.flat_map(lambda x: Future.value(x * 10)) == 20
        assert runs == [1]

    @pytest.mark.asyncio
    async def test_concurrent_awaiters_share_run(self):
        started = asyncio.Event()
        release = asyncio.Event()
        runs = []

        async def slow():
            runs.append(1)
            started.set()
            await release.wait()
            return "done"

        future = Future.from_async(slow)
        waiters = [asyncio.ensure_future(future.get()) for _ in range(5)]
        await started.wait()
        release.set()
        assert await asyncio.gather(*waiters) == ["done"] * 5
        assert runs == [1]

    @pytest.mark.asyncio
    async def test_state_transitions(self):
        future = Future.from_async(counting("v")[0])
        assert not future.is_settled()
        await future.settle()
        assert future.is_settled()
        assert future.state == Settled(Ok("v"))


class TestCombinators:
    @pytest.mark.asyncio
    async def test_map(self):
        assert await Future.value(2).map(lambda x: x * 10) == 20

    @pytest.mark.asyncio
    async def test_map_skips_on_failure(self):
        calls = []
        outcome = await Future.failed("e").map(calls.append).settle()
        assert outcome == Err("e")
        assert calls == []

    @pytest.mark.asyncio
    async def test_map_raising_becomes_failure(self):
        outcome = await Future.value(0).map(lambda x: 1 / x).settle()
        assert isinstance(outcome.error, ZeroDivisionError)

    @pytest.mark.asyncio
    async def test_flat_map_not_called_on_failure(self):
        calls = []

        def continuation(x):
            calls.append(x)
            return Future.value(x)

        assert await Future.failed("e").flat_map(continuation).settle() == Err("e")
        assert calls == []

    @pytest.mark.asyncio
    async def test_tap_awaits_async_callback(self):
        seen = []

        async def record(value):
            await asyncio.sleep(0)
            seen.append(value)

        assert await Future.value(4).tap(record) == 4
        assert seen == [4]

    @pytest.mark.asyncio
    async def test_map_ok_and_map_error(self):
        ok = Future.value(Ok(2))
        err = Future.value(Err("bad"))
        assert await ok.map_ok(lambda v: v + 1) == Ok(3)
        assert await err.map_ok(lambda v: v + 1) == Err("bad")
        assert await err.map_error(str.upper) == Err("BAD")
        assert await ok.map_error(str.upper) == Ok(2)

    @pytest.mark.asyncio
    async def test_flat_map_ok_short_circuits(self):
        calls = []

        def step(value):
            calls.append(value)
            return Future.value(Ok(value * 2))

        assert await Future.value(Ok(5)).flat_map_ok(step) == Ok(10)
        assert await Future.value(Err("no")).flat_map_ok(step) == Err("no")
        assert calls == [5]

    @pytest.mark.asyncio
    async def test_tap_ok_and_tap_error(self):
        oks, errors = [], []
        await Future.value(Ok(1)).tap_ok(oks.append).tap_error(errors.append)
        await Future.value(Err("e")).tap_ok(oks.append).tap_error(errors.append)
        assert oks == [1]
        assert errors == ["e"]

    def test_is_future(self):
        assert is_future(Future.value(1))
        assert not is_future(1)


class TestAll:
    @pytest.mark.asyncio
    async def test_values_in_input_order(self):
        async def delayed(value, delay):
            await asyncio.sleep(delay)
            return value

        futures = [
            Future.from_async(delayed("a", 0.02)),
            Future.from_async(delayed("b", 0)),
            Future.value("c"),
        ]
        assert await Future.all(futures) == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await Future.all([]) == []

    @pytest.mark.asyncio
    async def test_failure_leaves_remaining_inputs_running(self):
        async def slow():
            await asyncio.sleep(0.05)
            return 5

        sibling = Future.from_async(slow)
        outcome = await Future.all([Future.failed(ValueError("x")), sibling]).settle()
        assert isinstance(outcome.error, ValueError)
        assert await sibling.settle() == Ok(5)

    @pytest.mark.asyncio
    async def test_first_failure_in_time_wins(self):
        async def fail_later():
            await asyncio.sleep(0.03)
            raise KeyError("late")

        async def fail_soon():
            await asyncio.sleep(0.01)
            raise ValueError("soon")

        outcome = await Future.all([Future.from_async(fail_later), Future.from_async(fail_soon)]).settle()
        assert isinstance(outcome.error, ValueError)


class TestRace:
    @pytest.mark.asyncio
    async def test_first_settled_wins(self):
        async def slow():
            await asyncio.sleep(0.05)
            return "slow"

        async def fast():
            return "fast"

        loser = Future.from_async(slow)
        assert await Future.race([loser, Future.from_async(fast)]) == "fast"
        assert await loser == "slow"

    @pytest.mark.asyncio
    async def test_loser_settles_with_its_own_value(self):
        async def slow():
            await asyncio.sleep(0.05)
            return 5

        member = Future.from_async(slow)
        assert await Future.race([Future.value(1), member]) == 1
        assert await member.settle() == Ok(5)

    @pytest.mark.asyncio
    async def test_failure_can_win(self):
        async def slow():
            await asyncio.sleep(0.05)

        outcome = await Future.race([Future.from_async(slow), Future.failed("first")]).settle()
        assert outcome == Err("first")

    @pytest.mark.asyncio
    async def test_cancelling_the_race_leaves_inputs_alone(self):
        started = asyncio.Event()

        async def slow():
            started.set()
            await asyncio.sleep(0.05)
            return "kept"

        member = Future.from_async(slow)
        race = asyncio.ensure_future(Future.race([member]).get())
        await started.wait()
        race.cancel()
        with pytest.raises(asyncio.CancelledError):
            await race
        assert await member == "kept"

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            Future.race([])


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancelled_awaiter_settles_future_as_cancelled(self):
        started = asyncio.Event()

        async def blocker():
            started.set()
            await asyncio.sleep(10)

        future = Future.from_async(blocker)
        task = asyncio.ensure_future(future.get())
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert isinstance(future.state, Settled)
        assert isinstance(future.state.result.error, asyncio.CancelledError)
        with pytest.raises(asyncio.CancelledError):
            await future
