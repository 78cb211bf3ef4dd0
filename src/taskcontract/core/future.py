"""
Single-resolution deferred computation.

``Future[T]`` is an explicit state machine ``Pending -> Settled(Result)``
around an asynchronous thunk. The thunk runs at most once, no matter how many
times the future is awaited or composed; every combinator reads the memoized
``Result`` of its upstream instead of re-running it.

Native ``asyncio`` interop is limited to the outer boundary: ``await future``
(or ``await future.get()``) yields the value or raises the failure, and
``await future.settle()`` yields the settled ``Result`` without raising.
Inside the combinators failures travel as ``Err`` values, never as raised
exceptions.

Architecture:
    ::

        ┌──────────────┐  settle()   ┌──────────────┐
        │   Pending    │ ──────────> │ Settled(Ok)  │
        │  (thunk)     │             │ Settled(Err) │
        └──────────────┘             └──────────────┘
              │
              │ map / flat_map / tap           (Future[T])
              │ map_ok / flat_map_ok / tap_ok  (Future[Result[T, E]])
              │ map_error / tap_error
              ▼
        new Pending whose thunk awaits the upstream's settled Result

Cancellation:
    Cancelling a task that is awaiting a future cancels the future's single
    underlying task; a future settled that way is ``Err(CancelledError)``
    and re-raises it to every later awaiter. ``all`` and ``race`` never cancel
    their inputs: an input that loses a race still settles with its own
    outcome for anyone else holding it.

Examples:
    >>> import asyncio
    >>> asyncio.run(Future.value(2).map(lambda x: x * 10).get())
    20
    >>> asyncio.run(Future.all([Future.value(1), Future.value(2)]).get())
    [1, 2]
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Generator, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from taskcontract.core.result import Err, Ok, Result

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True, slots=True)
class Pending:
    """The thunk has not produced an outcome yet."""


@dataclass(frozen=True, slots=True)
class Settled(Generic[T]):
    """Terminal state carrying the outcome."""

    result: Result[T, Any]


FutureState = Pending | Settled


class UnhandledFailure(Exception):
    """Raised by ``Future.get`` when the failure value is not an exception."""

    def __init__(self, error: Any):
        super().__init__(f"Future failed with {error!r}")
        self.error = error


class Future(Generic[T]):
    """
    Deferred computation resolving exactly once to ``Result[T, Any]``.

    Build futures with the classmethod constructors; the bare constructor takes
    a zero-argument callable returning an awaitable ``Result``. ``from_async``,
    ``attempt`` and ``make`` start their work straight away when called inside
    a running event loop (outside one they start on first observation);
    combinator nodes run when observed.

    Examples:
        >>> import asyncio
        >>> async def fetch():
        ...     return 41
        >>> asyncio.run(Future.from_async(fetch).map(lambda x: x + 1).get())
        42
    """

    __slots__ = ("_thunk", "_task", "_outcome")

    def __init__(self, thunk: Callable[[], Awaitable[Result[T, Any]]] | None = None):
        self._thunk = thunk
        self._task: asyncio.Future[Result[T, Any]] | None = None
        self._outcome: Result[T, Any] | None = None

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def _started(cls, thunk: Callable[[], Awaitable[Result[T, Any]]]) -> Future[T]:
        future: Future[T] = cls(thunk)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return future
        future._task = asyncio.ensure_future(future._run())
        return future

    @classmethod
    def from_result(cls, result: Result[T, Any]) -> Future[T]:
        """An already-settled future."""
        future: Future[T] = cls()
        future._outcome = result
        return future

    @classmethod
    def value(cls, value: T) -> Future[T]:
        """An already-resolved future."""
        return cls.from_result(Ok(value))

    @classmethod
    def failed(cls, error: Any) -> Future[Any]:
        """An already-failed future."""
        return cls.from_result(Err(error))

    @classmethod
    def from_async(cls, thunk: Callable[[], Awaitable[T]] | Awaitable[T]) -> Future[T]:
        """
        Run ``thunk`` (or await the awaitable), starting now if a loop is running.

        Success and failure are both captured; the future never stays pending
        once the underlying work has finished.
        """

        async def run() -> Result[T, Any]:
            awaitable = thunk() if callable(thunk) else thunk
            return Ok(await awaitable)

        return cls._started(run)

    @classmethod
    def attempt(
        cls,
        thunk: Callable[[], Awaitable[T]],
        *,
        catch: type[BaseException] | tuple[type[BaseException], ...] = Exception,
    ) -> Future[Result[T, Any]]:
        """
        Run ``thunk`` and resolve to its outcome as a ``Result`` value.

        Exceptions matching ``catch`` become ``Err``; anything else fails the
        future itself.
        """

        async def run() -> Result[Result[T, Any], Any]:
            try:
                return Ok(Ok(await thunk()))
            except catch as exc:
                return Ok(Err(exc))

        return cls._started(run)

    @classmethod
    def make(
        cls,
        executor: Callable[[Callable[[T], None], Callable[[Any], None]], Any],
    ) -> Future[T]:
        """
        Bridge a callback-style API.

        ``executor(resolve, reject)`` is called as soon as the future starts; the
        first of the two callbacks to fire settles the future and later calls
        are ignored. An exception raised by ``executor`` fails the future.
        """

        async def run() -> Result[T, Any]:
            waiter: asyncio.Future[Result[T, Any]] = asyncio.get_running_loop().create_future()

            def resolve(value: T) -> None:
                if not waiter.done():
                    waiter.set_result(Ok(value))

            def reject(error: Any) -> None:
                if not waiter.done():
                    waiter.set_result(Err(error))

            executor(resolve, reject)
            return await waiter

        return cls._started(run)

    @classmethod
    def all(cls, futures: Iterable[Future[Any]]) -> Future[list[Any]]:
        """
        Join futures into one resolving to their values in input order.

        Fails with the first failure observed. The remaining inputs keep
        running and settle on their own.
        """
        members = list(futures)

        async def run() -> Result[list[Any], Any]:
            if not members:
                return Ok([])
            tasks = [_observe(member) for member in members]
            try:
                pending = set(tasks)
                while pending:
                    _, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                    for task in tasks:
                        if task.done():
                            outcome = _task_outcome(task)
                            if outcome.is_err():
                                return outcome
                return Ok([_task_outcome(task).value for task in tasks])
            finally:
                _cancel_pending(tasks)

        return cls(run)

    @classmethod
    def race(cls, futures: Iterable[Future[T]]) -> Future[T]:
        """Settle with whichever input settles first; the others keep running."""
        members = list(futures)
        if not members:
            raise ValueError("Future.race() needs at least one future")

        async def run() -> Result[T, Any]:
            tasks = [_observe(member) for member in members]
            try:
                await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
                winner = next(task for task in tasks if task.done())
                return _task_outcome(winner)
            finally:
                _cancel_pending(tasks)

        return cls(run)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> FutureState:
        if self._outcome is None:
            return Pending()
        return Settled(self._outcome)

    def is_settled(self) -> bool:
        return self._outcome is not None

    async def settle(self) -> Result[T, Any]:
        """Run the thunk (once) and return the settled Result without raising."""
        if self._outcome is not None:
            return self._outcome
        if self._task is None:
            self._task = asyncio.ensure_future(self._run())
        return await self._task

    async def _run(self) -> Result[T, Any]:
        assert self._thunk is not None
        try:
            outcome = await self._thunk()
        except asyncio.CancelledError as exc:
            self._outcome = Err(exc)
            raise
        except Exception as exc:
            outcome = Err(exc)
        self._outcome = outcome
        return outcome

    async def get(self) -> T:
        """Resolve to the value, raising the failure."""
        outcome = await self.settle()
        match outcome:
            case Ok(value):
                return value
            case Err(error) if isinstance(error, BaseException):
                raise error
            case Err(error):
                raise UnhandledFailure(error)

    def __await__(self) -> Generator[Any, None, T]:
        return self.get().__await__()

    # -------------------------------------------------------------------------
    # Combinators
    # -------------------------------------------------------------------------

    def _then(self, step: Callable[[Result[T, Any]], Awaitable[Result[U, Any]]]) -> Future[U]:
        async def run() -> Result[U, Any]:
            return await step(await self.settle())

        return Future(run)

    def map(self, f: Callable[[T], U]) -> Future[U]:
        """Transform the resolved value; failures pass through."""

        async def step(outcome: Result[T, Any]) -> Result[U, Any]:
            return outcome.map(f)

        return self._then(step)

    def flat_map(self, f: Callable[[T], Future[U]]) -> Future[U]:
        """Chain to another future; ``f`` is not called on failure."""

        async def step(outcome: Result[T, Any]) -> Result[U, Any]:
            match outcome:
                case Ok(value):
                    return await f(value).settle()
                case _:
                    return outcome

        return self._then(step)

    def tap(self, f: Callable[[T], Any]) -> Future[T]:
        """Peek at the resolved value without altering it."""

        async def step(outcome: Result[T, Any]) -> Result[T, Any]:
            if isinstance(outcome, Ok):
                await _maybe_await(f(outcome.value))
            return outcome

        return self._then(step)

    # -------------------------------------------------------------------------
    # Future[Result[T, E]] combinators
    # -------------------------------------------------------------------------

    def map_ok(self: Future[Result[U, E]], f: Callable[[U], Any]) -> Future[Result[Any, E]]:
        """Transform the ``Ok`` payload of the embedded Result."""
        return self.map(lambda result: result.map(f))

    def map_error(self: Future[Result[U, E]], f: Callable[[E], F]) -> Future[Result[U, F]]:
        """Transform the ``Err`` payload of the embedded Result."""
        return self.map(lambda result: result.map_error(f))

    def flat_map_ok(
        self: Future[Result[U, E]],
        f: Callable[[U], Future[Result[Any, E]]],
    ) -> Future[Result[Any, E]]:
        """Chain on the embedded ``Ok``; an embedded ``Err`` short-circuits."""

        def step(result: Result[U, E]) -> Future[Result[Any, E]]:
            match result:
                case Ok(value):
                    return f(value)
                case _:
                    return Future.value(result)

        return self.flat_map(step)

    def tap_ok(self: Future[Result[U, E]], f: Callable[[U], Any]) -> Future[Result[U, E]]:
        async def peek(result: Result[U, E]) -> None:
            if isinstance(result, Ok):
                await _maybe_await(f(result.value))

        return self.tap(peek)

    def tap_error(self: Future[Result[U, E]], f: Callable[[E], Any]) -> Future[Result[U, E]]:
        async def peek(result: Result[U, E]) -> None:
            if isinstance(result, Err):
                await _maybe_await(f(result.error))

        return self.tap(peek)

    def __repr__(self) -> str:
        if self._outcome is None:
            return "Future(<pending>)"
        return f"Future({self._outcome!r})"


def _task_outcome(task: asyncio.Future[Result[Any, Any]]) -> Result[Any, Any]:
    if task.cancelled():
        return Err(asyncio.CancelledError())
    return task.result()


def _observe(member: Future[Any]) -> asyncio.Future[Result[Any, Any]]:
    # cancelling the shield leaves the member's own task running
    return asyncio.shield(member.settle())


def _cancel_pending(tasks: Iterable[asyncio.Future[Any]]) -> None:
    for task in tasks:
        if not task.done():
            task.cancel()


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def is_future(value: Any) -> bool:
    return isinstance(value, Future)


__all__ = [
    "Future",
    "FutureState",
    "Pending",
    "Settled",
    "UnhandledFailure",
    "is_future",
]
