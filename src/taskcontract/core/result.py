"""
Result envelope for explicit success/failure handling.

Provides a tagged ``Result[T, E]`` that is either ``Ok(value)`` or
``Err(error)``. It is the exception-free error channel an activity author may
choose instead of raising: the dispatcher recognises a returned ``Result`` and
normalizes an ``Err`` into the same ``ActivityExecutionError`` shape a raised
exception would produce.

Manifesto:
    - **Explicit over Implicit:** Failure is part of the return type
    - **Total case analysis:** ``match(ok=..., error=...)`` requires both
      branches; there is no unchecked ``unwrap`` on the happy path
    - **Functional composition:** Chain with map/flat_map without nested
      try/except blocks

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     Result[T, E]                             │
        ├─────────────────┬─────────────────┬─────────────────────────┤
        │     Ok[T]       │     Err[E]      │     Option[T]           │
        ├─────────────────┼─────────────────┼─────────────────────────┤
        │ • value: T      │ • error: E      │ • Some(value)           │
        │ • map()         │ • map_error()   │ • Nothing               │
        │ • flat_map()    │ • match()       │ • to_option()           │
        └─────────────────┴─────────────────┴─────────────────────────┘

Laws:
    - ``Ok(x).map(f) == Ok(f(x))``
    - ``Err(e).map(f) == Err(e)``
    - ``flat_map`` is associative and short-circuits on ``Err`` without
      calling the continuation

Examples:
    >>> Ok(10).map(lambda x: x * 2)
    Ok(20)
    >>> Err("boom").map(lambda x: x * 2)
    Err('boom')
    >>> Ok(3).match(ok=lambda v: f"got {v}", error=lambda e: f"failed {e}")
    'got 3'
    >>> Err("x").to_option()
    Nothing

Tags:
    result-pattern, error-handling, functional-programming, taskcontract

Doc-Types:
    - API Reference
    - Design Patterns Guide
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")
R = TypeVar("R")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """
    Successful result containing a value.

    Examples:
        >>> Ok(5).flat_map(lambda x: Ok(x + 1) if x > 0 else Err("negative"))
        Ok(6)
        >>> Ok(5).map_error(str.upper)
        Ok(5)
    """

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def map(self, f: Callable[[T], U]) -> Result[U, Any]:
        """Transform the value."""
        return Ok(f(self.value))

    def map_error(self, f: Callable[[Any], F]) -> Result[T, F]:
        """No-op for Ok."""
        return self

    def flat_map(self, f: Callable[[T], Result[U, F]]) -> Result[U, F]:
        """Chain to another Result-returning function."""
        return f(self.value)

    def match(self, *, ok: Callable[[T], R], error: Callable[[Any], R]) -> R:
        """Case analysis; both branches are required."""
        return ok(self.value)

    def to_option(self) -> Option[T]:
        return Some(self.value)

    def unwrap_or(self, default: T) -> T:
        return self.value

    def inspect(self, f: Callable[[T], None]) -> Result[T, Any]:
        """Call f with value for side effects, return self."""
        f(self.value)
        return self

    def inspect_err(self, f: Callable[[Any], None]) -> Result[T, Any]:
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """
    Failed result containing an error.

    The error is any value: an exception, a domain error dataclass, or a plain
    mapping such as ``{"code": "NOT_FOUND", "message": "..."}``. The
    dispatcher keeps it intact as the ``cause`` of the normalized error.

    Examples:
        >>> Err(ValueError("x")).map(lambda v: v * 2).is_err()
        True
        >>> Err("raw").map_error(lambda e: f"wrapped: {e}")
        Err('wrapped: raw')
    """

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def map(self, f: Callable[[Any], U]) -> Result[U, E]:
        """No-op for Err."""
        return self

    def map_error(self, f: Callable[[E], F]) -> Result[Any, F]:
        """Transform the error."""
        return Err(f(self.error))

    def flat_map(self, f: Callable[[Any], Result[U, F]]) -> Result[U, E]:
        """No-op for Err; the continuation is never called."""
        return self

    def match(self, *, ok: Callable[[Any], R], error: Callable[[E], R]) -> R:
        """Case analysis; both branches are required."""
        return error(self.error)

    def to_option(self) -> Option[Any]:
        return NOTHING

    def unwrap_or(self, default: T) -> T:
        return default

    def inspect(self, f: Callable[[Any], None]) -> Result[Any, E]:
        return self

    def inspect_err(self, f: Callable[[E], None]) -> Result[Any, E]:
        """Call f with error for side effects, return self."""
        f(self.error)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        to_dict = getattr(self.error, "to_dict", None)
        if callable(to_dict):
            return {"ok": False, "error": to_dict()}
        if isinstance(self.error, BaseException):
            return {
                "ok": False,
                "error": {
                    "error_type": type(self.error).__name__,
                    "message": str(self.error),
                },
            }
        return {"ok": False, "error": self.error}

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[E]


# =============================================================================
# OPTION
# =============================================================================


@dataclass(frozen=True, slots=True)
class Some(Generic[T]):
    """Present value produced by ``Result.to_option``."""

    value: T

    def is_some(self) -> bool:
        return True

    def is_nothing(self) -> bool:
        return False

    def get_or(self, default: T) -> T:
        return self.value

    def __repr__(self) -> str:
        return f"Some({self.value!r})"


class _Nothing:
    """Absent value. Use the ``NOTHING`` singleton."""

    __slots__ = ()
    _instance: _Nothing | None = None

    def __new__(cls) -> _Nothing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def is_some(self) -> bool:
        return False

    def is_nothing(self) -> bool:
        return True

    def get_or(self, default: T) -> T:
        return default

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing"


NOTHING = _Nothing()

Option = Some[T] | _Nothing


# =============================================================================
# RESULT CONSTRUCTORS AND UTILITIES
# =============================================================================


def is_result(value: Any) -> bool:
    """True for ``Ok`` and ``Err`` instances."""
    return isinstance(value, (Ok, Err))


def try_result(f: Callable[[], T]) -> Result[T, Exception]:
    """
    Execute a function and wrap its outcome in a Result.

    The bridge from exception-raising code into the Result channel.

    Examples:
        >>> import json
        >>> try_result(lambda: json.loads('{"a": 1}'))
        Ok({'a': 1})
        >>> try_result(lambda: json.loads('invalid')).is_err()
        True
    """
    try:
        return Ok(f())
    except Exception as e:
        return Err(e)


def collect_results(results: Iterable[Result[T, E]]) -> Result[list[T], E]:
    """
    Collect a sequence of Results into a Result of a list.

    Returns the first ``Err`` encountered, otherwise ``Ok`` of all values in
    input order.
    """
    values: list[T] = []
    for result in results:
        match result:
            case Ok(value):
                values.append(value)
            case Err():
                return result
    return Ok(values)


def partition_results(results: Iterable[Result[T, E]]) -> tuple[list[T], list[E]]:
    """Separate successes from failures."""
    successes: list[T] = []
    failures: list[E] = []
    for result in results:
        match result:
            case Ok(value):
                successes.append(value)
            case Err(error):
                failures.append(error)
    return successes, failures


__all__ = [
    "Ok",
    "Err",
    "Result",
    "Some",
    "NOTHING",
    "Option",
    "is_result",
    "try_result",
    "collect_results",
    "partition_results",
]
