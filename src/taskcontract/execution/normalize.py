"""Error normalizer: one failure shape for both authoring conventions.

Manifesto:
An activity author may report failure by raising, or by returning an
``Err`` (directly, from a coroutine, or inside a ``Future``).  The
orchestration runtime must not care which: its retry policy only ever
sees ``ActivityExecutionError{code, message, cause}``.  This module is
the single seam where both conventions meet.

ARCHITECTURE
────────────
::

    implementation return value
      │
      ├── classify_return()  → ReturnStyle.PLAIN | AWAITABLE | FUTURE | RESULT
      │
      └── settle_return()    → Result
              Ok(value)      → output validation
              Err(cause)     → normalize_error(cause) → ActivityExecutionError

    raised exception ───────────► normalize_error(exc)  → ActivityExecutionError

normalize_error rules, first match wins:
    1. already an ActivityExecutionError   → a copy with the same fields
    2. mapping with ``code`` / ``message`` → read those keys
    3. object with a string ``code``       → keep it
    4. anything else                       → code ``UNKNOWN``
The original value is always kept as ``cause``; ``retryable`` is read
from the cause when it carries a boolean one.

Tags:
    taskcontract, execution, error-normalization, result-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import replace
from enum import Enum
from typing import Any

from taskcontract.core.errors import UNKNOWN_CODE, ActivityExecutionError
from taskcontract.core.future import Future
from taskcontract.core.result import Err, Ok, Result, is_result


class ReturnStyle(str, Enum):
    """How an implementation handed back its outcome."""

    PLAIN = "plain"
    AWAITABLE = "awaitable"
    FUTURE = "future"
    RESULT = "result"


def classify_return(value: Any) -> ReturnStyle:
    """Tag an implementation's return value."""
    if isinstance(value, Future):
        return ReturnStyle.FUTURE
    if is_result(value):
        return ReturnStyle.RESULT
    if inspect.isawaitable(value):
        return ReturnStyle.AWAITABLE
    return ReturnStyle.PLAIN


async def settle_return(value: Any) -> Result[Any, Any]:
    """
    Reduce any supported return style to a single ``Result``.

    A ``Future`` resolving to a ``Result`` is flattened to that ``Result``;
    a coroutine is awaited and its value classified again. Exceptions raised
    while awaiting propagate to the caller.
    """
    match classify_return(value):
        case ReturnStyle.RESULT:
            return value
        case ReturnStyle.FUTURE:
            outcome = await value.settle()
            if isinstance(outcome, Ok) and is_result(outcome.value):
                return outcome.value
            return outcome
        case ReturnStyle.AWAITABLE:
            return await settle_return(await value)
        case _:
            return Ok(value)


def _field(error: Any, key: str) -> Any:
    if isinstance(error, Mapping):
        return error.get(key)
    return getattr(error, key, None)


def _message_for(error: Any) -> str:
    message = _field(error, "message")
    if isinstance(message, str) and message:
        return message
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    if isinstance(error, str):
        return error
    return repr(error)


def normalize_error(error: Any, operation: str | None = None) -> ActivityExecutionError:
    """Wrap any failure value in the canonical ``ActivityExecutionError``.

    Example:
        >>> normalize_error({"code": "DECLINED", "message": "card declined"}).to_failure()
        {'code': 'DECLINED', 'message': 'card declined', 'cause': {'code': 'DECLINED', 'message': 'card declined'}}
        >>> normalize_error(ValueError("bad")).code
        'UNKNOWN'
    """
    if isinstance(error, ActivityExecutionError):
        return _copy_error(error, operation)

    code = _field(error, "code")
    if not isinstance(code, str) or not code:
        code = UNKNOWN_CODE

    retryable = _field(error, "retryable")
    if not isinstance(retryable, bool):
        retryable = None

    normalized = ActivityExecutionError(
        code,
        _message_for(error),
        cause=error,
        operation=operation,
        retryable=retryable,
    )
    if operation is not None:
        normalized.with_context(operation=operation)
    return normalized


def _copy_error(error: ActivityExecutionError, operation: str | None) -> ActivityExecutionError:
    # callers enrich the result, so a shared instance must stay untouched
    copied = ActivityExecutionError(
        error.code,
        error.message,
        cause=error.cause,
        operation=error.operation or operation,
        category=error.category,
        retryable=error.retryable,
        context=replace(error.context, metadata=dict(error.context.metadata)),
    )
    copied.__cause__ = error.__cause__
    return copied.with_traceback(error.__traceback__)


def failure_from_result(result: Result[Any, Any], operation: str | None = None) -> ActivityExecutionError | None:
    """``None`` for ``Ok``; the normalized error for ``Err``."""
    match result:
        case Err(error):
            return normalize_error(error, operation)
        case _:
            return None


__all__ = [
    "ReturnStyle",
    "classify_return",
    "settle_return",
    "normalize_error",
    "failure_from_result",
]
