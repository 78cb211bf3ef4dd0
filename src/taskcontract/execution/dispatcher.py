"""Dispatcher: resolve, validate input, invoke, validate output.

Manifesto:
Every named operation that crosses the boundary between the
orchestration runtime and an implementation goes through the same
four-step pipeline.  Untrusted input never reaches an implementation
unvalidated, a malformed output never reaches the caller, and every
implementation failure leaves as one ``ActivityExecutionError`` shape.

ARCHITECTURE
────────────
::

    invoke(name, raw)
      1. resolve          table.lookup(name)          → DefinitionNotFoundError
      2. validate input   definition.input            → InputValidationError
                          (implementation NOT called)
      3. invoke           implementation(value)
                          raise / Err(cause)          → ActivityExecutionError
      4. validate output  definition.output           → OutputValidationError
                          (skipped when output is None; returns None)
      5. return the *accepted* output value

    invoke_future(name, raw)  → Future[out]           (failure as Err)
    invoke_result(name, raw)  → Future[Result[out, ContractError]]

The dispatcher holds no per-call state: the table is immutable, so a
single instance serves any number of concurrent invocations.

Tags:
    taskcontract, execution, dispatcher, validation, boundary

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

from taskcontract.contract.schema import Rejected, validate
from taskcontract.core.errors import (
    ContractError,
    InputValidationError,
    OutputValidationError,
)
from taskcontract.core.future import Future
from taskcontract.core.logging import get_logger
from taskcontract.core.result import Err, Result
from taskcontract.execution.normalize import normalize_error, settle_return
from taskcontract.execution.registry import BoundOperation, EffectiveTable

logger = get_logger(__name__)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


class Dispatcher:
    """Runs named operations from one ``EffectiveTable``.

    Example:
        >>> dispatcher = Dispatcher(register_handler(contract, {"double": double}))
        >>> await dispatcher.invoke("double", {"n": 3})
        Number(n=6.0)
    """

    __slots__ = ("_table",)

    def __init__(self, table: EffectiveTable):
        self._table = table

    @property
    def table(self) -> EffectiveTable:
        return self._table

    @property
    def task_queue(self) -> str:
        return self._table.task_queue

    def names(self) -> list[str]:
        return self._table.names()

    def _context(self, bound: BoundOperation) -> dict[str, Any]:
        return {
            "task_queue": self._table.task_queue,
            "workflow": self._table.context,
            "operation": bound.name,
            "kind": bound.kind.value,
        }

    async def invoke(self, name: str, raw: Any) -> Any:
        """Run the full pipeline for ``name`` and return the accepted output.

        Raises:
            DefinitionNotFoundError: ``name`` is not in the effective table
            InputValidationError: ``raw`` was rejected; nothing was called
            ActivityExecutionError: The implementation failed
            OutputValidationError: The implementation returned a non-conforming value
        """
        bound = self._table.lookup(name)
        context = self._context(bound)
        log = logger.bind(**context)
        started = time.perf_counter()
        log.debug("operation.dispatched")

        accepted_input = await validate(bound.definition.input, raw)
        if isinstance(accepted_input, Rejected):
            log.warning(
                "operation.input_rejected",
                issues=[issue.describe() for issue in accepted_input.issues],
            )
            raise InputValidationError(
                name, accepted_input.issues, kind=bound.kind
            ).with_context(**context)

        try:
            outcome = await settle_return(bound.implementation(accepted_input.value))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            outcome = Err(exc)

        if isinstance(outcome, Err):
            if isinstance(outcome.error, asyncio.CancelledError):
                raise outcome.error
            error = normalize_error(outcome.error, name)
            error.with_context(**context)
            log.warning(
                "operation.failed",
                code=error.code,
                error=error.message,
                retryable=error.retryable,
                duration_ms=_elapsed_ms(started),
            )
            raise error

        output_schema = bound.definition.output
        if output_schema is None:
            log.info("operation.completed", duration_ms=_elapsed_ms(started))
            return None

        accepted_output = await validate(output_schema, outcome.value)
        if isinstance(accepted_output, Rejected):
            log.error(
                "operation.output_rejected",
                issues=[issue.describe() for issue in accepted_output.issues],
                duration_ms=_elapsed_ms(started),
            )
            raise OutputValidationError(
                name, accepted_output.issues, kind=bound.kind
            ).with_context(**context)

        log.info("operation.completed", duration_ms=_elapsed_ms(started))
        return accepted_output.value

    def invoke_future(self, name: str, raw: Any) -> Future[Any]:
        """Same pipeline as ``invoke``; failures settle the future as ``Err``."""
        return Future.from_async(lambda: self.invoke(name, raw))

    def invoke_result(self, name: str, raw: Any) -> Future[Result[Any, ContractError]]:
        """Same pipeline as ``invoke``; every taxonomy error arrives as an embedded ``Err``."""
        return Future.attempt(lambda: self.invoke(name, raw), catch=ContractError)

    def handler(self, name: str) -> Callable[[Any], Awaitable[Any]]:
        """Raw-in / raw-out coroutine function for one operation, as a runtime registers it."""
        self._table.lookup(name)

        async def handle(raw: Any) -> Any:
            return await self.invoke(name, raw)

        handle.__name__ = name
        handle.__qualname__ = f"{self._table.task_queue}.{name}"
        return handle

    def __repr__(self) -> str:
        return f"Dispatcher({self._table!r})"


__all__ = ["Dispatcher"]
