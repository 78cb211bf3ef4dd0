"""
Typed client boundary.

The client side of a contract: start and execute workflows, and talk to a
running workflow through signals, queries and updates, with the same boundary
validation the worker side applies. Input is validated before anything is
sent to the runtime; outputs are validated after they come back.

Every call returns ``Future[Result[value, ContractError]]``, so callers work
with the exception-free channel:

    >>> outcome = await client.execute_workflow("processOrder", order).settle()   # doctest: +SKIP
    >>> (await client.execute_workflow("processOrder", order)).match(           # doctest: +SKIP
    ...     ok=lambda receipt: receipt.status,
    ...     error=lambda error: error.to_dict(),
    ... )

Failures of the runtime client itself arrive as ``RuntimeClientError`` with
the original exception as ``cause``. Cancellation is never converted.

Architecture:
    ::

        TypedClient(contract, starter)
          ├── start_workflow(name, raw)    → TypedWorkflowHandle
          ├── execute_workflow(name, raw)  → output
          └── get_handle(name, workflow_id)
                 TypedWorkflowHandle
                   ├── result()
                   ├── query(name, raw)
                   ├── signal(name, raw)
                   └── update(name, raw)

        WorkflowStarter  ← protocol implemented by the runtime adapter
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol, TypeVar

from taskcontract.contract.definitions import ContractDefinition, OperationDefinition, WorkflowDefinition
from taskcontract.contract.schema import Rejected, validate
from taskcontract.core.errors import (
    ContractError,
    DefinitionNotFoundError,
    InputValidationError,
    OperationKind,
    OutputValidationError,
    RuntimeClientError,
)
from taskcontract.core.future import Future
from taskcontract.core.logging import get_logger
from taskcontract.core.result import Result

logger = get_logger(__name__)

T = TypeVar("T")


class WorkflowStarter(Protocol):
    """The orchestration runtime's client, reduced to what the typed client needs."""

    def start(self, workflow: str, arg: Any, *, task_queue: str, **options: Any) -> Awaitable[str]:
        """Start a run and return its workflow id."""
        ...

    def execute(self, workflow: str, arg: Any, *, task_queue: str, **options: Any) -> Awaitable[Any]:
        """Start a run and wait for its raw result."""
        ...

    def result(self, workflow_id: str) -> Awaitable[Any]: ...

    def query(self, workflow_id: str, name: str, arg: Any) -> Awaitable[Any]: ...

    def signal(self, workflow_id: str, name: str, arg: Any) -> Awaitable[None]: ...

    def update(self, workflow_id: str, name: str, arg: Any) -> Awaitable[Any]: ...


async def _call_runtime(operation: str, call: Callable[[], Awaitable[T]]) -> T:
    try:
        return await call()
    except asyncio.CancelledError:
        raise
    except ContractError:
        raise
    except Exception as exc:
        logger.warning("client.runtime_failed", operation=operation, error=str(exc))
        raise RuntimeClientError(operation, exc) from exc


async def _check_input(
    definition: OperationDefinition | WorkflowDefinition,
    name: str,
    kind: OperationKind,
    raw: Any,
) -> Any:
    outcome = await validate(definition.input, raw)
    if isinstance(outcome, Rejected):
        raise InputValidationError(name, outcome.issues, kind=kind)
    return outcome.value


async def _check_output(
    definition: OperationDefinition | WorkflowDefinition,
    name: str,
    kind: OperationKind,
    raw: Any,
) -> Any:
    if definition.output is None:
        return None
    outcome = await validate(definition.output, raw)
    if isinstance(outcome, Rejected):
        raise OutputValidationError(name, outcome.issues, kind=kind)
    return outcome.value


def _attempt(thunk: Callable[[], Awaitable[T]]) -> Future[Result[T, ContractError]]:
    return Future.attempt(thunk, catch=ContractError)


class TypedWorkflowHandle:
    """Handle to one workflow run, validating every message in both directions."""

    def __init__(
        self,
        starter: WorkflowStarter,
        workflow: str,
        definition: WorkflowDefinition,
        workflow_id: str,
    ):
        self._starter = starter
        self.workflow = workflow
        self.definition = definition
        self.workflow_id = workflow_id

    def _operation(self, kind: OperationKind, name: str) -> OperationDefinition:
        operations: Mapping[str, OperationDefinition] = {
            OperationKind.SIGNAL: self.definition.signals,
            OperationKind.QUERY: self.definition.queries,
            OperationKind.UPDATE: self.definition.updates,
        }[kind]
        definition = operations.get(name)
        if definition is None:
            raise DefinitionNotFoundError(name, operations.keys(), kind=kind).with_context(
                workflow=self.workflow, operation=name
            )
        return definition

    def result(self) -> Future[Result[Any, ContractError]]:
        async def run() -> Any:
            raw = await _call_runtime("result", lambda: self._starter.result(self.workflow_id))
            return await _check_output(self.definition, self.workflow, OperationKind.WORKFLOW, raw)

        return _attempt(run)

    def query(self, name: str, raw: Any) -> Future[Result[Any, ContractError]]:
        async def run() -> Any:
            definition = self._operation(OperationKind.QUERY, name)
            arg = await _check_input(definition, name, OperationKind.QUERY, raw)
            returned = await _call_runtime(
                "query", lambda: self._starter.query(self.workflow_id, name, arg)
            )
            return await _check_output(definition, name, OperationKind.QUERY, returned)

        return _attempt(run)

    def signal(self, name: str, raw: Any) -> Future[Result[None, ContractError]]:
        async def run() -> None:
            definition = self._operation(OperationKind.SIGNAL, name)
            arg = await _check_input(definition, name, OperationKind.SIGNAL, raw)
            await _call_runtime("signal", lambda: self._starter.signal(self.workflow_id, name, arg))

        return _attempt(run)

    def update(self, name: str, raw: Any) -> Future[Result[Any, ContractError]]:
        async def run() -> Any:
            definition = self._operation(OperationKind.UPDATE, name)
            arg = await _check_input(definition, name, OperationKind.UPDATE, raw)
            returned = await _call_runtime(
                "update", lambda: self._starter.update(self.workflow_id, name, arg)
            )
            return await _check_output(definition, name, OperationKind.UPDATE, returned)

        return _attempt(run)

    def __repr__(self) -> str:
        return f"TypedWorkflowHandle({self.workflow}, id={self.workflow_id!r})"


class TypedClient:
    """Contract-aware wrapper around a ``WorkflowStarter``."""

    def __init__(self, contract: ContractDefinition, starter: WorkflowStarter):
        self.contract = contract
        self._starter = starter

    @property
    def task_queue(self) -> str:
        return self.contract.task_queue

    def start_workflow(
        self, workflow: str, raw: Any, **options: Any
    ) -> Future[Result[TypedWorkflowHandle, ContractError]]:
        """Validate ``raw`` and start ``workflow``; resolves to a typed handle."""

        async def run() -> TypedWorkflowHandle:
            definition = self.contract.workflow(workflow)
            arg = await _check_input(definition, workflow, OperationKind.WORKFLOW, raw)
            workflow_id = await _call_runtime(
                "start",
                lambda: self._starter.start(workflow, arg, task_queue=self.task_queue, **options),
            )
            logger.info(
                "client.workflow_started",
                task_queue=self.task_queue,
                workflow=workflow,
                workflow_id=workflow_id,
            )
            return TypedWorkflowHandle(self._starter, workflow, definition, workflow_id)

        return _attempt(run)

    def execute_workflow(self, workflow: str, raw: Any, **options: Any) -> Future[Result[Any, ContractError]]:
        """Validate ``raw``, run ``workflow`` to completion and validate its output."""

        async def run() -> Any:
            definition = self.contract.workflow(workflow)
            arg = await _check_input(definition, workflow, OperationKind.WORKFLOW, raw)
            returned = await _call_runtime(
                "execute",
                lambda: self._starter.execute(workflow, arg, task_queue=self.task_queue, **options),
            )
            return await _check_output(definition, workflow, OperationKind.WORKFLOW, returned)

        return _attempt(run)

    def get_handle(self, workflow: str, workflow_id: str) -> Future[Result[TypedWorkflowHandle, ContractError]]:
        """Typed handle for an existing run of ``workflow``."""

        async def run() -> TypedWorkflowHandle:
            definition = self.contract.workflow(workflow)
            return TypedWorkflowHandle(self._starter, workflow, definition, workflow_id)

        return _attempt(run)

    def __repr__(self) -> str:
        return f"TypedClient({self.task_queue})"


__all__ = [
    "WorkflowStarter",
    "TypedClient",
    "TypedWorkflowHandle",
]
