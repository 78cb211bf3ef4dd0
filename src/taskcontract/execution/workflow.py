"""Workflow wrapper: validated entry point plus signal/query/update handlers.

``declare_workflow`` binds a workflow implementation to its contract
entry.  The runtime calls ``execute(raw)``; the wrapper validates the
input, hands the implementation a ``WorkflowContext`` whose
``activities`` attribute is the typed activity proxy, and validates the
output on the way out.  Signals, queries and updates declared for the
workflow are dispatched through their own ``Dispatcher`` so they get
the same validate-invoke-validate pipeline as activities.

ARCHITECTURE
────────────
::

    WorkflowHandler
      ├── .execute(raw, info)   ─ workflow run (kind=workflow)
      ├── .signal(name, raw)    ─ Dispatcher(kind=signal), returns None
      ├── .query(name, raw)     ─ Dispatcher(kind=query)
      └── .update(name, raw)    ─ Dispatcher(kind=update)

    implementation(context, value)
      context.activities.chargeCard(...)   ─ ActivityProxy
      context.workflow / .task_queue / .info

Tags:
    taskcontract, execution, workflow, signals, queries, updates

Doc-Types:
    api-reference
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from taskcontract.contract.definitions import ContractDefinition, WorkflowDefinition
from taskcontract.core.errors import OperationKind
from taskcontract.core.logging import LogContext, get_logger
from taskcontract.core.settings import OrphanPolicy
from taskcontract.execution.dispatcher import Dispatcher
from taskcontract.execution.proxy import (
    ActivityInvoker,
    ActivityOptions,
    ActivityProxy,
    create_activity_proxy,
)
from taskcontract.execution.registry import BoundOperation, EffectiveTable, build_effective_table

logger = get_logger(__name__)

WorkflowImplementation = Callable[["WorkflowContext", Any], Any]


@dataclass(frozen=True)
class WorkflowContext:
    """What a workflow implementation receives alongside its validated input."""

    activities: ActivityProxy
    workflow: str
    task_queue: str
    info: Mapping[str, Any] = field(default_factory=dict)


class WorkflowHandler:
    """Validated runtime entry points for one workflow."""

    def __init__(
        self,
        contract: ContractDefinition,
        name: str,
        implementation: WorkflowImplementation,
        activities: ActivityProxy,
        signals: Dispatcher,
        queries: Dispatcher,
        updates: Dispatcher,
    ):
        self.contract = contract
        self.name = name
        self.definition: WorkflowDefinition = contract.workflow(name)
        self.implementation = implementation
        self.activities = activities
        self._dispatchers = MappingProxyType(
            {
                OperationKind.SIGNAL: signals,
                OperationKind.QUERY: queries,
                OperationKind.UPDATE: updates,
            }
        )

    @property
    def task_queue(self) -> str:
        return self.contract.task_queue

    def dispatcher(self, kind: OperationKind) -> Dispatcher:
        return self._dispatchers[kind]

    async def execute(self, raw: Any, info: Mapping[str, Any] | None = None) -> Any:
        """Run the workflow.

        Raises:
            InputValidationError: ``raw`` rejected by the workflow input schema
            ActivityExecutionError: The implementation failed (raised or ``Err``)
            OutputValidationError: The workflow result violates its output schema
        """
        context = WorkflowContext(
            activities=self.activities,
            workflow=self.name,
            task_queue=self.task_queue,
            info=MappingProxyType(dict(info or {})),
        )
        bound = BoundOperation(
            self.name,
            OperationKind.WORKFLOW,
            self.definition,
            functools.partial(self.implementation, context),
        )
        table = EffectiveTable(
            self.task_queue, {self.name: bound}, context=self.name, kind=OperationKind.WORKFLOW
        )
        async with LogContext(task_queue=self.task_queue, workflow=self.name):
            return await Dispatcher(table).invoke(self.name, raw)

    async def signal(self, name: str, raw: Any) -> None:
        await self._dispatchers[OperationKind.SIGNAL].invoke(name, raw)

    async def query(self, name: str, raw: Any) -> Any:
        return await self._dispatchers[OperationKind.QUERY].invoke(name, raw)

    async def update(self, name: str, raw: Any) -> Any:
        return await self._dispatchers[OperationKind.UPDATE].invoke(name, raw)

    def __repr__(self) -> str:
        return f"WorkflowHandler({self.task_queue}/{self.name})"


def declare_workflow(
    contract: ContractDefinition,
    name: str,
    implementation: WorkflowImplementation,
    *,
    invoker: ActivityInvoker,
    signals: Mapping[str, Callable[..., Any]] | None = None,
    queries: Mapping[str, Callable[..., Any]] | None = None,
    updates: Mapping[str, Callable[..., Any]] | None = None,
    activity_options: ActivityOptions | None = None,
    orphan_policy: OrphanPolicy | str | None = None,
) -> WorkflowHandler:
    """Bind ``implementation`` to workflow ``name`` of ``contract``.

    Every signal, query and update the workflow declares needs a handler;
    a missing one raises ``MissingImplementationError`` here, before the
    workflow ever runs.

    Raises:
        WorkflowNotFoundError: ``name`` is not declared in the contract
        RegistrationError: A signal/query/update handler is missing or orphaned
    """
    contract.workflow(name)

    def table(kind: OperationKind, handlers: Mapping[str, Callable[..., Any]] | None) -> Dispatcher:
        return Dispatcher(
            build_effective_table(
                contract,
                handlers or {},
                workflow=name,
                kind=kind,
                orphan_policy=orphan_policy,
            )
        )

    handler = WorkflowHandler(
        contract,
        name,
        implementation,
        activities=create_activity_proxy(contract, name, invoker, activity_options),
        signals=table(OperationKind.SIGNAL, signals),
        queries=table(OperationKind.QUERY, queries),
        updates=table(OperationKind.UPDATE, updates),
    )
    logger.debug("workflow.declared", task_queue=contract.task_queue, workflow=name)
    return handler


__all__ = [
    "WorkflowContext",
    "WorkflowHandler",
    "WorkflowImplementation",
    "declare_workflow",
]
