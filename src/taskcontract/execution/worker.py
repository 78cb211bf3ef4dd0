"""Worker registration boundary.

A worker runtime registers activities as one flat ``name → handler``
map per task queue.  ``declare_activities_handler`` takes the flat map of
implementations an operator supplies (global and workflow-local
activities together), builds the effective table of every context, and
flattens them back into validated handlers.

ARCHITECTURE
────────────
::

    declare_activities_handler(contract, implementations)
      ├── tables[None]            ─ global context
      ├── tables["processOrder"]  ─ global ◄ local
      └── activities              ─ flat name → async handler(raw)
            precedence: global definition first, then the
                        first declaring workflow; later ones warn

    create_worker_registration(contract, activities, workflows)
      └── WorkerRegistration(task_queue, activities, workflows)

Tags:
    taskcontract, execution, worker, registration

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from taskcontract.contract.definitions import ContractDefinition
from taskcontract.core.errors import (
    DefinitionNotFoundError,
    OperationKind,
    OrphanImplementationError,
    RegistrationError,
    WorkflowNotFoundError,
)
from taskcontract.core.logging import get_logger
from taskcontract.core.settings import OrphanPolicy, get_settings
from taskcontract.execution.dispatcher import Dispatcher
from taskcontract.execution.registry import (
    EffectiveTable,
    ImplementationFactory,
    Implementations,
    build_effective_table,
    effective_activity_definitions,
    resolve_implementations,
)
from taskcontract.execution.workflow import WorkflowHandler

logger = get_logger(__name__)

ActivityHandlerFn = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class ActivitiesHandler:
    """Validated activity handlers for one task queue."""

    task_queue: str
    tables: Mapping[str | None, EffectiveTable]
    activities: Mapping[str, ActivityHandlerFn]

    def dispatcher(self, workflow: str | None = None) -> Dispatcher:
        """Dispatcher for one context (``None`` = global)."""
        try:
            return Dispatcher(self.tables[workflow])
        except KeyError:
            raise WorkflowNotFoundError(
                str(workflow), [name for name in self.tables if name is not None]
            ) from None

    async def invoke(self, name: str, raw: Any) -> Any:
        """Run ``name`` through the flat handler map, as the worker runtime would."""
        handler = self.activities.get(name)
        if handler is None:
            raise DefinitionNotFoundError(name, self.activities.keys()).with_context(
                task_queue=self.task_queue, operation=name
            )
        return await handler(raw)


def declare_activities_handler(
    contract: ContractDefinition,
    implementations: Implementations | ImplementationFactory,
    *,
    dependencies: Any = None,
    orphan_policy: OrphanPolicy | str | None = None,
) -> ActivitiesHandler:
    """Bind a flat implementation map to every activity context of ``contract``.

    Raises:
        MissingImplementationError: A declared activity has no implementation
        OrphanImplementationError: An implementation matches no activity (policy ``error``)
    """
    policy = OrphanPolicy(orphan_policy or get_settings().orphan_policy)
    supplied = resolve_implementations(implementations, dependencies)
    contexts: list[str | None] = [None, *contract.workflows]

    declared: set[str] = set()
    for context in contexts:
        declared.update(effective_activity_definitions(contract, context))

    orphans = sorted(name for name in supplied if name not in declared)
    if orphans:
        if policy is OrphanPolicy.ERROR:
            raise OrphanImplementationError(orphans).with_context(task_queue=contract.task_queue)
        logger.warning(
            "registration.orphan_implementations",
            task_queue=contract.task_queue,
            orphans=orphans,
        )

    tables: dict[str | None, EffectiveTable] = {}
    for context in contexts:
        names = effective_activity_definitions(contract, context)
        tables[context] = build_effective_table(
            contract,
            {name: impl for name, impl in supplied.items() if name in names},
            workflow=context,
            orphan_policy=OrphanPolicy.ERROR,
        )

    handlers: dict[str, ActivityHandlerFn] = {}
    owners: dict[str, str | None] = {}
    for name in tables[None]:
        handlers[name] = Dispatcher(tables[None]).handler(name)
        owners[name] = None
    for workflow_name, workflow in contract.workflows.items():
        dispatcher = Dispatcher(tables[workflow_name])
        for name in workflow.activities:
            if name in owners:
                owner = owners[name]
                logger.warning(
                    "registration.activity_conflict",
                    task_queue=contract.task_queue,
                    activity=name,
                    kept="global" if owner is None else owner,
                    ignored=workflow_name,
                )
                continue
            handlers[name] = dispatcher.handler(name)
            owners[name] = workflow_name

    logger.info(
        "registration.activities_declared",
        task_queue=contract.task_queue,
        activities=sorted(handlers),
    )
    return ActivitiesHandler(
        task_queue=contract.task_queue,
        tables=MappingProxyType(tables),
        activities=MappingProxyType(handlers),
    )


@dataclass(frozen=True)
class WorkerRegistration:
    """Everything a worker runtime needs to serve one task queue."""

    task_queue: str
    activities: Mapping[str, ActivityHandlerFn]
    workflows: Mapping[str, WorkflowHandler] = field(default_factory=dict)


def create_worker_registration(
    contract: ContractDefinition,
    activities: ActivitiesHandler | None = None,
    workflows: Mapping[str, WorkflowHandler] | Iterable[WorkflowHandler] = (),
) -> WorkerRegistration:
    """Assemble activities and workflow handlers for one task queue.

    A worker may serve a subset of the contract's workflows, but every
    handler must belong to ``contract``.

    Raises:
        RegistrationError: Task queues disagree, or a handler's key and workflow differ
        OrphanImplementationError: A workflow handler is not declared by the contract
    """
    if isinstance(workflows, Mapping):
        by_name = dict(workflows)
    else:
        by_name = {handler.name: handler for handler in workflows}

    orphans = [name for name in by_name if name not in contract.workflows]
    if orphans:
        raise OrphanImplementationError(orphans, kind=OperationKind.WORKFLOW).with_context(
            task_queue=contract.task_queue
        )
    for name, handler in by_name.items():
        if handler.name != name:
            raise RegistrationError(f"Workflow handler for '{handler.name}' registered as '{name}'")
        if handler.task_queue != contract.task_queue:
            raise RegistrationError(
                f"Workflow '{name}' belongs to task queue '{handler.task_queue}', "
                f"not '{contract.task_queue}'"
            )
    if activities is not None and activities.task_queue != contract.task_queue:
        raise RegistrationError(
            f"Activities belong to task queue '{activities.task_queue}', not '{contract.task_queue}'"
        )

    registration = WorkerRegistration(
        task_queue=contract.task_queue,
        activities=activities.activities if activities is not None else MappingProxyType({}),
        workflows=MappingProxyType(by_name),
    )
    logger.info(
        "worker.registration_created",
        task_queue=contract.task_queue,
        workflows=sorted(by_name),
        activities=sorted(registration.activities),
    )
    return registration


__all__ = [
    "ActivitiesHandler",
    "ActivityHandlerFn",
    "WorkerRegistration",
    "declare_activities_handler",
    "create_worker_registration",
]
