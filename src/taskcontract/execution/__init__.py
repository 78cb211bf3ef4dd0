"""Execution -- registry, dispatcher, normalizer, proxy, workflow and worker boundaries.

Architecture::

    registry.py     contract + implementations → EffectiveTable (fail fast)
    normalize.py    raise / Err(cause) → ActivityExecutionError
    dispatcher.py   resolve → validate input → invoke → validate output
    proxy.py        typed activity proxy for workflow code
    workflow.py     validated workflow entry point + signal/query/update handlers
    worker.py       flat activity handlers and worker registration
"""

from taskcontract.execution.dispatcher import Dispatcher
from taskcontract.execution.normalize import (
    ReturnStyle,
    classify_return,
    normalize_error,
    settle_return,
)
from taskcontract.execution.proxy import (
    ActivityInvoker,
    ActivityOptions,
    ActivityProxy,
    UnknownActivityError,
    create_activity_proxy,
)
from taskcontract.execution.registry import (
    BoundOperation,
    EffectiveTable,
    OperationKind,
    build_effective_table,
    effective_activity_definitions,
    effective_definitions,
    register_handler,
)
from taskcontract.execution.worker import (
    ActivitiesHandler,
    WorkerRegistration,
    create_worker_registration,
    declare_activities_handler,
)
from taskcontract.execution.workflow import WorkflowContext, WorkflowHandler, declare_workflow

__all__ = [
    "Dispatcher",
    "ReturnStyle",
    "classify_return",
    "normalize_error",
    "settle_return",
    "ActivityInvoker",
    "ActivityOptions",
    "ActivityProxy",
    "UnknownActivityError",
    "create_activity_proxy",
    "BoundOperation",
    "EffectiveTable",
    "OperationKind",
    "build_effective_table",
    "effective_activity_definitions",
    "effective_definitions",
    "register_handler",
    "ActivitiesHandler",
    "WorkerRegistration",
    "create_worker_registration",
    "declare_activities_handler",
    "WorkflowContext",
    "WorkflowHandler",
    "declare_workflow",
]
