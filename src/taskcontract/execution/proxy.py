"""Typed activity proxy for workflow code.

Workflow code calls activities through the orchestration runtime's own
"execute activity" primitive.  The proxy puts boundary validation on both
sides of that call: input is validated before anything is scheduled, and
the runtime's returned value is validated against the declared output
before workflow code sees it.

ARCHITECTURE
────────────
::

    proxy = create_activity_proxy(contract, "processOrder", invoker)
    await proxy.chargeCard({"amount": 10})
       │
       ├── effective activities of processOrder (global ◄ local)
       ├── validate input            → InputValidationError
       ├── invoker("chargeCard", value, options)   ← runtime primitive
       └── validate output           → OutputValidationError

    ActivityOptions are handed to the invoker untouched; the runtime owns
    timeouts and retries.

Tags:
    taskcontract, execution, proxy, activities, workflow-authoring

Doc-Types:
    api-reference
"""

from __future__ import annotations

import dataclasses
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Protocol

from taskcontract.contract.definitions import ActivityDefinition, ContractDefinition
from taskcontract.contract.schema import Rejected, validate
from taskcontract.core.errors import (
    DefinitionNotFoundError,
    InputValidationError,
    OperationKind,
    OutputValidationError,
)
from taskcontract.core.future import Future
from taskcontract.core.logging import get_logger
from taskcontract.core.settings import get_settings
from taskcontract.execution.registry import effective_activity_definitions

logger = get_logger(__name__)


class UnknownActivityError(DefinitionNotFoundError, AttributeError):
    """Attribute access for an activity the workflow cannot see."""

    def __init__(self, name: str, available_names: Iterable[str] = (), **kwargs: Any):
        super().__init__(name, available_names, **kwargs)
        # AttributeError.__init__ resets ``name``
        self.name = name


def _default_start_to_close() -> timedelta:
    return timedelta(seconds=get_settings().activity_start_to_close_seconds)


@dataclass(frozen=True)
class ActivityOptions:
    """Per-call options passed through opaquely to the runtime."""

    start_to_close_timeout: timedelta | None = field(default_factory=_default_start_to_close)
    schedule_to_close_timeout: timedelta | None = None
    heartbeat_timeout: timedelta | None = None
    retry_policy: Mapping[str, Any] | None = None
    task_queue: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def merged(self, **overrides: Any) -> ActivityOptions:
        """Copy with ``overrides`` applied; unknown keys land in ``extra``."""
        known = {f.name for f in dataclasses.fields(self)} - {"extra"}
        direct = {k: v for k, v in overrides.items() if k in known}
        extra = {**self.extra, **{k: v for k, v in overrides.items() if k not in known}}
        return dataclasses.replace(self, **direct, extra=extra)


class ActivityInvoker(Protocol):
    """The runtime's primitive for scheduling one activity."""

    def __call__(self, name: str, validated_input: Any, options: ActivityOptions) -> Awaitable[Any]: ...


class ActivityProxy:
    """Attribute-per-activity view of a workflow's effective activities.

    Each call returns a ``Future`` of the accepted output, so it can be
    awaited directly or composed with ``map`` / ``flat_map``.
    """

    __slots__ = ("_task_queue", "_workflow", "_definitions", "_invoker", "_options")

    def __init__(
        self,
        task_queue: str,
        workflow: str | None,
        definitions: Mapping[str, ActivityDefinition],
        invoker: ActivityInvoker,
        options: ActivityOptions,
    ):
        self._task_queue = task_queue
        self._workflow = workflow
        self._definitions = definitions
        self._invoker = invoker
        self._options = options

    @property
    def options(self) -> ActivityOptions:
        return self._options

    def names(self) -> list[str]:
        return sorted(self._definitions)

    def with_options(self, **overrides: Any) -> ActivityProxy:
        """Copy of this proxy whose calls use merged options."""
        return ActivityProxy(
            self._task_queue,
            self._workflow,
            self._definitions,
            self._invoker,
            self._options.merged(**overrides),
        )

    def __getattr__(self, name: str) -> Callable[[Any], Future[Any]]:
        if name.startswith("__"):
            raise AttributeError(name)
        return self[name]

    def __getitem__(self, name: str) -> Callable[[Any], Future[Any]]:
        definition = self._definitions.get(name)
        if definition is None:
            raise UnknownActivityError(name, self._definitions.keys()).with_context(
                task_queue=self._task_queue, workflow=self._workflow, operation=name
            )

        def call(raw: Any) -> Future[Any]:
            return Future.from_async(lambda: self._execute(name, definition, raw))

        call.__name__ = name
        return call

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._definitions))

    async def _execute(self, name: str, definition: ActivityDefinition, raw: Any) -> Any:
        context = {
            "task_queue": self._task_queue,
            "workflow": self._workflow,
            "operation": name,
            "kind": OperationKind.ACTIVITY.value,
        }
        accepted = await validate(definition.input, raw)
        if isinstance(accepted, Rejected):
            raise InputValidationError(name, accepted.issues).with_context(**context)

        logger.debug("activity.scheduled", **context)
        returned = await self._invoker(name, accepted.value, self._options)

        if definition.output is None:
            return None
        checked = await validate(definition.output, returned)
        if isinstance(checked, Rejected):
            logger.error(
                "activity.output_rejected",
                issues=[issue.describe() for issue in checked.issues],
                **context,
            )
            raise OutputValidationError(name, checked.issues).with_context(**context)
        return checked.value

    def __repr__(self) -> str:
        return f"ActivityProxy({self._workflow or 'global'}, activities={self.names()})"


def create_activity_proxy(
    contract: ContractDefinition,
    workflow: str | None,
    invoker: ActivityInvoker,
    options: ActivityOptions | None = None,
) -> ActivityProxy:
    """Build the typed activity proxy for ``workflow`` (``None`` = global activities only).

    Raises:
        WorkflowNotFoundError: ``workflow`` is not declared in the contract
    """
    return ActivityProxy(
        contract.task_queue,
        workflow,
        effective_activity_definitions(contract, workflow),
        invoker,
        options or ActivityOptions(),
    )


__all__ = [
    "ActivityInvoker",
    "ActivityOptions",
    "ActivityProxy",
    "UnknownActivityError",
    "create_activity_proxy",
]
