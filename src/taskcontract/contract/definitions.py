"""
Contract model.

A ``ContractDefinition`` is the immutable description of everything a task
queue exposes: its workflows, the activities shared by all of them ("global"
activities) and, per workflow, the local activities, signals, queries and
updates it accepts. It is built once at process start and never mutated.

Construction validates the shape eagerly so that a malformed contract fails at
import time with ``ContractDefinitionError`` rather than at dispatch time.

Architecture:
    ::

        ContractDefinition
        ├── task_queue: str
        ├── activities: {name: ActivityDefinition}        (global)
        └── workflows:  {name: WorkflowDefinition}
                         ├── input / output: Schema
                         ├── activities: {name: ActivityDefinition}  (local)
                         ├── signals:    {name: SignalDefinition}
                         ├── queries:    {name: QueryDefinition}
                         └── updates:    {name: UpdateDefinition}

    A local activity with the same name as a global one shadows it inside
    that workflow (see ``taskcontract.contract.helpers.get_workflow_activities``).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from taskcontract.contract.schema import Schema, as_schema
from taskcontract.core.errors import ContractDefinitionError, WorkflowNotFoundError

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def _coerce_schema(value: Any, *, slot: str, optional: bool = False) -> Schema | None:
    if value is None:
        if optional:
            return None
        raise ContractDefinitionError(f"Schema slot '{slot}' is required")
    try:
        return as_schema(value)
    except ContractDefinitionError as exc:
        raise ContractDefinitionError(f"Invalid schema for '{slot}': {exc.message}", cause=exc) from exc


def _check_name(name: Any, *, what: str) -> None:
    if not isinstance(name, str) or not name.strip():
        raise ContractDefinitionError(f"{what} name must be a non-empty string, got {name!r}")


def _freeze(
    entries: Mapping[str, Any] | None,
    expected: type,
    *,
    what: str,
) -> Mapping[str, Any]:
    if not entries:
        return _EMPTY
    if not isinstance(entries, Mapping):
        raise ContractDefinitionError(f"{what} definitions must be a mapping, got {type(entries).__name__}")
    frozen: dict[str, Any] = {}
    for name, definition in entries.items():
        _check_name(name, what=what)
        if not isinstance(definition, expected):
            raise ContractDefinitionError(
                f"{what} '{name}' must be a {expected.__name__}, got {type(definition).__name__}"
            )
        frozen[name] = definition
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class OperationDefinition:
    """Input schema and optional output schema of a named operation."""

    input: Any
    output: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", _coerce_schema(self.input, slot="input"))
        object.__setattr__(
            self, "output", _coerce_schema(self.output, slot="output", optional=True)
        )

    @property
    def fire_and_forget(self) -> bool:
        return self.output is None


@dataclass(frozen=True)
class ActivityDefinition(OperationDefinition):
    """An activity; ``output=None`` means fire-and-forget."""


@dataclass(frozen=True)
class SignalDefinition(OperationDefinition):
    """A signal never produces an output."""

    output: Any = field(default=None, init=False)


@dataclass(frozen=True)
class QueryDefinition(OperationDefinition):
    pass


@dataclass(frozen=True)
class UpdateDefinition(OperationDefinition):
    pass


@dataclass(frozen=True)
class WorkflowDefinition:
    """A workflow and the operations scoped to it."""

    input: Any
    output: Any
    activities: Mapping[str, ActivityDefinition] = field(default_factory=dict)
    signals: Mapping[str, SignalDefinition] = field(default_factory=dict)
    queries: Mapping[str, QueryDefinition] = field(default_factory=dict)
    updates: Mapping[str, UpdateDefinition] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", _coerce_schema(self.input, slot="workflow input"))
        object.__setattr__(self, "output", _coerce_schema(self.output, slot="workflow output"))
        object.__setattr__(
            self, "activities", _freeze(self.activities, ActivityDefinition, what="Activity")
        )
        object.__setattr__(self, "signals", _freeze(self.signals, SignalDefinition, what="Signal"))
        object.__setattr__(self, "queries", _freeze(self.queries, QueryDefinition, what="Query"))
        object.__setattr__(self, "updates", _freeze(self.updates, UpdateDefinition, what="Update"))


@dataclass(frozen=True)
class ContractDefinition:
    """Everything one task queue exposes."""

    task_queue: str
    workflows: Mapping[str, WorkflowDefinition]
    activities: Mapping[str, ActivityDefinition] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.task_queue, str) or not self.task_queue.strip():
            raise ContractDefinitionError(
                f"task_queue must be a non-empty string, got {self.task_queue!r}"
            )
        object.__setattr__(
            self, "workflows", _freeze(self.workflows, WorkflowDefinition, what="Workflow")
        )
        object.__setattr__(
            self, "activities", _freeze(self.activities, ActivityDefinition, what="Activity")
        )

    def workflow(self, name: str) -> WorkflowDefinition:
        """Look up a workflow, raising ``WorkflowNotFoundError``."""
        try:
            return self.workflows[name]
        except KeyError:
            raise WorkflowNotFoundError(name, self.workflows.keys()) from None


__all__ = [
    "OperationDefinition",
    "ActivityDefinition",
    "SignalDefinition",
    "QueryDefinition",
    "UpdateDefinition",
    "WorkflowDefinition",
    "ContractDefinition",
]
