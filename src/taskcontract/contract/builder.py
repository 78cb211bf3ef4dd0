"""
Builders for contract definitions.

Thin, keyword-friendly constructors around the frozen dataclasses in
``definitions``. Operation entries may be given either as definition objects
or as plain ``{"input": ..., "output": ...}`` mappings, which keeps contracts
that are declared as nested literals readable.

Examples:
    >>> from pydantic import BaseModel
    >>> class Number(BaseModel):
    ...     n: float
    >>> contract = define_contract(
    ...     "math",
    ...     workflows={"compute": define_workflow(Number, Number)},
    ...     activities={"double": define_activity(Number, Number)},
    ... )
    >>> contract.task_queue
    'math'
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from taskcontract.contract.definitions import (
    ActivityDefinition,
    ContractDefinition,
    OperationDefinition,
    QueryDefinition,
    SignalDefinition,
    UpdateDefinition,
    WorkflowDefinition,
)
from taskcontract.core.errors import ContractDefinitionError


def define_activity(input: Any, output: Any = None) -> ActivityDefinition:
    return ActivityDefinition(input, output)


def define_signal(input: Any) -> SignalDefinition:
    return SignalDefinition(input)


def define_query(input: Any, output: Any) -> QueryDefinition:
    return QueryDefinition(input, output)


def define_update(input: Any, output: Any) -> UpdateDefinition:
    return UpdateDefinition(input, output)


def _entries(
    entries: Mapping[str, Any] | None,
    definition_type: type[OperationDefinition],
) -> dict[str, Any]:
    if not entries:
        return {}
    built: dict[str, Any] = {}
    for name, entry in entries.items():
        if isinstance(entry, definition_type):
            built[name] = entry
        elif isinstance(entry, Mapping):
            unknown = set(entry) - {"input", "output"}
            if unknown or "input" not in entry:
                raise ContractDefinitionError(
                    f"'{name}' must declare 'input' (and optionally 'output'), "
                    f"got keys {sorted(entry)}"
                )
            if definition_type is SignalDefinition:
                if entry.get("output") is not None:
                    raise ContractDefinitionError(f"Signal '{name}' cannot declare an output")
                built[name] = SignalDefinition(entry["input"])
            else:
                built[name] = definition_type(entry["input"], entry.get("output"))
        else:
            # Let the definition's own validation report the bad entry
            built[name] = entry
    return built


def define_workflow(
    input: Any,
    output: Any,
    *,
    activities: Mapping[str, Any] | None = None,
    signals: Mapping[str, Any] | None = None,
    queries: Mapping[str, Any] | None = None,
    updates: Mapping[str, Any] | None = None,
) -> WorkflowDefinition:
    """Declare a workflow with its local activities, signals, queries and updates."""
    return WorkflowDefinition(
        input=input,
        output=output,
        activities=_entries(activities, ActivityDefinition),
        signals=_entries(signals, SignalDefinition),
        queries=_entries(queries, QueryDefinition),
        updates=_entries(updates, UpdateDefinition),
    )


def define_contract(
    task_queue: str,
    *,
    workflows: Mapping[str, WorkflowDefinition],
    activities: Mapping[str, Any] | None = None,
) -> ContractDefinition:
    """Declare the contract of one task queue."""
    return ContractDefinition(
        task_queue=task_queue,
        workflows=dict(workflows or {}),
        activities=_entries(activities, ActivityDefinition),
    )


__all__ = [
    "define_activity",
    "define_signal",
    "define_query",
    "define_update",
    "define_workflow",
    "define_contract",
]
