"""
Contract inspection utilities.

Read-only helpers over a ``ContractDefinition``. The one with real semantics
is ``get_workflow_activities``: the effective activity set of a workflow is
the global set overwritten entry-by-entry by the workflow's local set, so a
local definition shadows a global one of the same name.
"""

from __future__ import annotations

from collections.abc import Sequence
from types import MappingProxyType
from typing import Any

from taskcontract.contract.definitions import ActivityDefinition, ContractDefinition
from taskcontract.core.errors import ContractDefinitionError


def get_workflow_names(contract: ContractDefinition) -> list[str]:
    return sorted(contract.workflows)


def get_all_activity_names(contract: ContractDefinition) -> list[str]:
    """Sorted, deduplicated activity names across global and every workflow."""
    names = set(contract.activities)
    for workflow in contract.workflows.values():
        names.update(workflow.activities)
    return sorted(names)


def get_workflow_activities(
    contract: ContractDefinition, workflow_name: str
) -> MappingProxyType[str, ActivityDefinition]:
    """
    Effective activities visible from ``workflow_name``.

    Global definitions first, then the workflow's local ones; on a name
    clash the local definition wins.

    Raises:
        WorkflowNotFoundError: The workflow is not declared in the contract
    """
    workflow = contract.workflow(workflow_name)
    merged: dict[str, ActivityDefinition] = dict(contract.activities)
    merged.update(workflow.activities)
    return MappingProxyType(merged)


def get_workflow_activity_names(contract: ContractDefinition, workflow_name: str) -> list[str]:
    return sorted(get_workflow_activities(contract, workflow_name))


def is_workflow_activity(contract: ContractDefinition, workflow_name: str, activity_name: str) -> bool:
    """True when ``activity_name`` is callable from the workflow, locally declared or global."""
    if workflow_name not in contract.workflows:
        return False
    return activity_name in get_workflow_activities(contract, workflow_name)


def has_workflow(contract: ContractDefinition, workflow_name: str) -> bool:
    return workflow_name in contract.workflows


def has_global_activity(contract: ContractDefinition, activity_name: str) -> bool:
    return activity_name in contract.activities


def get_contract_stats(contract: ContractDefinition) -> dict[str, int]:
    """
    Count the operations a contract declares.

    ``total_activity_count`` sums global and local declarations, so a local
    activity that shadows a global one is counted twice.
    """
    global_activity_count = len(contract.activities)
    local_activity_count = 0
    signal_count = query_count = update_count = 0
    for workflow in contract.workflows.values():
        local_activity_count += len(workflow.activities)
        signal_count += len(workflow.signals)
        query_count += len(workflow.queries)
        update_count += len(workflow.updates)
    return {
        "workflow_count": len(contract.workflows),
        "global_activity_count": global_activity_count,
        "total_activity_count": global_activity_count + local_activity_count,
        "signal_count": signal_count,
        "query_count": query_count,
        "update_count": update_count,
    }


def merge_contracts(task_queue: str, contracts: Sequence[ContractDefinition]) -> ContractDefinition:
    """
    Merge modular contracts into one under ``task_queue``.

    Workflows and global activities declared by later contracts replace
    same-named ones from earlier contracts.
    """
    if not contracts:
        raise ContractDefinitionError("Cannot merge an empty list of contracts")
    workflows: dict[str, Any] = {}
    activities: dict[str, ActivityDefinition] = {}
    for contract in contracts:
        workflows.update(contract.workflows)
        activities.update(contract.activities)
    return ContractDefinition(task_queue=task_queue, workflows=workflows, activities=activities)


def is_contract(value: Any) -> bool:
    """Lightweight check: a ``ContractDefinition`` declaring at least one workflow."""
    return isinstance(value, ContractDefinition) and len(value.workflows) > 0


__all__ = [
    "get_workflow_names",
    "get_all_activity_names",
    "get_workflow_activities",
    "get_workflow_activity_names",
    "is_workflow_activity",
    "has_workflow",
    "has_global_activity",
    "get_contract_stats",
    "merge_contracts",
    "is_contract",
]
