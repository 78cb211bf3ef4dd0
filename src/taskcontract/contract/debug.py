"""
Contract diagnostics.

Human and machine readable views of a contract, a naming lint and a structural
diff between two contract versions. Used by the ``taskcontract`` CLI and handy
in a REPL when a registration error names an operation you did not expect.

Examples:
    >>> print(describe_contract(contract))          # doctest: +SKIP
    Contract: orders
      Workflows: 1
        - processOrder (activities: 3, signals: 1, queries: 1)
      Global Activities: 1
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any

from taskcontract.contract.definitions import ContractDefinition, OperationDefinition, WorkflowDefinition
from taskcontract.contract.schema import schema_name
from taskcontract.core.settings import get_settings


def _operation_counts(workflow: WorkflowDefinition) -> dict[str, int]:
    return {
        "activities": len(workflow.activities),
        "signals": len(workflow.signals),
        "queries": len(workflow.queries),
        "updates": len(workflow.updates),
    }


def describe_contract(contract: ContractDefinition) -> str:
    """Indented, human-readable summary of a contract."""
    lines = [f"Contract: {contract.task_queue}", f"  Workflows: {len(contract.workflows)}"]
    for name, workflow in contract.workflows.items():
        parts = [f"{kind}: {count}" for kind, count in _operation_counts(workflow).items() if count]
        info = f" ({', '.join(parts)})" if parts else ""
        lines.append(f"    - {name}{info}")
    if contract.activities:
        lines.append(f"  Global Activities: {len(contract.activities)}")
    return "\n".join(lines)


def _operation_to_dict(definition: OperationDefinition) -> dict[str, Any]:
    return {
        "input": schema_name(definition.input),
        "output": schema_name(definition.output),
    }


def contract_to_dict(contract: ContractDefinition) -> dict[str, Any]:
    """JSON-ready structure naming every operation; schemas appear by name only."""
    workflows: dict[str, Any] = {}
    for name, workflow in contract.workflows.items():
        workflows[name] = {
            "input": schema_name(workflow.input),
            "output": schema_name(workflow.output),
            "activities": {n: _operation_to_dict(d) for n, d in workflow.activities.items()},
            "signals": {n: _operation_to_dict(d) for n, d in workflow.signals.items()},
            "queries": {n: _operation_to_dict(d) for n, d in workflow.queries.items()},
            "updates": {n: _operation_to_dict(d) for n, d in workflow.updates.items()},
        }
    return {
        "task_queue": contract.task_queue,
        "workflows": workflows,
        "activities": {n: _operation_to_dict(d) for n, d in contract.activities.items()},
    }


def validate_contract_naming(
    contract: ContractDefinition,
    pattern: str | None = None,
) -> list[str]:
    """
    Check every workflow and operation name against ``pattern``.

    Defaults to ``ContractSettings.naming_pattern`` (lowerCamelCase or
    snake_case). Returns one message per offending name, empty when clean.
    """
    regex = re.compile(pattern or get_settings().naming_pattern)
    issues: list[str] = []

    def check(name: str, label: str) -> None:
        if not regex.match(name):
            issues.append(f"{label} '{name}' does not match naming pattern {regex.pattern}")

    for name in contract.workflows:
        check(name, "Workflow")
    for name in contract.activities:
        check(name, "Global activity")
    for workflow_name, workflow in contract.workflows.items():
        for kind, names in (
            ("Activity", workflow.activities),
            ("Signal", workflow.signals),
            ("Query", workflow.queries),
            ("Update", workflow.updates),
        ):
            for name in names:
                check(name, f"{kind} in workflow '{workflow_name}':")
    return issues


@dataclass
class ContractDiff:
    """Structural difference between two contract versions."""

    task_queue_changed: bool = False
    added_workflows: list[str] = field(default_factory=list)
    removed_workflows: list[str] = field(default_factory=list)
    added_global_activities: list[str] = field(default_factory=list)
    removed_global_activities: list[str] = field(default_factory=list)
    modified_workflows: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return any(
            (
                self.task_queue_changed,
                self.added_workflows,
                self.removed_workflows,
                self.added_global_activities,
                self.removed_global_activities,
                self.modified_workflows,
            )
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def compare_contracts(old: ContractDefinition, new: ContractDefinition) -> ContractDiff:
    """
    Diff two contracts by name.

    A workflow present in both counts as modified when any of its operation
    counts changed; schema contents are not compared.
    """
    old_workflows, new_workflows = set(old.workflows), set(new.workflows)
    old_activities, new_activities = set(old.activities), set(new.activities)
    modified = [
        name
        for name in sorted(old_workflows & new_workflows)
        if _operation_counts(old.workflows[name]) != _operation_counts(new.workflows[name])
    ]
    return ContractDiff(
        task_queue_changed=old.task_queue != new.task_queue,
        added_workflows=sorted(new_workflows - old_workflows),
        removed_workflows=sorted(old_workflows - new_workflows),
        added_global_activities=sorted(new_activities - old_activities),
        removed_global_activities=sorted(old_activities - new_activities),
        modified_workflows=modified,
    )


__all__ = [
    "describe_contract",
    "contract_to_dict",
    "validate_contract_naming",
    "ContractDiff",
    "compare_contracts",
]
