"""
CLI: contract inspection with ``describe``, ``lint``, ``stats`` and ``diff``.
"""

from __future__ import annotations

import typer
from rich.markup import escape

from taskcontract.cli.utils import console, load_contract, print_dict, print_json, print_table
from taskcontract.contract.debug import (
    compare_contracts,
    contract_to_dict,
    describe_contract,
    validate_contract_naming,
)
from taskcontract.contract.helpers import get_contract_stats


def describe(
    target: str = typer.Argument(..., help="Contract as MODULE:ATTR"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text"),
) -> None:
    """Summarize a contract's workflows and operations."""
    contract = load_contract(target)
    if as_json:
        print_json(contract_to_dict(contract))
        return
    console.print(describe_contract(contract), soft_wrap=True, highlight=False, markup=False)

    rows = []
    for name, workflow in contract.workflows.items():
        rows.append(
            {
                "workflow": name,
                "activities": ", ".join(sorted(workflow.activities)) or "-",
                "signals": ", ".join(sorted(workflow.signals)) or "-",
                "queries": ", ".join(sorted(workflow.queries)) or "-",
                "updates": ", ".join(sorted(workflow.updates)) or "-",
            }
        )
    if rows:
        console.print()
        print_table(rows, title="Workflows")


def lint(
    target: str = typer.Argument(..., help="Contract as MODULE:ATTR"),
    pattern: str | None = typer.Option(  # noqa: UP007
        None, "--pattern", "-p", help="Naming regex (default: TASKCONTRACT_NAMING_PATTERN)"
    ),
) -> None:
    """Check workflow and operation names; exit 1 on any issue."""
    contract = load_contract(target)
    issues = validate_contract_naming(contract, pattern)
    if not issues:
        console.print("[green]✓ No naming issues[/green]")
        return
    for issue in issues:
        console.print(f"[yellow]•[/yellow] {escape(issue)}", soft_wrap=True, highlight=False)
    console.print(f"\n[red]{len(issues)} naming issue(s)[/red]")
    raise typer.Exit(1)


def stats(
    target: str = typer.Argument(..., help="Contract as MODULE:ATTR"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text"),
) -> None:
    """Count the operations a contract declares."""
    contract = load_contract(target)
    counts = get_contract_stats(contract)
    if as_json:
        print_json(counts)
        return
    print_dict(counts, title=f"Contract: {contract.task_queue}")


def diff(
    old: str = typer.Argument(..., help="Previous contract as MODULE:ATTR"),
    new: str = typer.Argument(..., help="New contract as MODULE:ATTR"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of text"),
) -> None:
    """Compare two contract versions."""
    result = compare_contracts(load_contract(old), load_contract(new))
    if as_json:
        print_json(result.to_dict())
        return
    if not result.has_changes:
        console.print("[green]✓ Contracts are equivalent[/green]")
        return
    if result.task_queue_changed:
        console.print("[yellow]Task queue changed[/yellow]")
    for label, names, colour in (
        ("Added workflows", result.added_workflows, "green"),
        ("Removed workflows", result.removed_workflows, "red"),
        ("Modified workflows", result.modified_workflows, "yellow"),
        ("Added global activities", result.added_global_activities, "green"),
        ("Removed global activities", result.removed_global_activities, "red"),
    ):
        if names:
            console.print(f"[{colour}]{label}:[/{colour}] {', '.join(names)}", soft_wrap=True)
