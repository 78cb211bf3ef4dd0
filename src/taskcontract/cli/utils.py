"""
CLI utility helpers: contract loading and output formatting.
"""

from __future__ import annotations

import importlib
import json
import os
import sys
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from taskcontract.contract.definitions import ContractDefinition

console = Console()
err_console = Console(stderr=True)


# ── Contract loading ─────────────────────────────────────────────────────


def load_contract(target: str) -> ContractDefinition:
    """Import ``module:attribute`` and return the contract it names.

    Without ``:attribute`` the module must hold exactly one
    ``ContractDefinition`` at top level.
    """
    module_name, _, attribute = target.partition(":")
    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        fail(f"Cannot import '{module_name}': {e}")
    except Exception as e:
        fail(f"Loading '{module_name}' failed: {type(e).__name__}: {e}")

    if attribute:
        value = getattr(module, attribute, None)
        if not isinstance(value, ContractDefinition):
            fail(f"'{target}' is not a ContractDefinition")
        return value

    found = [v for v in vars(module).values() if isinstance(v, ContractDefinition)]
    if len(found) != 1:
        fail(f"Module '{module_name}' holds {len(found)} contracts; name one with MODULE:ATTR")
    return found[0]


# ── Output helpers ───────────────────────────────────────────────────────


def fail(message: str, code: int = 1) -> None:
    """Print an error and exit."""
    err_console.print(f"[bold red]Error[/bold red]: {escape(message)}")
    raise typer.Exit(code=code)


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_table(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(Text(str(v)) for v in row.values()))
    console.print(table)


def print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{escape(title)}[/bold]")
    for key, value in data.items():
        console.print(f"  [cyan]{escape(str(key))}[/cyan]: {escape(str(value))}", highlight=False)
