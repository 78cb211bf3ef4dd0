"""
CLI: ``taskcontract config`` for inspecting ``TASKCONTRACT_*`` settings.
"""

from __future__ import annotations

import re

import typer
from pydantic import ValidationError
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from taskcontract.cli.utils import console, fail
from taskcontract.core.settings import ContractSettings, get_settings

app = typer.Typer(no_args_is_help=True)

ENV_PREFIX = ContractSettings.model_config.get("env_prefix", "")


@app.command("show")
def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env"),
) -> None:
    """Show the effective configuration."""
    settings = get_settings()
    values = settings.model_dump(mode="json")

    if format == "json":
        console.print_json(settings.model_dump_json())
    elif format == "env":
        for key in sorted(values):
            console.print(f"{ENV_PREFIX}{key.upper()}={values[key]}", soft_wrap=True, highlight=False, markup=False)
    elif format == "table":
        table = Table(title="taskcontract settings")
        table.add_column("Setting")
        table.add_column("Environment variable", style="dim")
        table.add_column("Value", overflow="fold")
        for key, value in values.items():
            table.add_row(key, f"{ENV_PREFIX}{key.upper()}", Text(str(value)))
        console.print(table)
    else:
        fail(f"Unknown format '{format}'; choose table, json or env")


@app.command("validate")
def validate_config() -> None:
    """Load settings from the environment and ``.env`` and check them."""
    try:
        settings = get_settings(_force_reload=True)
    except ValidationError as e:
        console.print(f"[red]Configuration Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    try:
        re.compile(settings.naming_pattern)
    except re.error as e:
        console.print(f"[red]Configuration Error:[/red] naming_pattern is not a valid regex: {escape(str(e))}")
        raise typer.Exit(1) from e

    console.print(
        f"[green]✓ Configuration valid[/green] (orphan policy: {settings.orphan_policy.value}, "
        f"log level: {settings.log_level})"
    )
