"""
Root Typer application for the taskcontract CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from taskcontract.cli.config import app as config_app
from taskcontract.cli.contract import describe, diff, lint, stats
from taskcontract.cli.utils import fail
from taskcontract.core.logging import configure_logging

app = Typer(
    name="taskcontract",
    help="Inspect and check task-queue contracts.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("taskcontract")
        except PackageNotFoundError:
            from taskcontract import __version__ as v
        typer.echo(f"taskcontract {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(  # noqa: UP007
        None, "--log-level", help="Emit structured logs at this level (console format)."
    ),
) -> None:
    """Describe, lint and diff task-queue contracts."""
    if log_level:
        try:
            configure_logging(level=log_level, json_format=False, service="taskcontract-cli")
        except ValueError as e:
            fail(str(e))


# ── Commands ─────────────────────────────────────────────────────────────

app.command("describe")(describe)
app.command("lint")(lint)
app.command("stats")(stats)
app.command("diff")(diff)
app.add_typer(config_app, name="config", help="Configuration inspection.")
