"""Mindify CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from mindify.cli.capture import capture_cmd, process_cmd
from mindify.cli.common import CliState
from mindify.cli.inbox import (
    approve_cmd,
    done_cmd,
    group_cmd,
    inbox_cmd,
    list_cmd,
    merge_cmd,
    reopen_cmd,
    tags_cmd,
)
from mindify.cli.init import init_cmd
from mindify.cli.projects import projects_app
from mindify.cli.remind import remind_cmd
from mindify.cli.serve import serve_cmd
from mindify.cli.status import status_cmd
from mindify.log import configure_logging


def _installed_version() -> str:
    try:
        return importlib.metadata.version("mindify")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mindify {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="mindify",
    help=(
        "Mindify — capture thoughts now, organize them later.\n\n"
        "  mindify capture \"...\"  Store a thought and let AI sort it.\n"
        "  mindify inbox          Review what was captured."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    offline: Annotated[
        bool,
        typer.Option("--offline", help="Use keyword heuristics only; never call the LLM."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log processing details to stderr."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Mindify — voice-capture inbox."""
    configure_logging("INFO" if verbose else "WARNING")
    ctx.obj = CliState(offline=offline)


app.command("init")(init_cmd)
app.command("capture")(capture_cmd)
app.command("process")(process_cmd)
app.command("inbox")(inbox_cmd)
app.command("list")(list_cmd)
app.command("group")(group_cmd)
app.command("merge")(merge_cmd)
app.command("tags")(tags_cmd)
app.command("approve")(approve_cmd)
app.command("done")(done_cmd)
app.command("reopen")(reopen_cmd)
app.command("remind")(remind_cmd)
app.command("status")(status_cmd)
app.command("serve")(serve_cmd)
app.add_typer(projects_app, name="projects")


@app.command("version")
def version_cmd() -> None:
    """Show the installed Mindify version."""
    typer.echo(f"mindify {_installed_version()}")


if __name__ == "__main__":
    app()
