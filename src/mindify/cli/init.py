"""mindify init: write mindify.yaml with the user profile and create the store.

Creates:
  mindify.yaml             profile + llm sections
  .mindify.db              empty item store with schema
  ~/.mindify/config.yaml   global config (created once, mode 0o600)
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.console import Console

from mindify.config import ensure_global_config
from mindify.db.connection import Database
from mindify.db.migrations import initialize

console = Console()

_DEFAULT_PROJECT_DIR = Path(".")


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Argument(help="Directory to initialize. Defaults to current directory."),
    ] = _DEFAULT_PROJECT_DIR,
    global_config: Annotated[
        Path | None,
        typer.Option("--global-config", hidden=True, help="Override global config path (for testing)."),
    ] = None,
) -> None:
    """Set up Mindify in a directory with a short profile wizard."""
    project_dir = project_dir.resolve()
    project_dir.mkdir(parents=True, exist_ok=True)
    config_path = project_dir / "mindify.yaml"

    if config_path.exists():
        console.print(f"[yellow]⚠[/]  {config_path} already exists.")
        if not typer.confirm("Overwrite the profile? Items are preserved.", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

    console.print("\n[bold]Mindify setup[/]\n")
    name = typer.prompt("Your name", default="User")
    profession = typer.prompt("Profession", default="")
    company = typer.prompt("Company", default="")
    projects_raw = typer.prompt("Current projects (comma separated)", default="")
    projects = [p.strip() for p in projects_raw.split(",") if p.strip()]

    data = {
        "profile": {
            "name": name,
            "profession": profession,
            "company": company,
            "projects": projects,
        },
        "storage": {"db": ".mindify.db"},
    }
    config_path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    console.print(f"  [green]✓[/] {config_path.name}")

    db_file = project_dir / ".mindify.db"
    with Database(db_file) as conn:
        initialize(conn)
    console.print(f"  [green]✓[/] {db_file.name}")

    global_path = ensure_global_config(global_config)
    console.print(f"  [green]✓[/] {global_path}")

    console.print('\nReady. Try:  mindify capture "remind me to call mom at 3pm"')
