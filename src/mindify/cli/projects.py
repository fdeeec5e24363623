"""mindify projects CLI commands.

Commands:
  mindify projects detect [--yes]   suggest projects from recurring themes
  mindify projects list             show approved projects
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from mindify.cli.common import (
    console,
    get_config,
    make_project_service,
    open_repository,
    use_online,
)
from mindify.inbox.review import approve_project

projects_app = typer.Typer(
    name="projects",
    help="Detect and list projects.",
    add_completion=False,
)

_DbOption = Annotated[Path | None, typer.Option("--db", help="Path to the item database.")]


@projects_app.command("detect")
def projects_detect_cmd(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Approve every suggestion.")] = False,
    db: _DbOption = None,
) -> None:
    """Suggest projects from items that share tags or project mentions."""
    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        items = repo.list_visible_items()
        detection = make_project_service(ctx, use_online(ctx)).detect_projects(items)
        console.print(detection.reasoning)

        if not detection.suggestions:
            console.print("[yellow]No project suggestions.[/]")
            return

        existing = {p.name.lower() for p in repo.list_projects()}
        for suggestion in detection.suggestions:
            console.print(
                f"\n[bold]{suggestion.project_name}[/] "
                f"({len(suggestion.related_item_ids)} items, "
                f"confidence {suggestion.confidence:.2f})\n"
                f"  {suggestion.description}\n  [dim]{suggestion.reasoning}[/]"
            )
            if suggestion.project_name.lower() in existing:
                console.print("  [dim]Already a project, skipped.[/]")
                continue
            if yes or typer.confirm("Create this project?", default=False):
                project = approve_project(repo, suggestion)
                existing.add(project.name.lower())
                console.print(f"  [green]✓[/] Created project {project.name}")
            else:
                console.print("  Dismissed.")


@projects_app.command("list")
def projects_list_cmd(ctx: typer.Context, db: _DbOption = None) -> None:
    """List projects and their item counts."""
    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        projects = repo.list_projects()
        counts = {p.id: len(repo.items_for_project(p.id)) for p in projects}

    if not projects:
        console.print("[yellow]No projects yet.[/] Run:  mindify projects detect")
        return

    table = Table(title="Projects", show_header=True, header_style="bold")
    table.add_column("Name", style="bold")
    table.add_column("Items", justify="right")
    table.add_column("Source")
    table.add_column("Description")
    for project in projects:
        source = "AI" if project.suggested_by_ai else "manual"
        table.add_row(
            f"[{project.color}]■[/] {project.name}",
            str(counts[project.id]),
            source,
            project.description,
        )
    console.print(table)
