"""mindify status command.

Shows the item store, inbox/processing state, projects and LLM mode.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.panel import Panel

from mindify.ai.llm_client import has_api_key
from mindify.cli.common import console, db_path, get_config, open_repository, state_of
from mindify.db.models import STATUSES
from mindify.inbox.processor import LAST_RUN_SETTING


def status_cmd(
    ctx: typer.Context,
    db: Annotated[Path | None, typer.Option("--db", help="Path to the item database.")] = None,
) -> None:
    """Show inbox, processing and project status."""
    cfg = get_config(ctx)
    path = db_path(cfg, db)

    if not path.exists():
        console.print(
            Panel(
                f"[yellow]No database at {path}.[/]\n"
                '  Run:  mindify init  or  mindify capture "..."',
                title="[bold]Store[/]",
                expand=False,
            )
        )
        raise typer.Exit(0)

    with open_repository(cfg, db) as repo:
        counts = {s: len(repo.list_items(status=s)) for s in STATUSES}
        pending = repo.count_pending()
        unsynced = len(repo.list_pending_sync())
        projects = repo.list_projects()
        last_run = repo.get_setting(LAST_RUN_SETTING)

    size_kb = path.stat().st_size / 1024
    store_lines = [
        f"Database:  {path} ({size_kb:.0f} KB)",
        "  ".join(f"{s}: [bold]{counts[s]}[/]" for s in STATUSES),
        f"Unsynced changes: {unsynced}",
    ]
    console.print(Panel("\n".join(store_lines), title="[bold]Store[/]", expand=False))

    processing_lines = [f"Pending AI processing: [bold]{pending}[/]"]
    if last_run:
        processing_lines.append(
            f"Last run: [dim]{last_run['finished_at']}[/]  "
            f"processed {last_run['processed_count']}, "
            f"extracted {last_run['extracted_count']}, "
            f"failed {last_run['failed_count']}"
        )
    else:
        processing_lines.append("[dim]No processing runs yet.[/]")
    console.print(Panel("\n".join(processing_lines), title="[bold]Processing[/]", expand=False))

    project_lines = [f"{p.name} ({len(p.item_ids)} items)" for p in projects] or [
        "[dim]No projects yet.[/]"
    ]
    console.print(Panel("\n".join(project_lines), title="[bold]Projects[/]", expand=False))

    if state_of(ctx).offline or cfg.llm.offline:
        mode = "[yellow]offline (forced)[/]"
    elif has_api_key(cfg.llm.model):
        mode = f"[green]online[/] ({cfg.llm.model})"
    else:
        mode = f"[yellow]offline[/] (no API key for {cfg.llm.model})"
    console.print(Panel(f"Mode: {mode}", title="[bold]AI[/]", expand=False))
