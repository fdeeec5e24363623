"""mindify capture / process commands.

capture stores the thought first (it can never be lost to an AI failure),
then resolves it through the extractor unless --no-process is given.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from mindify.cli.common import (
    console,
    get_config,
    make_extractor,
    open_repository,
    print_items,
    require_item_id,
    short_id,
    use_online,
)
from mindify.cli.errors import err_empty_capture
from mindify.inbox.processor import InboxProcessor
from mindify.inbox.review import capture_thought


def capture_cmd(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(help="The transcribed thought.")],
    no_process: Annotated[
        bool,
        typer.Option("--no-process", help="Store only; leave AI processing for later."),
    ] = False,
    db: Annotated[Path | None, typer.Option("--db", help="Path to the item database.")] = None,
) -> None:
    """Capture a thought into the inbox."""
    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        try:
            item = capture_thought(repo, text)
        except ValueError:
            console.print(err_empty_capture())
            raise typer.Exit(1)
        console.print(f"[green]✓[/] Captured [dim]{short_id(item)}[/]")

        if no_process:
            console.print("  Pending AI processing. Run:  mindify process")
            return

        processor = InboxProcessor(repo, make_extractor(ctx, use_online(ctx)))
        try:
            results = processor.process_item_by_id(item.id)
        except Exception as exc:
            console.print(f"[yellow]Processing failed, kept as a note:[/] {exc}")
            return
        if results:
            label = "Extracted items" if len(results) > 1 else "Categorized"
            print_items(results, label)


def process_cmd(
    ctx: typer.Context,
    item: Annotated[
        str | None,
        typer.Option("--item", help="Process only this item id (or unique prefix)."),
    ] = None,
    db: Annotated[Path | None, typer.Option("--db", help="Path to the item database.")] = None,
) -> None:
    """Run AI processing over pending inbox items."""
    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        processor = InboxProcessor(repo, make_extractor(ctx, use_online(ctx)))

        if item is not None:
            item_id = require_item_id(repo, item)
            print_items(processor.process_item_by_id(item_id), "Processed")
            return

        pending = processor.pending_count()
        if pending == 0:
            console.print("[green]✓[/] Nothing pending.")
            return
        with console.status(f"Processing {pending} pending items..."):
            result = processor.process_pending_items()
        console.print(
            f"[green]✓[/] Processed {result.processed_count} items "
            f"into {result.extracted_count}"
            + (f"  [red]{result.failed_count} failed[/]" if result.failed_count else "")
        )
