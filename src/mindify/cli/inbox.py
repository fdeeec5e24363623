"""Inbox review commands.

Commands:
  mindify inbox                   show inbox items by urgency
  mindify list                    list items, filtered by status / category
  mindify group [--yes] [--keep]  review suggested thought groups
  mindify merge A B [--yes]       preview and merge two items
  mindify tags ID [--apply]       suggest tags for an item
  mindify approve ID              inbox → captured
  mindify done ID                 → acted
  mindify reopen ID               acted → inbox
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.panel import Panel

from mindify.ai.types import ThoughtGroup
from mindify.cli.common import (
    category_label,
    console,
    get_config,
    make_grouper,
    make_project_service,
    open_repository,
    print_items,
    require_item_id,
    short_id,
    use_online,
)
from mindify.db.models import CATEGORIES, STATUSES, sort_by_urgency
from mindify.inbox.review import (
    accept_group,
    approve_item,
    complete_item,
    confirm_merge,
    keep_separate,
    reject_group,
    reopen_item,
)

_DbOption = Annotated[Path | None, typer.Option("--db", help="Path to the item database.")]


def inbox_cmd(ctx: typer.Context, db: _DbOption = None) -> None:
    """Show inbox items, most urgent first."""
    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        items = sort_by_urgency(repo.list_items(status="inbox", include_pending=False))
        pending = repo.count_pending()

    if not items:
        console.print("[green]✓[/] Inbox zero.")
    else:
        print_items(items, f"Inbox ({len(items)})")
    if pending:
        console.print(f"  [yellow]{pending} item(s) awaiting AI processing.[/] Run:  mindify process")


def list_cmd(
    ctx: typer.Context,
    status: Annotated[
        str | None, typer.Option("--status", help=f"One of: {', '.join(STATUSES)}.")
    ] = None,
    category: Annotated[
        str | None, typer.Option("--category", help=f"One of: {', '.join(CATEGORIES)}.")
    ] = None,
    db: _DbOption = None,
) -> None:
    """List items (archived ones only with --status archived)."""
    if status is not None and status not in STATUSES:
        console.print(f"[red]Error:[/] Unknown status '{status}'. Use one of: {', '.join(STATUSES)}")
        raise typer.Exit(1)
    if category is not None and category not in CATEGORIES:
        console.print(
            f"[red]Error:[/] Unknown category '{category}'. Use one of: {', '.join(CATEGORIES)}"
        )
        raise typer.Exit(1)

    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        if status is None:
            items = repo.list_visible_items()
            if category is not None:
                items = [i for i in items if i.category == category]
        else:
            items = repo.list_items(status=status, category=category, include_pending=False)

    if not items:
        console.print("[yellow]No items found.[/]")
        return
    print_items(items, f"Items ({len(items)})")


def _show_group(index: int, group: ThoughtGroup) -> None:
    members = "\n".join(f"  • [dim]{short_id(t)}[/] {t.raw_input}" for t in group.thoughts)
    console.print(
        Panel(
            f"[bold]{group.suggested_title}[/]  {category_label(group.suggested_category)}"
            f"  (confidence {group.confidence:.2f})\n{members}\n\n[dim]{group.reasoning}[/]",
            title=f"Group {index}",
            expand=False,
        )
    )


def group_cmd(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Accept every suggested group.")] = False,
    keep: Annotated[
        bool, typer.Option("--keep", help="Confirm ungrouped thoughts on their own.")
    ] = False,
    db: _DbOption = None,
) -> None:
    """Find related inbox thoughts and merge or separate them.

    Thoughts that fit no group stay in the inbox unless --keep is given,
    which moves each of them to captured as a standalone item.
    """
    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        items = repo.list_items(status="inbox", include_pending=False)
        result = make_grouper(ctx, use_online(ctx)).group_thoughts(items)
        console.print(result.summary)

        for index, group in enumerate(result.groups, start=1):
            _show_group(index, group)
            if yes or typer.confirm("Merge these thoughts?", default=True):
                merged = accept_group(repo, group)
                console.print(f"[green]✓[/] Merged into [dim]{short_id(merged)}[/] {merged.title}")
            else:
                reject_group(repo, group)
                console.print("[yellow]Kept separate.[/]")

        if result.ungrouped and keep:
            for item in result.ungrouped:
                keep_separate(repo, item.id)
            console.print(f"[green]✓[/] Kept {len(result.ungrouped)} thought(s) on their own.")
        elif result.ungrouped:
            console.print(
                f"  {len(result.ungrouped)} thought(s) left ungrouped. "
                "Run [bold]mindify group --keep[/] to confirm them on their own."
            )


def merge_cmd(
    ctx: typer.Context,
    first: Annotated[str, typer.Argument(help="First item id (or prefix).")],
    second: Annotated[str, typer.Argument(help="Second item id (or prefix).")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Merge without asking.")] = False,
    db: _DbOption = None,
) -> None:
    """Preview a merge of two items and commit it on confirmation."""
    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        item_a = repo.require_item(require_item_id(repo, first))
        item_b = repo.require_item(require_item_id(repo, second))
        if item_a.id == item_b.id:
            console.print("[red]Error:[/] Cannot merge an item with itself.")
            raise typer.Exit(1)

        preview = make_project_service(ctx, use_online(ctx)).generate_merge_preview(item_a, item_b)
        console.print(
            Panel(
                f"[bold]{preview.merged_title}[/]  {category_label(preview.suggested_category)}\n"
                f"{preview.merged_raw_input}\n"
                f"Tags: {', '.join(preview.merged_tags) or '(none)'}\n\n"
                f"[dim]{preview.reasoning}[/]",
                title="Merge preview",
                expand=False,
            )
        )
        if not (yes or typer.confirm("Merge?", default=False)):
            console.print("Merge cancelled.")
            return
        merged = confirm_merge(repo, item_a, item_b, preview)
        console.print(f"[green]✓[/] Merged into [dim]{short_id(merged)}[/]")


def tags_cmd(
    ctx: typer.Context,
    item: Annotated[str, typer.Argument(help="Item id (or prefix).")],
    apply: Annotated[bool, typer.Option("--apply", help="Add the suggestions to the item.")] = False,
    db: _DbOption = None,
) -> None:
    """Suggest tags for an item."""
    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        target = repo.require_item(require_item_id(repo, item))
        tags = make_project_service(ctx, use_online(ctx)).suggest_tags(target)
        if not tags:
            console.print("[yellow]No tag suggestions.[/]")
            return
        console.print("Suggested tags: " + ", ".join(f"[cyan]{t}[/]" for t in tags))
        if apply:
            merged = list(dict.fromkeys([*target.tags, *tags]))
            repo.update_item(target.id, tags=merged)
            console.print(f"[green]✓[/] Tags saved: {', '.join(merged)}")


def approve_cmd(
    ctx: typer.Context,
    item: Annotated[str, typer.Argument(help="Item id (or prefix).")],
    db: _DbOption = None,
) -> None:
    """Move an inbox item to captured."""
    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        updated = approve_item(repo, require_item_id(repo, item))
    console.print(f"[green]✓[/] Captured: {updated.title}")


def done_cmd(
    ctx: typer.Context,
    item: Annotated[str, typer.Argument(help="Item id (or prefix).")],
    db: _DbOption = None,
) -> None:
    """Mark an item as acted on."""
    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        updated = complete_item(repo, require_item_id(repo, item))
    console.print(f"[green]✓[/] Done: {updated.title}")


def reopen_cmd(
    ctx: typer.Context,
    item: Annotated[str, typer.Argument(help="Item id (or prefix).")],
    db: _DbOption = None,
) -> None:
    """Put an item back in the inbox."""
    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        updated = reopen_item(repo, require_item_id(repo, item))
    console.print(f"[green]✓[/] Reopened: {updated.title}")
