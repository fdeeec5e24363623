"""mindify remind command: set, snooze or clear an item's reminder."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from mindify.cli.common import console, get_config, open_repository, require_item_id
from mindify.cli.errors import err_no_reminder, err_unparsed_time
from mindify.reminders import clear_reminder, extract_time_from_text, set_reminder, snooze_reminder


def remind_cmd(
    ctx: typer.Context,
    item: Annotated[str, typer.Argument(help="Item id (or prefix).")],
    at: Annotated[
        str | None,
        typer.Option("--at", help='When, e.g. "tomorrow 9am" or "in 2 hours".'),
    ] = None,
    clear: Annotated[bool, typer.Option("--clear", help="Remove the reminder.")] = False,
    snooze: Annotated[
        int | None, typer.Option("--snooze", help="Push the reminder back N minutes.")
    ] = None,
    db: Annotated[Path | None, typer.Option("--db", help="Path to the item database.")] = None,
) -> None:
    """Schedule a reminder for an item.

    Without --at the time is read from the item text, falling back to a
    default based on urgency.
    """
    cfg = get_config(ctx)
    with open_repository(cfg, db) as repo:
        item_id = require_item_id(repo, item)

        if clear:
            clear_reminder(repo, item_id)
            console.print("[green]✓[/] Reminder cleared.")
            return

        if snooze is not None:
            try:
                updated = snooze_reminder(repo, item_id, minutes=snooze)
            except ValueError:
                console.print(err_no_reminder(item_id))
                raise typer.Exit(1)
        else:
            when = None
            if at is not None:
                when = extract_time_from_text(at)
                if when is None:
                    console.print(err_unparsed_time(at))
                    raise typer.Exit(1)
            updated = set_reminder(repo, item_id, at=when)

    notification = updated.scheduled_notification
    console.print(
        f"[green]✓[/] Reminder for '{updated.title}' at "
        f"[bold]{notification.scheduled_at:%a %d %b %H:%M}[/]"
        + (f" (snoozed {notification.snooze_count}x)" if notification.snooze_count else "")
    )
