"""Shared CLI plumbing: config, database and service construction."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from mindify.ai.extractor import ItemExtractor
from mindify.ai.grouping import ThoughtGrouper
from mindify.ai.llm_client import has_api_key
from mindify.ai.projects import ProjectService
from mindify.cli.errors import (
    err_config,
    err_item_not_found,
    err_no_api_key,
    err_storage_full,
)
from mindify.config import ConfigError, MindifyConfig, load_config
from mindify.db.connection import Database
from mindify.db.migrations import initialize
from mindify.db.models import Item
from mindify.db.repository import Repository, StorageFullError

console = Console()


@dataclass
class CliState:
    """Global flags set by the root callback, carried on ``ctx.obj``."""

    offline: bool = False
    config: MindifyConfig | None = field(default=None, repr=False)


def state_of(ctx: typer.Context) -> CliState:
    if not isinstance(ctx.obj, CliState):
        ctx.obj = CliState()
    return ctx.obj


def get_config(ctx: typer.Context) -> MindifyConfig:
    state = state_of(ctx)
    if state.config is None:
        try:
            state.config = load_config()
        except ConfigError as exc:
            console.print(err_config(str(exc)))
            raise typer.Exit(1) from exc
    return state.config


def use_online(ctx: typer.Context, warn: bool = True) -> bool:
    """Online only when not forced offline and the provider key is present."""
    cfg = get_config(ctx)
    if state_of(ctx).offline or cfg.llm.offline:
        return False
    if not has_api_key(cfg.llm.model):
        if warn:
            console.print(err_no_api_key(cfg.llm.model))
        return False
    return True


def db_path(cfg: MindifyConfig, db: Path | None) -> Path:
    return db if db is not None else Path(cfg.storage.db)


@contextmanager
def open_repository(cfg: MindifyConfig, db: Path | None = None) -> Iterator[Repository]:
    """Open (creating if needed) the item store and yield a Repository."""
    path = db_path(cfg, db)
    database = Database(path, max_page_count=cfg.storage.max_db_pages)
    conn = database.connect()
    try:
        initialize(conn)
        yield Repository(conn)
    except StorageFullError as exc:
        console.print(err_storage_full(str(path)))
        raise typer.Exit(1) from exc
    finally:
        conn.close()


def make_extractor(ctx: typer.Context, online: bool) -> ItemExtractor:
    cfg = get_config(ctx)
    return ItemExtractor(cfg.llm, cfg.profile, online=online)


def make_grouper(ctx: typer.Context, online: bool) -> ThoughtGrouper:
    cfg = get_config(ctx)
    return ThoughtGrouper(cfg.llm, cfg.grouping, online=online)


def make_project_service(ctx: typer.Context, online: bool) -> ProjectService:
    cfg = get_config(ctx)
    return ProjectService(cfg.llm, cfg.projects, online=online)


_URGENCY_STYLE = {"high": "bold red", "medium": "yellow", "low": "cyan", "none": "dim"}
_CATEGORY_ICON = {"idea": "💡", "task": "✅", "reminder": "⏰", "note": "📝"}


def urgency_label(urgency: str) -> str:
    style = _URGENCY_STYLE.get(urgency, "dim")
    return f"[{style}]{urgency}[/]"


def category_label(category: str) -> str:
    return f"{_CATEGORY_ICON.get(category, '')} {category}".strip()


def short_id(item: Item) -> str:
    return item.id[:8]


def resolve_item_id(repo: Repository, prefix: str) -> str | None:
    """Accept a full id or a unique prefix (as shown in tables)."""
    if repo.get_item(prefix) is not None:
        return prefix
    matches = [i.id for i in repo.list_items() if i.id.startswith(prefix)]
    return matches[0] if len(matches) == 1 else None


def print_items(items: list[Item], title: str) -> None:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Category")
    table.add_column("Title", style="bold")
    table.add_column("Urgency")
    table.add_column("Tags")
    for item in items:
        table.add_row(
            short_id(item),
            category_label(item.category),
            item.title,
            urgency_label(item.urgency),
            ", ".join(item.tags),
        )
    console.print(table)


def require_item_id(repo: Repository, prefix: str) -> str:
    """resolve_item_id() or print an error and exit 1."""
    item_id = resolve_item_id(repo, prefix)
    if item_id is None:
        console.print(err_item_not_found(prefix))
        raise typer.Exit(1)
    return item_id
