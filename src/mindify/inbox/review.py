"""Capture and user review operations.

These are the only places suggestions become durable records: a thought
group, merge preview or project suggestion writes nothing until the user
accepts it here.
"""

from __future__ import annotations

import logging

from mindify.ai.types import MergePreview, ProjectSuggestion, ThoughtGroup
from mindify.db.models import Entities, Item, Project, clip_title
from mindify.db.repository import ItemNotFoundError, Repository

logger = logging.getLogger(__name__)


def capture_thought(repo: Repository, text: str) -> Item:
    """Store a raw transcript as a pending inbox note and return it immediately.

    Raises:
        ValueError: If *text* is empty or whitespace.
    """
    text = text.strip()
    if not text:
        raise ValueError("No speech detected")
    item = Item(
        raw_input=text,
        category="note",
        title=clip_title(text),
        urgency="none",
        status="inbox",
        pending_ai_processing=True,
    )
    repo.add_item(item)
    logger.info("Captured item %s", item.id)
    return item


def _set_status(repo: Repository, item_id: str, status: str) -> Item:
    updated = repo.update_item(item_id, status=status)
    if updated is None:
        raise ItemNotFoundError(item_id)
    return updated


def approve_item(repo: Repository, item_id: str) -> Item:
    """Move an inbox item to ``captured``."""
    return _set_status(repo, item_id, "captured")


def complete_item(repo: Repository, item_id: str) -> Item:
    return _set_status(repo, item_id, "acted")


def reopen_item(repo: Repository, item_id: str) -> Item:
    return _set_status(repo, item_id, "inbox")


def keep_separate(repo: Repository, item_id: str, tags: list[str] | None = None) -> Item:
    """Confirm an ungrouped item on its own, optionally replacing its tags."""
    fields: dict = {"status": "captured"}
    if tags is not None:
        fields["tags"] = tags
    updated = repo.update_item(item_id, **fields)
    if updated is None:
        raise ItemNotFoundError(item_id)
    return updated


def _merge_entities(items: list[Item]) -> Entities:
    merged = Entities()
    for item in items:
        for name, values in vars(item.entities).items():
            target = getattr(merged, name)
            target.extend(v for v in values if v not in target)
    return merged


def accept_group(repo: Repository, group: ThoughtGroup) -> Item:
    """Create one captured item from *group* and archive every source item."""
    merged = Item(
        raw_input=group.merged_content,
        category=group.suggested_category,
        title=clip_title(group.suggested_title or group.merged_content),
        tags=list(dict.fromkeys(t for item in group.thoughts for t in item.tags)),
        entities=_merge_entities(group.thoughts),
        urgency="none",
        status="captured",
    )
    repo.merge_items(merged, [item.id for item in group.thoughts])
    logger.info("Merged %d items into %s", len(group.thoughts), merged.id)
    return merged


def reject_group(repo: Repository, group: ThoughtGroup) -> list[Item]:
    """Return every source item to ``captured``, unmerged."""
    updated = [repo.update_item(item.id, status="captured") for item in group.thoughts]
    return [item for item in updated if item is not None]


def confirm_merge(repo: Repository, item_a: Item, item_b: Item, preview: MergePreview) -> Item:
    """Commit a merge preview as a new captured item and archive both sources."""
    merged = Item(
        raw_input=preview.merged_raw_input,
        category=preview.suggested_category,
        title=clip_title(preview.merged_title or preview.merged_raw_input),
        tags=list(preview.merged_tags),
        entities=_merge_entities([item_a, item_b]),
        urgency="none",
        status="captured",
    )
    repo.merge_items(merged, [item_a.id, item_b.id])
    return merged


def approve_project(repo: Repository, suggestion: ProjectSuggestion) -> Project:
    project = Project(
        name=suggestion.project_name,
        description=suggestion.description,
        color=suggestion.suggested_color,
        item_ids=list(suggestion.related_item_ids),
        suggested_by_ai=True,
        user_approved=True,
    )
    return repo.add_project(project)
