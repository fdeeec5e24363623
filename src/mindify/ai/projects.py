"""Project detection, merge previews and tag suggestions.

Everything here is advisory: results are shown to the user and only written
to storage once approved (see mindify.inbox.review). Each operation tries
the LLM when online and falls back to offline heuristics on any failure.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any, TypeVar

from mindify.ai import llm_client, prompts
from mindify.ai.classifier import coerce_confidence, coerce_title
from mindify.ai.errors import AIServiceError, MalformedResponseError
from mindify.ai.heuristics import keyword_tags
from mindify.ai.types import MergePreview, ProjectDetection, ProjectSuggestion
from mindify.config import LLMCfg, ProjectsCfg
from mindify.db.models import CATEGORIES, Item, clip_title

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ONLINE_TAGS = 5
MAX_OFFLINE_TAGS = 3
MERGE_CONFIDENCE = 0.6

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


class ProjectService:
    def __init__(self, llm: LLMCfg, policy: ProjectsCfg | None = None, online: bool = True) -> None:
        self.llm = llm
        self.policy = policy or ProjectsCfg()
        self.online = online

    def _with_fallback(self, what: str, online: Callable[[], T], offline: Callable[[], T]) -> T:
        if self.online:
            try:
                return online()
            except AIServiceError as exc:
                logger.warning("Online %s failed, using offline heuristics: %s", what, exc)
        return offline()

    def _color(self, index: int) -> str:
        palette = self.policy.palette
        return palette[index % len(palette)] if palette else "#B026FF"

    # ------------------------------------------------------------------
    # Project detection
    # ------------------------------------------------------------------

    def detect_projects(self, items: list[Item]) -> ProjectDetection:
        if not items:
            return ProjectDetection(suggestions=[], reasoning="No items to analyze")
        return self._with_fallback(
            "project detection",
            lambda: self._detect_online(items),
            lambda: self.detect_offline(items),
        )

    def _detect_online(self, items: list[Item]) -> ProjectDetection:
        payload = [
            {
                "id": item.id,
                "title": item.title,
                "text": item.raw_input,
                "category": item.category,
                "tags": item.tags,
                "projects": item.entities.projects,
            }
            for item in items
        ]
        data = llm_client.complete_json(
            self.llm, prompts.DETECT_PROJECTS_SYSTEM, prompts.items_prompt(payload)
        )
        raw_suggestions = data.get("suggestions")
        if not isinstance(raw_suggestions, list):
            raise MalformedResponseError("Project response has no suggestions list")

        known = {item.id for item in items}
        suggestions: list[ProjectSuggestion] = []
        for raw in raw_suggestions:
            if not isinstance(raw, dict):
                continue
            name = raw.get("projectName")
            ids = raw.get("relatedItemIds")
            if not isinstance(name, str) or not name.strip() or not isinstance(ids, list):
                continue
            related = list(dict.fromkeys(i for i in ids if i in known))
            if not related:
                continue
            color = raw.get("suggestedColor")
            if not isinstance(color, str) or not _COLOR_RE.match(color):
                color = self._color(len(suggestions))
            description = raw.get("description")
            reasoning = raw.get("reasoning")
            suggestions.append(
                ProjectSuggestion(
                    project_name=name.strip(),
                    description=description if isinstance(description, str) else "",
                    related_item_ids=related,
                    confidence=coerce_confidence(raw.get("confidence")),
                    reasoning=reasoning if isinstance(reasoning, str) else "",
                    suggested_color=color,
                )
            )

        reasoning = data.get("reasoning")
        return ProjectDetection(
            suggestions=suggestions,
            reasoning=reasoning if isinstance(reasoning, str) else f"Found {len(suggestions)} projects",
        )

    def detect_offline(self, items: list[Item]) -> ProjectDetection:
        """Cluster items by shared project mentions and tags."""
        mentions: dict[str, list[str]] = {}
        for item in items:
            for key in [*item.entities.projects, *item.tags]:
                key = key.strip().lower()
                if not key:
                    continue
                ids = mentions.setdefault(key, [])
                if item.id not in ids:
                    ids.append(item.id)

        suggestions: list[ProjectSuggestion] = []
        for key, ids in mentions.items():
            if len(ids) < self.policy.min_items:
                continue
            name = key[0].upper() + key[1:]
            suggestions.append(
                ProjectSuggestion(
                    project_name=name,
                    description=f"Items related to {name}",
                    related_item_ids=ids,
                    confidence=min(0.70 + 0.05 * len(ids), 0.95),
                    reasoning=f"Found {len(ids)} items mentioning '{key}'",
                    suggested_color=self._color(len(suggestions)),
                )
            )

        return ProjectDetection(
            suggestions=suggestions,
            reasoning=(
                f"Offline mode: found {len(suggestions)} potential projects "
                "from tags and project mentions"
            ),
        )

    # ------------------------------------------------------------------
    # Merge preview
    # ------------------------------------------------------------------

    def generate_merge_preview(self, item_a: Item, item_b: Item) -> MergePreview:
        return self._with_fallback(
            "merge preview",
            lambda: self._merge_online(item_a, item_b),
            lambda: merge_offline(item_a, item_b),
        )

    def _merge_online(self, item_a: Item, item_b: Item) -> MergePreview:
        payload = [
            {"title": i.title, "text": i.raw_input, "category": i.category, "tags": i.tags}
            for i in (item_a, item_b)
        ]
        data = llm_client.complete_json(
            self.llm, prompts.MERGE_PREVIEW_SYSTEM, prompts.items_prompt(payload)
        )
        raw_input = data.get("mergedRawInput")
        if not isinstance(raw_input, str) or not raw_input.strip():
            raise MalformedResponseError("Merge preview has no mergedRawInput")
        category = data.get("suggestedCategory")
        tags = data.get("mergedTags")
        reasoning = data.get("reasoning")
        return MergePreview(
            merged_title=coerce_title(data.get("mergedTitle"), raw_input),
            merged_raw_input=raw_input.strip(),
            merged_tags=_clean_tags(tags) if isinstance(tags, list) else [],
            suggested_category=category if category in CATEGORIES else item_a.category,
            confidence=coerce_confidence(data.get("confidence")),
            reasoning=reasoning if isinstance(reasoning, str) else "",
        )

    # ------------------------------------------------------------------
    # Tag suggestion
    # ------------------------------------------------------------------

    def suggest_tags(self, item: Item) -> list[str]:
        return self._with_fallback(
            "tag suggestion",
            lambda: self._tags_online(item),
            lambda: keyword_tags(
                item.raw_input, item.title, item.entities.projects, limit=MAX_OFFLINE_TAGS
            ),
        )

    def _tags_online(self, item: Item) -> list[str]:
        payload = [
            {
                "title": item.title,
                "text": item.raw_input,
                "category": item.category,
                "projects": item.entities.projects,
            }
        ]
        data = llm_client.complete_json(
            self.llm, prompts.SUGGEST_TAGS_SYSTEM, prompts.items_prompt(payload)
        )
        tags = data.get("tags")
        if not isinstance(tags, list):
            raise MalformedResponseError("Tag response has no tags list")
        return _clean_tags(tags)[:MAX_ONLINE_TAGS]


def merge_offline(item_a: Item, item_b: Item) -> MergePreview:
    """Naive merge: joined titles and text, union of tags, first item's category."""
    return MergePreview(
        merged_title=clip_title(f"{item_a.title} & {item_b.title}"),
        merged_raw_input=f"{item_a.raw_input} {item_b.raw_input}",
        merged_tags=list(dict.fromkeys([*item_a.tags, *item_b.tags])),
        suggested_category=item_a.category,
        confidence=MERGE_CONFIDENCE,
        reasoning="Offline mode: Basic merge combining both items",
    )


def _clean_tags(tags: list[Any]) -> list[str]:
    cleaned = (str(t).strip().lower() for t in tags if isinstance(t, (str, int)))
    return list(dict.fromkeys(t for t in cleaned if t))
