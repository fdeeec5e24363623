"""Ephemeral results produced by the AI services. Never persisted as-is."""

from __future__ import annotations

from dataclasses import dataclass, field

from mindify.db.models import Entities, Item


@dataclass
class Categorization:
    """Single-item classification; identical for online and offline strategies."""

    category: str
    title: str
    urgency: str
    confidence: float
    entities: Entities = field(default_factory=Entities)
    subcategory: str | None = None
    reasoning: str | None = None


@dataclass
class ExtractedItem:
    """One discrete item split out of a transcript."""

    category: str
    title: str
    urgency: str
    confidence: float
    raw_text: str
    tags: list[str] = field(default_factory=list)
    entities: Entities = field(default_factory=Entities)


@dataclass
class ExtractionResult:
    items: list[ExtractedItem]
    reasoning: str


@dataclass
class ThoughtGroup:
    """A proposed merge of 2+ inbox items, valid for one review session."""

    id: str
    thoughts: list[Item]
    merged_content: str
    suggested_category: str
    suggested_title: str
    confidence: float
    reasoning: str


@dataclass
class GroupingResult:
    """``groups`` members and ``ungrouped`` partition the input exactly."""

    groups: list[ThoughtGroup]
    ungrouped: list[Item]
    summary: str


@dataclass
class ProjectSuggestion:
    project_name: str
    description: str
    related_item_ids: list[str]
    confidence: float
    reasoning: str
    suggested_color: str


@dataclass
class ProjectDetection:
    suggestions: list[ProjectSuggestion]
    reasoning: str


@dataclass
class MergePreview:
    merged_title: str
    merged_raw_input: str
    merged_tags: list[str]
    suggested_category: str
    confidence: float
    reasoning: str
