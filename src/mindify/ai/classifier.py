"""Single-item classification: online (LLM) and offline (keyword) strategies.

Both strategies return the same Categorization, so callers never branch on
which one ran; a confidence of 0.3 marks the offline path.

The online strategy does not fall back on its own. Network failures raise
UpstreamError and schema violations raise MalformedResponseError; callers
decide whether to retry or drop to OfflineClassifier. ItemExtractor runs
OfflineClassifier per segment; the HTTP server runs LLMClassifier only.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from mindify.ai import llm_client, prompts
from mindify.ai.errors import MalformedResponseError
from mindify.ai.heuristics import classify_offline
from mindify.ai.types import Categorization
from mindify.config import LLMCfg, UserProfile
from mindify.db.models import CATEGORIES, URGENCIES, Entities, clip_title

DEFAULT_CONFIDENCE = 0.5


class Classifier(ABC):
    """Turns one raw transcript into a Categorization."""

    @abstractmethod
    def categorize(self, text: str) -> Categorization:
        """Classify *text*. The caller guarantees it is non-empty."""


class OfflineClassifier(Classifier):
    def __init__(self, profile: UserProfile | None = None) -> None:
        self.profile = profile or UserProfile()

    def categorize(self, text: str) -> Categorization:
        return classify_offline(text, self.profile.projects)


class LLMClassifier(Classifier):
    """Classify via one chat completion with the user profile in the system prompt."""

    def __init__(self, llm: LLMCfg, profile: UserProfile) -> None:
        self.llm = llm
        self.profile = profile

    def categorize(self, text: str) -> Categorization:
        data = llm_client.complete_json(
            self.llm,
            prompts.categorize_system(self.profile),
            prompts.transcript_prompt(text),
        )
        return parse_categorization(data)


# ------------------------------------------------------------------
# Response validation (shared with extraction)
# ------------------------------------------------------------------


def require_choice(data: dict[str, Any], key: str, allowed: tuple[str, ...]) -> str:
    """Return ``data[key]`` if it is one of *allowed*, else raise."""
    value = data.get(key)
    if value not in allowed:
        raise MalformedResponseError(f"Invalid {key} {value!r}; expected one of {allowed}")
    return value


def coerce_confidence(value: Any) -> float:
    """Clamp to [0, 1]; missing or non-numeric values become 0.5."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    return max(0.0, min(1.0, float(value)))


def coerce_title(value: Any, fallback: str) -> str:
    title = value if isinstance(value, str) and value.strip() else fallback
    return clip_title(title)


def coerce_entities(value: Any) -> Entities:
    return Entities.from_dict(value if isinstance(value, dict) else None)


def parse_categorization(data: dict[str, Any]) -> Categorization:
    """Validate a categorize response.

    An unknown category or urgency rejects the whole response rather than
    guessing. Softer fields get safe defaults.

    Raises:
        MalformedResponseError: Category or urgency is missing or invalid.
    """
    category = require_choice(data, "category", CATEGORIES)
    urgency = require_choice(data, "urgency", URGENCIES)
    subcategory = data.get("subcategory")
    reasoning = data.get("reasoning")
    return Categorization(
        category=category,
        subcategory=subcategory if isinstance(subcategory, str) and subcategory else None,
        title=coerce_title(data.get("title"), category.capitalize()),
        entities=coerce_entities(data.get("entities")),
        urgency=urgency,
        confidence=coerce_confidence(data.get("confidence")),
        reasoning=reasoning if isinstance(reasoning, str) else None,
    )
