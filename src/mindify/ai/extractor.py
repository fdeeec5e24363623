"""Multi-item extraction: split one voice note into discrete items.

Pipeline:
  1. Online (when enabled): one LLM call segments the transcript by intent
     and category, and classifies each segment.
  2. On any online failure (transport, timeout, non-JSON, schema violation)
     log a warning and run the offline path instead. extract_multiple_items()
     never raises.
  3. Offline: split on sentence/conjunction boundaries (at most 5 segments),
     classify each segment with OfflineClassifier.

Non-empty input always yields at least one item.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from mindify.ai import llm_client, prompts
from mindify.ai.classifier import (
    Classifier,
    OfflineClassifier,
    coerce_confidence,
    coerce_entities,
    coerce_title,
    require_choice,
)
from mindify.ai.errors import AIServiceError, MalformedResponseError
from mindify.ai.heuristics import OFFLINE_CONFIDENCE, keyword_tags
from mindify.ai.types import ExtractedItem, ExtractionResult
from mindify.config import LLMCfg, UserProfile
from mindify.db.models import CATEGORIES, URGENCIES

logger = logging.getLogger(__name__)

MAX_SEGMENTS = 5
SPLIT_PENALTY = 0.7

_SPLIT_RE = re.compile(r"[.,]|\s+(?:and|also|plus|then)\s+", re.IGNORECASE)


class ItemExtractor:
    """Extract one or more items from a transcript.

    Args:
        llm: LLM call settings.
        profile: User context for the prompt and the known-project vocabulary.
        online: When False, only the offline heuristics run.
    """

    def __init__(self, llm: LLMCfg, profile: UserProfile, online: bool = True) -> None:
        self.llm = llm
        self.profile = profile
        self.online = online
        self.offline_classifier: Classifier = OfflineClassifier(profile)

    def extract_multiple_items(self, text: str) -> ExtractionResult:
        if self.online and text.strip():
            try:
                return self.extract_online(text)
            except AIServiceError as exc:
                logger.warning("Online extraction failed, using offline heuristics: %s", exc)
        return self.extract_offline(text)

    # ------------------------------------------------------------------
    # Online
    # ------------------------------------------------------------------

    def extract_online(self, text: str) -> ExtractionResult:
        """Strict online extraction.

        Raises:
            UpstreamError: The LLM call failed.
            MalformedResponseError: The reply is not valid extraction JSON.
        """
        data = llm_client.complete_json(
            self.llm,
            prompts.extract_system(self.profile),
            prompts.transcript_prompt(text),
            max_tokens=max(self.llm.max_tokens, 2048),
        )
        return parse_extraction(data, text)

    # ------------------------------------------------------------------
    # Offline
    # ------------------------------------------------------------------

    def extract_offline(self, text: str) -> ExtractionResult:
        if not text.strip():
            return ExtractionResult(items=[], reasoning="Offline mode: no speech content to extract")

        segments = split_segments(text)
        if len(segments) <= 1:
            item = self._offline_item(text.strip(), penalty=1.0)
            return ExtractionResult(
                items=[item],
                reasoning="Offline mode: no split points found, treated as a single item",
            )

        items = [self._offline_item(segment, penalty=SPLIT_PENALTY) for segment in segments]
        return ExtractionResult(
            items=items,
            reasoning=f"Offline mode: split into {len(items)} items on sentence and conjunction boundaries",
        )

    def _offline_item(self, segment: str, penalty: float) -> ExtractedItem:
        result = self.offline_classifier.categorize(segment)
        return ExtractedItem(
            category=result.category,
            title=result.title,
            urgency=result.urgency,
            confidence=round(OFFLINE_CONFIDENCE * penalty, 2),
            raw_text=segment,
            tags=keyword_tags(segment, result.title, result.entities.projects),
            entities=result.entities,
        )


def split_segments(text: str) -> list[str]:
    """Split on '.', ',' and bare and/also/plus/then; empty pieces are dropped.

    More than five pieces are capped by folding the tail into the fifth.
    """
    segments = [s.strip() for s in _SPLIT_RE.split(text)]
    segments = [s for s in segments if s]
    if len(segments) > MAX_SEGMENTS:
        head, tail = segments[: MAX_SEGMENTS - 1], segments[MAX_SEGMENTS - 1 :]
        segments = [*head, " ".join(tail)]
    return segments


def parse_extraction(data: dict[str, Any], text: str) -> ExtractionResult:
    """Validate an extract-multiple response.

    Raises:
        MalformedResponseError: ``items`` is missing or empty, or any item
            carries an invalid category or urgency.
    """
    raw_items = data.get("items")
    if not isinstance(raw_items, list) or not raw_items:
        raise MalformedResponseError("Extraction response has no items")

    items: list[ExtractedItem] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise MalformedResponseError("Extraction item is not an object")
        raw_text = raw.get("rawText")
        if not isinstance(raw_text, str) or not raw_text.strip():
            raw_text = text
        tags = raw.get("tags")
        items.append(
            ExtractedItem(
                category=require_choice(raw, "category", CATEGORIES),
                title=coerce_title(raw.get("title"), raw_text),
                urgency=require_choice(raw, "urgency", URGENCIES),
                confidence=coerce_confidence(raw.get("confidence")),
                raw_text=raw_text.strip(),
                tags=[str(t) for t in tags] if isinstance(tags, list) else [],
                entities=coerce_entities(raw.get("entities")),
            )
        )

    reasoning = data.get("reasoning")
    return ExtractionResult(
        items=items,
        reasoning=reasoning if isinstance(reasoning, str) else f"Extracted {len(items)} items",
    )
