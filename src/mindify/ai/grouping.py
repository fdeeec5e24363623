"""Thought grouping: propose merges of related inbox items.

Every input item ends up in exactly one place: a member of one group, or in
``ungrouped``. Online groups are rebuilt from the item ids the model
returns, so hallucinated ids are dropped and an item claimed by an earlier
group is never reused. Groups left with fewer than two members are
discarded.

Offline heuristic:
  1. Sort items by created_at.
  2. For each unclaimed anchor, scan forward while the candidate is within
     the time window; a candidate joins when the Jaccard similarity of the
     word sets exceeds the threshold.
  3. Only groups with 2+ members are kept.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from mindify.ai import llm_client, prompts
from mindify.ai.classifier import coerce_confidence, coerce_title
from mindify.ai.errors import AIServiceError, MalformedResponseError
from mindify.ai.heuristics import infer_group_category, jaccard
from mindify.ai.types import GroupingResult, ThoughtGroup
from mindify.config import GroupingCfg, LLMCfg
from mindify.db.models import CATEGORIES, Item, clip_title, new_id

logger = logging.getLogger(__name__)

OFFLINE_GROUP_CONFIDENCE = 0.6
ONLINE_GROUP_CONFIDENCE = 0.7


class ThoughtGrouper:
    def __init__(self, llm: LLMCfg, policy: GroupingCfg | None = None, online: bool = True) -> None:
        self.llm = llm
        self.policy = policy or GroupingCfg()
        self.online = online

    def group_thoughts(self, items: list[Item]) -> GroupingResult:
        if not items:
            return GroupingResult(groups=[], ungrouped=[], summary="No thoughts to process")
        if self.online and len(items) > 1:
            try:
                return self.group_online(items)
            except AIServiceError as exc:
                logger.warning("Online grouping failed, using offline heuristics: %s", exc)
        return self.group_offline(items)

    # ------------------------------------------------------------------
    # Online
    # ------------------------------------------------------------------

    def group_online(self, items: list[Item]) -> GroupingResult:
        payload = [
            {
                "id": item.id,
                "text": item.raw_input,
                "title": item.title,
                "category": item.category,
                "createdAt": item.created_at.isoformat(),
            }
            for item in items
        ]
        data = llm_client.complete_json(
            self.llm, prompts.GROUP_SYSTEM, prompts.items_prompt(payload)
        )
        return parse_grouping(data, items)

    # ------------------------------------------------------------------
    # Offline
    # ------------------------------------------------------------------

    def group_offline(self, items: list[Item]) -> GroupingResult:
        window = timedelta(minutes=self.policy.time_window_minutes)
        ordered = sorted(items, key=lambda i: i.created_at)
        claimed: set[str] = set()
        groups: list[ThoughtGroup] = []

        for index, anchor in enumerate(ordered):
            if anchor.id in claimed:
                continue
            members = [anchor]
            for candidate in ordered[index + 1 :]:
                if candidate.created_at - anchor.created_at > window:
                    break
                if candidate.id in claimed:
                    continue
                if jaccard(anchor.raw_input, candidate.raw_input) > self.policy.similarity_threshold:
                    members.append(candidate)
            if len(members) < 2:
                continue
            claimed.update(m.id for m in members)
            merged = ". ".join(m.raw_input for m in members)
            groups.append(
                ThoughtGroup(
                    id=new_id(),
                    thoughts=members,
                    merged_content=merged,
                    suggested_category=infer_group_category(merged),
                    suggested_title=clip_title(merged),
                    confidence=OFFLINE_GROUP_CONFIDENCE,
                    reasoning=(
                        f"Offline mode: similar wording captured within "
                        f"{self.policy.time_window_minutes:g} minutes"
                    ),
                )
            )

        return GroupingResult(
            groups=groups,
            ungrouped=[item for item in items if item.id not in claimed],
            summary=f"Found {len(groups)} potential groups from {len(items)} thoughts (offline mode)",
        )


def parse_grouping(data: dict[str, Any], items: list[Item]) -> GroupingResult:
    """Rebuild groups from model-supplied ids against the real *items*.

    Raises:
        MalformedResponseError: ``groups`` is missing or not a list.
    """
    raw_groups = data.get("groups")
    if not isinstance(raw_groups, list):
        raise MalformedResponseError("Grouping response has no groups list")

    by_id = {item.id: item for item in items}
    claimed: set[str] = set()
    groups: list[ThoughtGroup] = []

    for raw in raw_groups:
        if not isinstance(raw, dict) or not isinstance(raw.get("thoughtIds"), list):
            continue
        members: list[Item] = []
        for thought_id in raw["thoughtIds"]:
            if thought_id in by_id and thought_id not in claimed:
                members.append(by_id[thought_id])
                claimed.add(thought_id)
        if len(members) < 2:
            claimed.difference_update(m.id for m in members)
            continue

        merged = raw.get("mergedContent")
        if not isinstance(merged, str) or not merged.strip():
            merged = ". ".join(m.raw_input for m in members)
        category = raw.get("suggestedCategory")
        if category not in CATEGORIES:
            category = infer_group_category(merged)
        reasoning = raw.get("reasoning")
        groups.append(
            ThoughtGroup(
                id=new_id(),
                thoughts=members,
                merged_content=merged,
                suggested_category=category,
                suggested_title=coerce_title(raw.get("suggestedTitle"), merged),
                confidence=(
                    coerce_confidence(raw["confidence"])
                    if "confidence" in raw
                    else ONLINE_GROUP_CONFIDENCE
                ),
                reasoning=reasoning if isinstance(reasoning, str) else "Related thoughts",
            )
        )

    summary = data.get("summary")
    return GroupingResult(
        groups=groups,
        ungrouped=[item for item in items if item.id not in claimed],
        summary=summary if isinstance(summary, str) else f"Found {len(groups)} potential groups",
    )
