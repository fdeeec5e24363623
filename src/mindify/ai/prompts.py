"""Prompt templates for the online strategies.

Every prompt asks for bare JSON; the caller treats anything else as a
malformed response.
"""

from __future__ import annotations

import json

from mindify.config import UserProfile

_PROFILE_HEADER = """\
You are an ADHD-friendly AI assistant helping {name}, a {profession} at {company}.
{additional_context}

Current projects: {projects}
"""

_CATEGORY_GUIDE = """\
Guidelines:
- "idea" = creative concepts, brainstorms, possibilities, "what if" scenarios
- "task" = actionable items requiring completion, has verbs like "need to", "should", "must"
- "reminder" = time-sensitive notifications, things to remember, "don't forget"
- "note" = information capture, observations, references, general thoughts
"""

CATEGORIZE_SYSTEM = (
    _PROFILE_HEADER
    + """
Categorize the captured thought the user sends you.

Respond with a JSON object containing:
- category: one of "idea", "task", "reminder", "note"
- subcategory: optional more specific category (e.g., "Film", "Business", "Personal", "Health")
- title: a concise, actionable title (max 60 chars)
- entities: {{ people?: string[], dates?: string[], projects?: string[], locations?: string[] }}
- urgency: one of "high", "medium", "low", "none"
- confidence: 0-1 score of how confident you are in this categorization
- reasoning: one short sentence

"""
    + _CATEGORY_GUIDE
    + """
Extract any mentioned people, dates (convert to ISO format if possible), projects \
(especially {projects}), and locations.

Respond ONLY with valid JSON, no markdown formatting or explanation."""
)

EXTRACT_SYSTEM = (
    _PROFILE_HEADER
    + """
TASK: Extract MULTIPLE discrete items from the voice note the user sends you. \
People with ADHD often capture many thoughts at once, so identify each distinct item separately.

For EACH distinct item you identify, extract:
- category: "idea" | "task" | "reminder" | "note"
- title: concise, actionable title (max 60 chars)
- tags: array of 2-5 relevant contextual tags
- urgency: "high" | "medium" | "low" | "none"
- confidence: 0-1 score of how confident you are in this extraction
- rawText: the specific portion of the voice note related to this item
- entities: {{ people?: string[], dates?: string[], projects?: string[], locations?: string[] }}

Rules:
- Separate by intent: "Remind me to call mom at 3pm" + "I have an idea for an app" = 2 items
- Separate by category: "Buy groceries" (task) + "Don't forget the meeting" (reminder) = 2 items
- Keep together: "Build an app that tracks fitness goals" = 1 item, even if long
- Do not split on filler words, and never split one coherent action
- Extract dates in ISO format when resolvable, otherwise keep the original phrase
- Match projects against: {projects}

Even if there is only 1 item, return it in the items array.

Respond with JSON of the form:
{{"items": [{{"category": "...", "title": "...", "tags": [], "urgency": "...", \
"confidence": 0.0, "rawText": "...", "entities": {{}}}}], "reasoning": "..."}}

Respond ONLY with valid JSON, no markdown or explanation."""
)

GROUP_SYSTEM = """\
You group related raw thoughts captured by one person into merge suggestions.
Thoughts spoken close together about the same subject belong together; unrelated
thoughts stay alone. A thought may belong to at most one group, and a group has at
least 2 thoughts.

Respond with JSON of the form:
{"groups": [{"thoughtIds": ["..."], "mergedContent": "...", "suggestedCategory": \
"idea|task|reminder|note", "suggestedTitle": "max 60 chars", "confidence": 0.0, \
"reasoning": "..."}], "summary": "..."}

Respond ONLY with valid JSON, no markdown or explanation."""

DETECT_PROJECTS_SYSTEM = """\
You look across a person's captured items for recurring themes that deserve their
own named project. Only suggest a project when several items clearly share it.

Respond with JSON of the form:
{"suggestions": [{"projectName": "...", "description": "...", "relatedItemIds": ["..."], \
"confidence": 0.0, "reasoning": "...", "suggestedColor": "#RRGGBB"}], "reasoning": "..."}

Respond ONLY with valid JSON, no markdown or explanation."""

MERGE_PREVIEW_SYSTEM = """\
You merge two captured items into one. Keep every concrete detail from both.

Respond with JSON of the form:
{"mergedTitle": "max 60 chars", "mergedRawInput": "...", "mergedTags": ["..."], \
"suggestedCategory": "idea|task|reminder|note", "confidence": 0.0, "reasoning": "..."}

Respond ONLY with valid JSON, no markdown or explanation."""

SUGGEST_TAGS_SYSTEM = """\
You suggest up to 5 short lowercase tags for a captured item.

Respond with JSON of the form: {"tags": ["..."]}

Respond ONLY with valid JSON, no markdown or explanation."""


def _profile_fields(profile: UserProfile) -> dict[str, str]:
    return {
        "name": profile.name,
        "profession": profile.profession or "professional",
        "company": profile.company or "their company",
        "additional_context": profile.additional_context,
        "projects": ", ".join(profile.projects) or "(none)",
    }


def categorize_system(profile: UserProfile) -> str:
    return CATEGORIZE_SYSTEM.format(**_profile_fields(profile))


def extract_system(profile: UserProfile) -> str:
    return EXTRACT_SYSTEM.format(**_profile_fields(profile))


def transcript_prompt(text: str) -> str:
    return f'Captured thought:\n"{text}"'


def items_prompt(payload: list[dict]) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)
