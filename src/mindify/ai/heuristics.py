"""Offline keyword heuristics shared by every offline strategy.

Deterministic and total: any non-empty string yields a valid category and
urgency. Matching is plain lowercase substring search, checked in the order
the tables are declared.
"""

from __future__ import annotations

from collections.abc import Iterable

from mindify.ai.types import Categorization
from mindify.db.models import TITLE_MAX, Entities

OFFLINE_CONFIDENCE = 0.3

REMINDER_CUES = ("remind", "don't forget", "remember to", "remember that")
TASK_CUES = ("need to", "should", "todo", "to do", "must", "have to", "gotta")
IDEA_CUES = ("idea", "what if", "maybe", "could", "might be cool", "thinking about")
HIGH_URGENCY_CUES = ("urgent", "asap", "immediately", "right now", "today")

IDEA_SUBCATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Film", ("film", "movie", "script", "scene")),
    ("Business", ("business", "company", "startup")),
)

# Grouping infers a category for merged text with a smaller vocabulary,
# checked idea → task → reminder.
GROUP_CATEGORY_CUES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("idea", ("idea", "what if", "maybe")),
    ("task", ("need to", "should", "must")),
    ("reminder", ("remind", "don't forget", "remember")),
)

TAG_PATTERNS: dict[str, tuple[str, ...]] = {
    "urgent": ("urgent", "asap", "immediately"),
    "work": ("work", "job", "office", "meeting"),
    "personal": ("home", "family", "personal"),
    "health": ("health", "exercise", "gym", "doctor"),
    "finance": ("money", "budget", "pay", "bill"),
    "creative": ("idea", "creative", "design", "art"),
}


def _has_any(text: str, cues: Iterable[str]) -> bool:
    return any(cue in text for cue in cues)


def offline_title(text: str) -> str:
    """First 60 characters of *text*, with an ellipsis when cut."""
    text = text.strip()
    if len(text) <= TITLE_MAX:
        return text
    return text[: TITLE_MAX - 3].rstrip() + "..."


def match_known_projects(text: str, known_projects: Iterable[str]) -> list[str]:
    lower = text.lower()
    found: list[str] = []
    for project in known_projects:
        if project and project.lower() in lower and project not in found:
            found.append(project)
    return found


def classify_offline(text: str, known_projects: Iterable[str] = ()) -> Categorization:
    """Keyword classification of one transcript. Never raises."""
    lower = text.lower()
    category = "note"
    urgency = "none"
    subcategory: str | None = None

    if _has_any(lower, REMINDER_CUES):
        category, urgency = "reminder", "medium"
    elif _has_any(lower, TASK_CUES):
        category, urgency = "task", "medium"
    elif _has_any(lower, IDEA_CUES):
        category = "idea"

    if _has_any(lower, HIGH_URGENCY_CUES):
        urgency = "high"

    if category == "idea":
        for name, cues in IDEA_SUBCATEGORIES:
            if _has_any(lower, cues):
                subcategory = name
                break

    return Categorization(
        category=category,
        subcategory=subcategory,
        title=offline_title(text),
        entities=Entities(projects=match_known_projects(text, known_projects)),
        urgency=urgency,
        confidence=OFFLINE_CONFIDENCE,
        reasoning="Offline keyword heuristics",
    )


def infer_group_category(text: str) -> str:
    lower = text.lower()
    for category, cues in GROUP_CATEGORY_CUES:
        if _has_any(lower, cues):
            return category
    return "note"


def tokenize(text: str) -> set[str]:
    return set(text.lower().split())


def jaccard(a: str, b: str) -> float:
    """Jaccard similarity of the whitespace-tokenized lowercase word sets."""
    words_a, words_b = tokenize(a), tokenize(b)
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def keyword_tags(text: str, title: str = "", projects: Iterable[str] = (), limit: int = 3) -> list[str]:
    """Tags from the keyword table plus lowercased project names, capped at *limit*."""
    lower_text, lower_title = text.lower(), title.lower()
    tags: list[str] = []
    for tag, keywords in TAG_PATTERNS.items():
        if any(k in lower_text or k in lower_title for k in keywords):
            tags.append(tag)
    for project in projects:
        name = project.lower()
        if name not in tags:
            tags.append(name)
    return tags[:limit]
