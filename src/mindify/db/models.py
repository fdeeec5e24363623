"""Domain models for the Mindify item store."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Literal

Category = Literal["idea", "task", "reminder", "note"]
Urgency = Literal["high", "medium", "low", "none"]
Status = Literal["inbox", "captured", "acted", "archived"]

CATEGORIES: tuple[str, ...] = ("idea", "task", "reminder", "note")
URGENCIES: tuple[str, ...] = ("high", "medium", "low", "none")
STATUSES: tuple[str, ...] = ("inbox", "captured", "acted", "archived")

# Higher rank sorts first.
URGENCY_RANK: dict[str, int] = {"high": 3, "medium": 2, "low": 1, "none": 0}

TITLE_MAX = 60


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def clip_title(text: str, limit: int = TITLE_MAX) -> str:
    """Return *text* trimmed to at most *limit* characters."""
    return text.strip()[:limit].strip()


@dataclass
class Entities:
    people: list[str] = field(default_factory=list)
    dates: list[str] = field(default_factory=list)
    projects: list[str] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> Entities:
        data = data or {}

        def _strings(key: str) -> list[str]:
            value = data.get(key)
            if not isinstance(value, list):
                return []
            return [str(v) for v in value]

        return cls(
            people=_strings("people"),
            dates=_strings("dates"),
            projects=_strings("projects"),
            locations=_strings("locations"),
        )


@dataclass
class ScheduledNotification:
    """Reminder descriptor; scheduling and delivery happen outside the core."""

    notification_id: int
    scheduled_at: datetime
    snooze_count: int = 0

    def to_dict(self) -> dict:
        return {
            "notification_id": self.notification_id,
            "scheduled_at": self.scheduled_at.isoformat(),
            "snooze_count": self.snooze_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ScheduledNotification:
        return cls(
            notification_id=int(data["notification_id"]),
            scheduled_at=datetime.fromisoformat(data["scheduled_at"]),
            snooze_count=int(data.get("snooze_count", 0)),
        )


@dataclass
class Item:
    """A captured thought.

    ``raw_input`` is never rewritten; split extraction creates new items
    instead. ``pending_ai_processing`` items are in flight and hidden from
    browsing views.
    """

    raw_input: str
    category: str = "note"
    title: str = ""
    id: str = field(default_factory=new_id)
    subcategory: str | None = None
    tags: list[str] = field(default_factory=list)
    entities: Entities = field(default_factory=Entities)
    urgency: str = "none"
    status: str = "inbox"
    pending_ai_processing: bool = False
    synced: bool = False
    scheduled_notification: ScheduledNotification | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Project:
    """A named, user-approved grouping of item ids."""

    name: str
    id: str = field(default_factory=new_id)
    description: str = ""
    color: str = "#B026FF"
    item_ids: list[str] = field(default_factory=list)
    suggested_by_ai: bool = False
    user_approved: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


def sort_by_urgency(items: list[Item]) -> list[Item]:
    """Order items high → none, newest first within the same urgency."""
    by_recency = sorted(items, key=lambda i: i.created_at, reverse=True)
    return sorted(by_recency, key=lambda i: URGENCY_RANK.get(i.urgency, 0), reverse=True)
