"""Reminder times: natural-language parsing and the scheduled-notification descriptor.

The core only reads and writes ``Item.scheduled_notification``. Scheduling
and delivering the actual notification belongs to the host platform.

Recognised expressions (case-insensitive):
  - clock times:   "3pm", "3:30 pm", "15:00", "noon", "midnight"
  - days:          "today", "tomorrow", "tonight", "monday", "next friday"
  - offsets:       "in 10 minutes", "in an hour", "in 3 days"
  - ISO dates:     "2026-03-01", "2026-03-01 14:30"

A resolved time that is already past (and was not pinned to an explicit
date) moves forward one day.
"""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta

from dateutil import parser as date_parser
from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

from mindify.db.models import Item, ScheduledNotification
from mindify.db.repository import ItemNotFoundError, Repository

DEFAULT_HOUR = 9
TONIGHT_HOUR = 20

_WEEKDAYS = {
    "monday": MO,
    "tuesday": TU,
    "wednesday": WE,
    "thursday": TH,
    "friday": FR,
    "saturday": SA,
    "sunday": SU,
}

_RELATIVE_RE = re.compile(
    r"\bin\s+(\d+|an?|one)\s+(minute|min|hour|hr|day)s?\b", re.IGNORECASE
)
_ISO_RE = re.compile(r"\b(\d{4}-\d{2}-\d{2})(?:[ t](\d{1,2}:\d{2}))?\b", re.IGNORECASE)
_AMPM_RE = re.compile(r"\b(\d{1,2})(?::([0-5]\d))?\s*(am|pm)\b", re.IGNORECASE)
_24H_RE = re.compile(r"\b([01]?\d|2[0-3]):([0-5]\d)\b")
_WEEKDAY_RE = re.compile(r"\b(" + "|".join(_WEEKDAYS) + r")\b", re.IGNORECASE)

_UNITS = {"minute": "minutes", "min": "minutes", "hour": "hours", "hr": "hours", "day": "days"}


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _clock_time(text: str) -> time | None:
    lower = text.lower()
    match = _AMPM_RE.search(lower)
    if match:
        hour = int(match.group(1))
        if not 1 <= hour <= 12:
            return None
        minute = int(match.group(2) or 0)
        hour = hour % 12 + (12 if match.group(3) == "pm" else 0)
        return time(hour, minute)
    match = _24H_RE.search(lower)
    if match:
        return time(int(match.group(1)), int(match.group(2)))
    if re.search(r"\bnoon\b", lower):
        return time(12, 0)
    if re.search(r"\bmidnight\b", lower):
        return time(0, 0)
    return None


def extract_time_from_text(text: str, now: datetime | None = None) -> datetime | None:
    """Find the first reminder time mentioned in *text*.

    Args:
        text: Raw transcript.
        now: Reference time (aware); defaults to the local current time.

    Returns:
        An aware datetime in the future, or None if no time expression was found.
    """
    now = now or _local_now()
    lower = text.lower()

    match = _RELATIVE_RE.search(lower)
    if match:
        amount = match.group(1)
        count = int(amount) if amount.isdigit() else 1
        return now + relativedelta(**{_UNITS[match.group(2)]: count})

    for match in _ISO_RE.finditer(lower):
        try:
            parsed = date_parser.isoparse(match.group(1))
        except ValueError:
            # "2026-02-30" and the like: not a date, keep looking
            continue
        clock = _clock_time(match.group(2) or "") or _clock_time(lower) or time(DEFAULT_HOUR)
        return datetime.combine(parsed.date(), clock, tzinfo=now.tzinfo)

    clock = _clock_time(lower)
    day = now.date()
    explicit_day = True
    weekday = _WEEKDAY_RE.search(lower)

    if re.search(r"\btomorrow\b", lower):
        day = day + timedelta(days=1)
    elif re.search(r"\btonight\b", lower):
        clock = clock or time(TONIGHT_HOUR)
    elif weekday:
        day = day + relativedelta(days=1, weekday=_WEEKDAYS[weekday.group(1)](+1))
    elif re.search(r"\btoday\b", lower):
        pass
    else:
        explicit_day = False

    if clock is None and not explicit_day:
        return None

    resolved = datetime.combine(day, clock or time(DEFAULT_HOUR), tzinfo=now.tzinfo)
    if resolved <= now:
        resolved += timedelta(days=1)
    return resolved


def default_reminder_time(urgency: str, now: datetime | None = None) -> datetime:
    """high: +15 min, medium: +1 h, otherwise tomorrow at 09:00."""
    now = now or _local_now()
    if urgency == "high":
        return now + timedelta(minutes=15)
    if urgency == "medium":
        return now + timedelta(hours=1)
    tomorrow = now.date() + timedelta(days=1)
    return datetime.combine(tomorrow, time(DEFAULT_HOUR), tzinfo=now.tzinfo)


def notification_id(item_id: str) -> int:
    """Stable non-negative 31-bit id derived from *item_id* (Java-style string hash)."""
    h = 0
    for ch in item_id:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h) & 0x7FFFFFFF


def _update(repo: Repository, item_id: str, notification: ScheduledNotification | None) -> Item:
    updated = repo.update_item(item_id, scheduled_notification=notification)
    if updated is None:
        raise ItemNotFoundError(item_id)
    return updated


def set_reminder(
    repo: Repository, item_id: str, at: datetime | None = None, now: datetime | None = None
) -> Item:
    """Attach a reminder descriptor to an item.

    When *at* is None the time is parsed from the item's text, falling back
    to the urgency-based default.

    Raises:
        ItemNotFoundError: If *item_id* does not exist.
    """
    item = repo.require_item(item_id)
    if at is None:
        at = extract_time_from_text(item.raw_input, now) or default_reminder_time(item.urgency, now)
    notification = ScheduledNotification(
        notification_id=notification_id(item.id), scheduled_at=at, snooze_count=0
    )
    return _update(repo, item_id, notification)


def snooze_reminder(
    repo: Repository, item_id: str, minutes: int = 10, now: datetime | None = None
) -> Item:
    """Push a reminder *minutes* into the future and count the snooze.

    Raises:
        ItemNotFoundError: If *item_id* does not exist.
        ValueError: If the item has no reminder set.
    """
    item = repo.require_item(item_id)
    current = item.scheduled_notification
    if current is None:
        raise ValueError(f"Item {item_id} has no reminder set")
    now = now or _local_now()
    notification = ScheduledNotification(
        notification_id=current.notification_id,
        scheduled_at=now + timedelta(minutes=minutes),
        snooze_count=current.snooze_count + 1,
    )
    return _update(repo, item_id, notification)


def clear_reminder(repo: Repository, item_id: str) -> Item:
    return _update(repo, item_id, None)
