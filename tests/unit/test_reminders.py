"""Tests for reminder time parsing and the scheduled-notification descriptor."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from mindify.db.models import Item
from mindify.db.repository import ItemNotFoundError
from mindify.reminders import (
    clear_reminder,
    default_reminder_time,
    extract_time_from_text,
    notification_id,
    set_reminder,
    snooze_reminder,
)

# Wednesday 4 March 2026, 10:00 UTC
NOW = datetime(2026, 3, 4, 10, 0, tzinfo=timezone.utc)


def _at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, day, hour, minute, tzinfo=timezone.utc)


# ------------------------------------------------------------------
# extract_time_from_text
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Remind me to call mom at 3pm", _at(4, 15)),
        ("standup at 3:30 PM", _at(4, 15, 30)),
        ("deploy at 16:45", _at(4, 16, 45)),
        ("lunch at noon", _at(4, 12)),
        ("call mom at 9am", _at(5, 9)),
        ("backup at midnight", _at(5, 0)),
        ("pay rent tomorrow", _at(5, 9)),
        ("tomorrow at 3:30 pm", _at(5, 15, 30)),
        ("take the bins out tonight", _at(4, 20)),
        ("tonight at 11pm", _at(4, 23)),
        ("finish the deck today at 5pm", _at(4, 17)),
        ("finish the deck today", _at(5, 9)),
        ("drinks on friday", _at(6, 9)),
        ("team sync wednesday 2pm", _at(11, 14)),
        ("check oven in 10 minutes", NOW + timedelta(minutes=10)),
        ("call back in an hour", NOW + timedelta(hours=1)),
        ("follow up in 3 days", NOW + timedelta(days=3)),
        ("dentist 2026-03-10", _at(10, 9)),
        ("dentist 2026-03-10 14:30", _at(10, 14, 30)),
        ("dentist on 2026-03-10 at 4pm", _at(10, 16)),
        ("invoice 2026-02-30 due tomorrow", _at(5, 9)),
        ("order 2026-13-45, call at 3pm", _at(4, 15)),
        ("not 2026-02-30 but 2026-03-10", _at(10, 9)),
    ],
)
def test_extract_time_from_text(text, expected):
    assert extract_time_from_text(text, now=NOW) == expected


@pytest.mark.parametrize(
    "text", ["buy milk", "13pm", "in the morning", "", "invoice 2026-02-30 check", "order 2026-13-45"]
)
def test_extract_time_from_text_none(text):
    assert extract_time_from_text(text, now=NOW) is None


def test_extract_time_defaults_to_local_now():
    result = extract_time_from_text("in 5 minutes")
    assert result is not None
    assert result.tzinfo is not None


# ------------------------------------------------------------------
# default_reminder_time
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    "urgency, expected",
    [
        ("high", NOW + timedelta(minutes=15)),
        ("medium", NOW + timedelta(hours=1)),
        ("low", _at(5, 9)),
        ("none", _at(5, 9)),
    ],
)
def test_default_reminder_time(urgency, expected):
    assert default_reminder_time(urgency, now=NOW) == expected


# ------------------------------------------------------------------
# notification_id
# ------------------------------------------------------------------


def test_notification_id_matches_java_string_hash():
    assert notification_id("a") == 97
    assert notification_id("abc") == 96354


def test_notification_id_is_stable_and_31_bit():
    item_id = "0f8fad5b-d9cb-469f-a165-70867728950e"
    first = notification_id(item_id)
    assert first == notification_id(item_id)
    assert 0 <= first <= 0x7FFFFFFF


# ------------------------------------------------------------------
# set / snooze / clear
# ------------------------------------------------------------------


def test_set_reminder_parses_item_text(repo):
    item = repo.add_item(Item(raw_input="call mom at 3pm", title="call mom"))

    updated = set_reminder(repo, item.id, now=NOW)

    notification = repo.get_item(item.id).scheduled_notification
    assert notification.scheduled_at == _at(4, 15)
    assert notification.notification_id == notification_id(item.id)
    assert notification.snooze_count == 0
    assert updated.scheduled_notification == notification


def test_set_reminder_falls_back_to_urgency(repo):
    item = repo.add_item(Item(raw_input="fix the leak", title="fix", urgency="high"))
    set_reminder(repo, item.id, now=NOW)
    assert repo.get_item(item.id).scheduled_notification.scheduled_at == NOW + timedelta(minutes=15)


def test_set_reminder_ignores_impossible_date_in_text(repo):
    item = repo.add_item(Item(raw_input="order 2026-13-45", title="order", urgency="medium"))
    set_reminder(repo, item.id, now=NOW)
    assert repo.get_item(item.id).scheduled_notification.scheduled_at == NOW + timedelta(hours=1)


def test_set_reminder_explicit_time(repo):
    item = repo.add_item(Item(raw_input="call mom at 3pm", title="call mom"))
    set_reminder(repo, item.id, at=_at(9, 8))
    assert repo.get_item(item.id).scheduled_notification.scheduled_at == _at(9, 8)


def test_set_reminder_missing_item(repo):
    with pytest.raises(ItemNotFoundError):
        set_reminder(repo, "nope", now=NOW)


def test_snooze_reminder(repo):
    item = repo.add_item(Item(raw_input="call mom at 3pm", title="call mom"))
    set_reminder(repo, item.id, now=NOW)

    snooze_reminder(repo, item.id, now=NOW)
    snoozed = snooze_reminder(repo, item.id, minutes=30, now=NOW)

    assert snoozed.scheduled_notification.scheduled_at == NOW + timedelta(minutes=30)
    assert snoozed.scheduled_notification.snooze_count == 2
    assert snoozed.scheduled_notification.notification_id == notification_id(item.id)


def test_snooze_without_reminder_raises(repo):
    item = repo.add_item(Item(raw_input="buy milk", title="buy milk"))
    with pytest.raises(ValueError, match="no reminder"):
        snooze_reminder(repo, item.id, now=NOW)


def test_clear_reminder(repo):
    item = repo.add_item(Item(raw_input="call mom at 3pm", title="call mom"))
    set_reminder(repo, item.id, now=NOW)

    clear_reminder(repo, item.id)

    assert repo.get_item(item.id).scheduled_notification is None
