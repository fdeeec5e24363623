"""Tests for mindify remind."""

from __future__ import annotations

from datetime import datetime

from typer.testing import CliRunner

from mindify.cli.main import app
from mindify.db.models import Item

runner = CliRunner()


def test_remind_at_sets_notification(cli_home, repo) -> None:
    item = repo.add_item(Item(raw_input="call mom", title="call mom"))
    before = datetime.now().astimezone()

    result = runner.invoke(app, ["remind", item.id[:8], "--at", "in 2 hours"])

    assert result.exit_code == 0, result.output
    assert "Reminder for 'call mom'" in result.output
    notification = repo.get_item(item.id).scheduled_notification
    assert notification is not None
    assert notification.scheduled_at > before
    assert notification.snooze_count == 0


def test_remind_reads_time_from_item_text(cli_home, repo) -> None:
    item = repo.add_item(Item(raw_input="dentist on 2030-01-15 at 4pm", title="dentist"))

    result = runner.invoke(app, ["remind", item.id])

    assert result.exit_code == 0, result.output
    scheduled = repo.get_item(item.id).scheduled_notification.scheduled_at
    assert (scheduled.year, scheduled.month, scheduled.day, scheduled.hour) == (2030, 1, 15, 16)


def test_remind_unparsed_time(cli_home, repo) -> None:
    item = repo.add_item(Item(raw_input="call mom", title="call mom"))

    result = runner.invoke(app, ["remind", item.id, "--at", "whenever"])

    assert result.exit_code == 1
    assert "Could not understand the time" in result.output
    assert repo.get_item(item.id).scheduled_notification is None


def test_remind_snooze(cli_home, repo) -> None:
    item = repo.add_item(Item(raw_input="call mom", title="call mom"))
    runner.invoke(app, ["remind", item.id, "--at", "tomorrow 9am"])

    result = runner.invoke(app, ["remind", item.id, "--snooze", "15"])

    assert result.exit_code == 0, result.output
    assert "snoozed 1x" in result.output
    assert repo.get_item(item.id).scheduled_notification.snooze_count == 1


def test_remind_snooze_without_reminder(cli_home, repo) -> None:
    item = repo.add_item(Item(raw_input="call mom", title="call mom"))

    result = runner.invoke(app, ["remind", item.id, "--snooze", "15"])

    assert result.exit_code == 1
    assert "has no reminder set" in result.output


def test_remind_clear(cli_home, repo) -> None:
    item = repo.add_item(Item(raw_input="call mom at 3pm", title="call mom"))
    runner.invoke(app, ["remind", item.id])

    result = runner.invoke(app, ["remind", item.id, "--clear"])

    assert "Reminder cleared" in result.output
    assert repo.get_item(item.id).scheduled_notification is None


def test_remind_impossible_date_is_unparsed(cli_home, repo) -> None:
    item = repo.add_item(Item(raw_input="call mom", title="call mom"))

    result = runner.invoke(app, ["remind", item.id, "--at", "2026-02-30"])

    assert result.exit_code == 1
    assert "Could not understand the time" in result.output
    assert repo.get_item(item.id).scheduled_notification is None
