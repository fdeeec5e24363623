"""Tests for mindify.cli.errors message helpers."""

from __future__ import annotations

from mindify.cli.errors import (
    err_config,
    err_empty_capture,
    err_item_not_found,
    err_no_api_key,
    err_no_reminder,
    err_project_not_found,
    err_storage_full,
    err_unparsed_time,
)


def test_err_no_api_key_names_env_var() -> None:
    msg = err_no_api_key("anthropic/claude-3-5-sonnet-20241022")
    assert "ANTHROPIC_API_KEY" in msg
    assert "Offline mode" in msg


def test_err_no_api_key_unknown_provider() -> None:
    assert "GROQ_API_KEY" in err_no_api_key("groq/llama3-70b")


def test_err_no_api_key_bare_model_is_openai() -> None:
    assert "OPENAI_API_KEY" in err_no_api_key("gpt-4o")


def test_err_empty_capture_shows_usage() -> None:
    msg = err_empty_capture()
    assert "No speech detected" in msg
    assert "mindify capture" in msg


def test_err_item_not_found() -> None:
    msg = err_item_not_found("abc123")
    assert "abc123" in msg
    assert "mindify list" in msg


def test_err_project_not_found() -> None:
    msg = err_project_not_found("p1")
    assert "p1" in msg
    assert "mindify projects list" in msg


def test_err_storage_full_mentions_quota_setting() -> None:
    msg = err_storage_full(".mindify.db")
    assert ".mindify.db" in msg
    assert "max_db_pages" in msg


def test_err_config() -> None:
    assert "threshold" in err_config("grouping.similarity_threshold must be in [0, 1]")


def test_err_no_reminder_suggests_command() -> None:
    assert "mindify remind abc" in err_no_reminder("abc")


def test_err_unparsed_time_echoes_input() -> None:
    assert "whenever" in err_unparsed_time("whenever")
