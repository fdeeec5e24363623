"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from mindify.db.connection import Database
from mindify.db.migrations import initialize
from mindify.db.repository import Repository

_ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "MINDIFY_MODEL",
    "MINDIFY_DB",
    "MINDIFY_OFFLINE",
    "MINDIFY_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """No real API keys or MINDIFY_* overrides leak into tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".mindify.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)


@pytest.fixture
def cli_home(tmp_path, monkeypatch):
    """Run CLI commands from tmp_path with no global config file."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("mindify.config._GLOBAL_CONFIG_PATH", tmp_path / "global" / "config.yaml")
    return tmp_path
