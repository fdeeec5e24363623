"""Tests for the mindify config loader."""

from __future__ import annotations

import stat
import warnings
from pathlib import Path

import pytest
import yaml

from mindify.config import ConfigError, ensure_global_config, load_config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


def _missing_global(tmp_path: Path) -> Path:
    return tmp_path / "nonexistent" / "config.yaml"


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    """No config files → all hardcoded defaults."""
    cfg = load_config(project_dir=tmp_path, global_config_path=_missing_global(tmp_path))

    assert cfg.profile.name == "User"
    assert cfg.profile.projects == []
    assert cfg.llm.model == "anthropic/claude-3-5-sonnet-20241022"
    assert cfg.llm.offline is False
    assert cfg.grouping.time_window_minutes == 5.0
    assert cfg.grouping.similarity_threshold == 0.30
    assert cfg.projects.min_items == 3
    assert cfg.projects.palette[0] == "#B026FF"
    assert len(cfg.projects.palette) == 5
    assert cfg.storage.db == ".mindify.db"
    assert cfg.storage.max_db_pages is None
    assert cfg.api.port == 8787


def test_load_config_global_null_yaml(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("~\n", encoding="utf-8")
    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.llm.max_tokens == 1024


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_load_config_project_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"llm": {"model": "openai/gpt-4o", "timeout": 10}})
    _write_yaml(tmp_path / "mindify.yaml", {"llm": {"model": "openai/gpt-4o-mini"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)

    assert cfg.llm.model == "openai/gpt-4o-mini"
    assert cfg.llm.timeout == 10.0  # kept from global


def test_load_config_profile_section(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path / "mindify.yaml",
        {
            "profile": {
                "name": "Sam",
                "profession": "filmmaker",
                "company": "Studio",
                "projects": ["Moonrise", "Atlas"],
                "additional_context": "Works nights.",
            }
        },
    )
    cfg = load_config(project_dir=tmp_path, global_config_path=_missing_global(tmp_path))

    assert cfg.profile.name == "Sam"
    assert cfg.profile.projects == ["Moonrise", "Atlas"]
    assert cfg.profile.additional_context == "Works nights."


def test_load_config_policy_sections(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path / "mindify.yaml",
        {
            "grouping": {"time_window_minutes": 10, "similarity_threshold": 0.5},
            "projects": {"min_items": 2, "palette": ["#000000"]},
            "storage": {"db": "items.db", "max_db_pages": 200},
            "api": {"host": "0.0.0.0", "port": 9000},
        },
    )
    cfg = load_config(project_dir=tmp_path, global_config_path=_missing_global(tmp_path))

    assert cfg.grouping.time_window_minutes == 10.0
    assert cfg.grouping.similarity_threshold == 0.5
    assert cfg.projects.min_items == 2
    assert cfg.projects.palette == ["#000000"]
    assert cfg.storage.db == "items.db"
    assert cfg.storage.max_db_pages == 200
    assert cfg.api.host == "0.0.0.0"
    assert cfg.api.port == 9000


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "section",
    [
        {"grouping": {"similarity_threshold": 1.5}},
        {"grouping": {"time_window_minutes": -1}},
        {"projects": {"min_items": 0}},
        {"projects": {"palette": []}},
        {"llm": {"timeout": 0}},
    ],
)
def test_out_of_range_values_raise(tmp_path: Path, section: dict) -> None:
    _write_yaml(tmp_path / "mindify.yaml", section)
    with pytest.raises(ConfigError):
        load_config(project_dir=tmp_path, global_config_path=_missing_global(tmp_path))


@pytest.mark.parametrize(
    "bad_key",
    ["api_key", "apikey", "ANTHROPIC_API_KEY", "secret", "password", "token", "api-key"],
)
def test_global_config_rejects_api_key_fields(tmp_path: Path, bad_key: str) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text(f"{bad_key}: sk-abc123\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_global_config_rejects_nested_api_key(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"llm": {"api_key": "sk-secret"}})

    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_max_tokens_is_not_an_api_key(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"llm": {"max_tokens": 2048}})
    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.llm.max_tokens == 2048


def test_unknown_top_level_key_warns(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"unknown_section": {"foo": "bar"}})

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)

    assert any("unknown_section" in str(w.message) for w in caught)
    assert cfg.profile.name == "User"


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------


def test_env_var_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_yaml(tmp_path / "mindify.yaml", {"llm": {"model": "openai/gpt-4o"}})
    monkeypatch.setenv("MINDIFY_MODEL", "ollama/llama3")
    monkeypatch.setenv("MINDIFY_DB", "/tmp/other.db")
    monkeypatch.setenv("MINDIFY_OFFLINE", "yes")

    cfg = load_config(project_dir=tmp_path, global_config_path=_missing_global(tmp_path))

    assert cfg.llm.model == "ollama/llama3"
    assert cfg.storage.db == "/tmp/other.db"
    assert cfg.llm.offline is True


def test_offline_false_string(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "mindify.yaml", {"llm": {"offline": "no"}})
    cfg = load_config(project_dir=tmp_path, global_config_path=_missing_global(tmp_path))
    assert cfg.llm.offline is False


# ---------------------------------------------------------------------------
# ensure_global_config
# ---------------------------------------------------------------------------


def test_ensure_global_config_creates_file(tmp_path: Path) -> None:
    target = tmp_path / ".mindify" / "config.yaml"
    result = ensure_global_config(global_config_path=target)

    assert result == target
    parsed = yaml.safe_load(target.read_text(encoding="utf-8"))
    assert "profile" in parsed
    assert "llm" in parsed
    # The generated file must itself pass the API-key check
    load_config(project_dir=tmp_path, global_config_path=target)


def test_ensure_global_config_file_mode(tmp_path: Path) -> None:
    target = tmp_path / ".mindify" / "config.yaml"
    ensure_global_config(global_config_path=target)
    assert stat.S_IMODE(target.stat().st_mode) == 0o600


def test_ensure_global_config_idempotent(tmp_path: Path) -> None:
    target = tmp_path / ".mindify" / "config.yaml"
    ensure_global_config(global_config_path=target)
    target.write_text("# custom\nllm:\n  model: openai/gpt-4o-mini\n", encoding="utf-8")

    ensure_global_config(global_config_path=target)
    assert "gpt-4o-mini" in target.read_text(encoding="utf-8")


def test_config_does_not_execute_yaml_load(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("!!python/object/apply:os.system ['echo pwned']\n", encoding="utf-8")

    with pytest.raises(yaml.YAMLError):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)
