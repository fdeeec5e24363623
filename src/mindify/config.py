"""Mindify configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (MINDIFY_MODEL, MINDIFY_DB, MINDIFY_OFFLINE)
  3. Per-project mindify.yaml  (current directory)
  4. Global ~/.mindify/config.yaml  (no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".mindify"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "mindify.yaml"

# Matches api_key, apikey, api-key, api_secret, *_token, token, *_secret,
# secret, password, passwd, credential(s). Leaves max_tokens alone.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["profile", "llm", "grouping", "projects", "storage", "api"]
)

_TRUTHY = {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class UserProfile:
    """Who the captures belong to (mindify.yaml: profile:).

    Embedded in every LLM prompt so entity extraction can match known
    project names; ``projects`` doubles as the offline classifier's
    known-project vocabulary.
    """

    name: str = "User"
    profession: str = ""
    company: str = ""
    projects: list[str] = field(default_factory=list)
    additional_context: str = ""


@dataclass
class LLMCfg:
    """LLM call configuration (mindify.yaml: llm:)."""

    model: str = "anthropic/claude-3-5-sonnet-20241022"
    max_tokens: int = 1024
    temperature: float = 0.0
    timeout: float = 30.0
    num_retries: int = 2
    offline: bool = False


@dataclass
class GroupingCfg:
    """Offline thought-grouping policy (mindify.yaml: grouping:)."""

    time_window_minutes: float = 5.0
    similarity_threshold: float = 0.30


@dataclass
class ProjectsCfg:
    """Offline project detection policy (mindify.yaml: projects:)."""

    min_items: int = 3
    palette: list[str] = field(
        default_factory=lambda: ["#B026FF", "#00F0FF", "#FF2E97", "#00FF94", "#F59E0B"]
    )


@dataclass
class StorageCfg:
    """Local item store (mindify.yaml: storage:).

    Attributes:
        db: Path to the SQLite database file.
        max_db_pages: Optional SQLite page quota (PRAGMA max_page_count).
            When set, writes beyond the quota trigger archived-item eviction.
    """

    db: str = ".mindify.db"
    max_db_pages: int | None = None


@dataclass
class ApiCfg:
    """HTTP contract server (mindify.yaml: api:)."""

    host: str = "127.0.0.1"
    port: int = 8787


@dataclass
class MindifyConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    profile: UserProfile = field(default_factory=UserProfile)
    llm: LLMCfg = field(default_factory=LLMCfg)
    grouping: GroupingCfg = field(default_factory=GroupingCfg)
    projects: ProjectsCfg = field(default_factory=ProjectsCfg)
    storage: StorageCfg = field(default_factory=StorageCfg)
    api: ApiCfg = field(default_factory=ApiCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: MindifyConfig) -> None:
    if not 0.0 <= cfg.grouping.similarity_threshold <= 1.0:
        raise ConfigError(
            f"grouping.similarity_threshold must be in [0, 1], got {cfg.grouping.similarity_threshold}"
        )
    if cfg.grouping.time_window_minutes < 0:
        raise ConfigError("grouping.time_window_minutes must be >= 0")
    if cfg.projects.min_items < 1:
        raise ConfigError("projects.min_items must be >= 1")
    if not cfg.projects.palette:
        raise ConfigError("projects.palette must contain at least one color")
    if cfg.llm.timeout <= 0:
        raise ConfigError("llm.timeout must be > 0")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def _cfg_from_dict(data: dict[str, Any]) -> MindifyConfig:
    """Build a *MindifyConfig* from a merged raw YAML dict."""
    cfg = MindifyConfig()

    if "profile" in data:
        p = data["profile"] or {}
        cfg.profile = UserProfile(
            name=str(p.get("name", cfg.profile.name)),
            profession=str(p.get("profession", cfg.profile.profession)),
            company=str(p.get("company", cfg.profile.company)),
            projects=[str(x) for x in p.get("projects", cfg.profile.projects) or []],
            additional_context=str(
                p.get("additional_context", cfg.profile.additional_context) or ""
            ),
        )

    if "llm" in data:
        m = data["llm"] or {}
        cfg.llm = LLMCfg(
            model=str(m.get("model", cfg.llm.model)),
            max_tokens=int(m.get("max_tokens", cfg.llm.max_tokens)),
            temperature=float(m.get("temperature", cfg.llm.temperature)),
            timeout=float(m.get("timeout", cfg.llm.timeout)),
            num_retries=int(m.get("num_retries", cfg.llm.num_retries)),
            offline=_as_bool(m.get("offline", cfg.llm.offline)),
        )

    if "grouping" in data:
        g = data["grouping"] or {}
        cfg.grouping = GroupingCfg(
            time_window_minutes=float(
                g.get("time_window_minutes", cfg.grouping.time_window_minutes)
            ),
            similarity_threshold=float(
                g.get("similarity_threshold", cfg.grouping.similarity_threshold)
            ),
        )

    if "projects" in data:
        pr = data["projects"] or {}
        cfg.projects = ProjectsCfg(
            min_items=int(pr.get("min_items", cfg.projects.min_items)),
            palette=[str(c) for c in pr.get("palette", cfg.projects.palette) or []],
        )

    if "storage" in data:
        s = data["storage"] or {}
        max_pages = s.get("max_db_pages", cfg.storage.max_db_pages)
        cfg.storage = StorageCfg(
            db=str(s.get("db", cfg.storage.db)),
            max_db_pages=int(max_pages) if max_pages is not None else None,
        )

    if "api" in data:
        a = data["api"] or {}
        cfg.api = ApiCfg(
            host=str(a.get("host", cfg.api.host)),
            port=int(a.get("port", cfg.api.port)),
        )

    return cfg


def _apply_env_overrides(cfg: MindifyConfig) -> MindifyConfig:
    """Apply MINDIFY_* environment variable overrides."""
    if model := os.environ.get("MINDIFY_MODEL"):
        cfg.llm.model = model
    if db := os.environ.get("MINDIFY_DB"):
        cfg.storage.db = db
    if offline := os.environ.get("MINDIFY_OFFLINE"):
        cfg.llm.offline = _as_bool(offline)
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> MindifyConfig:
    """Load and return a merged *MindifyConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *mindify.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *MindifyConfig* with env var overrides applied.

    Raises:
        ConfigError: If the global config contains API-key-like fields, or a
            policy value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)

    _validate(cfg)
    return cfg


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.mindify/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# Mindify global configuration.\n"
            "# NEVER store API keys here — use environment variables:\n"
            "#   export ANTHROPIC_API_KEY=sk-ant-...\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "\n"
            "profile:\n"
            "  name: User\n"
            "  projects: []\n"
            "\n"
            "llm:\n"
            "  model: anthropic/claude-3-5-sonnet-20241022\n"
            "  timeout: 30\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
