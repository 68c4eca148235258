"""Editor settings loaded from YAML."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml

_CONFIG_CACHE: Dict[str, Dict[str, Any]] = {}


def _default_config_path() -> Path:
    """Resolve the default config path (supports FOLIO_CONFIG_PATH override)."""
    env_path = os.getenv("FOLIO_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return Path("config") / "folio.yaml"


def clear_config_cache() -> None:
    """Clear cached config (primarily for tests)."""
    _CONFIG_CACHE.clear()


def load_config(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Load YAML configuration with caching.

    Args:
        path: Optional custom path. Defaults to FOLIO_CONFIG_PATH or
            ``config/folio.yaml``. A missing default file yields ``{}``.
    """
    resolved = Path(path).expanduser() if path else _default_config_path()
    key = str(resolved.resolve())
    if key not in _CONFIG_CACHE:
        if not resolved.exists():
            if path:
                raise FileNotFoundError(f"Config file not found: {resolved}")
            return {}
        with open(resolved, "r", encoding="utf-8") as f:
            _CONFIG_CACHE[key] = yaml.safe_load(f) or {}
    return _CONFIG_CACHE[key]


def _get_section(section_path: str, path: str | Path | None = None) -> Dict[str, Any]:
    """
    Return nested configuration section by dotted path (e.g. ``editor.debug``).
    """
    config = load_config(path)
    section: Any = config
    for key in section_path.split("."):
        if not isinstance(section, dict):
            return {}
        section = section.get(key)
        if section is None:
            return {}
    return section if isinstance(section, dict) else {}


def get_editor_settings(path: str | Path | None = None) -> Dict[str, Any]:
    """Return editor-level settings (``max_length``, ``plugins_path``...)."""
    return _get_section("editor", path)


def get_debug_settings(path: str | Path | None = None) -> Dict[str, Any]:
    """Return options for the debug plugin (``log_level``, ``throw_errors``)."""
    return _get_section("editor.debug", path)
