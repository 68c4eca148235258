"""
Core plugins every editor starts with.

    debug   leveled logging api (``editor.api.debug.log/info/warn/error``)
    length  carries the document ``max_length`` option

A user plugin declared with a core key replaces that core plugin in place.
"""
from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence

from .spec import PluginConfig, ResolvedPlugin

debug_logger = logging.getLogger("folio_core.debug")

DEBUG_KEY = "debug"
LENGTH_KEY = "length"

# Lower is more severe; a message is emitted when its level is <= log_level.
LOG_LEVELS = {"error": 0, "warn": 1, "info": 2, "log": 3}

_PY_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "log": logging.DEBUG,
}


class EditorError(RuntimeError):
    """Raised by ``api.debug.error`` when the debug plugin throws errors."""

    def __init__(self, message: str, type: Optional[str] = None):
        super().__init__(message)
        self.type = type


def _default_sink(level: str) -> Callable[..., None]:
    def sink(message: Any, type: Optional[str] = None, details: Any = None) -> None:
        prefix = f"[{type}] " if type else ""
        suffix = f" {details!r}" if details is not None else ""
        debug_logger.log(_PY_LEVELS[level], f"{prefix}{message}{suffix}")
    return sink


def _debug_api(editor: Any, plugin: ResolvedPlugin) -> Dict[str, Any]:
    def emit(level: str, message: Any, type: Optional[str] = None, details: Any = None) -> None:
        options = editor.get_options(plugin.key)
        threshold = LOG_LEVELS.get(options.get("log_level", "log"), LOG_LEVELS["log"])
        if LOG_LEVELS[level] > threshold:
            return
        if level == "error" and options.get("throw_errors", True):
            raise EditorError(str(message), type)
        sink = (options.get("logger") or {}).get(level) or _default_sink(level)
        sink(message, type, details)

    return {"debug": {level: partial(emit, level) for level in LOG_LEVELS}}


DebugPlugin = PluginConfig(
    key=DEBUG_KEY,
    options={
        "log_level": "log",
        "logger": {level: _default_sink(level) for level in LOG_LEVELS},
        "throw_errors": True,
    },
    extend_api=_debug_api,
)

LengthPlugin = PluginConfig(key=LENGTH_KEY, options={"max_length": None})


def get_core_plugins(
    max_length: Optional[int] = None,
    plugins: Sequence[PluginConfig] = (),
) -> List[PluginConfig]:
    """Return the core plugins, swapping in any user plugin with a core key."""
    length = LengthPlugin
    if max_length is not None:
        length = LengthPlugin.configure(options={"max_length": max_length})

    custom = {p.key: p for p in plugins}
    return [custom.get(p.key, p) for p in (DebugPlugin, length)]
