"""
folio Core Library.

Provides the plugin resolution engine of the folio editor framework:
- Plugin configs (nested, overlapping, possibly cyclic declarations)
- Resolution into one ordered, conflict-resolved registry
- Overrides and injections between plugins
- The editor object that owns a registry and exposes its api
"""

__version__ = "0.1.0"

from .editor import Editor, create_editor, create_editor_from_config
from .plugins import (
    InjectConfig,
    OverrideConfig,
    PluginConfig,
    PluginConfigError,
    Registry,
    ResolvedPlugin,
    merge_plugins,
    resolve_plugins,
)
from .plugins.core import DebugPlugin, EditorError, LengthPlugin

__all__ = [
    "__version__",
    "DebugPlugin",
    "Editor",
    "EditorError",
    "InjectConfig",
    "LengthPlugin",
    "OverrideConfig",
    "PluginConfig",
    "PluginConfigError",
    "Registry",
    "ResolvedPlugin",
    "create_editor",
    "create_editor_from_config",
    "merge_plugins",
    "resolve_plugins",
]
