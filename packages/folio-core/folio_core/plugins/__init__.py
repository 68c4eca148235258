"""
folio plugin system — declarative plugin configs and the resolution engine.
"""
from .flatten import FlatPlugin, flatten_plugins, superseded_positions
from .inject import apply_plugin_injections, resolve_plugin
from .overrides import PluginPatch, apply_plugin_overrides, collect_overrides
from .registry import ApiSurface, Registry, build_registry
from .resolve import merge_plugins, resolve_and_sort_plugins, resolve_plugins
from .sort import sort_plugins
from .spec import (
    InjectConfig,
    OverrideConfig,
    PluginConfig,
    PluginConfigError,
    ResolvedPlugin,
)

__all__ = [
    "ApiSurface",
    "FlatPlugin",
    "InjectConfig",
    "OverrideConfig",
    "PluginConfig",
    "PluginConfigError",
    "PluginPatch",
    "Registry",
    "ResolvedPlugin",
    "apply_plugin_injections",
    "apply_plugin_overrides",
    "build_registry",
    "collect_overrides",
    "flatten_plugins",
    "merge_plugins",
    "resolve_and_sort_plugins",
    "resolve_plugin",
    "resolve_plugins",
    "sort_plugins",
    "superseded_positions",
]
