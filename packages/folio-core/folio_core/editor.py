"""
Editor — the host object a resolved plugin registry is attached to.

The document model, rendering and input handling live elsewhere; this
module only bootstraps the root plugin, runs resolution and exposes the
registry through the editor.
"""
from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from .plugins.core import DEBUG_KEY, DebugPlugin, get_core_plugins
from .plugins.loader import load_plugins
from .plugins.registry import ApiSurface, PluginRef, Registry
from .plugins.resolve import OverrideLike, resolve_plugins
from .plugins.spec import InjectConfig, PluginConfig, ResolvedPlugin
from .services.config_service import get_debug_settings, get_editor_settings

logger = logging.getLogger(__name__)

ROOT_KEY = "root"
ROOT_PRIORITY = 10_000


class Editor:
    """One editor instance and the registry it owns."""

    def __init__(self, id: Any = None):
        self.key = random.random()
        self.id = id if id is not None else self.key
        self.registry = Registry()

    # ── resolution ────────────────────────────────────────────────────────

    def resolve(
        self,
        plugins: Union[PluginConfig, Sequence[PluginConfig]],
        override: OverrideLike = None,
    ) -> Registry:
        """
        Resolve *plugins* and replace this editor's registry.

        The new registry is assigned only once fully built.
        """
        registry = resolve_plugins(plugins, override=override, context=self)
        if len(self.registry):
            logger.debug(f"Editor {self.id!r}: replacing registry of {len(self.registry)} plugins")
        self.registry = registry
        return registry

    # ── registry views ────────────────────────────────────────────────────

    @property
    def plugin_list(self):
        return self.registry.plugin_list

    @property
    def plugins(self) -> Dict[str, ResolvedPlugin]:
        return self.registry.plugins

    @property
    def api(self) -> ApiSurface:
        return self.registry.api

    def get_api(self) -> ApiSurface:
        return self.registry.get_api()

    def get_plugin(self, plugin: PluginRef) -> ResolvedPlugin:
        return self.registry.get_plugin(plugin)

    def get_options(self, plugin: PluginRef, as_type: Optional[Callable[..., Any]] = None) -> Any:
        return self.registry.get_options(plugin, as_type=as_type)

    def get_type(self, plugin: PluginRef) -> Optional[str]:
        return self.registry.get_type(plugin)

    def get_inject_props(self, plugin: PluginRef) -> Dict[str, Any]:
        return self.registry.get_inject_props(plugin)

    def __repr__(self) -> str:
        return f"Editor(id={self.id!r}, {len(self.registry)} plugins)"


def create_editor(
    plugins: Sequence[PluginConfig] = (),
    override: OverrideLike = None,
    root_plugin: Optional[Callable[[PluginConfig], PluginConfig]] = None,
    max_length: Optional[int] = None,
    id: Any = None,
    api: Optional[Mapping[str, Any]] = None,
    options: Optional[Mapping[str, Any]] = None,
    inject: Optional[InjectConfig] = None,
    extend_api: Optional[Callable[[Any, ResolvedPlugin], Mapping[str, Any]]] = None,
) -> Editor:
    """
    Create an editor and resolve its plugins.

    Core plugins come first under a ``root`` plugin (priority 10 000),
    followed by *plugins*. A plugin sharing a core key takes that core
    plugin's place. *root_plugin* may transform the root config
    before resolution. *override* is applied registry-wide.
    """
    editor = Editor(id=id)
    core = get_core_plugins(max_length=max_length, plugins=plugins)
    core_keys = {p.key for p in core}
    plugins = [p for p in plugins if p.key not in core_keys]

    root = PluginConfig(
        key=ROOT_KEY,
        priority=ROOT_PRIORITY,
        plugins=[*core, *plugins],
        api=dict(api or {}),
        options=dict(options or {}),
        inject=inject or InjectConfig(),
        extend_api=extend_api,
    )
    if root_plugin is not None:
        root = root_plugin(root)

    editor.resolve(root, override=override)
    return editor


def create_editor_from_config(
    config_path: Union[str, Path, None] = None,
    plugins_path: Optional[str] = None,
    plugins: Sequence[PluginConfig] = (),
) -> Editor:
    """
    Create an editor from YAML settings and plugin declarations.

    Declared plugins come before *plugins*; the file's ``override`` record
    becomes the registry-wide override. Debug settings from the config are
    applied to the debug plugin unless *plugins* already replace it.
    """
    settings = get_editor_settings(config_path)
    declarations = load_plugins(plugins_path or settings.get("plugins_path"))
    all_plugins = [*declarations.plugins, *plugins]

    debug_settings = get_debug_settings(config_path)
    if debug_settings and not any(p.key == DEBUG_KEY for p in all_plugins):
        all_plugins.insert(0, DebugPlugin.configure(options=debug_settings))

    return create_editor(
        plugins=all_plugins,
        override=declarations.override,
        max_length=settings.get("max_length"),
        id=settings.get("id"),
    )
