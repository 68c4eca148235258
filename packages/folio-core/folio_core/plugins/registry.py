"""
Plugin Registry — the keyed, ordered result of a resolution.

A registry is owned by exactly one editor. It is built in one go by
``build_registry`` and never mutated afterwards; re-resolving builds a new
one. Lookups are fail-soft because callers routinely probe for optional
plugins.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from .merge import deep_merge, merge_api
from .spec import PluginConfig, ResolvedPlugin

logger = logging.getLogger(__name__)

T = TypeVar("T")

PluginRef = Union[str, PluginConfig, ResolvedPlugin]


class ApiSurface:
    """
    The merged api, reached by attribute (``api.debug.log``) or by item.

    Only dunder methods are defined here, so any method name a plugin
    chooses (``get``, ``items``, ``update``...) resolves to the plugin's
    method. Namespaces are nested ApiSurface objects.
    """

    __slots__ = ("_methods",)

    def __init__(self, api: Optional[Mapping[str, Any]] = None):
        methods: Dict[str, Any] = {}
        for name, impl in (api or {}).items():
            methods[name] = ApiSurface(impl) if isinstance(impl, Mapping) else impl
        object.__setattr__(self, "_methods", methods)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name == "_methods":
            raise AttributeError(name)
        try:
            return self._methods[name]
        except KeyError:
            raise AttributeError(f"No api method or namespace '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("ApiSurface is read-only")

    def __getitem__(self, name: str) -> Any:
        return self._methods[name]

    def __contains__(self, name: object) -> bool:
        return name in self._methods

    def __iter__(self) -> Iterator[str]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    def __dir__(self) -> List[str]:
        return list(self._methods)

    def __repr__(self) -> str:
        return f"ApiSurface({list(self._methods)})"


def _key_of(plugin: PluginRef) -> str:
    return plugin if isinstance(plugin, str) else plugin.key


class Registry:
    """Resolved plugins in order, by key, and their merged api."""

    def __init__(
        self,
        plugin_list: Sequence[ResolvedPlugin] = (),
        api: Optional[Mapping[str, Any]] = None,
    ):
        self.plugin_list: Tuple[ResolvedPlugin, ...] = tuple(plugin_list)
        self.plugins: Dict[str, ResolvedPlugin] = {p.key: p for p in self.plugin_list}
        self.api = ApiSurface(api)

    # ── lookups ───────────────────────────────────────────────────────────

    def get_plugin(self, plugin: PluginRef) -> ResolvedPlugin:
        """Return the plugin for *plugin*, or an empty fallback when absent."""
        key = _key_of(plugin)
        found = self.plugins.get(key)
        if found is None:
            return ResolvedPlugin(key=key)
        return found

    def require(self, plugin: PluginRef) -> ResolvedPlugin:
        """Strict lookup; raises KeyError when the plugin is not registered."""
        key = _key_of(plugin)
        if key not in self.plugins:
            raise KeyError(f"Plugin '{key}' not registered")
        return self.plugins[key]

    def get_options(self, plugin: PluginRef, as_type: Optional[Callable[..., T]] = None) -> Any:
        """
        Return the plugin's options.

        With *as_type*, the options are passed as keyword arguments to it,
        which lets the host attach a typed view (a dataclass, a pydantic
        model) to a plugin key.
        """
        options = self.get_plugin(plugin).options
        if as_type is not None:
            return as_type(**options)
        return options

    def get_type(self, plugin: PluginRef) -> Optional[str]:
        return self.get_plugin(plugin).type

    def get_inject_props(self, plugin: PluginRef) -> Dict[str, Any]:
        return self.get_plugin(plugin).inject.props

    def get_api(self) -> ApiSurface:
        return self.api

    def __contains__(self, key: object) -> bool:
        return key in self.plugins

    def __len__(self) -> int:
        return len(self.plugin_list)

    def keys(self) -> List[str]:
        return [p.key for p in self.plugin_list]

    def __repr__(self) -> str:
        return f"Registry({len(self.plugin_list)} plugins, {len(self.api)} api entries)"


def build_registry(entries: Sequence[ResolvedPlugin], context: Any = None) -> Registry:
    """
    Build a Registry from the overridden, injected list.

    Only the last occurrence of a duplicated key is kept, at its own
    position. ``extend_api`` factories are called with *context* (normally
    the editor) and the entry; the api surface is then merged in order so
    later plugins replace earlier methods of the same name.
    """
    last: Dict[str, int] = {}
    for i, entry in enumerate(entries):
        if entry.key in last:
            logger.debug(f"Plugin '{entry.key}' declared again, replacing earlier declaration")
        last[entry.key] = i

    plugin_list: List[ResolvedPlugin] = []
    surface: Dict[str, Any] = {}
    for i, entry in enumerate(entries):
        if last[entry.key] != i:
            continue
        entry = entry.replace(index=len(plugin_list))
        if entry.extend_api is not None and context is not None:
            extended = entry.extend_api(context, entry) or {}
            entry = entry.replace(api=deep_merge(entry.api, extended))
        merge_api(surface, entry.api)
        plugin_list.append(entry)

    return Registry(plugin_list, surface)
