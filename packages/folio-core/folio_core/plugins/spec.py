"""
Plugin Spec — declarative plugin configs and their resolved form.

A plugin tree declared as plain data looks like:

    key: heading
    priority: 10
    dependencies: [paragraph]
    type: h1
    options:
      levels: [1, 2, 3]
    override:
      components:
        paragraph: my_pkg.components:Paragraph
    plugins:
      - key: heading_shortcuts
        api:
          toggle_heading: my_pkg.heading:toggle

``PluginConfig`` is the declaration, ``ResolvedPlugin`` is what the
resolution engine hands to the editor: flattened (no ``plugins``), merged
with overrides and injections, and carrying its final index.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .merge import deep_merge


class PluginConfigError(ValueError):
    """Raised when a plugin declaration cannot be turned into a PluginConfig."""


@dataclass
class OverrideConfig:
    """Changes a plugin applies to *other* plugins in the same resolution."""
    plugins: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    components: Dict[str, Any] = field(default_factory=dict)
    enabled: Dict[str, bool] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.plugins or self.components or self.enabled)

    def merged(self, partial: Mapping[str, Any]) -> "OverrideConfig":
        return OverrideConfig(
            plugins=deep_merge(self.plugins, partial.get("plugins", {})),
            components={**self.components, **partial.get("components", {})},
            enabled={**self.enabled, **partial.get("enabled", {})},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plugins": self.plugins,
            "components": self.components,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, d: Optional[Mapping[str, Any]]) -> "OverrideConfig":
        if isinstance(d, OverrideConfig):
            return d
        d = d or {}
        return cls(
            plugins={k: dict(v) for k, v in (d.get("plugins") or {}).items()},
            components=dict(d.get("components") or {}),
            enabled=dict(d.get("enabled") or {}),
        )


@dataclass
class InjectConfig:
    """Cross-cutting contributions a plugin merges into named targets."""
    plugins: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    target_plugins: List[str] = field(default_factory=list)
    # called as fn(plugin=<PluginConfig>, target_plugin=<key>) -> partial config
    target_plugin_to_inject: Optional[Callable[..., Mapping[str, Any]]] = None
    props: Dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.plugins or self.target_plugins or self.props)

    def merged(self, partial: Mapping[str, Any]) -> "InjectConfig":
        target_plugins = list(self.target_plugins)
        for key in partial.get("target_plugins", []):
            if key not in target_plugins:
                target_plugins.append(key)
        return InjectConfig(
            plugins=deep_merge(self.plugins, partial.get("plugins", {})),
            target_plugins=target_plugins,
            target_plugin_to_inject=partial.get(
                "target_plugin_to_inject", self.target_plugin_to_inject
            ),
            props=deep_merge(self.props, partial.get("props", {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plugins": self.plugins,
            "target_plugins": self.target_plugins,
            "target_plugin_to_inject": self.target_plugin_to_inject,
            "props": self.props,
        }

    @classmethod
    def from_dict(cls, d: Optional[Mapping[str, Any]]) -> "InjectConfig":
        if isinstance(d, InjectConfig):
            return d
        d = d or {}
        return cls(
            plugins={k: dict(v) for k, v in (d.get("plugins") or {}).items()},
            target_plugins=list(d.get("target_plugins") or []),
            target_plugin_to_inject=d.get("target_plugin_to_inject"),
            props=dict(d.get("props") or {}),
        )


# Fields a partial config may not change on its target.
_FROZEN_FIELDS = {"key", "plugins"}
_MAPPING_FIELDS = {"options", "api"}


@dataclass
class PluginConfig:
    """One declared plugin, possibly with nested children."""
    key: str
    priority: float = 0
    enabled: bool = True
    dependencies: List[str] = field(default_factory=list)
    plugins: List["PluginConfig"] = field(default_factory=list)
    type: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)
    api: Dict[str, Any] = field(default_factory=dict)
    extend_api: Optional[Callable[[Any, "ResolvedPlugin"], Mapping[str, Any]]] = None
    component: Any = None
    override: OverrideConfig = field(default_factory=OverrideConfig)
    inject: InjectConfig = field(default_factory=InjectConfig)
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.key:
            raise PluginConfigError("Plugin config requires a non-empty 'key'")
        if not isinstance(self.override, OverrideConfig):
            self.override = OverrideConfig.from_dict(self.override)
        if not isinstance(self.inject, InjectConfig):
            self.inject = InjectConfig.from_dict(self.inject)

    def configure(self, **changes: Any) -> "PluginConfig":
        """
        Return a copy with *changes* applied.

        ``options`` is deep-merged so a single option can be tweaked without
        restating the rest; every other field is replaced.
        """
        if "options" in changes:
            changes["options"] = deep_merge(self.options, changes["options"])
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "key": self.key,
            "priority": self.priority,
            "enabled": self.enabled,
            "dependencies": list(self.dependencies),
            "plugins": [p.to_dict() for p in self.plugins],
            "type": self.type,
            "options": self.options,
            "api": self.api,
            "extend_api": self.extend_api,
            "component": self.component,
            "override": self.override.to_dict(),
            "inject": self.inject.to_dict(),
        }
        d.update(self.extra)
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "PluginConfig":
        if isinstance(d, PluginConfig):
            return d
        if "key" not in d:
            raise PluginConfigError(f"Plugin declaration is missing 'key': {dict(d)!r}")
        known = {f.name for f in dataclasses.fields(cls)}
        return cls(
            key=d["key"],
            priority=d.get("priority", 0),
            enabled=d.get("enabled", True),
            dependencies=list(d.get("dependencies") or []),
            plugins=[cls.from_dict(p) for p in d.get("plugins") or []],
            type=d.get("type"),
            options=dict(d.get("options") or {}),
            api=dict(d.get("api") or {}),
            extend_api=d.get("extend_api"),
            component=d.get("component"),
            override=OverrideConfig.from_dict(d.get("override")),
            inject=InjectConfig.from_dict(d.get("inject")),
            extra={k: v for k, v in d.items() if k not in known},
        )


@dataclass(frozen=True)
class ResolvedPlugin:
    """A flattened plugin as stored in the registry."""
    key: str
    priority: float = 0
    enabled: bool = True
    dependencies: Tuple[str, ...] = ()
    type: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)
    api: Dict[str, Any] = field(default_factory=dict)
    extend_api: Optional[Callable[[Any, "ResolvedPlugin"], Mapping[str, Any]]] = None
    component: Any = None
    override: OverrideConfig = field(default_factory=OverrideConfig)
    inject: InjectConfig = field(default_factory=InjectConfig)
    extra: Dict[str, Any] = field(default_factory=dict)
    index: int = -1
    parent: Optional[str] = None
    depth: int = 0
    contributors: Tuple[str, ...] = ()

    @classmethod
    def from_config(
        cls,
        config: PluginConfig,
        *,
        index: int = -1,
        parent: Optional[str] = None,
        depth: int = 0,
    ) -> "ResolvedPlugin":
        return cls(
            key=config.key,
            priority=config.priority,
            enabled=config.enabled,
            dependencies=tuple(config.dependencies),
            type=config.type if config.type is not None else config.key,
            options=dict(config.options),
            api=dict(config.api),
            extend_api=config.extend_api,
            component=config.component,
            override=config.override,
            inject=config.inject,
            extra=dict(config.extra),
            index=index,
            parent=parent,
            depth=depth,
        )

    def replace(self, **changes: Any) -> "ResolvedPlugin":
        return dataclasses.replace(self, **changes)

    def merge(self, partial: Mapping[str, Any], contributor: Optional[str] = None) -> "ResolvedPlugin":
        """Return a new entry with the partial config *partial* merged in."""
        changes: Dict[str, Any] = {}
        extra = self.extra
        for name, value in partial.items():
            if name in _FROZEN_FIELDS:
                continue
            if name in _MAPPING_FIELDS:
                changes[name] = deep_merge(changes.get(name, getattr(self, name)), value)
            elif name == "override":
                changes[name] = self.override.merged(value)
            elif name == "inject":
                changes[name] = self.inject.merged(value)
            elif name == "dependencies":
                changes[name] = tuple(value)
            elif name in _RESOLVED_FIELDS:
                changes[name] = value
            else:
                current = extra.get(name)
                if isinstance(current, Mapping) and isinstance(value, Mapping):
                    value = deep_merge(current, value)
                extra = {**extra, name: value}
        if extra is not self.extra:
            changes["extra"] = extra
        if contributor:
            changes["contributors"] = self.contributors + (contributor,)
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        d = {f.name: getattr(self, f.name) for f in dataclasses.fields(self)}
        d["override"] = self.override.to_dict()
        d["inject"] = self.inject.to_dict()
        d["dependencies"] = list(self.dependencies)
        d["contributors"] = list(self.contributors)
        return d


_RESOLVED_FIELDS = {
    "priority", "enabled", "type", "extend_api", "component",
}
