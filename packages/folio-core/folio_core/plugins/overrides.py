"""
Override applier.

Plugins may reach into their siblings through ``override``:

    override.plugins[k]     partial config merged into plugin k
    override.components[k]  component for k, subject to a priority tie-break
    override.enabled[k]     False removes k from the registry

Applied in two phases. ``collect_overrides`` walks the sorted list and
builds one ``PluginPatch`` per target key; ``apply_plugin_overrides`` then
returns new entries with the patches applied. Nothing is mutated in place
and every patched entry records its contributors.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .spec import OverrideConfig, ResolvedPlugin

logger = logging.getLogger(__name__)

# Source name used for the registry-wide override record.
REGISTRY_OVERRIDE = "*"


@dataclass
class ComponentWrite:
    component: Any
    source: str
    priority: float


@dataclass
class PluginPatch:
    """Everything the overrides of a resolution want to change on one key."""
    key: str
    partials: List[Tuple[str, Dict[str, Any]]] = field(default_factory=list)
    component: Optional[ComponentWrite] = None
    enabled: Optional[Tuple[bool, str]] = None

    def apply(self, entry: ResolvedPlugin) -> ResolvedPlugin:
        for source, partial in self.partials:
            entry = entry.merge(partial, contributor=f"override:{source}")
        if self.component is not None:
            entry = entry.replace(
                component=self.component.component,
                contributors=entry.contributors + (f"component:{self.component.source}",),
            )
        if self.enabled is not None:
            enabled, source = self.enabled
            entry = entry.replace(
                enabled=enabled,
                contributors=entry.contributors + (f"enabled:{source}",),
            )
        return entry


def collect_overrides(
    entries: Sequence[ResolvedPlugin],
    override: Optional[OverrideConfig] = None,
) -> Dict[str, PluginPatch]:
    """
    Build the patch set for *entries* (in resolution order).

    The optional registry-wide *override* behaves like a plugin of infinite
    priority declared after every other one.
    """
    targets: Dict[str, ResolvedPlugin] = {e.key: e for e in entries}
    patches: Dict[str, PluginPatch] = {}

    sources: List[Tuple[str, float, OverrideConfig]] = [
        (e.key, e.priority, e.override) for e in entries if not e.override.is_empty()
    ]
    if override is not None and not override.is_empty():
        sources.append((REGISTRY_OVERRIDE, math.inf, override))

    def patch_for(source: str, key: str) -> Optional[PluginPatch]:
        if key == source:
            return None
        if key not in targets:
            logger.debug(f"Override from '{source}' targets missing plugin '{key}', skipping")
            return None
        if key not in patches:
            patches[key] = PluginPatch(key=key)
        return patches[key]

    for source, priority, ov in sources:
        for key, partial in ov.plugins.items():
            patch = patch_for(source, key)
            if patch is None:
                continue
            patch.partials.append((source, dict(partial)))
            if "enabled" in partial:
                patch.enabled = (bool(partial["enabled"]), source)

        for key, enabled in ov.enabled.items():
            patch = patch_for(source, key)
            if patch is not None:
                patch.enabled = (bool(enabled), source)

        for key, component in ov.components.items():
            patch = patch_for(source, key)
            if patch is None:
                continue
            current = patch.component
            if current is None:
                target = targets[key]
                if target.component is None or priority > target.priority:
                    patch.component = ComponentWrite(component, source, priority)
            elif priority > current.priority:
                patch.component = ComponentWrite(component, source, priority)

    return patches


def apply_plugin_overrides(
    entries: Sequence[ResolvedPlugin],
    override: Optional[OverrideConfig] = None,
) -> List[ResolvedPlugin]:
    """Return *entries* with every override applied and disabled keys removed."""
    patches = collect_overrides(entries, override)
    out: List[ResolvedPlugin] = []
    for entry in entries:
        patch = patches.get(entry.key)
        if patch is not None:
            entry = patch.apply(entry)
        if entry.enabled is False:
            logger.debug(f"Plugin '{entry.key}' disabled by override, removing")
            continue
        out.append(entry)
    return out
