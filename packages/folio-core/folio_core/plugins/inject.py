"""
Inject propagator.

A plugin can contribute partial configs to other plugins through
``inject.plugins`` (explicit, per target key) or through
``inject.target_plugins`` + ``inject.target_plugin_to_inject`` (computed once
per listed key). ``resolve_plugin`` folds the computed contributions into
the plugin's own ``inject.plugins`` record; ``apply_plugin_injections`` then
merges every record into its targets.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, List, Sequence

from .merge import deep_merge
from .spec import PluginConfig, ResolvedPlugin

logger = logging.getLogger(__name__)


def resolve_plugin(plugin: PluginConfig) -> PluginConfig:
    """
    Expand ``target_plugins`` into ``inject.plugins``.

    Explicit keys keep their declared order and come first; keys produced
    only by ``target_plugin_to_inject`` follow in ``target_plugins`` order.
    A key present in both gets the computed partial merged over the
    explicit one.
    """
    inject = plugin.inject
    if not inject.target_plugins or inject.target_plugin_to_inject is None:
        return plugin

    merged: Dict[str, Dict[str, Any]] = {k: dict(v) for k, v in inject.plugins.items()}
    for target in inject.target_plugins:
        computed = inject.target_plugin_to_inject(plugin=plugin, target_plugin=target) or {}
        merged[target] = deep_merge(merged.get(target, {}), computed)

    return dataclasses.replace(
        plugin, inject=dataclasses.replace(inject, plugins=merged)
    )


def apply_plugin_injections(entries: Sequence[ResolvedPlugin]) -> List[ResolvedPlugin]:
    """Merge each entry's ``inject.plugins`` partials into their targets."""
    out = list(entries)
    by_key: Dict[str, List[int]] = {}
    for i, entry in enumerate(out):
        by_key.setdefault(entry.key, []).append(i)

    for source in list(out):
        for target_key, partial in source.inject.plugins.items():
            positions = by_key.get(target_key)
            if not positions:
                logger.debug(
                    f"Plugin '{source.key}' injects into missing plugin '{target_key}', skipping"
                )
                continue
            for i in positions:
                out[i] = out[i].merge(partial, contributor=f"inject:{source.key}")

    return out
