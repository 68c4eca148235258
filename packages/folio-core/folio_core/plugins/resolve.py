"""
Plugin resolution pipeline.

    flatten -> sort -> overrides -> injections -> registry

``resolve_plugins`` is the one-shot entry point; the intermediate steps are
exported for hosts and tests that want to inspect a single stage.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .flatten import PluginTree, flatten_plugins, superseded_positions
from .inject import apply_plugin_injections, resolve_plugin
from .overrides import apply_plugin_overrides
from .registry import Registry, build_registry
from .sort import sort_plugins
from .spec import OverrideConfig, PluginConfig, ResolvedPlugin

logger = logging.getLogger(__name__)

OverrideLike = Union[OverrideConfig, Mapping[str, Any], None]


def resolve_and_sort_plugins(root: PluginTree) -> List[ResolvedPlugin]:
    """
    Flatten and sort *root* into ResolvedPlugin entries, before overrides.

    A key declared more than once keeps only its last declaration, at that
    declaration's sorted position. Earlier declarations take no part in
    ordering, overrides or injections. Their nested children are kept.
    """
    flat = flatten_plugins(root)
    superseded = superseded_positions(flat)
    for position in sorted(superseded):
        logger.debug(f"Plugin '{flat[position].key}' declared again, replacing earlier declaration")
    ordered = [entry for entry in sort_plugins(flat) if entry.position not in superseded]
    parents = {entry.position: entry.key for entry in flat}
    return [
        ResolvedPlugin.from_config(
            resolve_plugin(entry.plugin),
            index=i,
            parent=parents.get(entry.parent) if entry.parent is not None else None,
            depth=entry.depth,
        )
        for i, entry in enumerate(ordered)
    ]


def resolve_plugins(
    root: PluginTree,
    override: OverrideLike = None,
    context: Any = None,
) -> Registry:
    """
    Resolve a plugin declaration tree into a Registry.

    Args:
        root: root PluginConfig or sequence of top-level configs
        override: registry-wide override record, applied as if declared by
            a plugin of infinite priority
        context: handed to every ``extend_api`` factory (normally the editor)

    Returns:
        A new Registry. Nothing outside the returned object is touched.
    """
    if override is not None and not isinstance(override, OverrideConfig):
        override = OverrideConfig.from_dict(override)

    entries = resolve_and_sort_plugins(root)
    entries = apply_plugin_overrides(entries, override)
    entries = apply_plugin_injections(entries)
    registry = build_registry(entries, context=context)

    logger.info(f"Resolved {len(registry)} plugins")
    return registry


def merge_plugins(
    registry: Registry,
    plugins: Sequence[Union[PluginConfig, ResolvedPlugin]],
    context: Any = None,
) -> Registry:
    """
    Return a new Registry with *plugins* merged into *registry*.

    A plugin whose key is already registered replaces that entry at the
    same position; new keys are appended in the given order. Configs are
    converted as-is (their nested ``plugins`` are not flattened).
    """
    positions: Dict[str, int] = {p.key: i for i, p in enumerate(registry.plugin_list)}
    merged: List[ResolvedPlugin] = list(registry.plugin_list)
    for plugin in plugins:
        if isinstance(plugin, PluginConfig):
            plugin = ResolvedPlugin.from_config(resolve_plugin(plugin))
        if plugin.key in positions:
            merged[positions[plugin.key]] = plugin
        else:
            positions[plugin.key] = len(merged)
            merged.append(plugin)
    return build_registry(merged, context=context)
