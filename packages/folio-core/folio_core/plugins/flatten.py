"""
Plugin tree flattener.

Walks nested plugin declarations depth-first, pre-order: a parent always
precedes its descendants and siblings keep their declared order. Disabled
plugins are pruned together with their whole subtree. Duplicate keys are
kept here; the last declaration of a key replaces the earlier ones once the
list is sorted (see ``superseded_positions``).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Union

from .spec import PluginConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlatPlugin:
    """A plugin in flatten order, remembering where it sat in the tree."""
    plugin: PluginConfig
    position: int
    parent: Optional[int] = None
    depth: int = 0

    @property
    def key(self) -> str:
        return self.plugin.key


PluginTree = Union[PluginConfig, Sequence[PluginConfig]]


def flatten_plugins(root: PluginTree) -> List[FlatPlugin]:
    """
    Flatten *root* into pre-order.

    Args:
        root: a single root config, or a sequence of top-level configs

    Returns:
        List of FlatPlugin; ``parent`` is the position of the declaring
        parent (``None`` for top-level entries).
    """
    roots = [root] if isinstance(root, PluginConfig) else list(root)
    out: List[FlatPlugin] = []

    def visit(plugin: PluginConfig, parent: Optional[int], depth: int) -> None:
        if plugin.enabled is False:
            logger.debug(f"Plugin '{plugin.key}' is disabled, dropping it and its subtree")
            return
        position = len(out)
        out.append(FlatPlugin(plugin=plugin, position=position, parent=parent, depth=depth))
        for child in plugin.plugins:
            visit(child, position, depth + 1)

    for plugin in roots:
        visit(plugin, None, 0)

    return out


def superseded_positions(flat: Sequence[FlatPlugin]) -> Set[int]:
    """Positions of declarations replaced by a later one with the same key."""
    last = {entry.key: entry.position for entry in flat}
    return {entry.position for entry in flat if last[entry.key] != entry.position}
