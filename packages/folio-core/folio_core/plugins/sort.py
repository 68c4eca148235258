"""
Dependency-priority sorter.

Orders a flattened plugin list so that:

1. declared dependencies come before their dependents,
2. otherwise higher ``priority`` comes first, ties keep flatten order,
3. a parent and its descendants stay one contiguous run, ordered only
   against the parent's siblings; children are re-sorted inside the run.

Each sibling group is sorted with Kahn's algorithm. When a cycle leaves no
free unit, the cycle member with the highest priority (then the earliest
position) is emitted anyway, so every plugin appears exactly once.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from .flatten import FlatPlugin, superseded_positions

logger = logging.getLogger(__name__)


def sort_plugins(flat: List[FlatPlugin]) -> List[FlatPlugin]:
    """Return *flat* in final resolution order."""
    if not flat:
        return []

    children: Dict[Optional[int], List[int]] = {}
    for entry in flat:
        children.setdefault(entry.parent, []).append(entry.position)

    known_keys = {entry.key for entry in flat}
    for entry in flat:
        for dep in entry.plugin.dependencies:
            if dep not in known_keys:
                logger.debug(
                    f"Plugin '{entry.key}' depends on missing plugin '{dep}', ignoring"
                )

    # Only the last declaration of a key takes part in ordering.
    superseded = superseded_positions(flat)

    # Every key held by each subtree, used to lift dependency edges to the
    # sibling level.
    subtree_keys: Dict[int, Set[str]] = {}
    subtree_deps: Dict[int, Set[str]] = {}
    for entry in reversed(flat):
        if entry.position in superseded:
            keys: Set[str] = set()
            deps: Set[str] = set()
        else:
            keys = {entry.key}
            deps = set(entry.plugin.dependencies)
        for child in children.get(entry.position, []):
            keys |= subtree_keys[child]
            deps |= subtree_deps[child]
        subtree_keys[entry.position] = keys
        subtree_deps[entry.position] = deps

    ordered: List[FlatPlugin] = []

    def emit(group: List[int]) -> None:
        for position in _order_group(flat, group, subtree_keys, subtree_deps):
            ordered.append(flat[position])
            emit(children.get(position, []))

    emit(children.get(None, []))
    return ordered


def _order_group(
    flat: List[FlatPlugin],
    group: List[int],
    subtree_keys: Dict[int, Set[str]],
    subtree_deps: Dict[int, Set[str]],
) -> List[int]:
    """Kahn's algorithm over one sibling group, breaking cycles by priority."""
    if len(group) < 2:
        return list(group)

    # dependents[u] = units that must wait for u
    dependents: Dict[int, Set[int]] = {u: set() for u in group}
    in_degree: Dict[int, int] = {u: 0 for u in group}
    for unit in group:
        deps = subtree_deps[unit] - subtree_keys[unit]
        if not deps:
            continue
        for other in group:
            if other != unit and deps & subtree_keys[other] and unit not in dependents[other]:
                dependents[other].add(unit)
                in_degree[unit] += 1

    def rank(u: int):
        return (-flat[u].plugin.priority, u)

    remaining = set(group)
    result: List[int] = []
    while remaining:
        ready = [u for u in remaining if in_degree[u] == 0]
        if ready:
            pick = min(ready, key=rank)
        else:
            cyclic = [u for u in remaining if _on_cycle(u, dependents, remaining)]
            pick = min(cyclic or remaining, key=rank)
            logger.debug(
                f"Dependency cycle among {sorted(flat[u].key for u in remaining)}, "
                f"emitting '{flat[pick].key}' by priority"
            )
        remaining.discard(pick)
        result.append(pick)
        for dependent in dependents[pick]:
            if dependent in remaining:
                in_degree[dependent] -= 1

    return result


def _on_cycle(start: int, dependents: Dict[int, Set[int]], remaining: Set[int]) -> bool:
    """True when *start* can reach itself through units still waiting."""
    stack = [d for d in dependents[start] if d in remaining]
    seen: Set[int] = set()
    while stack:
        unit = stack.pop()
        if unit == start:
            return True
        if unit in seen:
            continue
        seen.add(unit)
        stack.extend(d for d in dependents[unit] if d in remaining)
    return False
