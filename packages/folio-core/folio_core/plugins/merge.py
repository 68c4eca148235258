"""
Merge helpers shared by the override and inject stages.

Partial plugin configs are plain dicts keyed by ``PluginConfig`` field
names. Scalars replace, mappings merge recursively. Unknown field names are
routed to ``extra`` so arbitrary consumer payloads pass through untouched.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping


def deep_merge(base: Mapping[str, Any], patch: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a new dict with *patch* merged over *base*.

    Nested mappings are merged key by key; every other value in *patch*
    replaces the one in *base*. Neither argument is mutated. Key order
    follows *base* first, then keys only present in *patch*.
    """
    out: Dict[str, Any] = dict(base)
    for key, value in patch.items():
        current = out.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            out[key] = deep_merge(current, value)
        else:
            out[key] = value
    return out


def merge_api(surface: Dict[str, Any], api: Mapping[str, Any]) -> None:
    """Write *api* into *surface* in place.

    Callables replace by name. Namespace dicts (``{"debug": {"log": fn}}``)
    are merged method by method so two plugins can share a namespace.
    """
    for name, impl in api.items():
        current = surface.get(name)
        if isinstance(current, dict) and isinstance(impl, Mapping):
            merge_api(current, impl)
        elif isinstance(impl, Mapping):
            surface[name] = {}
            merge_api(surface[name], impl)
        else:
            surface[name] = impl
