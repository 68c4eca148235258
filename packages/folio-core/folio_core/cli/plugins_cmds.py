"""
folio Plugins CLI — scaffold declarations and inspect their resolution.

Commands:
    folio plugins init    — write a starter plugins.yaml
    folio plugins list    — show the resolved plugin order
    folio plugins api     — show the merged api surface
"""
from __future__ import annotations

import sys
from pathlib import Path

import click

from ..editor import create_editor
from ..plugins.loader import load_plugins
from ..plugins.registry import ApiSurface
from ..plugins.resolve import resolve_plugins
from ..plugins.spec import PluginConfigError


PLUGINS_YAML = """\
# folio plugin declarations
# Each plugin contributes a type tag, options, api methods, a component,
# and/or overrides and injections aimed at other plugins.
#
# Callables are written as  module.path:attr  and imported on load.

plugins:
  - key: paragraph
    type: p

  - key: heading
    priority: 10
    type: h1
    options:
      levels: [1, 2, 3]
    plugins:
      - key: heading_shortcuts
        dependencies: [paragraph]

  - key: legacy_heading
    type: h1

override:
  enabled:
    legacy_heading: false
"""


def _load_registry(config, bare: bool):
    try:
        declarations = load_plugins(config)
    except PluginConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not declarations.plugins:
        return None
    if bare:
        return resolve_plugins(declarations.plugins, override=declarations.override)
    return create_editor(plugins=declarations.plugins, override=declarations.override).registry


def _api_lines(api: ApiSurface, prefix: str = ""):
    for name in api:
        impl = api[name]
        path = f"{prefix}{name}"
        if isinstance(impl, ApiSurface):
            yield from _api_lines(impl, prefix=f"{path}.")
        else:
            impl = getattr(impl, "func", impl)
            target = getattr(impl, "__qualname__", None) or type(impl).__name__
            module = getattr(impl, "__module__", None)
            yield path, f"{module}.{target}" if module else target


@click.group("plugins")
def plugins():
    """Plugin declaration commands."""
    pass


@plugins.command("init")
@click.option("--out", "-o", default="config/plugins.yaml", help="Output path")
@click.option("--force", "-f", is_flag=True, help="Overwrite existing file")
def plugins_init(out: str, force: bool):
    """Create a starter plugins.yaml."""
    path = Path(out)
    if path.exists() and not force:
        click.echo(f"File already exists: {path}  (use --force to overwrite)")
        sys.exit(1)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(PLUGINS_YAML, encoding="utf-8")
    click.echo(f"Created {path}")
    click.echo("Inspect the resolved order with:  folio plugins list")


@plugins.command("list")
@click.option("--config", "-c", default=None, help="Path to plugins.yaml")
@click.option("--bare", is_flag=True, help="Resolve only the declared plugins (no root/core plugins)")
def plugins_list(config, bare):
    """List plugins in resolved order."""
    registry = _load_registry(config, bare)

    if registry is None:
        click.echo("No plugins declared." if not config else f"No plugins in {config}.")
        click.echo("Run  folio plugins init  to create a starter config.")
        return

    click.echo(f"{'#':<4} {'KEY':<24} {'PRIORITY':<10} {'TYPE':<16} {'PARENT'}")
    click.echo("-" * 72)
    for p in registry.plugin_list:
        priority = f"{p.priority:g}"
        click.echo(f"{p.index:<4} {p.key:<24} {priority:<10} {p.type or '-':<16} {p.parent or '-'}")
    click.echo(f"\n{len(registry)} plugin(s)")


@plugins.command("api")
@click.option("--config", "-c", default=None, help="Path to plugins.yaml")
@click.option("--bare", is_flag=True, help="Resolve only the declared plugins (no root/core plugins)")
def plugins_api(config, bare):
    """Show the merged api surface."""
    registry = _load_registry(config, bare)
    if registry is None:
        click.echo("No plugins declared.")
        return

    lines = list(_api_lines(registry.api))
    if not lines:
        click.echo("No api methods.")
        return
    for path, target in lines:
        click.echo(f"{path:<32} {target}")
