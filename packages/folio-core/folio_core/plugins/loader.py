"""
Plugin Loader — declare plugin trees in YAML.

Config search order:
    1. ``FOLIO_PLUGINS_PATH`` env var
    2. ``.folio/plugins.yaml`` (project workspace)
    3. ``config/plugins.yaml`` (repo root)

A declaration file looks like:

    plugins:
      - key: heading
        priority: 10
        type: h1
        api:
          toggle_heading: my_pkg.heading:toggle
        plugins:
          - key: heading_shortcuts
            dependencies: [heading]
    override:
      enabled:
        legacy_heading: false

Callables (``api`` leaves, ``extend_api``, components and
``inject.target_plugin_to_inject``) are written as ``module.path:attr`` and
imported when the file is loaded.
"""
from __future__ import annotations

import importlib
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .spec import InjectConfig, OverrideConfig, PluginConfig, PluginConfigError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Default config paths
# ---------------------------------------------------------------------------

_SEARCH_PATHS = [
    ".folio/plugins.yaml",
    "config/plugins.yaml",
]


def find_config() -> Optional[Path]:
    env = os.environ.get("FOLIO_PLUGINS_PATH")
    if env:
        p = Path(env)
        if p.exists():
            return p
    for rel in _SEARCH_PATHS:
        p = Path(rel)
        if p.exists():
            return p
    return None


# ---------------------------------------------------------------------------
# File schema
# ---------------------------------------------------------------------------

class OverrideModel(BaseModel):
    plugins: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    components: Dict[str, str] = Field(default_factory=dict)
    enabled: Dict[str, bool] = Field(default_factory=dict)


class InjectModel(BaseModel):
    plugins: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    target_plugins: List[str] = Field(default_factory=list)
    target_plugin_to_inject: Optional[str] = None
    props: Dict[str, Any] = Field(default_factory=dict)


class PluginModel(BaseModel):
    """One plugin entry; unknown fields are kept and passed through."""
    model_config = ConfigDict(extra="allow")

    key: str = Field(min_length=1)
    priority: float = 0
    enabled: bool = True
    dependencies: List[str] = Field(default_factory=list)
    plugins: List["PluginModel"] = Field(default_factory=list)
    type: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)
    api: Dict[str, Any] = Field(default_factory=dict)
    extend_api: Optional[str] = None
    component: Optional[str] = None
    override: OverrideModel = Field(default_factory=OverrideModel)
    inject: InjectModel = Field(default_factory=InjectModel)


class DeclarationFile(BaseModel):
    plugins: List[PluginModel] = Field(default_factory=list)
    override: OverrideModel = Field(default_factory=OverrideModel)


PluginModel.model_rebuild()


# ---------------------------------------------------------------------------
# Import paths
# ---------------------------------------------------------------------------

def import_object(path: str) -> Any:
    """Import ``module.path:attr`` and return the attribute."""
    module_path, _, attr = path.partition(":")
    if not module_path or not attr:
        raise PluginConfigError(f"Import path '{path}' must use 'module:attr' format")
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise PluginConfigError(f"Could not import '{path}': {e}") from e
    obj: Any = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise PluginConfigError(f"Could not import '{path}': {e}") from e
    return obj


def _import_api(api: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name, impl in api.items():
        if isinstance(impl, dict):
            out[name] = _import_api(impl)
        elif isinstance(impl, str):
            out[name] = import_object(impl)
        else:
            raise PluginConfigError(
                f"api entry '{name}' must be an import path or a namespace, got {impl!r}"
            )
    return out


def _override(model: OverrideModel) -> OverrideConfig:
    return OverrideConfig(
        plugins=model.plugins,
        components={k: import_object(v) for k, v in model.components.items()},
        enabled=model.enabled,
    )


def _to_config(model: PluginModel) -> PluginConfig:
    inject = model.inject
    return PluginConfig(
        key=model.key,
        priority=model.priority,
        enabled=model.enabled,
        dependencies=model.dependencies,
        plugins=[_to_config(child) for child in model.plugins],
        type=model.type,
        options=model.options,
        api=_import_api(model.api),
        extend_api=import_object(model.extend_api) if model.extend_api else None,
        component=import_object(model.component) if model.component else None,
        override=_override(model.override),
        inject=InjectConfig(
            plugins=inject.plugins,
            target_plugins=inject.target_plugins,
            target_plugin_to_inject=(
                import_object(inject.target_plugin_to_inject)
                if inject.target_plugin_to_inject else None
            ),
            props=inject.props,
        ),
        extra=dict(model.model_extra or {}),
    )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

@dataclass
class PluginDeclarations:
    """Top-level plugins and the registry-wide override read from a file."""
    plugins: List[PluginConfig] = field(default_factory=list)
    override: OverrideConfig = field(default_factory=OverrideConfig)
    source: Optional[Path] = None


def parse_declarations(data: Dict[str, Any], source: Optional[Path] = None) -> PluginDeclarations:
    """Validate raw YAML data and build PluginConfig objects."""
    try:
        doc = DeclarationFile.model_validate(data or {})
    except ValidationError as e:
        where = f" in {source}" if source else ""
        raise PluginConfigError(f"Invalid plugin declarations{where}: {e}") from e
    return PluginDeclarations(
        plugins=[_to_config(p) for p in doc.plugins],
        override=_override(doc.override),
        source=source,
    )


def load_plugins(path: Optional[str] = None) -> PluginDeclarations:
    """
    Load plugin declarations from a YAML file (or auto-detected config).

    Returns empty declarations when no file is found.
    """
    config_path = Path(path) if path else find_config()
    if config_path is None or not config_path.exists():
        logger.debug(f"No plugin declarations found (path={path!r})")
        return PluginDeclarations()

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    declarations = parse_declarations(data, source=config_path)
    logger.info(f"Loaded {len(declarations.plugins)} top-level plugins from {config_path}")
    return declarations
