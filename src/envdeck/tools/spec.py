# MIT License
#
# Copyright (c) 2025 Democratize Technology
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""Introspect settings classes into an environment-variable spec.

The spec is the single input of every renderer: settings groups keyed by
prefix (``SMTP``), each mapping derived variable names to ``EnvVarSpec``
entries. It is built from live classes, so whatever ``load()`` would read is
exactly what gets documented.
"""

import importlib
import importlib.util
import inspect
import logging
import re
import sys
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any

from ..config import load_tool_config
from ..environment import project_root, to_env_var
from ..fields import collect_field_schemas, get_field_metadata
from ..settings import BaseSettings, env_text

logger = logging.getLogger(__name__)

_ANNOTATION_MARKERS = re.compile(r"\s*\[(pattern|optional)\]")


@dataclass
class EnvVarSpec:
    """One environment variable read by a settings field."""

    env_var: str
    field_name: str
    type: str
    default: str | None = None
    required: bool = True
    secret: bool = False
    dev_only: bool = False
    alias: str | None = None
    description: str | None = None
    pattern: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SettingsGroup:
    """Variables of one settings class, keyed by derived variable name."""

    name: str
    class_name: str
    description: str | None = None
    variables: dict[str, EnvVarSpec] = field(default_factory=dict)

    @property
    def section(self) -> str:
        return self.name.lower()

    @property
    def has_alias(self) -> bool:
        return any(entry.alias for entry in self.variables.values())

    @property
    def has_secrets(self) -> bool:
        return any(entry.secret for entry in self.variables.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "class_name": self.class_name,
            "description": self.description,
            "variables": {name: entry.to_dict() for name, entry in self.variables.items()},
        }


def format_type(type_text: str, dev_only: bool = False) -> str:
    """Move ``[optional]``/``[pattern]`` markers into one trailing bracket list.

    ``"string [pattern] [optional]"`` becomes ``"string [pattern, optional]"``;
    ``dev_only`` appends ``devOnly`` to the list.
    """
    annotations = _ANNOTATION_MARKERS.findall(type_text)
    clean = " ".join(_ANNOTATION_MARKERS.sub("", type_text).split())
    if dev_only:
        annotations.append("devOnly")
    if annotations:
        return f"{clean} [{', '.join(annotations)}]"
    return clean


def _import_file(path: Path) -> ModuleType:
    module_name = f"envdeck_settings_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot import settings file {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


def _settings_classes(module: ModuleType) -> list[type[BaseSettings]]:
    classes = []
    for value in vars(module).values():
        if (
            inspect.isclass(value)
            and issubclass(value, BaseSettings)
            and value is not BaseSettings
            and value.__module__ == module.__name__
            and collect_field_schemas(value)
        ):
            classes.append(value)
    return classes


def discover_settings(
    modules: Iterable[str] | None = None,
    settings_dir: str | Path | None = None,
) -> list[type[BaseSettings]]:
    """Import settings modules and return their settings classes.

    Args:
        modules: Dotted module names; defaults to ``ENVDECK_SETTINGS_MODULES``
        settings_dir: Directory of settings files used when no module is
            configured, relative to the project root

    Returns:
        ``BaseSettings`` subclasses with registered fields, in definition order
    """
    config = load_tool_config()
    names = list(modules) if modules is not None else list(config.settings_modules)

    imported: list[ModuleType] = []
    if names:
        imported = [importlib.import_module(name) for name in names]
    else:
        directory = Path(settings_dir or config.settings_dir)
        if not directory.is_absolute():
            directory = project_root() / directory
        if not directory.is_dir():
            logger.warning("Settings directory %s does not exist", directory)
            return []
        for path in sorted(directory.glob("*.py")):
            if path.name.startswith("_"):
                continue
            imported.append(_import_file(path))

    classes: list[type[BaseSettings]] = []
    for module in imported:
        for cls in _settings_classes(module):
            if cls not in classes:
                classes.append(cls)
    logger.debug("Discovered %d settings classes", len(classes))
    return classes


def _class_description(cls: type) -> str | None:
    doc = cls.__dict__.get("__doc__")
    if not doc:
        return None
    return inspect.cleandoc(doc).splitlines()[0]


def _group(cls: type[BaseSettings], skip_dev_only: bool) -> SettingsGroup:
    schemas = collect_field_schemas(cls)
    defaults = cls.declared_defaults(cls(), list(schemas))
    group = SettingsGroup(
        name=cls.env_prefix().rstrip("_"),
        class_name=cls.__name__,
        description=_class_description(cls),
    )

    for name, schema in schemas.items():
        meta = get_field_metadata(cls, name)
        dev_only = meta.get("dev_only") is True
        if skip_dev_only and dev_only:
            continue

        value = defaults.get(name)
        if value is None and schema.has_default:
            value = schema.default_value
        has_default = name in defaults or schema.has_default

        env_var = to_env_var(cls.__name__, name)
        group.variables[env_var] = EnvVarSpec(
            env_var=env_var,
            field_name=name,
            type=schema.describe_type(),
            default=env_text(value) if value is not None else None,
            required=not (schema.is_optional or has_default),
            secret=meta.get("secret") is True,
            dev_only=dev_only,
            alias=meta.get("alias") or None,
            description=meta.get("description") or schema.description,
            pattern=schema.constraints.get("pattern"),
        )
    return group


def extract_env_spec(
    classes: Iterable[type[BaseSettings]],
    skip_dev_only: bool = False,
) -> dict[str, SettingsGroup]:
    """Build the env spec for ``classes``; ``skip_dev_only`` drops dev-only fields."""
    spec: dict[str, SettingsGroup] = {}
    for cls in classes:
        group = _group(cls, skip_dev_only)
        spec[group.name] = group
    return spec
