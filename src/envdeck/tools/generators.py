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

"""Renderers turning an env spec into deployment and documentation artifacts.

Every renderer takes the mapping produced by ``extract_env_spec``; dev-only
filtering therefore happens once, when the env spec is extracted. A variable
without a default renders as a ``{type}`` placeholder.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from ..constants import (
    DEFAULT_YAML_ROOT,
    ENV_TEMPLATE_FILENAME,
    MARKDOWN_FILENAME,
    VALUES_FILENAME,
)
from ..environment import project_root
from .spec import EnvVarSpec, SettingsGroup, format_type

logger = logging.getLogger(__name__)

EnvSpec = dict[str, SettingsGroup]

# Bare {type} placeholders survive YAML dumping through this marker
_PLACEHOLDER = "-{-%s-}-"
_PLACEHOLDER_RE = re.compile(r"""['"]?-\{-\s*(.+?)\s*-\}-['"]?""")


def camel_case(name: str) -> str:
    """``from_email`` -> ``fromEmail``."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def placeholder(entry: EnvVarSpec) -> str:
    return f"{{{entry.type}}}"


def default_or_placeholder(entry: EnvVarSpec) -> str:
    return entry.default if entry.default is not None else placeholder(entry)


def typed_default(entry: EnvVarSpec) -> Any:
    """The default converted to the declared type, or None when there is none."""
    if entry.default is None:
        return None
    declared = entry.type.split(" ")[0]
    text = entry.default

    if declared in ("number", "integer"):
        try:
            number = float(text)
        except ValueError:
            return text
        return int(number) if number.is_integer() and "." not in text else number
    if declared == "boolean":
        lowered = text.lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        return text
    if declared in ("array", "object"):
        try:
            parsed = json.loads(text)
        except ValueError:
            return text
        if declared == "array" and isinstance(parsed, list):
            return parsed
        if declared == "object" and isinstance(parsed, dict):
            return parsed
        return text
    return text


def _entries(spec: EnvSpec) -> list[tuple[SettingsGroup, EnvVarSpec]]:
    return [(group, entry) for group in spec.values() for entry in group.variables.values()]


def _dump_yaml(data: Any) -> str:
    text = yaml.safe_dump(data, sort_keys=False, default_flow_style=False, width=10_000)
    return _PLACEHOLDER_RE.sub(r"{\1}", text)


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    logger.info("%s written to %s", path.name, path)
    return path


def _target(directory: Path | str | None, filename: str) -> Path:
    return Path(directory) / filename if directory is not None else project_root() / filename


# .env.template


def render_env_template(spec: EnvSpec) -> str:
    """``NAME=default`` lines, one blank line after each settings class."""
    lines: list[str] = []
    for group in spec.values():
        for env_var, entry in group.variables.items():
            lines.append(f"{env_var}={default_or_placeholder(entry)}")
        lines.append("")
    return "\n".join(lines)


def write_env_template(spec: EnvSpec, directory: Path | str | None = None) -> Path:
    return _write(_target(directory, ENV_TEMPLATE_FILENAME), render_env_template(spec))


# SETTINGS.md


def _markdown_section(group: SettingsGroup) -> str:
    has_alias = group.has_alias
    header = [
        "| Env Var |" + (" Alias |" if has_alias else "") + " Usual Path | Type | Default |",
        "| ------- |" + (" ----- |" if has_alias else "") + " ---------- | ---- | ------- |",
    ]
    rows = []
    for env_var, entry in group.variables.items():
        name = env_var + (" (secret)" if entry.secret else "")
        alias_cell = f" {entry.alias or ''} |" if has_alias else ""
        code = f"settings.{group.section}.{entry.field_name}"
        type_cell = format_type(entry.type, entry.dev_only)
        rows.append(f"| {name} |{alias_cell} {code} | {type_cell} | {entry.default or ''} |")

    parts = [f"### {group.section}"]
    if group.has_secrets:
        parts.append("> contains secrets")
    if group.description:
        parts.append(group.description)
    parts.append("\n".join(header + rows))

    for env_var, entry in group.variables.items():
        if not (entry.description or entry.pattern):
            continue
        details = []
        if entry.description:
            details.append(entry.description)
        if entry.pattern:
            details.append(f"**Pattern:** `{entry.pattern}`")
        parts.append(f"#### `{env_var}`\n\n" + "\n\n".join(details))

    return "\n\n".join(parts)


def render_markdown(spec: EnvSpec) -> str:
    """Settings documentation: one table per class plus field details."""
    sections = [_markdown_section(group) for group in spec.values()]
    return "## Settings\n\n" + "\n\n".join(sections) + "\n"


def write_markdown(spec: EnvSpec, directory: Path | str | None = None) -> Path:
    return _write(_target(directory, MARKDOWN_FILENAME), render_markdown(spec))


# values.yaml


def render_values(spec: EnvSpec) -> str:
    """Helm-style values nested by class, then camelCase field name."""
    data: dict[str, Any] = {}
    for group in spec.values():
        section = data.setdefault(group.section, {})
        for entry in group.variables.values():
            value = typed_default(entry)
            section[camel_case(entry.field_name)] = (
                value if value is not None else _PLACEHOLDER % entry.type
            )
    return _dump_yaml(data)


def write_values(spec: EnvSpec, directory: Path | str | None = None) -> Path:
    return _write(_target(directory, VALUES_FILENAME), render_values(spec))


# Deployment snippets


def render_compose(spec: EnvSpec) -> str:
    """docker-compose ``environment:`` mapping."""
    environment = {
        entry.env_var: default_or_placeholder(entry) for _, entry in _entries(spec)
    }
    return yaml.safe_dump({"environment": environment}, sort_keys=False, width=10_000)


def render_k8s(spec: EnvSpec) -> str:
    """Kubernetes container ``env:`` list."""
    env = [
        {"name": entry.env_var, "value": default_or_placeholder(entry)}
        for _, entry in _entries(spec)
    ]
    return yaml.safe_dump({"env": env}, sort_keys=False, width=10_000)


# Structured dumps


def _structure(
    spec: EnvSpec,
    root: str | None,
    flat: bool,
    code: bool,
    missing: Any,
) -> dict[str, Any]:
    output: dict[str, Any] = {}
    target = output.setdefault(root, {}) if root else output

    for group, entry in _entries(spec):
        key = entry.field_name if code else (entry.alias or entry.env_var)
        value = typed_default(entry)
        if value is None:
            value = missing(entry)
        if flat:
            target[key] = value
        else:
            target.setdefault(group.section, {})[key] = value
    return output


def render_json(
    spec: EnvSpec,
    root: str | None = None,
    flat: bool = False,
    code: bool = False,
) -> str:
    """JSON settings structure.

    Args:
        root: Optional top-level key wrapping everything
        flat: Do not nest variables by settings class
        code: Key by field name instead of variable name
    """
    data = _structure(spec, root, flat, code, placeholder)
    return json.dumps(data, indent=2)


def render_yaml(
    spec: EnvSpec,
    root: str = DEFAULT_YAML_ROOT,
    flat: bool = False,
    code: bool = False,
) -> str:
    """YAML settings structure; see ``render_json`` for the options."""
    data = _structure(spec, root, flat, code, lambda entry: _PLACEHOLDER % entry.type)
    return _dump_yaml(data)


def render_raw(spec: EnvSpec) -> str:
    """The env spec itself as JSON."""
    return json.dumps({name: group.to_dict() for name, group in spec.items()}, indent=2)


def render_settings_list(spec: EnvSpec) -> str:
    """Plain-text tables of every variable, one per settings class."""
    blocks = []
    for group in spec.values():
        rows = [
            ["Envar", "Code", "Type", "Default"],
            ["-----", "----", "----", "-------"],
        ]
        for env_var, entry in group.variables.items():
            rows.append(
                [
                    env_var + (" (secret)" if entry.secret else ""),
                    f"settings.{group.section}.{entry.field_name}",
                    format_type(entry.type, entry.dev_only),
                    entry.default or "",
                ],
            )
        widths = [max(len(row[i]) for row in rows) for i in range(4)]

        title = group.section + (" (contains secrets)" if group.has_secrets else "")
        lines = [title, "=" * len(group.section)]
        lines.extend("  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip() for row in rows)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n" if blocks else ""
