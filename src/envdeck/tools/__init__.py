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

"""Introspection and artifact generation for settings classes."""

from .generators import (
    camel_case,
    render_compose,
    render_env_template,
    render_json,
    render_k8s,
    render_markdown,
    render_raw,
    render_settings_list,
    render_values,
    render_yaml,
    typed_default,
    write_env_template,
    write_markdown,
    write_values,
)
from .spec import EnvVarSpec, SettingsGroup, discover_settings, extract_env_spec, format_type

__all__ = [
    "EnvVarSpec",
    "SettingsGroup",
    "camel_case",
    "discover_settings",
    "extract_env_spec",
    "format_type",
    "render_compose",
    "render_env_template",
    "render_json",
    "render_k8s",
    "render_markdown",
    "render_raw",
    "render_settings_list",
    "render_values",
    "render_yaml",
    "typed_default",
    "write_env_template",
    "write_markdown",
    "write_values",
]
