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

"""Shared constants for envdeck.

Naming conventions, the redaction mask and the file names used by the
artifact generators live here so the loader and the tools agree on them.
"""

# Replacement written in place of every field tagged secret when serializing
SECRET_MASK = "****"

# Conventional class-name suffix stripped when deriving the env prefix
SETTINGS_SUFFIX = "Settings"

# Files that mark a project root, checked in order
PROJECT_ROOT_MARKERS = ("pyproject.toml", "setup.cfg", "setup.py", ".git")

DOTENV_FILENAME = ".env"
ENV_TEMPLATE_FILENAME = ".env.template"
MARKDOWN_FILENAME = "SETTINGS.md"
VALUES_FILENAME = "values.yaml"

DEFAULT_SETTINGS_DIR = "settings"
DEFAULT_YAML_ROOT = "settings"

# Strings accepted as booleans from the environment (compared lower-cased)
TRUE_STRINGS = ("true",)
FALSE_STRINGS = ("false",)
