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

"""Environment-variable naming and the environment source used by load()."""

import logging
import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path

from dotenv import dotenv_values, load_dotenv

from .config import load_tool_config
from .constants import DOTENV_FILENAME, PROJECT_ROOT_MARKERS, SETTINGS_SUFFIX

logger = logging.getLogger(__name__)

_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def derive_prefix(class_name: str) -> str:
    """``SmtpSettings`` -> ``SMTP_``."""
    base = class_name.removesuffix(SETTINGS_SUFFIX)
    return f"{base.upper()}_"


def field_to_env_suffix(field_name: str) -> str:
    """``from_email`` or ``fromEmail`` -> ``FROM_EMAIL``."""
    return _WORD_BOUNDARY.sub(r"\1_\2", field_name).upper()


def to_env_var(class_name: str, field_name: str) -> str:
    """Derived variable name for a field, e.g. ``SMTP_FROM_EMAIL``."""
    return derive_prefix(class_name) + field_to_env_suffix(field_name)


def env_suffix_to_field(suffix: str) -> str:
    """``FROM_EMAIL`` -> ``from_email``."""
    return suffix.lower()


def extract_prefixed_env(
    prefix: str,
    env: Mapping[str, str],
    fields: Iterable[str] | None = None,
) -> dict[str, str]:
    """Entries of ``env`` starting with ``prefix``, keyed by field name.

    With ``fields``, each declared name is looked up under its derived
    suffix, so ``fromEmail`` and ``from_email`` both read ``PREFIX_FROM_EMAIL``.
    Without it, suffixes are lower-cased into snake_case names.
    """
    result: dict[str, str] = {}
    if fields is not None:
        for name in fields:
            key = prefix + field_to_env_suffix(name)
            if key in env:
                result[name] = env[key]
        return result

    for key, value in env.items():
        if key.startswith(prefix) and len(key) > len(prefix):
            result[env_suffix_to_field(key[len(prefix):])] = value
    return result


def find_project_root(start: Path | None = None) -> Path:
    """Nearest ancestor of ``start`` (default: cwd) holding a project marker file."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        if any((directory / marker).exists() for marker in PROJECT_ROOT_MARKERS):
            return directory
    return current


def project_root() -> Path:
    config = load_tool_config()
    if config.project_root is not None:
        return config.project_root
    return find_project_root()


def default_dotenv_path() -> Path | None:
    """The dotenv file ``load()`` reads, or None when dotenv loading is disabled."""
    config = load_tool_config()
    if not config.dotenv_enabled:
        return None
    if config.dotenv_path is not None:
        return config.dotenv_path
    return project_root() / DOTENV_FILENAME


def read_environment(
    environ: Mapping[str, str] | None = None,
    dotenv_path: Path | str | None = None,
) -> dict[str, str]:
    """Snapshot of the environment amended by a dotenv file.

    Values already present in the environment are never overwritten by the
    file. With the live process environment (``environ`` None) the file is
    loaded into ``os.environ``, as python-dotenv does; an explicit mapping is
    left untouched and amended in the returned copy only.
    """
    path = Path(dotenv_path) if dotenv_path is not None else default_dotenv_path()

    if environ is None:
        if path is not None and path.is_file():
            load_dotenv(path, override=False)
            logger.debug("Loaded dotenv file %s", path)
        return dict(os.environ)

    merged = dict(environ)
    if path is not None and path.is_file():
        for key, value in dotenv_values(path).items():
            if value is not None:
                merged.setdefault(key, value)
        logger.debug("Merged dotenv file %s", path)
    return merged
