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

"""Configuration for envdeck itself.

envdeck reads a handful of ENVDECK_* environment variables that control
dotenv loading, project-root discovery and where the command line tools look
for settings classes. Values are converted by type and validated through a
pydantic model, the same way application settings are.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import DEFAULT_SETTINGS_DIR
from .exceptions import ToolConfigError

logger = logging.getLogger(__name__)

ENV_VAR_MAPPING = {
    "ENVDECK_DOTENV_ENABLED": "dotenv_enabled",
    "ENVDECK_DOTENV_PATH": "dotenv_path",
    "ENVDECK_PROJECT_ROOT": "project_root",
    "ENVDECK_SETTINGS_MODULES": "settings_modules",
    "ENVDECK_SETTINGS_DIR": "settings_dir",
    "ENVDECK_LOG_LEVEL": "log_level",
}

# Type mapping for environment variable conversion
ENV_VAR_TYPES: dict[str, Any] = {
    "ENVDECK_DOTENV_ENABLED": bool,
    "ENVDECK_DOTENV_PATH": Path,
    "ENVDECK_PROJECT_ROOT": Path,
    "ENVDECK_SETTINGS_MODULES": list,
    "ENVDECK_SETTINGS_DIR": str,
    "ENVDECK_LOG_LEVEL": str,
}


class ToolConfig(BaseModel):
    """Resolved envdeck configuration."""

    dotenv_enabled: bool = Field(
        default=True,
        description="Read the project .env file on every load()",
    )
    dotenv_path: Path | None = Field(
        default=None,
        description="Explicit dotenv file; defaults to <project root>/.env",
    )
    project_root: Path | None = Field(
        default=None,
        description="Explicit project root; defaults to marker-file discovery",
    )
    settings_modules: list[str] = Field(
        default_factory=list,
        description="Modules imported by the CLI to discover settings classes",
    )
    settings_dir: str = Field(
        default=DEFAULT_SETTINGS_DIR,
        description="Directory under the project root scanned when no modules are given",
    )
    log_level: str = Field(default="WARNING", description="CLI logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure the level is one the logging module knows."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {v!r}")
        return level


def _convert(env_var: str, raw: str) -> Any:
    var_type = ENV_VAR_TYPES.get(env_var, str)
    if var_type is bool:
        return raw.strip().lower() in ("true", "1", "yes", "on")
    if var_type is list:
        return [item.strip() for item in raw.split(",") if item.strip()]
    return var_type(raw)


def load_tool_config(environ: Mapping[str, str] | None = None) -> ToolConfig:
    """Build the envdeck configuration from ENVDECK_* variables.

    Args:
        environ: Environment to read; defaults to ``os.environ``

    Raises:
        ToolConfigError: If a variable cannot be converted or validated
    """
    source = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    for env_var, key in ENV_VAR_MAPPING.items():
        raw = source.get(env_var)
        if raw is None or raw == "":
            continue
        try:
            data[key] = _convert(env_var, raw)
        except (TypeError, ValueError) as e:
            msg = f"Invalid value for {env_var}={raw!r}: {e}"
            raise ToolConfigError(msg, context={"env_var": env_var}) from e

    try:
        config = ToolConfig(**data)
    except ValidationError as e:
        raise ToolConfigError(f"Invalid envdeck configuration: {e}") from e

    if data:
        logger.debug("envdeck configuration overrides: %s", sorted(data))
    return config
