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

"""
Tests for envdeck's own configuration and environment helpers.

Tests cover:
- ENVDECK_* variable conversion and validation
- Environment-variable naming
- Project root discovery and the default dotenv path
- The dotenv-amended environment source
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from envdeck.config import ENV_VAR_MAPPING, ENV_VAR_TYPES, ToolConfig, load_tool_config
from envdeck.environment import (
    default_dotenv_path,
    derive_prefix,
    env_suffix_to_field,
    extract_prefixed_env,
    field_to_env_suffix,
    find_project_root,
    read_environment,
    to_env_var,
)
from envdeck.exceptions import ToolConfigError


class TestToolConfig:
    """Test configuration loading from ENVDECK_* variables."""

    def test_defaults(self):
        """Test the configuration with no variables set."""
        config = load_tool_config(environ={})
        assert config == ToolConfig()
        assert config.dotenv_enabled is True
        assert config.settings_dir == "settings"
        assert config.settings_modules == []
        assert config.log_level == "WARNING"

    def test_mapping_covers_every_type(self):
        """Test each mapped variable has a conversion type."""
        assert set(ENV_VAR_MAPPING) == set(ENV_VAR_TYPES)

    def test_conversion(self):
        """Test bool, path and list conversion."""
        config = load_tool_config(
            environ={
                "ENVDECK_DOTENV_ENABLED": "off",
                "ENVDECK_PROJECT_ROOT": "/srv/app",
                "ENVDECK_SETTINGS_MODULES": "app.settings, app.extra ,",
                "ENVDECK_LOG_LEVEL": "debug",
            },
        )
        assert config.dotenv_enabled is False
        assert config.project_root == Path("/srv/app")
        assert config.settings_modules == ["app.settings", "app.extra"]
        assert config.log_level == "DEBUG"

    def test_empty_values_are_ignored(self):
        """Test blank variables fall back to defaults."""
        assert load_tool_config(environ={"ENVDECK_SETTINGS_DIR": ""}).settings_dir == "settings"

    def test_invalid_log_level(self):
        """Test an unknown level is a configuration error."""
        with pytest.raises(ToolConfigError) as exc_info:
            load_tool_config(environ={"ENVDECK_LOG_LEVEL": "chatty"})
        assert exc_info.value.error_code == "ENV_5000"

    def test_reads_process_environment_by_default(self):
        """Test os.environ is the default source."""
        with patch.dict(os.environ, {"ENVDECK_SETTINGS_DIR": "config"}):
            assert load_tool_config().settings_dir == "config"


class TestNaming:
    """Test environment-variable naming rules."""

    def test_prefix(self):
        """Test the Settings suffix is stripped."""
        assert derive_prefix("SmtpSettings") == "SMTP_"
        assert derive_prefix("Cache") == "CACHE_"

    def test_field_suffix(self):
        """Test snake_case and camelCase field names."""
        assert field_to_env_suffix("from_email") == "FROM_EMAIL"
        assert field_to_env_suffix("fromEmail") == "FROM_EMAIL"
        assert to_env_var("SmtpSettings", "from_email") == "SMTP_FROM_EMAIL"

    def test_suffix_to_field(self):
        """Test variables map back to snake_case names."""
        assert env_suffix_to_field("FROM_EMAIL") == "from_email"

    def test_extract_prefixed_env(self):
        """Test only prefixed, non-empty suffixes are kept."""
        env = {"SMTP_HOST": "a", "SMTP_": "b", "API_HOST": "c"}
        assert extract_prefixed_env("SMTP_", env) == {"host": "a"}

    def test_extract_prefixed_env_by_declared_fields(self):
        """Test declared names are looked up under their derived suffix."""
        env = {"SMTP_FROM_EMAIL": "a", "SMTP_PORT": "25", "SMTP_OTHER": "x"}
        result = extract_prefixed_env("SMTP_", env, ["fromEmail", "port", "host"])
        assert result == {"fromEmail": "a", "port": "25"}


class TestProjectRoot:
    """Test project root and dotenv path discovery."""

    def test_nearest_marker_wins(self, tmp_path):
        """Test discovery walks up to the closest marker."""
        (tmp_path / "pyproject.toml").write_text("")
        nested = tmp_path / "src" / "pkg"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == tmp_path.resolve()

    def test_dotenv_disabled(self):
        """Test no dotenv path when loading is turned off."""
        assert default_dotenv_path() is None

    def test_dotenv_under_configured_root(self, tmp_path):
        """Test the default path is <root>/.env."""
        with patch.dict(
            os.environ,
            {"ENVDECK_DOTENV_ENABLED": "true", "ENVDECK_PROJECT_ROOT": str(tmp_path)},
        ):
            assert default_dotenv_path() == tmp_path / ".env"

    def test_explicit_dotenv_path(self, tmp_path):
        """Test ENVDECK_DOTENV_PATH wins over the root."""
        target = tmp_path / "custom.env"
        with patch.dict(
            os.environ,
            {"ENVDECK_DOTENV_ENABLED": "true", "ENVDECK_DOTENV_PATH": str(target)},
        ):
            assert default_dotenv_path() == target


class TestReadEnvironment:
    """Test the environment source."""

    def test_explicit_mapping_is_copied(self, tmp_path):
        """Test file values fill gaps in a copy of the mapping."""
        dotenv = tmp_path / ".env"
        dotenv.write_text("A=file\nB=file\n")
        environ = {"A": "env"}

        result = read_environment(environ, dotenv)

        assert result == {"A": "env", "B": "file"}
        assert environ == {"A": "env"}

    def test_live_environment(self, tmp_path):
        """Test the live environment is snapshotted after loading the file."""
        dotenv = tmp_path / ".env"
        dotenv.write_text("ENVDECK_TEST_ONLY=file\n")

        result = read_environment(dotenv_path=dotenv)

        assert result["ENVDECK_TEST_ONLY"] == "file"
        assert os.environ["ENVDECK_TEST_ONLY"] == "file"
