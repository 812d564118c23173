"""
Tests for the envdeck command line.

Tests cover:
- Output commands printing to stdout
- File commands writing into --output-dir
- The check command exit status and report
- Configuration and usage errors
"""

import json
import os
import sys
from unittest.mock import patch

import pytest
import yaml

from envdeck import __version__
from envdeck.__main__ import run
from envdeck.cli import EXIT_ERROR, EXIT_OK, build_parser, main


def invoke(settings_dir, *args):
    return main(["--settings-dir", str(settings_dir), *args])


class TestOutputCommands:
    """Test commands that print an artifact"""

    def test_json(self, settings_dir, capsys):
        """Test typed JSON grouped by settings class"""
        assert invoke(settings_dir, "json") == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["web"]["WEB_PORT"] == 8080
        assert data["web"]["WEB_DEBUG"] is False
        assert data["check"]["CHECK_TOKEN"] == "{string min 8}"

    def test_yaml_with_root_and_flat(self, settings_dir, capsys):
        """Test positional root and --flat"""
        assert invoke(settings_dir, "yaml", "config", "--flat", "--code") == EXIT_OK
        output = capsys.readouterr().out
        assert output.startswith("config:\n  host: 0.0.0.0\n  port: 8080\n")

    def test_skip_dev(self, settings_dir, capsys):
        """Test dev-only fields are left out of every output"""
        assert main(["--skip-dev", "--settings-dir", str(settings_dir), "compose"]) == EXIT_OK
        data = yaml.safe_load(capsys.readouterr().out)
        assert "WEB_DEBUG" not in data["environment"]
        assert data["environment"]["WEB_HOST"] == "0.0.0.0"

    def test_k8s(self, settings_dir, capsys):
        """Test the kubernetes env list"""
        assert invoke(settings_dir, "k8s") == EXIT_OK
        data = yaml.safe_load(capsys.readouterr().out)
        assert {"name": "WEB_PORT", "value": "8080"} in data["env"]

    def test_list(self, settings_dir, capsys):
        """Test the plain-text listing"""
        assert invoke(settings_dir, "list") == EXIT_OK
        output = capsys.readouterr().out
        assert "check (contains secrets)" in output
        assert "boolean [devOnly]" in output

    def test_raw(self, settings_dir, capsys):
        """Test the raw env spec dump"""
        assert invoke(settings_dir, "raw") == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["WEB"]["description"] == "Web server settings"
        assert data["CHECK"]["variables"]["CHECK_TOKEN"]["secret"] is True

    def test_module_option(self, settings_dir, capsys, monkeypatch):
        """Test -m imports a settings module instead of scanning a directory"""
        monkeypatch.syspath_prepend(str(settings_dir))
        try:
            assert main(["-m", "app", "json", "--code", "--flat"]) == EXIT_OK
        finally:
            sys.modules.pop("app", None)
        data = json.loads(capsys.readouterr().out)
        assert data["port"] == 8080


class TestFileCommands:
    """Test commands that write files"""

    @pytest.mark.parametrize(
        ("command", "filename", "expected"),
        [
            ("env", ".env.template", "WEB_PORT=8080"),
            ("md", "SETTINGS.md", "### web"),
            ("values", "values.yaml", "port: 8080"),
        ],
    )
    def test_writes_into_output_dir(self, settings_dir, tmp_path, capsys, command, filename, expected):
        """Test each file lands in --output-dir and is announced"""
        output_dir = tmp_path / "out"
        output_dir.mkdir()

        assert invoke(settings_dir, command, "--output-dir", str(output_dir)) == EXIT_OK

        target = output_dir / filename
        assert expected in target.read_text()
        assert f"{filename} written to {target}" in capsys.readouterr().out


class TestCheck:
    """Test the check command"""

    def test_missing_secret_fails(self, settings_dir, capsys):
        """Test a required variable that is not set"""
        assert invoke(settings_dir, "check") == EXIT_ERROR
        captured = capsys.readouterr()
        assert "❌ CheckSettings: 1 invalid field" in captured.err
        assert "(set CHECK_TOKEN)" in captured.err
        assert "1 passed, 1 failed" in captured.err
        assert captured.out == ""

    def test_passes_with_environment(self, settings_dir, capsys):
        """Test every class loads once the variable is present"""
        with patch.dict(os.environ, {"CHECK_TOKEN": "long-enough-token"}):
            assert invoke(settings_dir, "check") == EXIT_OK
        output = capsys.readouterr().out
        assert "✅ WebSettings" in output
        assert "2 passed, 0 failed" in output

    def test_nothing_discovered(self, tmp_path, capsys):
        """Test an empty settings directory"""
        empty = tmp_path / "empty"
        empty.mkdir()
        assert invoke(empty, "check") == EXIT_OK
        assert "No settings classes found" in capsys.readouterr().out


class TestErrors:
    """Test configuration and usage errors"""

    def test_invalid_log_level(self, settings_dir, capsys):
        """Test a bad ENVDECK_LOG_LEVEL is reported with its code"""
        with patch.dict(os.environ, {"ENVDECK_LOG_LEVEL": "chatty"}):
            assert invoke(settings_dir, "json") == EXIT_ERROR
        assert "[ENV_5000]" in capsys.readouterr().err

    def test_version(self, capsys):
        """Test --version prints and exits"""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_command_required(self):
        """Test a subcommand must be given"""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args([])
        assert exc_info.value.code == 2

    def test_run_exits_with_status(self, settings_dir):
        """Test the module entry point exits with main's status"""
        with patch("sys.argv", ["envdeck", "--settings-dir", str(settings_dir), "check"]):
            with pytest.raises(SystemExit) as exc_info:
                run()
        assert exc_info.value.code == EXIT_ERROR

    def test_run_interrupted(self):
        """Test Ctrl-C exits with 130"""
        with patch("envdeck.__main__.main", side_effect=KeyboardInterrupt):
            with pytest.raises(SystemExit) as exc_info:
                run()
        assert exc_info.value.code == 130
