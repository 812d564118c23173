"""
Shared pytest configuration and fixtures for envdeck tests.

This file contains:
- src/ path setup so the package imports without installation
- Markers for different test categories
- Environment isolation (dotenv loading off, os.environ restored)
- Reset of the process-wide settings registry between tests
"""

import os
from pathlib import Path
import sys
import textwrap
from unittest.mock import patch

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from envdeck.loaders import LoaderRegistry, reset_initialization_for_test  # noqa: E402


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "concurrent: Tests that use asyncio scheduling")


def pytest_collection_modifyitems(config, items):
    """Mark async registry tests as concurrent, everything as unit."""
    for item in items:
        item.add_marker(pytest.mark.unit)
        if any(keyword in item.name.lower() for keyword in ["concurrent", "async", "ready"]):
            item.add_marker(pytest.mark.concurrent)


@pytest.fixture(autouse=True)
def isolated_environment():
    """Restore os.environ after each test and keep the project .env out of it."""
    with patch.dict(os.environ, {"ENVDECK_DOTENV_ENABLED": "false"}):
        yield


@pytest.fixture(autouse=True)
def reset_default_registry():
    """Start and finish every test with an uninitialized default registry."""
    reset_initialization_for_test()
    yield
    reset_initialization_for_test()


@pytest.fixture()
def registry():
    """Provide a private registry so tests do not share resolved settings."""
    return LoaderRegistry()


@pytest.fixture()
def settings_dir(tmp_path):
    """Provide a directory holding one settings file with two classes."""
    directory = tmp_path / "settings"
    directory.mkdir()
    (directory / "app.py").write_text(
        textwrap.dedent(
            '''
            from envdeck import BaseSettings, setting, v


            class WebSettings(BaseSettings):
                """Web server settings"""

                host: str = setting(v.string(), "0.0.0.0")
                port: int = setting(v.integer().ge(1).le(65535), 8080)
                debug: bool = setting(v.boolean(), False, dev_only=True)


            class CheckSettings(BaseSettings):
                token: str = setting(v.string().min(8), secret=True)
            ''',
        ),
    )
    (directory / "_private.py").write_text("raise RuntimeError('must not be imported')\n")
    return directory
