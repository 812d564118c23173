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

"""envdeck: declarative, validated settings classes.

Declare typed settings, resolve them from defaults, injected values or the
environment (amended by the project ``.env`` file), and validate them with
pydantic:

    from envdeck import BaseSettings, setting, v

    class SmtpSettings(BaseSettings):
        host: str = setting(v.string(), "localhost")
        port: int = setting(v.integer().ge(1), 25)
        password: str = setting(v.string(), secret=True)

    smtp = SmtpSettings.load()      # reads SMTP_HOST, SMTP_PORT, SMTP_PASSWORD

Resolved instances can be shared through a lazily initialized proxy; see
``envdeck.loaders``. The ``envdeck`` command documents every settings class
of a project (``.env.template``, ``SETTINGS.md``, ``values.yaml`` and more).
"""

__version__ = "0.4.0"

from .exceptions import (
    EnvdeckError,
    SettingsAccessedBeforeInitializationError,
    SettingsAccessError,
    SettingsDeclarationError,
    SettingsKeyNotInitializedError,
    SettingsSerializationError,
    SettingsValidationError,
    ToolConfigError,
    ValidationIssue,
    is_validation_error,
)
from .fields import (
    SettingField,
    attach_metadata,
    collect_field_schemas,
    get_aliases,
    get_field_metadata,
    get_field_schemas,
    get_push_to_env,
    is_dev_only,
    is_secret,
    register_field,
    setting,
)
from .loaders import (
    LoaderRegistry,
    SettingsProxy,
    create_settings_proxy,
    get_initialized_keys,
    get_initialized_setting,
    initialize_loaders,
    memoize_loader,
    reset_initialization_for_test,
    settings_initialized,
)
from .schema import SchemaSpec, v
from .settings import BaseSettings, clear_override, override_for_test

__all__ = [
    "BaseSettings",
    "EnvdeckError",
    "LoaderRegistry",
    "SchemaSpec",
    "SettingField",
    "SettingsAccessError",
    "SettingsAccessedBeforeInitializationError",
    "SettingsDeclarationError",
    "SettingsKeyNotInitializedError",
    "SettingsProxy",
    "SettingsSerializationError",
    "SettingsValidationError",
    "ToolConfigError",
    "ValidationIssue",
    "__version__",
    "attach_metadata",
    "clear_override",
    "collect_field_schemas",
    "create_settings_proxy",
    "get_aliases",
    "get_field_metadata",
    "get_field_schemas",
    "get_initialized_keys",
    "get_initialized_setting",
    "get_push_to_env",
    "initialize_loaders",
    "is_dev_only",
    "is_secret",
    "is_validation_error",
    "memoize_loader",
    "override_for_test",
    "register_field",
    "reset_initialization_for_test",
    "setting",
    "settings_initialized",
    "v",
]
