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

"""Settings classes and the loader.

A settings class groups related configuration:

    class SmtpSettings(BaseSettings):
        host: str = setting(v.string(), "localhost")
        port: int = setting(v.integer().ge(1).le(65535), 25)
        password: str | None = setting(v.string().optional(), secret=True)

``SmtpSettings.load()`` resolves ``SMTP_HOST``, ``SMTP_PORT`` and
``SMTP_PASSWORD`` and returns a validated instance. Every call builds a new
instance; caching belongs to the loader registry.

Source precedence, lowest first: declared defaults, then exactly one of
the test override for the class, the values passed to ``load()``, or the
environment (with aliases applied). The chosen source is layered over the
defaults only; sources are never merged with each other.
"""

import inspect
import json
import logging
import os
import threading
import weakref
from collections.abc import Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from .constants import SECRET_MASK
from .environment import derive_prefix, extract_prefixed_env, read_environment, to_env_var
from .exceptions import SettingsDeclarationError, SettingsValidationError
from .fields import (
    SettingField,
    collect_field_schemas,
    declared_fields,
    get_aliases,
    get_push_to_env,
    is_secret,
)

logger = logging.getLogger(__name__)

S = TypeVar("S", bound="BaseSettings")

_override_lock = threading.RLock()
_test_overrides: "weakref.WeakKeyDictionary[type, dict[str, Any]]" = weakref.WeakKeyDictionary()


def override_for_test(cls: type, values: Mapping[str, Any]) -> None:
    """Use ``values`` instead of the environment for every ``cls.load()``.

    Overrides are process-wide and keyed by the exact class. Tests running
    concurrently against the same class must not install different overrides.
    """
    with _override_lock:
        _test_overrides[cls] = dict(values)


def clear_override(cls: type) -> None:
    with _override_lock:
        _test_overrides.pop(cls, None)


def get_override(cls: type) -> dict[str, Any] | None:
    with _override_lock:
        values = _test_overrides.get(cls)
        return dict(values) if values is not None else None


def env_text(value: Any) -> str:
    """Render a resolved value the way it would be written in an environment."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, default=json_default)
    return str(value)


def json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class BaseSettings:
    """Base class for declarative settings groups."""

    def __init__(self) -> None:
        for name, declaration in declared_fields(type(self)).items():
            if declaration.has_default:
                self.__dict__[name] = declaration.make_default()

    # Hooks

    @classmethod
    def refine_schema(cls, model: type[BaseModel]) -> type[BaseModel]:
        """Return the model used for validation; override to add model validators."""
        return model

    def validate(self) -> None:
        """Cross-field business rules checked after validation.

        Raise any exception to reject the loaded values; it reaches the caller
        of ``load()`` unchanged.
        """

    # Naming

    @classmethod
    def env_prefix(cls) -> str:
        return derive_prefix(cls.__name__)

    @classmethod
    def env_var_for(cls, name: str) -> str:
        """Variable a field is read from: its alias, else the derived name."""
        return get_aliases(cls).get(name) or to_env_var(cls.__name__, name)

    # Test override channel

    @classmethod
    def override_for_test(cls, values: Mapping[str, Any]) -> None:
        override_for_test(cls, values)

    @classmethod
    def clear_override(cls) -> None:
        clear_override(cls)

    # Loading

    @classmethod
    def build_model(cls) -> type[BaseModel]:
        """Compose the validation model over the registered fields."""
        schemas = collect_field_schemas(cls)
        if not schemas:
            raise SettingsDeclarationError(cls.__name__)
        fields = {name: spec.build() for name, spec in schemas.items()}
        model = create_model(
            f"{cls.__name__}Model",
            __config__=ConfigDict(extra="ignore", protected_namespaces=()),
            **fields,
        )
        return cls.refine_schema(model)

    @classmethod
    def declared_defaults(cls, instance: "BaseSettings", names: list[str]) -> dict[str, Any]:
        defaults = {}
        for name in names:
            if name in instance.__dict__:
                defaults[name] = instance.__dict__[name]
                continue
            attr = inspect.getattr_static(cls, name, SettingField)
            if not isinstance(attr, SettingField) and attr is not SettingField:
                defaults[name] = attr
        return defaults

    @classmethod
    def _environment_values(
        cls,
        environ: Mapping[str, str] | None,
        dotenv_path: Path | str | None,
    ) -> dict[str, Any]:
        env = read_environment(environ, dotenv_path)
        values: dict[str, Any] = extract_prefixed_env(
            cls.env_prefix(),
            env,
            collect_field_schemas(cls),
        )
        for name, variable in get_aliases(cls).items():
            if variable in env:
                values[name] = env[variable]
        return values

    @classmethod
    def load(
        cls: type[S],
        values: Mapping[str, Any] | None = None,
        *,
        environ: Mapping[str, str] | None = None,
        dotenv_path: Path | str | None = None,
    ) -> S:
        """Resolve, validate and return a new instance.

        Args:
            values: Explicit values used instead of the environment
            environ: Environment mapping; defaults to ``os.environ``
            dotenv_path: Dotenv file; defaults to ``<project root>/.env``

        Raises:
            SettingsDeclarationError: If the class has no registered fields
            SettingsValidationError: If the merged input fails validation
        """
        model = cls.build_model()
        instance = cls()
        defaults = cls.declared_defaults(instance, list(model.model_fields))

        override = get_override(cls)
        if override is not None:
            source, origin = override, "test override"
        elif values is not None:
            source, origin = dict(values), "explicit values"
        else:
            source, origin = cls._environment_values(environ, dotenv_path), "environment"
        logger.debug("Loading %s from %s (%d keys)", cls.__name__, origin, len(source))

        merged = {**defaults, **source}
        try:
            validated = model.model_validate(merged)
        except ValidationError as e:
            raise SettingsValidationError.from_pydantic(e, cls.__name__) from e

        for name in model.model_fields:
            instance.__dict__[name] = getattr(validated, name)

        for name in get_push_to_env(cls):
            text = env_text(instance.__dict__.get(name))
            if text:
                os.environ[cls.env_var_for(name)] = text

        instance.validate()
        return instance

    # Serialization

    def field_names(self) -> list[str]:
        return list(collect_field_schemas(type(self)))

    def to_dict(self) -> dict[str, Any]:
        """Field values with every secret field replaced by the mask."""
        cls = type(self)
        return {
            name: SECRET_MASK if is_secret(cls, name) else getattr(self, name)
            for name in self.field_names()
        }

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=json_default)

    def __repr__(self) -> str:
        body = ", ".join(f"{name}={value!r}" for name, value in self.to_dict().items())
        return f"{type(self).__name__}({body})"
