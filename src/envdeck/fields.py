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

"""Field schema registry and per-field metadata.

Two process-wide stores back every settings class:

- the schema registry maps a declaring class to ``{field name: SchemaSpec}``
  and is keyed strictly to the class that declared the field;
- the metadata store maps a declaring class to ``{field name: {tag: value}}``
  for the ``secret``, ``dev_only``, ``alias``, ``push_to_env`` and
  ``description`` tags. Metadata lookups walk the MRO, so a subclass
  inherits its ancestors' tags and may shadow them one tag at a time.

Fields are normally declared with ``setting()`` inside the class body; the
returned ``SettingField`` registers itself when the class is created. The
``register_field`` / ``attach_metadata`` functions do the same explicitly,
which is how fields are added to an existing class at runtime.
"""

import copy
import threading
import weakref
from collections.abc import Callable
from typing import Any

from .schema import MISSING, SchemaSpec, as_schema

METADATA_TAGS = ("secret", "dev_only", "alias", "push_to_env", "description")

_lock = threading.RLock()
_field_schemas: "weakref.WeakKeyDictionary[type, dict[str, SchemaSpec]]" = weakref.WeakKeyDictionary()
_field_metadata: "weakref.WeakKeyDictionary[type, dict[str, dict[str, Any]]]" = weakref.WeakKeyDictionary()


def register_field(cls: type, name: str, schema: Any) -> None:
    """Register ``schema`` for ``cls.name``; a later registration replaces it."""
    spec = as_schema(schema)
    with _lock:
        _field_schemas.setdefault(cls, {})[name] = spec


def get_field_schemas(cls: type) -> dict[str, SchemaSpec]:
    """Schemas declared on exactly ``cls``, in registration order."""
    with _lock:
        return dict(_field_schemas.get(cls, {}))


def collect_field_schemas(cls: type) -> dict[str, SchemaSpec]:
    """Schemas of ``cls`` and its ancestors; a subclass entry wins over its base."""
    merged: dict[str, SchemaSpec] = {}
    with _lock:
        for klass in reversed(cls.__mro__):
            merged.update(_field_schemas.get(klass, {}))
    return merged


def registered_classes() -> list[type]:
    with _lock:
        return list(_field_schemas.keys())


def attach_metadata(cls: type, name: str, **tags: Any) -> None:
    """Attach metadata tags to ``cls.name``, merging with tags already set."""
    unknown = set(tags) - set(METADATA_TAGS)
    if unknown:
        raise TypeError(f"Unknown metadata tags: {', '.join(sorted(unknown))}")
    with _lock:
        entry = _field_metadata.setdefault(cls, {}).setdefault(name, {})
        entry.update(tags)


def get_field_metadata(cls: type, name: str) -> dict[str, Any]:
    """Resolved tags for ``cls.name``: nearest class in the MRO wins per tag."""
    resolved: dict[str, Any] = {}
    with _lock:
        for klass in cls.__mro__:
            if klass is object:
                break
            for tag, value in _field_metadata.get(klass, {}).get(name, {}).items():
                resolved.setdefault(tag, value)
    return resolved


def _tagged_fields(cls: type, tag: str) -> dict[str, Any]:
    names: list[str] = []
    with _lock:
        for klass in cls.__mro__:
            for name in _field_metadata.get(klass, {}):
                if name not in names:
                    names.append(name)
    result = {}
    for name in names:
        value = get_field_metadata(cls, name).get(tag)
        if value:
            result[name] = value
    return result


def is_secret(cls: type, name: str) -> bool:
    return get_field_metadata(cls, name).get("secret") is True


def is_dev_only(cls: type, name: str) -> bool:
    return get_field_metadata(cls, name).get("dev_only") is True


def get_aliases(cls: type) -> dict[str, str]:
    """``{field name: environment variable}`` for every aliased field."""
    return _tagged_fields(cls, "alias")


def get_push_to_env(cls: type) -> list[str]:
    """Names of the fields whose resolved value is written back to the environment."""
    return list(_tagged_fields(cls, "push_to_env"))


class SettingField:
    """Class-body declaration of one settings field.

    Registers its schema and metadata on the owning class when the class is
    created. On instances it is shadowed by the loaded value; an instance that
    was never loaded reads the declared default, or None when there is none.
    """

    def __init__(
        self,
        schema: Any,
        default: Any = MISSING,
        default_factory: Callable[[], Any] | None = None,
        **tags: Any,
    ) -> None:
        if default is not MISSING and default_factory is not None:
            raise TypeError("cannot specify both default and default_factory")
        self.schema = as_schema(schema)
        self.default = default
        self.default_factory = default_factory
        self.tags = {tag: value for tag, value in tags.items() if value is not None}
        self.name: str | None = None
        self.owner: type | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.owner = owner
        self.name = name
        register_field(owner, name, self.schema)
        if self.tags:
            attach_metadata(owner, name, **self.tags)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        if self.has_default:
            return self.make_default()
        return None

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING or self.default_factory is not None

    def make_default(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        return copy.deepcopy(self.default)

    def __repr__(self) -> str:
        return f"SettingField({self.name!r}, {self.schema!r})"


def setting(
    schema: Any,
    default: Any = MISSING,
    *,
    default_factory: Callable[[], Any] | None = None,
    secret: bool | None = None,
    dev_only: bool | None = None,
    alias: str | None = None,
    push_to_env: bool | None = None,
    description: str | None = None,
) -> Any:
    """Declare a settings field.

    Tags left at None are not recorded, so a redeclared field keeps the tags
    of the ancestor declaration. Pass ``False`` (``""`` for ``alias``) to turn
    an inherited tag off.

    Args:
        schema: A ``SchemaSpec`` from ``v`` or any type pydantic can validate
        default: Declared default, the lowest-precedence source
        default_factory: Callable producing the declared default
        secret: Redact the value when serializing
        dev_only: Only relevant to development; tools can skip it
        alias: Environment variable read instead of the derived name
        push_to_env: Write the validated value back to ``os.environ``
        description: Free text used by the documentation tools

    Example:
        class SmtpSettings(BaseSettings):
            host: str = setting(v.string(), "localhost")
            password: str = setting(v.string(), secret=True)
    """
    return SettingField(
        schema,
        default,
        default_factory,
        secret=secret,
        dev_only=dev_only,
        alias=alias,
        push_to_env=push_to_env,
        description=description,
    )


def declared_fields(cls: type) -> dict[str, SettingField]:
    """``SettingField`` descriptors visible on ``cls``, base classes first."""
    result: dict[str, SettingField] = {}
    for klass in reversed(cls.__mro__):
        for name, value in vars(klass).items():
            if isinstance(value, SettingField):
                result[name] = value
            elif name in result:
                # A plain attribute in a subclass replaces the declaration
                del result[name]
    return result
