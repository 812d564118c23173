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

"""Composable schema descriptors for settings fields.

A ``SchemaSpec`` describes how one field is coerced and validated. Specs are
built through the ``v`` namespace and refined by chaining:

    v.string().min(3).pattern(r"^[a-z]+$")
    v.number().ge(1).le(65535).int()
    v.array(v.number()).optional()

Each chained call returns a new spec. ``build()`` compiles a spec into a
pydantic annotation and ``FieldInfo`` so the loader can assemble a model with
``create_model``. Environment values always arrive as strings, so every
builder accepts string input: numbers and dates through pydantic's lax mode,
booleans through a ``"true"``/``"false"`` pre-parser, arrays and objects
through a JSON pre-parser that hands the raw string on when it is not JSON.
"""

import copy
import json
import re
from datetime import datetime
from typing import Annotated, Any, Literal, Optional

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    BeforeValidator,
    Field,
    Strict,
    TypeAdapter,
    create_model,
)
from pydantic.fields import FieldInfo
from pydantic_core import PydanticCustomError

from .constants import FALSE_STRINGS, TRUE_STRINGS

MISSING: Any = object()

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_URL_ADAPTER = TypeAdapter(AnyUrl)


def parse_json_if_string(value: Any) -> Any:
    """JSON-decode string input, passing the raw string on when decoding fails."""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def parse_bool_if_string(value: Any) -> Any:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    return value


def _check_email(value: str) -> str:
    if not EMAIL_PATTERN.match(value):
        raise PydanticCustomError("invalid_email", "Invalid email address")
    return value


def _check_url(value: str) -> str:
    try:
        _URL_ADAPTER.validate_python(value)
    except ValueError as e:
        raise PydanticCustomError("invalid_url", "Invalid URL") from e
    return value


def _dump_model(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    return value


class SchemaSpec:
    """Validation and coercion descriptor for one settings field."""

    def __init__(self, kind: str, annotation: Any, preprocess: Any = None) -> None:
        self.kind = kind
        self.annotation = annotation
        self.preprocess = preprocess
        self.constraints: dict[str, Any] = {}
        self.checks: list[Any] = []
        self.formats: list[str] = []
        self.is_optional = False
        self.is_nullable = False
        self.default_value: Any = MISSING
        self.description: str | None = None
        self.choices: tuple[Any, ...] = ()

    def _derive(self, **changes: Any) -> "SchemaSpec":
        clone = copy.copy(self)
        clone.constraints = dict(self.constraints)
        clone.checks = list(self.checks)
        clone.formats = list(self.formats)
        for key, value in changes.items():
            setattr(clone, key, value)
        return clone

    def _constrain(self, **constraints: Any) -> "SchemaSpec":
        clone = self._derive()
        clone.constraints.update(constraints)
        return clone

    @property
    def _sized(self) -> bool:
        return self.kind in ("string", "array")

    # Constraints

    def min(self, value: int | float) -> "SchemaSpec":
        """Minimum length for strings and arrays, inclusive minimum for numbers."""
        if self._sized:
            return self._constrain(min_length=value)
        return self._constrain(ge=value)

    def max(self, value: int | float) -> "SchemaSpec":
        """Maximum length for strings and arrays, inclusive maximum for numbers."""
        if self._sized:
            return self._constrain(max_length=value)
        return self._constrain(le=value)

    def length(self, value: int) -> "SchemaSpec":
        return self._constrain(min_length=value, max_length=value)

    def gt(self, value: int | float) -> "SchemaSpec":
        return self._constrain(gt=value)

    def ge(self, value: int | float) -> "SchemaSpec":
        return self._constrain(ge=value)

    def lt(self, value: int | float) -> "SchemaSpec":
        return self._constrain(lt=value)

    def le(self, value: int | float) -> "SchemaSpec":
        return self._constrain(le=value)

    def pattern(self, regex: str) -> "SchemaSpec":
        return self._constrain(pattern=regex)

    def email(self) -> "SchemaSpec":
        clone = self._derive()
        clone.checks.append(AfterValidator(_check_email))
        clone.formats.append("email")
        return clone

    def url(self) -> "SchemaSpec":
        clone = self._derive()
        clone.checks.append(AfterValidator(_check_url))
        clone.formats.append("url")
        return clone

    # Presence

    def optional(self) -> "SchemaSpec":
        """Allow the field to be absent; it resolves to None."""
        return self._derive(is_optional=True)

    def nullable(self) -> "SchemaSpec":
        """Allow an explicit None; the field stays required unless defaulted."""
        return self._derive(is_nullable=True)

    def default(self, value: Any) -> "SchemaSpec":
        """Value the validator injects when no source supplies the field."""
        return self._derive(default_value=value)

    def describe(self, text: str) -> "SchemaSpec":
        return self._derive(description=text)

    @property
    def has_default(self) -> bool:
        return self.default_value is not MISSING

    @property
    def required(self) -> bool:
        return not (self.is_optional or self.has_default)

    # Compilation

    def inner_type(self) -> Any:
        """The annotated type without optional/nullable wrapping."""
        metadata: list[Any] = []
        if self.constraints:
            metadata.append(Field(**self.constraints))
        if self.kind == "boolean":
            metadata.append(Strict())
        metadata.extend(self.checks)
        if self.preprocess is not None:
            metadata.append(BeforeValidator(self.preprocess))
        if not metadata:
            return self.annotation
        return Annotated[tuple([self.annotation, *metadata])]

    def build(self) -> tuple[Any, FieldInfo]:
        """Compile into an ``(annotation, FieldInfo)`` pair for ``create_model``."""
        annotation = self.inner_type()
        if self.is_optional or self.is_nullable:
            annotation = Optional[annotation]

        if self.has_default:
            default = self.default_value
            if isinstance(default, (list, dict, set)):
                info = Field(
                    default_factory=lambda: copy.deepcopy(default),
                    description=self.description,
                )
            else:
                info = Field(default=default, description=self.description)
        elif self.is_optional:
            info = Field(default=None, description=self.description)
        else:
            info = Field(description=self.description)
        return annotation, info

    def describe_type(self) -> str:
        """Short human-readable type, e.g. ``number >= 1 <= 10`` or ``string (pattern)``."""
        if self.kind == "enum":
            text = "enum [" + ", ".join(str(choice) for choice in self.choices) + "]"
        elif self.formats:
            text = self.formats[-1]
        else:
            text = self.kind
        bounds = (
            ("gt", ">"),
            ("ge", ">="),
            ("lt", "<"),
            ("le", "<="),
        )
        for key, symbol in bounds:
            if key in self.constraints:
                text += f" {symbol} {self.constraints[key]}"
        if "min_length" in self.constraints:
            text += f" min {self.constraints['min_length']}"
        if "max_length" in self.constraints:
            text += f" max {self.constraints['max_length']}"
        if "pattern" in self.constraints:
            text += " [pattern]"
        if self.is_optional:
            text += " [optional]"
        return text

    def __repr__(self) -> str:
        return f"SchemaSpec({self.describe_type()!r})"

    # Defined last: the name shadows the builtin for the rest of the class body.
    def int(self) -> "SchemaSpec":
        """Restrict a number to integers."""
        return self._derive(kind="integer", annotation=int)


def _item_type(item: "SchemaSpec | Any | None") -> Any:
    if item is None:
        return str
    if isinstance(item, SchemaSpec):
        return item.inner_type()
    return item


class _Builders:
    """Namespace of schema constructors, exported as ``v``."""

    @staticmethod
    def string() -> SchemaSpec:
        return SchemaSpec("string", str)

    @staticmethod
    def number() -> SchemaSpec:
        return SchemaSpec("number", float)

    @staticmethod
    def integer() -> SchemaSpec:
        return SchemaSpec("integer", int)

    @staticmethod
    def boolean() -> SchemaSpec:
        return SchemaSpec("boolean", bool, preprocess=parse_bool_if_string)

    @staticmethod
    def date() -> SchemaSpec:
        return SchemaSpec("date", datetime)

    @staticmethod
    def array(item: "SchemaSpec | Any | None" = None) -> SchemaSpec:
        """List of ``item`` (strings by default); JSON strings are decoded first."""
        return SchemaSpec("array", list[_item_type(item)], preprocess=parse_json_if_string)

    @staticmethod
    def object(shape: "dict[str, SchemaSpec] | type[BaseModel] | SchemaSpec | None" = None) -> SchemaSpec:
        """Mapping validated against ``shape``; JSON strings are decoded first.

        With no shape any string-keyed mapping is accepted. A dict of specs is
        compiled into a nested model whose result is returned as a plain dict;
        a pydantic model class is used as-is and yields model instances.
        """
        if shape is None:
            return SchemaSpec("object", dict[str, Any], preprocess=parse_json_if_string)
        if isinstance(shape, SchemaSpec):
            spec = shape._derive(kind="object", preprocess=parse_json_if_string)
            return spec
        if isinstance(shape, dict):
            fields = {name: as_schema(item).build() for name, item in shape.items()}
            model = create_model("ObjectShape", **fields)
            spec = SchemaSpec("object", model, preprocess=parse_json_if_string)
            spec.checks.append(AfterValidator(_dump_model))
            return spec
        return SchemaSpec("object", shape, preprocess=parse_json_if_string)

    @staticmethod
    def enum(values: "list[Any] | tuple[Any, ...]") -> SchemaSpec:
        choices = tuple(values)
        if not choices:
            raise ValueError("enum requires at least one value")
        spec = SchemaSpec("enum", Literal[choices])
        spec.choices = choices
        return spec

    @staticmethod
    def of(annotation: Any) -> SchemaSpec:
        """Wrap any type pydantic understands."""
        return SchemaSpec(getattr(annotation, "__name__", "custom"), annotation)


v = _Builders()


def as_schema(schema: Any) -> SchemaSpec:
    """Accept a ``SchemaSpec`` or any pydantic-compatible type."""
    if isinstance(schema, SchemaSpec):
        return schema
    return v.of(schema)
