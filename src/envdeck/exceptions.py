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

"""Custom exceptions for envdeck."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError as PydanticValidationError

# Keys copied from a pydantic error ``ctx`` into the issue metadata
_PORTABLE_META_KEYS = (
    "expected",
    "ge",
    "gt",
    "le",
    "lt",
    "min_length",
    "max_length",
    "pattern",
    "multiple_of",
)


class EnvdeckError(Exception):
    """Base exception for all envdeck errors."""

    ERROR_CATEGORY = "GENERAL"
    ERROR_CODE = "ENV_0000"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        recovery_suggestion: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.ERROR_CODE
        self.error_category = self.ERROR_CATEGORY
        self.context = context or {}
        self.recovery_suggestion = recovery_suggestion
        self.timestamp = datetime.now(timezone.utc)

    @property
    def cause(self) -> BaseException | None:
        """The chained exception this error was raised from, if any."""
        return self.__cause__


class SettingsDeclarationError(EnvdeckError):
    """A settings class was loaded without any registered field."""

    ERROR_CATEGORY = "PROGRAMMER_ERROR"
    ERROR_CODE = "ENV_1000"

    def __init__(self, settings_name: str) -> None:
        message = (
            f"{settings_name} has no registered settings fields; "
            "declare at least one field with setting()"
        )
        super().__init__(
            message,
            self.ERROR_CODE,
            {"settings_name": settings_name},
            f"Annotate the fields of {settings_name} with setting(...)",
        )
        self.settings_name = settings_name


@dataclass(frozen=True)
class ValidationIssue:
    """One failing field: where, what, and optional machine-readable detail."""

    path: tuple[str | int, ...]
    message: str
    code: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def dotted_path(self) -> str:
        return ".".join(str(part) for part in self.path)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"path": list(self.path), "message": self.message}
        if self.code is not None:
            result["code"] = self.code
        if self.meta:
            result["meta"] = dict(self.meta)
        return result


class SettingsValidationError(EnvdeckError):
    """Merged settings input failed schema validation."""

    ERROR_CATEGORY = "CLIENT_ERROR"
    ERROR_CODE = "ENV_2000"

    def __init__(
        self,
        message: str,
        issues: list[ValidationIssue],
        settings_name: str | None = None,
    ) -> None:
        context = {"settings_name": settings_name, "issue_count": len(issues)}
        super().__init__(
            message,
            self.ERROR_CODE,
            context,
            "Fix the environment variables or injected values listed above",
        )
        self.issues = issues
        self.settings_name = settings_name

    @classmethod
    def from_pydantic(
        cls,
        error: PydanticValidationError,
        settings_name: str,
    ) -> "SettingsValidationError":
        """Translate a pydantic ValidationError into the envdeck issue shape.

        Every issue message is prefixed with the settings class name and the
        field path, and the pydantic error is kept as ``__cause__``.
        """
        issues = []
        for entry in error.errors(include_url=False):
            path = tuple(entry.get("loc", ()))
            location = ".".join(str(part) for part in path)
            prefix = f"{settings_name}.{location}" if location else settings_name

            meta: dict[str, Any] = {}
            ctx = entry.get("ctx") or {}
            for key in _PORTABLE_META_KEYS:
                if key in ctx:
                    meta[key] = ctx[key]
            if "input" in entry and entry.get("type") != "missing":
                meta["received"] = type(entry["input"]).__name__

            issues.append(
                ValidationIssue(
                    path=path,
                    message=f"{prefix}: {entry.get('msg', 'Invalid value')}",
                    code=entry.get("type"),
                    meta=meta,
                ),
            )

        message = "\n".join(issue.message for issue in issues) or "Validation failed"
        result = cls(message, issues, settings_name)
        result.__cause__ = error
        return result

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": type(self).__name__,
            "message": self.message,
            "issues": [issue.to_dict() for issue in self.issues],
        }


class SettingsAccessError(EnvdeckError):
    """A registry slot was accessed without an available value or loader."""

    ERROR_CATEGORY = "PROGRAMMER_ERROR"
    ERROR_CODE = "ENV_3000"

    def __init__(
        self,
        key: str,
        message: str,
        recovery_suggestion: str | None = None,
    ) -> None:
        super().__init__(message, self.ERROR_CODE, {"key": key}, recovery_suggestion)
        self.key = key


class SettingsAccessedBeforeInitializationError(SettingsAccessError):
    """Slot accessed before the registry was initialized."""

    ERROR_CODE = "ENV_3001"

    def __init__(self, key: str) -> None:
        super().__init__(
            key,
            f"Settings key {key!r} accessed before initialization; "
            "await initialize_loaders(...) or proxy.override(...) first",
            "Initialize the settings registry during application startup",
        )


class SettingsKeyNotInitializedError(SettingsAccessError):
    """Registry is initialized but never resolved or registered this key."""

    ERROR_CODE = "ENV_3002"

    def __init__(self, key: str) -> None:
        super().__init__(
            key,
            f"Settings key {key!r} accessed but not initialized; "
            "no loader was registered for it",
            f"Add a loader named {key!r} to the initialization call",
        )


class SettingsSerializationError(EnvdeckError):
    """Serialization met a value that is still an unresolved awaitable."""

    ERROR_CATEGORY = "PROGRAMMER_ERROR"
    ERROR_CODE = "ENV_4000"

    def __init__(self, key: str) -> None:
        super().__init__(
            f"Cannot serialize settings key {key!r}: its loader is asynchronous "
            "and has not been resolved; initialize the settings before serializing",
            self.ERROR_CODE,
            {"key": key},
            "await initialize_loaders(...) or proxy.override(...) before serializing",
        )
        self.key = key


class ToolConfigError(EnvdeckError):
    """Invalid ENVDECK_* configuration."""

    ERROR_CATEGORY = "CONFIG_ERROR"
    ERROR_CODE = "ENV_5000"


def is_validation_error(error: object) -> bool:
    """Return True if ``error`` is a structured settings validation error."""
    return isinstance(error, SettingsValidationError)
