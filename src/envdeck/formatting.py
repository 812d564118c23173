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

"""Human-readable reports for validation failures and loaded settings."""

from typing import Any

from .exceptions import EnvdeckError, SettingsValidationError
from .settings import BaseSettings, env_text


class SettingsFormatter:
    """Format envdeck errors and settings for a terminal."""

    # Verbosity levels
    CONCISE = "concise"
    DETAILED = "detailed"

    def __init__(self, verbosity: str = DETAILED) -> None:
        self.verbosity = verbosity

    def format_validation_error(
        self,
        error: SettingsValidationError,
        settings_cls: type[BaseSettings] | None = None,
    ) -> str:
        """One line per failing field, with the variable to set when known."""
        name = error.settings_name or (settings_cls.__name__ if settings_cls else "Settings")
        count = len(error.issues)
        lines = [f"❌ {name}: {count} invalid field{'s' if count != 1 else ''}"]

        for issue in error.issues:
            line = f"  - {issue.message}"
            if settings_cls is not None and issue.path:
                line += f" (set {settings_cls.env_var_for(str(issue.path[0]))})"
            lines.append(line)
            if self.verbosity == self.DETAILED and issue.meta:
                details = ", ".join(f"{key}={value}" for key, value in sorted(issue.meta.items()))
                lines.append(f"      {details}")

        if not error.issues:
            lines.append(f"  - {error.message}")
        return "\n".join(lines)

    def format_error(self, error: EnvdeckError) -> str:
        """Format any envdeck error with its code and recovery hint."""
        if isinstance(error, SettingsValidationError):
            return self.format_validation_error(error)

        lines = [f"❌ [{error.error_code}] {error.message}"]
        if error.recovery_suggestion and self.verbosity == self.DETAILED:
            lines.append(f"💡 {error.recovery_suggestion}")
        return "\n".join(lines)

    def format_settings(self, instance: BaseSettings) -> str:
        """Loaded values as a two-column table; secrets stay masked."""
        cls = type(instance)
        values = instance.to_dict()
        rows = [(cls.env_var_for(name), env_text(value)) for name, value in values.items()]
        width = max((len(variable) for variable, _ in rows), default=0)

        lines = [f"✅ {cls.__name__}"]
        for variable, text in rows:
            lines.append(f"  {variable.ljust(width)}  {text}")
        return "\n".join(lines)

    def format_check_report(self, results: list[tuple[type[BaseSettings], Any]]) -> str:
        """Summarize ``(settings class, error or None)`` pairs from a check run."""
        if not results:
            return "📭 No settings classes found"

        lines: list[str] = []
        failures = 0
        for settings_cls, error in results:
            if error is None:
                lines.append(f"✅ {settings_cls.__name__}")
            elif isinstance(error, SettingsValidationError):
                failures += 1
                lines.append(self.format_validation_error(error, settings_cls))
            else:
                failures += 1
                lines.append(f"❌ {settings_cls.__name__}: {error}")

        lines.extend(["", f"{len(results) - failures} passed, {failures} failed"])
        return "\n".join(lines)
