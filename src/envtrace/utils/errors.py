"""Error handling utilities for envtrace."""

from __future__ import annotations

import re
from typing import Any

from envtrace.models.common import ErrorDetail

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
FUNCTION_NAME_RE = re.compile(r"^[A-Za-z_][\w:.+-]*$")


class EnvtraceError(Exception):
    """Base exception for envtrace."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR", details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_error_detail(self) -> ErrorDetail:
        """Convert to ErrorDetail model."""
        return ErrorDetail(code=self.code, message=self.message, details=self.details)


class ValidationError(EnvtraceError):
    """Invocation arguments are invalid."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidContextError(EnvtraceError):
    """A context name is unknown or not available on the platform."""

    def __init__(self, name: str, platform: str | None = None, valid: list[str] | None = None):
        if platform:
            message = f"Context '{name}' is not available on {platform}"
        else:
            message = f"Unknown context: {name}"
        if valid:
            message += f" (valid: {', '.join(valid)})"
        details: dict[str, Any] = {"context": name}
        if platform:
            details["platform"] = platform
        super().__init__(message, code="INVALID_CONTEXT", details=details)


class HomeDirectoryError(EnvtraceError):
    """The home directory could not be determined."""

    def __init__(self, message: str = "Cannot resolve home directory"):
        super().__init__(message, code="HOME_ERROR")


class ConfigurationError(EnvtraceError):
    """Configuration error."""

    def __init__(self, message: str, config_key: str | None = None):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, code="CONFIG_ERROR", details=details)


def validate_identifier(name: str, field: str = "name") -> None:
    """Validate a variable or function name.

    Args:
        name: Name to validate
        field: Argument name used in the error

    Raises:
        ValidationError: If name is not a shell identifier
    """
    if not name:
        raise ValidationError("Name cannot be empty", field=field)

    if not IDENTIFIER_RE.match(name):
        raise ValidationError(
            f"'{name}' is not a valid identifier (must match [A-Za-z_][A-Za-z0-9_]*)",
            field=field,
        )


def validate_function_name(name: str, field: str = "name") -> None:
    """Validate a shell function name (zsh also allows ``-``, ``.``, ``:`` and ``+``).

    Raises:
        ValidationError: If name is not a valid function name
    """
    if not name:
        raise ValidationError("Name cannot be empty", field=field)

    if not FUNCTION_NAME_RE.match(name):
        raise ValidationError(f"'{name}' is not a valid function name", field=field)
