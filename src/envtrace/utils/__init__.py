"""Utility functions for envtrace."""

from envtrace.utils.logging import configure_logging, get_logger, get_logger_with_context
from envtrace.utils.errors import (
    EnvtraceError,
    ValidationError,
    InvalidContextError,
    HomeDirectoryError,
    ConfigurationError,
    validate_identifier,
    validate_function_name,
)
from envtrace.utils.config import (
    EnvtraceConfig,
    OutputConfig,
    TraceConfig,
    load_config,
    get_config,
    set_config,
    get_default_config,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "get_logger_with_context",
    # Errors
    "EnvtraceError",
    "ValidationError",
    "InvalidContextError",
    "HomeDirectoryError",
    "ConfigurationError",
    "validate_identifier",
    "validate_function_name",
    # Config
    "EnvtraceConfig",
    "OutputConfig",
    "TraceConfig",
    "load_config",
    "get_config",
    "set_config",
    "get_default_config",
]
