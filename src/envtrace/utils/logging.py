"""Logging setup for envtrace.

Diagnostics go to stderr so that JSON written to stdout stays parseable.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "envtrace"


class StructuredFormatter(logging.Formatter):
    """Formatter that appends ``key=value`` context fields to each message."""

    def format(self, record: logging.LogRecord) -> str:
        fields = getattr(record, "trace_fields", None)
        message = super().format(record)
        if not fields:
            return message
        return message + " " + " ".join(f"{k}={v}" for k, v in fields.items())


def configure_logging(
    level: str = "WARNING",
    format_string: str | None = None,
    structured: bool = False,
) -> None:
    """Configure the ``envtrace`` logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        format_string: Custom format for structured output
        structured: Emit plain ``time level name message k=v`` lines instead
            of rich-formatted output
    """
    if structured:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(
            StructuredFormatter(format_string or "%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
        )
        handler.setFormatter(StructuredFormatter("%(message)s"))

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers = [handler]
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under ``envtrace``."""
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


class TraceLoggerAdapter(logging.LoggerAdapter):
    """Adapter that attaches the run's context fields to every record."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        extra["trace_fields"] = self.extra
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger_with_context(name: str, **context: Any) -> TraceLoggerAdapter:
    """Get a logger that tags records with ``context`` (e.g. target name, context key)."""
    return TraceLoggerAdapter(get_logger(name), context)
