"""Output format renderers."""

from rich.console import Console

from envtrace.renderers.base import BaseRenderer, OutputFormat, RenderContext, Renderer
from envtrace.renderers.json import JSONRenderer
from envtrace.renderers.terminal import TerminalRenderer

__all__ = [
    "BaseRenderer",
    "OutputFormat",
    "RenderContext",
    "Renderer",
    "JSONRenderer",
    "TerminalRenderer",
    "get_renderer",
]


def get_renderer(format: OutputFormat | str, console: Console | None = None) -> BaseRenderer:
    """Get a renderer for the specified format.

    Args:
        format: Output format (OutputFormat enum or string)
        console: Console for text output

    Returns:
        Appropriate renderer instance

    Raises:
        ValueError: If format is not supported
    """
    if isinstance(format, str):
        format = OutputFormat(format)

    if format is OutputFormat.JSON:
        return JSONRenderer()
    if format is OutputFormat.TEXT:
        return TerminalRenderer(console)
    raise ValueError(f"Unsupported format: {format}")
