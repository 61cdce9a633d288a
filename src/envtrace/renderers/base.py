"""Base renderer protocol and types."""

from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field


class OutputFormat(str, Enum):
    """Supported output formats."""

    TEXT = "text"
    JSON = "json"


class RenderContext(BaseModel):
    """Context for rendering operations."""

    model_config = {"frozen": True}

    format: OutputFormat = Field(default=OutputFormat.TEXT, description="Output format")
    verbose: bool = Field(default=False, description="Show skipped files and function bodies")
    color: bool = Field(default=True, description="Enable color output (text only)")
    home: str | None = Field(default=None, description="Home directory shown as ~ in text output")

    # Formatting options
    indent: int = Field(default=2, description="JSON indentation")
    body_preview_lines: int = Field(default=5, description="Function body lines shown")


@runtime_checkable
class Renderer(Protocol):
    """Protocol for output renderers.

    Renderers turn report models (TraceResult, FindResult,
    ComparisonResult, CheckResult, ContextListing) into output.
    """

    @property
    def format(self) -> OutputFormat:
        """The output format this renderer produces."""
        ...

    def render(self, data: Any, context: RenderContext) -> str:
        """Render data to a string.

        Args:
            data: The report model to render
            context: Rendering context with options

        Returns:
            Rendered string output
        """
        ...


class BaseRenderer:
    """Base implementation with common functionality."""

    def render(self, data: Any, context: RenderContext) -> str:
        """Render data to a string. Must be implemented by subclasses."""
        raise NotImplementedError

    @staticmethod
    def display_path(path: str, context: RenderContext) -> str:
        """Show paths under the home directory as ``~/...``."""
        home = context.home
        if home and (path == home or path.startswith(home.rstrip("/") + "/")):
            return "~" + path[len(home.rstrip("/")):]
        return path
