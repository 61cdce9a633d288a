"""JSON renderer for envtrace output."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel

from envtrace.renderers.base import BaseRenderer, OutputFormat, RenderContext


class JSONRenderer(BaseRenderer):
    """Renderer for JSON output format.

    Report models are serialized through their ``to_report()`` schema so
    that field names and nesting stay fixed across releases.

    Example:
        renderer = JSONRenderer()
        json_str = renderer.render(trace_result, context)
    """

    @property
    def format(self) -> OutputFormat:
        return OutputFormat.JSON

    def render(self, data: Any, context: RenderContext) -> str:
        """Render data to a JSON string.

        Args:
            data: Report model, plain model, or JSON-compatible data
            context: Rendering context with options

        Returns:
            JSON string
        """
        return json.dumps(
            self._to_data(data),
            indent=context.indent if context.indent else None,
            default=self._json_serializer,
            ensure_ascii=False,
        )

    def _to_data(self, data: Any) -> Any:
        if hasattr(data, "to_report"):
            return data.to_report()
        if isinstance(data, BaseModel):
            return data.model_dump(mode="json")
        if isinstance(data, (list, tuple)):
            return [self._to_data(item) for item in data]
        return data

    @staticmethod
    def _json_serializer(obj: Any) -> Any:
        """Custom JSON serializer for non-standard types."""
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, set):
            return sorted(obj)
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
