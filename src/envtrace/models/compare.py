"""Cross-context comparison models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from envtrace.models.operation import TargetKind
from envtrace.models.trace import TraceResult


class ComparisonResult(BaseModel):
    """Final value of one name in each requested context."""

    model_config = {"frozen": True}

    name: str = Field(description="Variable or function name")
    kind: TargetKind = Field(description="Variable or function")
    results: dict[str, str | None] = Field(
        default_factory=dict,
        description="Context key -> final value or definition state, in request order",
    )
    labels: dict[str, str] = Field(default_factory=dict, description="Context key -> label")
    traces: list[TraceResult] = Field(default_factory=list, description="Underlying trace per request")

    def to_report(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "results": {self.labels.get(key, key): value for key, value in self.results.items()},
        }
