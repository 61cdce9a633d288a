"""Trace and find result models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from envtrace.models.operation import OperationKind, TargetKind
from envtrace.models.platform import ContextInfo, SkipNotice


class Change(BaseModel):
    """One applied operation and the value it produced."""

    model_config = {"frozen": True}

    file: str = Field(description="File containing the statement")
    line_number: int = Field(description="1-based line number")
    line_content: str = Field(description="Source line reproduced verbatim")
    operation: OperationKind = Field(description="Operation kind")
    value_before: str | None = Field(default=None, description="State before the operation")
    value_after: str | None = Field(default=None, description="State after the operation")
    body_lines: list[str] = Field(default_factory=list, description="Function body for Define")
    conditional: bool = Field(default=False, description="Statement was guarded by a test")

    def to_report(self) -> dict[str, Any]:
        """Serialize to the field-exact report schema."""
        return {
            "file": self.file,
            "line_number": self.line_number,
            "line_content": self.line_content,
            "operation": self.operation.value,
            "value_before": self.value_before,
            "value_after": self.value_after,
        }


class TraceResult(BaseModel):
    """History and final state of one name across one context's chain."""

    model_config = {"frozen": True}

    name: str = Field(description="Variable or function name")
    kind: TargetKind = Field(description="Variable or function")
    final_value: str | None = Field(default=None, description="Final value or definition state")
    context: ContextInfo = Field(description="Context that was simulated")
    changes: list[Change] = Field(default_factory=list, description="Applied changes in order")
    skipped: list[SkipNotice] = Field(default_factory=list, description="Files that were not applied")

    @property
    def is_set(self) -> bool:
        return self.final_value is not None

    def to_report(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "final_value": self.final_value,
            "context": self.context.key,
            "changes": [c.to_report() for c in self.changes],
        }


class FindGroup(BaseModel):
    """All matching statements found in one file."""

    model_config = {"frozen": True}

    file: str = Field(description="File path")
    rank: int = Field(description="Rank of the file among all known files")
    changes: list[Change] = Field(default_factory=list, description="Matches in line order")


class FindResult(BaseModel):
    """Every statement touching a name, across all known files, unmerged."""

    model_config = {"frozen": True}

    name: str = Field(description="Variable or function name")
    kind: TargetKind = Field(description="Variable or function")
    groups: list[FindGroup] = Field(default_factory=list, description="Matches grouped by file")
    skipped: list[SkipNotice] = Field(default_factory=list, description="Files that were not read")

    @property
    def changes(self) -> list[Change]:
        return [c for g in self.groups for c in g.changes]

    @property
    def total(self) -> int:
        return sum(len(g.changes) for g in self.groups)

    def to_report(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "files": [
                {"file": g.file, "changes": [c.to_report() for c in g.changes]}
                for g in self.groups
            ],
        }
