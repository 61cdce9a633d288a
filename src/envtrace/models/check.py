"""Environment sanity-check models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class IssueCategory(str, Enum):
    """Kinds of structural problems the checker reports."""

    DUPLICATE_ENTRY = "DuplicateEntry"
    NONEXISTENT_DIRECTORY = "NonexistentDirectory"
    LAUNCHD_SHELL_MISMATCH = "LaunchdShellMismatch"
    SYSTEMD_SHELL_MISMATCH = "SystemdShellMismatch"
    EMPTY_ENTRY = "EmptyEntry"
    VARIABLE_UNSET = "VariableUnset"


class Issue(BaseModel):
    """A single sanity-check finding."""

    model_config = {"frozen": True}

    category: IssueCategory = Field(description="Issue category")
    description: str = Field(description="What was found")
    path: str | None = Field(default=None, description="Affected entry, if any")


class CheckResult(BaseModel):
    """All findings of a sanity check; empty means healthy."""

    model_config = {"frozen": True}

    variable: str = Field(default="PATH", description="Variable that was inspected")
    entries: list[str] = Field(default_factory=list, description="Entries of the live value")
    issues: list[Issue] = Field(default_factory=list, description="Findings")

    @property
    def healthy(self) -> bool:
        return not self.issues

    def by_category(self, category: IssueCategory) -> list[Issue]:
        return [i for i in self.issues if i.category == category]

    def to_report(self) -> dict[str, Any]:
        return {
            "issues": [
                {"category": i.category.value, "description": i.description, "path": i.path}
                for i in self.issues
            ]
        }
