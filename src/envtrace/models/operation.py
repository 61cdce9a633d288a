"""Parsed startup-file operation models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class TargetKind(str, Enum):
    """What is being traced."""

    VARIABLE = "variable"
    FUNCTION = "function"


class OperationKind(str, Enum):
    """Effects a single statement can have on a variable or function."""

    EXPORT = "Export"
    APPEND = "Append"
    PREPEND = "Prepend"
    UNSET = "Unset"
    DEFINE = "Define"
    AUTOLOAD = "Autoload"
    UNDEFINE_FUNCTION = "UndefineFunction"

    @property
    def target(self) -> TargetKind:
        if self in (OperationKind.DEFINE, OperationKind.AUTOLOAD, OperationKind.UNDEFINE_FUNCTION):
            return TargetKind.FUNCTION
        return TargetKind.VARIABLE


class Operation(BaseModel):
    """The effect of one statement in one file.

    For ``Export`` the value is the unquoted right-hand side (``None`` for a
    bare ``export NAME``); for ``Append``/``Prepend`` it is the suffix or
    prefix without the joining colon. ``Define`` carries the body lines
    between the braces.
    """

    model_config = {"frozen": True}

    kind: OperationKind = Field(description="Operation kind")
    name: str = Field(description="Variable or function name")
    file: str = Field(description="File the statement was read from")
    line_number: int = Field(description="1-based line number")
    line_text: str = Field(description="Source line reproduced verbatim")
    value: str | None = Field(default=None, description="Literal value, suffix or prefix")
    body_lines: list[str] = Field(default_factory=list, description="Captured function body")
    conditional: bool = Field(default=False, description="Guarded by a test (`[ ... ] &&`)")

    @property
    def target(self) -> TargetKind:
        return self.kind.target

    @property
    def body_line_count(self) -> int:
        return len(self.body_lines)


class SourceDirective(BaseModel):
    """A `source FILE` or `. FILE` statement."""

    model_config = {"frozen": True}

    file: str = Field(description="File containing the directive")
    line_number: int = Field(description="1-based line number")
    line_text: str = Field(description="Source line reproduced verbatim")
    target: str = Field(description="Unquoted path argument as written")


class ParsedFile(BaseModel):
    """Everything the extractor recovered from one file."""

    model_config = {"frozen": True}

    path: str = Field(description="File path")
    operations: list[Operation] = Field(default_factory=list, description="Operations in file order")
    sources: list[SourceDirective] = Field(default_factory=list, description="Source directives in file order")
    diagnostics: list[str] = Field(default_factory=list, description="Non-fatal problems reading the file")
    error: str | None = Field(default=None, description="Why nothing could be read from the file")
