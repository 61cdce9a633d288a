"""Base extractor protocol and shared helpers."""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

from envtrace.models.operation import Operation, OperationKind, ParsedFile
from envtrace.models.platform import FileKind

ASSIGN_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)=")


@runtime_checkable
class Extractor(Protocol):
    """Protocol for startup-file extractors.

    An extractor turns the raw bytes of one file into the operations it
    performs. It never reads the filesystem itself and never raises on
    malformed input: problems are reported as diagnostics on the result.

    Example:
        class MyExtractor:
            @property
            def name(self) -> str:
                return "my_format"

            @property
            def kinds(self) -> tuple[FileKind, ...]:
                return (FileKind.ENVIRONMENT,)

            def parse(self, path: str, data: bytes) -> ParsedFile:
                return ParsedFile(path=path)
    """

    @property
    def name(self) -> str:
        """Unique name for this extractor."""
        ...

    @property
    def kinds(self) -> tuple[FileKind, ...]:
        """File kinds this extractor understands."""
        ...

    def parse(self, path: str, data: bytes) -> ParsedFile:
        """Extract operations from a file's contents.

        Args:
            path: Path the data was read from (recorded on every operation)
            data: Raw file contents

        Returns:
            ParsedFile with operations in file order
        """
        ...


def decode_text(data: bytes) -> str | None:
    """Decode file contents as UTF-8 text, or None for binary/undecodable data."""
    if b"\x00" in data:
        return None
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return None
    return text.lstrip("\ufeff")


def undecodable(path: str) -> ParsedFile:
    return ParsedFile(path=path, error="not valid UTF-8 text")


def classify_assignment(name: str, literal: str) -> tuple[OperationKind, str]:
    """Classify ``NAME=literal`` as Export, Append or Prepend.

    ``$NAME:suffix`` and ``${NAME}:suffix`` are appends; ``prefix:$NAME``
    and ``prefix:${NAME}`` are prepends. Anything else is an export of the
    literal text.
    """
    for ref in (f"${{{name}}}", f"${name}"):
        head = ref + ":"
        if literal.startswith(head) and len(literal) > len(head):
            return OperationKind.APPEND, literal[len(head):]
        tail = ":" + ref
        if literal.endswith(tail) and len(literal) > len(tail):
            return OperationKind.PREPEND, literal[: -len(tail)]
    return OperationKind.EXPORT, literal


def export_op(
    path: str,
    line_number: int,
    line_text: str,
    name: str,
    literal: str | None,
    expand_self: bool = True,
    conditional: bool = False,
) -> Operation:
    """Build the operation for one assignment."""
    if literal is None:
        kind, value = OperationKind.EXPORT, None
    elif expand_self:
        kind, value = classify_assignment(name, literal)
    else:
        kind, value = OperationKind.EXPORT, literal
    return Operation(
        kind=kind,
        name=name,
        file=path,
        line_number=line_number,
        line_text=line_text,
        value=value,
        conditional=conditional,
    )
