"""Extractors for non-shell environment sources.

These formats are not executed by a shell: path_helper inputs, PAM's
/etc/environment, systemd environment.d and manager configuration, and
launchd property lists.
"""

from __future__ import annotations

import plistlib
import re
from xml.parsers.expat import ExpatError

from envtrace.extractors.base import ASSIGN_RE, decode_text, export_op, undecodable
from envtrace.extractors.quoting import UnterminatedQuote, read_word, unquote
from envtrace.models.operation import Operation, OperationKind, ParsedFile
from envtrace.models.platform import FileKind
from envtrace.utils.logging import get_logger

logger = get_logger(__name__)

SYSTEMD_ENV_KEYS = ("DefaultEnvironment", "Environment")
SYSTEMD_LINE_RE = re.compile(rf"^\s*({'|'.join(SYSTEMD_ENV_KEYS)})\s*=\s*(.*)$")
LAUNCHCTL_SETENV_RE = re.compile(r"^\s*launchctl\s+setenv\s+(\S+)\s+(.+?)\s*$")


def _content_lines(text: str):
    """Yield (line number, raw line, stripped line) skipping blanks and comments."""
    for number, raw in enumerate(text.splitlines(), start=1):
        stripped = raw.strip()
        if not stripped or stripped.startswith(("#", ";")):
            continue
        yield number, raw, stripped


class PathHelperExtractor:
    """``/etc/paths`` and ``/etc/paths.d/*``: one directory per line.

    Each line is recorded as an Append to PATH; the simulator combines them
    the way path_helper does, ahead of the PATH it inherited.
    """

    variable = "PATH"

    @property
    def name(self) -> str:
        return "path_helper"

    @property
    def kinds(self) -> tuple[FileKind, ...]:
        return (FileKind.PATH_HELPER,)

    def parse(self, path: str, data: bytes) -> ParsedFile:
        text = decode_text(data)
        if text is None:
            return undecodable(path)
        operations = [
            Operation(
                kind=OperationKind.APPEND,
                name=self.variable,
                file=path,
                line_number=number,
                line_text=raw,
                value=stripped,
            )
            for number, raw, stripped in _content_lines(text)
        ]
        return ParsedFile(path=path, operations=operations)


class EnvironmentFileExtractor:
    """PAM ``/etc/environment``: ``NAME=VALUE`` lines, no expansion."""

    @property
    def name(self) -> str:
        return "environment"

    @property
    def kinds(self) -> tuple[FileKind, ...]:
        return (FileKind.ENVIRONMENT,)

    def parse(self, path: str, data: bytes) -> ParsedFile:
        text = decode_text(data)
        if text is None:
            return undecodable(path)
        operations: list[Operation] = []
        diagnostics: list[str] = []
        for number, raw, stripped in _content_lines(text):
            if stripped.startswith("export "):
                stripped = stripped[len("export "):].lstrip()
            match = ASSIGN_RE.match(stripped)
            if not match:
                diagnostics.append(f"line {number}: not a NAME=VALUE assignment")
                continue
            value = unquote(stripped[match.end():])
            operations.append(export_op(path, number, raw, match.group(1), value, expand_self=False))
        return ParsedFile(path=path, operations=operations, diagnostics=diagnostics)


class EnvironmentDExtractor:
    """systemd ``environment.d/*.conf``: ``NAME=VALUE`` with ``$NAME``/``${NAME}`` expansion."""

    @property
    def name(self) -> str:
        return "environment_d"

    @property
    def kinds(self) -> tuple[FileKind, ...]:
        return (FileKind.ENVIRONMENT_D,)

    def parse(self, path: str, data: bytes) -> ParsedFile:
        text = decode_text(data)
        if text is None:
            return undecodable(path)
        operations: list[Operation] = []
        diagnostics: list[str] = []
        for number, raw, stripped in _content_lines(text):
            match = ASSIGN_RE.match(stripped)
            if not match:
                diagnostics.append(f"line {number}: not a NAME=VALUE assignment")
                continue
            value = unquote(stripped[match.end():])
            operations.append(export_op(path, number, raw, match.group(1), value))
        return ParsedFile(path=path, operations=operations, diagnostics=diagnostics)


class SystemdConfExtractor:
    """systemd manager configuration (``system.conf``, ``user.conf`` and drop-ins).

    ``DefaultEnvironment=`` and ``Environment=`` take a space-separated
    list of optionally quoted ``NAME=VALUE`` words.
    """

    @property
    def name(self) -> str:
        return "systemd_conf"

    @property
    def kinds(self) -> tuple[FileKind, ...]:
        return (FileKind.SYSTEMD_CONF,)

    def parse(self, path: str, data: bytes) -> ParsedFile:
        text = decode_text(data)
        if text is None:
            return undecodable(path)
        operations: list[Operation] = []
        diagnostics: list[str] = []
        for number, raw, stripped in _content_lines(text):
            match = SYSTEMD_LINE_RE.match(stripped)
            if not match:
                continue
            try:
                words = _words(match.group(2))
            except UnterminatedQuote as e:
                diagnostics.append(f"line {number}: skipped ({e})")
                continue
            for word in words:
                assignment = ASSIGN_RE.match(word)
                if not assignment:
                    diagnostics.append(f"line {number}: ignoring '{word}'")
                    continue
                operations.append(
                    export_op(path, number, raw, assignment.group(1), word[assignment.end():], expand_self=False)
                )
        return ParsedFile(path=path, operations=operations, diagnostics=diagnostics)


def _words(text: str) -> list[str]:
    words: list[str] = []
    i = 0
    while i < len(text):
        if text[i].isspace():
            i += 1
            continue
        word, end = read_word(text, i)
        if end == i:
            # stray operator character; systemd treats it as text
            word, end = text[i], i + 1
        words.append(word)
        i = end
    return words


class PlistExtractor:
    """launchd property lists.

    Reads the ``EnvironmentVariables`` dictionary, and ``launchctl setenv``
    commands run through ``ProgramArguments``.
    """

    @property
    def name(self) -> str:
        return "plist"

    @property
    def kinds(self) -> tuple[FileKind, ...]:
        return (FileKind.PLIST,)

    def parse(self, path: str, data: bytes) -> ParsedFile:
        try:
            plist = plistlib.loads(data)
        except (plistlib.InvalidFileException, ExpatError, ValueError, TypeError) as e:
            logger.debug("Cannot parse plist %s: %s", path, e)
            return ParsedFile(path=path, error=f"invalid property list: {e}")
        if not isinstance(plist, dict):
            return ParsedFile(path=path, error="property list root is not a dictionary")

        lines = (decode_text(data) or "").splitlines()
        operations: list[Operation] = []

        env = plist.get("EnvironmentVariables")
        if isinstance(env, dict):
            for name, value in env.items():
                if not isinstance(value, str):
                    continue
                number = _line_containing(lines, f"<key>{name}</key>")
                operations.append(
                    export_op(
                        path,
                        number,
                        f"EnvironmentVariables: {name} = {value}",
                        name,
                        value,
                        expand_self=False,
                    )
                )

        args = plist.get("ProgramArguments")
        if isinstance(args, list) and all(isinstance(a, str) for a in args):
            if len(args) >= 3 and args[1] == "-c":
                command = args[2]
            else:
                command = " ".join(args)
            for segment in re.split(r"\s*(?:;|&&)\s*", command):
                match = LAUNCHCTL_SETENV_RE.match(segment)
                if not match:
                    continue
                name, value = match.group(1), unquote(match.group(2))
                operations.append(
                    export_op(path, _line_containing(lines, "launchctl"), segment, name, value, expand_self=False)
                )

        return ParsedFile(path=path, operations=operations)


def _line_containing(lines: list[str], needle: str) -> int:
    """1-based line containing ``needle``, or 1 when it cannot be located (binary plists)."""
    for number, line in enumerate(lines, start=1):
        if needle in line:
            return number
    return 1
