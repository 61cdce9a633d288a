"""Shell startup-file extractor.

Recognizes, line by line:

- ``export NAME=VALUE``, ``export A=1 B=2``, bare ``export NAME``
- ``NAME=VALUE`` (bare assignment), ``declare``/``typeset``/``readonly``
- ``unset NAME``, ``unset -f NAME``, ``unfunction NAME``
- ``name() { ... }`` and ``function name { ... }`` definitions
- ``autoload [-flags] name ...``
- ``source FILE`` and ``. FILE``

Statements after ``&&``/``||`` or inside one-line ``if ...; then`` are
marked conditional. Lines that cannot be tokenized (unterminated quotes)
are skipped.
"""

from __future__ import annotations

import bisect
import re

from envtrace.extractors.base import ASSIGN_RE, decode_text, export_op, undecodable
from envtrace.extractors.quoting import (
    Token,
    UnterminatedQuote,
    heredoc_delimiters,
    match_brace,
    read_word,
    split_statements,
    tokenize,
)
from envtrace.models.operation import Operation, OperationKind, ParsedFile, SourceDirective
from envtrace.models.platform import FileKind
from envtrace.utils.logging import get_logger

logger = get_logger(__name__)

_FUNC_NAME = r"[A-Za-z_][\w:.+-]*"
FUNCTION_HEADER_RE = re.compile(
    rf"^\s*(?:function\s+(?P<kw>{_FUNC_NAME})\s*(?:\(\s*\))?|(?P<posix>{_FUNC_NAME})\s*\(\s*\))\s*(?P<brace>\{{)?"
)
FUNCTION_NAME_RE = re.compile(rf"^{_FUNC_NAME}$")
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Keywords that may precede a statement on the same line
_CONDITIONAL_KEYWORDS = frozenset({"then", "else", "elif", "do"})
_NEUTRAL_KEYWORDS = frozenset({"{", "!"})

_DECLARATION_COMMANDS = frozenset({"export", "declare", "typeset", "readonly", "local"})


class _Line:
    """A logical line: one or more physical lines joined by continuations."""

    def __init__(self, number: int, text: str, last_index: int):
        self.number = number
        self.text = text
        self.last_index = last_index


def _logical_line(lines: list[str], index: int) -> _Line:
    parts = [lines[index]]
    end = index
    while _ends_with_continuation(parts[-1]) and end + 1 < len(lines):
        end += 1
        parts.append(lines[end])
    return _Line(index + 1, "\n".join(parts), end)


def _ends_with_continuation(line: str) -> bool:
    stripped = line.rstrip("\r")
    trailing = len(stripped) - len(stripped.rstrip("\\"))
    return trailing % 2 == 1


class ShellParser:
    """Single-use parser for one shell file."""

    def __init__(self, path: str, text: str):
        self.path = path
        self.lines = text.splitlines()
        self.text = "\n".join(self.lines)
        self._starts: list[int] = []
        offset = 0
        for line in self.lines:
            self._starts.append(offset)
            offset += len(line) + 1
        self.operations: list[Operation] = []
        self.sources: list[SourceDirective] = []
        self.diagnostics: list[str] = []

    def parse(self) -> ParsedFile:
        i = 0
        while i < len(self.lines):
            stripped = self.lines[i].strip()
            if not stripped or stripped.startswith("#"):
                i += 1
                continue

            after_function = self._parse_function(i)
            if after_function is not None:
                i = after_function
                continue

            logical = _logical_line(self.lines, i)
            self._parse_logical_line(logical)
            i = self._skip_heredoc(logical)

        return ParsedFile(
            path=self.path,
            operations=self.operations,
            sources=self.sources,
            diagnostics=self.diagnostics,
        )

    def _line_of(self, offset: int) -> int:
        """0-based line index containing a character offset."""
        return bisect.bisect_right(self._starts, offset) - 1

    def _parse_function(self, index: int) -> int | None:
        """Record a function definition starting on line ``index``.

        Returns:
            Index of the first line after the definition, or None if the
            line does not start a function
        """
        line = self.lines[index]
        match = FUNCTION_HEADER_RE.match(line)
        if not match:
            return None
        name = match.group("kw") or match.group("posix")

        if match.group("brace"):
            open_at = self._starts[index] + match.start("brace")
        else:
            rest = line[match.end():].strip()
            if rest and not rest.startswith("#"):
                return None
            nxt = index + 1
            while nxt < len(self.lines) and not self.lines[nxt].strip():
                nxt += 1
            if nxt >= len(self.lines) or not self.lines[nxt].lstrip().startswith("{"):
                return None
            open_at = self._starts[nxt] + self.lines[nxt].index("{")

        close_at = match_brace(self.text, open_at)
        if close_at is None:
            logger.debug("%s:%d: unterminated function body for %s", self.path, index + 1, name)
            self.diagnostics.append(f"line {index + 1}: unterminated body for function {name}")
            return index + 1

        body = self.text[open_at + 1:close_at].split("\n")
        if self._line_of(open_at) == self._line_of(close_at):
            body = [body[0].strip()] if body[0].strip() else []
        else:
            body = [b.rstrip() for b in body]
            if body and not body[0].strip():
                body.pop(0)
            if body and not body[-1].strip():
                body.pop()

        self.operations.append(
            Operation(
                kind=OperationKind.DEFINE,
                name=name,
                file=self.path,
                line_number=index + 1,
                line_text=line,
                body_lines=body,
            )
        )
        return self._line_of(close_at) + 1

    def _skip_heredoc(self, logical: _Line) -> int:
        """Index of the first line after any here-document bodies the line opens."""
        try:
            delimiters = heredoc_delimiters(logical.text)
        except UnterminatedQuote:
            delimiters = []
        i = logical.last_index + 1
        for delimiter in delimiters:
            while i < len(self.lines) and self.lines[i].strip() != delimiter:
                i += 1
            i += 1
        return min(i, len(self.lines))

    def _parse_logical_line(self, logical: _Line) -> None:
        try:
            statements = split_statements(logical.text)
        except UnterminatedQuote as e:
            logger.debug("%s:%d: skipped (%s)", self.path, logical.number, e)
            self.diagnostics.append(f"line {logical.number}: skipped ({e})")
            return

        guarded = False
        for stmt, separator in statements:
            try:
                tokens = list(tokenize(stmt))
            except UnterminatedQuote as e:
                self.diagnostics.append(f"line {logical.number}: skipped ({e})")
                return
            while tokens and tokens[0].literal in _CONDITIONAL_KEYWORDS | _NEUTRAL_KEYWORDS:
                if tokens[0].literal in _CONDITIONAL_KEYWORDS:
                    guarded = True
                tokens = tokens[1:]
            if not tokens:
                continue
            head = tokens[0].literal
            if head in ("if", "while", "until"):
                # the test itself; statements after `then`/`do` are guarded
                guarded = True
                continue
            if head in ("fi", "done"):
                guarded = False
                continue
            self._parse_statement(stmt, tokens, logical, guarded or separator in ("&&", "||"))

    def _parse_statement(self, stmt: str, tokens: list[Token], logical: _Line, conditional: bool) -> None:
        command = tokens[0].literal
        args = tokens[1:]

        if command in _DECLARATION_COMMANDS:
            self._parse_declaration(command, stmt, args, logical, conditional)
        elif command == "unset":
            flags, names = _split_flags(args)
            kind = OperationKind.UNDEFINE_FUNCTION if "f" in flags else OperationKind.UNSET
            for name in names:
                if IDENTIFIER_RE.match(name) or (kind is OperationKind.UNDEFINE_FUNCTION and FUNCTION_NAME_RE.match(name)):
                    self._add(kind, name, logical, conditional=conditional)
        elif command == "unfunction":
            _, names = _split_flags(args)
            for name in names:
                if FUNCTION_NAME_RE.match(name):
                    self._add(OperationKind.UNDEFINE_FUNCTION, name, logical, conditional=conditional)
        elif command == "autoload":
            _, names = _split_flags(args)
            for name in names:
                if FUNCTION_NAME_RE.match(name):
                    self._add(OperationKind.AUTOLOAD, name, logical, conditional=conditional)
        elif command in ("source", ".") and args:
            self.sources.append(
                SourceDirective(
                    file=self.path,
                    line_number=logical.number,
                    line_text=logical.text,
                    target=args[0].literal,
                )
            )
        else:
            self._parse_assignments(stmt, tokens, logical, conditional)

    def _parse_declaration(
        self, command: str, stmt: str, args: list[Token], logical: _Line, conditional: bool
    ) -> None:
        if command == "local":
            return
        flags, _ = _split_flags(args)
        if command == "export" and ("n" in flags or "f" in flags):
            return
        if command in ("declare", "typeset") and (flags & {"f", "F", "a", "A", "p"}):
            return
        for token in args:
            if token.literal == "(":
                break
            if token.literal.startswith(("-", "+")):
                continue
            match = ASSIGN_RE.match(stmt, token.start)
            if match and match.end() <= token.end:
                self._add_assignment(stmt, match, logical, conditional)
            elif command == "export" and IDENTIFIER_RE.match(token.literal):
                self.operations.append(
                    export_op(self.path, logical.number, logical.text, token.literal, None, conditional=conditional)
                )

    def _parse_assignments(self, stmt: str, tokens: list[Token], logical: _Line, conditional: bool) -> None:
        """Handle ``A=1 B=2``; ``A=1 command`` only scopes A to the command."""
        matches = []
        for token in tokens:
            match = ASSIGN_RE.match(stmt, token.start)
            if not match or match.end() > token.end:
                break
            matches.append(match)
        if len(matches) < len(tokens):
            if matches:
                logger.debug("%s:%d: command-scoped assignment ignored", self.path, logical.number)
            return
        for match in matches:
            self._add_assignment(stmt, match, logical, conditional)

    def _add_assignment(self, stmt: str, match: re.Match[str], logical: _Line, conditional: bool) -> None:
        if stmt[match.end():match.end() + 1] == "(":
            return  # arrays are not modeled
        literal, _ = read_word(stmt, match.end())
        self.operations.append(
            export_op(self.path, logical.number, logical.text, match.group(1), literal, conditional=conditional)
        )

    def _add(self, kind: OperationKind, name: str, logical: _Line, conditional: bool = False) -> None:
        self.operations.append(
            Operation(
                kind=kind,
                name=name,
                file=self.path,
                line_number=logical.number,
                line_text=logical.text,
                conditional=conditional,
            )
        )


def _split_flags(args: list[Token]) -> tuple[set[str], list[str]]:
    """Separate ``-xyz``/``+X`` flag letters from operands."""
    flags: set[str] = set()
    names: list[str] = []
    for token in args:
        literal = token.literal
        if literal == "--":
            continue
        if literal.startswith(("-", "+")) and len(literal) > 1 and not names:
            flags.update(literal[1:])
        else:
            names.append(literal)
    return flags, names


def parse_shell(path: str, text: str) -> ParsedFile:
    """Parse the text of a shell file into operations and source directives."""
    return ShellParser(path, text).parse()


def extract(path: str, text: str) -> list[Operation]:
    """Operations performed by a shell file, in file order."""
    return parse_shell(path, text).operations


class ShellExtractor:
    """Extractor for sh/bash/zsh startup files."""

    @property
    def name(self) -> str:
        return "shell"

    @property
    def kinds(self) -> tuple[FileKind, ...]:
        return (FileKind.SHELL,)

    def parse(self, path: str, data: bytes) -> ParsedFile:
        text = decode_text(data)
        if text is None:
            return undecodable(path)
        return parse_shell(path, text)
