"""Quote-aware scanning of shell words and statements.

Only enough of the shell grammar is understood to find word and statement
boundaries and to unwrap quoting. Expansions (``$VAR``, ``${...}``,
``$(...)``, backticks) are kept verbatim in the returned literals.
"""

from __future__ import annotations

from typing import Iterator, NamedTuple


class UnterminatedQuote(ValueError):
    """A quote, expansion or substitution is not closed on the scanned text."""


class Token(NamedTuple):
    start: int
    end: int
    literal: str


# Unquoted characters that end a word
WORD_BREAKS = frozenset(" \t\n;&|<>()")

# Escapes honoured inside double quotes
_DQ_ESCAPES = frozenset('$`"\\\n')


def _skip_single_quoted(text: str, i: int) -> int:
    """Return the index after the closing quote of a '...' string opened at i-1."""
    end = text.find("'", i)
    if end < 0:
        raise UnterminatedQuote("unterminated single quote")
    return end + 1


def read_double_quoted(text: str, i: int) -> tuple[str, int]:
    """Read the body of a "..." string whose opening quote is at ``i - 1``.

    Returns:
        (literal, index after the closing quote)
    """
    out: list[str] = []
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            return "".join(out), i + 1
        if ch == "\\" and i + 1 < n:
            nxt = text[i + 1]
            if nxt in _DQ_ESCAPES:
                out.append(nxt)
            else:
                out.append(ch + nxt)
            i += 2
            continue
        if ch == "`" or text.startswith("$(", i) or text.startswith("${", i):
            end = skip_expansion(text, i)
            out.append(text[i:end])
            i = end
            continue
        out.append(ch)
        i += 1
    raise UnterminatedQuote("unterminated double quote")


def skip_expansion(text: str, i: int) -> int:
    """Return the index just past the expansion starting at ``i``.

    Handles backticks, ``$( ... )`` and ``${ ... }`` with nesting and
    quoted content.
    """
    n = len(text)
    if text[i] == "`":
        j = i + 1
        while j < n:
            if text[j] == "\\":
                j += 2
                continue
            if text[j] == "`":
                return j + 1
            j += 1
        raise UnterminatedQuote("unterminated backtick")

    opener, closer = ("(", ")") if text.startswith("$(", i) else ("{", "}")
    depth = 1
    j = i + 2
    while j < n:
        ch = text[j]
        if ch == "\\":
            j += 2
            continue
        if ch == "'":
            j = _skip_single_quoted(text, j + 1)
            continue
        if ch == '"':
            _, j = read_double_quoted(text, j + 1)
            continue
        if ch == "`" or text.startswith("$(", j) or text.startswith("${", j):
            j = skip_expansion(text, j)
            continue
        if ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return j + 1
        j += 1
    raise UnterminatedQuote(f"unterminated {'$(' if opener == '(' else '${'}")


def read_word(text: str, pos: int = 0) -> tuple[str, int]:
    """Read one shell word starting at ``pos``.

    Quotes are removed and backslash escapes resolved; expansions stay
    literal. Stops at unquoted whitespace or an operator character.

    Returns:
        (literal, index where the word ended)

    Raises:
        UnterminatedQuote: If the word contains an unclosed quote
    """
    out: list[str] = []
    i = pos
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in WORD_BREAKS:
            break
        if ch == "\\":
            if i + 1 < n and text[i + 1] != "\n":
                out.append(text[i + 1])
            i += 2
            continue
        if ch == "'":
            end = _skip_single_quoted(text, i + 1)
            out.append(text[i + 1:end - 1])
            i = end
            continue
        if ch == '"':
            literal, i = read_double_quoted(text, i + 1)
            out.append(literal)
            continue
        if ch == "`" or text.startswith("$(", i) or text.startswith("${", i):
            end = skip_expansion(text, i)
            out.append(text[i:end])
            i = end
            continue
        out.append(ch)
        i += 1
    return "".join(out), i


def tokenize(text: str) -> Iterator[Token]:
    """Yield the words of a single statement.

    Operator characters that are not part of a word are yielded as
    one-character tokens so callers can recognise e.g. array syntax.
    """
    i = 0
    n = len(text)
    while i < n:
        if text[i] in " \t\n":
            i += 1
            continue
        literal, end = read_word(text, i)
        if end == i:
            yield Token(i, i + 1, text[i])
            i += 1
            continue
        yield Token(i, end, literal)
        i = end


def split_statements(line: str) -> list[tuple[str, str | None]]:
    """Split a logical line into statements on ``;``, ``&&``, ``||``, ``|`` and ``&``.

    A trailing ``# comment`` is dropped.

    Returns:
        List of (statement text, separator that preceded it or None)

    Raises:
        UnterminatedQuote: If the line contains an unclosed quote
    """
    statements: list[tuple[str, str | None]] = []
    current_start = 0
    separator: str | None = None
    i = 0
    n = len(line)

    def flush(end: int) -> None:
        stmt = line[current_start:end].strip()
        if stmt:
            statements.append((stmt, separator))

    while i < n:
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "'":
            i = _skip_single_quoted(line, i + 1)
            continue
        if ch == '"':
            _, i = read_double_quoted(line, i + 1)
            continue
        if ch == "`" or line.startswith("$(", i) or line.startswith("${", i):
            i = skip_expansion(line, i)
            continue
        if ch == "#" and (i == 0 or line[i - 1] in " \t\n;&|("):
            flush(i)
            return statements
        if ch in ";&|":
            op = line[i:i + 2] if line[i:i + 2] in ("&&", "||", ";;") else ch
            if ch == "&" and line[i:i + 2] in ("&>",):
                i += 2
                continue
            if i > 0 and line[i - 1] in "<>":
                i += 1
                continue
            flush(i)
            separator = op
            i += len(op)
            current_start = i
            continue
        i += 1

    flush(n)
    return statements


def heredoc_delimiters(line: str) -> list[str]:
    """Delimiters of the here-documents a logical line opens, in order.

    Only unquoted ``<<`` and ``<<-`` operators count; ``<<<`` here-strings
    and text inside quotes, expansions or comments are ignored.

    Raises:
        UnterminatedQuote: If the line contains an unclosed quote
    """
    delimiters: list[str] = []
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "'":
            i = _skip_single_quoted(line, i + 1)
            continue
        if ch == '"':
            _, i = read_double_quoted(line, i + 1)
            continue
        if ch == "`" or line.startswith("$(", i) or line.startswith("${", i):
            i = skip_expansion(line, i)
            continue
        if ch == "#" and (i == 0 or line[i - 1] in " \t\n;&|("):
            break
        if line.startswith("<<<", i):
            i += 3
            continue
        if line.startswith("<<", i):
            i += 2
            if line.startswith("-", i):
                i += 1
            while i < n and line[i] in " \t":
                i += 1
            word, end = read_word(line, i)
            if word:
                delimiters.append(word)
            i = end
            continue
        i += 1
    return delimiters


def match_brace(text: str, open_index: int) -> int | None:
    """Index of the ``}`` closing the ``{`` at ``open_index``, or None.

    Quoted strings and comments are skipped; unterminated quotes yield None.
    """
    depth = 0
    i = open_index
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        try:
            if ch == "'":
                i = _skip_single_quoted(text, i + 1)
                continue
            if ch == '"':
                _, i = read_double_quoted(text, i + 1)
                continue
        except UnterminatedQuote:
            return None
        if ch == "#" and i > 0 and text[i - 1] in " \t\n;":
            newline = text.find("\n", i)
            if newline < 0:
                return None
            i = newline
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def unquote(value: str) -> str:
    """Remove one level of matching surrounding quotes from a config value."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value
