"""Lenient statement parser and the bracket tokenizer shared with the validator."""

from __future__ import annotations

import re
from collections.abc import Iterable

from oyster.models import BoolValue, IntValue, Param, Statement, StringValue, Value, VarRef

DEFAULT_COMMENT_PREFIXES: tuple[str, ...] = ("#", "//")

COMMAND_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*\[(.*)\]$")
VAR_REF_RE = re.compile(r"^\$([A-Za-z_][A-Za-z0-9_]*)$")
INT_RE = re.compile(r"^-?\d+$")
BOOL_RE = re.compile(r"^(true|false)$", re.IGNORECASE)
PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")

_LINE_SPLIT = re.compile(r"\r?\n")
_ESCAPE = re.compile(r'\\(["\\])')


def split_lines(source: str) -> list[str]:
    return _LINE_SPLIT.split(source)


def is_skippable(line: str, comment_prefixes: Iterable[str] = DEFAULT_COMMENT_PREFIXES) -> bool:
    """True for blank lines and comments; ``line`` must already be trimmed."""
    return not line or line.startswith(tuple(comment_prefixes))


def match_command(line: str) -> tuple[str, str] | None:
    """Return ``(command, bracket_content)`` for a trimmed line, or ``None``."""
    match = COMMAND_RE.match(line)
    if not match:
        return None
    return match.group(1), match.group(2)


def split_params(content: str) -> list[str]:
    """Split bracket content on commas that sit outside double-quoted strings.

    A backslash keeps the next character verbatim without toggling the quote
    state, and an unterminated quote runs to the end of the content.
    """
    tokens: list[str] = []
    current: list[str] = []
    in_quotes = False
    escaped = False
    for char in content:
        if escaped:
            current.append(char)
            escaped = False
            continue
        if char == "\\":
            current.append(char)
            escaped = True
            continue
        if char == '"':
            in_quotes = not in_quotes
            current.append(char)
            continue
        if char == "," and not in_quotes:
            tokens.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    tail = "".join(current).strip()
    if tail:
        tokens.append(tail)
    return tokens


def find_top_level(token: str, target: str) -> int:
    """Index of the first ``target`` outside a quoted string, or -1."""
    in_quotes = False
    escaped = False
    for index, char in enumerate(token):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            in_quotes = not in_quotes
        elif char == target and not in_quotes:
            return index
    return -1


def split_named(token: str) -> tuple[str, str] | None:
    index = find_top_level(token, "=")
    if index == -1:
        return None
    return token[:index].strip(), token[index + 1 :].strip()


def strip_quotes(token: str) -> str:
    if len(token) >= 2 and token[0] == '"' and token[-1] == '"':
        return unescape(token[1:-1])
    return token


def unescape(text: str) -> str:
    return _ESCAPE.sub(r"\1", text)


def parse_param(token: str) -> Param:
    named = split_named(token)
    if named is None:
        return Param(value=strip_quotes(token), raw_value=token)
    name, raw_value = named
    return Param(value=strip_quotes(raw_value), raw_value=raw_value, name=name)


def classify_value(raw: str) -> Value:
    """Turn a raw parameter token into its typed literal or variable reference."""
    text = raw.strip()
    ref = VAR_REF_RE.match(text)
    if ref:
        return VarRef(ref.group(1))
    if len(text) >= 3 and text.startswith('$"') and text.endswith('"'):
        return StringValue(unescape(text[2:-1]), interpolated=True)
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return StringValue(unescape(text[1:-1]))
    if INT_RE.match(text):
        return IntValue(int(text))
    if BOOL_RE.match(text):
        return BoolValue(text.lower() == "true")
    return StringValue(text)


def parse_line(
    raw: str,
    line: int = 0,
    comment_prefixes: Iterable[str] = DEFAULT_COMMENT_PREFIXES,
) -> Statement | None:
    text = raw.strip()
    if is_skippable(text, comment_prefixes):
        return None
    matched = match_command(text)
    if matched is None:
        return None
    command, content = matched
    params = tuple(parse_param(token) for token in split_params(content))
    return Statement(command=command, params=params, line=line, raw=raw)


def parse(
    source: str,
    *,
    comment_prefixes: Iterable[str] = DEFAULT_COMMENT_PREFIXES,
) -> tuple[Statement, ...]:
    """Parse script text into statements, silently skipping lines that do not match."""
    prefixes = tuple(comment_prefixes)
    statements: list[Statement] = []
    for index, raw in enumerate(split_lines(source)):
        statement = parse_line(raw, index, prefixes)
        if statement is not None:
            statements.append(statement)
    return tuple(statements)
