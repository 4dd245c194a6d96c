"""Command line splitting and generic quoting helpers.

This module holds the pieces every other module leans on: the error
taxonomy, the quote-aware tokenizer that turns a free-form command line into
an argv, and the small string helpers used when quoting arguments back into
a shell line.
"""
from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional


class CommandLineError(Exception):
    """Base class for command line parsing and rendering errors."""


class MalformedCommandLine(CommandLineError):
    """A command line could not be split (unbalanced quotes)."""

    def __init__(self, line: str) -> None:
        super().__init__(f"unbalanced quotes in {line}")
        self.line = line


class InvalidCommand(CommandLineError):
    """A command was rendered without an executable or a shell."""


class UnsupportedQuoting(CommandLineError):
    """An argument holds a character the quoting strategy cannot represent."""


# Characters separating arguments outside quotes
WHITESPACE = (" ", "\t")


class QuoteState(Enum):
    NORMAL = "normal"
    IN_SINGLE_QUOTE = "single"
    IN_DOUBLE_QUOTE = "double"


def _after_backslash(buf: List[str]) -> bool:
    return bool(buf) and buf[-1] == "\\"


def translate_commandline(line: Optional[str]) -> List[str]:
    """Split a command line into arguments.

    Rules:
    - Space and tab separate arguments outside quotes.
    - '...' and "..." group text; the quote characters are dropped and each
      kind is literal inside the other.
    - Backslash is kept as an ordinary character. Inside a quoted region a
      quote right after a backslash does not close the region; both
      characters stay in the token.
    - A quoted empty string ("" or '') produces an empty argument.
    - Unterminated quotes raise MalformedCommandLine.
    """
    if not line:
        return []

    tokens: List[str] = []
    buf: List[str] = []
    state = QuoteState.NORMAL
    # A closed quote keeps the token alive even if it is empty
    last_quoted = False

    def flush_buf() -> None:
        nonlocal last_quoted
        if buf or last_quoted:
            tokens.append("".join(buf))
            buf.clear()
        last_quoted = False

    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if state is QuoteState.IN_SINGLE_QUOTE:
            if ch == "'" and not _after_backslash(buf):
                state = QuoteState.NORMAL
                last_quoted = True
            else:
                buf.append(ch)
        elif state is QuoteState.IN_DOUBLE_QUOTE:
            if ch == '"' and not _after_backslash(buf):
                state = QuoteState.NORMAL
                last_quoted = True
            else:
                buf.append(ch)
        elif ch == "'":
            state = QuoteState.IN_SINGLE_QUOTE
        elif ch == '"':
            state = QuoteState.IN_DOUBLE_QUOTE
        elif ch in WHITESPACE:
            flush_buf()
        else:
            buf.append(ch)
        i += 1

    if state is not QuoteState.NORMAL:
        raise MalformedCommandLine(line)

    flush_buf()
    return tokens


# --- String helpers ---

def repeat(s: str, n: int) -> str:
    return s * max(n, 0)


def join(items: Iterable[object], sep: str = " ") -> str:
    return sep.join(str(item) for item in items)


def escape(source: str, escaped_chars: Iterable[str], escape_char: str) -> str:
    """Prefix every character of `escaped_chars` found in `source` with `escape_char`."""
    wanted = set(escaped_chars)
    out: List[str] = []
    for ch in source:
        if ch in wanted:
            out.append(escape_char)
        out.append(ch)
    return "".join(out)


def is_quoted(source: str, quote_char: str) -> bool:
    # A lone quote character is not a quoted string
    return len(source) >= 2 and source[0] == quote_char and source[-1] == quote_char


def quote_and_escape(
    source: str,
    quote_char: str,
    escaped_chars: Iterable[str],
    quoting_triggers: Iterable[str],
    escape_char: str = "\\",
    force: bool = False,
) -> str:
    """Escape `source` and wrap it in `quote_char` when needed.

    An already quoted value is returned as is unless `force` is set. The
    value is wrapped when forced, when escaping changed it, or when it holds
    one of `quoting_triggers`.
    """
    if not force and is_quoted(source, quote_char):
        return source

    escaped = escape(source, escaped_chars, escape_char)
    if force or escaped != source or any(t in escaped for t in quoting_triggers):
        return quote_char + escaped + quote_char
    return escaped


def quote(argument: str, wrap_existing_quotes: bool = False) -> str:
    """Quote an argument for display so translate_commandline reads it back whole."""
    if not wrap_existing_quotes and (is_quoted(argument, '"') or is_quoted(argument, "'")):
        return argument
    needs_quotes = any(q in argument for q in "'\"") or any(ws in argument for ws in WHITESPACE) or argument == ""
    # A trailing backslash would keep the closing quote from ending the region
    if needs_quotes and argument.endswith("\\"):
        raise UnsupportedQuoting(f"can't quote an argument ending in a backslash: {argument}")
    if '"' in argument:
        if "'" in argument:
            raise UnsupportedQuoting(f"can't handle single and double quotes in same argument: {argument}")
        return "'" + argument + "'"
    if "'" in argument or any(ws in argument for ws in WHITESPACE) or argument == "":
        return '"' + argument + '"'
    return argument


def to_string(args: Iterable[str]) -> str:
    return join((quote(a) for a in args), " ")
