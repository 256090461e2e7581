"""Crust tokenizer — lexes source into a flat token list with error recovery."""

from __future__ import annotations

from dataclasses import dataclass


# Token type constants
TK_RETURN = "return"
TK_STRUCT = "struct"
TK_OP = "OP"
TK_IDENT = "IDENT"
TK_CTRL = "CTRL"
TK_NUM = "NUM"
TK_EOF = "EOF"

KEYWORDS: dict[str, str] = {
    "return": TK_RETURN,
    "struct": TK_STRUCT,
}

OP_CHARS: set[str] = {"+", "-", "*", "/", "!", "="}

CTRL_CHARS: set[str] = {"(", ")", "[", "]", "{", "}", ";", ","}


@dataclass(frozen=True)
class Span:
    """Half-open range of character offsets into the source."""

    start: int
    end: int


class SourceError(Exception):
    """Error attributed to a span of source text. Collected, not raised."""

    kind: str = "SourceError"

    def __init__(self, msg: str, span: Span):
        self.msg: str = msg
        self.span: Span = span
        super().__init__(msg + " at offset " + str(span.start))


class LexError(SourceError):
    """Unrecognized input characters."""

    kind = "LexError"


@dataclass(frozen=True)
class Token:
    """A token with type, value, and source span."""

    type: str
    value: str
    span: Span

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.value)
            + ", "
            + str(self.span.start)
            + ".."
            + str(self.span.end)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def _can_start_token(c: str) -> bool:
    return (
        c.isspace() or _is_alpha(c) or _is_digit(c) or c in OP_CHARS or c in CTRL_CHARS
    )


def line_col(source: str, offset: int) -> tuple[int, int]:
    """Convert a character offset into a 1-indexed (line, col) pair."""
    if offset > len(source):
        offset = len(source)
    line = source.count("\n", 0, offset) + 1
    last_nl = source.rfind("\n", 0, offset)
    return line, offset - last_nl


def tokenize(source: str) -> tuple[list[Token], list[LexError]]:
    """Tokenize crust source into a flat list ending with TK_EOF.

    Never raises: runs of unrecognized characters are reported as one
    LexError each and skipped.
    """
    tokens: list[Token] = []
    errors: list[LexError] = []
    pos = 0
    length = len(source)

    while pos < length:
        c = source[pos]

        # Whitespace
        if c.isspace():
            pos += 1
            continue

        # Line comment: //
        if c == "/" and pos + 1 < length and source[pos + 1] == "/":
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        start = pos

        # Number: int part is '0' or [1-9][0-9]*, optional '.' digits+
        if _is_digit(c):
            pos += 1
            if c != "0":
                while pos < length and _is_digit(source[pos]):
                    pos += 1
            if pos + 1 < length and source[pos] == "." and _is_digit(source[pos + 1]):
                pos += 1
                while pos < length and _is_digit(source[pos]):
                    pos += 1
            tokens.append(Token(TK_NUM, source[start:pos], Span(start, pos)))
            continue

        # Identifier or keyword
        if _is_alpha(c):
            while pos < length and _is_alnum(source[pos]):
                pos += 1
            word = source[start:pos]
            tokens.append(Token(KEYWORDS.get(word, TK_IDENT), word, Span(start, pos)))
            continue

        if c in OP_CHARS:
            tokens.append(Token(TK_OP, c, Span(start, start + 1)))
            pos += 1
            continue

        if c in CTRL_CHARS:
            tokens.append(Token(TK_CTRL, c, Span(start, start + 1)))
            pos += 1
            continue

        # Skip ahead to the next character that can begin a token
        pos += 1
        while pos < length and not _can_start_token(source[pos]):
            pos += 1
        bad = source[start:pos]
        if len(bad) == 1:
            msg = "unexpected character " + repr(bad)
        else:
            msg = "unexpected characters " + repr(bad)
        errors.append(LexError(msg, Span(start, pos)))

    tokens.append(Token(TK_EOF, "", Span(length, length + 1)))
    return tokens, errors
