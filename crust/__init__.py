"""Crust front end and interpreter — public API."""

from __future__ import annotations

from .ast import Program
from .parse import ParseError as ParseError, Parser
from .runtime import (
    CrustError as CrustError,
    CrustRuntimeFault as CrustRuntimeFault,
    LoadError as LoadError,
    RunResult as RunResult,
    run as run,
)
from .serialize import (
    DecodeError as DecodeError,
    from_json as from_json,
    to_json as to_json,
)
from .tokens import LexError as LexError, SourceError, tokenize


def _extract_pragmas(source: str) -> bool:
    """Scan leading comment lines for pragmas. Returns strict_arity."""
    strict_arity = False
    for line in source.split("\n"):
        stripped = line.strip()
        if stripped == "":
            continue
        if not stripped.startswith("//"):
            break
        body = stripped[2:].strip()
        if body == "pragma strict-arity":
            strict_arity = True
    return strict_arity


def parse(source: str) -> tuple[Program, list[SourceError]]:
    """Lex and parse crust source. Returns the program and every lex/parse error."""
    tokens, lex_errors = tokenize(source)
    parser = Parser(tokens)
    program = parser.parse_program()
    program.strict_arity = _extract_pragmas(source)
    errors: list[SourceError] = []
    errors.extend(lex_errors)
    errors.extend(parser.errors)
    return program, errors
