"""Crust CLI — build, dump, and run crust programs."""

from __future__ import annotations

import json
import sys

from . import parse
from .runtime import LoadError, run
from .serialize import DecodeError, from_json, to_json, tokens_to_list
from .tokens import LexError, SourceError, line_col, tokenize


PHASES: list[str] = ["tokens", "parse"]

USAGE: str = """\
crust [OPTIONS] FILE

Run a crust program, or a JSON tree produced by --stop-at parse.

Options:
  --stop-at PHASE     Stop after phase and print it as JSON: tokens, parse
  --from-ast          FILE is a JSON tree instead of crust source
  --strict-arity      Fail on argument/parameter count mismatches
  -o, --output FILE   Write --stop-at output to FILE instead of stdout
  -h, --help          Show this help message
"""


def write_output(output: str, output_file: str | None) -> int:
    """Write output to file or stdout. Returns 0 on success, 1 on error."""
    if output_file is not None:
        try:
            with open(output_file, "w") as f:
                f.write(output + "\n")
        except OSError:
            print("crust: cannot write '" + output_file + "'", file=sys.stderr)
            return 1
        return 0
    print(output)
    return 0


def _print_source_errors(
    errors: list[SourceError], source: str, filepath: str
) -> None:
    for e in errors:
        line, col = line_col(source, e.span.start)
        label = "lex error" if isinstance(e, LexError) else "parse error"
        print(
            "crust: " + filepath + ":" + str(line) + ":" + str(col) + ": "
            + label + ": " + e.msg,
            file=sys.stderr,
        )


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    output_file: str | None = None
    stop_at: str | None = None
    from_ast = False
    strict_arity = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "--stop-at":
            if i + 1 >= len(args):
                print("crust: --stop-at requires a phase", file=sys.stderr)
                return 2
            stop_at = args[i + 1]
            if stop_at not in PHASES:
                print("crust: unknown phase '" + stop_at + "'", file=sys.stderr)
                return 2
            i += 2
        elif arg == "-o" or arg == "--output":
            if i + 1 >= len(args):
                print("crust: " + arg + " requires a file", file=sys.stderr)
                return 2
            output_file = args[i + 1]
            i += 2
        elif arg == "--from-ast":
            from_ast = True
            i += 1
        elif arg == "--strict-arity":
            strict_arity = True
            i += 1
        elif arg.startswith("-"):
            print("crust: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print("crust: unexpected argument '" + arg + "'", file=sys.stderr)
            return 2
    if filepath == "":
        print("crust: missing file argument", file=sys.stderr)
        return 2
    if from_ast and stop_at is not None:
        print("crust: --stop-at cannot be used with --from-ast", file=sys.stderr)
        return 2

    try:
        with open(filepath, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("crust: " + filepath + ": No such file or directory", file=sys.stderr)
        return 1
    except OSError as e:
        print("crust: " + filepath + ": " + str(e), file=sys.stderr)
        return 1
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("crust: " + filepath + ": invalid utf-8", file=sys.stderr)
        return 1

    if from_ast:
        try:
            program = from_json(source)
        except DecodeError as e:
            print("crust: " + filepath + ": invalid tree: " + e.msg, file=sys.stderr)
            return 1
    elif stop_at == "tokens":
        tokens, lex_errors = tokenize(source)
        if lex_errors:
            _print_source_errors(list(lex_errors), source, filepath)
            return 1
        return write_output(json.dumps(tokens_to_list(tokens), indent=2), output_file)
    else:
        program, errors = parse(source)
        if errors:
            _print_source_errors(errors, source, filepath)
            return 1
        if stop_at == "parse":
            return write_output(to_json(program), output_file)

    if strict_arity:
        program.strict_arity = True

    result = run(program)
    if result.error is not None:
        label = "load error" if isinstance(result.error, LoadError) else "runtime error"
        print("crust: " + label + ": " + result.error.msg, file=sys.stderr)
        return 1
    return result.value or 0


if __name__ == "__main__":
    sys.exit(main())
