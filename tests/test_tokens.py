"""Tests for the crust tokenizer."""

from crust.tokens import (
    TK_CTRL,
    TK_EOF,
    TK_IDENT,
    TK_NUM,
    TK_OP,
    TK_RETURN,
    TK_STRUCT,
    Span,
    line_col,
    tokenize,
)


def _types(source: str) -> list[str]:
    tokens, errors = tokenize(source)
    assert errors == []
    return [t.type for t in tokens]


def _values(source: str) -> list[str]:
    tokens, errors = tokenize(source)
    assert errors == []
    return [t.value for t in tokens if t.type != TK_EOF]


# ── Basic tokens ──


def test_function_header():
    assert _types("int main() {") == [
        TK_IDENT,
        TK_IDENT,
        TK_CTRL,
        TK_CTRL,
        TK_CTRL,
        TK_EOF,
    ]


def test_keywords_are_folded():
    tokens, _ = tokenize("return struct returns structure")
    assert [t.type for t in tokens] == [
        TK_RETURN,
        TK_STRUCT,
        TK_IDENT,
        TK_IDENT,
        TK_EOF,
    ]


def test_operators_and_control():
    tokens, errors = tokenize("+-*/!= ()[]{};,")
    assert errors == []
    ops = [t.value for t in tokens if t.type == TK_OP]
    ctrl = [t.value for t in tokens if t.type == TK_CTRL]
    assert ops == ["+", "-", "*", "/", "!", "="]
    assert ctrl == ["(", ")", "[", "]", "{", "}", ";", ","]


def test_identifiers_allow_underscore_and_digits():
    assert _values("_a b2 c_3d") == ["_a", "b2", "c_3d"]


def test_spans_are_half_open():
    tokens, _ = tokenize("int  x;")
    assert tokens[0].span == Span(0, 3)
    assert tokens[1].span == Span(5, 6)
    assert tokens[2].span == Span(6, 7)


def test_eof_span_is_past_end():
    tokens, _ = tokenize("x")
    assert tokens[-1].type == TK_EOF
    assert tokens[-1].span == Span(1, 2)


def test_empty_source():
    tokens, errors = tokenize("")
    assert errors == []
    assert [t.type for t in tokens] == [TK_EOF]


# ── Numbers ──


def test_integer_literal():
    tokens, _ = tokenize("12345")
    assert tokens[0].type == TK_NUM
    assert tokens[0].value == "12345"


def test_fractional_literal_kept_verbatim():
    tokens, _ = tokenize("3.25")
    assert tokens[0].type == TK_NUM
    assert tokens[0].value == "3.25"
    assert tokens[0].span == Span(0, 4)


def test_dot_without_digits_is_not_part_of_number():
    tokens, errors = tokenize("1.")
    assert tokens[0].value == "1"
    assert len(errors) == 1
    assert errors[0].span == Span(1, 2)


def test_leading_zero_ends_integer_part():
    assert _values("007") == ["0", "0", "7"]
    assert _values("0.05") == ["0.05"]


# ── Comments and whitespace ──


def test_line_comment_skipped():
    assert _values("a // ignored + 1\nb") == ["a", "b"]


def test_comment_at_end_of_input():
    assert _values("a // trailing") == ["a"]


def test_slash_alone_is_operator():
    assert _values("a / b") == ["a", "/", "b"]


def test_tabs_and_newlines():
    assert _values("a\t\r\n  b") == ["a", "b"]


# ── Recovery ──


def test_invalid_character_recovers():
    tokens, errors = tokenize("a @ b")
    assert [t.value for t in tokens if t.type != TK_EOF] == ["a", "b"]
    assert len(errors) == 1
    assert errors[0].span == Span(2, 3)
    assert "'@'" in errors[0].msg
    assert errors[0].kind == "LexError"


def test_run_of_invalid_characters_is_one_error():
    tokens, errors = tokenize("x = 1 #$%;")
    assert [t.value for t in tokens if t.type != TK_EOF] == ["x", "=", "1", ";"]
    assert len(errors) == 1
    assert errors[0].span == Span(6, 9)


def test_multiple_invalid_runs():
    _, errors = tokenize("@ a # b")
    assert [e.span for e in errors] == [Span(0, 1), Span(4, 5)]


def test_non_ascii_letters_are_invalid():
    tokens, errors = tokenize("é1")
    assert len(errors) == 1
    assert tokens[0].value == "1"


# ── Positions ──


def test_line_col():
    source = "int main() {\n  return 1;\n}"
    assert line_col(source, 0) == (1, 1)
    assert line_col(source, 4) == (1, 5)
    assert line_col(source, 15) == (2, 3)
    assert line_col(source, len(source) + 1) == (3, 2)
