"""Crust parser — recursive descent with panic-mode recovery for delimited blocks."""

from __future__ import annotations

from typing import Callable, TypeVar

from .ast import (
    BINARY_OPS,
    AssignStmt,
    Call,
    Definition,
    ErrExpr,
    Expr,
    FuncDef,
    IntLit,
    Neg,
    Param,
    Program,
    ReturnStmt,
    Stmt,
    StructDef,
    Var,
)
from .tokens import (
    TK_CTRL,
    TK_EOF,
    TK_IDENT,
    TK_NUM,
    TK_OP,
    TK_RETURN,
    TK_STRUCT,
    SourceError,
    Token,
)

T = TypeVar("T")


class ParseError(SourceError):
    """Unexpected token or unbalanced delimited block."""

    kind = "ParseError"


def describe(tok: Token) -> str:
    if tok.type == TK_EOF:
        return "end of input"
    return "'" + tok.value + "'"


class Parser:
    """Recursive descent parser for crust.

    Errors never escape parse_program; they are collected in self.errors.
    Nesting deeper than the interpreter stack allows is reported the same way.
    """

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        self.errors: list[ParseError] = []

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[len(self.tokens) - 1]
        return self.tokens[idx]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        tok = self.current()
        return tok.type in (TK_OP, TK_CTRL) and tok.value == value

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def at_ident(self) -> bool:
        return self.current().type == TK_IDENT

    def expect(self, value: str) -> Token:
        if not self.at(value):
            found = describe(self.current())
            raise self.error("expected '" + value + "', got " + found)
        return self.advance()

    def expect_ident(self) -> Token:
        tok = self.current()
        if tok.type != TK_IDENT:
            raise self.error("expected identifier, got " + describe(tok))
        return self.advance()

    def error(self, msg: str) -> ParseError:
        return ParseError(msg, self.current().span)

    # ── Recovery ─────────────────────────────────────────────

    def parse_delimited(
        self,
        open_: str,
        close: str,
        parse_inner: Callable[[], T],
        fallback: Callable[[], T],
    ) -> T:
        """Parse open_ inner close. On failure inside, skip to the matching close."""
        start = self.pos
        self.expect(open_)
        try:
            inner = parse_inner()
            self.expect(close)
            return inner
        except ParseError as e:
            self.errors.append(e)
        self._skip_to_matching(start, open_, close)
        return fallback()

    def _skip_to_matching(self, start: int, open_: str, close: str) -> None:
        self.pos = start
        open_tok = self.current()
        depth = 0
        while not self.at_type(TK_EOF):
            if self.at(open_):
                depth += 1
            elif self.at(close):
                depth -= 1
                if depth == 0:
                    self.advance()
                    return
            self.advance()
        raise ParseError("unclosed delimiter '" + open_ + "'", open_tok.span)

    def _at_definition_start(self) -> bool:
        if self.at_type(TK_STRUCT):
            return True
        return (
            self.at_ident()
            and self.peek(1).type == TK_IDENT
            and self.peek(2).type == TK_CTRL
            and self.peek(2).value == "("
        )

    def _synchronize(self, start: int) -> None:
        if self.pos == start:
            self.advance()
        while not self.at_type(TK_EOF) and not self._at_definition_start():
            self.advance()

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self) -> Program:
        """Program = Definition+ EOF"""
        definitions: list[Definition] = []
        while not self.at_type(TK_EOF):
            start = self.pos
            try:
                definitions.append(self.parse_definition())
            except ParseError as e:
                self.errors.append(e)
                self._synchronize(start)
            except RecursionError:
                self.errors.append(self.error("input nested too deeply"))
                self._synchronize(start)
        if not definitions and not self.errors:
            self.errors.append(self.error("expected definition, got end of input"))
        return Program(definitions)

    def parse_definition(self) -> Definition:
        if self.at_type(TK_STRUCT):
            return self.parse_struct_def()
        if self.at_ident():
            return self.parse_func_def()
        raise self.error("expected definition, got " + describe(self.current()))

    def parse_struct_def(self) -> StructDef:
        """StructDef = 'struct' IDENT '{' ( Param ';' )* '}' ';'"""
        self.advance()
        name_tok = self.expect_ident()
        fields = self.parse_delimited("{", "}", self.parse_struct_fields, list)
        self.expect(";")
        return StructDef(name_tok.value, fields)

    def parse_struct_fields(self) -> list[Param]:
        fields: list[Param] = []
        while not self.at("}"):
            fields.append(self.parse_param())
            self.expect(";")
        return fields

    def parse_func_def(self) -> FuncDef:
        """FuncDef = IDENT IDENT '(' ParamList ')' '{' Stmt* '}'"""
        ret_tok = self.expect_ident()
        name_tok = self.expect_ident()
        params = self.parse_delimited("(", ")", self.parse_param_list, list)
        body = self.parse_delimited("{", "}", self.parse_body, list)
        return FuncDef(name_tok.value, params, ret_tok.value, body)

    def parse_param_list(self) -> list[Param]:
        params: list[Param] = []
        if self.at(")"):
            return params
        params.append(self.parse_param())
        while self.at(","):
            self.advance()
            params.append(self.parse_param())
        return params

    def parse_param(self) -> Param:
        typ_tok = self.expect_ident()
        name_tok = self.expect_ident()
        return Param(name_tok.value, typ_tok.value)

    # ── Statements ───────────────────────────────────────────

    def parse_body(self) -> list[Stmt]:
        stmts: list[Stmt] = []
        while not self.at("}"):
            stmts.append(self.parse_stmt())
        return stmts

    def parse_stmt(self) -> Stmt:
        if self.at_type(TK_RETURN):
            self.advance()
            value = self.parse_expr()
            self.expect(";")
            return ReturnStmt(value)
        if self.at_ident():
            typ_tok = self.advance()
            name_tok = self.expect_ident()
            self.expect("=")
            value = self.parse_expr()
            self.expect(";")
            return AssignStmt(typ_tok.value, name_tok.value, value)
        raise self.error("expected statement, got " + describe(self.current()))

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_sum()

    def parse_sum(self) -> Expr:
        """Sum = Product ( ( '+' | '-' ) Product )*"""
        left = self.parse_product()
        while self.at("+") or self.at("-"):
            op = self.advance().value
            right = self.parse_product()
            left = BINARY_OPS[op](left, right)
        return left

    def parse_product(self) -> Expr:
        """Product = Unary ( ( '*' | '/' ) Unary )*"""
        left = self.parse_unary()
        while self.at("*") or self.at("/"):
            op = self.advance().value
            right = self.parse_unary()
            left = BINARY_OPS[op](left, right)
        return left

    def parse_unary(self) -> Expr:
        """Unary = '-'* Atom"""
        count = 0
        while self.at("-"):
            self.advance()
            count += 1
        expr = self.parse_atom()
        for _ in range(count):
            expr = Neg(expr)
        return expr

    def parse_atom(self) -> Expr:
        tok = self.current()
        if tok.type == TK_NUM:
            self.advance()
            return IntLit(tok.value)
        if self.at("("):
            return self.parse_delimited("(", ")", self.parse_expr, ErrExpr)
        if tok.type == TK_IDENT:
            self.advance()
            if self.at("("):
                args = self.parse_delimited("(", ")", self.parse_arg_list, list)
                return Call(tok.value, args)
            return Var(tok.value)
        raise self.error("expected expression, got " + describe(tok))

    def parse_arg_list(self) -> list[Expr]:
        """ArgList = ( Expr ( ',' Expr )* )?"""
        args: list[Expr] = []
        if self.at(")"):
            return args
        args.append(self.parse_expr())
        while self.at(","):
            self.advance()
            args.append(self.parse_expr())
        return args
