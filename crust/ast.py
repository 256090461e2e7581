"""Crust AST — parse-time node definitions."""

from __future__ import annotations

from dataclasses import dataclass, field


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    """Base for all expressions."""


@dataclass
class ErrExpr(Expr):
    """Placeholder for an expression that failed to parse."""


@dataclass
class IntLit(Expr):
    """Integer literal, kept as source text until evaluation."""

    text: str


@dataclass
class Neg(Expr):
    """-operand."""

    operand: Expr


@dataclass
class BinaryExpr(Expr):
    """Base for the four arithmetic operators."""

    left: Expr
    right: Expr

    op = ""


@dataclass
class Mul(BinaryExpr):
    op = "*"


@dataclass
class Div(BinaryExpr):
    op = "/"


@dataclass
class Add(BinaryExpr):
    op = "+"


@dataclass
class Sub(BinaryExpr):
    op = "-"


@dataclass
class Var(Expr):
    """Variable reference."""

    name: str


@dataclass
class Call(Expr):
    """name(args)."""

    name: str
    args: list[Expr]


BINARY_OPS: dict[str, type[BinaryExpr]] = {
    cls.op: cls for cls in (Mul, Div, Add, Sub)
}


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class Stmt:
    """Base for all statements."""


@dataclass
class InvalidStmt(Stmt):
    """Placeholder for a statement that failed to parse."""


@dataclass
class ReturnStmt(Stmt):
    """return value;"""

    value: Expr


@dataclass
class AssignStmt(Stmt):
    """typ name = value; the type name is carried but never checked."""

    typ: str
    name: str
    value: Expr


# ============================================================
# DECLARATIONS
# ============================================================


@dataclass
class Param:
    """Parameter or struct field: Type name."""

    name: str
    typ: str


@dataclass
class Definition:
    """Base for top-level definitions."""

    name: str


@dataclass
class StructDef(Definition):
    """struct Name { Type field; ... };"""

    params: list[Param]


@dataclass
class FuncDef(Definition):
    """RetType Name(params) { body }."""

    params: list[Param]
    ret: str
    body: list[Stmt]


@dataclass
class Program:
    """Top-level program — definitions in source order."""

    definitions: list[Definition] = field(default_factory=list)
    strict_arity: bool = False

    def functions(self) -> list[FuncDef]:
        return [d for d in self.definitions if isinstance(d, FuncDef)]
