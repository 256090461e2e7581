"""Crust runtime — load and evaluate a crust program by walking its AST.

All values are signed 32-bit integers. Faults inside the evaluator are raised
as CrustError subclasses; run() turns them into a RunResult so callers never
see an exception for a misbehaving program.
"""

from __future__ import annotations

from dataclasses import dataclass

from .ast import (
    Add,
    AssignStmt,
    Call,
    Div,
    ErrExpr,
    Expr,
    FuncDef,
    IntLit,
    InvalidStmt,
    Mul,
    Neg,
    Program,
    ReturnStmt,
    Stmt,
    Sub,
    Var,
)

U32_MAX = 0xFFFFFFFF
I32_MIN = -(2**31)


# ============================================================
# Diagnostics
# ============================================================


class CrustError(Exception):
    """Base error for loading/evaluating a crust program."""

    def __init__(self, kind: str, msg: str):
        super().__init__(msg)
        self.kind = kind
        self.msg = msg


class LoadError(CrustError):
    """Fatal problem with the function table, found before execution."""


class CrustRuntimeFault(CrustError):
    """Fatal fault during evaluation."""


# ============================================================
# Results
# ============================================================


@dataclass
class RunResult:
    """Outcome of running a program: a value or the error that stopped it."""

    value: int | None = None
    error: CrustError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run(program: Program, *, strict_arity: bool | None = None) -> RunResult:
    """Load and run a parsed program, calling main() with no arguments."""
    if strict_arity is None:
        strict_arity = program.strict_arity
    try:
        rt = Runtime(program, strict_arity=strict_arity)
        return RunResult(value=rt.run_main())
    except CrustError as e:
        return RunResult(error=e)


# ============================================================
# Arithmetic
# ============================================================


def wrap_i32(n: int) -> int:
    return ((n - I32_MIN) & U32_MAX) + I32_MIN


def _int_div_trunc(a: int, b: int) -> int:
    if b == 0:
        raise ZeroDivisionError
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    return q


def _is_digits(text: str) -> bool:
    if text == "":
        return False
    for c in text:
        if c < "0" or c > "9":
            return False
    return True


# ============================================================
# Loading
# ============================================================


def build_function_table(program: Program) -> dict[str, FuncDef]:
    """Map function names to definitions; struct definitions are skipped."""
    funcs: dict[str, FuncDef] = {}
    for fn in program.functions():
        if fn.name in funcs:
            raise LoadError(
                "DuplicateFunction", f"function '{fn.name}' is defined more than once"
            )
        funcs[fn.name] = fn
    return funcs


# ============================================================
# Evaluation
# ============================================================


class _Scope:
    """Bindings local to one call, newest last. Lookups scan from the end."""

    def __init__(self) -> None:
        self._bindings: list[tuple[str, int]] = []

    def bind(self, name: str, value: int) -> None:
        self._bindings.append((name, value))

    def get(self, name: str) -> int:
        for bound, value in reversed(self._bindings):
            if bound == name:
                return value
        raise CrustRuntimeFault(
            "UndeclaredVariable", f"use of undeclared variable '{name}'"
        )


class Runtime:
    def __init__(self, program: Program, *, strict_arity: bool = False):
        self.program = program
        self.strict_arity = strict_arity
        self.funcs: dict[str, FuncDef] = build_function_table(program)

    def run_main(self) -> int:
        main = self.funcs.get("main")
        if main is None:
            raise LoadError("MissingMain", "no 'main' function defined")
        if main.params:
            raise LoadError("InvalidMain", "'main' must not take parameters")
        try:
            return self.call(main, [])
        except RecursionError:
            raise CrustRuntimeFault(
                "StackOverflow", "call stack exhausted (unbounded recursion?)"
            ) from None

    # ---- Functions ---------------------------------------------------------

    def call(self, fn: FuncDef, args: list[int]) -> int:
        if self.strict_arity and len(args) != len(fn.params):
            raise CrustRuntimeFault(
                "ArityMismatch",
                f"function '{fn.name}' takes {len(fn.params)} argument(s)"
                f" but {len(args)} were given",
            )
        scope = _Scope()
        # zip drops extra args and leaves trailing params unbound
        for param, value in zip(fn.params, args):
            scope.bind(param.name, value)
        for st in fn.body:
            result = self.exec_stmt(st, scope)
            if result is not None:
                return result
        raise CrustRuntimeFault(
            "FellOffEnd", f"function '{fn.name}' ended without a return"
        )

    # ---- Statements --------------------------------------------------------

    def exec_stmt(self, st: Stmt, scope: _Scope) -> int | None:
        """Run one statement. Returns the function result for a return."""
        if isinstance(st, ReturnStmt):
            return self.eval_expr(st.value, scope)
        if isinstance(st, AssignStmt):
            scope.bind(st.name, self.eval_expr(st.value, scope))
            return None
        if isinstance(st, InvalidStmt):
            raise CrustRuntimeFault("InvalidNode", "reached an invalid statement")
        raise CrustRuntimeFault("InvalidNode", f"unknown statement {st!r}")

    # ---- Expressions -------------------------------------------------------

    def eval_expr(self, expr: Expr, scope: _Scope) -> int:
        if isinstance(expr, IntLit):
            digits = expr.text.lstrip("0") or "0"
            # over 10 digits exceeds U32_MAX; reject before int() parses it
            if (
                not _is_digits(expr.text)
                or len(digits) > 10
                or int(digits) > U32_MAX
            ):
                raise CrustRuntimeFault(
                    "InvalidLiteral", f"invalid integer literal '{expr.text}'"
                )
            return wrap_i32(int(digits))
        if isinstance(expr, Var):
            return scope.get(expr.name)
        if isinstance(expr, Neg):
            return wrap_i32(-self.eval_expr(expr.operand, scope))
        if isinstance(expr, (Add, Sub, Mul, Div)):
            left = self.eval_expr(expr.left, scope)
            right = self.eval_expr(expr.right, scope)
            if isinstance(expr, Add):
                return wrap_i32(left + right)
            if isinstance(expr, Sub):
                return wrap_i32(left - right)
            if isinstance(expr, Mul):
                return wrap_i32(left * right)
            try:
                return wrap_i32(_int_div_trunc(left, right))
            except ZeroDivisionError:
                raise CrustRuntimeFault("DivisionByZero", "division by zero") from None
        if isinstance(expr, Call):
            return self.eval_call(expr, scope)
        if isinstance(expr, ErrExpr):
            raise CrustRuntimeFault("InvalidNode", "reached an invalid expression")
        raise CrustRuntimeFault("InvalidNode", f"unknown expression {expr!r}")

    def eval_call(self, call: Call, scope: _Scope) -> int:
        fn = self.funcs.get(call.name)
        if fn is None:
            raise CrustRuntimeFault(
                "UnknownFunction", f"call to unknown function '{call.name}'"
            )
        args = [self.eval_expr(a, scope) for a in call.args]
        return self.call(fn, args)
