"""Serialization of crust ASTs to JSON-compatible dicts and back.

Every node becomes a dict tagged with "_type" and carrying all of its fields,
so a tree written by the build step can be run later without the source.
"""

from __future__ import annotations

import json

from .ast import (
    Add,
    AssignStmt,
    BinaryExpr,
    Call,
    Definition,
    Div,
    ErrExpr,
    Expr,
    FuncDef,
    IntLit,
    InvalidStmt,
    Mul,
    Neg,
    Param,
    Program,
    ReturnStmt,
    Stmt,
    StructDef,
    Sub,
    Var,
)
from .tokens import Token


class DecodeError(Exception):
    """Malformed serialized tree."""

    kind = "DecodeError"

    def __init__(self, msg: str):
        self.msg: str = msg
        super().__init__(msg)


_BINARY_TAGS: dict[str, type[BinaryExpr]] = {
    "Mul": Mul,
    "Div": Div,
    "Add": Add,
    "Sub": Sub,
}


# ============================================================
# Encoding
# ============================================================


def to_dict(obj: object) -> dict[str, object]:
    """Serialize a Program or any AST node via isinstance dispatch."""
    if isinstance(obj, Program):
        return {
            "_type": "Program",
            "definitions": [to_dict(d) for d in obj.definitions],
            "strict_arity": obj.strict_arity,
        }
    if isinstance(obj, Definition):
        return _serialize_definition(obj)
    if isinstance(obj, Param):
        return {"_type": "Param", "name": obj.name, "typ": obj.typ}
    if isinstance(obj, Stmt):
        return _serialize_stmt(obj)
    if isinstance(obj, Expr):
        return _serialize_expr(obj)
    raise TypeError(f"cannot serialize {type(obj).__name__}")


def _serialize_definition(obj: Definition) -> dict[str, object]:
    if isinstance(obj, StructDef):
        return {
            "_type": "Struct",
            "name": obj.name,
            "params": [to_dict(p) for p in obj.params],
        }
    if isinstance(obj, FuncDef):
        return {
            "_type": "Func",
            "name": obj.name,
            "params": [to_dict(p) for p in obj.params],
            "ret": obj.ret,
            "body": [to_dict(s) for s in obj.body],
        }
    raise TypeError(f"cannot serialize {type(obj).__name__}")


def _serialize_stmt(obj: Stmt) -> dict[str, object]:
    if isinstance(obj, InvalidStmt):
        return {"_type": "Invalid"}
    if isinstance(obj, ReturnStmt):
        return {"_type": "Return", "value": to_dict(obj.value)}
    if isinstance(obj, AssignStmt):
        return {
            "_type": "Assign",
            "typ": obj.typ,
            "name": obj.name,
            "value": to_dict(obj.value),
        }
    raise TypeError(f"cannot serialize {type(obj).__name__}")


def _serialize_expr(obj: Expr) -> dict[str, object]:
    if isinstance(obj, ErrExpr):
        return {"_type": "Err"}
    if isinstance(obj, IntLit):
        return {"_type": "Int", "text": obj.text}
    if isinstance(obj, Neg):
        return {"_type": "Neg", "operand": to_dict(obj.operand)}
    if isinstance(obj, BinaryExpr):
        return {
            "_type": type(obj).__name__,
            "left": to_dict(obj.left),
            "right": to_dict(obj.right),
        }
    if isinstance(obj, Var):
        return {"_type": "Var", "name": obj.name}
    if isinstance(obj, Call):
        return {
            "_type": "Call",
            "name": obj.name,
            "args": [to_dict(a) for a in obj.args],
        }
    raise TypeError(f"cannot serialize {type(obj).__name__}")


def tokens_to_list(tokens: list[Token]) -> list[dict[str, object]]:
    return [
        {"type": t.type, "value": t.value, "span": [t.span.start, t.span.end]}
        for t in tokens
    ]


def to_json(program: Program) -> str:
    """Serialize a Program to pretty-printed JSON."""
    return json.dumps(to_dict(program), indent=2)


# ============================================================
# Decoding
# ============================================================


def _field(data: dict, name: str, typ: type) -> object:
    if name not in data:
        raise DecodeError(f"{data.get('_type')} is missing field '{name}'")
    value = data[name]
    # bool is an int subclass; keep the two apart
    if not isinstance(value, typ) or (typ is not bool and isinstance(value, bool)):
        raise DecodeError(
            f"{data.get('_type')}.{name} must be {typ.__name__},"
            f" got {type(value).__name__}"
        )
    return value


def _node(data: object, context: str) -> dict:
    if not isinstance(data, dict):
        raise DecodeError(f"expected {context} object, got {type(data).__name__}")
    if "_type" not in data:
        raise DecodeError(f"{context} object has no '_type'")
    return data


def _list(data: dict, name: str) -> list:
    return _field(data, name, list)  # type: ignore[return-value]


def _str(data: dict, name: str) -> str:
    return _field(data, name, str)  # type: ignore[return-value]


def program_from_dict(data: object) -> Program:
    node = _node(data, "program")
    if node["_type"] != "Program":
        raise DecodeError(f"expected Program, got {node['_type']}")
    definitions = [definition_from_dict(d) for d in _list(node, "definitions")]
    strict_arity = False
    if "strict_arity" in node:
        strict_arity = _field(node, "strict_arity", bool)
    return Program(definitions, strict_arity)


def definition_from_dict(data: object) -> Definition:
    node = _node(data, "definition")
    tag = node["_type"]
    if tag == "Struct":
        params = [param_from_dict(p) for p in _list(node, "params")]
        return StructDef(_str(node, "name"), params)
    if tag == "Func":
        params = [param_from_dict(p) for p in _list(node, "params")]
        body = [stmt_from_dict(s) for s in _list(node, "body")]
        return FuncDef(_str(node, "name"), params, _str(node, "ret"), body)
    raise DecodeError(f"unknown definition type '{tag}'")


def param_from_dict(data: object) -> Param:
    node = _node(data, "param")
    if node["_type"] != "Param":
        raise DecodeError(f"expected Param, got {node['_type']}")
    return Param(_str(node, "name"), _str(node, "typ"))


def stmt_from_dict(data: object) -> Stmt:
    node = _node(data, "statement")
    tag = node["_type"]
    if tag == "Invalid":
        return InvalidStmt()
    if tag == "Return":
        return ReturnStmt(expr_from_dict(node.get("value")))
    if tag == "Assign":
        return AssignStmt(
            _str(node, "typ"), _str(node, "name"), expr_from_dict(node.get("value"))
        )
    raise DecodeError(f"unknown statement type '{tag}'")


def expr_from_dict(data: object) -> Expr:
    node = _node(data, "expression")
    tag = node["_type"]
    if tag == "Err":
        return ErrExpr()
    if tag == "Int":
        return IntLit(_str(node, "text"))
    if tag == "Neg":
        return Neg(expr_from_dict(node.get("operand")))
    if tag in _BINARY_TAGS:
        left = expr_from_dict(node.get("left"))
        right = expr_from_dict(node.get("right"))
        return _BINARY_TAGS[tag](left, right)
    if tag == "Var":
        return Var(_str(node, "name"))
    if tag == "Call":
        args = [expr_from_dict(a) for a in _list(node, "args")]
        return Call(_str(node, "name"), args)
    raise DecodeError(f"unknown expression type '{tag}'")


def from_dict(data: object) -> Program:
    try:
        return program_from_dict(data)
    except RecursionError:
        raise DecodeError("tree nested too deeply") from None


def from_json(text: str) -> Program:
    """Parse JSON text produced by to_json back into a Program."""
    try:
        data = json.loads(text)
    except ValueError as e:
        raise DecodeError(f"invalid JSON: {e}") from None
    except RecursionError:
        raise DecodeError("invalid JSON: nested too deeply") from None
    return from_dict(data)
