"""JSON serialization/deserialization for the Navacode AST.

This module converts between Navacode AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. Node positions are kept as
``[line, column]`` pairs so diagnostics raised while running a loaded AST
still point into the original source.

Loading checks every node against what the parsers can produce (known
operators, numeric or Boolean literals, names, statement and expression
slots) and reports anything else as a ParseError.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .ast import (
    Program,
    VarDecl,
    Assign,
    IfStmt,
    WhileStmt,
    ForStmt,
    FuncDef,
    ReturnStmt,
    ExprStmt,
    Literal,
    Identifier,
    Unary,
    Binary,
    Grouping,
    Call,
)
from .errors import ParseError, Position
from .parser import BINARY_PRECEDENCE, UNARY_OPERATORS


def pos_to_obj(pos: Optional[Position]) -> Optional[List[int]]:
    if pos is None:
        return None
    return [pos.line, pos.column]


def pos_from_obj(o: Any) -> Optional[Position]:
    if o is None:
        return None
    if not (isinstance(o, list) and len(o) == 2 and all(type(n) is int for n in o)):
        raise ParseError(f"malformed position {o!r}")
    line, column = o
    return Position(line, column)


def _block(statements: List[Any]) -> List[Any]:
    return [ast_to_obj(s) for s in statements]


def ast_to_obj(node: Any) -> Any:
    # Primitives
    if node is None:
        return None
    if isinstance(node, (int, float, str, bool)):
        return node

    # Node types
    if isinstance(node, Program):
        return {"type": "Program", "body": _block(node.body)}
    if isinstance(node, VarDecl):
        return {"type": "VarDecl", "name": node.name, "expr": ast_to_obj(node.expr), "pos": pos_to_obj(node.pos)}
    if isinstance(node, Assign):
        return {"type": "Assign", "name": node.name, "expr": ast_to_obj(node.expr), "pos": pos_to_obj(node.pos)}
    if isinstance(node, IfStmt):
        if isinstance(node.else_branch, IfStmt):
            else_branch: Any = ast_to_obj(node.else_branch)
        elif node.else_branch is not None:
            else_branch = _block(node.else_branch)
        else:
            else_branch = None
        return {
            "type": "IfStmt",
            "condition": ast_to_obj(node.condition),
            "then_branch": _block(node.then_branch),
            "else_branch": else_branch,
            "pos": pos_to_obj(node.pos),
        }
    if isinstance(node, WhileStmt):
        return {
            "type": "WhileStmt",
            "condition": ast_to_obj(node.condition),
            "body": _block(node.body),
            "pos": pos_to_obj(node.pos),
        }
    if isinstance(node, ForStmt):
        return {
            "type": "ForStmt",
            "var": node.var,
            "start": ast_to_obj(node.start),
            "end": ast_to_obj(node.end),
            "step": ast_to_obj(node.step),
            "body": _block(node.body),
            "pos": pos_to_obj(node.pos),
        }
    if isinstance(node, FuncDef):
        return {
            "type": "FuncDef",
            "name": node.name,
            "params": list(node.params),
            "body": _block(node.body),
            "pos": pos_to_obj(node.pos),
        }
    if isinstance(node, ReturnStmt):
        return {"type": "ReturnStmt", "value": ast_to_obj(node.value), "pos": pos_to_obj(node.pos)}
    if isinstance(node, ExprStmt):
        return {"type": "ExprStmt", "expr": ast_to_obj(node.expr), "pos": pos_to_obj(node.pos)}
    if isinstance(node, Literal):
        return {"type": "Literal", "value": node.value, "pos": pos_to_obj(node.pos)}
    if isinstance(node, Identifier):
        return {"type": "Identifier", "name": node.name, "pos": pos_to_obj(node.pos)}
    if isinstance(node, Unary):
        return {"type": "Unary", "op": node.op, "operand": ast_to_obj(node.operand), "pos": pos_to_obj(node.pos)}
    if isinstance(node, Binary):
        return {
            "type": "Binary",
            "op": node.op,
            "left": ast_to_obj(node.left),
            "right": ast_to_obj(node.right),
            "pos": pos_to_obj(node.pos),
        }
    if isinstance(node, Grouping):
        return {"type": "Grouping", "expr": ast_to_obj(node.expr), "pos": pos_to_obj(node.pos)}
    if isinstance(node, Call):
        return {
            "type": "Call",
            "name": node.name,
            "args": [ast_to_obj(a) for a in node.args],
            "pos": pos_to_obj(node.pos),
        }

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


EXPRESSION_NODES = (Literal, Identifier, Unary, Binary, Grouping, Call)
STATEMENT_NODES = (VarDecl, Assign, IfStmt, WhileStmt, ForStmt, FuncDef, ReturnStmt, ExprStmt)


def _field(obj: Dict[str, Any], key: str, pos: Optional[Position]) -> Any:
    if key not in obj:
        raise ParseError(f"{obj.get('type')} node is missing '{key}'", pos)
    return obj[key]


def _name(obj: Dict[str, Any], key: str, pos: Optional[Position]) -> str:
    value = _field(obj, key, pos)
    if not isinstance(value, str) or not value:
        raise ParseError(f"{obj['type']} '{key}' must be a name, got {value!r}", pos)
    return value


def _as_expr(value: Any, what: str, pos: Optional[Position]) -> Any:
    node = ast_from_obj(value)
    if not isinstance(node, EXPRESSION_NODES):
        raise ParseError(f"{what} must be an expression, got {type(node).__name__}", pos)
    return node


def _expr(obj: Dict[str, Any], key: str, pos: Optional[Position], optional: bool = False) -> Any:
    value = _field(obj, key, pos) if not optional else obj.get(key)
    if value is None and optional:
        return None
    return _as_expr(value, f"{obj['type']} '{key}'", pos)


def _load_block(obj: Dict[str, Any], key: str, pos: Optional[Position]) -> List[Any]:
    items = _field(obj, key, pos)
    if not isinstance(items, list):
        raise ParseError(f"{obj['type']} '{key}' must be a list of statements", pos)
    statements = [ast_from_obj(s) for s in items]
    for stmt in statements:
        if not isinstance(stmt, STATEMENT_NODES):
            raise ParseError(f"{obj['type']} '{key}' holds a {type(stmt).__name__}, not a statement", pos)
    return statements


def _params(obj: Dict[str, Any], pos: Optional[Position]) -> List[str]:
    params = _field(obj, 'params', pos)
    if not isinstance(params, list) or not all(isinstance(p, str) and p for p in params):
        raise ParseError(f"FuncDef 'params' must be a list of names, got {params!r}", pos)
    if len(set(params)) != len(params):
        raise ParseError(f"duplicate parameter in {params!r}", pos)
    return list(params)


def ast_from_obj(obj: Any) -> Any:
    """Rebuild one AST node, rejecting anything the parser could not produce."""
    if not isinstance(obj, dict):
        raise ParseError(f"invalid AST object {obj!r}")
    t = obj.get("type")
    pos = pos_from_obj(obj.get("pos"))
    if t == "Program":
        return Program(body=_load_block(obj, "body", pos))
    if t == "VarDecl":
        return VarDecl(name=_name(obj, "name", pos), expr=_expr(obj, "expr", pos), pos=pos)
    if t == "Assign":
        return Assign(name=_name(obj, "name", pos), expr=_expr(obj, "expr", pos), pos=pos)
    if t == "IfStmt":
        else_obj = obj.get("else_branch")
        if isinstance(else_obj, dict):
            else_branch: Any = ast_from_obj(else_obj)
            if not isinstance(else_branch, IfStmt):
                raise ParseError("IfStmt 'else_branch' must be a list of statements or an IfStmt", pos)
        elif else_obj is not None:
            else_branch = _load_block(obj, "else_branch", pos)
        else:
            else_branch = None
        return IfStmt(
            condition=_expr(obj, "condition", pos),
            then_branch=_load_block(obj, "then_branch", pos),
            else_branch=else_branch,
            pos=pos,
        )
    if t == "WhileStmt":
        return WhileStmt(condition=_expr(obj, "condition", pos), body=_load_block(obj, "body", pos), pos=pos)
    if t == "ForStmt":
        return ForStmt(
            var=_name(obj, "var", pos),
            start=_expr(obj, "start", pos),
            end=_expr(obj, "end", pos),
            step=_expr(obj, "step", pos, optional=True),
            body=_load_block(obj, "body", pos),
            pos=pos,
        )
    if t == "FuncDef":
        return FuncDef(name=_name(obj, "name", pos), params=_params(obj, pos), body=_load_block(obj, "body", pos), pos=pos)
    if t == "ReturnStmt":
        return ReturnStmt(value=_expr(obj, "value", pos, optional=True), pos=pos)
    if t == "ExprStmt":
        return ExprStmt(expr=_expr(obj, "expr", pos), pos=pos)
    if t == "Literal":
        value = _field(obj, "value", pos)
        if not isinstance(value, (bool, int, float)):
            raise ParseError(f"Literal value must be a number or a Boolean, got {value!r}", pos)
        return Literal(value=value, pos=pos)
    if t == "Identifier":
        return Identifier(name=_name(obj, "name", pos), pos=pos)
    if t == "Unary":
        op = _field(obj, "op", pos)
        if op not in UNARY_OPERATORS:
            raise ParseError(f"unknown unary operator {op!r}", pos)
        return Unary(op=op, operand=_expr(obj, "operand", pos), pos=pos)
    if t == "Binary":
        op = _field(obj, "op", pos)
        if not isinstance(op, str) or op not in BINARY_PRECEDENCE:
            raise ParseError(f"unknown binary operator {op!r}", pos)
        return Binary(op=op, left=_expr(obj, "left", pos), right=_expr(obj, "right", pos), pos=pos)
    if t == "Grouping":
        return Grouping(expr=_expr(obj, "expr", pos), pos=pos)
    if t == "Call":
        args = _field(obj, "args", pos)
        if not isinstance(args, list):
            raise ParseError("Call 'args' must be a list of expressions", pos)
        return Call(name=_name(obj, "name", pos), args=[_as_expr(a, "Call argument", pos) for a in args], pos=pos)

    raise ParseError(f"unknown AST node type {t!r}", pos)


def program_from_obj(obj: Any) -> Program:
    """Load a whole program, as written by :func:`ast_to_obj`."""
    program = ast_from_obj(obj)
    if not isinstance(program, Program):
        raise ParseError(f"expected a Program at the top level, got {type(program).__name__}")
    return program
