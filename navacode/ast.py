"""Abstract Syntax Tree (AST) definitions for the Navacode language.

The AST classes defined in this module represent the syntactic structure
of parsed Navacode programs. They are produced by both front ends (the
recursive-descent parser and the lark grammar), checked by the resolver and
evaluated by the interpreter. Each node keeps the position of its key token
in `pos`; positions are ignored when comparing nodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .errors import Position


def _pos():
    return field(default=None, compare=False, repr=False)


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass
class Program(Node):
    body: List[Node]


@dataclass
class VarDecl(Node):
    name: str
    expr: Node
    pos: Optional[Position] = _pos()


@dataclass
class Assign(Node):
    name: str
    expr: Node
    pos: Optional[Position] = _pos()


@dataclass
class IfStmt(Node):
    condition: Node
    then_branch: List[Node]
    # None, a statement list, or a nested IfStmt for `else if` chains
    else_branch: Union[None, List[Node], 'IfStmt']
    pos: Optional[Position] = _pos()


@dataclass
class WhileStmt(Node):
    condition: Node
    body: List[Node]
    pos: Optional[Position] = _pos()


@dataclass
class ForStmt(Node):
    var: str
    start: Node
    end: Node
    step: Optional[Node]  # None means a step of 1
    body: List[Node]
    pos: Optional[Position] = _pos()


@dataclass
class FuncDef(Node):
    name: str
    params: List[str]
    body: List[Node]
    pos: Optional[Position] = _pos()


@dataclass
class ReturnStmt(Node):
    value: Optional[Node]
    pos: Optional[Position] = _pos()


@dataclass
class ExprStmt(Node):
    expr: Node
    pos: Optional[Position] = _pos()


@dataclass
class Literal(Node):
    value: Union[int, float, bool]
    pos: Optional[Position] = _pos()


@dataclass
class Identifier(Node):
    name: str
    pos: Optional[Position] = _pos()


@dataclass
class Unary(Node):
    op: str
    operand: Node
    pos: Optional[Position] = _pos()


@dataclass
class Binary(Node):
    op: str
    left: Node
    right: Node
    pos: Optional[Position] = _pos()


@dataclass
class Grouping(Node):
    expr: Node
    pos: Optional[Position] = _pos()


@dataclass
class Call(Node):
    name: str
    args: List[Node]
    pos: Optional[Position] = _pos()


def iter_function_defs(statements: List[Node]):
    """Yield every FuncDef nested anywhere inside `statements`."""
    for stmt in statements:
        if isinstance(stmt, FuncDef):
            yield stmt
            yield from iter_function_defs(stmt.body)
        elif isinstance(stmt, IfStmt):
            yield from iter_function_defs(stmt.then_branch)
            if isinstance(stmt.else_branch, IfStmt):
                yield from iter_function_defs([stmt.else_branch])
            elif stmt.else_branch is not None:
                yield from iter_function_defs(stmt.else_branch)
        elif isinstance(stmt, (WhileStmt, ForStmt)):
            yield from iter_function_defs(stmt.body)
