"""Grammar-driven front end for the Navacode language.

The surface syntax accepted by :mod:`navacode.parser` is restated here as a
Lark LALR(1) grammar. The resulting parse tree is transformed into the same
AST the recursive-descent parser builds, which makes this module both an
alternative front end (``engine='lark'``) and an executable description of
the grammar.

Statements carry no separators, so several shift/reduce conflicts exist
(e.g. ``let a be x - 1`` could end after ``x``). Lark resolves those by
shifting, which gives the same greedy reading as the hand-written parser.
"""

from __future__ import annotations

from typing import List, Optional

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import (
    UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError,
)

from .ast import (
    Program, VarDecl, Assign, IfStmt, WhileStmt, ForStmt, FuncDef,
    ReturnStmt, ExprStmt, Literal, Identifier, Unary, Binary, Grouping, Call,
)
from .errors import LexError, ParseError, Position, NavacodeError


NAVACODE_GRAMMAR = r"""
    start: statement*

    ?statement: var_decl
              | assign_stmt
              | if_stmt
              | while_stmt
              | for_stmt
              | func_def
              | return_stmt
              | expr_stmt

    var_decl: "let" NAME "be" expr
    assign_stmt: "set" NAME "to" expr

    if_stmt: "if" expr "then" block else_branch
    else_branch: "end"                                  -> no_else
               | ELSE_IF expr "then" block else_branch  -> else_if
               | "else" block "end"                     -> else_block

    while_stmt: "while" expr ["do"] block "end"
    for_stmt: "for" NAME "from" expr "to" expr [step] ["do"] block "end"
    step: "step" expr
    func_def: "define" "function" NAME [params] "as" block "end"
    params: "with" NAME ("," NAME)*
    return_stmt: "return" [expr]
    expr_stmt: expr

    block: statement*

    // Expressions, lowest precedence first
    ?expr: or_expr
    ?or_expr: and_expr
            | or_expr or_op and_expr      -> binary
    ?and_expr: eq_expr
             | and_expr and_op eq_expr    -> binary
    ?eq_expr: rel_expr
            | eq_expr eq_op rel_expr      -> binary
    ?rel_expr: add_expr
             | rel_expr rel_op add_expr   -> binary
    ?add_expr: mul_expr
             | add_expr add_op mul_expr   -> binary
    ?mul_expr: unary
             | mul_expr mul_op unary      -> binary
    ?unary: unary_op unary                -> unary_expr
          | atom
    ?atom: NUMBER                         -> number
         | "true"                         -> true_lit
         | "false"                        -> false_lit
         | NAME "(" [args] ")"            -> call
         | NAME                           -> var
         | "(" expr ")"                   -> group
    args: expr ("," expr)*

    !or_op: "or"
    !and_op: "and"
    !eq_op: "==" | "!="
    !rel_op: "<" | ">" | "<=" | ">="
    !add_op: "+" | "-"
    !mul_op: "*" | "/"
    !unary_op: "-" | "not"

    // Tokens
    ELSE_IF.2: /else\s+if\b/
    NAME: /[a-zA-Z_][a-zA-Z0-9_]*/
    NUMBER: /[0-9]+(\.[0-9]+)?/
    %ignore /\s+/
"""


NAVACODE_PARSER = Lark(
    NAVACODE_GRAMMAR,
    parser='lalr',
    lexer='basic',
    propagate_positions=True,
    maybe_placeholders=False,
)


def _position(token: Token) -> Position:
    return Position(token.line, token.column)


def _meta_position(meta) -> Optional[Position]:
    # meta is empty for rules that matched no tokens at all
    if getattr(meta, 'empty', True):
        return None
    return Position(meta.line, meta.column)


class ASTTransformer(Transformer):
    """Transforms the raw parse tree into an AST."""

    def start(self, items):
        return Program(list(items))

    def block(self, items):
        return list(items)

    def var_decl(self, items):
        name, expr = items
        return VarDecl(str(name), expr, pos=_position(name))

    def assign_stmt(self, items):
        name, expr = items
        return Assign(str(name), expr, pos=_position(name))

    @v_args(meta=True)
    def if_stmt(self, meta, items):
        condition, then_branch, else_branch = items
        return IfStmt(condition, then_branch, else_branch, pos=_meta_position(meta))

    def no_else(self, items):
        return None

    def else_if(self, items):
        keyword, condition, then_branch, else_branch = items
        # ELSE_IF spans "else if"; the nested statement starts at "if"
        pos = Position(keyword.end_line, keyword.end_column - 2)
        return IfStmt(condition, then_branch, else_branch, pos=pos)

    def else_block(self, items):
        return items[0]

    @v_args(meta=True)
    def while_stmt(self, meta, items):
        condition, body = items
        return WhileStmt(condition, body, pos=_meta_position(meta))

    @v_args(meta=True)
    def for_stmt(self, meta, items):
        if len(items) == 5:
            var, start, end, step, body = items
        else:
            var, start, end, body = items
            step = None
        return ForStmt(str(var), start, end, step, body, pos=_meta_position(meta))

    def step(self, items):
        return items[0]

    def func_def(self, items):
        name = items[0]
        params = items[1] if len(items) == 3 else []
        body = items[-1]
        return FuncDef(str(name), params, body, pos=_position(name))

    def params(self, items):
        names: List[str] = []
        for token in items:
            if str(token) in names:
                raise ParseError(f"duplicate parameter '{token}'", _position(token))
            names.append(str(token))
        return names

    @v_args(meta=True)
    def return_stmt(self, meta, items):
        value = items[0] if items else None
        return ReturnStmt(value, pos=_meta_position(meta))

    @v_args(meta=True)
    def expr_stmt(self, meta, items):
        return ExprStmt(items[0], pos=_meta_position(meta))

    # Expressions

    def binary(self, items):
        left, op, right = items
        return Binary(str(op), left, right, pos=_position(op))

    def unary_expr(self, items):
        op, operand = items
        return Unary(str(op), operand, pos=_position(op))

    def _operator(self, items):
        return items[0]

    or_op = and_op = eq_op = rel_op = add_op = mul_op = unary_op = _operator

    def number(self, items):
        token = items[0]
        value = float(token) if '.' in token else int(token)
        return Literal(value, pos=_position(token))

    @v_args(meta=True)
    def true_lit(self, meta, items):
        return Literal(True, pos=_meta_position(meta))

    @v_args(meta=True)
    def false_lit(self, meta, items):
        return Literal(False, pos=_meta_position(meta))

    def var(self, items):
        name = items[0]
        return Identifier(str(name), pos=_position(name))

    def call(self, items):
        name = items[0]
        args = items[1] if len(items) > 1 else []
        return Call(str(name), args, pos=_position(name))

    def args(self, items):
        return list(items)

    @v_args(meta=True)
    def group(self, meta, items):
        return Grouping(items[0], pos=_meta_position(meta))


def _describe(token: Token) -> str:
    if token.type == '$END':
        return 'end of input'
    return repr(str(token))


def parse_with_grammar(source: str) -> Program:
    """Parse Navacode source into a Program using the Lark grammar.

    Lark's own exceptions are translated into LexError/ParseError so both
    front ends fail with the same diagnostic shape.
    """
    try:
        tree = NAVACODE_PARSER.parse(source)
    except UnexpectedCharacters as e:
        raise LexError(f"unrecognized character {e.char!r}", Position(e.line, e.column)) from None
    except UnexpectedToken as e:
        expected = ', '.join(sorted(e.expected))
        # lark reports '?' for tokens without a location
        has_location = isinstance(e.line, int) and e.line > 0
        position = Position(e.line, e.column) if has_location else None
        raise ParseError(f"expected one of [{expected}], found {_describe(e.token)}", position) from None
    except UnexpectedEOF as e:
        expected = ', '.join(sorted(e.expected))
        raise ParseError(f"expected one of [{expected}], found end of input") from None
    except UnexpectedInput as e:
        raise ParseError(str(e)) from None
    try:
        return ASTTransformer().transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, NavacodeError):
            raise e.orig_exc from None
        raise
