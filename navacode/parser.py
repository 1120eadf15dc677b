"""Recursive-descent parser for the Navacode language.

Statements are parsed by one method per leading keyword. Expressions use
precedence climbing over the binary operator table below; unary prefix
operators bind tighter than every binary operator. Parsing stops at the
first error with a :class:`ParseError`.
"""

from __future__ import annotations

from typing import List, Optional, Union

from .ast import (
    Program, VarDecl, Assign, IfStmt, WhileStmt, ForStmt, FuncDef,
    ReturnStmt, ExprStmt, Literal, Identifier, Unary, Binary, Grouping,
    Call, Node,
)
from .errors import ParseError
from .lexer import Token, KEYWORD, IDENT, NUMBER, OPERATOR, PUNCT, EOF, tokenize

# Lowest to highest; every binary level is left-associative.
BINARY_PRECEDENCE = {
    'or': 1,
    'and': 2,
    '==': 3, '!=': 3,
    '<': 4, '>': 4, '<=': 4, '>=': 4,
    '+': 5, '-': 5,
    '*': 6, '/': 6,
}
UNARY_OPERATORS = ('-', 'not')


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def match(self, expected: Union[str, List[str]]) -> bool:
        token = self.peek()
        if token.kind in (IDENT, NUMBER, EOF):
            return False
        if isinstance(expected, list):
            return token.text in expected
        return token.text == expected

    def consume(self, expected: str) -> Token:
        """Consume a keyword, operator or punctuation token with this text."""
        token = self.peek()
        if not self.match(expected):
            raise ParseError(f"expected '{expected}', found {token.describe()}", token.position)
        self.pos += 1
        return token

    def consume_name(self, what: str = 'identifier') -> Token:
        token = self.peek()
        if token.kind != IDENT:
            raise ParseError(f"expected {what}, found {token.describe()}", token.position)
        self.pos += 1
        return token

    def advance(self) -> Token:
        token = self.peek()
        self.pos += 1
        return token

    # Statements

    def parse_program(self) -> Program:
        statements: List[Node] = []
        while self.peek().kind != EOF:
            statements.append(self.parse_statement())
        return Program(statements)

    def parse_statement(self) -> Node:
        token = self.peek()
        if token.kind == KEYWORD:
            if token.text == 'let':
                return self.parse_var_decl()
            if token.text == 'set':
                return self.parse_assign()
            if token.text == 'if':
                return self.parse_if_stmt()
            if token.text == 'while':
                return self.parse_while_stmt()
            if token.text == 'for':
                return self.parse_for_stmt()
            if token.text == 'define':
                return self.parse_func_def()
            if token.text == 'return':
                return self.parse_return_stmt()
            if token.text == 'end':
                raise ParseError("'end' without a matching block", token.position)
            if token.text == 'else':
                raise ParseError("'else' without a matching 'if'", token.position)
        if self.starts_expression(token):
            expr = self.parse_expression()
            return ExprStmt(expr, pos=token.position)
        raise ParseError(f"expected statement, found {token.describe()}", token.position)

    def parse_block(self, terminators: List[str]) -> List[Node]:
        """Parse statements up to (not including) one of `terminators`."""
        statements: List[Node] = []
        while not self.match(terminators):
            token = self.peek()
            if token.kind == EOF:
                expected = ' or '.join(f"'{t}'" for t in terminators)
                raise ParseError(f"expected {expected}, found end of input", token.position)
            statements.append(self.parse_statement())
        return statements

    def parse_var_decl(self) -> VarDecl:
        self.consume('let')
        name = self.consume_name('variable name')
        self.consume('be')
        expr = self.parse_expression()
        return VarDecl(name.text, expr, pos=name.position)

    def parse_assign(self) -> Assign:
        self.consume('set')
        name = self.consume_name('variable name')
        self.consume('to')
        expr = self.parse_expression()
        return Assign(name.text, expr, pos=name.position)

    def parse_if_stmt(self) -> IfStmt:
        keyword = self.consume('if')
        condition = self.parse_expression()
        self.consume('then')
        then_branch = self.parse_block(['else', 'end'])
        else_branch: Union[None, List[Node], IfStmt] = None
        if self.match('else'):
            self.consume('else')
            if self.match('if'):
                # the nested if owns the closing 'end'
                else_branch = self.parse_if_stmt()
            else:
                else_branch = self.parse_block(['end'])
                self.consume('end')
        else:
            self.consume('end')
        return IfStmt(condition, then_branch, else_branch, pos=keyword.position)

    def parse_while_stmt(self) -> WhileStmt:
        keyword = self.consume('while')
        condition = self.parse_expression()
        if self.match('do'):
            self.consume('do')
        body = self.parse_block(['end'])
        self.consume('end')
        return WhileStmt(condition, body, pos=keyword.position)

    def parse_for_stmt(self) -> ForStmt:
        keyword = self.consume('for')
        var = self.consume_name('loop variable')
        self.consume('from')
        start = self.parse_expression()
        self.consume('to')
        end = self.parse_expression()
        step: Optional[Node] = None
        if self.match('step'):
            self.consume('step')
            step = self.parse_expression()
        if self.match('do'):
            self.consume('do')
        body = self.parse_block(['end'])
        self.consume('end')
        return ForStmt(var.text, start, end, step, body, pos=keyword.position)

    def parse_func_def(self) -> FuncDef:
        self.consume('define')
        self.consume('function')
        name = self.consume_name('function name')
        params: List[str] = []
        if self.match('with'):
            self.consume('with')
            params.append(self.parse_param(params))
            while self.match(','):
                self.consume(',')
                params.append(self.parse_param(params))
        self.consume('as')
        body = self.parse_block(['end'])
        self.consume('end')
        return FuncDef(name.text, params, body, pos=name.position)

    def parse_param(self, seen: List[str]) -> str:
        token = self.consume_name('parameter name')
        if token.text in seen:
            raise ParseError(f"duplicate parameter '{token.text}'", token.position)
        return token.text

    def parse_return_stmt(self) -> ReturnStmt:
        keyword = self.consume('return')
        value: Optional[Node] = None
        if self.starts_expression(self.peek()):
            value = self.parse_expression()
        return ReturnStmt(value, pos=keyword.position)

    # Expressions

    @staticmethod
    def starts_expression(token: Token) -> bool:
        if token.kind in (NUMBER, IDENT):
            return True
        return token.kind != EOF and token.text in ('true', 'false', '(', '-', 'not')

    def binary_operator(self) -> Optional[str]:
        token = self.peek()
        if token.kind in (OPERATOR, KEYWORD) and token.text in BINARY_PRECEDENCE:
            return token.text
        return None

    def parse_expression(self, min_precedence: int = 1) -> Node:
        left = self.parse_unary()
        while True:
            op = self.binary_operator()
            if op is None or BINARY_PRECEDENCE[op] < min_precedence:
                break
            op_token = self.advance()
            # left-associative: the right operand binds one level tighter
            right = self.parse_expression(BINARY_PRECEDENCE[op] + 1)
            left = Binary(op, left, right, pos=op_token.position)
        return left

    def parse_unary(self) -> Node:
        if self.match(list(UNARY_OPERATORS)):
            op_token = self.advance()
            operand = self.parse_unary()
            return Unary(op_token.text, operand, pos=op_token.position)
        return self.parse_primary()

    def parse_primary(self) -> Node:
        token = self.peek()
        if token.kind == NUMBER:
            self.advance()
            return Literal(token.value, pos=token.position)
        if token.kind == KEYWORD and token.text in ('true', 'false'):
            self.advance()
            return Literal(token.text == 'true', pos=token.position)
        if token.kind == IDENT:
            self.advance()
            if self.match('('):
                return Call(token.text, self.parse_arguments(), pos=token.position)
            return Identifier(token.text, pos=token.position)
        if token.kind == PUNCT and token.text == '(':
            self.advance()
            expr = self.parse_expression()
            self.consume(')')
            return Grouping(expr, pos=token.position)
        raise ParseError(f"expected expression, found {token.describe()}", token.position)

    def parse_arguments(self) -> List[Node]:
        self.consume('(')
        args: List[Node] = []
        if not self.match(')'):
            args.append(self.parse_expression())
            while self.match(','):
                self.consume(',')
                args.append(self.parse_expression())
        self.consume(')')
        return args


def parse(tokens: List[Token]) -> Program:
    """Parse a token list (ending with EOF) into a Program."""
    return Parser(tokens).parse_program()


def parse_source(source: str) -> Program:
    """Tokenize and parse source text with the recursive-descent parser."""
    return parse(tokenize(source))
