"""Tree-walking interpreter for the Navacode language.

This module evaluates resolved Navacode programs and ties the phases
together: :func:`parse_program` picks a front end, :func:`run_program`
lexes, parses, resolves and executes source text.

A `return` statement does not raise. Statement execution hands back a
:class:`ReturnSignal` and every block passes it upward unchanged until the
enclosing function call unwraps it.
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from typing import Any, List, Optional

from .ast import (
    Program, VarDecl, Assign, IfStmt, WhileStmt, ForStmt, FuncDef,
    ReturnStmt, ExprStmt, Literal, Identifier, Unary, Binary, Grouping,
    Call, Node, iter_function_defs,
)
from .environment import Environment
from .errors import (
    ArityMismatchError, DivisionByZeroError, NumericOverflowError, Position, RuntimeTypeError,
)
from .grammar import parse_with_grammar
from .parser import parse_source
from .resolver import resolve
from .types import UNIT, is_number, is_truthy, to_string, type_name

ENGINES = ('descent', 'lark')

# Each Navacode call costs a handful of Python frames.
RECURSION_LIMIT = 100_000
STACK_SIZE = 512 * 1024 * 1024


@dataclass
class ReturnSignal:
    """Result of executing a `return`: the value travelling to the caller."""
    value: Any


class FunctionValue:
    """Represents a user-defined Navacode function."""
    def __init__(self, name: str, params: List[str], body: List[Node]):
        self.name = name
        self.params = params
        self.body = body

    @property
    def arity(self) -> int:
        return len(self.params)

    def __repr__(self) -> str:
        return f"<function {self.name}>"


class Interpreter:
    """Core interpreter that executes a Navacode AST."""
    def __init__(self, debug_level: int = 0, debug_file: Optional[str] = None):
        self.global_env = Environment()
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 and debug_file else None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg, file=sys.stderr)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def __enter__(self) -> 'Interpreter':
        return self

    def __exit__(self, *exc_info):
        self.close()

    # Public API
    def run(self, program: Program, env: Optional[Environment] = None) -> Any:
        """Execute `program` and return its final value.

        The final value is the value of the last top-level statement when
        that statement is an expression, and unit otherwise.
        """
        if env is None:
            env = self.global_env
        for func in iter_function_defs(program.body):
            env.define_function(func.name, FunctionValue(func.name, func.params, func.body))
        result: Any = UNIT
        for stmt in program.body:
            outcome = self.execute(stmt, env)
            if isinstance(outcome, ReturnSignal):
                return outcome.value
            result = outcome if isinstance(stmt, ExprStmt) else UNIT
        return result

    def execute_block(self, statements: List[Node], env: Environment) -> Optional[ReturnSignal]:
        for stmt in statements:
            result = self.execute(stmt, env)
            if isinstance(result, ReturnSignal):
                return result
        return None

    def execute(self, node: Node, env: Environment) -> Any:
        if isinstance(node, VarDecl):
            value = self.evaluate(node.expr, env)
            env.declare(node.name, value)
            if self.debug_level >= 2:
                self.debug(f"declare {node.name}: {type_name(value)} = {to_string(value)}")
            return None
        if isinstance(node, Assign):
            value = self.evaluate(node.expr, env)
            env.set(node.name, value, node.pos)
            if self.debug_level >= 2:
                self.debug(f"assign {node.name} = {to_string(value)}")
            return None
        if isinstance(node, IfStmt):
            cond = self.evaluate(node.condition, env)
            truthy = is_truthy(cond)
            if self.debug_level >= 3:
                self.debug(f"if condition {to_string(cond)} -> {truthy}")
            if truthy:
                return self.execute_block(node.then_branch, Environment(parent=env))
            if isinstance(node.else_branch, IfStmt):
                return self.execute(node.else_branch, env)
            if node.else_branch is not None:
                return self.execute_block(node.else_branch, Environment(parent=env))
            return None
        if isinstance(node, WhileStmt):
            while True:
                cond = self.evaluate(node.condition, env)
                if self.debug_level >= 3:
                    self.debug(f"while condition {to_string(cond)}")
                if not is_truthy(cond):
                    break
                result = self.execute_block(node.body, Environment(parent=env))
                if isinstance(result, ReturnSignal):
                    return result
            return None
        if isinstance(node, ForStmt):
            return self.execute_for(node, env)
        if isinstance(node, FuncDef):
            env.define_function(node.name, FunctionValue(node.name, node.params, node.body))
            if self.debug_level >= 2:
                self.debug(f"define function {node.name}")
            return None
        if isinstance(node, ReturnStmt):
            value = self.evaluate(node.value, env) if node.value is not None else UNIT
            return ReturnSignal(value)
        if isinstance(node, ExprStmt):
            return self.evaluate(node.expr, env)
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def execute_for(self, node: ForStmt, env: Environment) -> Optional[ReturnSignal]:
        start = self.evaluate(node.start, env)
        end = self.evaluate(node.end, env)
        step = self.evaluate(node.step, env) if node.step is not None else 1
        for label, value in (('start', start), ('end', end), ('step', step)):
            if not is_number(value):
                raise RuntimeTypeError(f"for loop {label} must be a number, got {type_name(value)}", node.pos)
        # the loop variable lives in its own scope for the loop's duration
        loop_env = Environment(parent=env)
        current = start
        while (current <= end) if step > 0 else (current >= end):
            loop_env.declare(node.var, current)
            if self.debug_level >= 3:
                self.debug(f"for {node.var} = {to_string(current)}")
            result = self.execute_block(node.body, Environment(parent=loop_env))
            if isinstance(result, ReturnSignal):
                return result
            current = self.apply_binary_op('+', current, step, node.pos)
        return None

    def evaluate(self, node: Node, env: Environment) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Identifier):
            return env.get(node.name, node.pos)
        if isinstance(node, Grouping):
            return self.evaluate(node.expr, env)
        if isinstance(node, Unary):
            operand = self.evaluate(node.operand, env)
            if node.op == 'not':
                return not is_truthy(operand)
            if node.op == '-':
                if is_number(operand):
                    return -operand
                raise RuntimeTypeError(f"unary '-' expects a number, got {type_name(operand)}", node.pos)
            raise RuntimeTypeError(f"unsupported unary operator {node.op}", node.pos)
        if isinstance(node, Binary):
            left = self.evaluate(node.left, env)
            # and/or yield an operand; the right one is skipped when short-circuited
            if node.op == 'and':
                if not is_truthy(left):
                    return left
                return self.evaluate(node.right, env)
            if node.op == 'or':
                if is_truthy(left):
                    return left
                return self.evaluate(node.right, env)
            right = self.evaluate(node.right, env)
            return self.apply_binary_op(node.op, left, right, node.pos)
        if isinstance(node, Call):
            func = env.get_function(node.name, node.pos)
            args = [self.evaluate(arg, env) for arg in node.args]
            return self.call_function(func, args, env, node.pos)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def call_function(self, func: FunctionValue, args: List[Any], env: Environment,
                      position: Optional[Position] = None) -> Any:
        if len(args) != func.arity:
            raise ArityMismatchError(f"{func.name} expects {func.arity} arguments", position)
        # Functions are not closures: the call scope links to the global environment.
        call_env = Environment(parent=env.root)
        for param, arg in zip(func.params, args):
            call_env.declare(param, arg)
        if self.debug_level >= 1:
            self.debug(f"call {func.name}({', '.join(to_string(a) for a in args)})")
        result = self.execute_block(func.body, call_env)
        ret_val = result.value if isinstance(result, ReturnSignal) else UNIT
        if self.debug_level >= 1:
            self.debug(f"return from {func.name}: {to_string(ret_val)}")
        return ret_val

    def apply_binary_op(self, op: str, a: Any, b: Any, position: Optional[Position] = None) -> Any:
        if op in ('+', '-', '*', '/'):
            if not (is_number(a) and is_number(b)):
                raise RuntimeTypeError(
                    f"unsupported operand types for {op}: {type_name(a)} and {type_name(b)}", position)
            if op == '/' and b == 0:
                raise DivisionByZeroError('division by zero', position)
            try:
                if op == '+':
                    return a + b
                if op == '-':
                    return a - b
                if op == '*':
                    return a * b
                # int / int is already true division, exact for large Integers
                return a / b
            except OverflowError:
                raise NumericOverflowError(
                    f"result of {op} is too large for a Float", position) from None
        if op in ('==', '!='):
            if isinstance(a, bool) and isinstance(b, bool):
                eq = a == b
            elif is_number(a) and is_number(b):
                # mixed Integer/Float comparison is exact
                eq = a == b
            else:
                raise RuntimeTypeError(f"cannot compare {type_name(a)} and {type_name(b)}", position)
            return eq if op == '==' else not eq
        if op in ('<', '>', '<=', '>='):
            if not (is_number(a) and is_number(b)):
                raise RuntimeTypeError(f"comparison not supported for {type_name(a)} and {type_name(b)}", position)
            if op == '<':
                return a < b
            if op == '>':
                return a > b
            if op == '<=':
                return a <= b
            return a >= b
        raise RuntimeTypeError(f"unknown operator {op}", position)


def call_with_deep_stack(func, *args):
    """Call `func(*args)` on a worker thread with a large stack.

    Recursion depth is then bounded by that stack rather than by Python's
    default recursion limit. Exceptions raised by `func` propagate to the
    caller unchanged.
    """
    if sys.getrecursionlimit() < RECURSION_LIMIT:
        sys.setrecursionlimit(RECURSION_LIMIT)
    outcome = {}

    def target():
        try:
            outcome['value'] = func(*args)
        except BaseException as e:  # re-raised in the calling thread
            outcome['error'] = e

    previous = threading.stack_size(STACK_SIZE)
    try:
        worker = threading.Thread(target=target, name='navacode-run')
        worker.start()
    finally:
        threading.stack_size(previous)
    worker.join()
    if 'error' in outcome:
        raise outcome['error']
    return outcome['value']


def parse_program(source: str, engine: str = 'descent') -> Program:
    """Parse source code into a Program AST with the chosen front end."""
    if engine == 'descent':
        return parse_source(source)
    if engine == 'lark':
        return parse_with_grammar(source)
    raise ValueError(f"unknown parser engine {engine!r}; expected one of {ENGINES}")


def resolve_for(program: Program, env: Environment) -> Program:
    """Resolve `program` against the bindings already present in `env`."""
    root = env.root
    known_functions = {name: func.arity for name, func in root.functions.items()}
    return resolve(program, known_globals=root.values.keys(), known_functions=known_functions)


@dataclass
class RunResult:
    value: Any
    environment: Environment


def run_program(source: str, env: Optional[Environment] = None, engine: str = 'descent',
                debug_level: int = 0, debug_file: Optional[str] = None) -> RunResult:
    """Convenience function to lex, parse, resolve and run a program."""
    program = parse_program(source, engine)
    with Interpreter(debug_level=debug_level, debug_file=debug_file) as interpreter:
        if env is None:
            env = interpreter.global_env
        resolve_for(program, env)
        value = call_with_deep_stack(interpreter.run, program, env)
    return RunResult(value, env)


def run_file(file_path: str, engine: str = 'descent', debug_level: int = 0) -> RunResult:
    """Run a Navacode source file and return its result."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    return run_program(source, engine=engine, debug_level=debug_level)
