"""Static resolution pass for Navacode programs.

The resolver walks a parsed program once, before execution, and rejects
programs that would otherwise fail at runtime because of an undefined
variable, an unknown function, a wrong number of call arguments or a
`return` outside of a function body.

Scopes mirror the interpreter's environments: the global scope, one child
scope per statement block, a loop scope holding a `for` variable, and one
scope per function body whose parent is the *global* scope (functions are
not closures). Function names are global, so every definition is
registered before the walk starts and forward or recursive calls resolve.

Because calls may run before a global is bound, names that a function body
takes from the global scope are recorded as that function's requirements.
After the walk each call made from top-level code is checked against the
globals declared before it, transitively through the functions it calls.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set, Tuple

from .ast import (
    Program, VarDecl, Assign, IfStmt, WhileStmt, ForStmt, FuncDef,
    ReturnStmt, ExprStmt, Literal, Identifier, Unary, Binary, Grouping,
    Call, Node, iter_function_defs,
)
from .errors import (
    Position, UndefinedNameError, UndefinedFunctionError, ArityMismatchError,
    ReturnOutsideFunctionError, DuplicateFunctionError,
)


class Scope:
    """A static scope: the set of variable names declared in it."""
    def __init__(self, parent: Optional['Scope'] = None):
        self.parent = parent
        self.names: Set[str] = set()

    def declare(self, name: str):
        self.names.add(name)

    def lookup(self, name: str) -> bool:
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope.names:
                return True
            scope = scope.parent
        return False


class Resolver:
    """Checks one program.

    `known_globals` and `known_functions` (name -> arity) describe bindings
    that already exist in the global environment the program will run in.
    """
    def __init__(self, known_globals: Iterable[str] = (), known_functions: Optional[Dict[str, int]] = None):
        # function name -> number of parameters
        self.functions: Dict[str, int] = dict(known_functions or {})
        self.global_scope = Scope()
        self.scope = self.global_scope
        # FuncDef whose body is being walked; None at top level
        self.current_function: Optional[FuncDef] = None
        # every name declared directly in the global scope, in program order
        self.all_globals: Set[str] = set()
        self.global_order: Dict[str, int] = {}
        self.requirements: Dict[str, Dict[str, Position]] = {}
        self.callees: Dict[str, Set[str]] = {}
        self.top_level_calls: List[Tuple[Call, int]] = []
        self.requirements.update((name, {}) for name in self.functions)
        self.callees.update((name, set()) for name in self.functions)
        for name in known_globals:
            self.declare(name)

    def resolve(self, program: Program) -> Program:
        self.register_functions(program)
        self.all_globals = set(self.global_order)
        self.all_globals.update(stmt.name for stmt in program.body if isinstance(stmt, VarDecl))
        for stmt in program.body:
            self.resolve_statement(stmt)
        self.check_top_level_calls()
        return program

    def register_functions(self, program: Program):
        defined: Set[str] = set()
        for func in iter_function_defs(program.body):
            if func.name in defined:
                raise DuplicateFunctionError(f"function '{func.name}' is already defined", func.pos)
            defined.add(func.name)
            self.functions[func.name] = len(func.params)
            self.requirements[func.name] = {}
            self.callees[func.name] = set()

    # Scopes

    def resolve_block(self, statements: List[Node], scope: Optional[Scope] = None):
        previous = self.scope
        self.scope = scope if scope is not None else Scope(parent=self.scope)
        try:
            for stmt in statements:
                self.resolve_statement(stmt)
        finally:
            self.scope = previous

    def declare(self, name: str):
        self.scope.declare(name)
        if self.scope is self.global_scope and name not in self.global_order:
            self.global_order[name] = len(self.global_order)

    def check_name(self, name: str, position: Optional[Position]):
        if self.scope.lookup(name):
            return
        if self.current_function is not None and name in self.all_globals:
            # bound at runtime through the global environment; checked per call
            self.requirements[self.current_function.name].setdefault(name, position)
            return
        raise UndefinedNameError(f"variable '{name}' is not defined", position)

    # Statements

    def resolve_statement(self, node: Node):
        if isinstance(node, VarDecl):
            self.resolve_expression(node.expr)
            self.declare(node.name)
            return
        if isinstance(node, Assign):
            self.check_name(node.name, node.pos)
            self.resolve_expression(node.expr)
            return
        if isinstance(node, IfStmt):
            self.resolve_expression(node.condition)
            self.resolve_block(node.then_branch)
            if isinstance(node.else_branch, IfStmt):
                self.resolve_statement(node.else_branch)
            elif node.else_branch is not None:
                self.resolve_block(node.else_branch)
            return
        if isinstance(node, WhileStmt):
            self.resolve_expression(node.condition)
            self.resolve_block(node.body)
            return
        if isinstance(node, ForStmt):
            self.resolve_expression(node.start)
            self.resolve_expression(node.end)
            if node.step is not None:
                self.resolve_expression(node.step)
            loop_scope = Scope(parent=self.scope)
            loop_scope.declare(node.var)
            self.resolve_block(node.body, Scope(parent=loop_scope))
            return
        if isinstance(node, FuncDef):
            self.resolve_function(node)
            return
        if isinstance(node, ReturnStmt):
            if self.current_function is None:
                raise ReturnOutsideFunctionError("'return' outside of a function body", node.pos)
            if node.value is not None:
                self.resolve_expression(node.value)
            return
        if isinstance(node, ExprStmt):
            self.resolve_expression(node.expr)
            return
        raise NotImplementedError(f"resolve: unexpected node type {type(node)}")

    def resolve_function(self, node: FuncDef):
        enclosing = self.current_function
        self.current_function = node
        # The function scope hangs off nothing: globals are handled by check_name.
        scope = Scope()
        for param in node.params:
            scope.declare(param)
        try:
            self.resolve_block(node.body, scope)
        finally:
            self.current_function = enclosing

    # Expressions

    def resolve_expression(self, node: Node):
        if isinstance(node, Literal):
            return
        if isinstance(node, Identifier):
            self.check_name(node.name, node.pos)
            return
        if isinstance(node, Unary):
            self.resolve_expression(node.operand)
            return
        if isinstance(node, Binary):
            self.resolve_expression(node.left)
            self.resolve_expression(node.right)
            return
        if isinstance(node, Grouping):
            self.resolve_expression(node.expr)
            return
        if isinstance(node, Call):
            arity = self.functions.get(node.name)
            if arity is None:
                raise UndefinedFunctionError(f"function '{node.name}' is not defined", node.pos)
            if len(node.args) != arity:
                raise ArityMismatchError(
                    f"function '{node.name}' called with incorrect number of arguments: "
                    f"expected {arity}, found {len(node.args)}",
                    node.pos,
                )
            for arg in node.args:
                self.resolve_expression(arg)
            if self.current_function is None:
                self.top_level_calls.append((node, len(self.global_order)))
            else:
                self.callees[self.current_function.name].add(node.name)
            return
        raise NotImplementedError(f"resolve: unexpected node type {type(node)}")

    # Globals reached through calls

    def transitive_requirements(self) -> Dict[str, Dict[str, Position]]:
        closure = {name: dict(reqs) for name, reqs in self.requirements.items()}
        changed = True
        while changed:
            changed = False
            for name, callees in self.callees.items():
                for callee in callees:
                    for global_name, position in closure[callee].items():
                        if global_name not in closure[name]:
                            closure[name][global_name] = position
                            changed = True
        return closure

    def check_top_level_calls(self):
        if not self.top_level_calls:
            return
        closure = self.transitive_requirements()
        for call, declared_count in self.top_level_calls:
            for global_name in closure[call.name]:
                if self.global_order.get(global_name, declared_count) >= declared_count:
                    raise UndefinedNameError(
                        f"function '{call.name}' uses variable '{global_name}' "
                        f"before it is defined",
                        call.pos,
                    )


def resolve(program: Program, known_globals: Iterable[str] = (),
            known_functions: Optional[Dict[str, int]] = None) -> Program:
    """Validate `program`; return it unchanged or raise a ResolveError."""
    return Resolver(known_globals, known_functions).resolve(program)
