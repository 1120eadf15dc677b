import json
from pathlib import Path

import pytest

from navacode.ast import ExprStmt, Literal, Program
from navacode.ast_json import ast_from_obj, ast_to_obj, program_from_obj
from navacode.errors import DivisionByZeroError, ParseError, Position
from navacode.interpreter import Interpreter, parse_program, resolve_for

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def reload(program):
    return ast_from_obj(json.loads(json.dumps(ast_to_obj(program))))


@pytest.mark.parametrize('path', sorted(EXAMPLES.glob('*.nava')), ids=lambda p: p.name)
def test_loaded_ast_executes_identically(path):
    program = parse_program(path.read_text(encoding='utf-8'))
    loaded = reload(program)
    assert loaded == program
    expected = Interpreter().run(program)
    interp = Interpreter()
    resolve_for(loaded, interp.global_env)
    assert interp.run(loaded) == expected


def test_positions_survive_serialization():
    program = parse_program('let a be 1\nif a then set a to 2 else if false then a end')
    loaded = reload(program)
    assert loaded.body[1].pos == Position(2, 1)
    assert loaded.body[1].then_branch[0].pos == Position(2, 15)
    assert isinstance(loaded.body[1].else_branch.then_branch, list)


def test_loaded_positions_reach_diagnostics():
    loaded = reload(parse_program('let q be 1 / 0'))
    with pytest.raises(DivisionByZeroError) as excinfo:
        Interpreter().run(loaded)
    assert excinfo.value.position == Position(1, 12)


def test_number_kinds_are_preserved():
    loaded = reload(Program([ExprStmt(Literal(2)), ExprStmt(Literal(2.0)), ExprStmt(Literal(True))]))
    assert [type(stmt.expr.value) for stmt in loaded.body] == [int, float, bool]


def test_unknown_node_type():
    with pytest.raises(ParseError):
        ast_from_obj({'type': 'Lambda'})
    with pytest.raises(TypeError):
        ast_to_obj(object())


def literal(value):
    return {'type': 'Literal', 'value': value, 'pos': [1, 1]}


@pytest.mark.parametrize('obj', [
    {'type': 'Binary', 'op': '%', 'left': literal(1), 'right': literal(2)},
    {'type': 'Unary', 'op': '!', 'operand': literal(1)},
    literal('seven'),
    literal(None),
    {'type': 'VarDecl', 'name': 'x'},
    {'type': 'VarDecl', 'name': 3, 'expr': literal(1)},
    {'type': 'ExprStmt', 'expr': {'type': 'ExprStmt', 'expr': literal(1)}},
    {'type': 'Call', 'name': 'f', 'args': 'nope'},
    {'type': 'FuncDef', 'name': 'f', 'params': ['a', 'a'], 'body': []},
    {'type': 'Identifier', 'name': 'x', 'pos': 'line 1'},
])
def test_malformed_nodes_are_rejected(obj):
    with pytest.raises(ParseError):
        ast_from_obj(obj)


def test_blocks_only_hold_statements():
    with pytest.raises(ParseError) as excinfo:
        ast_from_obj({'type': 'Program', 'body': [literal(1)]})
    assert 'not a statement' in str(excinfo.value)


def test_loaded_document_must_be_a_program():
    with pytest.raises(ParseError):
        program_from_obj(literal(1))
    program = parse_program('let a be 1')
    assert program_from_obj(ast_to_obj(program)) == program
