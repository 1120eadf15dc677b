from pathlib import Path

import pytest

from navacode.errors import LexError, ParseError, Position
from navacode.grammar import parse_with_grammar
from navacode.parser import parse_source

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'

SNIPPETS = [
    'let a be 1 + 2 * 3',
    'let a be 10 - 3 - 2',
    'let b be (1 + 2) * 3',
    'let c be not a == b or - -x and y <= 2.5',
    'set a to f(1, g(), h(x) / 2)',
    'if a then 1 else if b then 2 else 3 end',
    'if a then end',
    'while x > 0 do set x to x - 1 end',
    'for i from 10 to 1 step -2 do i end',
    'for i from 1 to n i end',
    'define function f as return end',
    'define function g with a, b as return a + b end',
    '',
]


@pytest.mark.parametrize('source', SNIPPETS)
def test_grammar_builds_the_same_ast(source):
    assert parse_with_grammar(source) == parse_source(source)


@pytest.mark.parametrize('path', sorted(EXAMPLES.glob('*.nava')), ids=lambda p: p.name)
def test_grammar_agrees_on_example_programs(path):
    source = path.read_text(encoding='utf-8')
    assert parse_with_grammar(source) == parse_source(source)


def test_grammar_positions():
    program = parse_with_grammar('let a be 1\nif a then\n  a\nend')
    assert program.body[0].pos == Position(1, 5)
    assert program.body[1].pos == Position(2, 1)
    assert program.body[1].then_branch[0].pos == Position(3, 3)


def test_else_if_position_points_at_if():
    program = parse_with_grammar('if a then 1\nelse if b then 2 end')
    assert program.body[0].else_branch.pos == Position(2, 6)


def test_grammar_lex_error():
    with pytest.raises(LexError) as excinfo:
        parse_with_grammar('let a be 1 $ 2')
    assert excinfo.value.position == Position(1, 12)


def test_grammar_parse_error():
    with pytest.raises(ParseError) as excinfo:
        parse_with_grammar('let 5 be 1')
    assert excinfo.value.diagnostic.phase == 'parse'
    assert excinfo.value.position == Position(1, 5)


def test_grammar_unexpected_end_of_input():
    with pytest.raises(ParseError) as excinfo:
        parse_with_grammar('while true do 1')
    assert 'end of input' in str(excinfo.value)


def test_grammar_duplicate_parameters():
    with pytest.raises(ParseError) as excinfo:
        parse_with_grammar('define function f with a, a as end')
    assert "duplicate parameter 'a'" in str(excinfo.value)


def test_grammar_reserves_do():
    with pytest.raises(ParseError):
        parse_with_grammar('let do be 1')
