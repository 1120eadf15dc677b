import pytest

from navacode.environment import Environment
from navacode.errors import (
    DivisionByZeroError, NumericOverflowError, Position, RuntimeTypeError, UndefinedNameError,
)
from navacode.interpreter import Interpreter, parse_program, run_program
from navacode.types import UNIT

FACTORIAL = (
    'define function factorial with n as\n'
    '  if n <= 1 then\n'
    '    return 1\n'
    '  end\n'
    '  return n * factorial(n - 1)\n'
    'end\n'
)


def value_of(source, name):
    return run_program(source).environment.get(name)


def test_precedence():
    assert value_of('let a be 1 + 2 * 3', 'a') == 7


def test_left_associative_subtraction():
    assert value_of('let a be 10 - 3 - 2', 'a') == 5


def test_grouping_overrides_precedence():
    assert value_of('let b be (1 + 2) * 3', 'b') == 9


def test_division_always_yields_float():
    q = value_of('let q be 4 / 2', 'q')
    assert q == 2.0
    assert isinstance(q, float)


def test_integer_arithmetic_stays_integer():
    value = run_program('7 * 3 - 1').value
    assert value == 20
    assert isinstance(value, int)


def test_mixed_integer_and_float_operands():
    value = run_program('1 + 0.5').value
    assert value == 1.5
    assert run_program('2 == 2.0').value is True
    assert run_program('1 < 1.5').value is True


def test_and_short_circuits_to_falsy_left_operand():
    assert value_of('let r be 0 and (1 / 0)', 'r') == 0


def test_or_yields_operand_values():
    assert run_program('0 or 5').value == 5
    assert run_program('3 or (1 / 0)').value == 3
    assert run_program('2 and 7').value == 7


def test_recursive_factorial():
    assert run_program(FACTORIAL + 'factorial(5)').value == 120


def test_descending_for_with_negative_step():
    result = run_program(
        'let seen be 0\n'
        'for i from 10 to 1 step -2 do\n'
        '  set seen to seen * 100 + i\n'
        'end\n'
        'seen'
    )
    assert result.value == 1008060402


def test_for_with_mismatched_step_runs_zero_times():
    result = run_program(
        'let count be 0\n'
        'for i from 1 to 10 step -1 do\n'
        '  set count to count + 1\n'
        'end\n'
        'count'
    )
    assert result.value == 0


def test_for_loop_includes_end_value():
    assert run_program('let s be 0\nfor i from 1 to 4 do set s to s + i end\ns').value == 10


def test_for_loop_with_float_step():
    result = run_program('let n be 0\nfor x from 0 to 1 step 0.25 do set n to n + 1 end\nn')
    assert result.value == 5


def test_while_loop():
    result = run_program('let n be 5\nlet f be 1\nwhile n > 1 do set f to f * n set n to n - 1 end\nf')
    assert result.value == 120


def test_else_if_picks_first_truthy_branch():
    source = (
        'define function sign with n as\n'
        '  if n < 0 then return -1\n'
        '  else if n == 0 then return 0\n'
        '  else if n > 0 then return 1\n'
        '  else return 99\n'
        '  end\n'
        'end\n'
    )
    assert run_program(source + 'sign(-5)').value == -1
    assert run_program(source + 'sign(0)').value == 0
    assert run_program(source + 'sign(8)').value == 1


def test_block_declarations_shadow_then_disappear():
    result = run_program(
        'let x be 1\n'
        'if true then\n'
        '  let x be 2\n'
        'end\n'
        'x'
    )
    assert result.value == 1


def test_assignment_updates_enclosing_binding():
    result = run_program('let x be 1\nif true then set x to 5 end\nx')
    assert result.value == 5


def test_redeclaration_rebinds():
    assert run_program('let x be 1\nlet x be x + 1\nx').value == 2


def test_function_without_return_yields_unit():
    assert run_program('define function f as let x be 1 end\nf()').value is UNIT


def test_bare_return_yields_unit():
    assert run_program('define function f as return end\nf()').value is UNIT


def test_return_inside_loop_leaves_function():
    source = (
        'define function first_over with limit as\n'
        '  for i from 1 to 100 do\n'
        '    if i * i > limit then return i end\n'
        '  end\n'
        '  return 0\n'
        'end\n'
        'first_over(50)'
    )
    assert run_program(source).value == 8


def test_functions_use_globals_and_their_own_locals():
    result = run_program(
        'let base be 10\n'
        'define function add_base with x as\n'
        '  let y be x + base\n'
        '  return y\n'
        'end\n'
        'add_base(5)'
    )
    assert result.value == 15
    # the call's locals do not leak into the global environment
    with pytest.raises(UndefinedNameError):
        result.environment.get('y')


def test_function_can_update_globals():
    result = run_program(
        'let counter be 0\n'
        'define function bump as set counter to counter + 1 end\n'
        'bump()\nbump()\ncounter'
    )
    assert result.value == 2


def test_final_value_is_unit_when_last_statement_is_not_an_expression():
    assert run_program('let a be 1').value is UNIT
    assert run_program('').value is UNIT


def test_truthiness():
    assert run_program('not 0').value is True
    assert run_program('not 0.0').value is True
    assert run_program('not 0.5').value is False
    assert run_program('not false').value is True
    assert run_program('define function f as end\nnot f()').value is True


def test_boolean_equality():
    assert run_program('true == true').value is True
    assert run_program('true != false').value is True


def test_division_by_zero():
    with pytest.raises(DivisionByZeroError) as excinfo:
        run_program('let q be 1 / 0')
    assert str(excinfo.value.diagnostic) == 'ERROR: at 1:12: [DivisionByZeroError] division by zero'
    with pytest.raises(DivisionByZeroError):
        run_program('1.5 / 0.0')


def test_unary_minus_on_boolean_is_a_type_error():
    with pytest.raises(RuntimeTypeError) as excinfo:
        run_program('let x be -true')
    diagnostic = excinfo.value.diagnostic
    assert diagnostic.kind == 'TypeError'
    assert diagnostic.phase == 'execute'
    assert diagnostic.position == Position(1, 10)


@pytest.mark.parametrize('source', ['true + 1', 'true == 1', '1 < false', 'false * false'])
def test_booleans_do_not_mix_with_numbers(source):
    with pytest.raises(RuntimeTypeError):
        run_program(source)


def test_for_bounds_must_be_numbers():
    with pytest.raises(RuntimeTypeError):
        run_program('for i from true to 3 do end')


def test_run_against_supplied_environment():
    env = Environment()
    env.declare('x', 21)
    result = run_program('let y be x * 2\ny', env=env)
    assert result.value == 42
    assert result.environment is env
    assert env.get('y') == 42


def test_functions_persist_in_supplied_environment():
    env = Environment()
    run_program('define function twice with n as return n * 2 end', env=env)
    assert run_program('twice(4)', env=env).value == 8


def test_lark_engine_runs_programs():
    assert run_program(FACTORIAL + 'factorial(6)', engine='lark').value == 720


def test_unknown_engine():
    with pytest.raises(ValueError):
        parse_program('1', engine='yacc')


def test_interpreter_runs_parsed_program_directly():
    program = parse_program('let a be 2\na * a')
    interp = Interpreter()
    assert interp.run(program) == 4
    assert interp.global_env.get('a') == 2


def test_debug_trace_to_file(tmp_path):
    trace = tmp_path / 'trace.txt'
    run_program(FACTORIAL + 'factorial(3)', debug_level=1, debug_file=str(trace))
    lines = trace.read_text(encoding='utf-8').splitlines()
    assert lines[0] == 'call factorial(3)'
    assert 'return from factorial: 6' in lines


def test_debug_trace_levels_to_stderr(capsys):
    run_program('let a be 1\nif a then set a to 2 end', debug_level=3)
    err = capsys.readouterr().err
    assert 'declare a: Integer = 1' in err
    assert 'if condition 1 -> True' in err
    assert 'assign a = 2' in err


def test_no_trace_by_default(capsys):
    run_program(FACTORIAL + 'factorial(3)')
    assert capsys.readouterr().err == ''


def test_unbounded_recursion_is_not_converted():
    with pytest.raises(RecursionError):
        run_program('define function forever with n as return forever(n + 1) end\nforever(0)')


BIG_FACTORIAL = 'let f be 1\nfor i from 1 to 200 do set f to f * i end\n'


def test_division_of_large_integers_is_exact():
    assert run_program(BIG_FACTORIAL + 'f / f').value == 1.0
    assert run_program(FACTORIAL + 'factorial(180) / factorial(179)').value == 180.0


def test_large_integers_compare_with_floats():
    assert run_program(BIG_FACTORIAL + 'f > 1.5').value is True
    assert run_program(BIG_FACTORIAL + 'f == 0.5').value is False


def test_float_overflow_is_a_diagnostic():
    with pytest.raises(NumericOverflowError) as excinfo:
        run_program(BIG_FACTORIAL + 'f * 1.5')
    diagnostic = excinfo.value.diagnostic
    assert diagnostic.kind == 'OverflowError'
    assert diagnostic.phase == 'execute'
    assert diagnostic.position == Position(3, 3)


def test_deep_recursion():
    source = (
        'define function depth with n as\n'
        '  if n == 0 then return 0 end\n'
        '  return 1 + depth(n - 1)\n'
        'end\n'
        'depth(5000)'
    )
    assert run_program(source).value == 5000
