# Navacode language package
# This package provides the lexer, parsers, resolver and interpreter for Navacode.
from .environment import Environment
from .errors import Diagnostic, NavacodeError, Position
from .interpreter import run_program, run_file, parse_program, Interpreter, RunResult
from .lexer import tokenize
from .resolver import resolve
from .types import UNIT

__all__ = [
    'run_program',
    'run_file',
    'parse_program',
    'resolve',
    'tokenize',
    'Interpreter',
    'Environment',
    'RunResult',
    'NavacodeError',
    'Diagnostic',
    'Position',
    'UNIT',
]
