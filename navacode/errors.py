"""Diagnostics shared by every phase of the Navacode pipeline.

Each phase (lexing, parsing, resolution, execution) reports failures by
raising a subclass of :class:`NavacodeError`. The exception carries a
:class:`Diagnostic` record so that a caller can report any failure the same
way regardless of which phase produced it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Position:
    """A 1-based line/column location in the source text."""
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass
class Diagnostic:
    """A located failure report.

    `phase` is one of 'lex', 'parse', 'resolve' or 'execute'. `kind` names
    the failure category (e.g. 'UndefinedNameError'). `position` is None
    when no meaningful source location exists.
    """
    phase: str
    kind: str
    message: str
    position: Optional[Position] = None

    def __str__(self) -> str:
        if self.position is None:
            return f"ERROR: [{self.kind}] {self.message}"
        return f"ERROR: at {self.position}: [{self.kind}] {self.message}"


class NavacodeError(Exception):
    """Base exception for all structured Navacode failures."""
    phase = 'execute'
    kind = 'Error'

    def __init__(self, message: str, position: Optional[Position] = None):
        self.diagnostic = Diagnostic(self.phase, self.kind, message, position)
        super().__init__(str(self.diagnostic))

    @property
    def position(self) -> Optional[Position]:
        return self.diagnostic.position


class LexError(NavacodeError):
    phase = 'lex'
    kind = 'LexError'


class ParseError(NavacodeError):
    phase = 'parse'
    kind = 'ParseError'


class ResolveError(NavacodeError):
    """Base class for the failures detected before execution."""
    phase = 'resolve'
    kind = 'ResolveError'


class UndefinedNameError(ResolveError):
    kind = 'UndefinedNameError'


class UndefinedFunctionError(ResolveError):
    kind = 'UndefinedFunctionError'


class ArityMismatchError(ResolveError):
    kind = 'ArityMismatchError'


class ReturnOutsideFunctionError(ResolveError):
    kind = 'ReturnOutsideFunctionError'


class DuplicateFunctionError(ResolveError):
    kind = 'DuplicateFunctionError'


class DivisionByZeroError(NavacodeError):
    kind = 'DivisionByZeroError'


class RuntimeTypeError(NavacodeError):
    """Operand of the wrong kind, e.g. unary minus applied to a Boolean."""
    kind = 'TypeError'


class NumericOverflowError(NavacodeError):
    """An Integer too large to take part in Float arithmetic."""
    kind = 'OverflowError'
