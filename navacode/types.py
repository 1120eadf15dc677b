"""Runtime values and helpers for Navacode.

Navacode values are plain Python objects: `int` for Integer, `float` for
Float and `bool` for Boolean. Statements and calls that produce nothing
yield the :data:`UNIT` singleton. Because `bool` is a subclass of `int`,
every check here tests for `bool` first.
"""

from __future__ import annotations

from typing import Any


class UnitVal:
    """Marker object for the Navacode unit (no value) result."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'unit'


UNIT = UnitVal()


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def type_name(value: Any) -> str:
    """Return the Navacode type name of a runtime value."""
    if isinstance(value, bool):
        return 'Boolean'
    if isinstance(value, int):
        return 'Integer'
    if isinstance(value, float):
        return 'Float'
    if isinstance(value, UnitVal):
        return 'Unit'
    return type(value).__name__


def is_truthy(value: Any) -> bool:
    """Truthiness rule for conditions, `not`, `and` and `or`.

    false, 0, 0.0 and unit are falsy; every other value is truthy.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, UnitVal):
        return False
    return True


def to_string(value: Any) -> str:
    """Convert a Navacode value to its printed representation."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return repr(value)
    return str(value)
