from typing import Any, Dict, Iterator, Optional, Tuple

from navacode.errors import Position, UndefinedNameError, UndefinedFunctionError


class Environment:
    """Represents a scope environment mapping identifiers to values.

    Only the global environment (the one without a parent) keeps a function
    table: function names are program-global.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.values: Dict[str, Any] = {}
        self.functions: Dict[str, Any] = {}

    @property
    def root(self) -> 'Environment':
        env = self
        while env.parent is not None:
            env = env.parent
        return env

    def get(self, name: str, position: Optional[Position] = None) -> Any:
        if name in self.values:
            return self.values[name]
        if self.parent:
            return self.parent.get(name, position)
        raise UndefinedNameError(f"variable '{name}' is not defined", position)

    def declare(self, name: str, value: Any):
        # Redeclaring a name in the same scope rebinds it.
        self.values[name] = value

    def set(self, name: str, value: Any, position: Optional[Position] = None):
        """Rebind `name` in the innermost environment that already has it."""
        if name in self.values:
            self.values[name] = value
        elif self.parent:
            self.parent.set(name, value, position)
        else:
            raise UndefinedNameError(f"variable '{name}' is not defined", position)

    def define_function(self, name: str, function: Any):
        self.root.functions[name] = function

    def get_function(self, name: str, position: Optional[Position] = None) -> Any:
        functions = self.root.functions
        if name not in functions:
            raise UndefinedFunctionError(f"function '{name}' is not defined", position)
        return functions[name]

    def items(self) -> Iterator[Tuple[str, Any]]:
        """Bindings of this environment only, in declaration order."""
        return iter(self.values.items())
