from typing import Dict, Any, Optional

from .tokens import Token
from .errors import LoxRuntimeError, ResolutionMismatchError

class Environment:
    """
    Manages variable scopes, storing and retrieving variable values.

    Frames are shared, not copied: every closure created in a scope holds a
    reference to the same Environment and sees the others' assignments.
    """
    def __init__(self, enclosing: Optional['Environment'] = None):
        self.values: Dict[str, Any] = {}
        self.enclosing: Optional['Environment'] = enclosing

    def define(self, name: str, value: Any):
        """
        Defines a new variable in the current scope.
        Redefining a name in the same scope overwrites it.
        """
        self.values[name] = value

    def get(self, name: Token) -> Any:
        """
        Retrieves the value of a variable.
        If not found in the current scope, it checks the enclosing scope.
        """
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                return environment.values[name.lexeme]
            environment = environment.enclosing

        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value: Any):
        """
        Assigns a new value to an existing variable.
        If not found in the current scope, it checks the enclosing scope.
        """
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                environment.values[name.lexeme] = value
                return
            environment = environment.enclosing

        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def ancestor(self, distance: int, name: Token) -> 'Environment':
        """Walks exactly `distance` enclosing links out from this scope."""
        environment = self
        for _ in range(distance):
            environment = environment.enclosing
            if environment is None:
                raise ResolutionMismatchError(name, distance)
        return environment

    def get_at(self, distance: int, name: Token) -> Any:
        values = self.ancestor(distance, name).values
        if name.lexeme not in values:
            # Resolved, but the declaring statement has not run yet.
            raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")
        return values[name.lexeme]

    def assign_at(self, distance: int, name: Token, value: Any):
        values = self.ancestor(distance, name).values
        if name.lexeme not in values:
            raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")
        values[name.lexeme] = value
