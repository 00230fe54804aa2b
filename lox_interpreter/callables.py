from abc import ABC, abstractmethod
from typing import Callable, List, Any, Optional, TYPE_CHECKING

from . import ast_nodes as ast
from .tokens import Token
from .environment import Environment
from .errors import LoxRuntimeError
from .signals import ReturnSignal, BreakSignal

# This is a common pattern to break circular import cycles.
# The import is only done for static type checking, not at runtime.
if TYPE_CHECKING:
    from .interpreter import Interpreter


class LoxCallable(ABC):
    """
    An abstract base class for all objects that can be called like a function.
    """
    @abstractmethod
    def arity(self) -> int:
        """Returns the number of arguments the callable expects."""
        raise NotImplementedError

    @abstractmethod
    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        """Executes the callable's logic."""
        raise NotImplementedError

    def __str__(self) -> str:
        return "<native fn>"


class LoxNativeFunction(LoxCallable):
    """A wrapper for native Python functions exposed to Lox."""
    def __init__(self, name: str, arity: int, func: Callable[..., Any]):
        self.name = name
        self._arity = arity
        self.func = func

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        return self.func(*arguments)


class LoxFunction(LoxCallable):
    """
    Represents a user-defined function, named or anonymous.
    """
    def __init__(self, name: Optional[Token], params: List[Token], body: List[ast.Stmt], closure: Environment):
        self.name = name
        self.params = params
        self.body = body
        self.closure = closure # The environment where the function was declared.

    @classmethod
    def from_declaration(cls, declaration: ast.Function, closure: Environment) -> 'LoxFunction':
        return cls(declaration.name, declaration.params, declaration.body, closure)

    @classmethod
    def from_lambda(cls, expr: ast.Lambda, closure: Environment) -> 'LoxFunction':
        return cls(None, expr.params, expr.body, closure)

    def arity(self) -> int:
        """The number of parameters the function declares."""
        return len(self.params)

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        """
        Executes the function. This involves creating a new environment for the
        function's scope, binding arguments to parameters, and then executing
        the function's body.
        """
        # It encloses the function's closure, not the caller's environment.
        # This is what enables lexical scoping.
        environment = Environment(self.closure)
        for param, argument in zip(self.params, arguments):
            environment.define(param.lexeme, argument)

        outcome = interpreter.execute_block(self.body, environment)
        if isinstance(outcome, ReturnSignal):
            return outcome.value
        if isinstance(outcome, BreakSignal):
            raise LoxRuntimeError(outcome.keyword, "Cannot use 'break' outside a loop.")

        # If no 'return' is encountered, functions implicitly return nil.
        return None

    def __str__(self) -> str:
        if self.name is None:
            return "<fn>"
        return f"<fn {self.name.lexeme}>"
