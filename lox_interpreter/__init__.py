from .lox import Lox, main
from .interpreter import Interpreter
from .resolver import Resolver

__all__ = ["Lox", "main", "Interpreter", "Resolver"]
