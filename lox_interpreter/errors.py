import sys
from dataclasses import dataclass
from typing import Optional

from .tokens import Token, TokenType

# Reported when a program nests deeper than the host stack allows.
NESTING_TOO_DEEP = "Nesting too deep."


def report(line: int, where: str, message: str):
    """Reports a static (lexical, syntax or resolution) error to stderr."""
    print(f"[Line {line}] Error{where}: {message}", file=sys.stderr)


def where_of(token: Optional[Token]) -> str:
    """The ' at ...' fragment that locates an error on its token."""
    if token is None:
        return ""
    if token.token_type == TokenType.EOF:
        return " at end"
    return f" at '{token.lexeme}'"


@dataclass(frozen=True)
class StaticError:
    """An error found before execution. The program must not run."""
    line: int
    where: str
    message: str

    @classmethod
    def at(cls, token: Token, message: str) -> 'StaticError':
        return cls(token.line, where_of(token), message)

    def report(self):
        report(self.line, self.where, self.message)

    def __str__(self) -> str:
        return f"[Line {self.line}] Error{self.where}: {self.message}"


class LoxRuntimeError(RuntimeError):
    """Custom exception for reporting runtime errors."""
    def __init__(self, token: Token, message: str):
        self.token = token
        self.message = message
        super().__init__(self.message)


class ResolutionMismatchError(Exception):
    """
    The runtime scope chain is shallower than a distance computed by the
    resolver. This is a bug in the interpreter, never in the user's program.
    """
    def __init__(self, name: Token, distance: int):
        self.name = name
        self.distance = distance
        super().__init__(f"Resolver/runtime mismatch: '{name.lexeme}' resolved {distance} scopes out.")


def runtime_error(error: LoxRuntimeError):
    """Reports a runtime error to stderr."""
    print(f"[Line {error.token.line}] RuntimeError: {error.message}", file=sys.stderr)


def internal_error(error: ResolutionMismatchError):
    print(f"[Line {error.name.line}] InternalError: {error}", file=sys.stderr)
