"""
Abrupt completions.

Executing a statement yields None when it falls through normally, or one of
the signals below when it completes abruptly. The signals are returned, not
raised: every statement that runs other statements (blocks, loops, ifs, the
function call machinery) checks what came back and either handles it or
passes it outward.
"""
from dataclasses import dataclass
from typing import Any, Optional

from .tokens import Token


class Completion:
    """Base class for the ways a statement can stop short."""


@dataclass(frozen=True)
class ReturnSignal(Completion):
    """Unwinds to the nearest function call, which yields `value`."""
    keyword: Token
    value: Any


@dataclass(frozen=True)
class BreakSignal(Completion):
    """Unwinds to the nearest enclosing loop, which stops quietly."""
    keyword: Token


Outcome = Optional[Completion]
