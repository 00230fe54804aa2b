from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Any, Optional, Union

from .tokens import Token


# --- Visitors ---
# Every pass over the tree (resolver, interpreter, printer) implements one
# method per node kind. Forgetting one is caught when the pass is instantiated.

class ExprVisitor(ABC):
    @abstractmethod
    def visit_assign_expr(self, expr: 'Assign'): ...

    @abstractmethod
    def visit_binary_expr(self, expr: 'Binary'): ...

    @abstractmethod
    def visit_call_expr(self, expr: 'Call'): ...

    @abstractmethod
    def visit_grouping_expr(self, expr: 'Grouping'): ...

    @abstractmethod
    def visit_lambda_expr(self, expr: 'Lambda'): ...

    @abstractmethod
    def visit_literal_expr(self, expr: 'Literal'): ...

    @abstractmethod
    def visit_logical_expr(self, expr: 'Logical'): ...

    @abstractmethod
    def visit_unary_expr(self, expr: 'Unary'): ...

    @abstractmethod
    def visit_variable_expr(self, expr: 'Variable'): ...


class StmtVisitor(ABC):
    @abstractmethod
    def visit_block_stmt(self, stmt: 'Block'): ...

    @abstractmethod
    def visit_break_stmt(self, stmt: 'Break'): ...

    @abstractmethod
    def visit_expression_stmt(self, stmt: 'Expression'): ...

    @abstractmethod
    def visit_function_stmt(self, stmt: 'Function'): ...

    @abstractmethod
    def visit_if_stmt(self, stmt: 'If'): ...

    @abstractmethod
    def visit_print_stmt(self, stmt: 'Print'): ...

    @abstractmethod
    def visit_return_stmt(self, stmt: 'Return'): ...

    @abstractmethod
    def visit_var_stmt(self, stmt: 'Var'): ...

    @abstractmethod
    def visit_while_stmt(self, stmt: 'While'): ...


# --- Node bases ---
# Nodes compare and hash by identity (eq=False): the resolver keys its
# distance table on the node object, and two identical-looking references
# must resolve independently.

class Expr(ABC):
    @abstractmethod
    def accept(self, visitor: ExprVisitor): ...


class Stmt(ABC):
    @abstractmethod
    def accept(self, visitor: StmtVisitor): ...


# --- Expressions ---

@dataclass(frozen=True, eq=False)
class Assign(Expr):
    """name = value. Evaluates to value."""
    name: Token
    value: Expr

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_assign_expr(self)


@dataclass(frozen=True, eq=False)
class Binary(Expr):
    """Arithmetic, comparison and equality operators."""
    left: Expr
    operator: Token
    right: Expr

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_binary_expr(self)


@dataclass(frozen=True, eq=False)
class Call(Expr):
    # paren is the closing ')', used to place call errors.
    callee: Expr
    paren: Token
    arguments: List[Expr]

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_call_expr(self)


@dataclass(frozen=True, eq=False)
class Grouping(Expr):
    expression: Expr

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_grouping_expr(self)


@dataclass(frozen=True, eq=False)
class Lambda(Expr):
    """An anonymous function expression: fun (a, b) { ... }"""
    keyword: Token
    params: List[Token]
    body: List['Stmt']

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_lambda_expr(self)


@dataclass(frozen=True, eq=False)
class Literal(Expr):
    """nil, true, false, a number (always a float) or a string."""
    value: Any

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_literal_expr(self)


@dataclass(frozen=True, eq=False)
class Logical(Expr):
    """'and' / 'or'. Kept apart from Binary because the right side may never run."""
    left: Expr
    operator: Token
    right: Expr

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_logical_expr(self)


@dataclass(frozen=True, eq=False)
class Unary(Expr):
    operator: Token
    right: Expr

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_unary_expr(self)


@dataclass(frozen=True, eq=False)
class Variable(Expr):
    name: Token

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_variable_expr(self)


# --- Statements ---

@dataclass(frozen=True, eq=False)
class Block(Stmt):
    """
    A braced list of statements run in a fresh scope. Blocks the parser
    builds while desugaring a for loop carry the 'for' keyword as brace.
    """
    brace: Token
    statements: List[Stmt]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_block_stmt(self)


@dataclass(frozen=True, eq=False)
class Break(Stmt):
    keyword: Token

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_break_stmt(self)


@dataclass(frozen=True, eq=False)
class Expression(Stmt):
    """An expression evaluated for its side effects."""
    expression: Expr

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_expression_stmt(self)


@dataclass(frozen=True, eq=False)
class Function(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_function_stmt(self)


@dataclass(frozen=True, eq=False)
class If(Stmt):
    keyword: Token
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_if_stmt(self)


@dataclass(frozen=True, eq=False)
class Print(Stmt):
    expression: Expr

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_print_stmt(self)


@dataclass(frozen=True, eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_return_stmt(self)


@dataclass(frozen=True, eq=False)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_var_stmt(self)


@dataclass(frozen=True, eq=False)
class While(Stmt):
    """A while loop. for loops are desugared into this, keyword being 'for'."""
    keyword: Token
    condition: Expr
    body: Stmt

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_while_stmt(self)


def anchor_token(node: Union[Expr, Stmt]) -> Optional[Token]:
    """
    A token that places `node` in the source, for errors that are not tied to
    any one token (running out of stack, for instance). Nodes without a token
    of their own are searched through their child expression. Iterative, as it
    is called right after a RecursionError.
    """
    while True:
        if isinstance(node, (Assign, Variable, Var, Function)):
            return node.name
        if isinstance(node, (Binary, Logical, Unary)):
            return node.operator
        if isinstance(node, Call):
            return node.paren
        if isinstance(node, Block):
            return node.brace
        if isinstance(node, (Lambda, Return, Break, If, While)):
            return node.keyword
        if isinstance(node, (Grouping, Expression, Print)):
            node = node.expression
            continue
        # A bare literal.
        return None
