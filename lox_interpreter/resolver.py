from enum import Enum, auto
from typing import List, Dict, Set

from . import ast_nodes as ast
from .tokens import Token
from .errors import StaticError, NESTING_TOO_DEEP


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()


class Resolver(ast.ExprVisitor, ast.StmtVisitor):
    """
    The Resolver performs static analysis to resolve all local variables.

    For every Variable and Assign node that refers to a local binding it
    records how many scopes out that binding lives. Names it cannot find in
    any local scope are left out of the table and looked up in the globals at
    runtime. Errors are collected, not raised, so that one pass reports as
    many of them as it can.
    """
    def __init__(self):
        # Each scope maps var name -> is_defined
        self.scopes: List[Dict[str, bool]] = []
        self.locals: Dict[ast.Expr, int] = {}
        self.errors: List[StaticError] = []
        self.current_function = FunctionType.NONE
        # Globals whose initializer is being resolved right now.
        self._initializing_globals: Set[str] = set()

    @property
    def had_error(self) -> bool:
        return bool(self.errors)

    def resolve(self, statements: List[ast.Stmt]) -> Dict[ast.Expr, int]:
        for statement in statements:
            try:
                self._resolve_stmt(statement)
            except RecursionError:
                # The unwound statement left its scopes behind.
                self.scopes = []
                self.current_function = FunctionType.NONE
                self._report_nesting(statement)
        return self.locals

    def _report_nesting(self, statement: ast.Stmt):
        token = ast.anchor_token(statement)
        if token is None:
            error = StaticError(0, "", NESTING_TOO_DEEP)
        else:
            error = StaticError.at(token, NESTING_TOO_DEEP)
        self.errors.append(error)
        error.report()

    def _resolve_statements(self, statements: List[ast.Stmt]):
        for statement in statements:
            self._resolve_stmt(statement)

    def _resolve_stmt(self, stmt: ast.Stmt):
        stmt.accept(self)

    def _resolve_expr(self, expr: ast.Expr):
        expr.accept(self)

    # --- Scope Management ---
    def _begin_scope(self):
        self.scopes.append({})

    def _end_scope(self):
        self.scopes.pop()

    def _declare(self, name: Token):
        if not self.scopes: return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self._report_error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def _define(self, name: Token):
        if not self.scopes: return
        self.scopes[-1][name.lexeme] = True

    def _resolve_local(self, expr: ast.Expr, name: Token):
        for depth, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.locals[expr] = depth
                return
        # Not found. Assume it is global.

    def _resolve_function(self, params: List[Token], body: List[ast.Stmt], function_type: FunctionType):
        enclosing_function = self.current_function
        self.current_function = function_type

        self._begin_scope()
        for param in params:
            self._declare(param)
            self._define(param)
        self._resolve_statements(body)
        self._end_scope()

        self.current_function = enclosing_function

    # --- Visitor Methods for Scope ---

    def visit_block_stmt(self, stmt: ast.Block):
        self._begin_scope()
        self._resolve_statements(stmt.statements)
        self._end_scope()

    def visit_var_stmt(self, stmt: ast.Var):
        self._declare(stmt.name)
        if stmt.initializer is not None:
            if self.scopes:
                self._resolve_expr(stmt.initializer)
            else:
                self._initializing_globals.add(stmt.name.lexeme)
                try:
                    self._resolve_expr(stmt.initializer)
                finally:
                    self._initializing_globals.discard(stmt.name.lexeme)
        self._define(stmt.name)

    def visit_variable_expr(self, expr: ast.Variable):
        if self.scopes:
            if self.scopes[-1].get(expr.name.lexeme) is False:
                self._report_error(expr.name, "Can't read local variable in its own initializer.")
        elif expr.name.lexeme in self._initializing_globals:
            self._report_error(expr.name, "Can't read local variable in its own initializer.")
        self._resolve_local(expr, expr.name)

    def visit_assign_expr(self, expr: ast.Assign):
        self._resolve_expr(expr.value)
        self._resolve_local(expr, expr.name)

    def visit_function_stmt(self, stmt: ast.Function):
        # Defined before the body is resolved, so the function can call itself.
        self._declare(stmt.name)
        self._define(stmt.name)
        self._resolve_function(stmt.params, stmt.body, FunctionType.FUNCTION)

    def visit_lambda_expr(self, expr: ast.Lambda):
        self._resolve_function(expr.params, expr.body, FunctionType.FUNCTION)

    def visit_return_stmt(self, stmt: ast.Return):
        if self.current_function == FunctionType.NONE:
            self._report_error(stmt.keyword, "Can't return from top-level code.")
        if stmt.value is not None:
            self._resolve_expr(stmt.value)

    # --- Other Visitor Methods (Recursive Traversal) ---

    def visit_expression_stmt(self, stmt: ast.Expression): self._resolve_expr(stmt.expression)
    def visit_print_stmt(self, stmt: ast.Print): self._resolve_expr(stmt.expression)
    def visit_break_stmt(self, stmt: ast.Break): pass

    def visit_if_stmt(self, stmt: ast.If):
        self._resolve_expr(stmt.condition)
        self._resolve_stmt(stmt.then_branch)
        if stmt.else_branch is not None:
            self._resolve_stmt(stmt.else_branch)

    def visit_while_stmt(self, stmt: ast.While):
        self._resolve_expr(stmt.condition)
        self._resolve_stmt(stmt.body)

    def visit_binary_expr(self, expr: ast.Binary):
        self._resolve_expr(expr.left)
        self._resolve_expr(expr.right)

    def visit_call_expr(self, expr: ast.Call):
        self._resolve_expr(expr.callee)
        for argument in expr.arguments:
            self._resolve_expr(argument)

    def visit_grouping_expr(self, expr: ast.Grouping): self._resolve_expr(expr.expression)
    def visit_literal_expr(self, expr: ast.Literal): pass
    def visit_logical_expr(self, expr: ast.Logical): self._resolve_expr(expr.left); self._resolve_expr(expr.right)
    def visit_unary_expr(self, expr: ast.Unary): self._resolve_expr(expr.right)

    def _report_error(self, token: Token, message: str):
        error = StaticError.at(token, message)
        self.errors.append(error)
        error.report()
