import math
import time
from typing import Dict, List, Any, Optional

from . import ast_nodes as ast
from .tokens import Token, TokenType
from .errors import LoxRuntimeError, ResolutionMismatchError, runtime_error, internal_error
from .environment import Environment
from .callables import LoxCallable, LoxFunction, LoxNativeFunction
from .signals import BreakSignal, Outcome, ReturnSignal


def stringify(value: Any) -> str:
    """The text `print` shows for a value."""
    if value is None: return "nil"
    if isinstance(value, bool): return "true" if value else "false"
    if isinstance(value, float):
        return _format_number(value)
    return str(value)


def _format_number(value: float) -> str:
    """
    Integral values drop their '.0'. Magnitudes Python writes in exponent
    form keep a one-digit fraction and a plain exponent: 1e+24 -> 1.0E24,
    1.5e-07 -> 1.5E-7.
    """
    if math.isnan(value): return "NaN"
    if math.isinf(value): return "Infinity" if value > 0 else "-Infinity"

    text = repr(value)
    if "e" in text:
        mantissa, exponent = text.split("e")
        if "." not in mantissa:
            mantissa += ".0"
        return f"{mantissa}E{int(exponent)}"
    if text.endswith(".0"):
        text = text[:-2]
    return text


class Interpreter(ast.ExprVisitor, ast.StmtVisitor):
    """
    The Interpreter walks the AST and executes the code.

    One Interpreter is one session: its globals and its resolution table
    outlive a single call to interpret(), which is what a REPL needs.
    """
    def __init__(self):
        self.globals = Environment()
        self.environment = self.globals
        self.locals: Dict[ast.Expr, int] = {}
        self.had_runtime_error = False

        self.globals.define("clock", LoxNativeFunction("clock", 0, time.time))

    def interpret(self, statements: List[ast.Stmt], locals: Optional[Dict[ast.Expr, int]] = None) -> Optional[Exception]:
        """
        The main entry point for the interpreter.
        Runs until the program ends or the first runtime error, which is
        reported and returned.
        """
        if locals:
            self.locals.update(locals)
        try:
            for statement in statements:
                self._execute_top_level(statement)
        except LoxRuntimeError as error:
            self.had_runtime_error = True
            runtime_error(error)
            return error
        except ResolutionMismatchError as error:
            self.had_runtime_error = True
            internal_error(error)
            return error
        return None

    def _execute_top_level(self, stmt: ast.Stmt):
        try:
            outcome = self._execute(stmt)
        except RecursionError:
            # Nesting deep enough to exhaust the stack outside any call.
            # Frames restored their environments while unwinding.
            token = ast.anchor_token(stmt) or Token(TokenType.EOF, "", None, 0)
            raise LoxRuntimeError(token, "Stack overflow.") from None
        if isinstance(outcome, BreakSignal):
            raise LoxRuntimeError(outcome.keyword, "Cannot use 'break' outside a loop.")
        if isinstance(outcome, ReturnSignal):
            # The resolver rejects this; only a bypassed resolver gets here.
            raise LoxRuntimeError(outcome.keyword, "Can't return from top-level code.")

    def _execute(self, stmt: ast.Stmt) -> Outcome:
        """Helper to execute a single statement."""
        return stmt.accept(self)

    def _evaluate(self, expr: ast.Expr) -> Any:
        """Helper to evaluate a single expression."""
        return expr.accept(self)

    def execute_block(self, statements: List[ast.Stmt], environment: Environment) -> Outcome:
        previous = self.environment
        try:
            self.environment = environment
            for statement in statements:
                outcome = self._execute(statement)
                if outcome is not None:
                    return outcome
        finally:
            self.environment = previous
        return None

    # --- STATEMENT VISITOR METHODS ---

    def visit_expression_stmt(self, stmt: ast.Expression) -> Outcome:
        self._evaluate(stmt.expression)
        return None

    def visit_print_stmt(self, stmt: ast.Print) -> Outcome:
        value = self._evaluate(stmt.expression)
        print(stringify(value))
        return None

    def visit_var_stmt(self, stmt: ast.Var) -> Outcome:
        value = None
        if stmt.initializer is not None:
            value = self._evaluate(stmt.initializer)

        self.environment.define(stmt.name.lexeme, value)
        return None

    def visit_block_stmt(self, stmt: ast.Block) -> Outcome:
        return self.execute_block(stmt.statements, Environment(self.environment))

    def visit_if_stmt(self, stmt: ast.If) -> Outcome:
        if self._is_truthy(self._evaluate(stmt.condition)):
            return self._execute(stmt.then_branch)
        elif stmt.else_branch is not None:
            return self._execute(stmt.else_branch)
        return None

    def visit_while_stmt(self, stmt: ast.While) -> Outcome:
        while self._is_truthy(self._evaluate(stmt.condition)):
            outcome = self._execute(stmt.body)
            if isinstance(outcome, BreakSignal):
                break
            if outcome is not None:
                return outcome
        return None

    def visit_function_stmt(self, stmt: ast.Function) -> Outcome:
        function = LoxFunction.from_declaration(stmt, self.environment)
        self.environment.define(stmt.name.lexeme, function)
        return None

    def visit_return_stmt(self, stmt: ast.Return) -> Outcome:
        value = None
        if stmt.value is not None:
            value = self._evaluate(stmt.value)
        return ReturnSignal(stmt.keyword, value)

    def visit_break_stmt(self, stmt: ast.Break) -> Outcome:
        return BreakSignal(stmt.keyword)

    # --- HELPER METHODS FOR RUNTIME CHECKS ---

    def _is_truthy(self, obj: Any) -> bool:
        """Defines what is 'true' in Lox. False and nil are falsey."""
        if obj is None: return False
        if isinstance(obj, bool): return obj
        return True

    def _is_equal(self, a: Any, b: Any) -> bool:
        """Defines equality in Lox. Values of different types are never equal."""
        if a is None: return b is None
        if type(a) is not type(b): return False
        return a == b

    def _check_number_operand(self, operator: Token, operand: Any):
        if isinstance(operand, float): return
        raise LoxRuntimeError(operator, "Operand must be a number.")

    def _check_number_operands(self, operator: Token, left: Any, right: Any):
        if isinstance(left, float) and isinstance(right, float): return
        raise LoxRuntimeError(operator, "Operands must be numbers.")

    def _look_up_variable(self, name: Token, expr: ast.Expr) -> Any:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name)
        return self.globals.get(name)

    # --- EXPRESSION VISITOR METHODS ---

    def visit_binary_expr(self, expr: ast.Binary):
        left = self._evaluate(expr.left)
        right = self._evaluate(expr.right)
        op_type = expr.operator.token_type

        if op_type == TokenType.PLUS:
            if isinstance(left, str) or isinstance(right, str):
                return stringify(left) + stringify(right)
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            raise LoxRuntimeError(expr.operator, "Operands must be two numbers or at least one string.")

        if op_type == TokenType.EQUAL_EQUAL:
            return self._is_equal(left, right)
        if op_type == TokenType.BANG_EQUAL:
            return not self._is_equal(left, right)

        self._check_number_operands(expr.operator, left, right)
        if op_type == TokenType.MINUS:
            return left - right
        if op_type == TokenType.STAR:
            return left * right
        if op_type == TokenType.SLASH:
            if right == 0.0:
                raise LoxRuntimeError(expr.operator, "Division by zero.")
            return left / right
        if op_type == TokenType.GREATER:
            return left > right
        if op_type == TokenType.GREATER_EQUAL:
            return left >= right
        if op_type == TokenType.LESS:
            return left < right
        if op_type == TokenType.LESS_EQUAL:
            return left <= right

        # Should be unreachable.
        return None

    def visit_grouping_expr(self, expr: ast.Grouping):
        return self._evaluate(expr.expression)

    def visit_literal_expr(self, expr: ast.Literal):
        return expr.value

    def visit_unary_expr(self, expr: ast.Unary):
        right = self._evaluate(expr.right)
        if expr.operator.token_type == TokenType.MINUS:
            self._check_number_operand(expr.operator, right)
            return -right
        if expr.operator.token_type == TokenType.BANG:
            return not self._is_truthy(right)

        # Should be unreachable.
        return None

    def visit_variable_expr(self, expr: ast.Variable):
        return self._look_up_variable(expr.name, expr)

    def visit_assign_expr(self, expr: ast.Assign):
        value = self._evaluate(expr.value)

        distance = self.locals.get(expr)
        if distance is not None:
            self.environment.assign_at(distance, expr.name, value)
        else:
            self.globals.assign(expr.name, value)
        return value

    def visit_logical_expr(self, expr: ast.Logical):
        left = self._evaluate(expr.left)

        if expr.operator.token_type == TokenType.OR:
            if self._is_truthy(left):
                return left
        else: # AND
            if not self._is_truthy(left):
                return left

        return self._evaluate(expr.right)

    def visit_lambda_expr(self, expr: ast.Lambda):
        return LoxFunction.from_lambda(expr, self.environment)

    def visit_call_expr(self, expr: ast.Call):
        callee = self._evaluate(expr.callee)

        arguments = []
        for argument in expr.arguments:
            arguments.append(self._evaluate(argument))

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions.")

        if len(arguments) != callee.arity():
            raise LoxRuntimeError(expr.paren, f"Expected {callee.arity()} arguments but got {len(arguments)}.")

        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise LoxRuntimeError(expr.paren, "Stack overflow.") from None
