from typing import List

from . import ast_nodes as ast

class AstPrinter(ast.ExprVisitor, ast.StmtVisitor):
    """
    A utility class to print the AST in a readable Lisp-like format.
    This is extremely useful for debugging the parser.
    """
    def print_program(self, statements: List[ast.Stmt]) -> str:
        lines = []
        for stmt in statements:
            lines.append(stmt.accept(self))
        return "\n".join(lines)

    # --- Statement Visitor Methods ---

    def visit_expression_stmt(self, stmt: ast.Expression) -> str:
        return self._parenthesize("expr_stmt", stmt.expression)

    def visit_print_stmt(self, stmt: ast.Print) -> str:
        return self._parenthesize("print", stmt.expression)

    def visit_var_stmt(self, stmt: ast.Var) -> str:
        if stmt.initializer is not None:
            return self._parenthesize(f"var {stmt.name.lexeme}", stmt.initializer)
        return f"(var {stmt.name.lexeme})"

    def visit_block_stmt(self, stmt: ast.Block) -> str:
        return self._body("(block", stmt.statements, ")")

    def visit_if_stmt(self, stmt: ast.If) -> str:
        parts = [
            "(if ",
            stmt.condition.accept(self),
            " ",
            stmt.then_branch.accept(self)
        ]
        if stmt.else_branch is not None:
            parts.append(" else ")
            parts.append(stmt.else_branch.accept(self))
        parts.append(")")
        return "".join(parts)

    def visit_while_stmt(self, stmt: ast.While) -> str:
        parts = [
            "(while ",
            stmt.condition.accept(self),
            " ",
            stmt.body.accept(self),
            ")"
        ]
        return "".join(parts)

    def visit_function_stmt(self, stmt: ast.Function) -> str:
        param_str = ", ".join(p.lexeme for p in stmt.params)
        return self._body(f"(fun {stmt.name.lexeme}({param_str}) {{", stmt.body, "})")

    def visit_return_stmt(self, stmt: ast.Return) -> str:
        if stmt.value is not None:
            return self._parenthesize("return", stmt.value)
        return "(return)"

    def visit_break_stmt(self, stmt: ast.Break) -> str:
        return "(break)"

    # --- Expression Visitor Methods ---

    def visit_binary_expr(self, expr: ast.Binary) -> str:
        return self._parenthesize(expr.operator.lexeme, expr.left, expr.right)

    def visit_grouping_expr(self, expr: ast.Grouping) -> str:
        return self._parenthesize("group", expr.expression)

    def visit_literal_expr(self, expr: ast.Literal) -> str:
        if expr.value is None: return "nil"
        if isinstance(expr.value, str): return f'"{expr.value}"'
        if isinstance(expr.value, bool): return str(expr.value).lower()
        text = str(expr.value)
        return text[:-2] if text.endswith(".0") else text

    def visit_unary_expr(self, expr: ast.Unary) -> str:
        return self._parenthesize(expr.operator.lexeme, expr.right)

    def visit_variable_expr(self, expr: ast.Variable) -> str:
        return expr.name.lexeme

    def visit_assign_expr(self, expr: ast.Assign) -> str:
        return self._parenthesize(f"assign {expr.name.lexeme}", expr.value)

    def visit_logical_expr(self, expr: ast.Logical) -> str:
        return self._parenthesize(expr.operator.lexeme, expr.left, expr.right)

    def visit_call_expr(self, expr: ast.Call) -> str:
        return self._parenthesize("call", expr.callee, *expr.arguments)

    def visit_lambda_expr(self, expr: ast.Lambda) -> str:
        param_str = ", ".join(p.lexeme for p in expr.params)
        return self._body(f"(fun ({param_str}) {{", expr.body, "})")

    # --- Helper Methods ---

    def _body(self, opener: str, statements: List[ast.Stmt], closer: str) -> str:
        """Formats a node that owns a statement list, one statement per indented line."""
        lines = [opener]
        for statement in statements:
            for line in statement.accept(self).split("\n"):
                lines.append(f"  {line}")
        lines.append(closer)
        return "\n".join(lines)

    def _parenthesize(self, name: str, *parts: ast.Expr) -> str:
        """Helper to format a node and its children."""
        result = [f"({name}"]
        for part in parts:
            result.append(f" {part.accept(self)}")
        result.append(")")
        return "".join(result)
