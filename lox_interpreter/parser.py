from typing import Callable, List, Optional, Tuple

from .tokens import Token, TokenType
from .errors import StaticError
from . import ast_nodes as ast

MAX_ARGUMENTS = 255

# Tokens that begin a statement; error recovery resumes at one of these.
STATEMENT_STARTS = {
    TokenType.FUN, TokenType.VAR, TokenType.FOR, TokenType.IF,
    TokenType.WHILE, TokenType.PRINT, TokenType.RETURN,
}


class ParseError(RuntimeError):
    """Unwinds the parser to the enclosing declaration after a syntax error."""
    pass


class Parser:
    """
    Recursive-descent parser turning Lox tokens into statements.

    Syntax errors are recorded in `errors` and reported as they are found.
    After each one the parser skips to the next statement boundary and keeps
    going, so a single pass reports every independent mistake. Statements
    that failed to parse are left out of the result.

    Grammar, lowest precedence first:

        program     -> declaration* EOF
        declaration -> funDecl | varDecl | statement
        statement   -> exprStmt | forStmt | ifStmt | printStmt
                     | returnStmt | whileStmt | breakStmt | block
        expression  -> assignment
        assignment  -> IDENTIFIER "=" assignment | logic_or
        logic_or    -> logic_and ( "or" logic_and )*
        logic_and   -> equality ( "and" equality )*
        equality    -> comparison ( ( "!=" | "==" ) comparison )*
        comparison  -> term ( ( ">" | ">=" | "<" | "<=" ) term )*
        term        -> factor ( ( "-" | "+" ) factor )*
        factor      -> unary ( ( "/" | "*" ) unary )*
        unary       -> ( "!" | "-" ) unary | call
        call        -> primary ( "(" arguments? ")" )*
        primary     -> literal | IDENTIFIER | "(" expression ")"
                     | "fun" "(" parameters? ")" block
    """
    def __init__(self, tokens: List[Token]):
        self.tokens: List[Token] = tokens
        self.current: int = 0
        self.errors: List[StaticError] = []

    @property
    def had_error(self) -> bool:
        return bool(self.errors)

    def parse(self) -> List[ast.Stmt]:
        return self._declarations_until(TokenType.EOF)

    def _declarations_until(self, closer: TokenType) -> List[ast.Stmt]:
        statements: List[ast.Stmt] = []
        while not self._check(closer) and not self._is_at_end():
            declaration = self._declaration()
            if declaration is not None:
                statements.append(declaration)
        return statements

    # --- Declarations and statements ---

    def _declaration(self) -> Optional[ast.Stmt]:
        try:
            # 'fun (' without a name is a lambda, left to the expression rules.
            if self._check(TokenType.FUN) and self._check_next(TokenType.IDENTIFIER):
                self._advance()
                return self._function("function")
            if self._match(TokenType.VAR):
                return self._var_declaration()
            return self._statement()
        except ParseError:
            self._synchronize()
            return None

    def _var_declaration(self) -> ast.Var:
        name = self._consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer = self._expression() if self._match(TokenType.EQUAL) else None
        self._consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return ast.Var(name, initializer)

    def _statement(self) -> ast.Stmt:
        handlers = {
            TokenType.FOR: self._for_statement,
            TokenType.IF: self._if_statement,
            TokenType.PRINT: self._print_statement,
            TokenType.RETURN: self._return_statement,
            TokenType.WHILE: self._while_statement,
            TokenType.BREAK: self._break_statement,
            TokenType.LEFT_BRACE: self._block_statement,
        }
        handler = handlers.get(self._peek().token_type)
        if handler is None:
            return self._expression_statement()
        return handler(self._advance())

    def _block_statement(self, brace: Token) -> ast.Block:
        return ast.Block(brace, self._block())

    def _if_statement(self, keyword: Token) -> ast.If:
        condition = self._parenthesized_condition("if")
        then_branch = self._statement()
        else_branch = self._statement() if self._match(TokenType.ELSE) else None
        return ast.If(keyword, condition, then_branch, else_branch)

    def _while_statement(self, keyword: Token) -> ast.While:
        condition = self._parenthesized_condition("while")
        return ast.While(keyword, condition, self._statement())

    def _parenthesized_condition(self, keyword: str) -> ast.Expr:
        self._consume(TokenType.LEFT_PAREN, f"Expect '(' after '{keyword}'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, f"Expect ')' after {keyword} condition.")
        return condition

    def _for_statement(self, keyword: Token) -> ast.Stmt:
        """
        for (init; cond; incr) body  becomes
        { init; while (cond) { body; incr; } }
        with a missing condition standing for 'true'.
        """
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        initializer: Optional[ast.Stmt] = None
        if self._match(TokenType.VAR):
            initializer = self._var_declaration()
        elif not self._match(TokenType.SEMICOLON):
            initializer = self._expression_statement()

        condition: ast.Expr = ast.Literal(True)
        if not self._check(TokenType.SEMICOLON):
            condition = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment: Optional[ast.Expr] = None
        if not self._check(TokenType.RIGHT_PAREN):
            increment = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self._statement()
        if increment is not None:
            body = ast.Block(keyword, [body, ast.Expression(increment)])
        loop: ast.Stmt = ast.While(keyword, condition, body)
        if initializer is not None:
            loop = ast.Block(keyword, [initializer, loop])
        return loop

    def _print_statement(self, keyword: Token) -> ast.Print:
        value = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return ast.Print(value)

    def _break_statement(self, keyword: Token) -> ast.Break:
        self._consume(TokenType.SEMICOLON, "Expect ';' after 'break'.")
        return ast.Break(keyword)

    def _return_statement(self, keyword: Token) -> ast.Return:
        value = None if self._check(TokenType.SEMICOLON) else self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return ast.Return(keyword, value)

    def _expression_statement(self) -> ast.Expression:
        expr = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return ast.Expression(expr)

    def _block(self) -> List[ast.Stmt]:
        """The statements of a block whose '{' was already consumed."""
        statements = self._declarations_until(TokenType.RIGHT_BRACE)
        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    # --- Functions ---

    def _function(self, kind: str) -> ast.Function:
        name = self._consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        params, body = self._function_rest(kind)
        return ast.Function(name, params, body)

    def _function_rest(self, kind: str) -> Tuple[List[Token], List[ast.Stmt]]:
        """Parameter list and body, shared by declarations and lambdas."""
        self._consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        parameters = self._comma_list(
            lambda: self._consume(TokenType.IDENTIFIER, "Expect parameter name."),
            "parameters",
        )
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        self._consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        return parameters, self._block()

    def _comma_list(self, item: Callable, what: str) -> list:
        """
        Zero or more comma-separated items, stopping before ')'. Going past
        MAX_ARGUMENTS is reported but does not stop the parse.
        """
        items = []
        if self._check(TokenType.RIGHT_PAREN):
            return items
        while True:
            if len(items) >= MAX_ARGUMENTS:
                self._error(self._peek(), f"Can't have more than {MAX_ARGUMENTS} {what}.")
            items.append(item())
            if not self._match(TokenType.COMMA):
                return items

    # --- Expressions ---

    def _expression(self) -> ast.Expr:
        return self._assignment()

    def _assignment(self) -> ast.Expr:
        target = self._or()
        if not self._match(TokenType.EQUAL):
            return target

        equals = self._previous()
        value = self._assignment()
        if isinstance(target, ast.Variable):
            return ast.Assign(target.name, value)

        # Reported, but not raised: the parser knows where it is.
        self._error(equals, "Invalid assignment target.")
        return target

    def _left_associative(self, operand: Callable[[], ast.Expr], node_type: type,
                          *operators: TokenType) -> ast.Expr:
        """operand ( operator operand )*, folded to the left."""
        expr = operand()
        while self._match(*operators):
            operator = self._previous()
            expr = node_type(expr, operator, operand())
        return expr

    def _or(self) -> ast.Expr:
        return self._left_associative(self._and, ast.Logical, TokenType.OR)

    def _and(self) -> ast.Expr:
        return self._left_associative(self._equality, ast.Logical, TokenType.AND)

    def _equality(self) -> ast.Expr:
        return self._left_associative(self._comparison, ast.Binary,
                                      TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def _comparison(self) -> ast.Expr:
        return self._left_associative(self._term, ast.Binary,
                                      TokenType.GREATER, TokenType.GREATER_EQUAL,
                                      TokenType.LESS, TokenType.LESS_EQUAL)

    def _term(self) -> ast.Expr:
        return self._left_associative(self._factor, ast.Binary, TokenType.MINUS, TokenType.PLUS)

    def _factor(self) -> ast.Expr:
        return self._left_associative(self._unary, ast.Binary, TokenType.SLASH, TokenType.STAR)

    def _unary(self) -> ast.Expr:
        if self._match(TokenType.MINUS, TokenType.BANG):
            operator = self._previous()
            return ast.Unary(operator, self._unary())
        return self._call()

    def _call(self) -> ast.Expr:
        """A primary followed by any number of argument lists: f(1)(2)."""
        expr = self._primary()
        while self._match(TokenType.LEFT_PAREN):
            arguments = self._comma_list(self._expression, "arguments")
            paren = self._consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
            expr = ast.Call(expr, paren, arguments)
        return expr

    def _primary(self) -> ast.Expr:
        token = self._peek()
        kind = token.token_type

        if kind in (TokenType.FALSE, TokenType.TRUE, TokenType.NIL):
            self._advance()
            return ast.Literal({TokenType.FALSE: False, TokenType.TRUE: True, TokenType.NIL: None}[kind])
        if kind in (TokenType.NUMBER, TokenType.STRING):
            self._advance()
            return ast.Literal(token.literal)
        if kind == TokenType.IDENTIFIER:
            self._advance()
            return ast.Variable(token)
        if kind == TokenType.FUN:
            self._advance()
            params, body = self._function_rest("fun")
            return ast.Lambda(token, params, body)
        if kind == TokenType.LEFT_PAREN:
            self._advance()
            expr = self._expression()
            self._consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return ast.Grouping(expr)

        raise self._error(token, "Expect expression.")

    # --- Token cursor ---

    def _match(self, *types: TokenType) -> bool:
        """Consumes the current token if it has one of `types`."""
        if any(self._check(token_type) for token_type in types):
            self._advance()
            return True
        return False

    def _check(self, token_type: TokenType) -> bool:
        return not self._is_at_end() and self._peek().token_type == token_type

    def _check_next(self, token_type: TokenType) -> bool:
        """Looks one token past the current one."""
        if self._is_at_end():
            return False
        return self.tokens[self.current + 1].token_type == token_type

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _is_at_end(self) -> bool:
        return self._peek().token_type == TokenType.EOF

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]

    # --- Errors ---

    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._check(token_type):
            return self._advance()
        raise self._error(self._peek(), message)

    def _error(self, token: Token, message: str) -> ParseError:
        """Records and reports a syntax error. The caller decides whether to raise it."""
        error = StaticError.at(token, message)
        self.errors.append(error)
        error.report()
        return ParseError(message)

    def _synchronize(self):
        """Skips tokens until just past a ';' or just before a statement keyword."""
        self._advance()
        while not self._is_at_end():
            if self._previous().token_type == TokenType.SEMICOLON:
                return
            if self._peek().token_type in STATEMENT_STARTS:
                return
            self._advance()
